"""Fetch, join and compute job margins for one owner."""
from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ...margin.aggregation import (
    DashboardSummary,
    MarginSummary,
    MonthlyReport,
    dashboard_summary,
    group_by_month,
    monthly_report,
    summarize_jobs,
    trailing_months,
)
from ...margin.calculator import compute_all, compute_job_margin
from ...margin.classification import describe_tier
from ...margin.models import (
    Job,
    JobCreate,
    JobStatus,
    JobWithMargin,
    LaborEntry,
    LaborEntryCreate,
    MaterialEntry,
    MaterialEntryCreate,
    utc_now,
)
from ..store.sqlite import RecordNotFoundError

logger = logging.getLogger(__name__)


def _created_key(job: Job) -> dt.datetime:
    ts = job.created_at
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=dt.timezone.utc)


@dataclass
class JobDetail:
    """One job's margin view together with the entries it was computed from."""

    job: JobWithMargin
    labor: List[LaborEntry] = field(default_factory=list)
    materials: List[MaterialEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job.model_dump(mode="json"),
            "labor": [e.model_dump(mode="json") for e in self.labor],
            "materials": [e.model_dump(mode="json") for e in self.materials],
            "tier": describe_tier(self.job.margin),
        }


class MarginService:
    """Owner-scoped operations over a record store.

    Nothing is cached between calls: every read recomputes margins from the
    current line items.
    """

    def __init__(self, store) -> None:
        self.store = store

    # ── Reads ────────────────────────────────────────────────────────

    async def jobs_with_margin(self, owner_id: str) -> List[JobWithMargin]:
        """All of an owner's jobs with computed margins, newest created first.

        Jobs, labor and materials are read concurrently and joined only once
        all three reads have completed.
        """
        jobs, labor, materials = await asyncio.gather(
            self.store.list_jobs(owner_id),
            self.store.list_labor_entries(owner_id),
            self.store.list_material_entries(owner_id),
        )
        computed = compute_all(jobs, labor, materials)
        return sorted(computed, key=_created_key, reverse=True)

    async def list_jobs(self, owner_id: str, status: Optional[JobStatus] = None) -> List[JobWithMargin]:
        jobs = await self.jobs_with_margin(owner_id)
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        return jobs

    async def stats(self, owner_id: str) -> MarginSummary:
        return summarize_jobs(await self.jobs_with_margin(owner_id))

    async def dashboard(self, owner_id: str, recent: Optional[int] = None) -> DashboardSummary:
        jobs = await self.jobs_with_margin(owner_id)
        if recent is None:
            return dashboard_summary(jobs)
        return dashboard_summary(jobs, recent=recent)

    async def monthly_report(self, owner_id: str, month: str) -> MonthlyReport:
        return monthly_report(await self.jobs_with_margin(owner_id), month)

    async def month_counts(self, owner_id: str, today: dt.date, window: int) -> List[Dict[str, Any]]:
        """Trailing ``window`` month keys (newest first) with their job counts."""
        buckets = group_by_month(await self.jobs_with_margin(owner_id))
        return [
            {"month": key, "job_count": len(buckets.get(key, []))}
            for key in trailing_months(today, window)
        ]

    async def job_detail(self, owner_id: str, job_id: str) -> JobDetail:
        job, labor, materials = await asyncio.gather(
            self.store.get_job(owner_id, job_id),
            self.store.list_labor_entries(owner_id, job_id),
            self.store.list_material_entries(owner_id, job_id),
        )
        if job is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        return JobDetail(
            job=compute_job_margin(job, labor, materials),
            labor=labor,
            materials=materials,
        )

    # ── Writes ───────────────────────────────────────────────────────

    async def create_job(self, owner_id: str, payload: JobCreate) -> Job:
        job = await self.store.create_job(owner_id, payload)
        logger.info("Created job %s for owner %s", job.id, owner_id)
        return job

    async def set_status(self, owner_id: str, job_id: str, status: JobStatus) -> Job:
        """Change a job's status. Moving to ``completed`` stamps ``completed_at`` now."""
        completed_at = utc_now() if status == JobStatus.completed else None
        return await self.store.update_job_status(owner_id, job_id, status, completed_at)

    async def add_labor(self, owner_id: str, job_id: str, payload: LaborEntryCreate) -> LaborEntry:
        return await self.store.create_labor_entry(owner_id, job_id, payload)

    async def add_material(
        self, owner_id: str, job_id: str, payload: MaterialEntryCreate
    ) -> MaterialEntry:
        return await self.store.create_material_entry(owner_id, job_id, payload)

    async def delete_labor(self, owner_id: str, entry_id: str) -> None:
        if not await self.store.delete_labor_entry(owner_id, entry_id):
            raise RecordNotFoundError(f"Labor entry '{entry_id}' not found")

    async def delete_material(self, owner_id: str, entry_id: str) -> None:
        if not await self.store.delete_material_entry(owner_id, entry_id):
            raise RecordNotFoundError(f"Material entry '{entry_id}' not found")
