"""
Aggregation Engine: summary statistics over a set of derived job margins.

Every function is pure and total: empty input yields zeros (never NaN) and
``None`` for best/worst. Results do not depend on input order except for
best/worst selection, where ties go to the first record in input order.
"""
from __future__ import annotations

import datetime as dt
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DASHBOARD_RECENT_JOBS, DISPLAY_DECIMALS
from .calculator import revenue_used
from .classification import describe_tier
from .models import JobStatus, JobWithMargin

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def round_display(value: float, decimals: int = DISPLAY_DECIMALS) -> float:
    """Round half-up for display (2.25 -> 2.3). Only applied at the response edge."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ── Summary ─────────────────────────────────────────────────────────


@dataclass
class MarginSummary:
    """Aggregate view over a collection of JobWithMargin records."""

    job_count: int = 0
    average_margin: float = 0.0
    active_count: int = 0
    completed_count: int = 0
    invoiced_count: int = 0
    danger_count: int = 0
    average_estimate_accuracy: float = 0.0
    total_revenue: float = 0.0
    total_labor_cost: float = 0.0
    total_material_cost: float = 0.0
    total_cost: float = 0.0
    total_active_value: float = 0.0
    best_margin_job: Optional[JobWithMargin] = None
    worst_margin_job: Optional[JobWithMargin] = None

    @property
    def gross_profit(self) -> float:
        return self.total_revenue - self.total_cost

    def to_stats(self, decimals: int = DISPLAY_DECIMALS) -> Dict[str, Any]:
        """Wire shape of ``GET /v1/stats``; rounding happens here only."""
        return {
            "avg_margin": round_display(self.average_margin, decimals),
            "active_jobs": self.active_count,
            "flagged_jobs": self.danger_count,
            "estimate_accuracy": round_display(self.average_estimate_accuracy, decimals),
            "total_jobs": self.job_count,
        }


def best_and_worst(
    jobs: Sequence[JobWithMargin],
) -> Tuple[Optional[JobWithMargin], Optional[JobWithMargin]]:
    """Highest and lowest margin records; ties resolve to first occurrence.

    With a single record both slots point to it.
    """
    if not jobs:
        return None, None
    # max()/min() keep the first of equal keys
    best = max(jobs, key=lambda j: j.margin)
    worst = min(jobs, key=lambda j: j.margin)
    return best, worst


def _has_meaningful_accuracy(job: JobWithMargin) -> bool:
    return (
        job.status in (JobStatus.completed, JobStatus.invoiced)
        and job.estimated_revenue > 0
    )


def summarize_jobs(jobs: Sequence[JobWithMargin]) -> MarginSummary:
    """Compute averages, status counts, totals and best/worst over ``jobs``."""
    jobs = list(jobs)
    if not jobs:
        return MarginSummary()

    best, worst = best_and_worst(jobs)
    active = [j for j in jobs if j.status == JobStatus.active]

    return MarginSummary(
        job_count=len(jobs),
        average_margin=_mean([j.margin for j in jobs]),
        active_count=len(active),
        completed_count=sum(1 for j in jobs if j.status == JobStatus.completed),
        invoiced_count=sum(1 for j in jobs if j.status == JobStatus.invoiced),
        danger_count=sum(1 for j in jobs if j.margin_danger),
        average_estimate_accuracy=_mean(
            [j.estimate_accuracy for j in jobs if _has_meaningful_accuracy(j)]
        ),
        total_revenue=sum(revenue_used(j) for j in jobs),
        total_labor_cost=sum(j.total_labor_cost for j in jobs),
        total_material_cost=sum(j.total_material_cost for j in jobs),
        total_cost=sum(j.total_cost for j in jobs),
        total_active_value=sum(revenue_used(j) for j in active),
        best_margin_job=best,
        worst_margin_job=worst,
    )


# ── Month bucketing ─────────────────────────────────────────────────


def month_key(timestamp: dt.datetime) -> str:
    """UTC ``YYYY-MM`` of a timestamp; naive timestamps are taken as UTC."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(dt.timezone.utc)
    return f"{timestamp.year:04d}-{timestamp.month:02d}"


def parse_month(value: str) -> str:
    """Validate a ``YYYY-MM`` string. Raises ``ValueError`` otherwise."""
    if not isinstance(value, str) or not _MONTH_RE.match(value):
        raise ValueError(f"Invalid month {value!r}; expected YYYY-MM")
    return value


def filter_month(jobs: Sequence[JobWithMargin], month: str) -> List[JobWithMargin]:
    """Jobs created in ``month`` (by creation timestamp, not completion)."""
    month = parse_month(month)
    return [j for j in jobs if month_key(j.created_at) == month]


def group_by_month(jobs: Sequence[JobWithMargin]) -> Dict[str, List[JobWithMargin]]:
    """Partition jobs by creation month, keeping input order inside each bucket."""
    buckets: Dict[str, List[JobWithMargin]] = {}
    for job in jobs:
        buckets.setdefault(month_key(job.created_at), []).append(job)
    return buckets


def trailing_months(today: dt.date, count: int) -> List[str]:
    """``count`` month keys ending at ``today``'s month, newest first."""
    year, month = today.year, today.month
    keys = []
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys


def sort_by_margin(jobs: Sequence[JobWithMargin]) -> List[JobWithMargin]:
    """Margin descending; equal margins keep input order."""
    return sorted(jobs, key=lambda j: j.margin, reverse=True)


# ── Report views ────────────────────────────────────────────────────


def _job_brief(job: JobWithMargin, decimals: int) -> Dict[str, Any]:
    return {
        "id": job.id,
        "name": job.name,
        "client_name": job.client_name,
        "margin": round_display(job.margin, decimals),
        **describe_tier(job.margin),
    }


@dataclass
class MonthlyReport:
    """Profit and loss for the jobs created in one calendar month."""

    month: str
    summary: MarginSummary
    jobs: List[JobWithMargin] = field(default_factory=list)

    def to_dict(self, decimals: int = DISPLAY_DECIMALS) -> Dict[str, Any]:
        s = self.summary
        best = s.best_margin_job
        worst = s.worst_margin_job
        if worst is not None and best is not None and worst.id == best.id:
            worst = None
        rows = []
        for job in self.jobs:
            revenue = revenue_used(job)
            rows.append({
                **_job_brief(job, decimals),
                "revenue": revenue,
                "labor_cost": job.total_labor_cost,
                "material_cost": job.total_material_cost,
                "profit": revenue - job.total_cost,
            })
        return {
            "month": self.month,
            "job_count": s.job_count,
            "total_revenue": s.total_revenue,
            "total_labor_cost": s.total_labor_cost,
            "total_material_cost": s.total_material_cost,
            "total_costs": s.total_cost,
            "gross_profit": s.gross_profit,
            "avg_margin": round_display(s.average_margin, decimals) if s.job_count else None,
            "avg_margin_tier": describe_tier(s.average_margin)["tier"] if s.job_count else None,
            "best_job": _job_brief(best, decimals) if best is not None else None,
            "worst_job": _job_brief(worst, decimals) if worst is not None else None,
            "jobs": rows,
        }


def monthly_report(jobs: Sequence[JobWithMargin], month: str) -> MonthlyReport:
    """Summarize the jobs created in ``month``; rows sorted by margin descending."""
    month_jobs = filter_month(jobs, month)
    return MonthlyReport(
        month=month,
        summary=summarize_jobs(month_jobs),
        jobs=sort_by_margin(month_jobs),
    )


@dataclass
class DashboardSummary:
    summary: MarginSummary
    flagged: List[JobWithMargin] = field(default_factory=list)
    recent: List[JobWithMargin] = field(default_factory=list)

    def to_dict(self, decimals: int = DISPLAY_DECIMALS) -> Dict[str, Any]:
        return {
            **self.summary.to_stats(decimals),
            "total_active_value": self.summary.total_active_value,
            "flagged": [_job_brief(j, decimals) for j in self.flagged],
            "recent": [_job_brief(j, decimals) for j in self.recent],
        }


def dashboard_summary(
    jobs: Sequence[JobWithMargin],
    recent: int = DASHBOARD_RECENT_JOBS,
) -> DashboardSummary:
    """Stats plus danger jobs and the newest ``recent`` jobs.

    ``jobs`` is expected newest-first, as the job listing returns it.
    """
    jobs = list(jobs)
    return DashboardSummary(
        summary=summarize_jobs(jobs),
        flagged=[j for j in jobs if j.margin_danger],
        recent=jobs[:recent],
    )
