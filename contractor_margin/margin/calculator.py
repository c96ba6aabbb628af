"""
Margin Calculator: derive a job's financial summary from its line items.

All functions here are pure and total: no I/O, no rounding, no failure
for any well-typed input (empty entry lists yield zero costs).
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from ..config import DANGER_MARGIN_THRESHOLD
from .models import Job, JobWithMargin, LaborEntry, MaterialEntry


def revenue_used(job: Job) -> float:
    """Best-known revenue: actual revenue once recorded, else the estimate."""
    return job.actual_revenue if job.actual_revenue > 0 else job.estimated_revenue


def is_margin_danger(margin: float) -> bool:
    """True when ``margin`` is strictly below the danger threshold (20.0 is safe)."""
    return margin < DANGER_MARGIN_THRESHOLD


def compute_job_margin(
    job: Job,
    labor: Iterable[LaborEntry],
    materials: Iterable[MaterialEntry],
) -> JobWithMargin:
    """
    Compute the derived margin view for one job.

    Args:
        job: the job record
        labor: labor entries already filtered to ``job.id``
        materials: material entries already filtered to ``job.id``

    Returns:
        JobWithMargin carrying the job's fields plus cost totals, margin
        percentage, danger flag and estimate accuracy.
    """
    total_labor_cost = sum((e.hours * e.hourly_rate for e in labor), 0.0)
    total_material_cost = sum((e.cost for e in materials), 0.0)
    total_cost = total_labor_cost + total_material_cost

    revenue = revenue_used(job)
    margin = ((revenue - total_cost) / revenue) * 100 if revenue > 0 else 0.0

    # Jobs without actuals read as 0% accurate; callers gate display by status.
    if job.estimated_revenue > 0:
        estimate_accuracy = (job.actual_revenue / job.estimated_revenue) * 100
    else:
        estimate_accuracy = 0.0

    return JobWithMargin(
        **job.model_dump(include=set(Job.model_fields)),
        total_labor_cost=total_labor_cost,
        total_material_cost=total_material_cost,
        total_cost=total_cost,
        margin=margin,
        margin_danger=is_margin_danger(margin),
        estimate_accuracy=estimate_accuracy,
    )


def compute_all(
    jobs: Sequence[Job],
    labor: Iterable[LaborEntry],
    materials: Iterable[MaterialEntry],
) -> List[JobWithMargin]:
    """Join an owner's entries to their jobs by ``job_id`` and compute each margin.

    Input job order is preserved. Entries whose job is not in ``jobs`` are
    ignored.
    """
    labor_by_job: Dict[str, List[LaborEntry]] = defaultdict(list)
    for entry in labor:
        labor_by_job[entry.job_id].append(entry)
    materials_by_job: Dict[str, List[MaterialEntry]] = defaultdict(list)
    for entry in materials:
        materials_by_job[entry.job_id].append(entry)

    return [
        compute_job_margin(job, labor_by_job.get(job.id, []), materials_by_job.get(job.id, []))
        for job in jobs
    ]
