"""
Margin engine: per-job financial summaries and their aggregation.

Components:
    - compute_job_margin / compute_all: job + line items -> JobWithMargin
    - classify_margin: margin percentage -> healthy / acceptable / danger
    - summarize_jobs: averages, status counts, totals, best/worst
    - monthly_report / dashboard_summary: report views built on summarize_jobs
"""
from .models import (
    Job,
    JobCreate,
    JobStatus,
    JobStatusUpdate,
    JobType,
    JobWithMargin,
    LaborEntry,
    LaborEntryCreate,
    MaterialEntry,
    MaterialEntryCreate,
)
from .calculator import compute_all, compute_job_margin, is_margin_danger, revenue_used
from .classification import MarginTier, classify_margin, describe_tier, margin_badge_class, margin_color
from .aggregation import (
    DashboardSummary,
    MarginSummary,
    MonthlyReport,
    best_and_worst,
    dashboard_summary,
    filter_month,
    group_by_month,
    month_key,
    monthly_report,
    parse_month,
    round_display,
    sort_by_margin,
    summarize_jobs,
    trailing_months,
)

__all__ = [
    "DashboardSummary",
    "Job",
    "JobCreate",
    "JobStatus",
    "JobStatusUpdate",
    "JobType",
    "JobWithMargin",
    "LaborEntry",
    "LaborEntryCreate",
    "MarginSummary",
    "MarginTier",
    "MaterialEntry",
    "MaterialEntryCreate",
    "MonthlyReport",
    "best_and_worst",
    "classify_margin",
    "compute_all",
    "compute_job_margin",
    "dashboard_summary",
    "describe_tier",
    "filter_month",
    "group_by_month",
    "is_margin_danger",
    "margin_badge_class",
    "margin_color",
    "month_key",
    "monthly_report",
    "parse_month",
    "revenue_used",
    "round_display",
    "sort_by_margin",
    "summarize_jobs",
    "trailing_months",
]
