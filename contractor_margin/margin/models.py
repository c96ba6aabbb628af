"""Job, labor and material records plus the derived margin view."""
from __future__ import annotations

import datetime as dt
import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobType(str, enum.Enum):
    residential = "residential"
    commercial = "commercial"


class JobStatus(str, enum.Enum):
    active = "active"
    completed = "completed"
    invoiced = "invoiced"


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def utc_today() -> dt.date:
    return utc_now().date()


class _FiniteModel(BaseModel):
    """Money and hour fields reject ``inf`` / ``nan``."""

    model_config = ConfigDict(allow_inf_nan=False)


# ── Persisted records ───────────────────────────────────────────────


class Job(_FiniteModel):
    """A tracked job. ``owner_id`` never changes after creation."""

    id: str
    owner_id: str
    name: str
    client_name: str = ""
    job_type: JobType = JobType.residential
    status: JobStatus = JobStatus.active
    estimated_revenue: float = Field(0.0, ge=0)
    actual_revenue: float = Field(0.0, ge=0)
    created_at: dt.datetime = Field(default_factory=utc_now)
    completed_at: Optional[dt.datetime] = None


class LaborEntry(_FiniteModel):
    """Hours a technician spent on one job. Corrections are delete + recreate."""

    id: str
    job_id: str
    owner_id: str
    tech_name: str
    hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)
    date: dt.date = Field(default_factory=utc_today)


class MaterialEntry(_FiniteModel):
    """A material purchase charged to one job."""

    id: str
    job_id: str
    owner_id: str
    description: str
    cost: float = Field(ge=0)
    date: dt.date = Field(default_factory=utc_today)


class JobWithMargin(Job):
    """Derived financial view of a job. Recomputed on every read, never stored."""

    total_labor_cost: float
    total_material_cost: float
    total_cost: float
    margin: float
    margin_danger: bool
    estimate_accuracy: float


# ── Create / update payloads ────────────────────────────────────────


def _none_to_default(value: Any, default: Any) -> Any:
    return default if value is None else value


class JobCreate(_FiniteModel):
    """Fields accepted when creating a job; omitted or null fields take defaults."""

    name: str = Field(min_length=1)
    client_name: str = ""
    job_type: JobType = JobType.residential
    status: JobStatus = JobStatus.active
    estimated_revenue: float = Field(0.0, ge=0)
    actual_revenue: float = Field(0.0, ge=0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v

    @field_validator("client_name", mode="before")
    @classmethod
    def _client_default(cls, v: Any) -> Any:
        return _none_to_default(v, "")

    @field_validator("job_type", mode="before")
    @classmethod
    def _type_default(cls, v: Any) -> Any:
        return _none_to_default(v, JobType.residential)

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, v: Any) -> Any:
        return _none_to_default(v, JobStatus.active)

    @field_validator("estimated_revenue", "actual_revenue", mode="before")
    @classmethod
    def _revenue_default(cls, v: Any) -> Any:
        return _none_to_default(v, 0.0)


class LaborEntryCreate(_FiniteModel):
    tech_name: str = Field(min_length=1)
    hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)
    date: Optional[dt.date] = None


class MaterialEntryCreate(_FiniteModel):
    description: str = Field(min_length=1)
    cost: float = Field(ge=0)
    date: Optional[dt.date] = None


class JobStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: JobStatus
