"""
Tool catalog for the tool-call endpoint.

The tool set is closed: ``ToolName`` lists every tool, ``TOOL_CATALOG``
holds the schema advertised by ``tools/list`` and ``TOOL_ARGUMENTS`` the
pydantic model each call's arguments are validated against before
anything runs. Unknown or misspelled argument names are rejected.
"""
from __future__ import annotations

import datetime as dt
import enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..margin.models import JobType


class ToolName(str, enum.Enum):
    get_stats = "get_stats"
    create_job = "create_job"
    add_labor = "add_labor"
    add_material = "add_material"


class UnknownToolError(Exception):
    """``tools/call`` named a tool outside the catalog."""


class ToolArgumentError(Exception):
    """A tool's arguments failed validation."""


# ── Argument models ─────────────────────────────────────────────────


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)


class GetStatsArgs(_ToolArgs):
    pass


class CreateJobArgs(_ToolArgs):
    name: str = Field(min_length=1)
    client_name: Optional[str] = None
    job_type: Optional[JobType] = None
    estimated_revenue: Optional[float] = Field(None, ge=0)


class AddLaborArgs(_ToolArgs):
    job_id: str = Field(min_length=1)
    tech_name: str = Field(min_length=1)
    hours: float = Field(ge=0)
    hourly_rate: float = Field(ge=0)
    date: Optional[dt.date] = None


class AddMaterialArgs(_ToolArgs):
    job_id: str = Field(min_length=1)
    description: str = Field(min_length=1)
    cost: float = Field(ge=0)
    date: Optional[dt.date] = None


TOOL_ARGUMENTS: Dict[ToolName, Type[_ToolArgs]] = {
    ToolName.get_stats: GetStatsArgs,
    ToolName.create_job: CreateJobArgs,
    ToolName.add_labor: AddLaborArgs,
    ToolName.add_material: AddMaterialArgs,
}


# ── Advertised catalog ──────────────────────────────────────────────

_DATE_PROP = {"type": "string", "description": "Date (YYYY-MM-DD)"}
_JOB_ID_PROP = {"type": "string", "description": "Job UUID"}

TOOL_CATALOG: List[Dict[str, Any]] = [
    {
        "name": ToolName.get_stats.value,
        "description": "Get aggregated job margin statistics for the authenticated contractor account.",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": ToolName.create_job.value,
        "description": "Create a new job for tracking labor and material costs.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Job name/description"},
                "client_name": {"type": "string", "description": "Client name"},
                "job_type": {
                    "type": "string",
                    "enum": [t.value for t in JobType],
                    "description": "Type of job",
                },
                "estimated_revenue": {"type": "number", "description": "Estimated revenue in dollars"},
            },
            "required": ["name"],
        },
    },
    {
        "name": ToolName.add_labor.value,
        "description": "Add a labor entry to a job.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "job_id": _JOB_ID_PROP,
                "tech_name": {"type": "string", "description": "Technician name"},
                "hours": {"type": "number", "description": "Hours worked"},
                "hourly_rate": {"type": "number", "description": "Hourly rate in dollars"},
                "date": _DATE_PROP,
            },
            "required": ["job_id", "tech_name", "hours", "hourly_rate"],
        },
    },
    {
        "name": ToolName.add_material.value,
        "description": "Add a material cost entry to a job.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "job_id": _JOB_ID_PROP,
                "description": {"type": "string", "description": "Material description"},
                "cost": {"type": "number", "description": "Material cost in dollars"},
                "date": _DATE_PROP,
            },
            "required": ["job_id", "description", "cost"],
        },
    },
]


def _describe_errors(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        if err.get("type") == "missing":
            parts.append(f"{field} is required")
        elif err.get("type") == "extra_forbidden":
            parts.append(f"unexpected argument {field}")
        else:
            parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


def parse_tool_call(params: Dict[str, Any]) -> tuple[ToolName, _ToolArgs]:
    """Resolve ``params.name`` to a tool and validate ``params.arguments``.

    Raises
    ------
    UnknownToolError
        If the name is not in the catalog.
    ToolArgumentError
        If the arguments are not an object or fail the tool's model.
    """
    raw_name = params.get("name")
    try:
        tool = ToolName(raw_name)
    except (ValueError, TypeError):
        raise UnknownToolError(f"Tool not found: {raw_name or ''}") from None

    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ToolArgumentError(f"Invalid arguments for {tool.value}: arguments must be an object")
    try:
        args = TOOL_ARGUMENTS[tool].model_validate(arguments)
    except ValidationError as exc:
        raise ToolArgumentError(f"Invalid arguments for {tool.value}: {_describe_errors(exc)}") from exc
    return tool, args
