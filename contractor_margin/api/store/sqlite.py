"""SQLite-backed, owner-scoped persistence for jobs and their line items."""
from __future__ import annotations

import asyncio
import datetime as dt
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, List, Optional

import aiosqlite

from ...margin.models import (
    Job,
    JobCreate,
    JobStatus,
    LaborEntry,
    LaborEntryCreate,
    MaterialEntry,
    MaterialEntryCreate,
    utc_today,
)

logger = logging.getLogger(__name__)


class RecordNotFoundError(Exception):
    """Referenced job or entry is absent, or belongs to another owner."""


class StoreError(Exception):
    """The backing database failed to complete an operation."""


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL,
        client_name TEXT NOT NULL DEFAULT '',
        job_type TEXT NOT NULL DEFAULT 'residential',
        status TEXT NOT NULL DEFAULT 'active',
        estimated_revenue REAL NOT NULL DEFAULT 0,
        actual_revenue REAL NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        completed_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS labor_entries (
        id TEXT PRIMARY KEY,
        job_id TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
        owner_id TEXT NOT NULL,
        tech_name TEXT NOT NULL,
        hours REAL NOT NULL,
        hourly_rate REAL NOT NULL,
        date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS material_entries (
        id TEXT PRIMARY KEY,
        job_id TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
        owner_id TEXT NOT NULL,
        description TEXT NOT NULL,
        cost REAL NOT NULL,
        date TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_jobs_owner ON jobs(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_labor_owner_job ON labor_entries(owner_id, job_id)",
    "CREATE INDEX IF NOT EXISTS idx_material_owner_job ON material_entries(owner_id, job_id)",
)


class RecordStore:
    """Async SQLite store. Every read and write is scoped by ``owner_id``.

    Another owner's rows are never returned; writes that reference a job
    the caller does not own raise ``RecordNotFoundError``.
    """

    def __init__(self, db_path: str = "contractor_margin.db") -> None:
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the connection and create tables if they don't exist.

        Safe to call concurrently; only the first caller opens a connection.
        """
        async with self._init_lock:
            if self._db is not None:
                return
            db = await aiosqlite.connect(self.db_path)
            await db.execute("PRAGMA foreign_keys = ON")
            for statement in _SCHEMA:
                await db.execute(statement)
            await db.commit()
            self._db = db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @asynccontextmanager
    async def _connection(self, operation: str):
        """Yield the open connection, translating driver errors to StoreError."""
        if self._db is None:
            await self.initialize()
        try:
            yield self._db
        except aiosqlite.Error as exc:
            logger.error("Store operation %s failed: %s", operation, exc)
            raise StoreError(f"{operation} failed: {exc}") from exc

    # ── Jobs ─────────────────────────────────────────────────────────

    async def list_jobs(self, owner_id: str) -> List[Job]:
        """All of an owner's jobs, newest created first."""
        async with self._connection("list_jobs") as db:
            async with db.execute(
                "SELECT * FROM jobs WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC",
                (owner_id,),
            ) as cur:
                rows = await cur.fetchall()
                desc = cur.description
        return [Job(**self._row_to_dict(r, desc)) for r in rows]

    async def get_job(self, owner_id: str, job_id: str) -> Optional[Job]:
        """Fetch one job, or ``None`` when absent or owned by someone else."""
        async with self._connection("get_job") as db:
            async with db.execute(
                "SELECT * FROM jobs WHERE id = ? AND owner_id = ?", (job_id, owner_id)
            ) as cur:
                row = await cur.fetchone()
                desc = cur.description
        if row is None:
            return None
        return Job(**self._row_to_dict(row, desc))

    async def create_job(self, owner_id: str, payload: JobCreate) -> Job:
        """Insert a new job owned by ``owner_id`` and return its record."""
        job = Job(id=str(uuid.uuid4()), owner_id=owner_id, **payload.model_dump())
        async with self._connection("create_job") as db:
            await db.execute(
                "INSERT INTO jobs (id, owner_id, name, client_name, job_type, status, "
                "estimated_revenue, actual_revenue, created_at, completed_at) "
                "VALUES (?,?,?,?,?,?,?,?,?,?)",
                (
                    job.id, job.owner_id, job.name, job.client_name, job.job_type.value,
                    job.status.value, job.estimated_revenue, job.actual_revenue,
                    job.created_at.isoformat(),
                    job.completed_at.isoformat() if job.completed_at else None,
                ),
            )
            await db.commit()
        return job

    async def update_job_status(
        self,
        owner_id: str,
        job_id: str,
        status: JobStatus,
        completed_at: dt.datetime | None = None,
    ) -> Job:
        """Set a job's status; ``completed_at`` is written only when supplied.

        Any status may follow any other.
        """
        sets = ["status = ?"]
        vals: list = [status.value]
        if completed_at is not None:
            sets.append("completed_at = ?")
            vals.append(completed_at.isoformat())
        vals.extend([job_id, owner_id])
        async with self._connection("update_job_status") as db:
            cur = await db.execute(
                f"UPDATE jobs SET {', '.join(sets)} WHERE id = ? AND owner_id = ?", vals
            )
            await db.commit()
            updated = cur.rowcount
        if not updated:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        job = await self.get_job(owner_id, job_id)
        if job is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        return job

    # ── Line items ───────────────────────────────────────────────────

    async def list_labor_entries(self, owner_id: str, job_id: str | None = None) -> List[LaborEntry]:
        """An owner's labor entries, optionally for a single job, ordered by date."""
        rows = await self._list_entries("labor_entries", owner_id, job_id)
        return [LaborEntry(**r) for r in rows]

    async def list_material_entries(
        self, owner_id: str, job_id: str | None = None
    ) -> List[MaterialEntry]:
        """An owner's material entries, optionally for a single job, ordered by date."""
        rows = await self._list_entries("material_entries", owner_id, job_id)
        return [MaterialEntry(**r) for r in rows]

    async def create_labor_entry(
        self, owner_id: str, job_id: str, payload: LaborEntryCreate
    ) -> LaborEntry:
        entry = LaborEntry(
            id=str(uuid.uuid4()),
            job_id=job_id,
            owner_id=owner_id,
            tech_name=payload.tech_name,
            hours=payload.hours,
            hourly_rate=payload.hourly_rate,
            date=payload.date or utc_today(),
        )
        async with self._connection("create_labor_entry") as db:
            await self._require_job(db, owner_id, job_id)
            await db.execute(
                "INSERT INTO labor_entries (id, job_id, owner_id, tech_name, hours, hourly_rate, date) "
                "VALUES (?,?,?,?,?,?,?)",
                (entry.id, entry.job_id, entry.owner_id, entry.tech_name,
                 entry.hours, entry.hourly_rate, entry.date.isoformat()),
            )
            await db.commit()
        return entry

    async def create_material_entry(
        self, owner_id: str, job_id: str, payload: MaterialEntryCreate
    ) -> MaterialEntry:
        entry = MaterialEntry(
            id=str(uuid.uuid4()),
            job_id=job_id,
            owner_id=owner_id,
            description=payload.description,
            cost=payload.cost,
            date=payload.date or utc_today(),
        )
        async with self._connection("create_material_entry") as db:
            await self._require_job(db, owner_id, job_id)
            await db.execute(
                "INSERT INTO material_entries (id, job_id, owner_id, description, cost, date) "
                "VALUES (?,?,?,?,?,?)",
                (entry.id, entry.job_id, entry.owner_id, entry.description,
                 entry.cost, entry.date.isoformat()),
            )
            await db.commit()
        return entry

    async def delete_labor_entry(self, owner_id: str, entry_id: str) -> bool:
        """Delete an owner's labor entry. Returns False when nothing matched."""
        return await self._delete_entry("labor_entries", owner_id, entry_id)

    async def delete_material_entry(self, owner_id: str, entry_id: str) -> bool:
        """Delete an owner's material entry. Returns False when nothing matched."""
        return await self._delete_entry("material_entries", owner_id, entry_id)

    # ── Helpers ───────────────────────────────────────────────────────

    async def _list_entries(
        self, table: str, owner_id: str, job_id: str | None
    ) -> List[dict]:
        sql = f"SELECT * FROM {table} WHERE owner_id = ?"
        params: list = [owner_id]
        if job_id is not None:
            sql += " AND job_id = ?"
            params.append(job_id)
        sql += " ORDER BY date, rowid"
        async with self._connection(f"list_{table}") as db:
            async with db.execute(sql, params) as cur:
                rows = await cur.fetchall()
                desc = cur.description
        return [self._row_to_dict(r, desc) for r in rows]

    async def _delete_entry(self, table: str, owner_id: str, entry_id: str) -> bool:
        async with self._connection(f"delete_{table}") as db:
            cur = await db.execute(
                f"DELETE FROM {table} WHERE id = ? AND owner_id = ?", (entry_id, owner_id)
            )
            await db.commit()
            return cur.rowcount > 0

    @staticmethod
    async def _require_job(db: aiosqlite.Connection, owner_id: str, job_id: str) -> None:
        async with db.execute(
            "SELECT 1 FROM jobs WHERE id = ? AND owner_id = ?", (job_id, owner_id)
        ) as cur:
            row = await cur.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")

    @staticmethod
    def _row_to_dict(row, description) -> dict[str, Any]:
        cols = [d[0] for d in description]
        return dict(zip(cols, row))
