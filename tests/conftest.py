"""Shared test fixtures for the contractor_margin test suite."""
from __future__ import annotations

import datetime as dt
import itertools
import uuid

import pytest

from contractor_margin.api.store.sqlite import RecordNotFoundError, StoreError
from contractor_margin.margin.models import (
    Job,
    JobWithMargin,
    LaborEntry,
    MaterialEntry,
    utc_today,
)

TOKENS = "tok-a:owner-a,tok-b:owner-b"
OWNER_A = "owner-a"
OWNER_B = "owner-b"


def auth_headers(token: str = "tok-a") -> dict:
    return {"Authorization": f"Bearer {token}"}


# ── Record builders ──────────────────────────────────────────────────


def make_job(**overrides) -> Job:
    fields = {
        "id": uuid.uuid4().hex,
        "owner_id": OWNER_A,
        "name": "Kitchen remodel",
        "created_at": dt.datetime(2024, 3, 10, 12, 0, tzinfo=dt.timezone.utc),
    }
    fields.update(overrides)
    return Job(**fields)


def make_margin_job(margin: float, **overrides) -> JobWithMargin:
    """A derived record with a fixed margin, for aggregation tests."""
    fields = {
        "id": uuid.uuid4().hex,
        "owner_id": OWNER_A,
        "name": "Job",
        "estimated_revenue": 1000.0,
        "created_at": dt.datetime(2024, 3, 10, 12, 0, tzinfo=dt.timezone.utc),
        "total_labor_cost": 0.0,
        "total_material_cost": 0.0,
        "total_cost": 0.0,
        "margin": margin,
        "margin_danger": margin < 20,
        "estimate_accuracy": 0.0,
    }
    fields.update(overrides)
    return JobWithMargin(**fields)


@pytest.fixture
def job_factory():
    return make_job


@pytest.fixture
def margin_job_factory():
    return make_margin_job


@pytest.fixture
def headers():
    """Auth headers for owner-a; ``headers("tok-b")`` for owner-b."""
    return auth_headers


# ── API fixtures ─────────────────────────────────────────────────────


class _InMemoryRecordStore:
    """Owner-scoped in-memory record store for tests (avoids aiosqlite threads)."""

    def __init__(self):
        self._jobs = {}
        self._labor = {}
        self._materials = {}
        self._seq = itertools.count()
        self._order = {}

    async def initialize(self):
        pass

    async def close(self):
        self._jobs.clear()
        self._labor.clear()
        self._materials.clear()

    def _stamp(self, record_id):
        self._order[record_id] = next(self._seq)

    async def list_jobs(self, owner_id):
        jobs = [j for j in self._jobs.values() if j.owner_id == owner_id]
        return sorted(jobs, key=lambda j: (j.created_at, self._order[j.id]), reverse=True)

    async def get_job(self, owner_id, job_id):
        job = self._jobs.get(job_id)
        if job is None or job.owner_id != owner_id:
            return None
        return job

    async def create_job(self, owner_id, payload):
        job = Job(id=str(uuid.uuid4()), owner_id=owner_id, **payload.model_dump())
        self._jobs[job.id] = job
        self._stamp(job.id)
        return job

    async def update_job_status(self, owner_id, job_id, status, completed_at=None):
        job = await self.get_job(owner_id, job_id)
        if job is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        changes = {"status": status}
        if completed_at is not None:
            changes["completed_at"] = completed_at
        job = job.model_copy(update=changes)
        self._jobs[job_id] = job
        return job

    def _entries(self, table, owner_id, job_id):
        rows = [e for e in table.values() if e.owner_id == owner_id]
        if job_id is not None:
            rows = [e for e in rows if e.job_id == job_id]
        return sorted(rows, key=lambda e: (e.date, self._order[e.id]))

    async def list_labor_entries(self, owner_id, job_id=None):
        return self._entries(self._labor, owner_id, job_id)

    async def list_material_entries(self, owner_id, job_id=None):
        return self._entries(self._materials, owner_id, job_id)

    async def create_labor_entry(self, owner_id, job_id, payload):
        if await self.get_job(owner_id, job_id) is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        entry = LaborEntry(
            id=str(uuid.uuid4()), job_id=job_id, owner_id=owner_id,
            tech_name=payload.tech_name, hours=payload.hours,
            hourly_rate=payload.hourly_rate, date=payload.date or utc_today(),
        )
        self._labor[entry.id] = entry
        self._stamp(entry.id)
        return entry

    async def create_material_entry(self, owner_id, job_id, payload):
        if await self.get_job(owner_id, job_id) is None:
            raise RecordNotFoundError(f"Job '{job_id}' not found")
        entry = MaterialEntry(
            id=str(uuid.uuid4()), job_id=job_id, owner_id=owner_id,
            description=payload.description, cost=payload.cost,
            date=payload.date or utc_today(),
        )
        self._materials[entry.id] = entry
        self._stamp(entry.id)
        return entry

    async def delete_labor_entry(self, owner_id, entry_id):
        entry = self._labor.get(entry_id)
        if entry is None or entry.owner_id != owner_id:
            return False
        del self._labor[entry_id]
        return True

    async def delete_material_entry(self, owner_id, entry_id):
        entry = self._materials.get(entry_id)
        if entry is None or entry.owner_id != owner_id:
            return False
        del self._materials[entry_id]
        return True

    # Test helper: seed a job with a fixed creation time
    def seed_job(self, job: Job) -> Job:
        self._jobs[job.id] = job
        self._stamp(job.id)
        return job


class _FailingRecordStore(_InMemoryRecordStore):
    """Every read and write raises StoreError."""

    async def _fail(self, *args, **kwargs):
        raise StoreError("database is locked")

    list_jobs = _fail
    get_job = _fail
    create_job = _fail
    update_job_status = _fail
    list_labor_entries = _fail
    list_material_entries = _fail
    create_labor_entry = _fail
    create_material_entry = _fail
    delete_labor_entry = _fail
    delete_material_entry = _fail


def _build_app(store, **settings_overrides):
    import contractor_margin.api.deps.providers as _prov
    from contractor_margin.api.config import ApiSettings
    from contractor_margin.api.main import create_app

    fields = {"db_path": ":memory:", "api_tokens": TOKENS, "auth_enabled": True}
    fields.update(settings_overrides)
    settings = ApiSettings(**fields)

    # Inject into the provider module
    _prov._record_store = store
    return create_app(settings)


def _reset_providers():
    import contractor_margin.api.deps.providers as _prov

    _prov._settings = None
    _prov._record_store = None
    _prov._rpc_dispatcher = None


@pytest.fixture
def memory_store():
    return _InMemoryRecordStore()


@pytest.fixture
async def app(memory_store):
    """Create a test FastAPI app over a fresh in-memory record store."""
    application = _build_app(memory_store)
    yield application
    await memory_store.close()
    _reset_providers()


@pytest.fixture
async def failing_app():
    """App whose record store fails every operation."""
    application = _build_app(_FailingRecordStore())
    yield application
    _reset_providers()


async def _client_for(application):
    from httpx import ASGITransport, AsyncClient

    return AsyncClient(
        transport=ASGITransport(app=application),
        base_url="http://testserver",
    )


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    async with await _client_for(app) as ac:
        yield ac


@pytest.fixture
async def failing_client(failing_app):
    async with await _client_for(failing_app) as ac:
        yield ac
