"""Tests for the job, labor and material REST resources."""
import pytest


async def _create(client, headers, **body):
    body.setdefault("name", "Kitchen remodel")
    resp = await client.post("/v1/jobs", json=body, headers=headers())
    assert resp.status_code == 201, resp.text
    return resp.json()["job"]


class TestAuth:
    @pytest.mark.asyncio
    async def test_list_requires_identity(self, client):
        resp = await client.get("/v1/jobs")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_unknown_token_rejected(self, client, headers):
        resp = await client.get("/v1/jobs", headers=headers("nope"))
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_api_key_header_accepted(self, client):
        resp = await client.get("/v1/jobs", headers={"X-API-Key": "tok-a"})
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_create_requires_identity(self, client, memory_store):
        resp = await client.post("/v1/jobs", json={"name": "x"})
        assert resp.status_code == 401
        assert memory_store._jobs == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"{not json", b"", b"[1, 2]", b'{"client_name": "Acme"}'])
    async def test_identity_checked_before_body(self, client, body):
        resp = await client.post(
            "/v1/jobs", content=body, headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_malformed_entry_body_without_identity(self, client, headers):
        job = await _create(client, headers)
        resp = await client.post(
            f"/v1/jobs/{job['id']}/labor",
            content=b"{oops",
            headers={"Content-Type": "application/json", "Authorization": "Bearer nope"},
        )
        assert resp.status_code == 401


class TestCreateJob:
    @pytest.mark.asyncio
    async def test_defaults(self, client, headers):
        job = await _create(client, headers)
        assert job["name"] == "Kitchen remodel"
        assert job["client_name"] == ""
        assert job["job_type"] == "residential"
        assert job["status"] == "active"
        assert job["estimated_revenue"] == 0
        assert job["actual_revenue"] == 0
        assert job["owner_id"] == "owner-a"
        assert "margin" not in job

    @pytest.mark.asyncio
    async def test_null_optional_fields_take_defaults(self, client, headers):
        job = await _create(client, headers, client_name=None, job_type=None, estimated_revenue=None)
        assert job["client_name"] == ""
        assert job["job_type"] == "residential"
        assert job["estimated_revenue"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": None}, {"client_name": "Acme"}])
    async def test_missing_name(self, client, headers, memory_store, body):
        resp = await client.post("/v1/jobs", json=body, headers=headers())
        assert resp.status_code == 400
        assert resp.json() == {"error": "name is required"}
        assert memory_store._jobs == {}

    @pytest.mark.asyncio
    async def test_invalid_json(self, client, headers):
        resp = await client.post(
            "/v1/jobs",
            content=b"{not json",
            headers={**headers(), "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON"}

    @pytest.mark.asyncio
    async def test_non_finite_revenue_rejected(self, client, headers, memory_store):
        resp = await client.post(
            "/v1/jobs",
            content=b'{"name": "Huge", "estimated_revenue": 1e309}',
            headers={**headers(), "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("estimated_revenue")
        assert memory_store._jobs == {}

        # The owner's reads keep working
        assert (await client.get("/v1/jobs", headers=headers())).status_code == 200
        assert (await client.get("/v1/stats", headers=headers())).status_code == 200

    @pytest.mark.asyncio
    async def test_bad_job_type(self, client, headers):
        resp = await client.post("/v1/jobs", json={"name": "x", "job_type": "industrial"}, headers=headers())
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("job_type")


class TestListJobs:
    @pytest.mark.asyncio
    async def test_empty(self, client, headers):
        resp = await client.get("/v1/jobs", headers=headers())
        assert resp.status_code == 200
        assert resp.json() == {"jobs": []}

    @pytest.mark.asyncio
    async def test_newest_first_with_margins(self, client, headers):
        first = await _create(client, headers, name="first", estimated_revenue=1000)
        second = await _create(client, headers, name="second")
        await client.post(
            f"/v1/jobs/{first['id']}/labor",
            json={"tech_name": "Sam", "hours": 4, "hourly_rate": 50},
            headers=headers(),
        )
        await client.post(
            f"/v1/jobs/{first['id']}/materials",
            json={"description": "Tile", "cost": 100},
            headers=headers(),
        )

        jobs = (await client.get("/v1/jobs", headers=headers())).json()["jobs"]
        assert [j["id"] for j in jobs] == [second["id"], first["id"]]
        assert jobs[1]["total_labor_cost"] == 200
        assert jobs[1]["total_material_cost"] == 100
        assert jobs[1]["total_cost"] == 300
        assert jobs[1]["margin"] == pytest.approx(70.0)
        assert jobs[1]["margin_danger"] is False
        assert jobs[0]["margin"] == 0
        assert jobs[0]["margin_danger"] is True

    @pytest.mark.asyncio
    async def test_owner_isolation(self, client, headers):
        await _create(client, headers, name="a's job")
        resp = await client.get("/v1/jobs", headers=headers("tok-b"))
        assert resp.json() == {"jobs": []}

    @pytest.mark.asyncio
    async def test_status_filter(self, client, headers):
        done = await _create(client, headers, name="done")
        await _create(client, headers, name="open")
        await client.patch(f"/v1/jobs/{done['id']}", json={"status": "completed"}, headers=headers())

        resp = await client.get("/v1/jobs", params={"status": "completed"}, headers=headers())
        assert [j["name"] for j in resp.json()["jobs"]] == ["done"]

        bad = await client.get("/v1/jobs", params={"status": "archived"}, headers=headers())
        assert bad.status_code == 400


class TestJobDetail:
    @pytest.mark.asyncio
    async def test_detail_includes_entries_and_tier(self, client, headers):
        job = await _create(client, headers, estimated_revenue=500)
        await client.post(
            f"/v1/jobs/{job['id']}/labor",
            json={"tech_name": "Ana", "hours": 2, "hourly_rate": 75, "date": "2024-04-02"},
            headers=headers(),
        )
        resp = await client.get(f"/v1/jobs/{job['id']}", headers=headers())
        assert resp.status_code == 200
        data = resp.json()
        assert data["job"]["total_cost"] == 150
        assert data["job"]["margin"] == pytest.approx(70.0)
        assert data["labor"][0]["tech_name"] == "Ana"
        assert data["labor"][0]["date"] == "2024-04-02"
        assert data["materials"] == []
        assert data["tier"]["tier"] == "healthy"

    @pytest.mark.asyncio
    async def test_foreign_job_is_not_found(self, client, headers):
        job = await _create(client, headers)
        resp = await client.get(f"/v1/jobs/{job['id']}", headers=headers("tok-b"))
        assert resp.status_code == 404
        assert "error" in resp.json()


class TestStatusUpdate:
    @pytest.mark.asyncio
    async def test_completed_stamps_completed_at(self, client, headers):
        job = await _create(client, headers)
        resp = await client.patch(f"/v1/jobs/{job['id']}", json={"status": "completed"}, headers=headers())
        assert resp.status_code == 200
        updated = resp.json()["job"]
        assert updated["status"] == "completed"
        assert updated["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_any_transition_allowed(self, client, headers):
        job = await _create(client, headers)
        resp = await client.patch(f"/v1/jobs/{job['id']}", json={"status": "invoiced"}, headers=headers())
        assert resp.json()["job"]["status"] == "invoiced"
        assert resp.json()["job"]["completed_at"] is None
        resp = await client.patch(f"/v1/jobs/{job['id']}", json={"status": "active"}, headers=headers())
        assert resp.json()["job"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_foreign_job(self, client, headers):
        job = await _create(client, headers)
        resp = await client.patch(f"/v1/jobs/{job['id']}", json={"status": "completed"}, headers=headers("tok-b"))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_extra_fields_rejected(self, client, headers):
        job = await _create(client, headers)
        resp = await client.patch(
            f"/v1/jobs/{job['id']}", json={"status": "completed", "owner_id": "x"}, headers=headers()
        )
        assert resp.status_code == 400


class TestEntries:
    @pytest.mark.asyncio
    async def test_labor_on_foreign_job_not_found(self, client, headers, memory_store):
        job = await _create(client, headers)
        resp = await client.post(
            f"/v1/jobs/{job['id']}/labor",
            json={"tech_name": "Eve", "hours": 1, "hourly_rate": 10},
            headers=headers("tok-b"),
        )
        assert resp.status_code == 404
        assert memory_store._labor == {}

    @pytest.mark.asyncio
    async def test_labor_missing_field(self, client, headers):
        job = await _create(client, headers)
        resp = await client.post(
            f"/v1/jobs/{job['id']}/labor", json={"tech_name": "Sam", "hours": 1}, headers=headers()
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "hourly_rate is required"}

    @pytest.mark.asyncio
    async def test_non_finite_entry_amounts_rejected(self, client, headers, memory_store):
        job = await _create(client, headers)
        json_headers = {**headers(), "Content-Type": "application/json"}
        labor = await client.post(
            f"/v1/jobs/{job['id']}/labor",
            content=b'{"tech_name": "Sam", "hours": 1e309, "hourly_rate": 50}',
            headers=json_headers,
        )
        material = await client.post(
            f"/v1/jobs/{job['id']}/materials",
            content=b'{"description": "Tile", "cost": -1e309}',
            headers=json_headers,
        )
        assert labor.status_code == 400
        assert material.status_code == 400
        assert memory_store._labor == {}
        assert memory_store._materials == {}

    @pytest.mark.asyncio
    async def test_delete_entries(self, client, headers):
        job = await _create(client, headers, estimated_revenue=100)
        labor = (await client.post(
            f"/v1/jobs/{job['id']}/labor",
            json={"tech_name": "Sam", "hours": 1, "hourly_rate": 50},
            headers=headers(),
        )).json()["entry"]
        material = (await client.post(
            f"/v1/jobs/{job['id']}/materials",
            json={"description": "Grout", "cost": 25},
            headers=headers(),
        )).json()["entry"]

        assert (await client.delete(f"/v1/labor/{labor['id']}", headers=headers("tok-b"))).status_code == 404
        resp = await client.delete(f"/v1/labor/{labor['id']}", headers=headers())
        assert resp.status_code == 204
        assert resp.content == b""
        assert (await client.delete(f"/v1/materials/{material['id']}", headers=headers())).status_code == 204
        assert (await client.delete(f"/v1/materials/{material['id']}", headers=headers())).status_code == 404

        detail = (await client.get(f"/v1/jobs/{job['id']}", headers=headers())).json()
        assert detail["job"]["total_cost"] == 0


class TestStoreFailure:
    @pytest.mark.asyncio
    async def test_list_failure_is_server_error(self, failing_client, headers):
        resp = await failing_client.get("/v1/jobs", headers=headers())
        assert resp.status_code == 500
        assert "error" in resp.json()

    @pytest.mark.asyncio
    async def test_create_failure_is_server_error(self, failing_client, headers):
        resp = await failing_client.post("/v1/jobs", json={"name": "x"}, headers=headers())
        assert resp.status_code == 500
