"""
Integration Tests - Admin API
"""
import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from catalog_importer.config.settings import DatabaseSettings
from catalog_importer.ingestion.importer import ImportReport, ImportStatus
from catalog_importer.main import create_app
from catalog_importer.serving.api.routes.migration import (
    MigrationState,
    MigrationTrigger,
    get_migration_trigger,
)


@pytest.fixture
def client(test_settings):
    with TestClient(create_app(test_settings)) as test_client:
        yield test_client


def blocking_trigger():
    """Trigger whose run waits until the returned event is set"""
    release = asyncio.Event()

    async def runner():
        await release.wait()
        return ImportReport(success=True, status=ImportStatus.COMPLETED)

    return MigrationTrigger(runner), release


class TestMigrationEndpoints:
    """Tests for the migration trigger endpoints"""

    def test_initial_state_is_idle(self, client):
        """Nothing has run yet"""
        response = client.get("/api/v1/admin/migrate")

        assert response.status_code == 200
        assert response.json()["state"] == "idle"

    def test_run_succeeds(self, client):
        """A run with row failures still succeeds and only exposes the count"""
        response = client.post("/api/v1/admin/migrate")

        assert response.status_code == 200
        body = response.json()
        assert body["state"] == "succeeded"
        assert body["message"] == "Migration completed successfully."
        assert body["failed_rows"] == 1
        assert "errors" not in body

        status = client.get("/api/v1/admin/migrate").json()
        assert status["state"] == "succeeded"

    def test_run_can_be_repeated(self, client):
        """A finished run does not block the next one"""
        first = client.post("/api/v1/admin/migrate").json()
        second = client.post("/api/v1/admin/migrate").json()

        assert first["state"] == second["state"] == "succeeded"

    def test_missing_document_fails(self, test_settings, tmp_path):
        """A missing source document is a failed migration"""
        settings = test_settings.model_copy(
            update={
                "importer": test_settings.importer.model_copy(
                    update={"source_path": str(tmp_path / "missing.json")}
                )
            }
        )
        with TestClient(create_app(settings)) as client:
            body = client.post("/api/v1/admin/migrate").json()

        assert body["state"] == "failed"
        assert body["message"].startswith("Migration failed:")

    def test_unreachable_database_fails(self, test_settings, tmp_path):
        """An unreachable database is a failed migration, not a partial success"""
        url = f"sqlite+aiosqlite:///{tmp_path / 'missing_dir' / 'catalog.db'}"
        settings = test_settings.model_copy(update={"database": DatabaseSettings(url=url)})

        with TestClient(create_app(settings)) as client:
            body = client.post("/api/v1/admin/migrate").json()

        assert body["state"] == "failed"
        assert "unable to open database file" in body["message"]
        assert body["failed_rows"] == 0

    async def test_post_while_running_conflicts(self, test_settings):
        """A second POST during a run gets 409 with the running state"""
        trigger, release = blocking_trigger()
        app = create_app(test_settings)
        app.dependency_overrides[get_migration_trigger] = lambda: trigger

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
            first = asyncio.create_task(http.post("/api/v1/admin/migrate"))
            for _ in range(500):
                if trigger.busy:
                    break
                await asyncio.sleep(0.01)
            assert trigger.busy

            conflict = await http.post("/api/v1/admin/migrate")
            status = await http.get("/api/v1/admin/migrate")

            release.set()
            finished = await first

        assert conflict.status_code == 409
        assert conflict.json()["detail"]["state"] == "running"
        assert conflict.json()["detail"]["message"] == "Migration in progress..."
        assert status.json()["state"] == "running"
        assert finished.status_code == 200
        assert finished.json()["state"] == "succeeded"


class TestHealthEndpoints:
    """Tests for health endpoints"""

    def test_health(self, client):
        """Health reports environment and database status"""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["environment"] == "testing"
        assert body["checks"]["database"]["status"] == "healthy"

    def test_ready(self, client):
        """Readiness succeeds with a reachable database"""
        assert client.get("/api/v1/health/ready").json() == {"status": "ready"}

    def test_live(self, client):
        """Liveness always answers"""
        assert client.get("/api/v1/health/live").json() == {"status": "alive"}

    def test_request_id_header(self, client):
        """Request id is echoed and timing is reported"""
        response = client.get("/api/v1/health/live", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"
        assert "X-Response-Time" in response.headers


class TestMigrationTrigger:
    """Tests for the busy flag"""

    async def test_concurrent_run_rejected(self):
        """A run started while another is in progress is refused"""
        trigger, release = blocking_trigger()
        first = asyncio.create_task(trigger.run())
        await asyncio.sleep(0)

        assert trigger.busy
        assert trigger.status().message == "Migration in progress..."
        assert await trigger.run() is False

        release.set()
        assert await first is True
        assert trigger.state == MigrationState.SUCCEEDED
        assert not trigger.busy

    async def test_fatal_report_marks_failure(self):
        """A fatal report turns into the failed state with its message"""
        async def runner():
            return ImportReport.failed("document is not valid JSON")

        trigger = MigrationTrigger(runner)
        await trigger.run()

        assert trigger.state == MigrationState.FAILED
        assert trigger.message == "Migration failed: document is not valid JSON"

    async def test_raising_runner_marks_failure(self):
        """An exception from the runner is reported, not raised"""
        async def runner():
            raise RuntimeError("boom")

        trigger = MigrationTrigger(runner)
        assert await trigger.run() is True

        assert trigger.state == MigrationState.FAILED
        assert trigger.message == "Migration failed: boom"
        assert trigger.completed_at is not None
