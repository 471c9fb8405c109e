"""
Catalog Migration Endpoints

Admin trigger for the one-shot catalog import. A busy flag allows one
run at a time per process; the state is one of idle, running, succeeded
or failed. Row-level failures are only counted here, the details go to
the log.
"""

from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from catalog_importer.ingestion.importer import ImportReport

logger = structlog.get_logger(__name__)
router = APIRouter()

MESSAGE_RUNNING = "Migration in progress..."
MESSAGE_SUCCEEDED = "Migration completed successfully."


class MigrationState(str, Enum):
    """Trigger state"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class MigrationStatusResponse(BaseModel):
    """Migration trigger status"""
    state: MigrationState
    message: str
    failed_rows: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class MigrationTrigger:
    """
    Runs the import on demand, never more than once concurrently.

    Example:
        trigger = MigrationTrigger(lambda: import_catalog_file(path, store))
        started = await trigger.run()
    """

    def __init__(self, runner: Callable[[], Awaitable[ImportReport]]):
        self._runner = runner
        self.state = MigrationState.IDLE
        self.message = ""
        self.report: Optional[ImportReport] = None
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

    @property
    def busy(self) -> bool:
        return self.state == MigrationState.RUNNING

    async def run(self) -> bool:
        """
        Start one import run and wait for it.

        Returns:
            bool: False if a run was already in progress
        """
        # No await between the check and the state change
        if self.busy:
            return False

        self.state = MigrationState.RUNNING
        self.message = MESSAGE_RUNNING
        self.report = None
        self.started_at = datetime.utcnow()
        self.completed_at = None

        try:
            report = await self._runner()
        except Exception as e:
            logger.error("Migration run raised", error=str(e), exc_info=True)
            self.state = MigrationState.FAILED
            self.message = f"Migration failed: {e}"
        else:
            self.report = report
            if report.success:
                self.state = MigrationState.SUCCEEDED
                self.message = MESSAGE_SUCCEEDED
            else:
                self.state = MigrationState.FAILED
                self.message = f"Migration failed: {report.error_message}"
        finally:
            self.completed_at = datetime.utcnow()

        return True

    def status(self) -> MigrationStatusResponse:
        return MigrationStatusResponse(
            state=self.state,
            message=self.message,
            failed_rows=self.report.failed_rows if self.report else 0,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )


def get_migration_trigger(request: Request) -> MigrationTrigger:
    return request.app.state.migration_trigger


@router.get("/migrate", response_model=MigrationStatusResponse)
async def migration_status(
    trigger: MigrationTrigger = Depends(get_migration_trigger),
) -> MigrationStatusResponse:
    """Current migration state."""
    return trigger.status()


@router.post("/migrate", response_model=MigrationStatusResponse)
async def start_migration(
    trigger: MigrationTrigger = Depends(get_migration_trigger),
) -> MigrationStatusResponse:
    """
    Run the catalog import and return its final state.

    Responds 409 while another run is in progress.
    """
    started = await trigger.run()
    if not started:
        raise HTTPException(
            status_code=409,
            detail=trigger.status().model_dump(mode="json"),
        )

    logger.info("Migration triggered", state=trigger.state.value)
    return trigger.status()
