# backend/modules/pos/tasks/toast_sync_tasks.py

"""
Scheduled Toast menu synchronization.

Every hour the coordinator syncs the menu of each tenant that has the Toast
integration enabled with menu sync turned on. Tenants are processed one
after another, each in its own database session, and one tenant's failure
never stops the run.
"""

import logging
from typing import Callable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from backend.core.config import Settings, get_settings
from backend.core.database import SessionLocal
from ..schemas.pos_schemas import TenantSyncOutcome
from ..services.credential_store import CredentialStore
from ..services.menu_sync_service import ToastMenuSyncService

logger = logging.getLogger(__name__)


class ToastMenuSyncCoordinator:
    """Runs the Toast menu sync for every eligible tenant"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        sync_service_factory: Optional[Callable[[Session], ToastMenuSyncService]] = None,
    ):
        self.session_factory = session_factory
        self.sync_service_factory = sync_service_factory or ToastMenuSyncService

    def eligible_tenants(self) -> List[str]:
        db = self.session_factory()
        try:
            return CredentialStore(db).list_menu_sync_tenants()
        finally:
            db.close()

    async def scheduled_menu_sync(self) -> List[TenantSyncOutcome]:
        tenant_ids = self.eligible_tenants()
        logger.info(f"Starting scheduled Toast menu sync for {len(tenant_ids)} tenants")

        outcomes = []
        for tenant_id in tenant_ids:
            db = self.session_factory()
            try:
                sync_service = self.sync_service_factory(db)
                result = await sync_service.sync_menu_from_toast(tenant_id)
                outcomes.append(TenantSyncOutcome(
                    tenant_id=tenant_id,
                    success=result.success,
                    result=result,
                    error=result.error,
                ))
                if result.success:
                    logger.info(f"Menu synced for tenant {tenant_id}")
                else:
                    logger.warning(f"Menu sync failed for tenant {tenant_id}: {result.error}")
            except Exception as e:
                # Keep going with the remaining tenants
                logger.error(
                    f"Unexpected error syncing menu for tenant {tenant_id}: {e}",
                    exc_info=True
                )
                outcomes.append(TenantSyncOutcome(
                    tenant_id=tenant_id, success=False, error=str(e)
                ))
            finally:
                db.close()

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(
            f"Scheduled Toast menu sync completed: {succeeded} succeeded, "
            f"{len(outcomes) - succeeded} failed"
        )
        return outcomes


class ToastMenuSyncScheduler:
    """Owns the hourly APScheduler job that runs the coordinator"""

    def __init__(
        self,
        coordinator: Optional[ToastMenuSyncCoordinator] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.coordinator = coordinator or ToastMenuSyncCoordinator()
        self.scheduler = AsyncIOScheduler(
            timezone=self.settings.TOAST_MENU_SYNC_TIMEZONE
        )
        self.sync_job_id = "toast_menu_sync"
        self.is_running = False

    def start(self):
        """Start the scheduler with the menu sync job"""
        if self.is_running:
            logger.warning("Toast menu sync scheduler already running")
            return

        self.add_sync_job()
        self.scheduler.start()
        self.is_running = True
        logger.info("Toast menu sync scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Toast menu sync scheduler stopped")
        except RuntimeError as e:
            logger.warning(f"Scheduler already stopped: {e}")

    def add_sync_job(self):
        minute = self.settings.TOAST_MENU_SYNC_CRON_MINUTE
        self.scheduler.add_job(
            func=self._sync_task,
            trigger=CronTrigger(
                minute=minute, timezone=self.settings.TOAST_MENU_SYNC_TIMEZONE
            ),
            id=self.sync_job_id,
            name="Toast Menu Sync (hourly)",
            replace_existing=True,
            max_instances=1,  # Prevent overlapping runs
            coalesce=True,
            misfire_grace_time=300
        )
        logger.info(
            f"Toast menu sync scheduled hourly at minute {minute} "
            f"({self.settings.TOAST_MENU_SYNC_TIMEZONE})"
        )

    async def _sync_task(self):
        try:
            await self.coordinator.scheduled_menu_sync()
        except Exception as e:
            # Don't re-raise so the job stays scheduled
            logger.critical(f"Scheduled Toast menu sync failed: {e}", exc_info=True)


toast_menu_sync_scheduler = ToastMenuSyncScheduler()


# FastAPI startup/shutdown events
async def start_toast_menu_sync_scheduler():
    """Start the Toast menu sync scheduler on application startup"""
    if not toast_menu_sync_scheduler.settings.TOAST_MENU_SYNC_ENABLED:
        logger.info("Toast menu sync scheduler disabled by configuration")
        return
    try:
        toast_menu_sync_scheduler.start()
    except Exception as e:
        # Don't fail startup if the scheduler fails
        logger.error(f"Failed to start Toast menu sync scheduler: {e}", exc_info=True)


async def stop_toast_menu_sync_scheduler():
    """Stop the Toast menu sync scheduler on application shutdown"""
    toast_menu_sync_scheduler.stop()
