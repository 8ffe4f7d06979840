"""
UpdateChecker - periodic check for a newer gateway build.

Polls the upstream "latest version" descriptor through the UpstreamClient,
either once (manual trigger) or on an APScheduler interval job.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..client import UpstreamClient
from ..core.versioning import is_newer, parse_version
from ..models.version import UpdateCheckResult, VersionDescriptor

logger = logging.getLogger("gateway.update_checker")

UpdateHook = Callable[[VersionDescriptor], Awaitable[None]]


class UpdateChecker:
    """
    Detects newer gateway builds.

    At most one check runs at a time: a trigger that arrives while a check is
    in flight is skipped, not queued.
    """

    JOB_ID = "gateway-update-check"

    def __init__(
        self,
        client: UpstreamClient,
        current_version: str,
        auto_update: bool = False,
        interval_minutes: int = 60,
        update_hook: Optional[UpdateHook] = None,
    ):
        self.client = client
        self.current_version = current_version
        self.auto_update = auto_update
        self.interval_minutes = interval_minutes
        self.update_hook = update_hook
        self.scheduler = AsyncIOScheduler()
        self._lock = asyncio.Lock()
        self._started = False
        self._last_result: Optional[UpdateCheckResult] = None

    @property
    def is_checking(self) -> bool:
        return self._lock.locked()

    @property
    def is_scheduled(self) -> bool:
        return self._started and self.scheduler.get_job(self.JOB_ID) is not None

    @property
    def last_result(self) -> Optional[UpdateCheckResult]:
        return self._last_result

    async def check_for_updates(self) -> UpdateCheckResult:
        """
        Run one update check.

        Returns:
            UpdateCheckResult; failures are reported as has_update=False with `error` set.
        """
        if self._lock.locked():
            logger.info("Update check already in progress, skipping overlapping trigger")
            return UpdateCheckResult(
                has_update=self._last_result.has_update if self._last_result else False,
                current_version=self.current_version,
                latest_version=self._last_result.latest_version if self._last_result else None,
                skipped=True,
            )

        async with self._lock:
            result = await self._run_check()
            self._last_result = result
            return result

    async def _run_check(self) -> UpdateCheckResult:
        response = await self.client.check_for_updates(self.current_version)
        if not response.success:
            logger.warning(f"Update check failed: {response.error}")
            return UpdateCheckResult(current_version=self.current_version, error=response.error)

        try:
            descriptor = self._build_descriptor(response.data)
            has_update = is_newer(descriptor.latest_version, self.current_version)
        except ValueError as e:
            logger.warning(f"Malformed version descriptor: {e}")
            return UpdateCheckResult(current_version=self.current_version, error=str(e))

        result = UpdateCheckResult(
            has_update=has_update,
            current_version=self.current_version,
            latest_version=descriptor.latest_version,
            descriptor=descriptor,
        )

        if not has_update:
            logger.info(f"Gateway is up to date (version {self.current_version})")
            return result

        logger.info(
            f"Gateway update available: {self.current_version} -> {descriptor.latest_version}",
            extra={"download_url": descriptor.download_url},
        )
        if self.auto_update:
            await self._apply_update(descriptor)
        return result

    def _build_descriptor(self, data: Any) -> VersionDescriptor:
        if not isinstance(data, dict):
            raise ValueError("version descriptor is not an object")

        latest = data.get("latestVersion") or data.get("version")
        if not latest:
            raise ValueError("version descriptor has no latestVersion")
        parse_version(latest)

        return VersionDescriptor(
            current_version=self.current_version,
            latest_version=latest,
            download_url=data.get("downloadUrl"),
            release_notes=data.get("releaseNotes"),
        )

    async def _apply_update(self, descriptor: VersionDescriptor) -> None:
        if self.update_hook is None:
            logger.warning(
                f"Auto-update enabled but no update hook configured; "
                f"version {descriptor.latest_version} not applied"
            )
            return
        try:
            await self.update_hook(descriptor)
            logger.info(f"Update hook completed for version {descriptor.latest_version}")
        except Exception as e:
            logger.error(f"Update hook failed for version {descriptor.latest_version}: {e}")

    async def _scheduled_check(self) -> None:
        """Scheduler job body; nothing escapes so the next tick still fires."""
        try:
            await self.check_for_updates()
        except Exception as e:
            logger.error(f"Scheduled update check failed: {e}")

    async def start_update_checker(self) -> None:
        """Start the repeating check. No-op when already running."""
        if self._started:
            return
        self.scheduler.start()
        self._started = True
        self.scheduler.add_job(
            self._scheduled_check,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        logger.info(f"Update checker started (interval: {self.interval_minutes}min)")

    def stop_update_checker(self) -> None:
        """
        Stop the repeating check. Idempotent; safe before start.

        AsyncIOScheduler finishes its shutdown on a later loop tick; `_started` flips immediately.
        """
        if not self._started:
            return
        self._started = False
        if self.scheduler.get_job(self.JOB_ID) is not None:
            self.scheduler.remove_job(self.JOB_ID)
        self.scheduler.shutdown(wait=False)
        logger.info("Update checker stopped")

    def status(self) -> Dict[str, Any]:
        return {
            "scheduled": self.is_scheduled,
            "checking": self.is_checking,
            "intervalMinutes": self.interval_minutes,
            "autoUpdate": self.auto_update,
        }
