"""Worker check-in/check-out with geofence verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.attendance import (
    as_utc,
    calculate_hours_worked,
    end_of_day,
    is_duplicate_check_in,
    should_auto_check_out,
)
from livestock_ops.calculators.geofence import validate_coordinates, verify_location_in_geofence
from livestock_ops.calculators.types import Point, VerificationStatus
from livestock_ops.config import get_settings
from livestock_ops.errors import AppError
from livestock_ops.models import User, WorkerCheckIn, WorkerProfile, utcnow
from livestock_ops.services.access import require_farm_access
from livestock_ops.services.audit_service import AuditService, NotificationService
from livestock_ops.services.worker_service import WorkerService, geofence_config_from_model

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one offline check-in."""

    local_id: str
    success: bool
    server_id: UUID | None = None
    error: str | None = None


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class AttendanceService:
    """Attendance records for farm workers.

    A check-in is ``verified`` only when it falls inside the geofence; a
    location within the tolerance band is stored as ``outside_geofence``
    and flagged to the farm owners. Farms without a geofence record
    ``manual`` check-ins.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)
        self.notifications = NotificationService(session)
        self.workers = WorkerService(session)

    async def _require_active_profile(self, user: User, farm_id: UUID) -> WorkerProfile:
        profile = await self.workers.get_worker_by_user(user.user_id, farm_id)
        if profile is None or profile.employment_status != "active":
            raise AppError("WORKER_PROFILE_NOT_FOUND", metadata={"farm_id": str(farm_id)})
        return profile

    async def _verification_status(self, farm_id: UUID, lat: float, lng: float) -> str:
        geofence = await self.workers.get_geofence(farm_id)
        if geofence is None:
            return VerificationStatus.MANUAL.value
        result = verify_location_in_geofence(Point(lat, lng), geofence_config_from_model(geofence))
        if result.verified:
            return VerificationStatus.VERIFIED.value
        return VerificationStatus.OUTSIDE_GEOFENCE.value

    async def _flag_check_in(self, user: User, farm_id: UUID, check_in_time: datetime) -> None:
        logger.info("Flagged check-in for %s on farm %s", user.user_id, farm_id)
        await self.notifications.notify_farm_owners(
            farm_id,
            type="flagged_check_in",
            title="Flagged Check-In",
            message=f"Worker {user.name} checked in outside the geofence",
            action_url=f"/attendance?date={check_in_time.date().isoformat()}",
        )

    async def get_open_check_in_for_worker(
        self,
        worker_id: UUID,
        farm_id: UUID,
    ) -> WorkerCheckIn | None:
        result = await self.session.execute(
            select(WorkerCheckIn)
            .where(
                WorkerCheckIn.worker_id == worker_id,
                WorkerCheckIn.farm_id == farm_id,
                WorkerCheckIn.check_out_time.is_(None),
            )
            .order_by(WorkerCheckIn.check_in_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def check_in(
        self,
        user: User,
        farm_id: UUID,
        lat: float,
        lng: float,
        accuracy: float | None = None,
        now: datetime | None = None,
    ) -> WorkerCheckIn:
        now = now or utcnow()
        if not validate_coordinates(lat, lng):
            raise AppError("VALIDATION_ERROR", "Invalid coordinates")

        profile = await self._require_active_profile(user, farm_id)

        open_check_in = await self.get_open_check_in_for_worker(profile.worker_id, farm_id)
        if open_check_in is not None:
            threshold = get_settings().duplicate_check_in_minutes
            metadata = {"check_in_id": str(open_check_in.check_in_id)}
            if is_duplicate_check_in(open_check_in.check_in_time, now, threshold):
                raise AppError("DUPLICATE_CHECK_IN", metadata=metadata)
            if not should_auto_check_out(open_check_in.check_in_time, now):
                raise AppError("DUPLICATE_CHECK_IN", "Already checked in", metadata)
            self._close_at_end_of_day(open_check_in)

        status = await self._verification_status(farm_id, lat, lng)
        check_in = WorkerCheckIn(
            worker_id=profile.worker_id,
            farm_id=farm_id,
            check_in_time=now,
            check_in_lat=lat,
            check_in_lng=lng,
            check_in_accuracy=accuracy,
            verification_status=status,
            sync_status="synced",
        )
        self.session.add(check_in)
        await self.session.flush()

        await self.audit.record_audit(
            user.user_id,
            "check_in",
            "worker_check_in",
            check_in.check_in_id,
            {"verification_status": status, "latitude": lat, "longitude": lng},
        )
        if status == VerificationStatus.OUTSIDE_GEOFENCE.value:
            await self._flag_check_in(user, farm_id, now)
        return check_in

    async def check_out(
        self,
        user: User,
        check_in_id: UUID,
        lat: float,
        lng: float,
        accuracy: float | None = None,
        now: datetime | None = None,
        farm_id: UUID | None = None,
    ) -> WorkerCheckIn:
        now = now or utcnow()
        check_in = await self.session.get(WorkerCheckIn, check_in_id)
        profile = (
            await self.session.get(WorkerProfile, check_in.worker_id) if check_in else None
        )
        if (
            check_in is None
            or profile is None
            or profile.user_id != user.user_id
            or (farm_id is not None and check_in.farm_id != farm_id)
        ):
            raise AppError("CHECK_IN_NOT_FOUND", metadata={"check_in_id": str(check_in_id)})
        if check_in.check_out_time is not None:
            raise AppError("VALIDATION_ERROR", "Already checked out")

        check_in.check_out_time = now
        check_in.check_out_lat = lat
        check_in.check_out_lng = lng
        check_in.check_out_accuracy = accuracy
        check_in.hours_worked = calculate_hours_worked(check_in.check_in_time, now)

        await self.audit.record_audit(
            user.user_id,
            "check_out",
            "worker_check_in",
            check_in_id,
            {"hours_worked": check_in.hours_worked, "check_out_time": now},
        )
        await self.session.flush()
        return check_in

    async def get_attendance_by_farm(
        self,
        user: User,
        farm_id: UUID,
        day: date | None = None,
    ) -> list[tuple[WorkerCheckIn, str]]:
        """Check-ins of one day with worker names, newest first."""
        await require_farm_access(self.session, user, farm_id)
        start, end = day_bounds(day or utcnow().date())
        return await self.get_attendance_range(farm_id, start, end)

    async def get_attendance_range(
        self,
        farm_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[tuple[WorkerCheckIn, str]]:
        result = await self.session.execute(
            select(WorkerCheckIn, User.name)
            .join(WorkerProfile, WorkerProfile.worker_id == WorkerCheckIn.worker_id)
            .join(User, User.user_id == WorkerProfile.user_id)
            .where(
                WorkerCheckIn.farm_id == farm_id,
                WorkerCheckIn.check_in_time >= start,
                WorkerCheckIn.check_in_time < end,
            )
            .order_by(WorkerCheckIn.check_in_time.desc())
        )
        return [(check_in, name) for check_in, name in result.all()]

    async def get_open_check_in(
        self,
        user: User,
        farm_id: UUID,
        now: datetime | None = None,
    ) -> dict[str, Any] | None:
        """The caller's open check-in with hours so far, or None."""
        profile = await self.workers.get_worker_by_user(user.user_id, farm_id)
        if profile is None:
            return None
        open_check_in = await self.get_open_check_in_for_worker(profile.worker_id, farm_id)
        if open_check_in is None:
            return None
        return {
            "check_in_id": open_check_in.check_in_id,
            "check_in_time": open_check_in.check_in_time,
            "check_out_time": None,
            "hours_worked": calculate_hours_worked(
                open_check_in.check_in_time, now or utcnow()
            ),
            "verification_status": open_check_in.verification_status,
        }

    async def _sync_one(self, user: User, item: dict[str, Any]) -> WorkerCheckIn:
        farm_id = UUID(str(item["farm_id"]))
        lat, lng = float(item["check_in_lat"]), float(item["check_in_lng"])
        if not validate_coordinates(lat, lng):
            raise AppError("VALIDATION_ERROR", "Invalid coordinates")

        profile = await self.workers.get_worker_by_user(user.user_id, farm_id)
        if profile is None:
            raise AppError("WORKER_PROFILE_NOT_FOUND", "Worker profile not found")

        check_in_time = as_utc(item["check_in_time"])
        status = await self._verification_status(farm_id, lat, lng)
        check_in = WorkerCheckIn(
            worker_id=profile.worker_id,
            farm_id=farm_id,
            check_in_time=check_in_time,
            check_in_lat=lat,
            check_in_lng=lng,
            check_in_accuracy=item.get("check_in_accuracy"),
            verification_status=status,
            sync_status="synced",
        )

        check_out_time = item.get("check_out_time")
        if (
            check_out_time is not None
            and item.get("check_out_lat") is not None
            and item.get("check_out_lng") is not None
        ):
            check_out_time = as_utc(check_out_time)
            check_in.check_out_time = check_out_time
            check_in.check_out_lat = float(item["check_out_lat"])
            check_in.check_out_lng = float(item["check_out_lng"])
            check_in.hours_worked = calculate_hours_worked(check_in_time, check_out_time)

        self.session.add(check_in)
        await self.session.flush()

        if status == VerificationStatus.OUTSIDE_GEOFENCE.value:
            await self._flag_check_in(user, farm_id, check_in_time)
        return check_in

    async def sync_offline_check_ins(
        self,
        user: User,
        items: list[dict[str, Any]],
    ) -> list[SyncResult]:
        """Store check-ins recorded offline; failures are reported per item.

        Each item is written in its own savepoint, so a failed item leaves
        the rest of the batch untouched.
        """
        results: list[SyncResult] = []
        for item in items:
            local_id = str(item.get("local_id", ""))
            try:
                async with self.session.begin_nested():
                    check_in = await self._sync_one(user, item)
            except AppError as exc:
                logger.warning("Offline check-in %s rejected: %s", local_id, exc.message)
                results.append(SyncResult(local_id=local_id, success=False, error=exc.message))
                continue
            except Exception:
                logger.exception("Offline check-in %s failed", local_id)
                results.append(
                    SyncResult(local_id=local_id, success=False, error="Failed to sync check-in")
                )
                continue
            results.append(
                SyncResult(local_id=local_id, success=True, server_id=check_in.check_in_id)
            )
        return results

    def _close_at_end_of_day(self, check_in: WorkerCheckIn) -> None:
        check_out_time = end_of_day(check_in.check_in_time)
        check_in.check_out_time = check_out_time
        check_in.hours_worked = calculate_hours_worked(check_in.check_in_time, check_out_time)

    async def auto_check_out_stale(
        self,
        farm_id: UUID,
        now: datetime | None = None,
    ) -> list[WorkerCheckIn]:
        """Close open check-ins left over from earlier days at 23:59:59."""
        now = now or utcnow()
        result = await self.session.execute(
            select(WorkerCheckIn).where(
                WorkerCheckIn.farm_id == farm_id,
                WorkerCheckIn.check_out_time.is_(None),
            )
        )
        closed = []
        for check_in in result.scalars().all():
            if not should_auto_check_out(check_in.check_in_time, now):
                continue
            self._close_at_end_of_day(check_in)
            closed.append(check_in)

        if closed:
            await self.session.flush()
            logger.info("Auto checked out %d stale check-ins on farm %s", len(closed), farm_id)
        return closed
