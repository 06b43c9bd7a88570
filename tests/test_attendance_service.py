"""Tests for check-in, check-out, offline sync and geofence configuration."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from livestock_ops.errors import AppError
from livestock_ops.models import FarmMembership, Notification, WorkerCheckIn
from livestock_ops.services.attendance_service import AttendanceService
from livestock_ops.services.farm_service import FarmService
from livestock_ops.services.worker_service import WorkerService

MORNING = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)


class TestCheckIn:
    """Test geofence-verified check-ins."""

    async def test_inside_geofence_is_verified(
        self, session, worker_user, worker_profile, geofence
    ):
        check_in = await AttendanceService(session).check_in(
            worker_user, worker_profile.farm_id, 0.0005, 0.0, accuracy=5, now=MORNING
        )
        assert check_in.verification_status == "verified"
        assert check_in.worker_id == worker_profile.worker_id
        assert check_in.check_out_time is None

    async def test_tolerance_band_is_flagged(
        self, session, owner_user, worker_user, worker_profile, geofence
    ):
        check_in = await AttendanceService(session).check_in(
            worker_user, worker_profile.farm_id, 0.0012, 0.0, now=MORNING
        )
        assert check_in.verification_status == "outside_geofence"

        notes = (
            await session.execute(
                select(Notification).where(Notification.user_id == owner_user.user_id)
            )
        ).scalars().all()
        assert [n.type for n in notes] == ["flagged_check_in"]
        assert notes[0].action_url == "/attendance?date=2024-03-04"

    async def test_without_geofence_is_manual(self, session, worker_user, worker_profile):
        check_in = await AttendanceService(session).check_in(
            worker_user, worker_profile.farm_id, 10.0, 10.0, now=MORNING
        )
        assert check_in.verification_status == "manual"

    async def test_duplicate_within_window(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        await service.check_in(worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING)

        with pytest.raises(AppError) as exc_info:
            await service.check_in(
                worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING + timedelta(minutes=3)
            )
        assert exc_info.value.name == "DUPLICATE_CHECK_IN"
        assert exc_info.value.http_status == 409

    async def test_one_open_check_in_per_worker(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        await service.check_in(worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING)

        with pytest.raises(AppError, match="Already checked in") as exc_info:
            await service.check_in(
                worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING + timedelta(minutes=10)
            )
        assert exc_info.value.name == "DUPLICATE_CHECK_IN"

        open_rows = await session.execute(
            select(WorkerCheckIn).where(WorkerCheckIn.check_out_time.is_(None))
        )
        assert len(open_rows.scalars().all()) == 1

    async def test_next_day_closes_stale_check_in(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        stale = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING
        )

        fresh = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING + timedelta(days=1)
        )

        assert stale.check_out_time == datetime(2024, 3, 4, 23, 59, 59, tzinfo=timezone.utc)
        assert stale.hours_worked == Decimal("16.00")
        assert fresh.check_out_time is None

    async def test_requires_worker_profile(self, session, owner_user, farm):
        with pytest.raises(AppError) as exc_info:
            await AttendanceService(session).check_in(owner_user, farm.farm_id, 1.0, 1.0)
        assert exc_info.value.name == "WORKER_PROFILE_NOT_FOUND"

    async def test_invalid_coordinates(self, session, worker_user, worker_profile):
        with pytest.raises(AppError) as exc_info:
            await AttendanceService(session).check_in(
                worker_user, worker_profile.farm_id, 91.0, 0.0
            )
        assert exc_info.value.name == "VALIDATION_ERROR"


class TestCheckOut:
    """Test closing check-ins."""

    async def test_hours_worked(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        check_in = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING
        )
        closed = await service.check_out(
            worker_user, check_in.check_in_id, 1.0, 1.0, now=MORNING + timedelta(hours=7.5)
        )
        assert closed.hours_worked == Decimal("7.50")

        with pytest.raises(AppError, match="Already checked out"):
            await service.check_out(worker_user, check_in.check_in_id, 1.0, 1.0)

    async def test_only_own_check_in(self, session, worker_user, owner_user, worker_profile):
        service = AttendanceService(session)
        check_in = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING
        )
        with pytest.raises(AppError) as exc_info:
            await service.check_out(owner_user, check_in.check_in_id, 1.0, 1.0)
        assert exc_info.value.name == "CHECK_IN_NOT_FOUND"

    async def test_check_in_from_other_farm(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        check_in = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING
        )
        with pytest.raises(AppError) as exc_info:
            await service.check_out(
                worker_user, check_in.check_in_id, 1.0, 1.0, farm_id=uuid4()
            )
        assert exc_info.value.name == "CHECK_IN_NOT_FOUND"
        assert check_in.check_out_time is None

    async def test_open_check_in_reports_hours_so_far(self, session, worker_user, worker_profile):
        service = AttendanceService(session)
        await service.check_in(worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING)

        open_check_in = await service.get_open_check_in(
            worker_user, worker_profile.farm_id, now=MORNING + timedelta(hours=2)
        )
        assert open_check_in is not None
        assert open_check_in["hours_worked"] == Decimal("2.00")

    async def test_auto_check_out_closes_previous_days(
        self, session, worker_user, worker_profile
    ):
        service = AttendanceService(session)
        check_in = await service.check_in(
            worker_user, worker_profile.farm_id, 1.0, 1.0, now=MORNING
        )

        closed = await service.auto_check_out_stale(
            worker_profile.farm_id, now=MORNING + timedelta(hours=6)
        )
        assert closed == []

        closed = await service.auto_check_out_stale(
            worker_profile.farm_id, now=MORNING + timedelta(days=1)
        )
        assert [c.check_in_id for c in closed] == [check_in.check_in_id]
        assert check_in.check_out_time == datetime(2024, 3, 4, 23, 59, 59, tzinfo=timezone.utc)
        assert check_in.hours_worked == Decimal("16.00")


class TestOfflineSync:
    """Test per-item results of offline sync."""

    async def test_partial_failure(self, session, worker_user, worker_profile, farm):
        items = [
            {
                "local_id": "a",
                "farm_id": farm.farm_id,
                "check_in_time": MORNING,
                "check_in_lat": 1.0,
                "check_in_lng": 1.0,
                "check_out_time": MORNING + timedelta(hours=4),
                "check_out_lat": 1.0,
                "check_out_lng": 1.0,
            },
            {
                "local_id": "b",
                "farm_id": farm.farm_id,
                "check_in_time": MORNING,
                "check_in_lat": 200.0,
                "check_in_lng": 1.0,
            },
        ]
        results = await AttendanceService(session).sync_offline_check_ins(worker_user, items)

        assert [r.success for r in results] == [True, False]
        assert results[0].server_id is not None
        assert results[1].error == "Invalid coordinates"

        records = await AttendanceService(session).get_attendance_by_farm(
            worker_user, farm.farm_id, MORNING.date()
        )
        assert len(records) == 1
        check_in, name = records[0]
        assert name == "Wanjiru Worker"
        assert check_in.hours_worked == Decimal("4.00")

    async def test_bad_item_does_not_stop_batch(self, session, worker_user, worker_profile, farm):
        items = [
            {
                "local_id": "naive",
                "farm_id": farm.farm_id,
                "check_in_time": datetime(2024, 3, 4, 8, 0),
                "check_in_lat": 1.0,
                "check_in_lng": 1.0,
                "check_out_time": MORNING + timedelta(hours=4),
                "check_out_lat": 1.0,
                "check_out_lng": 1.0,
            },
            {"local_id": "broken", "check_in_time": MORNING},
            {
                "local_id": "later",
                "farm_id": farm.farm_id,
                "check_in_time": MORNING + timedelta(days=1),
                "check_in_lat": 1.0,
                "check_in_lng": 1.0,
            },
        ]
        results = await AttendanceService(session).sync_offline_check_ins(worker_user, items)

        assert [(r.local_id, r.success) for r in results] == [
            ("naive", True),
            ("broken", False),
            ("later", True),
        ]
        assert results[1].error == "Failed to sync check-in"

        synced = await session.get(WorkerCheckIn, results[0].server_id)
        assert synced.hours_worked == Decimal("4.00")


class TestWorkerProfiles:
    """Test worker profile management."""

    async def test_create_adds_worker_membership(self, session, owner_user, outsider_user, farm):
        profile = await WorkerService(session).create_worker_profile(
            owner_user,
            {
                "farm_id": farm.farm_id,
                "user_id": outsider_user.user_id,
                "phone": "+254711111111",
                "wage_rate_amount": "450",
                "wage_rate_type": "daily",
                "permissions": ["feed:log"],
            },
        )
        assert profile.wage_rate_amount == Decimal("450.00")

        membership = (
            await session.execute(
                select(FarmMembership).where(FarmMembership.user_id == outsider_user.user_id)
            )
        ).scalar_one()
        assert membership.role == "worker"

    async def test_create_rejects_bad_permission(self, session, owner_user, outsider_user, farm):
        with pytest.raises(AppError, match="Invalid permissions: launch:rocket"):
            await WorkerService(session).create_worker_profile(
                owner_user,
                {
                    "farm_id": farm.farm_id,
                    "user_id": outsider_user.user_id,
                    "phone": "+254711111111",
                    "wage_rate_amount": 10,
                    "wage_rate_type": "hourly",
                    "permissions": ["launch:rocket"],
                },
            )

    async def test_worker_cannot_manage_workers(self, session, worker_user, worker_profile):
        with pytest.raises(AppError) as exc_info:
            await WorkerService(session).update_worker_profile(
                worker_user, worker_profile.worker_id, {"wage_rate_amount": 99}
            )
        assert exc_info.value.name == "ACCESS_DENIED"

    async def test_remove_terminates_and_drops_membership(
        self, session, owner_user, worker_user, worker_profile
    ):
        profile = await WorkerService(session).remove_worker(owner_user, worker_profile.worker_id)
        assert profile.employment_status == "terminated"
        assert profile.employment_end_date is not None

        with pytest.raises(AppError) as exc_info:
            await AttendanceService(session).check_in(
                worker_user, worker_profile.farm_id, 1.0, 1.0
            )
        assert exc_info.value.name == "WORKER_PROFILE_NOT_FOUND"

    async def test_save_polygon_geofence(self, session, owner_user, farm):
        service = WorkerService(session)
        geofence = await service.save_geofence(
            owner_user,
            farm.farm_id,
            {
                "geofence_type": "polygon",
                "vertices": [
                    {"lat": 0.0, "lng": 0.0},
                    {"lat": 0.0, "lng": 0.01},
                    {"lat": 0.01, "lng": 0.01},
                ],
                "tolerance_meters": 25,
            },
        )
        assert geofence.center_lat is None
        assert len(geofence.vertices) == 3

        with pytest.raises(AppError, match="Radius must be greater than 0"):
            await service.save_geofence(
                owner_user,
                farm.farm_id,
                {"geofence_type": "circle", "center_lat": 0, "center_lng": 0},
            )


class TestFarmMembers:
    """Test farm membership rules."""

    async def test_cannot_remove_last_owner(self, session, owner_user, farm):
        with pytest.raises(AppError, match="last owner"):
            await FarmService(session).remove_member(owner_user, farm.farm_id, owner_user.user_id)

    async def test_outsider_has_no_access(self, session, outsider_user, farm):
        with pytest.raises(AppError) as exc_info:
            await FarmService(session).get_farm(outsider_user, farm.farm_id)
        assert exc_info.value.http_status == 403

    async def test_admin_sees_every_farm(self, session, admin_user, farm):
        farms = await FarmService(session).list_farms(admin_user)
        assert [(f.farm_id, role) for f, role in farms] == [(farm.farm_id, "admin")]
