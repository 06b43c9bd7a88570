"""Worker profiles and farm geofences."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.geofence import validate_geofence
from livestock_ops.calculators.permissions import validate_permissions
from livestock_ops.calculators.types import GeofenceConfig, GeofenceType, Point
from livestock_ops.errors import AppError
from livestock_ops.models import FarmGeofence, FarmMembership, User, WorkerProfile
from livestock_ops.services.access import MANAGE_ROLES, get_membership, require_farm_access
from livestock_ops.services.audit_service import AuditService

logger = logging.getLogger(__name__)

WAGE_RATE_TYPES = ("hourly", "daily", "monthly")

UPDATABLE_PROFILE_FIELDS = (
    "phone",
    "emergency_contact_name",
    "emergency_contact_phone",
    "employment_status",
    "wage_rate_amount",
    "wage_rate_type",
    "wage_currency",
    "permissions",
    "structure_ids",
    "profile_photo_url",
)


def geofence_config_from_model(geofence: FarmGeofence) -> GeofenceConfig:
    """Build the calculator view of a stored geofence."""
    center = None
    if geofence.center_lat is not None and geofence.center_lng is not None:
        center = Point(geofence.center_lat, geofence.center_lng)
    return GeofenceConfig(
        geofence_type=GeofenceType(geofence.geofence_type),
        tolerance_meters=geofence.tolerance_meters,
        center=center,
        radius_meters=geofence.radius_meters,
        vertices=[Point.from_dict(v) for v in geofence.vertices or []],
    )


class WorkerService:
    """Worker profile CRUD and geofence configuration.

    Mutations require the owner or manager farm role.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def create_worker_profile(self, actor: User, data: dict[str, Any]) -> WorkerProfile:
        """Create a profile; the user gets a ``worker`` membership if missing."""
        farm_id = data["farm_id"]
        user_id = data["user_id"]
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)

        if await self.session.get(User, user_id) is None:
            raise AppError("USER_NOT_FOUND", metadata={"user_id": str(user_id)})
        if await self.get_worker_by_user(user_id, farm_id) is not None:
            raise AppError(
                "ALREADY_EXISTS",
                "Worker profile already exists for this farm",
                metadata={"resource": "WorkerProfile", "user_id": str(user_id)},
            )

        permissions = list(data.get("permissions") or [])
        error = validate_permissions(permissions)
        if error:
            raise AppError("VALIDATION_ERROR", error)

        wage = Decimal(str(data["wage_rate_amount"]))
        if wage <= 0:
            raise AppError("VALIDATION_ERROR", "Wage rate must be greater than 0")
        if data.get("wage_rate_type") not in WAGE_RATE_TYPES:
            raise AppError("VALIDATION_ERROR", "Wage rate type must be hourly, daily or monthly")

        profile = WorkerProfile(
            user_id=user_id,
            farm_id=farm_id,
            phone=data["phone"],
            emergency_contact_name=data.get("emergency_contact_name"),
            emergency_contact_phone=data.get("emergency_contact_phone"),
            employment_status="active",
            employment_start_date=data.get("employment_start_date") or date.today(),
            wage_rate_amount=wage.quantize(Decimal("0.01")),
            wage_rate_type=data["wage_rate_type"],
            wage_currency=data.get("wage_currency") or "USD",
            permissions=permissions,
            structure_ids=[str(s) for s in data.get("structure_ids") or []],
        )
        self.session.add(profile)

        if await get_membership(self.session, user_id, farm_id) is None:
            self.session.add(FarmMembership(user_id=user_id, farm_id=farm_id, role="worker"))

        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "worker_profile",
            profile.worker_id,
            {"user_id": user_id, "farm_id": farm_id},
        )
        return profile

    async def get_profile(self, worker_id: UUID) -> WorkerProfile:
        profile = await self.session.get(WorkerProfile, worker_id)
        if profile is None:
            raise AppError("WORKER_PROFILE_NOT_FOUND", metadata={"worker_id": str(worker_id)})
        return profile

    async def update_worker_profile(
        self,
        actor: User,
        worker_id: UUID,
        updates: dict[str, Any],
    ) -> WorkerProfile:
        profile = await self.get_profile(worker_id)
        await require_farm_access(self.session, actor, profile.farm_id, MANAGE_ROLES)

        changes = {
            k: v for k, v in updates.items() if k in UPDATABLE_PROFILE_FIELDS and v is not None
        }
        if "permissions" in changes:
            error = validate_permissions(changes["permissions"])
            if error:
                raise AppError("VALIDATION_ERROR", error)
        if "wage_rate_amount" in changes:
            wage = Decimal(str(changes["wage_rate_amount"]))
            if wage <= 0:
                raise AppError("VALIDATION_ERROR", "Wage rate must be greater than 0")
            changes["wage_rate_amount"] = wage.quantize(Decimal("0.01"))

        for key, value in changes.items():
            setattr(profile, key, value)

        await self.audit.record_audit(
            actor.user_id, "update", "worker_profile", worker_id, changes
        )
        await self.session.flush()
        return profile

    async def list_workers(self, actor: User, farm_id: UUID) -> list[tuple[WorkerProfile, str]]:
        """Profiles on a farm with each worker's name."""
        await require_farm_access(self.session, actor, farm_id)
        result = await self.session.execute(
            select(WorkerProfile, User.name)
            .join(User, User.user_id == WorkerProfile.user_id)
            .where(WorkerProfile.farm_id == farm_id)
            .order_by(User.name)
        )
        return [(profile, name) for profile, name in result.all()]

    async def get_worker_by_user(self, user_id: UUID, farm_id: UUID) -> WorkerProfile | None:
        result = await self.session.execute(
            select(WorkerProfile).where(
                WorkerProfile.user_id == user_id,
                WorkerProfile.farm_id == farm_id,
            )
        )
        return result.scalar_one_or_none()

    async def remove_worker(self, actor: User, worker_id: UUID) -> WorkerProfile:
        """Terminate employment and drop the farm membership."""
        profile = await self.get_profile(worker_id)
        await require_farm_access(self.session, actor, profile.farm_id, MANAGE_ROLES)

        profile.employment_status = "terminated"
        profile.employment_end_date = date.today()
        await self.session.execute(
            delete(FarmMembership).where(
                FarmMembership.user_id == profile.user_id,
                FarmMembership.farm_id == profile.farm_id,
            )
        )
        await self.audit.record_audit(
            actor.user_id,
            "delete",
            "worker_profile",
            worker_id,
            {"reason": "Worker removed from farm"},
        )
        await self.session.flush()
        return profile

    # ------------------------------------------------------------------
    # Geofence
    # ------------------------------------------------------------------

    async def get_geofence(self, farm_id: UUID) -> FarmGeofence | None:
        result = await self.session.execute(
            select(FarmGeofence).where(FarmGeofence.farm_id == farm_id)
        )
        return result.scalar_one_or_none()

    async def save_geofence(
        self,
        actor: User,
        farm_id: UUID,
        data: dict[str, Any],
    ) -> FarmGeofence:
        """Create or replace the farm geofence."""
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)

        geofence_type = data.get("geofence_type")
        if geofence_type not in ("circle", "polygon"):
            raise AppError("VALIDATION_ERROR", "Geofence type must be circle or polygon")

        vertices = [
            {"lat": float(v["lat"]), "lng": float(v["lng"])} for v in data.get("vertices") or []
        ]
        config = GeofenceConfig(
            geofence_type=GeofenceType(geofence_type),
            tolerance_meters=float(data.get("tolerance_meters", 100.0)),
            center=(
                Point(float(data["center_lat"]), float(data["center_lng"]))
                if data.get("center_lat") is not None and data.get("center_lng") is not None
                else None
            ),
            radius_meters=data.get("radius_meters"),
            vertices=[Point.from_dict(v) for v in vertices],
        )
        errors = validate_geofence(config)
        if errors:
            raise AppError("VALIDATION_ERROR", "; ".join(errors), metadata={"errors": errors})

        geofence = await self.get_geofence(farm_id)
        if geofence is None:
            geofence = FarmGeofence(farm_id=farm_id, geofence_type=geofence_type)
            self.session.add(geofence)

        geofence.geofence_type = geofence_type
        geofence.tolerance_meters = config.tolerance_meters
        if config.geofence_type == GeofenceType.CIRCLE:
            geofence.center_lat = config.center.lat if config.center else None
            geofence.center_lng = config.center.lng if config.center else None
            geofence.radius_meters = config.radius_meters
            geofence.vertices = None
        else:
            geofence.center_lat = None
            geofence.center_lng = None
            geofence.radius_meters = None
            geofence.vertices = vertices

        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id, "save", "farm_geofence", geofence.geofence_id, {"type": geofence_type}
        )
        return geofence
