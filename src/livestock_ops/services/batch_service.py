"""Livestock batches and the mortality records that deplete them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.batches import (
    batch_total_cost,
    calculate_new_quantity,
    can_delete_batch,
    determine_batch_status,
    health_species,
    validate_batch_data,
    validate_batch_update,
    validate_mortality_data,
)
from livestock_ops.calculators.health import calculate_health_status, calculate_mortality_rate
from livestock_ops.errors import AppError
from livestock_ops.models import (
    LIVESTOCK_TYPES,
    MORTALITY_CAUSES,
    Batch,
    EggRecord,
    Farm,
    FeedRecord,
    MortalityRecord,
    Sale,
    User,
)
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.audit_service import AuditService
from livestock_ops.services.extension_service import ExtensionService

logger = logging.getLogger(__name__)

BATCH_STATUSES = ("active", "depleted", "sold")


@dataclass
class BatchHealth:
    """A batch with its recorded deaths and mortality classification.

    ``health_status`` is None for batches whose species has no threshold.
    """

    batch: Batch
    total_deaths: int
    mortality_rate: float
    health_status: str | None


class BatchService:
    """Batch stock and mortality.

    Owners and managers create, edit and delete batches; any farm member
    may record deaths. Every change to ``current_quantity`` also settles
    the batch status.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def _get_batch(
        self,
        actor: User,
        batch_id: UUID,
        roles: tuple[str, ...] | None = None,
    ) -> tuple[Batch, Farm]:
        batch = await self.session.get(Batch, batch_id)
        if batch is None:
            raise AppError("BATCH_NOT_FOUND", metadata={"batch_id": str(batch_id)})
        farm = await require_farm_access(self.session, actor, batch.farm_id, roles)
        return batch, farm

    async def _deaths(self, batch_ids: list[UUID]) -> dict[UUID, int]:
        if not batch_ids:
            return {}
        rows = await self.session.execute(
            select(MortalityRecord.batch_id, func.sum(MortalityRecord.quantity))
            .where(MortalityRecord.batch_id.in_(batch_ids))
            .group_by(MortalityRecord.batch_id)
        )
        return {batch_id: int(total or 0) for batch_id, total in rows.all()}

    async def _with_health(self, farm: Farm, batches: list[Batch]) -> list[BatchHealth]:
        thresholds = await ExtensionService(self.session).get_effective_thresholds(
            farm.district_id
        )
        deaths = await self._deaths([b.batch_id for b in batches])
        result = []
        for batch in batches:
            dead = deaths.get(batch.batch_id, 0)
            rate = calculate_mortality_rate(batch.initial_quantity, batch.initial_quantity - dead)
            species = health_species(batch.livestock_type, batch.species)
            result.append(
                BatchHealth(
                    batch=batch,
                    total_deaths=dead,
                    mortality_rate=round(rate, 2),
                    health_status=(
                        calculate_health_status(rate, species, thresholds) if species else None
                    ),
                )
            )
        return result

    async def create_batch(self, actor: User, farm_id: UUID, data: dict[str, Any]) -> Batch:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        error = validate_batch_data({**data, "farm_id": farm_id})
        if error:
            raise AppError("VALIDATION_ERROR", error)
        if data.get("livestock_type") not in LIVESTOCK_TYPES:
            raise AppError(
                "VALIDATION_ERROR", f"Invalid livestock type: {data.get('livestock_type')}"
            )

        quantity = int(data["initial_quantity"])
        batch = Batch(
            farm_id=farm_id,
            livestock_type=data["livestock_type"],
            species=data["species"].strip(),
            initial_quantity=quantity,
            current_quantity=quantity,
            acquisition_date=data["acquisition_date"],
            cost_per_unit=data.get("cost_per_unit"),
            total_cost=batch_total_cost(quantity, data.get("cost_per_unit")),
            status="active",
        )
        self.session.add(batch)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "batch",
            batch.batch_id,
            {"species": batch.species, "initial_quantity": quantity},
        )
        logger.info("Batch %s created on farm %s", batch.batch_id, farm_id)
        return batch

    async def get_batch(self, actor: User, batch_id: UUID) -> BatchHealth:
        batch, farm = await self._get_batch(actor, batch_id)
        [health] = await self._with_health(farm, [batch])
        return health

    async def list_batches(
        self,
        actor: User,
        farm_id: UUID,
        status: str | None = None,
    ) -> list[BatchHealth]:
        """Batches of a farm, newest acquisition first."""
        farm = await require_farm_access(self.session, actor, farm_id)
        query = select(Batch).where(Batch.farm_id == farm_id)
        if status is not None:
            query = query.where(Batch.status == status)
        query = query.order_by(Batch.acquisition_date.desc(), Batch.created_at.desc())
        batches = list((await self.session.execute(query)).scalars().all())
        return await self._with_health(farm, batches)

    async def update_batch(self, actor: User, batch_id: UUID, updates: dict[str, Any]) -> Batch:
        error = validate_batch_update(updates)
        if error:
            raise AppError("VALIDATION_ERROR", error)
        if updates.get("status") is not None and updates["status"] not in BATCH_STATUSES:
            raise AppError("VALIDATION_ERROR", f"Invalid status: {updates['status']}")

        batch, _ = await self._get_batch(actor, batch_id, MANAGE_ROLES)
        if updates.get("species") is not None:
            batch.species = updates["species"].strip()
        for key in ("acquisition_date", "status"):
            if updates.get(key) is not None:
                setattr(batch, key, updates[key])
        if "cost_per_unit" in updates:
            batch.cost_per_unit = updates["cost_per_unit"]
            batch.total_cost = batch_total_cost(batch.initial_quantity, batch.cost_per_unit)

        await self.audit.record_audit(actor.user_id, "update", "batch", batch_id, updates)
        await self.session.flush()
        return batch

    async def _related_counts(self, batch_id: UUID) -> dict[str, int]:
        counts = {}
        for name, model in (
            ("feed", FeedRecord),
            ("eggs", EggRecord),
            ("sales", Sale),
            ("mortality", MortalityRecord),
        ):
            counts[name] = await self.session.scalar(
                select(func.count()).select_from(model).where(model.batch_id == batch_id)
            ) or 0
        return counts

    async def delete_batch(self, actor: User, batch_id: UUID) -> None:
        batch, _ = await self._get_batch(actor, batch_id, MANAGE_ROLES)
        counts = await self._related_counts(batch_id)
        if not can_delete_batch(counts):
            raise AppError(
                "VALIDATION_ERROR",
                "Cannot delete batch with existing records. Delete related records first.",
                metadata={k: v for k, v in counts.items() if v},
            )
        await self.audit.record_audit(
            actor.user_id, "delete", "batch", batch_id, {"species": batch.species}
        )
        await self.session.delete(batch)
        await self.session.flush()

    # ------------------------------------------------------------------
    # Mortality
    # ------------------------------------------------------------------

    async def record_mortality(
        self,
        actor: User,
        batch_id: UUID,
        data: dict[str, Any],
    ) -> MortalityRecord:
        """Record deaths and take them off the batch's current quantity."""
        batch, _ = await self._get_batch(actor, batch_id)
        cause = data.get("cause") or "unknown"
        if cause not in MORTALITY_CAUSES:
            raise AppError("VALIDATION_ERROR", f"Invalid mortality cause: {cause}")
        error = validate_mortality_data(data, batch.current_quantity)
        if error:
            name = "INSUFFICIENT_STOCK" if "exceed" in error else "VALIDATION_ERROR"
            raise AppError(
                name,
                error,
                metadata={"current": batch.current_quantity, "requested": data.get("quantity")},
            )

        record = MortalityRecord(
            batch_id=batch_id,
            quantity=data["quantity"],
            date=data["date"],
            cause=cause,
            notes=data.get("notes"),
        )
        batch.current_quantity = calculate_new_quantity(batch.current_quantity, record.quantity)
        batch.status = determine_batch_status(batch.current_quantity)
        self.session.add(record)
        await self.session.flush()

        await self.audit.record_audit(
            actor.user_id,
            "create",
            "mortality",
            record.mortality_record_id,
            {"batch_id": batch_id, "quantity": record.quantity, "cause": cause},
        )
        logger.info(
            "Recorded %d deaths on batch %s (%d left)",
            record.quantity,
            batch_id,
            batch.current_quantity,
        )
        return record

    async def list_mortality(self, actor: User, batch_id: UUID) -> list[MortalityRecord]:
        await self._get_batch(actor, batch_id)
        result = await self.session.execute(
            select(MortalityRecord)
            .where(MortalityRecord.batch_id == batch_id)
            .order_by(MortalityRecord.date.desc(), MortalityRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_mortality(self, actor: User, record_id: UUID) -> Batch:
        """Remove a mortality record and give its animals back to the batch."""
        record = await self.session.get(MortalityRecord, record_id)
        if record is None:
            raise AppError(
                "MORTALITY_RECORD_NOT_FOUND", metadata={"mortality_record_id": str(record_id)}
            )
        batch, _ = await self._get_batch(actor, record.batch_id, MANAGE_ROLES)

        batch.current_quantity += record.quantity
        batch.status = determine_batch_status(batch.current_quantity)
        await self.audit.record_audit(
            actor.user_id,
            "delete",
            "mortality",
            record_id,
            {"batch_id": batch.batch_id, "quantity": record.quantity},
        )
        await self.session.delete(record)
        await self.session.flush()
        return batch
