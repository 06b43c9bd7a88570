"""Regional administration for extension services (admin only)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.health import DEFAULT_THRESHOLDS, SPECIES, Thresholds
from livestock_ops.errors import AppError
from livestock_ops.models import Country, Farm, Region, SpeciesThreshold, User, UserDistrict
from livestock_ops.services.audit_service import AuditService

logger = logging.getLogger(__name__)


@dataclass
class RegionNode:
    region: Region
    farm_count: int = 0
    agent_count: int = 0
    children: list[RegionNode] = field(default_factory=list)


@dataclass
class CountryNode:
    country: Country
    regions: list[RegionNode] = field(default_factory=list)


@dataclass
class ThresholdOverride:
    threshold_id: UUID
    region_id: UUID | None
    region_name: str
    amber_threshold: Decimal
    red_threshold: Decimal


@dataclass
class SpeciesThresholds:
    species: str
    amber_threshold: float
    red_threshold: float
    overrides: list[ThresholdOverride] = field(default_factory=list)


class ExtensionService:
    """Region tree, district agent assignments and mortality thresholds.

    Callers are admins; the HTTP layer enforces that. Every mutation is
    audited.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    async def get_region(self, region_id: UUID) -> Region:
        region = await self.session.get(Region, region_id)
        if region is None:
            raise AppError("REGION_NOT_FOUND", "Region not found")
        return region

    async def get_region_tree(self) -> list[CountryNode]:
        """Countries with their regions and each region's districts."""
        farm_counts = dict(
            (
                await self.session.execute(
                    select(Farm.district_id, func.count())
                    .where(Farm.district_id.is_not(None))
                    .group_by(Farm.district_id)
                )
            ).all()
        )
        agent_counts = dict(
            (
                await self.session.execute(
                    select(UserDistrict.district_id, func.count()).group_by(
                        UserDistrict.district_id
                    )
                )
            ).all()
        )
        countries = (
            await self.session.execute(select(Country).order_by(Country.name))
        ).scalars().all()
        regions = (
            await self.session.execute(select(Region).order_by(Region.name))
        ).scalars().all()

        def node(region: Region) -> RegionNode:
            return RegionNode(
                region=region,
                farm_count=farm_counts.get(region.region_id, 0),
                agent_count=agent_counts.get(region.region_id, 0),
            )

        tree = []
        for country in countries:
            country_node = CountryNode(country=country)
            for region in regions:
                if region.country_id != country.country_id or region.level != 1:
                    continue
                region_node = node(region)
                region_node.children = [
                    node(d) for d in regions if d.parent_id == region.region_id and d.level == 2
                ]
                country_node.regions.append(region_node)
            tree.append(country_node)
        return tree

    async def _slug_taken(
        self,
        country_id: UUID,
        slug: str,
        exclude: UUID | None = None,
    ) -> bool:
        query = select(Region.region_id).where(
            Region.country_id == country_id, Region.slug == slug
        )
        if exclude is not None:
            query = query.where(Region.region_id != exclude)
        return (await self.session.scalar(query)) is not None

    async def create_region(self, admin: User, data: dict[str, Any]) -> Region:
        level = int(data["level"])
        parent_id = data.get("parent_id")
        if level not in (1, 2):
            raise AppError("VALIDATION_ERROR", "Level must be 1 or 2")
        if level == 2 and not parent_id:
            raise AppError("VALIDATION_ERROR", "Districts (level 2) must have a parent region")
        if await self.session.get(Country, data["country_id"]) is None:
            raise AppError("NOT_FOUND", "Country not found")
        if parent_id:
            parent = await self.get_region(parent_id)
            if parent.level != 1 or parent.country_id != data["country_id"]:
                raise AppError("VALIDATION_ERROR", "Parent must be a region of the same country")
        if await self._slug_taken(data["country_id"], data["slug"]):
            raise AppError("VALIDATION_ERROR", "A region with this slug already exists")

        region = Region(
            country_id=data["country_id"],
            parent_id=parent_id,
            level=level,
            name=data["name"],
            slug=data["slug"],
            is_active=True,
        )
        self.session.add(region)
        await self.session.flush()
        await self.audit.record_audit(
            admin.user_id,
            "region_created",
            "region",
            region.region_id,
            {"name": region.name, "level": level, "parent_id": parent_id},
        )
        logger.info("Region %s created by %s", region.slug, admin.user_id)
        return region

    async def update_region(self, admin: User, region_id: UUID, name: str, slug: str) -> Region:
        region = await self.get_region(region_id)
        if await self._slug_taken(region.country_id, slug, exclude=region_id):
            raise AppError("VALIDATION_ERROR", "A region with this slug already exists")
        region.name = name
        region.slug = slug
        await self.audit.record_audit(
            admin.user_id, "region_updated", "region", region_id, {"name": name, "slug": slug}
        )
        await self.session.flush()
        return region

    async def deactivate_region(self, admin: User, region_id: UUID) -> Region:
        region = await self.get_region(region_id)
        active_children = await self.session.scalar(
            select(func.count())
            .select_from(Region)
            .where(Region.parent_id == region_id, Region.is_active.is_(True))
        )
        if active_children:
            raise AppError(
                "REGION_HAS_CHILDREN", "Cannot deactivate region with active child regions"
            )
        farms = await self.session.scalar(
            select(func.count()).select_from(Farm).where(Farm.district_id == region_id)
        )
        if farms:
            raise AppError("REGION_HAS_FARMS", "Cannot deactivate region with assigned farms")

        region.is_active = False
        await self.audit.record_audit(admin.user_id, "region_deactivated", "region", region_id)
        await self.session.flush()
        logger.info("Region %s deactivated by %s", region_id, admin.user_id)
        return region

    # ------------------------------------------------------------------
    # District assignments
    # ------------------------------------------------------------------

    async def get_district_assignments(self) -> tuple[list[dict[str, Any]], list[Region]]:
        """Every user with their districts, plus all districts."""
        users = (await self.session.execute(select(User).order_by(User.name))).scalars().all()
        rows = (
            await self.session.execute(
                select(UserDistrict, Region.name)
                .join(Region, Region.region_id == UserDistrict.district_id)
                .order_by(Region.name)
            )
        ).all()
        by_user: dict[UUID, list[dict[str, Any]]] = {}
        for assignment, district_name in rows:
            by_user.setdefault(assignment.user_id, []).append(
                {
                    "district_id": assignment.district_id,
                    "district_name": district_name,
                    "is_supervisor": assignment.is_supervisor,
                    "assigned_at": assignment.assigned_at,
                }
            )
        assignments = [
            {
                "user_id": user.user_id,
                "user_name": user.name or "Unknown",
                "user_email": user.email or "",
                "districts": by_user.get(user.user_id, []),
            }
            for user in users
        ]
        districts = (
            await self.session.execute(
                select(Region).where(Region.level == 2).order_by(Region.name)
            )
        ).scalars().all()
        return assignments, list(districts)

    async def _get_assignment(self, user_id: UUID, district_id: UUID) -> UserDistrict | None:
        result = await self.session.execute(
            select(UserDistrict).where(
                UserDistrict.user_id == user_id,
                UserDistrict.district_id == district_id,
            )
        )
        return result.scalar_one_or_none()

    async def assign_user_to_district(
        self,
        admin: User,
        user_id: UUID,
        district_id: UUID,
        is_supervisor: bool = False,
    ) -> UserDistrict:
        if await self.session.get(User, user_id) is None:
            raise AppError("USER_NOT_FOUND", metadata={"user_id": str(user_id)})
        district = await self.get_region(district_id)
        if district.level != 2:
            raise AppError("VALIDATION_ERROR", "Users can only be assigned to districts")
        if await self._get_assignment(user_id, district_id) is not None:
            raise AppError("VALIDATION_ERROR", "User is already assigned to this district")

        assignment = UserDistrict(
            user_id=user_id, district_id=district_id, is_supervisor=is_supervisor
        )
        self.session.add(assignment)
        await self.session.flush()
        await self.audit.record_audit(
            admin.user_id,
            "user_assigned_to_district",
            "user_district",
            assignment.user_district_id,
            {"user_id": user_id, "district_id": district_id, "is_supervisor": is_supervisor},
        )
        return assignment

    async def remove_user_from_district(self, admin: User, user_id: UUID, district_id: UUID):
        assignment = await self._get_assignment(user_id, district_id)
        if assignment is None:
            raise AppError("NOT_FOUND", "Assignment not found")
        await self.audit.record_audit(
            admin.user_id,
            "user_removed_from_district",
            "user_district",
            assignment.user_district_id,
            {"user_id": user_id, "district_id": district_id},
        )
        await self.session.delete(assignment)
        await self.session.flush()

    async def toggle_supervisor_status(
        self,
        admin: User,
        user_id: UUID,
        district_id: UUID,
    ) -> UserDistrict:
        assignment = await self._get_assignment(user_id, district_id)
        if assignment is None:
            raise AppError("NOT_FOUND", "Assignment not found")
        assignment.is_supervisor = not assignment.is_supervisor
        await self.audit.record_audit(
            admin.user_id,
            "supervisor_toggled",
            "user_district",
            assignment.user_district_id,
            {"is_supervisor": assignment.is_supervisor},
        )
        await self.session.flush()
        return assignment

    # ------------------------------------------------------------------
    # Species thresholds
    # ------------------------------------------------------------------

    async def get_species_thresholds(self) -> list[SpeciesThresholds]:
        """Defaults for every species with any stored overrides."""
        rows = (
            await self.session.execute(
                select(SpeciesThreshold, Region.name).outerjoin(
                    Region, Region.region_id == SpeciesThreshold.region_id
                )
            )
        ).all()
        result = []
        for species in SPECIES:
            defaults = DEFAULT_THRESHOLDS[species]
            result.append(
                SpeciesThresholds(
                    species=species,
                    amber_threshold=defaults.amber,
                    red_threshold=defaults.red,
                    overrides=[
                        ThresholdOverride(
                            threshold_id=t.threshold_id,
                            region_id=t.region_id,
                            region_name=region_name or "Unknown",
                            amber_threshold=t.amber_threshold,
                            red_threshold=t.red_threshold,
                        )
                        for t, region_name in rows
                        if t.species == species
                    ],
                )
            )
        return result

    async def get_effective_thresholds(self, region_id: UUID | None) -> dict[str, Thresholds]:
        """Overrides that apply in a region or district.

        A district's own rows beat its parent region's, which beat global
        rows. Species without any override are absent from the result.
        """
        scope: list[UUID | None] = [None]
        if region_id is not None:
            region = await self.session.get(Region, region_id)
            if region is not None and region.parent_id is not None:
                scope.append(region.parent_id)
            scope.append(region_id)
        query = select(SpeciesThreshold).where(
            SpeciesThreshold.region_id.is_(None)
            | SpeciesThreshold.region_id.in_([r for r in scope if r is not None])
        )
        rows = (await self.session.execute(query)).scalars().all()
        effective: dict[str, Thresholds] = {}
        for row in sorted(rows, key=lambda r: scope.index(r.region_id)):
            effective[row.species] = Thresholds(
                amber=float(row.amber_threshold), red=float(row.red_threshold)
            )
        return effective

    async def upsert_species_threshold(
        self,
        admin: User,
        species: str,
        amber_threshold: float,
        red_threshold: float,
        region_id: UUID | None = None,
    ) -> SpeciesThreshold:
        if species not in SPECIES:
            raise AppError("VALIDATION_ERROR", f"Unknown species: {species}")
        if amber_threshold >= red_threshold:
            raise AppError("VALIDATION_ERROR", "Amber threshold must be less than red threshold")
        if region_id is not None:
            await self.get_region(region_id)

        query = select(SpeciesThreshold).where(SpeciesThreshold.species == species)
        if region_id is None:
            query = query.where(SpeciesThreshold.region_id.is_(None))
        else:
            query = query.where(SpeciesThreshold.region_id == region_id)
        threshold = (await self.session.execute(query)).scalar_one_or_none()

        action = "threshold_updated"
        if threshold is None:
            action = "threshold_created"
            threshold = SpeciesThreshold(species=species, region_id=region_id)
            self.session.add(threshold)
        threshold.amber_threshold = Decimal(str(amber_threshold))
        threshold.red_threshold = Decimal(str(red_threshold))
        await self.session.flush()

        await self.audit.record_audit(
            admin.user_id,
            action,
            "species_threshold",
            threshold.threshold_id,
            {
                "species": species,
                "region_id": region_id,
                "amber_threshold": amber_threshold,
                "red_threshold": red_threshold,
            },
        )
        return threshold

    async def delete_species_threshold(self, admin: User, threshold_id: UUID) -> None:
        threshold = await self.session.get(SpeciesThreshold, threshold_id)
        if threshold is None:
            raise AppError("NOT_FOUND", "Threshold not found")
        await self.audit.record_audit(
            admin.user_id, "threshold_deleted", "species_threshold", threshold_id
        )
        await self.session.delete(threshold)
        await self.session.flush()
