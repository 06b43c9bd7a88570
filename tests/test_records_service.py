"""Tests for egg, feed and settings services."""

from datetime import date
from decimal import Decimal

import pytest

from livestock_ops.errors import AppError
from livestock_ops.models import Batch
from livestock_ops.services.egg_service import EggService
from livestock_ops.services.feed_service import FeedService
from livestock_ops.services.settings_service import SettingsService


@pytest.fixture
async def goat_batch(session, farm):
    batch = Batch(
        farm_id=farm.farm_id,
        livestock_type="goats",
        species="goats",
        initial_quantity=20,
        current_quantity=20,
        acquisition_date=date(2024, 1, 1),
        status="active",
    )
    session.add(batch)
    await session.commit()
    return batch


@pytest.fixture
async def grower_stock(session, owner_user, farm):
    return await FeedService(session).create_inventory(
        owner_user, farm.farm_id, "grower", 100, min_threshold_kg=20
    )


class TestEggRecords:
    """Test egg collection records."""

    async def test_batch_summary(self, session, worker_user, worker_profile, layer_batch):
        service = EggService(session)
        for day, collected, broken, sold in (
            (date(2024, 3, 4), 432, 12, 100),
            (date(2024, 3, 5), 408, 8, 0),
        ):
            await service.create_egg_record(
                worker_user,
                {
                    "batch_id": layer_batch.batch_id,
                    "date": day,
                    "quantity_collected": collected,
                    "quantity_broken": broken,
                    "quantity_sold": sold,
                },
            )

        result = await service.get_batch_summary(worker_user, layer_batch.batch_id)

        assert result.summary.total_collected == 840
        assert result.summary.current_inventory == 720
        assert result.summary.record_count == 2
        assert result.flock_size == 480
        # 420 a day from 480 birds
        assert result.laying_percentage == 87.5

    async def test_only_poultry_batches(self, session, owner_user, goat_batch):
        with pytest.raises(AppError, match="only be created for poultry"):
            await EggService(session).create_egg_record(
                owner_user, {"batch_id": goat_batch.batch_id, "quantity_collected": 5}
            )

    async def test_batch_must_match_farm(self, session, owner_user, layer_batch):
        with pytest.raises(AppError) as exc_info:
            await EggService(session).create_egg_record(
                owner_user,
                {
                    "batch_id": layer_batch.batch_id,
                    "farm_id": layer_batch.batch_id,
                    "quantity_collected": 5,
                },
            )
        assert exc_info.value.name == "BATCH_NOT_FOUND"

    async def test_update_checks_merged_quantities(self, session, owner_user, layer_batch):
        service = EggService(session)
        record = await service.create_egg_record(
            owner_user,
            {"batch_id": layer_batch.batch_id, "quantity_collected": 100, "quantity_sold": 60},
        )

        with pytest.raises(AppError, match="cannot exceed collected"):
            await service.update_egg_record(
                owner_user, record.egg_record_id, {"quantity_broken": 50}
            )

        updated = await service.update_egg_record(
            owner_user, record.egg_record_id, {"quantity_broken": 40}
        )
        assert updated.quantity_broken == 40

    async def test_outsider_cannot_log(self, session, outsider_user, layer_batch):
        with pytest.raises(AppError) as exc_info:
            await EggService(session).create_egg_record(
                outsider_user, {"batch_id": layer_batch.batch_id, "quantity_collected": 5}
            )
        assert exc_info.value.name == "ACCESS_DENIED"


class TestFeedInventory:
    """Test feed records against stock."""

    async def test_record_deducts_and_delete_restores(
        self, session, owner_user, layer_batch, grower_stock
    ):
        service = FeedService(session)
        record = await service.create_feed_record(
            owner_user,
            {
                "batch_id": layer_batch.batch_id,
                "feed_type": "grower",
                "quantity_kg": "30.5",
                "cost": 12,
                "inventory_id": grower_stock.inventory_id,
            },
        )
        assert grower_stock.quantity_kg == Decimal("69.50")

        await service.delete_feed_record(owner_user, record.feed_record_id)
        assert grower_stock.quantity_kg == Decimal("100.00")

    async def test_insufficient_stock(self, session, owner_user, layer_batch, grower_stock):
        with pytest.raises(AppError) as exc_info:
            await FeedService(session).create_feed_record(
                owner_user,
                {
                    "batch_id": layer_batch.batch_id,
                    "feed_type": "grower",
                    "quantity_kg": 150,
                    "inventory_id": grower_stock.inventory_id,
                },
            )
        assert exc_info.value.name == "INSUFFICIENT_STOCK"
        assert exc_info.value.message == "Insufficient inventory. Available: 100.00kg"

    async def test_update_moves_stock_between_types(
        self, session, owner_user, farm, layer_batch, grower_stock
    ):
        service = FeedService(session)
        layer_mash = await service.create_inventory(owner_user, farm.farm_id, "layer_mash", 50)
        record = await service.create_feed_record(
            owner_user,
            {
                "batch_id": layer_batch.batch_id,
                "feed_type": "grower",
                "quantity_kg": 10,
                "inventory_id": grower_stock.inventory_id,
            },
        )

        await service.update_feed_record(
            owner_user, record.feed_record_id, {"feed_type": "layer_mash", "quantity_kg": 15}
        )

        assert grower_stock.quantity_kg == Decimal("100.00")
        assert layer_mash.quantity_kg == Decimal("35.00")
        assert record.inventory_id == layer_mash.inventory_id

    async def test_low_stock_flag(self, session, owner_user, farm, grower_stock):
        service = FeedService(session)
        await service.update_inventory(owner_user, grower_stock.inventory_id, quantity_kg=20)

        [item] = await service.list_inventory(owner_user, farm.farm_id)
        assert item.low_stock is True

    async def test_duplicate_inventory_type(self, session, owner_user, farm, grower_stock):
        with pytest.raises(AppError) as exc_info:
            await FeedService(session).create_inventory(owner_user, farm.farm_id, "grower", 5)
        assert exc_info.value.name == "ALREADY_EXISTS"

    async def test_summary(self, session, owner_user, farm, layer_batch):
        service = FeedService(session)
        for feed_type, kg, cost in (("grower", 10, 5), ("grower", 5, 2), ("hay", 20, 8)):
            await service.create_feed_record(
                owner_user,
                {
                    "batch_id": layer_batch.batch_id,
                    "feed_type": feed_type,
                    "quantity_kg": kg,
                    "cost": cost,
                },
            )

        summary = await service.get_feed_summary(owner_user, farm.farm_id)
        assert summary.record_count == 3
        assert summary.total_quantity_kg == Decimal("35.00")
        assert summary.by_type["grower"].cost == Decimal("7.00")


class TestUserSettings:
    """Test per-user settings."""

    async def test_defaults_without_row(self, session, owner_user):
        settings = await SettingsService(session).get_user_settings(owner_user)
        assert settings.currency_code == "USD"
        assert settings.notifications["low_stock"] is True

    async def test_currency_change_applies_preset(self, session, owner_user):
        settings = await SettingsService(session).update_user_settings(
            owner_user, {"currency_code": "EUR"}
        )
        assert settings.currency_symbol == "€"
        assert settings.currency_symbol_position == "after"
        assert settings.thousand_separator == "."
        assert settings.decimal_separator == ","

    async def test_explicit_values_beat_preset(self, session, owner_user):
        settings = await SettingsService(session).update_user_settings(
            owner_user, {"currency_code": "KES", "thousand_separator": " "}
        )
        assert settings.currency_symbol == "KSh"
        assert settings.thousand_separator == " "

    async def test_notification_merge_and_reset(self, session, owner_user):
        service = SettingsService(session)
        settings = await service.update_user_settings(
            owner_user, {"notifications": {"invoice_due": False}, "theme": "dark"}
        )
        assert settings.notifications["invoice_due"] is False
        assert settings.notifications["low_stock"] is True

        reset = await service.reset_user_settings(owner_user)
        assert reset.theme == "system"
        assert reset.notifications["invoice_due"] is True

    async def test_invalid_values(self, session, owner_user):
        service = SettingsService(session)
        with pytest.raises(AppError) as exc_info:
            await service.update_user_settings(owner_user, {"theme": "neon", "weight_unit": "st"})
        assert exc_info.value.metadata["errors"] == [
            'theme: Theme must be "light", "dark", or "system"',
            'weight_unit: Weight unit must be "kg" or "lbs"',
        ]

        with pytest.raises(AppError, match="not supported"):
            await service.update_user_settings(owner_user, {"currency_code": "XYZ"})
