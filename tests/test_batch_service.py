"""Tests for batches, mortality records, sales and expenses."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from livestock_ops.calculators.batches import (
    determine_batch_status,
    health_species,
    validate_batch_data,
    validate_expense_data,
    validate_sale_data,
)
from livestock_ops.errors import AppError
from livestock_ops.models import Country
from livestock_ops.services.batch_service import BatchService
from livestock_ops.services.extension_service import ExtensionService
from livestock_ops.services.farm_service import FarmService
from livestock_ops.services.finance_service import FinanceService


def new_batch(**overrides):
    data = {
        "livestock_type": "poultry",
        "species": "Broiler",
        "initial_quantity": 200,
        "acquisition_date": date(2024, 3, 1),
        "cost_per_unit": "1.25",
    }
    data.update(overrides)
    return data


@pytest.fixture
async def rift_district(session, admin_user, farm):
    """The farm placed in Nakuru district of the Rift Valley region."""
    kenya = Country(code="KE", name="Kenya")
    session.add(kenya)
    await session.flush()
    service = ExtensionService(session)
    rift = await service.create_region(
        admin_user,
        {"country_id": kenya.country_id, "level": 1, "name": "Rift Valley", "slug": "rift"},
    )
    nakuru = await service.create_region(
        admin_user,
        {
            "country_id": kenya.country_id,
            "level": 2,
            "name": "Nakuru",
            "slug": "nakuru",
            "parent_id": rift.region_id,
        },
    )
    farm.district_id = nakuru.region_id
    await session.commit()
    return rift, nakuru


class TestBatchRules:
    """Test the pure batch rules."""

    def test_validate_batch(self):
        assert validate_batch_data({**new_batch(), "farm_id": "f"}) is None
        assert validate_batch_data(new_batch()) == "Farm ID is required"
        assert (
            validate_batch_data({**new_batch(initial_quantity=0), "farm_id": "f"})
            == "Initial quantity must be greater than 0"
        )
        assert (
            validate_batch_data({**new_batch(cost_per_unit=-1), "farm_id": "f"})
            == "Cost per unit cannot be negative"
        )

    def test_status(self):
        assert determine_batch_status(10) == "active"
        assert determine_batch_status(0) == "depleted"
        assert determine_batch_status(0, sold_quantity=5) == "sold"

    def test_health_species(self):
        assert health_species("poultry", "Layer - Isa Brown") == "layer"
        assert health_species("fish", "Tilapia") == "tilapia"
        assert health_species("fish", "Mixed") == "catfish"
        assert health_species("goats", "Galla") == "goats"
        assert health_species("poultry", "Kienyeji") is None

    def test_sale_and_expense_rules(self):
        sale = {"quantity": 5, "unit_price": "3.00", "date": date(2024, 3, 1)}
        assert validate_sale_data(sale, 10) is None
        assert validate_sale_data(sale, 4) == (
            "Insufficient stock in batch. Available: 4, Requested: 5"
        )
        assert validate_sale_data({**sale, "unit_price": "-1"}, None) == (
            "Unit price cannot be negative"
        )

        expense = {"category": "feed", "amount": 5, "date": date(2024, 3, 1), "description": "x"}
        assert validate_expense_data(expense) is None
        assert validate_expense_data({**expense, "description": " "}) == "Description is required"
        assert validate_expense_data({**expense, "category": "bribes"}) == (
            "Invalid expense category: bribes"
        )


class TestBatchLifecycle:
    """Test creating, editing and deleting batches."""

    async def test_create(self, session, owner_user, farm):
        batch = await BatchService(session).create_batch(owner_user, farm.farm_id, new_batch())

        assert batch.current_quantity == 200
        assert batch.status == "active"
        assert batch.total_cost == Decimal("250.00")

    async def test_create_validation(self, session, owner_user, farm):
        service = BatchService(session)
        with pytest.raises(AppError, match="Initial quantity must be greater than 0"):
            await service.create_batch(owner_user, farm.farm_id, new_batch(initial_quantity=0))
        with pytest.raises(AppError, match="Species is required"):
            await service.create_batch(owner_user, farm.farm_id, new_batch(species="  "))
        with pytest.raises(AppError, match="Invalid livestock type: llama"):
            await service.create_batch(owner_user, farm.farm_id, new_batch(livestock_type="llama"))

    async def test_worker_cannot_create(self, session, worker_user, worker_profile):
        with pytest.raises(AppError) as exc_info:
            await BatchService(session).create_batch(
                worker_user, worker_profile.farm_id, new_batch()
            )
        assert exc_info.value.name == "ACCESS_DENIED"

    async def test_update(self, session, owner_user, layer_batch):
        service = BatchService(session)
        with pytest.raises(AppError, match="Species cannot be empty"):
            await service.update_batch(owner_user, layer_batch.batch_id, {"species": ""})

        batch = await service.update_batch(
            owner_user, layer_batch.batch_id, {"cost_per_unit": Decimal("2.00")}
        )
        assert batch.total_cost == Decimal("1000.00")

    async def test_list_by_status(self, session, owner_user, farm, layer_batch):
        service = BatchService(session)
        sold_out = await service.create_batch(owner_user, farm.farm_id, new_batch())
        await service.update_batch(owner_user, sold_out.batch_id, {"status": "sold"})

        active = await service.list_batches(owner_user, farm.farm_id, "active")
        assert [b.batch.batch_id for b in active] == [layer_batch.batch_id]
        assert len(await service.list_batches(owner_user, farm.farm_id)) == 2

    async def test_delete_needs_no_records(self, session, owner_user, layer_batch):
        service = BatchService(session)
        record = await service.record_mortality(
            owner_user, layer_batch.batch_id, {"quantity": 3, "date": date(2024, 3, 2)}
        )

        with pytest.raises(AppError, match="Cannot delete batch with existing records") as info:
            await service.delete_batch(owner_user, layer_batch.batch_id)
        assert info.value.metadata == {"mortality": 1}

        await service.delete_mortality(owner_user, record.mortality_record_id)
        await service.delete_batch(owner_user, layer_batch.batch_id)

        with pytest.raises(AppError) as exc_info:
            await service.get_batch(owner_user, layer_batch.batch_id)
        assert exc_info.value.name == "BATCH_NOT_FOUND"


class TestMortality:
    """Test that deaths move batch stock."""

    async def test_record_decrements_quantity(self, session, owner_user, layer_batch):
        service = BatchService(session)
        await service.record_mortality(
            owner_user,
            layer_batch.batch_id,
            {"quantity": 30, "date": date(2024, 3, 2), "cause": "disease"},
        )

        assert layer_batch.current_quantity == 450
        assert layer_batch.status == "active"
        [record] = await service.list_mortality(owner_user, layer_batch.batch_id)
        assert record.cause == "disease"

    async def test_rejects_bad_records(self, session, owner_user, layer_batch):
        service = BatchService(session)
        with pytest.raises(AppError) as exc_info:
            await service.record_mortality(
                owner_user, layer_batch.batch_id, {"quantity": 481, "date": date(2024, 3, 2)}
            )
        assert exc_info.value.name == "INSUFFICIENT_STOCK"
        assert exc_info.value.metadata == {"current": 480, "requested": 481}

        with pytest.raises(AppError, match="Mortality quantity must be greater than 0"):
            await service.record_mortality(
                owner_user, layer_batch.batch_id, {"quantity": 0, "date": date(2024, 3, 2)}
            )
        with pytest.raises(AppError, match="Invalid mortality cause: aliens"):
            await service.record_mortality(
                owner_user,
                layer_batch.batch_id,
                {"quantity": 1, "date": date(2024, 3, 2), "cause": "aliens"},
            )
        assert layer_batch.current_quantity == 480

    async def test_total_loss_then_delete_restores(self, session, owner_user, farm):
        service = BatchService(session)
        batch = await service.create_batch(
            owner_user, farm.farm_id, new_batch(initial_quantity=10)
        )
        record = await service.record_mortality(
            owner_user, batch.batch_id, {"quantity": 10, "date": date(2024, 3, 2)}
        )
        assert batch.current_quantity == 0
        assert batch.status == "depleted"

        restored = await service.delete_mortality(owner_user, record.mortality_record_id)
        assert restored.current_quantity == 10
        assert restored.status == "active"

    async def test_worker_may_record(self, session, worker_user, worker_profile, layer_batch):
        record = await BatchService(session).record_mortality(
            worker_user, layer_batch.batch_id, {"quantity": 1, "date": date(2024, 3, 2)}
        )
        assert record.quantity == 1

    async def test_unknown_record(self, session, owner_user):
        with pytest.raises(AppError) as exc_info:
            await BatchService(session).delete_mortality(owner_user, uuid4())
        assert exc_info.value.name == "MORTALITY_RECORD_NOT_FOUND"


class TestBatchHealth:
    """Test mortality classification against regional thresholds."""

    async def test_default_thresholds(self, session, owner_user, layer_batch):
        service = BatchService(session)
        await service.record_mortality(
            owner_user, layer_batch.batch_id, {"quantity": 20, "date": date(2024, 3, 2)}
        )

        health = await service.get_batch(owner_user, layer_batch.batch_id)

        assert health.total_deaths == 20
        assert health.mortality_rate == 4.0
        # layer defaults: amber 3%, red 7%
        assert health.health_status == "amber"

    async def test_district_beats_region(
        self, session, admin_user, owner_user, layer_batch, rift_district
    ):
        rift, nakuru = rift_district
        extension = ExtensionService(session)
        service = BatchService(session)
        await service.record_mortality(
            owner_user, layer_batch.batch_id, {"quantity": 20, "date": date(2024, 3, 2)}
        )

        await extension.upsert_species_threshold(admin_user, "layer", 2, 3.5, rift.region_id)
        assert (await service.get_batch(owner_user, layer_batch.batch_id)).health_status == "red"

        await extension.upsert_species_threshold(admin_user, "layer", 5, 8, nakuru.region_id)
        assert (await service.get_batch(owner_user, layer_batch.batch_id)).health_status == "green"

    async def test_other_districts_ignored(
        self, session, admin_user, owner_user, layer_batch, rift_district
    ):
        rift, _ = rift_district
        await BatchService(session).record_mortality(
            owner_user, layer_batch.batch_id, {"quantity": 1, "date": date(2024, 3, 2)}
        )
        other = await ExtensionService(session).create_region(
            admin_user,
            {
                "country_id": rift.country_id,
                "level": 2,
                "name": "Baringo",
                "slug": "baringo",
                "parent_id": rift.region_id,
            },
        )
        await ExtensionService(session).upsert_species_threshold(
            admin_user, "layer", 0.1, 0.2, other.region_id
        )

        health = await BatchService(session).get_batch(owner_user, layer_batch.batch_id)
        assert health.health_status == "green"

    async def test_unmapped_species(self, session, owner_user, farm):
        service = BatchService(session)
        batch = await service.create_batch(owner_user, farm.farm_id, new_batch(species="Kienyeji"))

        [health] = await service.list_batches(owner_user, farm.farm_id)
        assert health.batch.batch_id == batch.batch_id
        assert health.health_status is None


class TestSales:
    """Test sales and their effect on batch stock."""

    async def test_sale_reduces_stock(self, session, owner_user, farm, layer_batch):
        sale = await FinanceService(session).create_sale(
            owner_user,
            farm.farm_id,
            {
                "livestock_type": "poultry",
                "batch_id": layer_batch.batch_id,
                "quantity": 80,
                "unit_price": "4.50",
                "date": date(2024, 3, 10),
                "customer_name": "Market",
            },
        )

        assert sale.total_amount == Decimal("360.00")
        assert layer_batch.current_quantity == 400
        assert layer_batch.status == "active"

    async def test_selling_everything_marks_sold(self, session, owner_user, farm, layer_batch):
        await FinanceService(session).create_sale(
            owner_user,
            farm.farm_id,
            {
                "livestock_type": "poultry",
                "batch_id": layer_batch.batch_id,
                "quantity": 480,
                "unit_price": 3,
                "date": date(2024, 3, 10),
            },
        )
        assert layer_batch.current_quantity == 0
        assert layer_batch.status == "sold"

    async def test_egg_sale_keeps_stock(self, session, owner_user, farm, layer_batch):
        await FinanceService(session).create_sale(
            owner_user,
            farm.farm_id,
            {
                "livestock_type": "eggs",
                "batch_id": layer_batch.batch_id,
                "quantity": 900,
                "unit_price": "0.15",
                "date": date(2024, 3, 10),
            },
        )
        assert layer_batch.current_quantity == 480

    async def test_oversell_rejected(self, session, owner_user, farm, layer_batch):
        with pytest.raises(AppError, match="Available: 480, Requested: 500") as exc_info:
            await FinanceService(session).create_sale(
                owner_user,
                farm.farm_id,
                {
                    "livestock_type": "poultry",
                    "batch_id": layer_batch.batch_id,
                    "quantity": 500,
                    "unit_price": 3,
                    "date": date(2024, 3, 10),
                },
            )
        assert exc_info.value.name == "INSUFFICIENT_STOCK"

    async def test_batch_from_other_farm(self, session, owner_user, layer_batch):
        other = await FarmService(session).create_farm(owner_user, "Hillside")
        with pytest.raises(AppError) as exc_info:
            await FinanceService(session).create_sale(
                owner_user,
                other.farm_id,
                {
                    "livestock_type": "poultry",
                    "batch_id": layer_batch.batch_id,
                    "quantity": 1,
                    "unit_price": 3,
                    "date": date(2024, 3, 10),
                },
            )
        assert exc_info.value.name == "BATCH_NOT_FOUND"

    async def test_list_newest_first(self, session, owner_user, farm):
        service = FinanceService(session)
        for day in (1, 15, 8):
            await service.create_sale(
                owner_user,
                farm.farm_id,
                {
                    "livestock_type": "goats",
                    "quantity": 1,
                    "unit_price": 40,
                    "date": date(2024, 3, day),
                },
            )

        sales, total = await service.list_sales(
            owner_user, farm.farm_id, start=date(2024, 3, 5), page_size=10
        )
        assert total == 2
        assert [s.date.day for s in sales] == [15, 8]


class TestExpenses:
    """Test expense recording."""

    async def test_create_and_filter(self, session, owner_user, farm, layer_batch):
        service = FinanceService(session)
        await service.create_expense(
            owner_user,
            farm.farm_id,
            {
                "category": "medicine",
                "amount": "12.345",
                "date": date(2024, 3, 3),
                "description": " Newcastle vaccine ",
                "batch_id": layer_batch.batch_id,
            },
        )
        await service.create_expense(
            owner_user,
            farm.farm_id,
            {
                "category": "utilities",
                "amount": 30,
                "date": date(2024, 3, 4),
                "description": "Power",
            },
        )

        expenses, total = await service.list_expenses(owner_user, farm.farm_id, "medicine")
        assert total == 1
        assert expenses[0].amount == Decimal("12.35")
        assert expenses[0].description == "Newcastle vaccine"

    async def test_validation_and_roles(self, session, owner_user, worker_user, worker_profile):
        service = FinanceService(session)
        expense = {"category": "feed", "amount": -1, "date": date(2024, 3, 3), "description": "x"}
        with pytest.raises(AppError, match="Amount cannot be negative"):
            await service.create_expense(owner_user, worker_profile.farm_id, expense)

        with pytest.raises(AppError) as exc_info:
            await service.create_expense(
                worker_user, worker_profile.farm_id, {**expense, "amount": 1}
            )
        assert exc_info.value.name == "ACCESS_DENIED"
