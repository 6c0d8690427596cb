"""
Production orchestrator tests. The central property: a production either
fully succeeds or leaves inventory and records untouched.
"""

from datetime import date, datetime, timezone

import pytest

from bakehouse.models import InventoryMovement, ProductionRun, RawMaterial
from bakehouse.services import production_service
from bakehouse.services.errors import (
    InsufficientIngredientsError,
    InsufficientStockError,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from bakehouse.services.inventory_adjustment import MOVEMENT_PRODUCTION, get_raw_material, list_movements
from bakehouse.services.production_service import list_production_runs, produce
from bakehouse.services.types import OperationContext


def _snapshot():
    stock = {m.id: m.stock_quantity for m in RawMaterial.query.all()}
    return stock, ProductionRun.query.count(), InventoryMovement.query.count()


class TestProduce:

    def test_single_batch_deducts_flour(self, app_ctx, bread, flour, context):
        run = produce(bread.id, 1, context)

        assert run.quantity == 1
        assert run.recipe_id == bread.id
        assert run.user_id == context.actor_id
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(500)

        movement = list_movements(flour.id)[-1]
        assert movement.change_type == MOVEMENT_PRODUCTION
        assert movement.production_run_id == run.id
        assert movement.quantity_change == pytest.approx(-500)

    def test_shortfall_reported_and_nothing_changes(self, app_ctx, make_material, make_recipe, context):
        flour = make_material('Flour', 'g', stock=100)
        bread = make_recipe('Bread', [{'raw_material_id': flour.id, 'quantity': 500, 'unit': 'g'}])

        with pytest.raises(InsufficientIngredientsError) as exc_info:
            produce(bread.id, 1, context)

        [missing] = exc_info.value.missing
        assert missing['name'] == 'Flour'
        assert missing['required'] == pytest.approx(500)
        assert missing['available'] == pytest.approx(100)
        assert missing['unit_recipe'] == 'g'
        assert missing['unit_stock'] == 'g'
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(100)
        assert ProductionRun.query.count() == 0

    def test_one_short_ingredient_blocks_all_deductions(self, app_ctx, flour, sugar, make_recipe, context):
        cake = make_recipe('Cake', [
            {'raw_material_id': flour.id, 'quantity': 400, 'unit': 'g'},
            {'raw_material_id': sugar.id, 'quantity': 3, 'unit': 'kg'},
        ])
        before = _snapshot()

        with pytest.raises(InsufficientIngredientsError) as exc_info:
            produce(cake.id, 1, context)

        assert [m['name'] for m in exc_info.value.missing] == ['Sugar']
        assert _snapshot() == before

    def test_all_shortfalls_collected(self, app_ctx, flour, sugar, make_recipe, context):
        cake = make_recipe('Cake', [
            {'raw_material_id': flour.id, 'quantity': 600, 'unit': 'g'},
            {'raw_material_id': sugar.id, 'quantity': 1500, 'unit': 'g'},
        ])
        with pytest.raises(InsufficientIngredientsError) as exc_info:
            produce(cake.id, 2, context)
        assert {m['name'] for m in exc_info.value.missing} == {'Flour', 'Sugar'}

    def test_unconvertible_ingredient_is_insufficient(self, app_ctx, flour, make_recipe, context):
        odd = make_recipe('Odd', [{'raw_material_id': flour.id, 'quantity': 1, 'unit': 'u'}])
        with pytest.raises(InsufficientIngredientsError) as exc_info:
            produce(odd.id, 1, context)
        assert 'message' in exc_info.value.missing[0]
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(1000)

    def test_defensive_recheck_rolls_back_earlier_deductions(
        self, app_ctx, flour, sugar, make_recipe, context, monkeypatch
    ):
        cake = make_recipe('Cake', [
            {'raw_material_id': sugar.id, 'quantity': 1, 'unit': 'kg'},
            {'raw_material_id': flour.id, 'quantity': 5, 'unit': 'kg'},
        ])
        monkeypatch.setattr(production_service, 'find_shortfalls', lambda requirements: [])
        before = _snapshot()

        with pytest.raises(InsufficientStockError):
            produce(cake.id, 1, context)

        assert _snapshot() == before

    def test_unexpected_failure_becomes_transaction_error(self, app_ctx, bread, flour, context, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(production_service, 'deduct', _boom)
        before = _snapshot()

        with pytest.raises(TransactionError) as exc_info:
            produce(bread.id, 1, context)

        assert exc_info.value.is_client_error is False
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert _snapshot() == before

    @pytest.mark.parametrize('quantity', [0, -3, 2.5, True, None])
    def test_quantity_validation(self, app_ctx, bread, context, quantity):
        with pytest.raises(ValidationError):
            produce(bread.id, quantity, context)

    def test_unknown_recipe(self, app_ctx, context):
        with pytest.raises(NotFoundError):
            produce(404, 1, context)

    def test_stock_never_goes_negative(self, app_ctx, bread, flour, context):
        produce(bread.id, 1, context)
        produce(bread.id, 1, context)
        with pytest.raises(InsufficientIngredientsError):
            produce(bread.id, 1, context)
        assert get_raw_material(flour.id).stock_quantity == 0.0
        assert ProductionRun.query.count() == 2


class TestListProductionRuns:

    def test_filter_by_recipe_and_day(self, app_ctx, flour, make_recipe, baker_id):
        roll = make_recipe('Roll', [{'raw_material_id': flour.id, 'quantity': 10, 'unit': 'g'}])
        bun = make_recipe('Bun', [{'raw_material_id': flour.id, 'quantity': 10, 'unit': 'g'}])
        day_one = OperationContext.for_actor(baker_id, datetime(2024, 3, 1, 10, tzinfo=timezone.utc))
        day_two = OperationContext.for_actor(baker_id, datetime(2024, 3, 2, 10, tzinfo=timezone.utc))

        produce(roll.id, 1, day_one)
        produce(roll.id, 2, day_two)
        produce(bun.id, 3, day_two)

        assert [r.quantity for r in list_production_runs(recipe_id=roll.id)] == [2, 1]
        assert [r.quantity for r in list_production_runs(day=date(2024, 3, 2))] == [3, 2]
        assert [r.quantity for r in list_production_runs(recipe_id=roll.id, day=date(2024, 3, 1))] == [1]

    def test_unknown_recipe(self, app_ctx):
        with pytest.raises(NotFoundError):
            list_production_runs(recipe_id=12)

    def test_day_uses_local_calendar(self, app_ctx, bread, baker_id):
        late_evening = OperationContext.for_actor(baker_id, datetime(2024, 3, 2, 3, tzinfo=timezone.utc))
        produce(bread.id, 1, late_evening)

        assert list_production_runs(day=date(2024, 3, 1), tz_name='America/Bogota')[0].quantity == 1
        assert list_production_runs(day=date(2024, 3, 2), tz_name='America/Bogota') == []
        assert len(list_production_runs(day=date(2024, 3, 2))) == 1

    def test_unknown_timezone_rejected(self, app_ctx):
        with pytest.raises(ValidationError):
            list_production_runs(day=date(2024, 3, 1), tz_name='Mars/Olympus')
