"""
Ingredient inflow tests: cost derivation, stock application, edit
reverse-then-reapply semantics and deletion floored at zero.
"""

from datetime import datetime, timedelta, timezone

import pytest

from bakehouse.extensions import db
from bakehouse.models import IngredientInflow
from bakehouse.services._transaction import atomic
from bakehouse.services.errors import (
    InsufficientStockError,
    NotFoundError,
    UnconvertibleUnitsError,
    ValidationError,
)
from bakehouse.services.inventory_adjustment import (
    MOVEMENT_INFLOW,
    MOVEMENT_INFLOW_DELETE,
    MOVEMENT_INFLOW_REVERSAL,
    deduct,
    delete_inflow,
    edit_inflow,
    get_raw_material,
    list_inflows,
    list_movements,
    record_inflow,
)
from bakehouse.services.types import OperationContext


def _stock(material_id):
    return get_raw_material(material_id).stock_quantity


class TestRecordInflow:

    def test_unit_cost_derives_total(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.003)
        assert inflow.total_cost == pytest.approx(6.0)
        assert inflow.unit == 'g'
        assert inflow.user_id == context.actor_id
        assert _stock(flour.id) == pytest.approx(3000)

    def test_total_cost_derives_unit_cost(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', total_cost=5.0)
        assert inflow.unit_cost == pytest.approx(0.0025)

    def test_material_unit_cost_is_not_averaged(self, app_ctx, flour, context):
        record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.01)
        assert get_raw_material(flour.id).unit_cost == pytest.approx(0.002)

    def test_inflow_unit_converted_to_stock_unit(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2, context, supplier='Molinos SA', unit_cost=1.2, unit='kg')
        assert inflow.quantity == 2
        assert inflow.unit == 'kg'
        assert _stock(flour.id) == pytest.approx(3000)

    def test_unconvertible_unit_leaves_nothing(self, app_ctx, flour, context):
        with pytest.raises(UnconvertibleUnitsError):
            record_inflow(flour.id, 3, context, supplier='Molinos SA', unit_cost=1, unit='u')
        assert IngredientInflow.query.count() == 0
        assert _stock(flour.id) == pytest.approx(1000)

    @pytest.mark.parametrize('kwargs', [
        {'quantity': 0, 'supplier': 'X', 'unit_cost': 1},
        {'quantity': 10, 'supplier': '', 'unit_cost': 1},
        {'quantity': 10, 'supplier': 'X'},
        {'quantity': 10, 'supplier': 'X', 'unit_cost': -1},
    ])
    def test_validation(self, app_ctx, flour, context, kwargs):
        with pytest.raises(ValidationError):
            record_inflow(flour.id, context=context, **kwargs)

    def test_unknown_material(self, app_ctx, context):
        with pytest.raises(NotFoundError):
            record_inflow(99, 10, context, supplier='X', unit_cost=1)

    def test_movement_references_inflow(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 500, context, supplier='Molinos SA', unit_cost=0.002)
        movement = list_movements(flour.id)[-1]
        assert movement.change_type == MOVEMENT_INFLOW
        assert movement.inflow_id == inflow.id
        assert movement.quantity_change == pytest.approx(500)


class TestEditInflow:

    def test_edit_reverses_then_reapplies(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.002)
        assert _stock(flour.id) == pytest.approx(3000)

        updated = edit_inflow(inflow.id, {'quantity': 1500}, context)

        assert updated.quantity == pytest.approx(1500)
        # net -500 against the first recording, not +1500 on top of it
        assert _stock(flour.id) == pytest.approx(2500)
        reversal, reapply = list_movements(flour.id)[-2:]
        assert reversal.change_type == MOVEMENT_INFLOW_REVERSAL
        assert reversal.quantity_change == pytest.approx(-2000)
        assert reapply.change_type == MOVEMENT_INFLOW
        assert reapply.quantity_change == pytest.approx(1500)

    def test_quantity_change_recomputes_total(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.002)
        updated = edit_inflow(inflow.id, {'quantity': 1000}, context)
        assert updated.total_cost == pytest.approx(2.0)
        assert updated.unit_cost == pytest.approx(0.002)

    def test_total_cost_recomputes_unit_cost(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.002)
        updated = edit_inflow(inflow.id, {'total_cost': 8.0}, context)
        assert updated.unit_cost == pytest.approx(0.004)

    def test_moving_inflow_to_another_material(self, app_ctx, flour, sugar, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.002)
        edit_inflow(inflow.id, {'raw_material_id': sugar.id}, context)
        assert _stock(flour.id) == pytest.approx(1000)
        # 2000 g lands on a kilogram-stocked material as 2 kg
        assert _stock(sugar.id) == pytest.approx(4)

    def test_edit_after_partial_consumption(self, app_ctx, make_material, context):
        butter = make_material('Butter', 'g')
        inflow = record_inflow(butter.id, 2000, context, supplier='Lácteos', unit_cost=0.01)
        with atomic('consume'):
            deduct(butter.id, 1400, context)

        edit_inflow(inflow.id, {'quantity': 1500}, context)
        assert _stock(butter.id) == pytest.approx(100)

    def test_edit_that_would_go_negative_is_rejected(self, app_ctx, make_material, context):
        butter = make_material('Butter', 'g')
        inflow = record_inflow(butter.id, 1000, context, supplier='Lácteos', unit_cost=0.01)
        with atomic('consume'):
            deduct(butter.id, 900, context)

        with pytest.raises(InsufficientStockError):
            edit_inflow(inflow.id, {'quantity': 500}, context)

        assert _stock(butter.id) == pytest.approx(100)
        assert db.session.get(IngredientInflow, inflow.id).quantity == pytest.approx(1000)

    def test_unknown_fields_rejected(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 10, context, supplier='X', unit_cost=1)
        with pytest.raises(ValidationError):
            edit_inflow(inflow.id, {'received_at': '2024-01-01'}, context)

    def test_unknown_inflow(self, app_ctx, context):
        with pytest.raises(NotFoundError):
            edit_inflow(5, {'quantity': 1}, context)


class TestDeleteInflow:

    def test_delete_reverses_stock(self, app_ctx, flour, context):
        inflow = record_inflow(flour.id, 2000, context, supplier='Molinos SA', unit_cost=0.002)
        delete_inflow(inflow.id, context)
        assert _stock(flour.id) == pytest.approx(1000)
        assert db.session.get(IngredientInflow, inflow.id) is None

    def test_delete_floors_at_zero(self, app_ctx, make_material, context):
        butter = make_material('Butter', 'g')
        inflow = record_inflow(butter.id, 500, context, supplier='Lácteos', unit_cost=0.01)
        with atomic('consume'):
            deduct(butter.id, 300, context)

        delete_inflow(inflow.id, context)

        assert _stock(butter.id) == 0.0
        movement = list_movements(butter.id)[-1]
        assert movement.change_type == MOVEMENT_INFLOW_DELETE
        assert movement.quantity_change == pytest.approx(-200)
        assert movement.inflow_id == inflow.id

    def test_unknown_inflow(self, app_ctx, context):
        with pytest.raises(NotFoundError):
            delete_inflow(5, context)


class TestListInflows:

    def test_filters_and_order(self, app_ctx, flour, sugar, baker_id):
        base = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        for offset, material in enumerate([flour, flour, sugar]):
            ctx = OperationContext.for_actor(baker_id, base + timedelta(days=offset))
            record_inflow(material.id, 1, ctx, supplier='X', unit_cost=1)

        flour_inflows = list_inflows(raw_material_id=flour.id)
        assert len(flour_inflows) == 2
        assert flour_inflows[0].received_at > flour_inflows[1].received_at

        window = list_inflows(start=base + timedelta(hours=12), end=base + timedelta(days=3))
        assert [i.raw_material_id for i in window] == [sugar.id, flour.id]

    def test_inverted_range(self, app_ctx):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationError):
            list_inflows(start=now, end=now - timedelta(days=1))
