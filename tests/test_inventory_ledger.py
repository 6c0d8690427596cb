"""
Stock ledger tests: availability reads, deductions with the defensive
recheck, restores, inflow application and the movement history.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from bakehouse.extensions import db
from bakehouse.models import InventoryMovement, RawMaterial
from bakehouse.services._transaction import atomic
from bakehouse.services.errors import InsufficientStockError, NotFoundError, ValidationError
from bakehouse.services.inventory_adjustment import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_INFLOW,
    MOVEMENT_OPENING,
    MOVEMENT_PRODUCTION,
    MOVEMENT_RESTORE,
    adjust_stock,
    apply_inflow,
    check_available,
    create_raw_material,
    deduct,
    get_raw_material,
    list_movements,
    low_stock_materials,
    restore,
)


class TestCheckAvailable:

    def test_enough_and_not_enough(self, app_ctx, flour):
        assert check_available(flour.id, 1000) is True
        assert check_available(flour.id, 1000.5) is False

    def test_unknown_material(self, app_ctx):
        with pytest.raises(NotFoundError):
            check_available(42, 1)


class TestDeduct:

    def test_deduct_updates_stock_and_history(self, app_ctx, flour, context):
        with atomic('test'):
            record = deduct(flour.id, 300, context)

        assert record.stock_quantity == pytest.approx(700)
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(700)

        movement = list_movements(flour.id)[-1]
        assert movement.change_type == MOVEMENT_PRODUCTION
        assert movement.quantity_change == pytest.approx(-300)
        assert movement.resulting_stock == pytest.approx(700)
        assert movement.created_by == context.actor_id

    def test_defensive_recheck_rejects_overdraw(self, app_ctx, flour, context):
        with pytest.raises(InsufficientStockError) as exc_info:
            with atomic('test'):
                deduct(flour.id, 1200, context)

        assert exc_info.value.missing[0]['name'] == 'Flour'
        assert exc_info.value.missing[0]['required'] == pytest.approx(1200)
        assert exc_info.value.missing[0]['available'] == pytest.approx(1000)
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(1000)

    def test_second_deduction_in_same_transaction_sees_first(self, app_ctx, flour, context):
        with pytest.raises(InsufficientStockError):
            with atomic('test'):
                deduct(flour.id, 600, context)
                deduct(flour.id, 600, context)
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(1000)

    def test_float_noise_lands_on_zero(self, app_ctx, flour, context):
        with atomic('test'):
            deduct(flour.id, 1000 + 1e-12, context)
        assert get_raw_material(flour.id).stock_quantity == 0.0

    @pytest.mark.parametrize('quantity', [0, -5, 'ten'])
    def test_invalid_quantity(self, app_ctx, flour, context, quantity):
        with pytest.raises(ValidationError):
            deduct(flour.id, quantity, context)

    def test_last_updated_at_moves(self, app_ctx, flour, context):
        with atomic('test'):
            record = deduct(flour.id, 1, context)
        assert record.last_updated_at == context.stored_timestamp


class TestRestoreAndInflow:

    def test_restore_is_inverse_of_deduct(self, app_ctx, flour, context):
        with atomic('test'):
            deduct(flour.id, 250, context)
            record = restore(flour.id, 250, context)
        assert record.stock_quantity == pytest.approx(1000)
        assert list_movements(flour.id)[-1].change_type == MOVEMENT_RESTORE

    def test_apply_inflow_never_touches_unit_cost(self, app_ctx, flour, context):
        with atomic('test'):
            record = apply_inflow(flour.id, 500, context)
        assert record.stock_quantity == pytest.approx(1500)
        assert record.unit_cost == pytest.approx(0.002)
        assert list_movements(flour.id)[-1].change_type == MOVEMENT_INFLOW


class TestRawMaterials:

    def test_opening_stock_goes_through_ledger(self, app_ctx, flour):
        [opening] = list_movements(flour.id)
        assert opening.change_type == MOVEMENT_OPENING
        assert opening.quantity_change == pytest.approx(1000)

    def test_zero_stock_has_no_history(self, app_ctx, context):
        record = create_raw_material('Salt', 'g', context)
        assert record.stock_quantity == 0
        assert list_movements(record.id) == []

    def test_label_is_stored_as_code(self, app_ctx, context):
        record = create_raw_material('Milk', 'Litros (L)', context, stock_quantity=3)
        assert record.unit == 'L'

    @pytest.mark.parametrize('kwargs', [
        {'name': '', 'unit': 'g'},
        {'name': 'Salt', 'unit': 'pinch'},
        {'name': 'Salt', 'unit': 'g', 'stock_quantity': -1},
        {'name': 'Salt', 'unit': 'g', 'min_threshold': -1},
    ])
    def test_creation_validation(self, app_ctx, context, kwargs):
        with pytest.raises(ValidationError):
            create_raw_material(context=context, **kwargs)

    def test_low_stock_includes_threshold_boundary(self, app_ctx, make_material):
        at = make_material('Butter', 'g', stock=200, threshold=200)
        below = make_material('Eggs', 'u', stock=3, threshold=12)
        make_material('Water', 'L', stock=50, threshold=5)

        names = [m.name for m in low_stock_materials()]
        assert names == [below.name, at.name]
        assert all(m.is_low_stock for m in low_stock_materials())

    def test_movements_for_unknown_material(self, app_ctx):
        with pytest.raises(NotFoundError):
            list_movements(7)

    def test_stock_column_rejects_negative_values(self, app_ctx, flour):
        material = db.session.get(RawMaterial, flour.id)
        material.stock_quantity = -1
        with pytest.raises(IntegrityError):
            db.session.flush()
        db.session.rollback()
        assert InventoryMovement.query.filter_by(raw_material_id=flour.id).count() == 1


class TestAdjustStock:

    def test_positive_correction(self, app_ctx, flour, admin_context, admin_id):
        record = adjust_stock(flour.id, 250, 'Recount after delivery', admin_context)

        assert record.stock_quantity == pytest.approx(1250)
        movement = list_movements(flour.id)[-1]
        assert movement.change_type == MOVEMENT_ADJUSTMENT
        assert movement.quantity_change == pytest.approx(250)
        assert movement.resulting_stock == pytest.approx(1250)
        assert movement.notes == 'Recount after delivery'
        assert movement.created_by == admin_id

    def test_negative_correction_updates_timestamp(self, app_ctx, flour, admin_context):
        record = adjust_stock(flour.id, -400, 'Spoiled sack', admin_context)

        assert record.stock_quantity == pytest.approx(600)
        assert record.last_updated_at == admin_context.stored_timestamp
        assert list_movements(flour.id)[-1].quantity_change == pytest.approx(-400)

    def test_overdraw_rejected_and_nothing_changes(self, app_ctx, flour, admin_context):
        with pytest.raises(InsufficientStockError) as exc_info:
            adjust_stock(flour.id, -1500, 'Inventory count', admin_context)

        [entry] = exc_info.value.missing
        assert entry['name'] == 'Flour'
        assert entry['required'] == pytest.approx(1500)
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(1000)
        assert len(list_movements(flour.id)) == 1

    def test_correction_to_exactly_zero(self, app_ctx, flour, admin_context):
        assert adjust_stock(flour.id, -1000, 'Discarded', admin_context).stock_quantity == 0

    @pytest.mark.parametrize('delta,reason', [
        (100, ''),
        (100, None),
        (0, 'Recount'),
        ('lots', 'Recount'),
        (float('nan'), 'Recount'),
    ])
    def test_validation(self, app_ctx, flour, admin_context, delta, reason):
        with pytest.raises(ValidationError):
            adjust_stock(flour.id, delta, reason, admin_context)
        assert get_raw_material(flour.id).stock_quantity == pytest.approx(1000)

    def test_unknown_material(self, app_ctx, admin_context):
        with pytest.raises(NotFoundError):
            adjust_stock(99, 5, 'Recount', admin_context)
