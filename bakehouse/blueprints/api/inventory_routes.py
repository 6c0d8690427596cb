import logging

from flask import Blueprint, request
from flask_login import login_required

from ...models import User
from ...services import inventory_adjustment
from ...services.unit_conversion import ConversionEngine
from ...utils.api_responses import APIResponse
from ...utils.permissions import role_required
from ._helpers import arg_datetime, json_body, operation_context

logger = logging.getLogger(__name__)

inventory_api_bp = Blueprint('inventory_api', __name__)

ANY_ROLE = (User.ROLE_BAKER, User.ROLE_ADMIN)


@inventory_api_bp.route('/raw-materials', methods=['GET'])
@login_required
def list_raw_materials():
    materials = inventory_adjustment.list_raw_materials()
    return APIResponse.success([m.to_dict() for m in materials])


@inventory_api_bp.route('/raw-materials', methods=['POST'])
@role_required(User.ROLE_ADMIN)
def create_raw_material():
    data = json_body()
    record = inventory_adjustment.create_raw_material(
        name=data.get('name'),
        unit=data.get('unit'),
        context=operation_context(),
        stock_quantity=data.get('stock_quantity', 0.0),
        min_threshold=data.get('min_threshold', 0.0),
        unit_cost=data.get('unit_cost'),
    )
    return APIResponse.success(record.to_dict(), "Raw material created", 201)


@inventory_api_bp.route('/raw-materials/<int:raw_material_id>/adjust', methods=['POST'])
@role_required(User.ROLE_ADMIN)
def adjust_stock(raw_material_id):
    data = json_body()
    record = inventory_adjustment.adjust_stock(
        raw_material_id,
        data.get('delta'),
        data.get('reason'),
        operation_context(),
    )
    return APIResponse.success(record.to_dict(), "Stock adjusted")


@inventory_api_bp.route('/raw-materials/low-stock', methods=['GET'])
@login_required
def low_stock():
    materials = inventory_adjustment.low_stock_materials()
    return APIResponse.success([m.to_dict() for m in materials])


@inventory_api_bp.route('/raw-materials/<int:raw_material_id>/movements', methods=['GET'])
@login_required
def movements(raw_material_id):
    history = inventory_adjustment.list_movements(raw_material_id)
    return APIResponse.success([m.to_dict() for m in history])


@inventory_api_bp.route('/units/convert', methods=['GET'])
@login_required
def convert_units():
    result = ConversionEngine.convert_units(
        request.args.get('quantity', type=float),
        request.args.get('from'),
        request.args.get('to'),
    )
    if not result.success:
        return APIResponse.error(
            message=f"Cannot convert {result.from_unit} to {result.to_unit}",
            errors=result.to_dict(),
            status_code=422,
            error_code=result.error_code,
        )
    return APIResponse.success(result.to_dict())


@inventory_api_bp.route('/inflows', methods=['POST'])
@role_required(*ANY_ROLE)
def record_inflow():
    data = json_body()
    record = inventory_adjustment.record_inflow(
        raw_material_id=data.get('raw_material_id'),
        quantity=data.get('quantity'),
        context=operation_context(),
        supplier=data.get('supplier'),
        unit_cost=data.get('unit_cost'),
        total_cost=data.get('total_cost'),
        unit=data.get('unit'),
        invoice_number=data.get('invoice_number'),
        notes=data.get('notes'),
    )
    return APIResponse.success(record.to_dict(), "Inflow recorded", 201)


@inventory_api_bp.route('/inflows', methods=['GET'])
@login_required
def list_inflows():
    inflows = inventory_adjustment.list_inflows(
        raw_material_id=request.args.get('raw_material_id', type=int),
        start=arg_datetime('start'),
        end=arg_datetime('end'),
    )
    return APIResponse.success([i.to_dict() for i in inflows])


@inventory_api_bp.route('/inflows/<int:inflow_id>', methods=['PUT', 'PATCH'])
@role_required(User.ROLE_ADMIN)
def edit_inflow(inflow_id):
    record = inventory_adjustment.edit_inflow(inflow_id, json_body(), operation_context())
    return APIResponse.success(record.to_dict(), "Inflow updated")


@inventory_api_bp.route('/inflows/<int:inflow_id>', methods=['DELETE'])
@role_required(User.ROLE_ADMIN)
def delete_inflow(inflow_id):
    inventory_adjustment.delete_inflow(inflow_id, operation_context())
    return APIResponse.success({'deleted': True}, "Inflow deleted")
