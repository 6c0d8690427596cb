from flask import Blueprint
from flask_login import login_required

from ...models import User
from ...services import sales_service
from ...utils.api_responses import APIResponse
from ...utils.permissions import role_required
from ._helpers import arg_datetime, json_body, operation_context

sales_api_bp = Blueprint('sales_api', __name__)


@sales_api_bp.route('/recipes/<int:recipe_id>/availability', methods=['GET'])
@login_required
def availability(recipe_id):
    return APIResponse.success({
        'recipe_id': recipe_id,
        'available': sales_service.available_to_sell(recipe_id),
    })


@sales_api_bp.route('/sales', methods=['POST'])
@role_required(User.ROLE_BAKER, User.ROLE_ADMIN)
def create_sale():
    sale = sales_service.sell(json_body().get('lines'), operation_context())
    return APIResponse.success(sale.to_dict(), "Sale recorded", 201)


@sales_api_bp.route('/sales', methods=['GET'])
@login_required
def list_sales():
    sales = sales_service.list_sales(start=arg_datetime('start'), end=arg_datetime('end'))
    return APIResponse.success([s.to_dict() for s in sales])


@sales_api_bp.route('/sales/<int:sale_id>', methods=['GET'])
@login_required
def get_sale(sale_id):
    return APIResponse.success(sales_service.get_sale(sale_id).to_dict())


@sales_api_bp.route('/sales/<int:sale_id>/void', methods=['POST'])
@role_required(User.ROLE_ADMIN)
def void_sale(sale_id):
    sale = sales_service.void_sale(sale_id, json_body().get('reason'), operation_context())
    return APIResponse.success(sale.to_dict(), "Sale voided")
