from flask import Blueprint, current_app, request
from flask_login import login_required

from ...models import User
from ...services import production_service, recipe_service
from ...services.stock_check import check_inventory, compute_requirements
from ...utils.api_responses import APIResponse
from ...utils.permissions import role_required
from ._helpers import arg_date, json_body, operation_context

production_api_bp = Blueprint('production_api', __name__)


@production_api_bp.route('/recipes', methods=['POST'])
@role_required(User.ROLE_ADMIN)
def create_recipe():
    data = json_body()
    record = recipe_service.create_recipe(
        name=data.get('name'),
        sale_price=data.get('sale_price'),
        ingredients=data.get('ingredients'),
        context=operation_context(),
        instructions=data.get('instructions'),
        image=data.get('image'),
    )
    return APIResponse.success(record.to_dict(), "Recipe created", 201)


@production_api_bp.route('/recipes/<int:recipe_id>', methods=['GET'])
@login_required
def get_recipe(recipe_id):
    return APIResponse.success(recipe_service.get_recipe(recipe_id).to_dict())


@production_api_bp.route('/recipes/<int:recipe_id>/requirements', methods=['GET'])
@login_required
def requirements(recipe_id):
    reqs = compute_requirements(recipe_id, request.args.get('quantity', type=int))
    return APIResponse.success([r.to_dict() for r in reqs])


@production_api_bp.route('/recipes/<int:recipe_id>/inventory-check', methods=['GET'])
@login_required
def inventory_check(recipe_id):
    """Always 200: an insufficient check is a valid answer, not an error."""
    result = check_inventory(recipe_id, request.args.get('quantity', type=int))
    return APIResponse.success(result.to_dict())


@production_api_bp.route('/production', methods=['POST'])
@role_required(User.ROLE_BAKER, User.ROLE_ADMIN)
def produce():
    data = json_body()
    run = production_service.produce(data.get('recipe_id'), data.get('quantity'), operation_context())
    return APIResponse.success(run.to_dict(), "Production recorded", 201)


@production_api_bp.route('/production', methods=['GET'])
@login_required
def list_production():
    runs = production_service.list_production_runs(
        recipe_id=request.args.get('recipe_id', type=int),
        day=arg_date('day'),
        tz_name=request.args.get('tz') or current_app.config.get('BAKERY_TIMEZONE', 'UTC'),
    )
    return APIResponse.success([r.to_dict() for r in runs])
