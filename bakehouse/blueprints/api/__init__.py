from flask import Blueprint

api_bp = Blueprint('api', __name__, url_prefix='/api')

# Import all route modules to register them
from .inventory_routes import inventory_api_bp  # noqa: E402
from .production_routes import production_api_bp  # noqa: E402
from .sales_routes import sales_api_bp  # noqa: E402

# Register sub-blueprints
api_bp.register_blueprint(inventory_api_bp)
api_bp.register_blueprint(production_api_bp)
api_bp.register_blueprint(sales_api_bp)
