"""
Pytest configuration and shared fixtures for bakehouse tests.
"""
import os
import tempfile

import pytest

from bakehouse import create_app
from bakehouse.extensions import db
from bakehouse.models import User
from bakehouse.services.inventory_adjustment import create_raw_material
from bakehouse.services.recipe_service import create_recipe
from bakehouse.services.types import OperationContext


@pytest.fixture(scope='function')
def app():
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    app = create_app({
        'TESTING': True,
        'DATABASE_URL': f'sqlite:///{db_path}',
        'SECRET_KEY': 'test-secret-key',
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_ctx(app):
    """Provide an application context for service-level tests."""
    with app.app_context():
        yield


def _create_user(app, username, role, is_active=True):
    with app.app_context():
        user = User(username=username, role=role, is_active=is_active)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def baker_id(app):
    return _create_user(app, 'panadero1', User.ROLE_BAKER)


@pytest.fixture
def admin_id(app):
    return _create_user(app, 'admin1', User.ROLE_ADMIN)


@pytest.fixture
def context(baker_id):
    return OperationContext.for_actor(baker_id)


@pytest.fixture
def admin_context(admin_id):
    return OperationContext.for_actor(admin_id)


@pytest.fixture
def make_material(app, context):
    def _make(name, unit, stock=0.0, threshold=0.0, unit_cost=None):
        with app.app_context():
            return create_raw_material(
                name, unit, context, stock_quantity=stock, min_threshold=threshold, unit_cost=unit_cost
            )
    return _make


@pytest.fixture
def make_recipe(app, context):
    def _make(name, ingredients, sale_price=2.5):
        with app.app_context():
            return create_recipe(name, sale_price, ingredients, context)
    return _make


@pytest.fixture
def flour(make_material):
    """1000 g of flour, low-stock threshold 200 g."""
    return make_material('Flour', 'g', stock=1000, threshold=200, unit_cost=0.002)


@pytest.fixture
def sugar(make_material):
    return make_material('Sugar', 'kg', stock=2, threshold=0.5)


@pytest.fixture
def bread(make_recipe, flour):
    """Bread needs 500 g of flour per unit."""
    return make_recipe('Bread', [{'raw_material_id': flour.id, 'quantity': 500, 'unit': 'g'}])


@pytest.fixture
def login_as(client):
    def _login(user_id):
        with client.session_transaction() as sess:
            sess['_user_id'] = str(user_id)
            sess['_fresh'] = True
    return _login
