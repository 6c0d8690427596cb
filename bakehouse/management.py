"""
Management commands for deployment and maintenance
"""
import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services.inventory_adjustment import low_stock_materials
from .services.sales_service import verify_sale_totals


@click.command('create-user')
@click.argument('username')
@click.option('--role', type=click.Choice(User.ROLES), default=User.ROLE_BAKER, show_default=True)
@click.option('--first-name', default=None)
@click.option('--last-name', default=None)
@with_appcontext
def create_user_command(username, role, first_name, last_name):
    """Create a bakery user"""
    if User.query.filter_by(username=username).first():
        raise click.ClickException(f"User {username} already exists")
    try:
        user = User(username=username, role=role, first_name=first_name, last_name=last_name)
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    click.echo(f"✅ Created user {username} ({role}) with id {user.id}")


@click.command('low-stock')
@with_appcontext
def low_stock_command():
    """List raw materials at or below their minimum threshold"""
    materials = low_stock_materials()
    if not materials:
        click.echo("ℹ️  No raw materials below threshold.")
        return
    for material in materials:
        click.echo(
            f"⚠️  {material.name}: {material.stock_quantity:g} {material.unit} "
            f"(minimum {material.min_threshold:g} {material.unit})"
        )


@click.command('verify-sale-totals')
@click.option('--repair', is_flag=True, help='Rewrite mismatched totals to the sum of their lines')
@with_appcontext
def verify_sale_totals_command(repair):
    """Check that every sale total equals the sum of its line subtotals"""
    mismatches = verify_sale_totals(repair=repair)
    if not mismatches:
        click.echo("✅ All sale totals match their lines.")
        return
    for mismatch in mismatches:
        click.echo(
            f"❌ Sale {mismatch.sale_id}: stored {mismatch.stored_total} != lines {mismatch.computed_total}"
        )
    if repair:
        click.echo(f"✅ Repaired {len(mismatches)} sale(s).")
    else:
        raise click.exceptions.Exit(1)


def register_commands(app):
    """Register CLI commands"""
    app.cli.add_command(create_user_command)

    # Maintenance and audit
    app.cli.add_command(low_stock_command)
    app.cli.add_command(verify_sale_totals_command)
