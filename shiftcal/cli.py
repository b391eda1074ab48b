"""Flask CLI commands."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import select

from shiftcal.models import User
from shiftcal.transaction import unit_of_work
from shiftcal.users import create_user, normalize_email


@click.command("create-user")
@click.argument("email")
@click.argument("password")
@with_appcontext
def create_user_command(email: str, password: str) -> None:
    """Create a user together with its default shift template."""
    if len(password) < 8:
        raise click.BadParameter("Password must be at least 8 characters.", param_hint="PASSWORD")

    with unit_of_work() as session:
        existing = session.execute(select(User.id).where(User.email == normalize_email(email))).scalar_one_or_none()
        if existing is not None:
            raise click.ClickException(f"User {normalize_email(email)} already exists.")
        user = create_user(session, email, password)
        user_id = user.id

    current_app.logger.info("User %s created from CLI.", user_id)
    click.echo(f"Created user {user_id}")
