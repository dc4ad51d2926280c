# pawhaven/cli.py
import click
from flask import current_app
from flask.cli import with_appcontext

from pawhaven.models.user import Role
from pawhaven.utils.datetime_utils import DateTimeUtils


@click.command("promote-user")
@click.argument("email")
@click.option("--role", type=click.Choice([r.value for r in Role]), default=Role.SUPERADMIN.value,
              show_default=True, help="Role to assign.")
@with_appcontext
def promote_user_cmd(email: str, role: str):
    """Set the role of the user registered with EMAIL."""
    users = current_app.services['repositories'].users
    user = users.find_by_email(email.strip().lower())
    if not user:
        raise click.ClickException(f"No user with email {email}")
    users.find_by_id_and_update(user.user_id, {"role": role, "updated_at": DateTimeUtils.now()})
    click.echo(f"✔ {user.username} is now {role}.")
