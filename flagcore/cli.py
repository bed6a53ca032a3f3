# flagcore/cli.py
import click
from flask import current_app
from flask.cli import AppGroup

from .errors import FlagError
from .models import ENVIRONMENTS

flags_cli = AppGroup("flags", help="Manage feature flags.")


def _manager():
    return current_app.extensions["flag_manager"]


def _run(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except FlagError as e:
        raise click.ClickException(f"{e.code}: {e.message}") from e


@flags_cli.command("seed")
def seed():
    """Create the flags listed in FLAGS_SEED, skipping existing keys."""
    created = []
    for key, name in (current_app.config.get("FLAGS_SEED") or {}).items():
        if _manager().store.find_by_key(key) is None:
            _run(_manager().create_flag, key, name)
            created.append(key)
    click.echo("Seeded feature flags: " + (", ".join(created) or "none"))


@flags_cli.command("list")
@click.option("--environment", "-e", default=None, help="Environment to list (default: FLAGS_DEFAULT_ENVIRONMENT).")
def list_flags(environment):
    env = environment or current_app.config["FLAGS_DEFAULT_ENVIRONMENT"]
    for flag in _run(_manager().list_flags, env):
        state = "on " if flag.enabled else "off"
        click.echo(f"{state} {flag.key}\t{flag.name}\t{flag.description}")


@flags_cli.command("create")
@click.argument("key")
@click.argument("name")
@click.option("--description", "-d", default=None)
def create(key, name, description):
    summary = _run(_manager().create_flag, key, name, description)
    click.echo(f"created {summary.key} in {len(ENVIRONMENTS)} environments")


@flags_cli.command("enable")
@click.argument("key")
@click.argument("environment")
def enable(key, environment):
    record = _run(_manager().enable_flag, key, environment)
    click.echo(f"enabled {record.key} in {record.environment}")


@flags_cli.command("disable")
@click.argument("key")
@click.argument("environment")
def disable(key, environment):
    record = _run(_manager().disable_flag, key, environment)
    click.echo(f"disabled {record.key} in {record.environment}")


@flags_cli.command("delete")
@click.argument("key")
def delete(key):
    _run(_manager().delete_flag, key)
    click.echo(f"deleted {key}")
