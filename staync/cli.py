"""CLI commands for staync."""

from __future__ import annotations

import base64
import logging
import re
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

import click

from staync.config import set_config_path

if TYPE_CHECKING:
    from alembic.config import Config as AlembicConfig

PACKAGE_DIR = Path(__file__).parent


@click.group()
@click.version_option(package_name="staync")
@click.option(
    "-f",
    "--config-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML config file to load instead of app.yaml",
)
def cli(config_file):
    """staync - travel tweets, messages and plans."""
    if config_file:
        set_config_path(config_file)


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", default=8080, type=int, show_default=True, help="Port to bind")
@click.option("--workers", default=1, type=int, show_default=True, help="Worker processes")
@click.option("--reload", is_flag=True, help="Restart on code changes (forces one worker)")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    show_default=True,
)
def serve(host, port, workers, reload, log_level):
    """Run the API server with Hypercorn."""
    from hypercorn.config import Config
    from hypercorn.run import run

    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = Config()
    config.application_path = "staync.asgi:app"
    config.bind = [f"{host}:{port}"]
    config.loglevel = log_level.upper()
    config.include_server_header = False
    config.use_reloader = reload
    config.workers = 1 if reload else workers
    # SSE streams stay open; let them end when the server stops
    config.graceful_timeout = 5

    run(config)



def generate_secret(fmt: str = "urlsafe", length: int = 32) -> str:
    if fmt == "urlsafe":
        return secrets.token_urlsafe(length)
    if fmt == "hex":
        return secrets.token_hex(length)
    return base64.b64encode(secrets.token_bytes(length)).decode("ascii")


def write_secret(env_path: Path, key: str) -> None:
    """Set SECRET_KEY in ``env_path``, replacing an existing value."""
    env_content = env_path.read_text() if env_path.exists() else ""
    secret_key_pattern = re.compile(r"^SECRET_KEY=.*$", re.MULTILINE)
    new_line = f"SECRET_KEY={key}"

    if secret_key_pattern.search(env_content):
        env_content = secret_key_pattern.sub(new_line, env_content)
    else:
        if env_content and not env_content.endswith("\n"):
            env_content += "\n"
        env_content += new_line + "\n"

    env_path.write_text(env_content)


@cli.command()
@click.option("--write", type=click.Path(), default=None, help="Write SECRET_KEY to a .env file")
@click.option(
    "--format",
    "fmt",
    default="urlsafe",
    type=click.Choice(["urlsafe", "hex", "base64"]),
    help="Output format for the secret key",
)
@click.option("--length", default=32, type=int, help="Number of random bytes")
def secret(write, fmt, length):
    """Generate a secure secret key."""
    key = generate_secret(fmt, length)
    if write:
        write_secret(Path(write), key)
        click.echo(f"SECRET_KEY written to {write}")
    else:
        click.echo(key)


def alembic_config() -> AlembicConfig:
    """Alembic config from ./alembic.ini (or the packaged one) with the packaged scripts."""
    from alembic.config import Config as AlembicConfig

    for ini in (Path.cwd() / "alembic.ini", PACKAGE_DIR / "alembic.ini"):
        if ini.exists():
            break
    else:
        raise click.ClickException("alembic.ini not found")

    cfg = AlembicConfig(str(ini))
    cfg.set_main_option("script_location", str(PACKAGE_DIR / "alembic"))
    return cfg


def _run_alembic(args: list[str]) -> None:
    from alembic.config import CommandLine

    cmd = CommandLine(prog="staync db")
    options = cmd.parser.parse_args(args)
    if not hasattr(options, "cmd"):
        cmd.parser.error("too few arguments")

    cfg = alembic_config()
    cfg.cmd_opts = options
    cmd.run_cmd(cfg, options)



@cli.command(context_settings=dict(ignore_unknown_options=True, allow_extra_args=True))
@click.pass_context
def db(ctx):
    """Run database migrations via Alembic.

    \b
    Examples:
        staync db upgrade head     # Apply all migrations
        staync db downgrade -1     # Roll back one migration
        staync db current          # Show current revision
        staync db revision -m "description" --autogenerate
    """
    if not ctx.args:
        click.echo(ctx.get_help())
        return

    _run_alembic(list(ctx.args))


if __name__ == "__main__":
    cli()
