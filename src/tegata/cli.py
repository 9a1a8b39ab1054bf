"""Command-line interface for Tegata (tegata)."""

import logging
import sys
from pathlib import Path

import click
import yaml

from tegata import __version__
from tegata.core.manager import CookieManager

DEFAULT_CONFIG = Path.home() / ".config" / "tegata" / "config.yaml"

_SIZE_OPTION = click.option(
    "--size",
    type=click.Choice(["32", "64"]),
    default="32",
    show_default=True,
    help="Secret length in bytes (32 = HMAC-SHA256, 64 = HMAC-SHA512)",
)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_raw(config: str) -> dict:
    from tegata.config.loader import load_config, validate_config

    path = Path(config)
    if not path.exists():
        click.echo(f"Config file not found: {path}", err=True)
        sys.exit(1)
    try:
        raw = load_config(path)
    except yaml.YAMLError as exc:
        click.echo(f"Config file is not valid YAML: {exc}", err=True)
        sys.exit(1)
    if not raw:
        click.echo("Config file is empty.", err=True)
        sys.exit(1)
    errors = validate_config(raw)
    if errors:
        click.echo("Config validation errors:", err=True)
        for e in errors:
            click.echo(f"  • {e}", err=True)
        sys.exit(1)
    return raw


def _load_manager(config: str) -> CookieManager:
    from tegata.config.loader import options_from_config

    raw = _load_raw(config)
    return CookieManager.from_options(options_from_config(raw))


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="tegata")
@click.option(
    "--config",
    "-c",
    default=str(DEFAULT_CONFIG),
    envvar="TEGATA_CONFIG",
    show_default=True,
    help="Path to tegata config.yaml",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str, verbose: bool) -> None:
    """Tegata: signed cookies with secret rotation."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# ── Secrets ───────────────────────────────────────────────────────────────────


@main.command("generate-secret")
@_SIZE_OPTION
def generate_secret_cmd(size: str) -> None:
    """Print a new base64 cookie secret."""
    from tegata.config.writer import generate_secret

    click.echo(generate_secret(int(size)))


@main.command()
@_SIZE_OPTION
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx: click.Context, size: str, force: bool) -> None:
    """Write a new config with one secret in both slots."""
    from tegata.config.writer import build_config_dict, generate_secret, write_config

    path = Path(ctx.obj["config"])
    if path.exists() and not force:
        click.echo(f"Config already exists: {path} (use --force to overwrite)", err=True)
        sys.exit(1)
    write_config(path, build_config_dict(generate_secret(int(size))))
    click.echo(f"Wrote {path}")


@main.command()
@_SIZE_OPTION
@click.pass_context
def rotate(ctx: click.Context, size: str) -> None:
    """Demote the current secret to previous and install a new current one."""
    from tegata.config.writer import generate_secret, rotate_secrets, write_config

    config = ctx.obj["config"]
    raw = _load_raw(config)
    write_config(Path(config), rotate_secrets(raw, generate_secret(int(size))))
    click.echo("Rotated: previous secret replaced, new current secret installed.")
    click.echo("Cookies signed with the dropped secret no longer verify.")


@main.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Validate the config and report the configured secrets."""
    manager = _load_manager(ctx.obj["config"])
    click.echo(f"current:   HMAC-{manager.current.digest_name.upper()}")
    click.echo(f"previous:  HMAC-{manager.previous.digest_name.upper()}")
    click.echo(f"path:      {manager.path}")
    click.echo(f"same_site: {manager.same_site.value}")
    click.echo(f"max_age:   {manager.current.max_age or 'disabled'}")
    click.echo("✓  Config OK")


# ── Tokens ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.argument("value")
@click.pass_context
def sign(ctx: click.Context, name: str, value: str) -> None:
    """Sign VALUE for cookie NAME with the current secret."""
    from tegata.core.signer import SigningError

    manager = _load_manager(ctx.obj["config"])
    try:
        click.echo(manager.sign(name, value))
    except SigningError as exc:
        click.echo(f"✗  {exc}", err=True)
        sys.exit(2)


@main.command()
@click.argument("name")
@click.argument("token")
@click.pass_context
def read(ctx: click.Context, name: str, token: str) -> None:
    """Verify TOKEN for cookie NAME and print its value."""
    from tegata.core.signer import VerificationError

    manager = _load_manager(ctx.obj["config"])
    try:
        click.echo(manager.read(name, token))
    except VerificationError as exc:
        click.echo(f"✗  {exc}", err=True)
        sys.exit(2)


# ── serve command ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind host")
@click.option("--port", default=8000, show_default=True, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Start the Tegata HTTP API server."""
    import uvicorn

    from tegata.api.routes import create_app

    app = create_app(manager=_load_manager(ctx.obj["config"]))
    click.echo(f"Starting Tegata API at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
