"""``spec2postman config`` -- inspect and edit fetch and rate-limit settings."""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from spec2postman.exit_codes import EXIT_INVALID_INPUT
from spec2postman.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _reject(message: str) -> typer.Exit:
    error(message)
    return typer.Exit(code=EXIT_INVALID_INPUT)


def _parse_value(current: Any, key: str, raw: str) -> Any:
    """Parse *raw* as the type of the setting it replaces."""
    if isinstance(current, bool):
        return raw.lower() in ("true", "1", "yes")
    for kind in (int, float):
        if isinstance(current, kind):
            try:
                return kind(raw)
            except ValueError:
                raise _reject(f"Expected {kind.__name__} for {key}, got: {raw}") from None
    return raw


@config_app.command("show")
def config_show() -> None:
    """Print the stored configuration as JSON.

    Example::

        spec2postman config show --json
    """
    from spec2postman.config import get_config_dir, load_global_config

    info(f"Config directory: {get_config_dir()}")
    format_response(load_global_config().model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. 'rate_limit.capacity'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one setting, e.g. ``spec2postman config set fetch.timeout_seconds 30``."""
    from spec2postman.config import load_global_config, save_global_config
    from spec2postman.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")
    *sections, field = key.split(".")
    section = data
    for name in sections:
        section = section.get(name) if isinstance(section, dict) else None
    if not isinstance(section, dict) or field not in section or isinstance(section[field], dict):
        raise _reject(f"Unknown config key: {key}")

    section[field] = _parse_value(section[field], key, value)
    try:
        updated = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise _reject(f"Validation error: {exc}") from None

    save_global_config(updated)
    success(f"Set {key} = {section[field]}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Restore defaults; asks first unless ``--force`` was given."""
    from spec2postman.config import save_global_config
    from spec2postman.models import GlobalConfig

    if not (ctx.obj or {}).get("force") and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
