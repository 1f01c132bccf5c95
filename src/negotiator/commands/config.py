"""Config commands -- view and modify global configuration.

Provides the ``negotiator config`` sub-command group for reading,
updating, and resetting the user's global configuration file
(:class:`~negotiator.models.GlobalConfig`). Settings there control the
scheme priority, the authentication round limit, the credential store
name, and request and output defaults.
"""

from __future__ import annotations

from typing import Any

import typer

from negotiator.output import error, info, print_record, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    effective: bool = typer.Option(
        False,
        "--effective",
        help="Show the resolved config (project file and environment applied).",
    ),
) -> None:
    """Show current configuration.

    Example::

        negotiator config show
        negotiator --json config show --effective
    """
    from negotiator.config import get_config_dir, load_global_config, resolve_config

    config = resolve_config() if effective else load_global_config()
    info(f"Config directory: {get_config_dir()}")
    print_record(config.model_dump(mode="json"), title="Configuration")


def _coerce(key: str, current: Any, value: str) -> Any:
    """Convert *value* to the type of the field's *current* value."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if isinstance(current, list):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'request.timeout')."
    ),
    value: str = typer.Argument(help="Value to set. Lists are comma-separated."),
) -> None:
    """Set a configuration value.

    The value is coerced to match the existing field's type (bool, int,
    comma-separated list, or str) and validated against
    :class:`~negotiator.models.GlobalConfig` before saving.

    Example::

        negotiator config set scheme_priority digest,basic
        negotiator config set max_auth_rounds 5
        negotiator config set request.verify_ssl false
    """
    from negotiator.config import load_global_config, save_global_config
    from negotiator.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    shown = ",".join(coerced) if isinstance(coerced, list) else coerced
    success(f"Set {key} = {shown}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        negotiator --force config reset
    """
    from negotiator.config import save_global_config
    from negotiator.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
