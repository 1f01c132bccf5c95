"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for negotiator:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.negotiator/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~negotiator.models.GlobalConfig`
  JSON file storing scheme priority, round limits and request defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional

from negotiator.exceptions import ConfigError
from negotiator.models import GlobalConfig

_APP_NAME = "negotiator"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "negotiator.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/negotiator/`` (default ``~/.config/negotiator/``).
    On macOS/Windows: ``~/.negotiator/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credential stores, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/negotiator/`` (default ``~/.local/share/negotiator/``).
    On macOS/Windows: ``~/.negotiator/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.

    Args:
        path: Destination file.
        data: Text content to write.
        mode: Optional permission bits applied to the temp file before any
            content is written (e.g. ``0o600`` for secrets).
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close in finally
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~negotiator.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./negotiator.json``.

    Project-local config sits between global config and environment variables
    in the precedence chain. It typically pins ``scheme_priority`` so that a
    repository can insist on Digest over Basic for its test servers.

    Returns:
        The parsed JSON as a dict, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but does not contain a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _split_priority(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def resolve_config(
    cli_priority: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_priority``, ``cli_format``)
        2. Environment variables (``NEGOTIATOR_SCHEME_PRIORITY``,
           ``NEGOTIATOR_MAX_AUTH_ROUNDS``)
        3. Project config (``./negotiator.json``)
        4. User config (``~/.config/negotiator/config.json``)
        5. Defaults

    Args:
        cli_priority: Comma-separated scheme names, e.g. ``"digest,basic"``.
        cli_format: Output format override.

    Returns:
        The effective :class:`~negotiator.models.GlobalConfig`.

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    # 5 + 4. Load base global config (fills in defaults automatically)
    data = load_global_config().model_dump(mode="json")

    # 3. Layer in project-local config
    project = load_project_config()
    if project is not None:
        data.update(project)

    # 2. Environment variables
    env_priority = os.environ.get("NEGOTIATOR_SCHEME_PRIORITY")
    if env_priority:
        data["scheme_priority"] = _split_priority(env_priority)
    env_rounds = os.environ.get("NEGOTIATOR_MAX_AUTH_ROUNDS")
    if env_rounds:
        data["max_auth_rounds"] = env_rounds

    # 1. CLI flags (highest precedence)
    if cli_priority is not None:
        data["scheme_priority"] = _split_priority(cli_priority)
    if cli_format is not None:
        data.setdefault("output", {})["format"] = cli_format

    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str, prompt: str = "Enter credential: ") -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.
        prompt: Text shown when the source is ``"prompt"``.

    Returns:
        The resolved secret string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        file_path = source[5:]
        path = Path(file_path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass(prompt)

    raise ConfigError(f"Unknown credential source format: {source}")
