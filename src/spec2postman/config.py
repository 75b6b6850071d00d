"""Where spec2postman keeps its settings, and how they combine.

Settings live in one JSON file, ``config.json``, holding a
:class:`~spec2postman.models.GlobalConfig`. On Linux and the BSDs it sits
under ``$XDG_CONFIG_HOME/spec2postman``; elsewhere under ``~/.spec2postman``.
Crash logs go under the matching data directory.

:func:`resolve_config` layers ``--timeout`` over ``SPEC2POSTMAN_TIMEOUT``
over the file over built-in defaults.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from spec2postman.exceptions import ConfigError
from spec2postman.models import GlobalConfig

_APP_NAME = "spec2postman"

ENV_TIMEOUT = "SPEC2POSTMAN_TIMEOUT"
ENV_CLIENT_ID = "SPEC2POSTMAN_CLIENT_ID"


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, *home_default: str) -> Path:
    """Return (and create) the per-app directory for one XDG category."""
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or Path.home().joinpath(*home_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/spec2postman`` (default ``~/.config/spec2postman``)."""
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """``$XDG_DATA_HOME/spec2postman`` (default ``~/.local/share/spec2postman``)."""
    return _app_dir("XDG_DATA_HOME", ".local", "share")


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a sibling temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Read ``config.json``, or return defaults when there is none.

    Raises:
        ConfigError: If the file is not JSON or does not validate.
    """
    path = _config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    _atomic_write(_config_path(), json.dumps(config.model_dump(mode="json"), indent=2) + "\n")


def resolve_config(
    cli_timeout: Optional[float] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Return the effective configuration for one CLI run.

    Raises:
        ConfigError: If the file is invalid, ``SPEC2POSTMAN_TIMEOUT`` is not
            a number, or the resulting timeout is not positive.
    """
    config = load_global_config()

    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        try:
            config.fetch.timeout_seconds = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_TIMEOUT} must be a number of seconds, got: {env_timeout}"
            ) from exc
    if cli_timeout is not None:
        config.fetch.timeout_seconds = cli_timeout
    if config.fetch.timeout_seconds <= 0:
        raise ConfigError("Fetch timeout must be greater than zero")

    if cli_format is not None:
        config.output.format = cli_format
    return config


def resolve_client_identifier(cli_value: Optional[str], config: GlobalConfig) -> str:
    """Pick the rate-limit identity: ``--client-id``, then
    ``SPEC2POSTMAN_CLIENT_ID``, then ``rate_limit.default_identifier``."""
    return cli_value or os.environ.get(ENV_CLIENT_ID) or config.rate_limit.default_identifier
