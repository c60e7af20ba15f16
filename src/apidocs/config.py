"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for apidocs:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apidocs/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`.
* **Global config** -- A single :class:`~apidocs.models.GlobalConfig`
  JSON file storing defaults (output format, default profile).
* **Profiles** -- One JSON file per documented API deployment, each
  deserialised into a :class:`~apidocs.models.Profile`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config, and global config into the
  final effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel

from apidocs.exceptions import ConfigError
from apidocs.models import GlobalConfig, Profile

_APP_NAME = "apidocs"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "apidocs.json"

_PROFILE_ENV_OVERRIDES = (
    ("api_id", "APIDOCS_API_ID"),
    ("stage", "APIDOCS_STAGE"),
    ("region", "APIDOCS_REGION"),
)

ModelT = TypeVar("ModelT", bound=BaseModel)


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: str, fallback: str = "") -> Path:
    if _is_xdg_platform():
        base = os.environ.get(xdg_var) or str(Path.home() / xdg_default)
        path = Path(base) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / fallback
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """``$XDG_CONFIG_HOME/apidocs`` on Linux/BSD, ``~/.apidocs`` elsewhere."""
    return _app_dir("XDG_CONFIG_HOME", ".config")


def get_data_dir() -> Path:
    """Crash logs: ``$XDG_DATA_HOME/apidocs`` on Linux/BSD, ``~/.apidocs/logs`` elsewhere."""
    return _app_dir("XDG_DATA_HOME", ".local/share", "logs")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Reading and writing ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to a sibling temp file, then rename it over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def _dump_model(path: Path, model: BaseModel) -> None:
    _atomic_write(path, model.model_dump_json(indent=2) + "\n")


def _load_model(path: Path, model: type[ModelT], what: str) -> ModelT:
    try:
        return model.model_validate_json(path.read_bytes())
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration, or defaults when no file exists.

    Raises:
        ConfigError: The file exists but is not a valid ``GlobalConfig``.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _load_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _dump_model(_global_config_path(), config)


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return _load_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    _dump_model(_profile_path(profile.name), profile)


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


# --- Project-local config ---


def project_config_path() -> Path:
    return Path.cwd() / _PROJECT_CONFIG_FILENAME


def load_project_config() -> Optional[dict[str, Any]]:
    """Parsed ``./apidocs.json``, or ``None`` when the directory has none."""
    path = project_config_path()
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected an object")
    return data


# --- Precedence resolution ---


def _active_profile_name(global_cfg: GlobalConfig, cli_profile: Optional[str]) -> Optional[str]:
    project = load_project_config() or {}
    candidates = (
        cli_profile,
        os.environ.get("APIDOCS_PROFILE"),
        project.get("default_profile"),
        global_cfg.default_profile,
    )
    for name in candidates:
        if name:
            return name
    if global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        if len(profiles) == 1:
            return profiles[0]
    return None


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_profile``, ``cli_format``)
        2. Environment variables (``APIDOCS_PROFILE``; ``APIDOCS_API_ID``,
           ``APIDOCS_STAGE`` and ``APIDOCS_REGION`` override profile fields)
        3. Project config (``./apidocs.json``)
        4. User config (``~/.config/apidocs/config.json``)
        5. Defaults, including auto-selecting the only profile

    Returns:
        A tuple of ``(global_config, active_profile_or_None)``.
    """
    global_cfg = load_global_config()

    profile: Optional[Profile] = None
    name = _active_profile_name(global_cfg, cli_profile)
    if name is not None:
        profile = load_profile(name)
        overrides = {
            field: os.environ[var] for field, var in _PROFILE_ENV_OVERRIDES if os.environ.get(var)
        }
        if overrides:
            profile = profile.model_copy(update=overrides)

    if cli_format is not None:
        global_cfg.output.format = cli_format

    return global_cfg, profile
