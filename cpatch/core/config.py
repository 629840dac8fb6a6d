"""Typed project configuration.

`cpatch.toml` is parsed and validated once, into a frozen ProjectConfig,
before any patch logic runs. The core never reads the file again.

    app_id = "6a3f..."
    base_url = "https://api.example.dev"

    [flavors]
    internal = "91be..."
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ProjectConfig",
    "load_config",
]

CONFIG_FILENAME = "cpatch.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    @property
    def hint(self) -> str | None:
        if self.path is None:
            return None
        return f"Check {self.path}"


def _empty_flavors() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Project-level settings for publishing patches."""

    app_id: str
    flavors: Mapping[str, str] = field(default_factory=_empty_flavors)
    base_url: str | None = None

    def app_id_for(self, flavor: str | None) -> str | None:
        """Return the app id to publish to, or None for an unknown flavor."""
        if flavor is None:
            return self.app_id
        return self.flavors.get(flavor)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ProjectConfig:
        """Create ProjectConfig from a mapping (parsed TOML).

        Raises:
            ValueError: if required keys are missing or malformed.
        """
        app_id = get_str(data, "app_id")
        if app_id is None:
            raise ValueError("missing required key 'app_id'")

        flavors: dict[str, str] = {}
        table: StrDict = get_table(data, "flavors") or {}
        for name in table:
            flavor_app_id = get_str(table, name)
            if flavor_app_id is None:
                raise ValueError(f"flavor '{name}' must map to a non-empty app id")
            flavors[name] = flavor_app_id

        return cls(
            app_id=app_id,
            flavors=MappingProxyType(flavors),
            base_url=get_str(data, "base_url"),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling I/O and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load and validate project configuration from a TOML file.

    Args:
        path: Path to cpatch.toml

    Returns:
        Ok(ProjectConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ProjectConfig.from_dict(result.value))
    except ValueError as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))
