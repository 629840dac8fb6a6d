"""Core domain types shared by every layer."""

from .config import CONFIG_FILENAME, ConfigError, ProjectConfig, load_config
from .environment import EnvLoadError, RuntimeEnvironment, is_running_on_ci, load_environment
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "CONFIG_FILENAME",
    "ConfigError",
    "ProjectConfig",
    "load_config",
    # environment
    "EnvLoadError",
    "RuntimeEnvironment",
    "is_running_on_ci",
    "load_environment",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
