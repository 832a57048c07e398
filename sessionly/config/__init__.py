"""
Config Module - Black Box Interface

Purpose: Session engine options and application configuration
Interface: SessionOptions, EnvConfigProvider, ConfigProvider
Hidden: Environment parsing, option validation

Can be replaced with different config sources by implementing ConfigProvider.
"""

from .options import COOKIE_OPTION_PREFIX, DEFAULT_GC_MAXLIFETIME, SessionOptions
from .provider import APIConfig, ConfigProvider, EnvConfigProvider, StorageConfig

__all__ = [
    "APIConfig",
    "COOKIE_OPTION_PREFIX",
    "ConfigProvider",
    "DEFAULT_GC_MAXLIFETIME",
    "EnvConfigProvider",
    "SessionOptions",
    "StorageConfig",
]
