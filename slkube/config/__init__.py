"""
Config Module - Black Box Interface

Purpose: Dispatcher configuration management
Interface: ConfigProvider protocol, EnvConfigProvider
Hidden: Environment parsing, YAML file overlay, ServiceAccount namespace lookup
"""

from .provider import (
    ClusterConfig,
    ConfigProvider,
    DispatchConfig,
    EnvConfigProvider,
    PollingConfig,
)

__all__ = [
    "ClusterConfig",
    "ConfigProvider",
    "DispatchConfig",
    "EnvConfigProvider",
    "PollingConfig",
]
