"""Configuration management for changebump."""

from __future__ import annotations

from changebump.config.loader import load_config, merge_overrides
from changebump.config.models import (
    ChangebumpConfig,
    ChangelogConfig,
    CommitsConfig,
    PackagesConfig,
    RemoteConfig,
    TypeConfig,
    VersionConfig,
    load_config_from_mapping,
)
from changebump.config.remote import HostInfo, host_info_from_url

__all__ = [
    "ChangebumpConfig",
    "ChangelogConfig",
    "CommitsConfig",
    "HostInfo",
    "PackagesConfig",
    "RemoteConfig",
    "TypeConfig",
    "VersionConfig",
    "host_info_from_url",
    "load_config",
    "load_config_from_mapping",
    "merge_overrides",
]
