"""Configuration loading."""

from branch_pruner.config.loader import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAMES,
    ConfigFileStatus,
    describe_config_files,
    find_config_files,
    load_config,
    load_safety_config,
)
from branch_pruner.config.schema import BranchPrunerConfig, merge_configs

__all__ = [
    "BranchPrunerConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAMES",
    "ConfigFileStatus",
    "describe_config_files",
    "find_config_files",
    "load_config",
    "load_safety_config",
    "merge_configs",
]
