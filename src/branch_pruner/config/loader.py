"""Configuration file discovery and loading."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from branch_pruner.config.schema import BranchPrunerConfig, format_validation_errors, merge_configs
from branch_pruner.exceptions import ConfigLoadError, InvalidProtectedPatternError
from branch_pruner.models.config import SafetyConfig
from branch_pruner.safety.protected import ProtectedNameMatcher, resolve_protected_branches

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BRANCH_PRUNER_CONFIG"

CONFIG_FILE_NAMES = (
    ".branch-pruner.json",
    ".branch-prunerrc.json",
    "branch-pruner.config.json",
)


@dataclass
class ConfigFileStatus:
    """Discovery result for one candidate configuration path."""

    path: Path
    exists: bool
    loaded: bool = False
    error: str | None = None


def find_git_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .git entry."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / ".git").exists():
            return directory
    return None


def find_config_files(
    explicit_path: Path | None = None,
    cwd: Path | None = None,
    home: Path | None = None,
) -> list[Path]:
    """Candidate configuration files, highest precedence first."""
    cwd = cwd or Path.cwd()
    home = home or Path.home()
    paths: list[Path] = []

    env_path = explicit_path or os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path).expanduser().resolve())

    git_root = find_git_root(cwd)
    if git_root:
        paths.extend(git_root / name for name in CONFIG_FILE_NAMES)

    paths.append(home / ".config" / "branch-pruner" / "config.json")
    paths.extend((cwd / name).resolve() for name in CONFIG_FILE_NAMES)

    # Same file may be reached twice when cwd is the git root
    return list(dict.fromkeys(paths))


def load_config_file(path: Path) -> BranchPrunerConfig:
    """
    Load and validate one configuration file.

    Raises:
        ConfigLoadError: If the file cannot be read, is not JSON, or fails validation
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(f"Failed to read configuration: {e}", str(path)) from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in configuration file: {e}", str(path)) from e

    try:
        config = BranchPrunerConfig.model_validate(data)
    except ValidationError as e:
        errors = format_validation_errors(e)
        raise ConfigLoadError(
            f"Configuration validation failed in {path}:\n"
            + "\n".join(f"  - {error}" for error in errors),
            str(path),
            validation_errors=errors,
        ) from e

    return config


def load_config(paths: list[Path] | None = None) -> BranchPrunerConfig:
    """
    Load and merge every existing configuration file.

    Raises:
        ConfigLoadError: If files exist but none of them could be loaded
    """
    loaded: list[BranchPrunerConfig] = []
    errors: list[ConfigLoadError] = []

    for path in paths if paths is not None else find_config_files():
        if not path.is_file():
            continue
        try:
            loaded.append(load_config_file(path))
            logger.debug("Loaded configuration from %s", path)
        except ConfigLoadError as e:
            logger.warning("Ignoring configuration %s: %s", path, e)
            errors.append(e)

    if errors and not loaded:
        raise errors[0]

    return merge_configs(*loaded)


def load_safety_config(paths: list[Path] | None = None) -> SafetyConfig:
    """
    Resolve the effective safety configuration.

    Protected entries are expanded and validated here, so a bad pattern is
    reported when the configuration is loaded rather than when a branch is
    checked.
    """
    config = load_config(paths)
    safety = resolve_protected_branches(config.protected_branches)

    try:
        ProtectedNameMatcher(safety)
    except InvalidProtectedPatternError as e:
        raise ConfigLoadError(str(e), "protectedBranches", validation_errors=[str(e)]) from e

    return safety


def describe_config_files(paths: list[Path] | None = None) -> list[ConfigFileStatus]:
    """Report which candidate files exist and whether they load."""
    statuses = []
    for path in paths if paths is not None else find_config_files():
        status = ConfigFileStatus(path=path, exists=path.is_file())
        if status.exists:
            try:
                load_config_file(path)
                status.loaded = True
            except ConfigLoadError as e:
                status.error = str(e)
        statuses.append(status)
    return statuses
