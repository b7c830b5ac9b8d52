"""Protected branch names and patterns."""

import re
from enum import Enum
from typing import Iterable

from branch_pruner.exceptions import InvalidProtectedPatternError
from branch_pruner.models.config import SafetyConfig

DEFAULT_PLACEHOLDER = "$BRANCH_PRUNER_DEFAULT"

DEFAULT_PROTECTED_BRANCHES: tuple[str, ...] = (
    "main",
    "master",
    "develop",
    "dev",
    "staging",
    "production",
    "prod",
    "release/*",
    "release-*",
    "hotfix/*",
)

# Always protected, whatever the configured list says.
RELEASE_CONVENTION_PATTERNS = (
    re.compile(r"^release/", re.IGNORECASE),
    re.compile(r"^release-", re.IGNORECASE),
    re.compile(r"^hotfix/", re.IGNORECASE),
)

_FORBIDDEN_REF_CHARS = re.compile(r"[\s~^:?\[\\]")


class ProtectionMatch(str, Enum):
    """How a branch name was found to be protected."""

    NONE = "none"
    CONFIGURED = "configured"
    CONVENTION = "convention"


def expand_default_placeholder(branches: Iterable[str]) -> list[str]:
    """
    Replace each placeholder with the built-in defaults, in place.

    Entries already present earlier in the result, compared without regard
    to case, are skipped, so repeated placeholders and repeated custom names
    collapse to their first position.
    """
    result: list[str] = []
    seen: set[str] = set()

    def _add(entry: str) -> None:
        if entry.lower() not in seen:
            seen.add(entry.lower())
            result.append(entry)

    for entry in branches:
        if entry == DEFAULT_PLACEHOLDER:
            for default in DEFAULT_PROTECTED_BRANCHES:
                _add(default)
        else:
            _add(entry)

    return result


def resolve_protected_branches(configured: list[str] | None) -> SafetyConfig:
    """Build the effective config; None means "use the defaults"."""
    if configured is None:
        return SafetyConfig(protected_branches=list(DEFAULT_PROTECTED_BRANCHES))
    return SafetyConfig(protected_branches=expand_default_placeholder(configured))


def is_glob(entry: str) -> bool:
    return "*" in entry


def compile_glob(entry: str) -> re.Pattern[str]:
    """Translate a glob where `*` matches any run of characters, `/` included."""
    parts = [re.escape(part) for part in entry.split("*")]
    return re.compile("^" + ".*".join(parts) + "$", re.IGNORECASE)


def validate_entry(entry: str) -> None:
    if not entry or not entry.strip():
        raise InvalidProtectedPatternError(entry, "branch name cannot be empty")
    if _FORBIDDEN_REF_CHARS.search(entry):
        raise InvalidProtectedPatternError(
            entry, "contains whitespace or a character git forbids in branch names"
        )
    if ".." in entry:
        raise InvalidProtectedPatternError(entry, "'..' is not allowed in branch names")


class ProtectedNameMatcher:
    """Membership test against an effective protected-branch list."""

    def __init__(self, config: SafetyConfig):
        self.config = config
        self._exact: set[str] = set()
        self._globs: list[re.Pattern[str]] = []

        for entry in config.protected_branches:
            validate_entry(entry)
            if is_glob(entry):
                self._globs.append(compile_glob(entry))
            else:
                self._exact.add(entry.lower())

    def match(self, branch_name: str) -> ProtectionMatch:
        if branch_name.lower() in self._exact:
            return ProtectionMatch.CONFIGURED
        if any(pattern.match(branch_name) for pattern in self._globs):
            return ProtectionMatch.CONFIGURED
        if any(pattern.search(branch_name) for pattern in RELEASE_CONVENTION_PATTERNS):
            return ProtectionMatch.CONVENTION
        return ProtectionMatch.NONE

    def is_protected(self, branch_name: str) -> bool:
        return self.match(branch_name) is not ProtectionMatch.NONE
