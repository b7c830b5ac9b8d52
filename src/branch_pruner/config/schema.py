"""Configuration file schema."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class BranchPrunerConfig(BaseModel):
    """Contents of a branch-pruner JSON configuration file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    protected_branches: list[str] | None = Field(
        default=None,
        alias="protectedBranches",
        description=(
            "Branch names and glob patterns that are never deleted (case-insensitive). "
            "Replaces the defaults unless the $BRANCH_PRUNER_DEFAULT placeholder is used."
        ),
    )

    @field_validator("protected_branches")
    @classmethod
    def _no_empty_names(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and any(not entry.strip() for entry in value):
            raise ValueError("Branch name cannot be empty")
        return value


def format_validation_errors(error: ValidationError) -> list[str]:
    """Turn pydantic errors into `path: message` lines."""
    messages = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        prefix = f"{path}: " if path else ""
        messages.append(f"{prefix}{issue['msg']}")
    return messages


def merge_configs(*configs: BranchPrunerConfig | None) -> BranchPrunerConfig:
    """Merge configs; the first one that sets a field wins."""
    merged = BranchPrunerConfig()
    for config in configs:
        if config is None:
            continue
        if merged.protected_branches is None and config.protected_branches is not None:
            merged.protected_branches = list(config.protected_branches)
    return merged
