"""Effective safety configuration model."""

from pydantic import BaseModel, Field, field_validator


class SafetyConfig(BaseModel):
    """Resolved configuration consumed by the safety evaluator."""

    protected_branches: list[str] = Field(
        default_factory=list,
        description="Exact names and glob patterns, placeholder already expanded",
    )

    @field_validator("protected_branches")
    @classmethod
    def _drop_duplicates(cls, value: list[str]) -> list[str]:
        # First occurrence keeps its position; matching ignores case.
        seen: set[str] = set()
        result = []
        for entry in value:
            if entry.lower() not in seen:
                seen.add(entry.lower())
                result.append(entry)
        return result
