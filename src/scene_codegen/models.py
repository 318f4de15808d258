"""Pydantic data models for the scene code pipeline."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GenerationStatus(str, Enum):
    """Observable lifecycle flag stored on the scene."""
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    ERROR = "error"


class SceneCodeState(BaseModel):
    """Snapshot of the owned fields of one scene, plus the store version it was read at."""
    model_config = ConfigDict(populate_by_name=True)

    code_buffer: str = Field(default="", alias="codeBuffer")
    generation_status: GenerationStatus = Field(default=GenerationStatus.PENDING, alias="generationStatus")
    generation_error: str | None = Field(default=None, alias="generationError")
    generated_code: str | None = Field(default=None, alias="generatedCode")
    validation_attempts: int = Field(default=0, alias="validationAttempts", ge=0)
    version: int = Field(default=0, exclude=True)

    @classmethod
    def from_content(cls, content: dict[str, Any] | None, version: int = 0) -> "SceneCodeState":
        """Build a snapshot from a raw content map, ignoring unrelated keys and bad values."""
        content = content or {}
        raw_status = content.get("generationStatus")
        try:
            status = GenerationStatus(raw_status) if raw_status else GenerationStatus.PENDING
        except ValueError:
            status = GenerationStatus.PENDING
        try:
            attempts = max(0, int(content.get("validationAttempts") or 0))
        except (TypeError, ValueError):
            attempts = 0
        buffer = content.get("codeBuffer")
        return cls(
            code_buffer=buffer if isinstance(buffer, str) else "",
            generation_status=status,
            generation_error=content.get("generationError"),
            generated_code=content.get("generatedCode"),
            validation_attempts=attempts,
            version=version,
        )

    def to_content(self) -> dict[str, Any]:
        """Serialize owned fields using their stored names. Absent values are ``None``."""
        return {
            "codeBuffer": self.code_buffer,
            "generationStatus": self.generation_status.value,
            "generationError": self.generation_error,
            "generatedCode": self.generated_code,
            "validationAttempts": self.validation_attempts,
        }


class ValidationResult(BaseModel):
    """Outcome of one validator run. Never persisted."""
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    error: str | None = None
    fixed_code: str = Field(default="", alias="fixedCode")
    undefined_refs: list[str] | None = Field(default=None, alias="undefinedRefs")
    warnings: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def error_response(message: str, details: str | None = None, **extra: Any) -> dict[str, Any]:
    """Uniform error payload: ``{success: False, error, details?}`` plus any extra fields."""
    payload: dict[str, Any] = {"success": False, "error": message}
    if details:
        payload["details"] = details
    payload.update(extra)
    return payload
