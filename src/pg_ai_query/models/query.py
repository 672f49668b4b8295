"""Typed request and result models for query generation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QueryRequest(BaseModel):
    """Natural language request plus optional credential and provider hint."""

    model_config = ConfigDict(frozen=True)

    natural_language: str
    api_key: str = ""
    provider: str = "auto"


class QueryResult(BaseModel):
    """Externally visible outcome of a query generation attempt."""

    model_config = ConfigDict(frozen=True)

    generated_query: str = ""
    explanation: str = ""
    warnings: list[str] = Field(default_factory=list)
    row_limit_applied: bool = False
    suggested_visualization: str = ""
    success: bool = False
    error_message: str = ""

    @model_validator(mode="after")
    def check_success_has_no_error(self) -> QueryResult:
        if self.success and self.error_message:
            raise ValueError("successful results cannot carry an error message.")
        return self

    @classmethod
    def failure(cls, error_message: str) -> QueryResult:
        """Build a failure result with no query, explanation or warnings."""
        return cls(success=False, error_message=error_message)
