"""Provider-independent text generation interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class LLMError(RuntimeError):
    """Raised when a provider request cannot be completed."""


@dataclass(frozen=True)
class GenerateOptions:
    """One generation request; unset limits are left to the provider."""

    model: str
    system_prompt: str
    user_prompt: str
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Text returned by a provider, or the reason there is none."""

    text: str = ""
    success: bool = False
    error_message: str = ""
    status_code: int | None = None


class TextGenerator(ABC):
    """Abstract AI provider client."""

    @abstractmethod
    def generate(self, options: GenerateOptions) -> GenerationResult:
        """Generate text for a system/user prompt pair."""
