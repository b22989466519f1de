"""
Purpose: One error taxonomy for every layer. The controller catches
PersonaProbeError subclasses and surfaces them; anything else is a bug.
"""

from __future__ import annotations

from typing import Optional

EXCERPT_CHARS = 200


class PersonaProbeError(Exception):
    """Base class for all expected failures."""


class ConfigurationError(PersonaProbeError):
    """Missing or invalid credential / settings."""


class RateLimitError(PersonaProbeError):
    """The generation service signalled throttling."""


class ServiceError(PersonaProbeError):
    """Any other failure of the generation service."""


class ValidationError(PersonaProbeError):
    """A required user-entered value is missing or a command guard failed."""


class BusyError(ValidationError):
    """The command's busy flag is set; the command is rejected, not queued."""


class PersistenceError(PersonaProbeError):
    """The key-value collaborator could not read or write."""


class ParseError(PersonaProbeError):
    """A response could not be coerced into the expected shape."""

    def __init__(self, message: str, *, text: Optional[str] = None):
        self.excerpt = _excerpt(text) if text is not None else ""
        if self.excerpt:
            message = f"{message} (response excerpt: {self.excerpt!r})"
        super().__init__(message)


def _excerpt(text: str, max_chars: int = EXCERPT_CHARS) -> str:
    t = (text or "").strip()
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 1].rstrip() + "…"
