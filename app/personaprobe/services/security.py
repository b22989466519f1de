"""
Purpose: Guardrails for user-entered text.
Content: early, predictable failures; prevent empty or oversized requests
before anything reaches the generation service.
"""

from ..errors import ValidationError

MAX_INPUT_CHARS = 8000
MAX_IDEA_CHARS = 4000
MAX_SOURCE_CHARS = 20000


class DefaultSecurity:
    def validate_user_input(self, text: str) -> None:
        if not (text or "").strip():
            raise ValidationError("Please enter a non-empty message.")
        if len(text) > MAX_INPUT_CHARS:
            raise ValidationError("Your message is too long.")

    def validate_idea(self, idea: str) -> None:
        if not (idea or "").strip():
            raise ValidationError("Please describe your product idea.")
        if len(idea) > MAX_IDEA_CHARS:
            raise ValidationError("The product idea is too long.")

    def validate_source_text(self, text: str) -> None:
        if not (text or "").strip():
            raise ValidationError("Please paste some text to analyze.")

    def sanitize_for_prompt(self, text: str) -> str:
        return (text or "").replace("\x00", "").strip()

    def clip_source_text(self, text: str) -> str:
        """Long pasted transcripts are truncated, not rejected."""
        if len(text) > MAX_SOURCE_CHARS:
            text = text[:MAX_SOURCE_CHARS]
        return text
