"""Configuration and logging setup for PersonaProbe."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models import LLMSettings

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_logging_configured = False


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number.") from exc


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer.") from exc


@dataclass(slots=True)
class AppSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.8
    max_tokens: int = 1500
    language: str = "English"
    data_dir: Path = Path(".personaprobe")
    timeout_s: float = 60.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppSettings":
        load_dotenv()
        settings = cls(
            model=os.getenv("PERSONAPROBE_MODEL", "gpt-4o-mini"),
            temperature=_float_env("PERSONAPROBE_TEMPERATURE", 0.8),
            max_tokens=_int_env("PERSONAPROBE_MAX_TOKENS", 1500),
            language=os.getenv("PERSONAPROBE_LANGUAGE", "English"),
            data_dir=Path(os.getenv("PERSONAPROBE_DATA_DIR", ".personaprobe")),
            timeout_s=_float_env("PERSONAPROBE_TIMEOUT_S", 60.0),
            log_level=os.getenv("PERSONAPROBE_LOG_LEVEL", "INFO").upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.model.strip():
            raise ConfigurationError("PERSONAPROBE_MODEL must not be empty.")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError("PERSONAPROBE_TEMPERATURE must be within 0..2.")
        if self.max_tokens < 128:
            raise ConfigurationError("PERSONAPROBE_MAX_TOKENS must be >= 128.")
        if not self.language.strip():
            raise ConfigurationError("PERSONAPROBE_LANGUAGE must not be empty.")
        if self.timeout_s <= 0:
            raise ConfigurationError("PERSONAPROBE_TIMEOUT_S must be > 0.")
        if self.log_level not in logging.getLevelNamesMapping():
            raise ConfigurationError(f"Unknown log level: {self.log_level}")

    def llm_settings(self) -> LLMSettings:
        return LLMSettings(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the package logger; later calls only adjust the level."""
    global _logging_configured
    logger = logging.getLogger("personaprobe")
    logger.setLevel(level)
    if _logging_configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logger.addHandler(handler)
    _logging_configured = True
