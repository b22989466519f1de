"""
Purpose: Markdown export of an interview summary for download.
"""

import re

from ..models import Persona

_UNSAFE = re.compile(r'[\\/:*?"<>|\s]+')


def summary_filename(persona: Persona) -> str:
    name = _UNSAFE.sub("_", persona.name).strip("_") or "persona"
    return f"{name}_interview_summary.md"


def summary_document(summary: str, persona: Persona, idea: str) -> str:
    header = f"# Interview with {persona.name} ({persona.job})\n\n**Idea:** {idea.strip()}\n\n"
    return header + summary.strip() + "\n"
