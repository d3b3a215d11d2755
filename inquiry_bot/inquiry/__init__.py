"""Inquiry pipeline: reaction intake, orchestration and answer generation."""

from .answer import SYSTEM_PROMPT, AnswerGenerator, build_context, build_prompt
from .intake import ReactionIntake
from .orchestrator import (
    NO_RESULTS_FALLBACK,
    RESPONSE_HEADER,
    InquiryOrchestrator,
    generate_fallback_response,
)

__all__ = [
    "NO_RESULTS_FALLBACK",
    "RESPONSE_HEADER",
    "SYSTEM_PROMPT",
    "AnswerGenerator",
    "InquiryOrchestrator",
    "ReactionIntake",
    "build_context",
    "build_prompt",
    "generate_fallback_response",
]
