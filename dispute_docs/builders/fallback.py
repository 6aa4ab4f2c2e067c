"""
Fallback Composer.

Builds a minimally valid, clearly flagged DocumentData straight from raw
input when the generation path fails. Never calls the text-generation
service.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .base_data import build_base_data
from ..models.document import (
    DocumentData,
    DocumentType,
    EscalationText,
    IncidentNarrative,
    InsuranceAdvice,
    LegalBasis,
    RemedyStatement,
    TribunalAdvice,
)
from ..orchestration.plans import get_plan
from ..orchestration.merge import merge_sections
from ..utils.config import DocumentsConfig

logger = logging.getLogger(__name__)

SECTION_LABELS = {
    "legalBasis": "Legal basis",
    "incidentNarrative": "Incident narrative",
    "remedyStatement": "Remedy statement",
    "escalationText": "Escalation notice",
    "tribunalAdvice": "Tribunal advice",
    "insuranceAdvice": "Insurance advice",
}


def placeholder(section_key: str) -> str:
    """Labelled placeholder text for a section that could not be generated."""
    label = SECTION_LABELS.get(section_key, section_key)
    return f"[{label} not available: generation failed]"


def _placeholder_section(section_key: str, data: DocumentData):
    text = placeholder(section_key)
    if section_key == "legalBasis":
        return LegalBasis(summary_text=text)
    if section_key == "incidentNarrative":
        return IncidentNarrative(text=text)
    if section_key == "remedyStatement":
        return RemedyStatement(text=text, summary_demand=data.remedy_details.summarize())
    if section_key == "escalationText":
        return EscalationText(text=text)
    if section_key == "tribunalAdvice":
        return TribunalAdvice(text=text)
    if section_key == "insuranceAdvice":
        return InsuranceAdvice(text=text)
    raise KeyError(f"No placeholder for section {section_key!r}")


def compose_fallback(
    raw_input: Dict[str, Any],
    document_type: DocumentType,
    original_error: Optional[BaseException],
    *,
    now: Optional[datetime] = None,
    config: Optional[DocumentsConfig] = None,
    generation_id: str = ""
) -> DocumentData:
    """
    Compose the degraded document data.

    Every section in the document type's plan is filled with a placeholder;
    the remedy summary is still computed from the input.

    Args:
        raw_input: Raw form input
        document_type: Requested document type
        original_error: Why the primary path failed
        now: Generation timestamp
        config: Document defaults
        generation_id: Identifier recorded in metadata

    Returns:
        DocumentData with metadata.is_fallback set

    Raises:
        Exception: Any failure here is fatal for the request
    """
    reason = str(original_error) if original_error is not None else "generation unavailable"
    logger.warning(f"Composing fallback {document_type.value} document: {reason}")

    data = build_base_data(raw_input, document_type, now=now, config=config, generation_id=generation_id)
    plan = get_plan(document_type)
    merge_sections(data, {key: _placeholder_section(key, data) for key in plan.section_keys})

    data.metadata.is_fallback = True
    data.metadata.fallback_reason = reason
    return data
