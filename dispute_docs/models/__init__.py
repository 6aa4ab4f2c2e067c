"""Data models for dispute document generation."""

from .document import (
    DocumentType,
    DemandType,
    DocumentData,
    LegalBasis,
    IncidentNarrative,
    RemedyStatement,
    EscalationText,
    TribunalAdvice,
    InsuranceAdvice,
)
from .result import GenerationResult, GenerationState

__all__ = [
    "DocumentType",
    "DemandType",
    "DocumentData",
    "LegalBasis",
    "IncidentNarrative",
    "RemedyStatement",
    "EscalationText",
    "TribunalAdvice",
    "InsuranceAdvice",
    "GenerationResult",
    "GenerationState",
]
