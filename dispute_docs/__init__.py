"""Dispute document generation engine for Australian mechanic/vehicle-damage disputes."""

from .generator import (
    DocumentGenerationService,
    generate_document,
    generate_and_store_document,
    regenerate_document,
)
from .models import DocumentType, GenerationResult, GenerationState

__version__ = "1.0.0"

__all__ = [
    "DocumentGenerationService",
    "generate_document",
    "generate_and_store_document",
    "regenerate_document",
    "DocumentType",
    "GenerationResult",
    "GenerationState",
]
