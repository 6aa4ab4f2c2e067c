"""Result envelope returned by the document generation facade."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class GenerationState(str, Enum):
    """Per-request lifecycle states, recorded in order and never revisited."""
    START = "START"
    BUILDING_BASE = "BUILDING_BASE"
    GENERATING_SECTIONS = "GENERATING_SECTIONS"
    ASSEMBLED = "ASSEMBLED"
    RENDERING = "RENDERING"
    DONE = "DONE"
    FALLBACK_BUILDING = "FALLBACK_BUILDING"
    FALLBACK_RENDERING = "FALLBACK_RENDERING"
    FAILED = "FAILED"


@dataclass
class GenerationResult:
    """
    Uniform success / fallback / failure envelope.

    Attributes:
        success: True when a document (primary or fallback) was produced
        is_fallback: True when the degraded path produced the document
        document_text: Rendered document text
        document_data: Serialized Document Data the text was rendered from
        filename: Storage filename stem (no extension)
        document_type: Requested document type
        document_title: Display title of the document type
        customer_name: Sender name used in the document
        mechanic_name: Recipient name used in the document
        warning: Set on fallback, explains why generation degraded
        error: Set on failure
        error_type: ErrorType value of the failure
        states: Lifecycle states the request passed through
        regeneration_available: Whether an input snapshot was stored
    """
    success: bool
    is_fallback: bool = False
    document_text: str = ""
    document_data: Optional[Dict[str, Any]] = None
    filename: Optional[str] = None
    document_type: Optional[str] = None
    document_title: Optional[str] = None
    customer_name: Optional[str] = None
    mechanic_name: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    states: List[GenerationState] = field(default_factory=list)
    regeneration_available: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase envelope; optional keys only when set."""
        envelope: Dict[str, Any] = {
            "success": self.success,
            "isFallback": self.is_fallback,
            "documentText": self.document_text,
            "documentData": self.document_data,
            "filename": self.filename,
            "documentType": self.document_type,
            "documentTitle": self.document_title,
            "customerName": self.customer_name,
            "mechanicName": self.mechanic_name,
            "states": [state.value for state in self.states],
            "regenerationAvailable": self.regeneration_available,
        }
        if self.warning:
            envelope["warning"] = self.warning
        if self.error:
            envelope["error"] = self.error
        if self.error_type:
            envelope["errorType"] = self.error_type
        return envelope
