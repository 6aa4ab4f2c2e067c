"""Section generators producing model-written prose fragments."""

from .base import BaseSectionGenerator, Framing, SectionContext, SectionResult
from .legal_basis import LegalBasisGenerator
from .incident_narrative import IncidentNarrativeGenerator
from .remedy_statement import RemedyStatementGenerator
from .escalation import EscalationGenerator
from .tribunal_advice import TribunalAdviceGenerator
from .insurance_advice import InsuranceAdviceGenerator

__all__ = [
    "BaseSectionGenerator",
    "Framing",
    "SectionContext",
    "SectionResult",
    "LegalBasisGenerator",
    "IncidentNarrativeGenerator",
    "RemedyStatementGenerator",
    "EscalationGenerator",
    "TribunalAdviceGenerator",
    "InsuranceAdviceGenerator",
]
