"""Per-document-type generation plans."""

from dataclasses import dataclass
from typing import Dict, List, Type

from ..models.document import DocumentType
from ..sections import (
    BaseSectionGenerator,
    EscalationGenerator,
    Framing,
    IncidentNarrativeGenerator,
    InsuranceAdviceGenerator,
    LegalBasisGenerator,
    RemedyStatementGenerator,
    TribunalAdviceGenerator,
)
from ..utils.errors import UnsupportedDocumentTypeError


@dataclass(frozen=True)
class SectionPlan:
    """
    Which sections a document type needs and how prompts are framed.

    Attributes:
        document_type: Document type the plan applies to
        framing: Prompt framing passed to every generator
        generators: Section key -> generator class, in document order
    """
    document_type: DocumentType
    framing: Framing
    generators: Dict[str, Type[BaseSectionGenerator]]

    @property
    def section_keys(self) -> List[str]:
        return list(self.generators)


SECTION_PLANS: Dict[DocumentType, SectionPlan] = {
    DocumentType.LETTER_OF_DEMAND: SectionPlan(
        document_type=DocumentType.LETTER_OF_DEMAND,
        framing=Framing.LETTER_OF_DEMAND,
        generators={
            "legalBasis": LegalBasisGenerator,
            "incidentNarrative": IncidentNarrativeGenerator,
            "remedyStatement": RemedyStatementGenerator,
            "escalationText": EscalationGenerator,
        },
    ),
    DocumentType.CONSUMER_COMPLAINT: SectionPlan(
        document_type=DocumentType.CONSUMER_COMPLAINT,
        framing=Framing.CONSUMER_COMPLAINT,
        generators={
            "legalBasis": LegalBasisGenerator,
            "incidentNarrative": IncidentNarrativeGenerator,
            "remedyStatement": RemedyStatementGenerator,
        },
    ),
    DocumentType.VCAT_APPLICATION: SectionPlan(
        document_type=DocumentType.VCAT_APPLICATION,
        framing=Framing.TRIBUNAL_APPLICATION,
        generators={
            "legalBasis": LegalBasisGenerator,
            "incidentNarrative": IncidentNarrativeGenerator,
            "remedyStatement": RemedyStatementGenerator,
            "tribunalAdvice": TribunalAdviceGenerator,
        },
    ),
    DocumentType.INSURANCE_CLAIM: SectionPlan(
        document_type=DocumentType.INSURANCE_CLAIM,
        framing=Framing.INSURANCE_CLAIM,
        generators={
            "legalBasis": LegalBasisGenerator,
            "incidentNarrative": IncidentNarrativeGenerator,
            "remedyStatement": RemedyStatementGenerator,
            "insuranceAdvice": InsuranceAdviceGenerator,
        },
    ),
}


def get_plan(document_type: DocumentType) -> SectionPlan:
    """
    Look up the plan for a document type.

    Raises:
        UnsupportedDocumentTypeError: If no plan is registered
    """
    plan = SECTION_PLANS.get(document_type)
    if plan is None:
        raise UnsupportedDocumentTypeError.for_type(document_type, DocumentType.values())
    return plan
