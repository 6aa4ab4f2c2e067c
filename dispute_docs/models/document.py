"""Document Data models threaded through the generation pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.formatting import format_currency


class DocumentType(str, Enum):
    """Supported dispute document types."""
    LETTER_OF_DEMAND = "letter_of_demand"
    CONSUMER_COMPLAINT = "consumer_complaint"
    VCAT_APPLICATION = "vcat_application"
    INSURANCE_CLAIM = "insurance_claim"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Any) -> Optional["DocumentType"]:
        """Return the matching member, or None for missing/unknown values."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


DOCUMENT_TITLES = {
    DocumentType.LETTER_OF_DEMAND: "Letter of Demand to Mechanic",
    DocumentType.CONSUMER_COMPLAINT: "Consumer Affairs Complaint",
    DocumentType.VCAT_APPLICATION: "VCAT Application Guidance",
    DocumentType.INSURANCE_CLAIM: "Insurance Claim Support Letter",
}


class DemandType(str, Enum):
    """What the claimant is asking the mechanic for."""
    FULL_REPAIR_COST = "fullRepairCost"
    EXCESS_REIMBURSEMENT = "excessReimbursement"
    OTHER = "other"


@dataclass
class SenderInfo:
    """The claimant."""
    name: str
    address: str = ""
    email: str = ""
    phone: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "address": self.address, "email": self.email, "phone": self.phone}


@dataclass
class RecipientInfo:
    """The counterparty (mechanic/business)."""
    name: str
    address: str = ""
    abn: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "address": self.address, "abn": self.abn}


@dataclass
class VehicleDetails:
    year: str = ""
    make: str = ""
    model: str = ""
    registration: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "make": self.make,
            "model": self.model,
            "registration": self.registration,
        }


@dataclass
class TimelineEvent:
    description: str
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "description": self.description}


@dataclass
class IncidentDetails:
    """
    What happened while the vehicle was in the mechanic's care.

    Attributes:
        service_date: Date the vehicle was serviced
        incident_date: Date the damage occurred (defaults to service_date)
        disputed_damage_description: Damage the mechanic denies causing
        acknowledged_damage_description: Damage the mechanic accepted
        pre_service_evidence_available: Whether before-service photos exist
        timeline_events: Ordered events leading up to the dispute
        previous_communication_summary: Earlier correspondence, if any
    """
    service_date: str = ""
    incident_date: str = ""
    disputed_damage_description: str = ""
    acknowledged_damage_description: str = ""
    pre_service_evidence_available: bool = False
    timeline_events: List[TimelineEvent] = field(default_factory=list)
    previous_communication_summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "serviceDate": self.service_date,
            "incidentDate": self.incident_date,
            "disputedDamageDescription": self.disputed_damage_description,
            "acknowledgedDamageDescription": self.acknowledged_damage_description,
            "preServiceEvidenceAvailable": self.pre_service_evidence_available,
            "timelineEvents": [event.to_dict() for event in self.timeline_events],
            "previousCommunicationSummary": self.previous_communication_summary,
        }


@dataclass
class InsuranceDetails:
    insurer: str = ""
    claim_number: str = ""
    excess_amount: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insurer": self.insurer,
            "claimNumber": self.claim_number,
            "excessAmount": self.excess_amount,
        }


@dataclass
class RemedyDetails:
    """
    The remedy demanded.

    Attributes:
        demand_type: Kind of demand
        demand_amount: Non-negative amount in AUD
        alternative_remedy_offered: Free-text alternative the claimant offers
        insurance_details: Insurer, claim number and excess
        demand_other_details: Description required when demand_type is OTHER
    """
    demand_type: DemandType = DemandType.OTHER
    demand_amount: float = 0.0
    alternative_remedy_offered: str = ""
    insurance_details: InsuranceDetails = field(default_factory=InsuranceDetails)
    demand_other_details: str = ""

    def summarize(self) -> str:
        """One-line summary of the demand, e.g. "payment for the full repair cost of $800.00"."""
        amount = format_currency(self.demand_amount) if self.demand_amount > 0 else "an amount to be confirmed"
        if self.demand_type == DemandType.EXCESS_REIMBURSEMENT:
            return f"reimbursement of the insurance excess of {amount}"
        if self.demand_type == DemandType.FULL_REPAIR_COST:
            return f"payment for the full repair cost of {amount}"
        return f"the remedy described, valued at {amount}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "demandType": self.demand_type.value,
            "demandAmount": self.demand_amount,
            "alternativeRemedyOffered": self.alternative_remedy_offered,
            "insuranceDetails": self.insurance_details.to_dict(),
            "demandOtherDetails": self.demand_other_details,
        }


@dataclass
class EscalationDetails:
    response_deadline_days: int = 14
    escalation_body: str = ""
    payment_made_under_protest: bool = False
    calculated_response_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "responseDeadlineDays": self.response_deadline_days,
            "escalationBody": self.escalation_body,
            "paymentMadeUnderProtest": self.payment_made_under_protest,
            "calculatedResponseDate": self.calculated_response_date,
        }


@dataclass
class DocumentMetadata:
    generated_date: str
    schema_version: str
    generation_id: str = ""
    is_fallback: bool = False
    fallback_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedDate": self.generated_date,
            "schemaVersion": self.schema_version,
            "generationId": self.generation_id,
            "isFallback": self.is_fallback,
            "fallbackReason": self.fallback_reason,
        }


# --- Generated sections -------------------------------------------------------


@dataclass(frozen=True)
class LegalBasis:
    summary_text: str
    section_key = "legalBasis"

    def to_dict(self) -> Dict[str, Any]:
        return {"summaryText": self.summary_text}


@dataclass(frozen=True)
class IncidentNarrative:
    text: str
    section_key = "incidentNarrative"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class RemedyStatement:
    text: str
    summary_demand: str
    section_key = "remedyStatement"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "summaryDemand": self.summary_demand}


@dataclass(frozen=True)
class EscalationText:
    text: str
    section_key = "escalationText"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class TribunalAdvice:
    text: str
    section_key = "tribunalAdvice"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


@dataclass(frozen=True)
class InsuranceAdvice:
    text: str
    section_key = "insuranceAdvice"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}


# Section key -> DocumentData attribute. The merge writes nothing else.
SECTION_ATTRIBUTES = {
    "legalBasis": "legal_basis",
    "incidentNarrative": "incident_narrative",
    "remedyStatement": "remedy_statement",
    "escalationText": "escalation_text",
    "tribunalAdvice": "tribunal_advice",
    "insuranceAdvice": "insurance_advice",
}


@dataclass
class DocumentData:
    """
    Canonical structured content of one document.

    Created by the base data builder (or the fallback composer), enriched
    once by the orchestrator's merge, then only read by the renderer.
    """
    document_type: DocumentType
    state: str
    sender_info: SenderInfo
    recipient_info: RecipientInfo
    vehicle_details: VehicleDetails
    incident_details: IncidentDetails
    remedy_details: RemedyDetails
    escalation_details: EscalationDetails
    metadata: DocumentMetadata
    legal_basis: Optional[LegalBasis] = None
    incident_narrative: Optional[IncidentNarrative] = None
    remedy_statement: Optional[RemedyStatement] = None
    escalation_text: Optional[EscalationText] = None
    tribunal_advice: Optional[TribunalAdvice] = None
    insurance_advice: Optional[InsuranceAdvice] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "document_type" and "document_type" in self.__dict__:
            raise AttributeError("document_type is immutable once set")
        super().__setattr__(name, value)

    @property
    def title(self) -> str:
        return DOCUMENT_TITLES[self.document_type]

    def generated_sections(self) -> Dict[str, Any]:
        """Return the generated sections present, keyed by section key."""
        sections = {}
        for key, attribute in SECTION_ATTRIBUTES.items():
            value = getattr(self, attribute)
            if value is not None:
                sections[key] = value
        return sections

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase shape used by templates and callers."""
        data = {
            "documentType": self.document_type.value,
            "documentTitle": self.title,
            "state": self.state,
            "senderInfo": self.sender_info.to_dict(),
            "recipientInfo": self.recipient_info.to_dict(),
            "vehicleDetails": self.vehicle_details.to_dict(),
            "incidentDetails": self.incident_details.to_dict(),
            "remedyDetails": self.remedy_details.to_dict(),
            "escalationDetails": self.escalation_details.to_dict(),
            "metadata": self.metadata.to_dict(),
        }
        for key, section in self.generated_sections().items():
            data[key] = section.to_dict()
        return data
