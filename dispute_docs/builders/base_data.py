"""
Base Data Builder.

Turns raw form input into a canonical DocumentData object with every
default filled in. Pure and synchronous: no I/O, never raises for missing
optional fields. Output depends only on the input and ``now``.
"""

import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ..models.document import (
    DemandType,
    DocumentData,
    DocumentMetadata,
    DocumentType,
    EscalationDetails,
    IncidentDetails,
    InsuranceDetails,
    RecipientInfo,
    RemedyDetails,
    SenderInfo,
    TimelineEvent,
    VehicleDetails,
)
from ..utils.config import DocumentsConfig

logger = logging.getLogger(__name__)

CUSTOMER_NAME_PLACEHOLDER = "Customer Name Missing"
MECHANIC_NAME_PLACEHOLDER = "Mechanic Name Missing"
DAMAGE_PLACEHOLDER = "Damage details not provided."
ACKNOWLEDGED_DAMAGE_PLACEHOLDER = "None specified"
DEFAULT_ESCALATION_BODY = "the relevant state tribunal (e.g., VCAT, NCAT, QCAT)"

MIN_RESPONSE_DEADLINE_DAYS = 5
MAX_RESPONSE_DEADLINE_DAYS = 30

# Civil and administrative tribunal per state/territory
STATE_TO_ESCALATION_BODY = {
    "ACT": "ACAT",
    "NSW": "NCAT",
    "NT": "NTCAT",
    "QLD": "QCAT",
    "SA": "SACAT",
    "TAS": "TASCAT",
    "VIC": "VCAT",
    "WA": "SAT",
}

REQUIRED_FIELDS = {
    DocumentType.LETTER_OF_DEMAND: ["customer_name", "customer_email", "mechanic_name", "damage_description"],
    DocumentType.CONSUMER_COMPLAINT: ["customer_name", "customer_email", "mechanic_name", "damage_description"],
    DocumentType.VCAT_APPLICATION: ["customer_name", "customer_email", "mechanic_name", "damage_description"],
    DocumentType.INSURANCE_CLAIM: [
        "customer_name", "customer_email", "mechanic_name", "damage_description", "insurance_insurer"
    ],
}

_REGO_PATTERN = re.compile(r"(?:Rego|Registration)[:\s]+(\w+)", re.IGNORECASE)
_YEAR_PATTERN = re.compile(r"^\d{4}$")


def get_safe(data: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Read a dotted path from nested dicts.

    None and missing values along the way yield ``default``.
    """
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, dict) or current.get(key) is None:
            return default
        current = current[key]
    return current


def _first_present(data: Dict[str, Any], paths: List[str], default: Any = None) -> Any:
    for path in paths:
        value = get_safe(data, path)
        if value is not None and value != "":
            return value
    return default


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_vehicle_details(details: Optional[str]) -> VehicleDetails:
    """
    Best-effort parse of a free-text vehicle description.

    "2018 Toyota Corolla, Rego: ABC123" -> year 2018, make Toyota,
    model Corolla, registration ABC123.

    Args:
        details: Free-text vehicle details

    Returns:
        VehicleDetails with empty strings for anything not found
    """
    if not details or not isinstance(details, str):
        return VehicleDetails()

    registration = ""
    remainder = details
    match = _REGO_PATTERN.search(remainder)
    if match:
        registration = match.group(1).strip()
        remainder = (remainder[:match.start()] + remainder[match.end():]).strip()

    parts = [part for part in re.split(r"[,\s]+", remainder) if part]

    year = ""
    if parts and _YEAR_PATTERN.match(parts[0]):
        year = parts.pop(0)
    make = parts.pop(0) if parts else ""
    model = " ".join(parts)

    return VehicleDetails(year=year, make=make, model=model, registration=registration)


def coerce_amount(value: Any) -> float:
    """
    Coerce a form amount to a non-negative finite number.

    "1500" -> 1500, 1500 -> 1500, "" -> 0; negative, NaN, infinite and
    non-numeric values -> 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().lstrip("$").replace(",", "")
        if not value:
            return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric amount {value!r}, using 0")
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        logger.warning(f"Amount {value!r} is not a non-negative finite number, using 0")
        return 0.0
    return amount


def coerce_deadline_days(value: Any, default: int = 14) -> int:
    """Coerce the response deadline to an integer clamped to [5, 30]."""
    days = default
    if value is not None and value != "" and not isinstance(value, bool):
        try:
            days = int(float(value))
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Invalid responseDeadlineDays {value!r}, using {default}")
            days = default
    clamped = max(MIN_RESPONSE_DEADLINE_DAYS, min(MAX_RESPONSE_DEADLINE_DAYS, days))
    if clamped != days:
        logger.info(f"responseDeadlineDays {days} clamped to {clamped}")
    return clamped


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "on")
    return bool(value)


def escalation_body_for_state(state: str) -> str:
    return STATE_TO_ESCALATION_BODY.get(state.strip().upper(), DEFAULT_ESCALATION_BODY)


def _parse_timeline(events: Any) -> List[TimelineEvent]:
    if not isinstance(events, list):
        return []
    timeline = []
    for event in events:
        if isinstance(event, str):
            description, timestamp = event.strip(), None
        elif isinstance(event, dict):
            description = _text(event.get("description"))
            timestamp = _text(event.get("timestamp")) or None
        else:
            continue
        if description:
            timeline.append(TimelineEvent(description=description, timestamp=timestamp))
    return timeline


def _parse_demand_type(value: Any) -> DemandType:
    if value in (None, ""):
        return DemandType.OTHER
    try:
        return DemandType(value)
    except ValueError:
        logger.warning(f"Unknown demandType {value!r}, treating as 'other'")
        return DemandType.OTHER


def missing_required_fields(raw_input: Dict[str, Any], document_type: DocumentType) -> List[str]:
    """Return the required form fields that are absent or blank."""
    missing = []
    for name in REQUIRED_FIELDS.get(document_type, []):
        if name == "insurance_insurer":
            value = _first_present(raw_input, ["remedyDetails.insuranceDetails.insurer", "insurance_insurer"])
        else:
            value = raw_input.get(name)
        if not _text(value):
            missing.append(name)
    return missing


def _soft_validate(raw_input: Dict[str, Any], document_type: DocumentType, remedy: RemedyDetails) -> None:
    missing = missing_required_fields(raw_input, document_type)
    if missing:
        logger.warning(f"Missing required fields for {document_type.value}: {', '.join(missing)}")

    if remedy.demand_type == DemandType.OTHER and not remedy.demand_other_details:
        logger.warning("demandType is 'other' but demandOtherDetails is empty")

    insurance = remedy.insurance_details
    if remedy.demand_type == DemandType.EXCESS_REIMBURSEMENT and not (insurance.insurer or insurance.claim_number):
        logger.warning("demandType is 'excessReimbursement' but no insurance details were provided")


def build_base_data(
    raw_input: Dict[str, Any],
    document_type: DocumentType,
    *,
    now: Optional[datetime] = None,
    config: Optional[DocumentsConfig] = None,
    generation_id: str = ""
) -> DocumentData:
    """
    Build the canonical DocumentData for a request.

    Args:
        raw_input: Raw form fields (flat keys plus optional nested
            remedyDetails / escalationDetails objects)
        document_type: Requested document type
        now: Generation timestamp; fixed in tests for determinism
        config: Document defaults (state, schema version, deadline)
        generation_id: Identifier recorded in metadata

    Returns:
        DocumentData with placeholders substituted for missing names
    """
    config = config or DocumentsConfig()
    now = now or datetime.now(timezone.utc)
    raw_input = raw_input or {}

    state = _text(raw_input.get("state")) or config.default_state

    service_date = _text(raw_input.get("service_date"))
    incident = IncidentDetails(
        service_date=service_date,
        incident_date=_text(raw_input.get("incident_date")) or service_date,
        disputed_damage_description=_text(raw_input.get("damage_description")) or DAMAGE_PLACEHOLDER,
        acknowledged_damage_description=(
            _text(raw_input.get("acknowledged_damage_description")) or ACKNOWLEDGED_DAMAGE_PLACEHOLDER
        ),
        pre_service_evidence_available=coerce_bool(raw_input.get("pre_service_evidence_available", False)),
        timeline_events=_parse_timeline(_first_present(raw_input, ["timelineEvents", "timeline_events"], [])),
        previous_communication_summary=_text(raw_input.get("previous_communication_summary")),
    )

    remedy = RemedyDetails(
        demand_type=_parse_demand_type(_first_present(raw_input, ["remedyDetails.demandType", "demand_type"])),
        demand_amount=coerce_amount(_first_present(raw_input, ["remedyDetails.demandAmount", "demand_amount"])),
        alternative_remedy_offered=_text(
            _first_present(raw_input, ["remedyDetails.alternativeRemedyOffered", "alternative_remedy_offered"])
        ),
        insurance_details=InsuranceDetails(
            insurer=_text(_first_present(raw_input, ["remedyDetails.insuranceDetails.insurer", "insurance_insurer"])),
            claim_number=_text(
                _first_present(raw_input, ["remedyDetails.insuranceDetails.claimNumber", "insurance_claim_number"])
            ),
            excess_amount=coerce_amount(
                _first_present(raw_input, ["remedyDetails.insuranceDetails.excessAmount", "insurance_excess"])
            ),
        ),
        demand_other_details=_text(
            _first_present(raw_input, [
                "remedyDetails.demandOtherDetails",
                "remedyDetails.demand_other_details",
                "demand_other_details",
            ])
        ),
    )

    deadline_days = coerce_deadline_days(
        _first_present(raw_input, ["escalationDetails.responseDeadlineDays", "response_deadline_days"]),
        default=config.default_response_deadline_days,
    )
    response_date = _text(
        _first_present(raw_input, ["calculatedResponseDate", "escalationDetails.calculatedResponseDate"])
    ) or (now.date() + timedelta(days=deadline_days)).isoformat()
    escalation = EscalationDetails(
        response_deadline_days=deadline_days,
        escalation_body=_text(get_safe(raw_input, "escalationDetails.escalationBody")) or escalation_body_for_state(state),
        payment_made_under_protest=coerce_bool(get_safe(raw_input, "escalationDetails.paymentMadeUnderProtest", False)),
        calculated_response_date=response_date,
    )

    _soft_validate(raw_input, document_type, remedy)

    data = DocumentData(
        document_type=document_type,
        state=state,
        sender_info=SenderInfo(
            name=_text(raw_input.get("customer_name")) or CUSTOMER_NAME_PLACEHOLDER,
            address=_text(raw_input.get("customer_address")),
            email=_text(raw_input.get("customer_email")),
            phone=_text(raw_input.get("customer_phone")),
        ),
        recipient_info=RecipientInfo(
            name=_text(raw_input.get("mechanic_name")) or MECHANIC_NAME_PLACEHOLDER,
            address=_text(raw_input.get("mechanic_address")),
            abn=_text(raw_input.get("mechanic_abn")),
        ),
        vehicle_details=parse_vehicle_details(raw_input.get("vehicle_details")),
        incident_details=incident,
        remedy_details=remedy,
        escalation_details=escalation,
        metadata=DocumentMetadata(
            generated_date=now.isoformat(),
            schema_version=config.schema_version,
            generation_id=generation_id,
        ),
    )

    logger.debug(f"Built base data for {document_type.value}: sender={data.sender_info.name}, state={state}")
    return data
