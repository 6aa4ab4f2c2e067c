"""Incident narrative section generator."""

from typing import Dict

from .base import BaseSectionGenerator, SectionContext
from ..models.document import IncidentNarrative


class IncidentNarrativeGenerator(BaseSectionGenerator):
    """Factual, first-person account of what happened to the vehicle."""

    section_key = "incidentNarrative"
    fields = ("text",)
    temperature = 0.6

    def _timeline(self, context: SectionContext) -> str:
        events = context.data.incident_details.timeline_events
        if not events:
            service_date = context.data.incident_details.service_date or "an unspecified date"
            return f"Not detailed; the vehicle was brought in for service on {service_date}."
        lines = [
            f"  - {event.timestamp + ': ' if event.timestamp else ''}{event.description}"
            for event in events
        ]
        return "\n" + "\n".join(lines)

    def build_prompt(self, context: SectionContext) -> str:
        incident = context.data.incident_details
        extra = [
            f"- Service Date: {incident.service_date or 'Not specified'}",
            f"- Incident Date: {incident.incident_date or 'Not specified'}",
            f"- Disputed Damage: {incident.disputed_damage_description}",
            f"- Damage Acknowledged by Mechanic: {incident.acknowledged_damage_description}",
            f"- Evidence of Pre-Service Condition Available: {'Yes' if incident.pre_service_evidence_available else 'No'}",
            f"- Timeline: {self._timeline(context)}",
        ]
        if incident.previous_communication_summary:
            extra.append(f"- Previous Communication: {incident.previous_communication_summary}")

        return f"""Generate a narrative describing the incident for an Australian {context.framing.document_noun}. The customer ({context.sender}) alleges their vehicle sustained damage while in the care of the mechanic ({context.recipient}).

{self._context_lines(context, extra)}

Instructions:
- Write a factual narrative from the customer's perspective.
- Cover the condition of the vehicle before service (if evidence is available), the service performed, when the damage was noticed, and the nature of the disputed damage.
- Keep it concise and objective, approximately 150-250 words."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> IncidentNarrative:
        return IncidentNarrative(text=fields["text"])
