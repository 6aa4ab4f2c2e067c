"""Deadline and escalation section generator."""

from typing import Dict

from .base import BaseSectionGenerator, SectionContext
from ..models.document import EscalationText
from ..utils.formatting import format_date


class EscalationGenerator(BaseSectionGenerator):
    """Response deadline and the consequences of ignoring it."""

    section_key = "escalationText"
    fields = ("text",)
    temperature = 0.5

    def build_prompt(self, context: SectionContext) -> str:
        escalation = context.data.escalation_details
        details = self._context_lines(context, [
            f"- Response Deadline: within {escalation.response_deadline_days} days, "
            f"by {format_date(escalation.calculated_response_date)}",
            f"- Intended Escalation Body: {escalation.escalation_body}",
            f"- Payment Made Under Protest: {'Yes' if escalation.payment_made_under_protest else 'No'}",
        ])
        return f"""Generate a "Deadline and Further Action" section for an Australian {context.framing.document_noun} from the customer ({context.sender}) to the mechanic ({context.recipient}).

{details}

Instructions:
- Clearly state the deadline for the recipient to respond and comply with the demand.
- State the intention to escalate the matter if the deadline passes without a satisfactory response.
- Name the escalation body given above, and mention lodging a complaint with the state's consumer affairs agency as well.
- Mention seeking recovery of all associated costs.
- Keep the tone serious, approximately 75-125 words."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> EscalationText:
        return EscalationText(text=fields["text"])
