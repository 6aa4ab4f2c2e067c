"""Tribunal application advice section generator."""

from typing import Dict

from .base import BaseSectionGenerator, SectionContext
from ..models.document import TribunalAdvice


class TribunalAdviceGenerator(BaseSectionGenerator):
    """Practical guidance for preparing a civil tribunal application."""

    section_key = "tribunalAdvice"
    fields = ("text",)
    temperature = 0.4

    def system_instructions(self, context: SectionContext) -> str:
        return (
            "You are an expert Australian legal assistant specialising in tribunal applications for "
            "consumer disputes. Generate precise JSON responses that exactly match the requested format."
        )

    def build_prompt(self, context: SectionContext) -> str:
        remedy = context.data.remedy_details
        details = self._context_lines(context, [
            f"- Tribunal: {context.data.escalation_details.escalation_body}",
            f"- Claim: {remedy.summarize()}",
            f"- Pre-Service Evidence Available: {'Yes' if context.data.incident_details.pre_service_evidence_available else 'No'}",
        ])
        return f"""Generate practical advice for the customer ({context.sender}) who is preparing a civil claim against the mechanic ({context.recipient}) at the tribunal named below.

{details}

Instructions:
- Explain which evidence to gather and bring (photos, invoices, quotes, correspondence).
- Outline the application steps and what to expect at the hearing.
- Do not invent fees, time limits or case references.
- Write plainly for a non-lawyer, approximately 100-150 words."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> TribunalAdvice:
        return TribunalAdvice(text=fields["text"])
