"""Legal basis section generator."""

from typing import Dict

from .base import DEFAULT_SYSTEM_ROLE, BaseSectionGenerator, Framing, SectionContext
from ..models.document import LegalBasis

FRAMING_INSTRUCTIONS = {
    Framing.LETTER_OF_DEMAND: "The tone should be formal and assertive but not overly aggressive.",
    Framing.CONSUMER_COMPLAINT: (
        "Use language appropriate for a consumer affairs complaint. Emphasise the consumer guarantees "
        "under the Australian Consumer Law and reference the relevant consumer protection agency."
    ),
    Framing.TRIBUNAL_APPLICATION: (
        "Use formal legal terminology suitable for a tribunal application, with tribunal-specific "
        "language for the state jurisdiction."
    ),
    Framing.INSURANCE_CLAIM: (
        "Focus on bailment principles and how they apply to insurance claims. Reference the "
        "Insurance Contracts Act 1984 (Cth) where applicable."
    ),
}

SYSTEM_ROLES = {
    Framing.TRIBUNAL_APPLICATION: (
        "You are an expert Australian legal assistant specialising in tribunal applications for consumer disputes."
    ),
    Framing.INSURANCE_CLAIM: "You are an expert Australian legal assistant specialising in insurance law and consumer rights.",
}


class LegalBasisGenerator(BaseSectionGenerator):
    """Paragraph grounding the claim in the ACL guarantees and bailment."""

    section_key = "legalBasis"
    fields = ("summaryText",)
    temperature = 0.5

    def system_instructions(self, context: SectionContext) -> str:
        role = SYSTEM_ROLES.get(context.framing, DEFAULT_SYSTEM_ROLE)
        return f"{role} Generate precise JSON responses that exactly match the requested format."

    def build_prompt(self, context: SectionContext) -> str:
        incident = context.data.incident_details
        details = self._context_lines(context, [f"- Alleged Damage: {incident.disputed_damage_description}"])
        instructions = FRAMING_INSTRUCTIONS[context.framing]
        return f"""Generate a concise legal basis paragraph for an Australian {context.framing.document_noun} regarding vehicle damage that allegedly occurred while under a mechanic's care. The context is specific to {context.data.state}. Write from the perspective of the customer ({context.sender}) to the mechanic ({context.recipient}).

{details}

The legal basis should reference:
1. The guarantee under the Australian Consumer Law (ACL) that services will be rendered with due care and skill.
2. The mechanic's duty of care as a bailee for reward while the vehicle was in their possession.
3. Briefly, the potential liability for damage caused by negligence or by failing to meet the ACL guarantees.

Output Instructions:
- {instructions}
- Aim for approximately 100-150 words."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> LegalBasis:
        return LegalBasis(summary_text=fields["summaryText"])
