"""Insurance claim advice section generator."""

from typing import Dict

from .base import BaseSectionGenerator, SectionContext
from ..models.document import InsuranceAdvice
from ..utils.formatting import format_currency


class InsuranceAdviceGenerator(BaseSectionGenerator):
    """Guidance on supporting an insurance claim and recovering the excess."""

    section_key = "insuranceAdvice"
    fields = ("text",)
    temperature = 0.4

    def system_instructions(self, context: SectionContext) -> str:
        return (
            "You are an expert Australian legal assistant specialising in insurance law and consumer "
            "rights. Generate precise JSON responses that exactly match the requested format."
        )

    def build_prompt(self, context: SectionContext) -> str:
        insurance = context.data.remedy_details.insurance_details
        excess = format_currency(insurance.excess_amount) if insurance.excess_amount else "Not specified"
        details = self._context_lines(context, [
            f"- Insurer: {insurance.insurer or 'Not specified'}",
            f"- Claim Number: {insurance.claim_number or 'Not specified'}",
            f"- Excess Paid: {excess}",
        ])
        return f"""Generate advice for the customer ({context.sender}) supporting an insurance claim for damage caused to their vehicle while in the care of the mechanic ({context.recipient}).

{details}

Instructions:
- Explain how to support the claim with evidence and by referencing the policy and claim number.
- Explain that the insurer may pursue the mechanic for its outlay, and that the customer may separately seek reimbursement of the excess.
- Do not invent policy terms.
- Approximately 80-120 words."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> InsuranceAdvice:
        return InsuranceAdvice(text=fields["text"])
