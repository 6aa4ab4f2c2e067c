"""Remedy statement section generator."""

import logging
from typing import Dict

from .base import BaseSectionGenerator, SectionContext
from ..models.document import DemandType, RemedyDetails, RemedyStatement
from ..utils.formatting import format_currency

logger = logging.getLogger(__name__)


def describe_demand(remedy: RemedyDetails) -> str:
    """Detailed description of the demand, used as prompt context."""
    amount = format_currency(remedy.demand_amount) if remedy.demand_amount > 0 else "an amount to be confirmed"
    if remedy.demand_type == DemandType.EXCESS_REIMBURSEMENT:
        insurance = remedy.insurance_details
        return (
            f"reimbursement of my insurance excess payment of {amount}. Details of my insurance claim "
            f"(Insurer: {insurance.insurer or 'N/A'}, Claim No: {insurance.claim_number or 'N/A'}, "
            f"Excess: {format_currency(insurance.excess_amount) if insurance.excess_amount else 'N/A'}) "
            f"can be provided upon request."
        )
    if remedy.demand_type == DemandType.FULL_REPAIR_COST:
        return (
            f"payment for the full cost of repairs, estimated at {amount}, required to rectify the damage "
            f"caused by your workshop. Quotes can be provided."
        )
    return (
        f"compensation amounting to {amount} for the damage caused. The specific remedy sought is: "
        f"{remedy.demand_other_details or 'details to be confirmed'}."
    )


class RemedyStatementGenerator(BaseSectionGenerator):
    """
    Formal demand paragraph plus a one-line summary of the demand.

    The summary is computed from the input and always overrides whatever
    the model returned, so amounts in the summary cannot be invented.
    """

    section_key = "remedyStatement"
    fields = ("text", "summaryDemand")
    temperature = 0.5

    def build_prompt(self, context: SectionContext) -> str:
        remedy = context.data.remedy_details
        details = self._context_lines(context, [
            f"- Demand Type: {remedy.demand_type.value}",
            f"- Detailed Demand Description: {describe_demand(remedy)}",
            f"- Alternative Remedy Offered by Customer: {remedy.alternative_remedy_offered or 'none'}",
        ])
        summary = remedy.summarize()
        return f"""Generate a "Demand for Compensation" section for an Australian {context.framing.document_noun} from the customer ({context.sender}) to the mechanic ({context.recipient}).

{details}

Instructions:
- Formally state the demand based on the provided details, clearly specifying what is demanded.
- If an alternative remedy was offered, mention it briefly as a potential path to resolution.
- Keep the tone firm and direct, approximately 50-100 words for "text".
- Set "summaryDemand" to exactly: "{summary}"."""

    def to_result(self, fields: Dict[str, str], context: SectionContext) -> RemedyStatement:
        expected = context.data.remedy_details.summarize()
        if fields["summaryDemand"] != expected:
            logger.warning(
                f"Generated summaryDemand ({fields['summaryDemand']!r}) does not match expected "
                f"({expected!r}), using expected value"
            )
        return RemedyStatement(text=fields["text"], summary_demand=expected)
