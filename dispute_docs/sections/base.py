"""Base class for section generators backed by the text-generation service."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from ..models.document import (
    DocumentData,
    EscalationText,
    IncidentNarrative,
    InsuranceAdvice,
    LegalBasis,
    RemedyStatement,
    TribunalAdvice,
)
from ..utils.errors import ErrorType, InvalidGenerationOutputError, SectionGenerationError
from ..utils.response_formatter import ResponseFormatter, clean_text
from ..utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

SectionResult = Union[LegalBasis, IncidentNarrative, RemedyStatement, EscalationText, TribunalAdvice, InsuranceAdvice]

DEFAULT_SYSTEM_ROLE = "You are an expert Australian legal assistant specialised in consumer law and automotive disputes."


class Framing(str, Enum):
    """Prompt framing, chosen per document type."""
    LETTER_OF_DEMAND = "letter_of_demand"
    CONSUMER_COMPLAINT = "consumer_complaint"
    TRIBUNAL_APPLICATION = "tribunal_application"
    INSURANCE_CLAIM = "insurance_claim"

    @property
    def document_noun(self) -> str:
        return {
            Framing.LETTER_OF_DEMAND: "letter of demand",
            Framing.CONSUMER_COMPLAINT: "consumer affairs complaint",
            Framing.TRIBUNAL_APPLICATION: "tribunal application",
            Framing.INSURANCE_CLAIM: "insurance claim support letter",
        }[self]


@dataclass
class SectionContext:
    """Everything a generator may read; generators never mutate it."""
    data: DocumentData
    framing: Framing = Framing.LETTER_OF_DEMAND
    raw_input: Dict[str, Any] = field(default_factory=dict)

    @property
    def sender(self) -> str:
        return self.data.sender_info.name

    @property
    def recipient(self) -> str:
        return self.data.recipient_info.name

    def vehicle_summary(self) -> str:
        vehicle = self.data.vehicle_details
        description = " ".join(part for part in (vehicle.year, vehicle.make, vehicle.model) if part)
        description = description or "the vehicle"
        if vehicle.registration:
            description += f" (registration {vehicle.registration})"
        return description


class BaseSectionGenerator(ABC):
    """
    Base class for all section generators.

    Subclasses declare the section key and the string fields the model must
    return, build the user prompt, and convert the validated fields into a
    typed result.

    Attributes:
        section_key: Top-level JSON key the model must answer with
        fields: Required non-empty string fields inside that object
        temperature: Sampling temperature for this section
        client: Text-generation client exposing ``invoke_text``
        retry_policy: Shared retry/backoff policy
    """

    section_key: str = ""
    fields: Tuple[str, ...] = ("text",)
    temperature: float = 0.5

    def __init__(
        self,
        client: Any,
        retry_policy: Optional[RetryPolicy] = None,
        max_tokens: int = 1024
    ):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_tokens = max_tokens

    @abstractmethod
    def build_prompt(self, context: SectionContext) -> str:
        """Build the user prompt describing the section to write."""
        pass

    @abstractmethod
    def to_result(self, fields: Dict[str, str], context: SectionContext) -> SectionResult:
        """Convert validated fields into the typed section result."""
        pass

    def system_instructions(self, context: SectionContext) -> str:
        return (
            f"{DEFAULT_SYSTEM_ROLE} Generate precise JSON responses that exactly match "
            f"the requested format. Adhere strictly to the output instructions."
        )

    def output_instructions(self) -> str:
        """Describe the exact JSON shape expected back."""
        example = {self.section_key: {name: f"<{name}>" for name in self.fields}}
        return (
            f'Respond ONLY with a JSON object whose single top-level key is "{self.section_key}", '
            f"holding an object with the string keys {', '.join(self.fields)}.\n"
            f"Example Format: {json.dumps(example)}"
        )

    async def generate(self, context: SectionContext) -> SectionResult:
        """
        Generate this section.

        Args:
            context: Document data and framing

        Returns:
            Typed section result with non-empty, control-character-free text

        Raises:
            SectionGenerationError: Wrapping the final failure (invalid output
                after retries, exhausted retries, or a non-retryable error)
        """
        messages = [{"role": "user", "content": [{"text": f"{self.build_prompt(context)}\n\n{self.output_instructions()}"}]}]
        system_prompts = [{"text": self.system_instructions(context)}]

        async def attempt() -> Dict[str, str]:
            text = await self.client.invoke_text(
                messages=messages,
                system_prompts=system_prompts,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                json_response=True,
            )
            return self.parse_response(text)

        logger.info(f"Generating {self.section_key} section ({context.framing.value})")
        try:
            fields = await self.retry_policy.run(attempt, operation_name=f"generate {self.section_key}")
        except Exception as e:
            logger.error(f"{self.section_key} section failed: {str(e)}")
            raise SectionGenerationError.wrap(self.section_key, e) from e

        result = self.to_result(fields, context)
        logger.info(f"{self.section_key} section generated successfully")
        return result

    def parse_response(self, text: str) -> Dict[str, str]:
        """
        Validate a raw model response.

        Raises:
            InvalidGenerationOutputError: If no JSON object is found or any
                required field is missing, not a string, or blank
        """
        data = ResponseFormatter.extract_json_from_response(text or "")
        if data is None:
            raise InvalidGenerationOutputError.for_section(
                self.section_key, "response is not a JSON object", text, error_type=ErrorType.GENERATION_PARSE_ERROR
            )

        problem = ResponseFormatter.missing_text_fields(data, self.section_key, self.fields)
        if problem:
            raise InvalidGenerationOutputError.for_section(self.section_key, problem, text)

        return {name: clean_text(data[self.section_key][name]) for name in self.fields}

    def _context_lines(self, context: SectionContext, extra: Optional[List[str]] = None) -> str:
        lines = [
            f"- Customer: {context.sender}",
            f"- Mechanic: {context.recipient}",
            f"- Vehicle: {context.vehicle_summary()}",
            f"- State/Territory: {context.data.state}",
        ]
        lines.extend(extra or [])
        return "Context:\n" + "\n".join(lines)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(section_key={self.section_key})"
