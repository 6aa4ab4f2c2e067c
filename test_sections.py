"""Tests for the section generators."""

import json

import pytest

from conftest import FIXED_NOW, FakeGenerationClient, section_json, service_error
from dispute_docs.builders import build_base_data
from dispute_docs.models import DocumentType, LegalBasis, RemedyStatement
from dispute_docs.sections import (
    EscalationGenerator,
    Framing,
    IncidentNarrativeGenerator,
    InsuranceAdviceGenerator,
    LegalBasisGenerator,
    RemedyStatementGenerator,
    SectionContext,
    TribunalAdviceGenerator,
)
from dispute_docs.utils.errors import ErrorType, InvalidGenerationOutputError, SectionGenerationError


def make_context(raw_input, document_type=DocumentType.LETTER_OF_DEMAND, framing=Framing.LETTER_OF_DEMAND):
    data = build_base_data(raw_input, document_type, now=FIXED_NOW)
    return SectionContext(data=data, framing=framing, raw_input=raw_input)


@pytest.mark.asyncio
async def test_legal_basis_generated(letter_input, retry_policy):
    client = FakeGenerationClient()
    generator = LegalBasisGenerator(client, retry_policy=retry_policy)

    result = await generator.generate(make_context(letter_input))

    assert isinstance(result, LegalBasis)
    assert "due care and skill" in result.summary_text
    assert client.calls == ["legalBasis"]

    request = client.requests[0]
    assert "Jane Citizen" in request["prompt"]
    assert "Fast Fix Motors" in request["prompt"]
    assert "2018 Toyota Corolla (registration ABC123)" in request["prompt"]
    assert request["temperature"] == 0.5


@pytest.mark.asyncio
async def test_framing_changes_prompt(letter_input, retry_policy):
    client = FakeGenerationClient()
    generator = LegalBasisGenerator(client, retry_policy=retry_policy)

    await generator.generate(make_context(letter_input, DocumentType.INSURANCE_CLAIM, Framing.INSURANCE_CLAIM))

    request = client.requests[0]
    assert "insurance claim support letter" in request["prompt"]
    assert "Insurance Contracts Act" in request["prompt"]
    assert "insurance law" in request["system"][0]["text"]


@pytest.mark.asyncio
async def test_summary_demand_is_computed_from_input(letter_input, retry_policy):
    invented = section_json("remedyStatement", {
        "text": "Pay me for the repairs.",
        "summaryDemand": "payment of $9,999.00",
    })
    client = FakeGenerationClient({"remedyStatement": [invented]})
    generator = RemedyStatementGenerator(client, retry_policy=retry_policy)

    result = await generator.generate(make_context(letter_input))

    assert isinstance(result, RemedyStatement)
    assert result.text == "Pay me for the repairs."
    assert result.summary_demand == "payment for the full repair cost of $800.00"


@pytest.mark.asyncio
async def test_control_characters_are_stripped(letter_input, retry_policy):
    noisy = json.dumps({"incidentNarrative": {"text": "  I collected\x07 the car\x00 damaged.\n  "}})
    client = FakeGenerationClient({"incidentNarrative": [noisy]})
    generator = IncidentNarrativeGenerator(client, retry_policy=retry_policy)

    result = await generator.generate(make_context(letter_input))

    assert result.text == "I collected the car damaged."


@pytest.mark.asyncio
async def test_markdown_wrapped_json_is_accepted(letter_input, retry_policy):
    wrapped = "Here you go:\n```json\n" + section_json("escalationText") + "\n```"
    client = FakeGenerationClient({"escalationText": [wrapped]})
    generator = EscalationGenerator(client, retry_policy=retry_policy)

    result = await generator.generate(make_context(letter_input))

    assert result.text.startswith("If you do not respond")
    assert "VCAT" in client.requests[0]["prompt"]
    assert "24/03/2024" in client.requests[0]["prompt"]


@pytest.mark.asyncio
async def test_invalid_output_is_retried(letter_input, retry_policy):
    client = FakeGenerationClient({"legalBasis": [
        "not json at all",
        section_json("legalBasis", {"summaryText": "   "}),
        section_json("legalBasis"),
    ]})
    generator = LegalBasisGenerator(client, retry_policy=retry_policy)

    result = await generator.generate(make_context(letter_input))

    assert client.calls_for("legalBasis") == 3
    assert result.summary_text



def test_unparseable_response_is_a_retryable_parse_error(retry_policy):
    generator = LegalBasisGenerator(FakeGenerationClient(), retry_policy=retry_policy)

    with pytest.raises(InvalidGenerationOutputError) as excinfo:
        generator.parse_response("Sorry, I cannot help with that.")
    assert excinfo.value.error_type == ErrorType.GENERATION_PARSE_ERROR
    assert excinfo.value.retryable is True

    with pytest.raises(InvalidGenerationOutputError) as excinfo:
        generator.parse_response(json.dumps({"legalBasis": {"summaryText": ""}}))
    assert excinfo.value.error_type == ErrorType.INVALID_GENERATION_OUTPUT

@pytest.mark.asyncio
async def test_invalid_output_exhausts_retries(letter_input, retry_policy):
    client = FakeGenerationClient({"tribunalAdvice": [json.dumps({"wrongKey": {"text": "x"}})]})
    generator = TribunalAdviceGenerator(client, retry_policy=retry_policy)

    with pytest.raises(SectionGenerationError) as excinfo:
        await generator.generate(make_context(letter_input, DocumentType.VCAT_APPLICATION, Framing.TRIBUNAL_APPLICATION))

    assert client.calls_for("tribunalAdvice") == 3
    assert excinfo.value.section_key == "tribunalAdvice"
    assert excinfo.value.error_type == ErrorType.SECTION_FAILED
    assert excinfo.value.context.details["cause_type"] == ErrorType.RETRIES_EXHAUSTED.value


@pytest.mark.asyncio
async def test_auth_failure_is_not_retried(letter_input, retry_policy):
    client = FakeGenerationClient({"insuranceAdvice": [service_error("AccessDeniedException", 403)]})
    generator = InsuranceAdviceGenerator(client, retry_policy=retry_policy)

    with pytest.raises(SectionGenerationError) as excinfo:
        await generator.generate(make_context(letter_input, DocumentType.INSURANCE_CLAIM, Framing.INSURANCE_CLAIM))

    assert client.calls_for("insuranceAdvice") == 1
    assert excinfo.value.context.details["cause_type"] == ErrorType.GENERATION_AUTH_ERROR.value


def test_output_instructions_name_the_section_key():
    generator = RemedyStatementGenerator(FakeGenerationClient())
    instructions = generator.output_instructions()
    assert 'top-level key is "remedyStatement"' in instructions
    assert "summaryDemand" in instructions


def test_incident_prompt_lists_timeline(retry_policy):
    raw = {
        "customer_name": "Jane Citizen",
        "timelineEvents": [{"timestamp": "2024-03-01", "description": "Dropped car off"}],
    }
    prompt = IncidentNarrativeGenerator(FakeGenerationClient()).build_prompt(make_context(raw))
    assert "2024-03-01: Dropped car off" in prompt
