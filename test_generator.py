"""End-to-end tests for the document generation service."""

import re

import pytest
from jinja2 import DictLoader

from conftest import FakeGenerationClient, service_error
from dispute_docs import generator
from dispute_docs.builders import placeholder
from dispute_docs.generator import DocumentGenerationService, generate_document
from dispute_docs.models import DocumentType, GenerationState
from dispute_docs.orchestration import GenerationOrchestrator, get_plan
from dispute_docs.rendering import TemplateRenderer, build_environment
from dispute_docs.storage import DocumentStore
from dispute_docs.utils.config import Config
from dispute_docs.utils.errors import ErrorType

FILENAME_PATTERN = re.compile(r"^au_letter_of_demand_[0-9a-f]{8}$")

PRIMARY_STATES = [
    GenerationState.START,
    GenerationState.BUILDING_BASE,
    GenerationState.GENERATING_SECTIONS,
    GenerationState.ASSEMBLED,
    GenerationState.RENDERING,
    GenerationState.DONE,
]


@pytest.mark.asyncio
async def test_generate_letter_of_demand(make_service, letter_input):
    client = FakeGenerationClient()
    result = await make_service(client).generate(letter_input)

    assert result.success is True
    assert result.is_fallback is False
    assert result.warning is None
    assert FILENAME_PATTERN.match(result.filename)
    assert result.document_type == "letter_of_demand"
    assert result.document_title == "Letter of Demand to Mechanic"
    assert result.customer_name == "Jane Citizen"
    assert result.mechanic_name == "Fast Fix Motors"
    assert result.states == PRIMARY_STATES

    for expected in ("$800.00", "VCAT", "Jane Citizen", "Fast Fix Motors", "due care and skill"):
        assert expected in result.document_text

    envelope = result.to_dict()
    assert envelope["success"] is True
    assert envelope["documentData"]["remedyStatement"]["summaryDemand"] == (
        "payment for the full repair cost of $800.00"
    )
    assert envelope["states"][-1] == "DONE"
    assert "warning" not in envelope
    assert "error" not in envelope


@pytest.mark.asyncio
async def test_document_type_key_variants(make_service, letter_input):
    letter_input.pop("document_type")
    letter_input["documentType"] = " Insurance_Claim "
    result = await make_service(FakeGenerationClient()).generate(letter_input)

    assert result.success is True
    assert result.document_type == "insurance_claim"
    assert "insuranceAdvice" in result.document_data


@pytest.mark.asyncio
async def test_each_generation_gets_a_new_filename(make_service, letter_input):
    service = make_service(FakeGenerationClient())
    first = await service.generate(letter_input)
    second = await service.generate(letter_input)
    assert first.filename != second.filename



@pytest.mark.asyncio
async def test_same_input_renders_the_same_text(make_service, letter_input):
    service = make_service(FakeGenerationClient())
    first = await service.generate(letter_input)
    second = await service.generate(letter_input)

    assert first.document_text == second.document_text
    assert first.document_data["remedyStatement"] == second.document_data["remedyStatement"]

    first_envelope, second_envelope = first.to_dict(), second.to_dict()
    assert first_envelope.pop("filename") != second_envelope.pop("filename")
    first_envelope.pop("documentData")
    second_envelope.pop("documentData")
    assert first_envelope == second_envelope

@pytest.mark.asyncio
async def test_auth_failure_degrades_to_fallback(make_service, letter_input):
    client = FakeGenerationClient({"legalBasis": [service_error("AccessDeniedException", 403)]})
    result = await make_service(client).generate(letter_input)

    assert result.success is True
    assert result.is_fallback is True
    assert result.filename.endswith("_fallback")
    assert result.warning.startswith("Document was generated using the fallback template")
    assert "legalBasis" in result.warning
    assert result.states == [
        GenerationState.START,
        GenerationState.BUILDING_BASE,
        GenerationState.GENERATING_SECTIONS,
        GenerationState.FALLBACK_BUILDING,
        GenerationState.FALLBACK_RENDERING,
        GenerationState.DONE,
    ]
    assert client.calls_for("legalBasis") == 1

    for key in get_plan(DocumentType.LETTER_OF_DEMAND).section_keys:
        assert placeholder(key) in result.document_text
    assert "$800.00" in result.document_text
    assert result.document_data["metadata"]["isFallback"] is True


@pytest.mark.asyncio
async def test_fallback_does_not_call_the_service_again(make_service, letter_input):
    client = FakeGenerationClient({"remedyStatement": ["garbage"]})
    result = await make_service(client).generate(letter_input)

    assert result.is_fallback is True
    planned = len(get_plan(DocumentType.LETTER_OF_DEMAND).section_keys)
    # three attempts for the failing section, one for each of the others
    assert len(client.calls) == 3 + (planned - 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("document_type", ["parking_fine", None, "", 42])
async def test_unsupported_document_type(make_service, letter_input, document_type):
    letter_input["document_type"] = document_type
    client = FakeGenerationClient()
    result = await make_service(client).generate(letter_input)

    assert result.success is False
    assert result.error_type == ErrorType.UNSUPPORTED_DOCUMENT_TYPE.value
    assert result.states == [GenerationState.START, GenerationState.FAILED]
    assert result.document_text == ""
    assert client.calls == []



@pytest.mark.asyncio
@pytest.mark.parametrize("raw_input", [["x"], "letter_of_demand", 42, []])
async def test_input_that_is_not_an_object(make_service, raw_input):
    client = FakeGenerationClient()
    result = await make_service(client).generate(raw_input)

    assert result.success is False
    assert result.error_type == ErrorType.UNSUPPORTED_DOCUMENT_TYPE.value
    assert result.states == [GenerationState.START, GenerationState.FAILED]
    assert result.to_dict()["success"] is False
    assert client.calls == []

@pytest.mark.asyncio
async def test_fallback_failure_returns_failure(retry_policy, letter_input):
    client = FakeGenerationClient()
    service = DocumentGenerationService(
        GenerationOrchestrator(client, retry_policy=retry_policy),
        renderer=TemplateRenderer(environment=build_environment(DictLoader({}))),
    )

    result = await service.generate(letter_input)

    assert result.success is False
    assert result.error_type == ErrorType.FALLBACK_FAILED.value
    assert "Primary generation failed" in result.error
    assert "fallback generation failed" in result.error
    assert result.states[-3:] == [
        GenerationState.FALLBACK_BUILDING,
        GenerationState.FALLBACK_RENDERING,
        GenerationState.FAILED,
    ]


@pytest.mark.asyncio
async def test_from_config_uses_configured_defaults(fake_s3, letter_input):
    config = Config.from_dict({
        "documents": {"filename_prefix": "nz", "default_state": "NSW"},
        "generation": {"max_retries": 0},
    })
    store = DocumentStore(bucket="b", client=fake_s3)
    service = DocumentGenerationService.from_config(config, client=FakeGenerationClient(), store=store)

    assert service.orchestrator.retry_policy.max_attempts == 1
    assert service.store is store

    letter_input.pop("state")
    envelope = (await service.generate(letter_input)).to_dict()
    assert envelope["filename"].startswith("nz_letter_of_demand_")
    assert envelope["documentData"]["escalationDetails"]["escalationBody"] == "NCAT"


def test_sync_entry_point(monkeypatch, make_service, letter_input):
    monkeypatch.setattr(generator, "_service", make_service(FakeGenerationClient()))

    envelope = generate_document(letter_input)

    assert envelope["success"] is True
    assert FILENAME_PATTERN.match(envelope["filename"])
    assert envelope["states"] == [state.value for state in PRIMARY_STATES]


def test_sync_entry_point_reports_initialization_failure(monkeypatch, letter_input):
    def broken_load(*args, **kwargs):
        raise OSError("config unreadable")

    monkeypatch.setattr(generator, "_service", None)
    monkeypatch.setattr(generator.Config, "load", broken_load)

    envelope = generate_document(letter_input)

    assert envelope["success"] is False
    assert envelope["errorType"] == ErrorType.INITIALIZATION_FAILED.value
    assert "config unreadable" in envelope["error"]
