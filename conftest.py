"""Shared pytest fixtures: scripted text-generation client and in-memory S3."""

import io
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest
from botocore.exceptions import ClientError

from dispute_docs.generator import DocumentGenerationService
from dispute_docs.orchestration import GenerationOrchestrator
from dispute_docs.rendering import TemplateCache, TemplateRenderer
from dispute_docs.storage import DocumentStore
from dispute_docs.utils.errors import GenerationServiceError
from dispute_docs.utils.retry import RetryPolicy

FIXED_NOW = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)

SECTION_KEY_PATTERN = re.compile(r'top-level key is "(\w+)"')

DEFAULT_SECTIONS = {
    "legalBasis": {"summaryText": "Under the Australian Consumer Law you must render services with due care and skill."},
    "incidentNarrative": {"text": "I left my vehicle in good condition and collected it with a scratched bumper."},
    "remedyStatement": {"text": "I demand payment for the repairs within the deadline.", "summaryDemand": "anything"},
    "escalationText": {"text": "If you do not respond by the deadline I will apply to the tribunal."},
    "tribunalAdvice": {"text": "Bring photos, invoices and quotes to the hearing."},
    "insuranceAdvice": {"text": "Quote your claim number in all correspondence with the insurer."},
}

LETTER_INPUT = {
    "document_type": "letter_of_demand",
    "state": "VIC",
    "customer_name": "Jane Citizen",
    "customer_email": "jane@example.com",
    "customer_address": "1 Collins St, Melbourne VIC 3000",
    "mechanic_name": "Fast Fix Motors",
    "mechanic_abn": "12 345 678 901",
    "vehicle_details": "2018 Toyota Corolla, Rego: ABC123",
    "service_date": "2024-03-01",
    "damage_description": "Deep scratches along the rear bumper",
    "remedyDetails": {"demandType": "fullRepairCost", "demandAmount": "800"},
}


def section_json(key: str, fields: Optional[Dict[str, str]] = None) -> str:
    """Model response text for a section."""
    return json.dumps({key: fields if fields is not None else DEFAULT_SECTIONS[key]})


def service_error(code: str, status: int) -> GenerationServiceError:
    """Classified error as BedrockClient raises it for a failed Converse call."""
    error = ClientError(
        {"Error": {"Code": code, "Message": f"{code} raised"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        "Converse",
    )
    return GenerationServiceError.from_client_error(error, operation="converse")


class FakeGenerationClient:
    """
    Stand-in for BedrockClient.

    Routes each call to a section by the key named in the prompt. A script is
    a list of responses consumed in order (the last one repeats); each item
    is either response text or an exception to raise. Unscripted sections
    answer with valid JSON.
    """

    def __init__(self, scripts: Optional[Dict[str, List[Any]]] = None):
        self.scripts = {key: list(items) for key, items in (scripts or {}).items()}
        self.calls: List[str] = []
        self.requests: List[Dict[str, Any]] = []

    def calls_for(self, section_key: str) -> int:
        return self.calls.count(section_key)

    async def invoke_text(
        self,
        messages: List[Dict[str, Any]],
        system_prompts: Optional[List[Dict[str, Any]]] = None,
        temperature: float = 0.5,
        max_tokens: int = 1024,
        json_response: bool = True
    ) -> str:
        prompt = messages[-1]["content"][0]["text"]
        match = SECTION_KEY_PATTERN.search(prompt)
        assert match, "prompt does not name its section key"
        key = match.group(1)

        self.calls.append(key)
        self.requests.append({"key": key, "prompt": prompt, "temperature": temperature, "system": system_prompts})

        script = self.scripts.get(key)
        if not script:
            return section_json(key)
        item = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(item, BaseException):
            raise item
        return item


class FakeS3Client:
    """In-memory subset of the boto3 S3 client used by DocumentStore."""

    def __init__(self, fail_suffixes: Optional[List[str]] = None):
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.fail_suffixes = fail_suffixes or []
        self.put_calls: List[str] = []

    @staticmethod
    def _missing(operation: str) -> ClientError:
        return ClientError(
            {"Error": {"Code": "NoSuchKey", "Message": "Not Found"}, "ResponseMetadata": {"HTTPStatusCode": 404}},
            operation,
        )

    def put_object(self, Bucket, Key, Body, ContentType, Metadata=None):
        self.put_calls.append(Key)
        if any(Key.endswith(suffix) for suffix in self.fail_suffixes):
            raise ClientError(
                {"Error": {"Code": "InternalError", "Message": "write failed"},
                 "ResponseMetadata": {"HTTPStatusCode": 500}},
                "PutObject",
            )
        self.objects[Key] = {"Body": Body, "ContentType": ContentType, "Metadata": Metadata or {}}
        return {"ETag": '"fake"'}

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("GetObject")
        stored = self.objects[Key]
        return {"Body": io.BytesIO(stored["Body"]), "ContentType": stored["ContentType"]}

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise self._missing("HeadObject")
        stored = self.objects[Key]
        return {
            "ContentType": stored["ContentType"],
            "ContentLength": len(stored["Body"]),
            "Metadata": stored["Metadata"],
        }


async def _no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Retry policy with the default limits that never actually waits."""
    return RetryPolicy(max_retries=2, base_delay=1.0, jitter=0.5, sleep=_no_sleep)


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def store(fake_s3) -> DocumentStore:
    return DocumentStore(bucket="test-bucket", client=fake_s3)


@pytest.fixture
def letter_input() -> Dict[str, Any]:
    return json.loads(json.dumps(LETTER_INPUT))


@pytest.fixture
def make_service(retry_policy, store):
    """Factory building a service around a given fake client."""

    def build(client: FakeGenerationClient, document_store: Optional[DocumentStore] = None) -> DocumentGenerationService:
        orchestrator = GenerationOrchestrator(client, retry_policy=retry_policy)
        return DocumentGenerationService(
            orchestrator,
            renderer=TemplateRenderer(TemplateCache()),
            store=document_store or store,
            clock=lambda: FIXED_NOW,
        )

    return build
