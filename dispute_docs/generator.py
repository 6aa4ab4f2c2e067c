"""
Document generation facade.

Ties the pipeline together: validates the request, runs the primary path
(base data, concurrent section generation, rendering), degrades to the
fallback composer on any failure, and returns a uniform result envelope.
Optionally persists the rendered text plus a snapshot of the raw input so a
document can be regenerated later.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from .builders.fallback import compose_fallback
from .models.document import DOCUMENT_TITLES, DocumentData, DocumentType
from .models.result import GenerationResult, GenerationState
from .orchestration.orchestrator import GenerationOrchestrator
from .rendering.renderer import TemplateCache, TemplateRenderer
from .storage.document_store import DocumentStore
from .utils.bedrock_client import BedrockClient
from .utils.config import Config, DocumentsConfig
from .utils.errors import (
    ConfigurationError,
    DocumentGenerationError,
    ErrorContext,
    ErrorType,
    FallbackError,
    StorageError,
    UnsupportedDocumentTypeError,
    error_message,
)
from .utils.logging import log_context, setup_logging
from .utils.retry import RetryPolicy

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class DocumentGenerationService:
    """
    Entry point for generating, storing and regenerating documents.

    Attributes:
        orchestrator: Runs the primary generation path
        renderer: Renders document data to text (owns the template cache)
        store: Object storage; required only for store/regenerate
        documents_config: Filename prefix and document defaults
    """

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        renderer: Optional[TemplateRenderer] = None,
        store: Optional[DocumentStore] = None,
        documents_config: Optional[DocumentsConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.orchestrator = orchestrator
        self.renderer = renderer or TemplateRenderer(TemplateCache())
        self.store = store
        self.documents_config = documents_config or orchestrator.documents_config
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:8])

    @classmethod
    def from_config(
        cls,
        config: Config,
        client: Optional[Any] = None,
        store: Optional[DocumentStore] = None
    ) -> "DocumentGenerationService":
        """
        Build the service and its collaborators from configuration.

        Args:
            config: Loaded configuration
            client: Text-generation client (defaults to a BedrockClient)
            store: Document store (defaults to one built from config.storage)

        Returns:
            DocumentGenerationService
        """
        generation = config.generation
        client = client or BedrockClient(
            region=config.aws_region,
            model_id=generation.model_id,
            timeout=generation.timeout,
        )
        retry_policy = RetryPolicy(
            max_retries=generation.max_retries,
            base_delay=generation.backoff_base_seconds,
            jitter=generation.backoff_jitter_seconds,
        )
        orchestrator = GenerationOrchestrator(
            client,
            retry_policy=retry_policy,
            documents_config=config.documents,
            max_tokens=generation.max_tokens,
        )
        return cls(
            orchestrator,
            renderer=TemplateRenderer(TemplateCache()),
            store=store or DocumentStore.from_config(config.storage),
            documents_config=config.documents,
        )

    def _filename(self, document_type: DocumentType, generation_id: str, is_fallback: bool) -> str:
        filename = f"{self.documents_config.filename_prefix}_{document_type.value}_{generation_id}"
        return f"{filename}_fallback" if is_fallback else filename

    def _envelope(
        self,
        data: DocumentData,
        text: str,
        filename: str,
        states: list,
        warning: Optional[str] = None
    ) -> GenerationResult:
        return GenerationResult(
            success=True,
            is_fallback=data.metadata.is_fallback,
            document_text=text,
            document_data=data.to_dict(),
            filename=filename,
            document_type=data.document_type.value,
            document_title=data.title,
            customer_name=data.sender_info.name,
            mechanic_name=data.recipient_info.name,
            warning=warning,
            states=states,
        )

    async def generate(self, raw_input: Dict[str, Any]) -> GenerationResult:
        """
        Generate one document.

        Args:
            raw_input: Raw form input; must carry ``document_type``

        Returns:
            GenerationResult: success, fallback (success with is_fallback and
            a warning) or failure (error and error_type set). Never raises.
        """
        raw_input = {} if raw_input is None else raw_input
        states = [GenerationState.START]

        if not isinstance(raw_input, dict):
            error = UnsupportedDocumentTypeError.for_input(raw_input, DocumentType.values())
            logger.warning(str(error))
            states.append(GenerationState.FAILED)
            return GenerationResult(
                success=False,
                error=error.context.message,
                error_type=error.error_type.value,
                states=states,
            )

        requested_type = raw_input.get("document_type", raw_input.get("documentType"))
        document_type = DocumentType.parse(requested_type)
        if document_type is None:
            error = UnsupportedDocumentTypeError.for_type(requested_type, DocumentType.values())
            logger.warning(str(error))
            states.append(GenerationState.FAILED)
            return GenerationResult(
                success=False,
                document_type=requested_type if isinstance(requested_type, str) else None,
                error=error.context.message,
                error_type=error.error_type.value,
                states=states,
            )

        generation_id = self._id_factory()
        now = self._clock()

        with log_context(generation_id=generation_id, document_type=document_type.value):
            logger.info(f"Generating {document_type.value} document")
            try:
                data = await self.orchestrator.generate_document_data(
                    raw_input,
                    document_type,
                    now=now,
                    generation_id=generation_id,
                    on_state=states.append,
                )
                states.append(GenerationState.RENDERING)
                text = self.renderer.render(document_type, data)
            except Exception as primary_error:
                logger.warning(f"Primary generation failed, using fallback: {error_message(primary_error)}")
                return self._generate_fallback(raw_input, document_type, primary_error, now, generation_id, states)

            states.append(GenerationState.DONE)
            filename = self._filename(document_type, generation_id, is_fallback=False)
            logger.info(f"Generated {filename}")
            return self._envelope(data, text, filename, states)

    def _generate_fallback(
        self,
        raw_input: Dict[str, Any],
        document_type: DocumentType,
        primary_error: Exception,
        now: datetime,
        generation_id: str,
        states: list
    ) -> GenerationResult:
        states.append(GenerationState.FALLBACK_BUILDING)
        try:
            data = compose_fallback(
                raw_input,
                document_type,
                primary_error,
                now=now,
                config=self.documents_config,
                generation_id=generation_id,
            )
            states.append(GenerationState.FALLBACK_RENDERING)
            text = self.renderer.render(document_type, data)
        except Exception as fallback_error:
            error = FallbackError.from_errors(primary_error, fallback_error)
            logger.error(str(error), exc_info=True)
            states.append(GenerationState.FAILED)
            return GenerationResult(
                success=False,
                document_type=document_type.value,
                document_title=DOCUMENT_TITLES[document_type],
                error=error.context.message,
                error_type=error.error_type.value,
                states=states,
            )

        states.append(GenerationState.DONE)
        filename = self._filename(document_type, generation_id, is_fallback=True)
        warning = (
            "Document was generated using the fallback template because content generation failed: "
            f"{error_message(primary_error)}"
        )
        logger.info(f"Generated fallback document {filename}")
        return self._envelope(data, text, filename, states, warning=warning)

    async def generate_and_store(self, raw_input: Dict[str, Any]) -> GenerationResult:
        """
        Generate a document and persist it with its input snapshot.

        A failed document write turns the result into a failure; a failed
        snapshot write only sets ``regeneration_available`` to False.

        Returns:
            GenerationResult
        """
        result = await self.generate(raw_input)
        if not result.success:
            return result
        if self.store is None:
            logger.warning("No document store configured; document not persisted")
            return result

        metadata = {
            "document-type": result.document_type,
            "is-fallback": str(result.is_fallback).lower(),
            "generated-date": (result.document_data or {}).get("metadata", {}).get("generatedDate", ""),
        }

        with log_context(document_type=result.document_type):
            try:
                await self.store.put_document(result.filename, result.document_text, metadata=metadata)
            except StorageError as e:
                logger.error(f"Failed to store document {result.filename}: {e.context.message}")
                result.success = False
                result.error = e.context.message
                result.error_type = e.error_type.value
                return result

            try:
                await self.store.put_input_snapshot(result.filename, raw_input, metadata=metadata)
                result.regeneration_available = True
            except StorageError as e:
                logger.warning(
                    f"Input snapshot for {result.filename} not stored, regeneration unavailable: "
                    f"{e.context.message}"
                )
                result.regeneration_available = False

        return result

    async def regenerate(self, filename: str) -> GenerationResult:
        """
        Re-run generation from the stored input snapshot of ``filename``.

        The new document gets a new id and filename; the original objects are
        never overwritten.

        Returns:
            GenerationResult for the new document, or a failure when the
            snapshot is missing or unreadable
        """
        if self.store is None:
            error = ConfigurationError.invalid("storage", None, "regeneration requires a document store")
            return GenerationResult(success=False, error=error.context.message, error_type=error.error_type.value)

        try:
            raw_input = await self.store.get_input_snapshot(filename)
        except StorageError as e:
            logger.error(f"Cannot regenerate {filename}: {e.context.message}")
            return GenerationResult(
                success=False,
                error=e.context.message,
                error_type=e.error_type.value,
                states=[GenerationState.FAILED],
            )

        logger.info(f"Regenerating document from {filename}")
        return await self.generate_and_store(raw_input)


# Global instances (initialized on first use)
_config: Optional[Config] = None
_service: Optional[DocumentGenerationService] = None


def _initialize_system() -> None:
    """
    Initialize shared components (config, logging, clients, service).

    Called lazily by the module-level entry points so importing this module
    has no side effects beyond loading .env.
    """
    global _config, _service

    if _service is not None:
        return

    try:
        _config = Config.load()
        setup_logging(
            level=_config.logging.level,
            log_format=_config.logging.format,
            log_file=_config.logging.file,
        )
        logger.info(
            f"Configuration loaded: region={_config.aws_region}, model={_config.generation.model_id}, "
            f"bucket={_config.storage.bucket}"
        )
        _service = DocumentGenerationService.from_config(_config)
        logger.info("Document generation service initialized")
    except Exception as e:
        logger.error(f"System initialization failed: {str(e)}", exc_info=True)
        raise DocumentGenerationError(
            ErrorContext(
                error_type=ErrorType.INITIALIZATION_FAILED,
                message=f"Failed to initialize document generator: {str(e)}",
                retryable=False,
                original_exception=e
            )
        )


def _error_response(error: Exception) -> Dict[str, Any]:
    """Failure envelope for errors raised outside the service."""
    error_type = getattr(error, "error_type", ErrorType.UNKNOWN_ERROR)
    return GenerationResult(
        success=False,
        error=error_message(error),
        error_type=error_type.value,
        states=[GenerationState.FAILED],
    ).to_dict()


def generate_document(raw_input: Dict[str, Any]) -> Dict[str, Any]:
    """
    Generate a document without persisting it.

    Args:
        raw_input: Raw form input including ``document_type``

    Returns:
        Result envelope as a camelCase dictionary
    """
    try:
        _initialize_system()
        return asyncio.run(_service.generate(raw_input)).to_dict()
    except Exception as e:
        logger.error(f"Unexpected error in generate_document: {str(e)}", exc_info=True)
        return _error_response(e)


def generate_and_store_document(raw_input: Dict[str, Any]) -> Dict[str, Any]:
    """Generate a document and persist the text plus an input snapshot."""
    try:
        _initialize_system()
        return asyncio.run(_service.generate_and_store(raw_input)).to_dict()
    except Exception as e:
        logger.error(f"Unexpected error in generate_and_store_document: {str(e)}", exc_info=True)
        return _error_response(e)


def regenerate_document(filename: str) -> Dict[str, Any]:
    """Regenerate a stored document from its input snapshot under a new filename."""
    try:
        _initialize_system()
        return asyncio.run(_service.regenerate(filename)).to_dict()
    except Exception as e:
        logger.error(f"Unexpected error in regenerate_document: {str(e)}", exc_info=True)
        return _error_response(e)
