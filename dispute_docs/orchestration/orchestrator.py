"""
Generation orchestrator.

Builds base data, runs every section generator of the document type's plan
concurrently, and merges the results into one DocumentData object.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from .merge import merge_sections
from .plans import SECTION_PLANS, SectionPlan, get_plan
from ..builders.base_data import build_base_data
from ..models.document import DocumentData, DocumentType
from ..models.result import GenerationState
from ..sections import BaseSectionGenerator, SectionContext, SectionResult
from ..utils.config import DocumentsConfig
from ..utils.errors import OrchestrationError
from ..utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

StateCallback = Callable[[GenerationState], None]


class GenerationOrchestrator:
    """
    Runs a document type's section plan against the text-generation service.

    Generators are created once per section key and reused across requests;
    they hold no per-request state.

    Attributes:
        client: Text-generation client shared by all generators
        retry_policy: Retry policy shared by all generators
        documents_config: Defaults used by the base data builder
    """

    def __init__(
        self,
        client: Any,
        retry_policy: Optional[RetryPolicy] = None,
        documents_config: Optional[DocumentsConfig] = None,
        max_tokens: int = 1024,
        plans: Optional[Dict[DocumentType, SectionPlan]] = None
    ):
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()
        self.documents_config = documents_config or DocumentsConfig()
        self.max_tokens = max_tokens
        self.plans = plans or SECTION_PLANS
        self._generators: Dict[str, BaseSectionGenerator] = {}

        logger.info(f"Initialized GenerationOrchestrator with {len(self.plans)} document plans")

    def _plan_for(self, document_type: DocumentType) -> SectionPlan:
        if document_type in self.plans:
            return self.plans[document_type]
        return get_plan(document_type)

    def _generator_for(self, section_key: str, plan: SectionPlan) -> BaseSectionGenerator:
        generator_cls = plan.generators[section_key]
        generator = self._generators.get(section_key)
        if generator is None or type(generator) is not generator_cls:
            generator = generator_cls(self.client, retry_policy=self.retry_policy, max_tokens=self.max_tokens)
            self._generators[section_key] = generator
        return generator

    async def generate_document_data(
        self,
        raw_input: Dict[str, Any],
        document_type: DocumentType,
        *,
        now: Optional[datetime] = None,
        generation_id: str = "",
        on_state: Optional[StateCallback] = None
    ) -> DocumentData:
        """
        Produce fully generated document data.

        Args:
            raw_input: Raw form input
            document_type: Requested document type
            now: Generation timestamp passed to the base data builder
            generation_id: Identifier recorded in metadata
            on_state: Called with BUILDING_BASE, GENERATING_SECTIONS and
                ASSEMBLED as each phase begins

        Returns:
            DocumentData with every planned section merged in

        Raises:
            UnsupportedDocumentTypeError: If the type has no plan
            OrchestrationError: If any section failed; names every failed
                section and carries the ones that succeeded
        """
        notify = on_state or (lambda state: None)

        notify(GenerationState.BUILDING_BASE)
        plan = self._plan_for(document_type)
        data = build_base_data(
            raw_input,
            document_type,
            now=now,
            config=self.documents_config,
            generation_id=generation_id,
        )

        notify(GenerationState.GENERATING_SECTIONS)
        context = SectionContext(data=data, framing=plan.framing, raw_input=dict(raw_input or {}))
        succeeded, failures = await self.run_sections(plan, context)

        if failures:
            error = OrchestrationError.from_failures(document_type.value, failures, succeeded)
            logger.error(str(error))
            raise error

        notify(GenerationState.ASSEMBLED)
        merge_sections(data, succeeded)
        logger.info(f"Assembled {document_type.value} with sections: {', '.join(succeeded)}")
        return data

    async def run_sections(
        self,
        plan: SectionPlan,
        context: SectionContext
    ) -> Tuple[Dict[str, SectionResult], Dict[str, Exception]]:
        """
        Run every generator of ``plan`` concurrently and wait for all to settle.

        A failing section never cancels the others.

        Returns:
            Tuple of (section key -> result, section key -> exception)
        """
        tasks: Dict[str, asyncio.Task] = {
            key: asyncio.create_task(self._generator_for(key, plan).generate(context), name=f"section:{key}")
            for key in plan.section_keys
        }
        await asyncio.wait(tasks.values())

        succeeded: Dict[str, SectionResult] = {}
        failures: Dict[str, Exception] = {}
        for key, task in tasks.items():
            error = task.exception()
            if error is not None:
                failures[key] = error
            else:
                succeeded[key] = task.result()

        logger.info(
            f"Sections settled for {plan.document_type.value}: "
            f"{len(succeeded)} succeeded, {len(failures)} failed"
        )
        return succeeded, failures
