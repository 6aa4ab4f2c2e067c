"""Orchestration layer running section generators per document type."""

from .plans import SECTION_PLANS, SectionPlan, get_plan
from .merge import merge_sections
from .orchestrator import GenerationOrchestrator

__all__ = [
    "SECTION_PLANS",
    "SectionPlan",
    "get_plan",
    "merge_sections",
    "GenerationOrchestrator",
]
