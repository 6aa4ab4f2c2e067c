"""Explicit merge of generated sections into document data."""

import logging
from typing import Any, Dict

from ..models.document import SECTION_ATTRIBUTES, DocumentData

logger = logging.getLogger(__name__)


def merge_sections(data: DocumentData, sections: Dict[str, Any]) -> DocumentData:
    """
    Write generated sections onto the data object.

    Only known section keys whose result type matches are written; anything
    else is logged and discarded.

    Args:
        data: Base document data
        sections: Section key -> typed section result

    Returns:
        The same data object, enriched
    """
    for key, section in sections.items():
        attribute = SECTION_ATTRIBUTES.get(key)
        if attribute is None or getattr(section, "section_key", None) != key:
            logger.warning(f"Discarding unexpected section {key!r} ({type(section).__name__})")
            continue
        setattr(data, attribute, section)
    return data
