"""Response formatting utilities for JSON extraction and section validation."""

import json
import logging
import re
from typing import Dict, Any, Optional, Sequence

logger = logging.getLogger(__name__)

# C0 control characters except tab, newline and carriage return, plus DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


class ResponseFormatter:
    """
    Utility class for extracting JSON objects from model output.

    Tries, in order:
    1. Raw JSON (entire response)
    2. Markdown code blocks (```json ... ```)
    3. The first balanced JSON object embedded in text
    """

    @staticmethod
    def extract_json_from_response(response_text: str) -> Optional[Dict[str, Any]]:
        """
        Extract a JSON object from a response.

        Args:
            response_text: Raw response text that may contain JSON

        Returns:
            Parsed JSON dictionary, or None if no JSON object found
        """
        if not response_text or not response_text.strip():
            logger.warning("Empty response text provided")
            return None

        text = response_text.strip()

        for extractor in (
            ResponseFormatter._extract_raw_json,
            ResponseFormatter._extract_markdown_json,
            ResponseFormatter._extract_embedded_json,
        ):
            json_data = extractor(text)
            if isinstance(json_data, dict):
                return json_data

        logger.warning(f"Failed to extract JSON from response: {text[:200]}...")
        return None

    @staticmethod
    def _extract_raw_json(text: str) -> Optional[Any]:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _extract_markdown_json(text: str) -> Optional[Any]:
        match = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
        if not match:
            return None
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _extract_embedded_json(text: str) -> Optional[Any]:
        """
        Find and extract a JSON object embedded in text using brace counting.

        Args:
            text: Response text

        Returns:
            Parsed JSON or None
        """
        start_idx = text.find('{')
        if start_idx == -1:
            return None

        brace_count = 0
        in_string = False
        escape_next = False

        for i, char in enumerate(text[start_idx:], start_idx):
            if escape_next:
                escape_next = False
                continue
            if char == '\\':
                escape_next = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    try:
                        return json.loads(text[start_idx:i + 1])
                    except json.JSONDecodeError:
                        return ResponseFormatter._extract_embedded_json(text[i + 1:])
        return None

    @staticmethod
    def missing_text_fields(
        data: Dict[str, Any],
        section_key: str,
        fields: Sequence[str]
    ) -> Optional[str]:
        """
        Check that ``data[section_key]`` holds non-empty strings for ``fields``.

        Args:
            data: Parsed JSON object
            section_key: Expected top-level key
            fields: Required string fields inside the section object

        Returns:
            A description of the first problem found, or None when valid
        """
        section = data.get(section_key)
        if not isinstance(section, dict):
            return f"missing top-level key '{section_key}'"
        for name in fields:
            value = section.get(name)
            if not isinstance(value, str):
                return f"'{section_key}.{name}' is not a string"
            if not clean_text(value):
                return f"'{section_key}.{name}' is empty"
        return None


def clean_text(value: str) -> str:
    """Strip control characters and surrounding whitespace from generated prose."""
    return _CONTROL_CHARS.sub("", value).strip()
