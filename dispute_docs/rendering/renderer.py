"""Jinja2 template renderer for dispute documents."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from jinja2 import (
    BaseLoader,
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    Undefined,
)

from ..models.document import DocumentData, DocumentType
from ..utils.errors import TemplateNotFoundError, TemplateRenderError
from ..utils.formatting import format_currency, format_date

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".txt.j2"


class TemplateCache:
    """
    Compiled templates keyed by template name.

    Append-only for the life of the process; compiling the same template
    twice under concurrency just stores an equivalent object.
    """

    def __init__(self):
        self._templates: Dict[str, Template] = {}

    def get(self, name: str) -> Optional[Template]:
        return self._templates.get(name)

    def put(self, name: str, template: Template) -> None:
        self._templates[name] = template

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)


def _undefined_as_none(formatter: Callable[[Any], str]) -> Callable[[Any], str]:
    def apply(value: Any) -> str:
        return formatter(None if isinstance(value, Undefined) else value)
    apply.__name__ = formatter.__name__
    return apply


def build_environment(loader: Optional[BaseLoader] = None) -> Environment:
    """
    Create the Jinja2 environment used for plain-text documents.

    Missing optional fields render as empty text instead of raising.
    """
    env = Environment(
        loader=loader or FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=ChainableUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["format_date"] = _undefined_as_none(format_date)
    env.filters["format_currency"] = _undefined_as_none(format_currency)
    return env


class TemplateRenderer:
    """
    Renders DocumentData through the per-type template.

    Attributes:
        environment: Jinja2 environment (loader, filters, undefined policy)
        cache: Compiled template cache owned by this renderer
    """

    def __init__(
        self,
        cache: Optional[TemplateCache] = None,
        environment: Optional[Environment] = None
    ):
        self.cache = cache if cache is not None else TemplateCache()
        self.environment = environment or build_environment()

    @staticmethod
    def _type_value(document_type: Union[DocumentType, str]) -> str:
        return document_type.value if isinstance(document_type, DocumentType) else str(document_type)

    @classmethod
    def template_name(cls, document_type: Union[DocumentType, str]) -> str:
        return f"{cls._type_value(document_type)}{TEMPLATE_SUFFIX}"

    def get_template(self, document_type: Union[DocumentType, str]) -> Template:
        """
        Return the compiled template for a document type, compiling on first use.

        Raises:
            TemplateNotFoundError: If no template file exists for the type
            TemplateRenderError: If the template fails to compile
        """
        name = self.template_name(document_type)
        template = self.cache.get(name)
        if template is not None:
            logger.debug(f"Using cached template: {name}")
            return template

        try:
            template = self.environment.get_template(name)
        except TemplateNotFound:
            raise TemplateNotFoundError.for_type(self._type_value(document_type), name)
        except Exception as e:
            raise TemplateRenderError.wrap(self._type_value(document_type), e) from e

        self.cache.put(name, template)
        logger.info(f"Template compiled and cached: {name}")
        return template

    def render(self, document_type: Union[DocumentType, str], data: DocumentData) -> str:
        """
        Render document text.

        Args:
            document_type: Document type selecting the template
            data: Document data; read only

        Returns:
            Rendered document text

        Raises:
            TemplateNotFoundError: If no template exists for the type
            TemplateRenderError: If rendering raises
        """
        template = self.get_template(document_type)
        context = data.to_dict()
        try:
            text = template.render(**context)
        except Exception as e:
            raise TemplateRenderError.wrap(self._type_value(document_type), e) from e

        logger.info(f"Rendered {self.template_name(document_type)} ({len(text)} chars)")
        return text
