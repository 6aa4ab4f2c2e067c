"""Template rendering for dispute documents."""

from .renderer import TemplateCache, TemplateRenderer, build_environment

__all__ = [
    "TemplateCache",
    "TemplateRenderer",
    "build_environment",
]
