"""Tests for the template renderer."""

import pytest
from jinja2 import DictLoader

from conftest import FIXED_NOW
from dispute_docs.builders import build_base_data, compose_fallback
from dispute_docs.models import (
    DocumentType,
    EscalationText,
    IncidentNarrative,
    InsuranceAdvice,
    LegalBasis,
    RemedyStatement,
    TribunalAdvice,
)
from dispute_docs.orchestration import merge_sections
from dispute_docs.rendering import TemplateCache, TemplateRenderer, build_environment
from dispute_docs.utils.errors import TemplateNotFoundError, TemplateRenderError


def generated_data(raw_input, document_type):
    data = build_base_data(raw_input, document_type, now=FIXED_NOW)
    merge_sections(data, {
        "legalBasis": LegalBasis(summary_text="LEGAL BASIS TEXT"),
        "incidentNarrative": IncidentNarrative(text="NARRATIVE TEXT"),
        "remedyStatement": RemedyStatement(text="REMEDY TEXT", summary_demand=data.remedy_details.summarize()),
        "escalationText": EscalationText(text="ESCALATION TEXT"),
        "tribunalAdvice": TribunalAdvice(text="TRIBUNAL TEXT"),
        "insuranceAdvice": InsuranceAdvice(text="INSURANCE TEXT"),
    })
    return data


def test_letter_of_demand_renders_sections(letter_input):
    text = TemplateRenderer().render(
        DocumentType.LETTER_OF_DEMAND, generated_data(letter_input, DocumentType.LETTER_OF_DEMAND)
    )

    for expected in ("Jane Citizen", "Fast Fix Motors", "ABN: 12 345 678 901", "ABC123", "NARRATIVE TEXT",
                     "LEGAL BASIS TEXT", "REMEDY TEXT", "ESCALATION TEXT", "$800.00", "VCAT",
                     "10/03/2024", "24/03/2024", "01/03/2024"):
        assert expected in text
    assert "NOTICE" not in text


def test_each_type_renders_its_own_sections(letter_input):
    renderer = TemplateRenderer()

    vcat = renderer.render(DocumentType.VCAT_APPLICATION, generated_data(letter_input, DocumentType.VCAT_APPLICATION))
    assert "TRIBUNAL TEXT" in vcat

    claim = renderer.render(DocumentType.INSURANCE_CLAIM, generated_data(letter_input, DocumentType.INSURANCE_CLAIM))
    assert "INSURANCE TEXT" in claim

    complaint = renderer.render(
        DocumentType.CONSUMER_COMPLAINT, generated_data(letter_input, DocumentType.CONSUMER_COMPLAINT)
    )
    assert "LEGAL BASIS TEXT" in complaint
    assert "Jane Citizen" in complaint


def test_fallback_document_shows_notice(letter_input):
    data = compose_fallback(letter_input, DocumentType.LETTER_OF_DEMAND, RuntimeError("down"), now=FIXED_NOW)
    text = TemplateRenderer().render(DocumentType.LETTER_OF_DEMAND, data)

    assert "*** NOTICE: This document was prepared from your form details only" in text
    assert "[Incident narrative not available: generation failed]" in text
    assert "$800.00" in text


def test_templates_are_compiled_once():
    cache = TemplateCache()
    renderer = TemplateRenderer(cache)

    first = renderer.get_template(DocumentType.LETTER_OF_DEMAND)
    second = renderer.get_template("letter_of_demand")

    assert first is second
    assert "letter_of_demand.txt.j2" in cache
    assert len(cache) == 1


def test_missing_template_raises():
    renderer = TemplateRenderer(environment=build_environment(DictLoader({})))
    with pytest.raises(TemplateNotFoundError) as excinfo:
        renderer.get_template(DocumentType.INSURANCE_CLAIM)
    assert "insurance_claim.txt.j2" in excinfo.value.context.message


def test_missing_fields_render_empty(letter_input):
    loader = DictLoader({
        "letter_of_demand.txt.j2": "[{{ tribunalAdvice.text }}][{{ nothing.at.all }}][{{ missing | format_currency }}]",
    })
    renderer = TemplateRenderer(environment=build_environment(loader))
    data = build_base_data(letter_input, DocumentType.LETTER_OF_DEMAND, now=FIXED_NOW)

    assert renderer.render(DocumentType.LETTER_OF_DEMAND, data) == "[][][]"


def test_render_errors_are_wrapped(letter_input):
    loader = DictLoader({"letter_of_demand.txt.j2": "{{ senderInfo.name / 0 }}"})
    renderer = TemplateRenderer(environment=build_environment(loader))
    data = build_base_data(letter_input, DocumentType.LETTER_OF_DEMAND, now=FIXED_NOW)

    with pytest.raises(TemplateRenderError):
        renderer.render(DocumentType.LETTER_OF_DEMAND, data)


def test_syntax_errors_are_wrapped():
    loader = DictLoader({"letter_of_demand.txt.j2": "{% if %}"})
    renderer = TemplateRenderer(environment=build_environment(loader))
    with pytest.raises(TemplateRenderError):
        renderer.get_template(DocumentType.LETTER_OF_DEMAND)


def test_filters_registered():
    env = build_environment(DictLoader({}))
    template = env.from_string("{{ when | format_date }} {{ amount | format_currency }}")
    assert template.render(when="2024-03-01", amount=1234.5) == "01/03/2024 $1,234.50"
