"""
Test Output Type Registry and Prompt Assembly
=============================================
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from pydantic import ValidationError

from sectionEngine.builtin_output_types import BATTLE_CARDS, BUILTIN_OUTPUT_TYPES, CHECKLIST
from sectionEngine.dependency_graph import validate_prompt_refs
from sectionEngine.field_catalog import default_field_catalog
from sectionEngine.contracts import InstructionDirective, SectionDriver
from sectionEngine.exceptions import UnknownOutputTypeError
from sectionEngine.prompt_assembly import assemble_directives_prompt, build_output_prompt, format_context, humanize_key
from sectionEngine.registry import OutputTypeRegistry, default_registry


def test_default_registry_has_builtin_output_types():
    registry = default_registry()
    assert registry.list() == ["checklist", "playbook", "dossier", "decision-books", "cheat-sheets", "email-course", "battle-cards"]
    assert "playbook" in registry
    assert len(registry.get("checklist").drivers) == 12
    assert len(registry.get("playbook").drivers) == 10


def test_builtin_catalogs_are_well_formed():
    for output_type in BUILTIN_OUTPUT_TYPES:
        names = [d.name for d in output_type.drivers]
        assert len(names) == len(set(names)), f"Duplicate driver in {output_type.id}"
        if output_type.drivers:
            assert output_type.directives, f"{output_type.id} has no directives"
        else:
            assert output_type.prompt, f"{output_type.id} has neither drivers nor a prompt template"
        assert sum(1 for f in output_type.fields if f.primary) == 1, f"{output_type.id} needs one primary field"


def test_unknown_output_type():
    with pytest.raises(UnknownOutputTypeError) as exc_info:
        default_registry().get("crossword")
    assert "crossword" in str(exc_info.value)


def test_duplicate_registration():
    registry = OutputTypeRegistry([CHECKLIST])
    with pytest.raises(ValueError):
        registry.register(CHECKLIST)
    registry.register(CHECKLIST, replace=True)
    assert registry.list() == ["checklist"]


def test_section_model_validates_items():
    model = CHECKLIST.section_model()
    item = {key: "x" for key in ["item", "description", "priority", "commonMistakes", "tips", "verificationMethod"]}

    section = model.model_validate({"name": "Risk & Contingency", "items": [item]})
    assert section.items[0].item == "x"
    assert model.model_validate({"name": "Risk & Contingency"}).items == []

    with pytest.raises(ValidationError):
        model.model_validate({"name": "Risk", "items": [{"item": "only one field"}]})

    schema = CHECKLIST.output_schema()
    assert "items" in schema["properties"]


def test_humanize_and_format_context():
    assert humanize_key("targetAudience") == "Target Audience"
    assert humanize_key("industry") == "Industry"
    context = {"industry": "Retail", "painPoints": ["Churn", "Margins"], "role": "  ", "geography": None}
    assert format_context(context) == "- Industry: Retail\n- Pain Points: Churn, Margins"


def test_assemble_directives_prompt_layout():
    prompt = assemble_directives_prompt(
        {"industry": "Retail"},
        SectionDriver(name="Core Execution", description="The primary work"),
        "Phase",
        [InstructionDirective(label="Role", content="Be concrete."), InstructionDirective(label="Tone", content="Be brief.")]
    )
    assert prompt == (
        "CONTEXT:\n- Industry: Retail\n\n"
        "PHASE: \"Core Execution\"\nThe primary work\n\n"
        "INSTRUCTIONS (follow all of these):\n1. [Role] Be concrete.\n2. [Tone] Be brief."
    )


def test_battle_cards_template_only_references_catalog_fields():
    assert not BATTLE_CARDS.drivers
    assert validate_prompt_refs(BATTLE_CARDS.prompt, default_field_catalog()) == []


def test_output_prompt_names_fields_and_primary_field():
    assert BATTLE_CARDS.primary_field.key == "title"
    assert CHECKLIST.primary_field.key == "item"

    prompt = build_output_prompt("  Cards for Retail  ", BATTLE_CARDS)

    assert prompt.startswith("Cards for Retail\n\nOUTPUT FORMAT:\nGenerate 4-8 competitors, each containing 3-6 cards.\n")
    assert '"strengths" (Their Strengths)' in prompt
    assert 'Lead each card with a concise "title".' in prompt


def test_output_model_wraps_sections():
    schema = BATTLE_CARDS.output_model().model_json_schema()
    assert schema["required"] == ["sections"]
