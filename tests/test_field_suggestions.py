"""
Test Field Suggestions
======================
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import pytest

from providers.llm_client import GenerationOutput
from sectionEngine.exceptions import MalformedOutputError, UnknownFieldError
from sectionEngine.field_catalog import default_field_catalog
from sectionEngine.field_suggestions import SUGGESTIONS_SUFFIX, FieldSuggester
from sectionEngine.usage_ledger import TokenUsage


class RecordingLLM:
    def __init__(self, output):
        self.output = output
        self.prompts = []

    async def generate(self, prompt, output_schema=None):
        self.prompts.append(prompt)
        return GenerationOutput(
            output=self.output,
            usage=TokenUsage(prompt_tokens=400, completion_tokens=100, total_tokens=500),
            model="fake/model"
        )


def test_unresolved_references_skip_the_model():
    llm = RecordingLLM({"suggestions": ["never"]})
    suggester = FieldSuggester(llm, default_field_catalog())

    result = asyncio.run(suggester.suggest("role", {"industry": "Retail"}))

    assert llm.prompts == [], "Model must not be called while references are unresolved"
    assert result.suggestions == []
    assert result.unresolved_keys == ["service"]
    assert not result.requested
    assert result.cost_entry is None


def test_resolved_prompt_is_sent_with_list_suffix():
    llm = RecordingLLM({"suggestions": [" Telemedicine ", "Diagnostics", "", "Telemedicine"]})
    suggester = FieldSuggester(llm, default_field_catalog())

    result = asyncio.run(suggester.suggest("service", {"industry": "Healthcare"}))

    assert result.suggestions == ["Telemedicine", "Diagnostics"]
    assert '"Healthcare"' in llm.prompts[0]
    assert llm.prompts[0].endswith(SUGGESTIONS_SUFFIX)
    assert result.cost_entry.route == "generate-field-suggestions"
    assert result.cost_entry.action == "service"
    assert result.cost_entry.usage.prompt_tokens == 400


def test_prompt_override_wins():
    llm = RecordingLLM({"suggestions": ["North"]})
    suggester = FieldSuggester(llm, default_field_catalog())

    asyncio.run(suggester.suggest("geography", {}, prompt_override="Regions near {{industry}}?"))
    assert llm.prompts == []

    asyncio.run(suggester.suggest("geography", {"industry": "Mining"}, prompt_override="Regions near {{industry}}?"))
    assert llm.prompts[0].startswith("Regions near Mining?")


def test_malformed_suggestions():
    suggester = FieldSuggester(RecordingLLM({"suggestions": "not a list"}), default_field_catalog())
    with pytest.raises(MalformedOutputError):
        asyncio.run(suggester.suggest("industry", {}))


def test_unknown_field():
    suggester = FieldSuggester(RecordingLLM({}), default_field_catalog())
    with pytest.raises(UnknownFieldError):
        asyncio.run(suggester.suggest("nope", {}))
