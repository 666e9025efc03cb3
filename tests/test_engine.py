"""
Test Content Engine Facade
==========================
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import pytest

from core.config import EngineConfig
from providers.llm_client import GenerationOutput
from sectionEngine.builtin_output_types import BATTLE_CARDS, PLAYBOOK
from sectionEngine.contracts import OutputField, OutputTypeDefinition
from sectionEngine.engine import ContentEngine
from sectionEngine.registry import OutputTypeRegistry
from sectionEngine.setup_config import ConfigOutput
from sectionEngine.usage_ledger import TokenUsage

PLAY = {
    "title": "Run the kickoff",
    "objective": "Align the team",
    "instructions": "1. Book the room",
    "decisionCriteria": "If blocked, escalate",
    "expectedOutcome": "Shared plan",
    "commonPitfalls": "",
    "tips": "",
    "timeEstimate": "2 hours",
}


class PlaybookLLM:
    def __init__(self):
        self.prompts = []

    async def generate(self, prompt, output_schema=None):
        self.prompts.append(prompt)
        return GenerationOutput(
            output={"name": "phase", "description": "", "items": [PLAY]},
            usage=TokenUsage(prompt_tokens=50, completion_tokens=25, total_tokens=75)
        )


def make_engine(llm):
    return ContentEngine(config=EngineConfig(max_concurrency=3), llm=llm, registry=OutputTypeRegistry([PLAYBOOK]))


def test_generate_output_from_configuration():
    llm = PlaybookLLM()
    engine = make_engine(llm)
    output = ConfigOutput(
        output_type_id="playbook",
        excluded_drivers=["Handoff & Closeout", "Scaling & Optimization"],
    )

    result = asyncio.run(engine.generate_output(output, {"industry": "Retail", "painPoints": ["Churn", "Margins"], "role": ""}))

    assert len(result.results) == 8
    assert len(llm.prompts) == 8
    assert all("- Pain Points: Churn, Margins" in p for p in llm.prompts)
    assert result.excluded_drivers == ["Scaling & Optimization", "Handoff & Closeout"]
    assert result.results[0].items[0]["title"] == "Run the kickoff"


def test_ledger_accumulates_across_requests():
    engine = make_engine(PlaybookLLM())

    asyncio.run(engine.generate_section("playbook", {"industry": "Retail"}, exclude_drivers=[d.name for d in PLAYBOOK.drivers[1:]]))
    asyncio.run(engine.generate_section("playbook", {"industry": "Energy"}, exclude_drivers=[d.name for d in PLAYBOOK.drivers[2:]]))

    assert len(engine.ledger.entries) == 3
    assert engine.ledger.total_input_tokens == 150

    previous = engine.reset_ledger()
    assert len(previous.entries) == 3
    assert engine.ledger.entries == ()


def test_resolve_order_and_field_prompt():
    engine = make_engine(PlaybookLLM())
    assert engine.resolve_order(["tools", "activity", "role"]) == ["role", "activity", "tools"]

    resolved = engine.resolve_field_prompt("competitors", {"industry": "Retail", "service": "POS"})
    assert resolved.is_complete
    assert '"POS"' in resolved.prompt


class WorkbookLLM:
    def __init__(self):
        self.prompts = []

    async def generate(self, prompt, output_schema=None):
        self.prompts.append(prompt)
        return GenerationOutput(
            output={"sections": [{"name": "Openers", "description": "", "items": [{"title": "Ask about churn"}]}]},
            usage=TokenUsage(prompt_tokens=80, completion_tokens=40, total_tokens=120)
        )


WORKBOOK = OutputTypeDefinition(
    id="custom-workbook",
    name="Workbook",
    fields=[OutputField(key="title", label="Title", type="short-text", primary=True)],
)


def test_generate_output_uses_prompt_override_for_driverless_type():
    llm = WorkbookLLM()
    engine = ContentEngine(config=EngineConfig(), llm=llm, registry=OutputTypeRegistry([WORKBOOK]))
    output = ConfigOutput(output_type_id="custom-workbook", prompt_override="Build a workbook for {{industry}}")

    result = asyncio.run(engine.generate_output(output, {"industry": "Retail"}))

    assert len(llm.prompts) == 1
    assert llm.prompts[0].startswith("Build a workbook for Retail\n\nOUTPUT FORMAT:")
    assert [r.driver.name for r in result.results] == ["Openers"]
    assert result.results[0].items == [{"title": "Ask about churn"}]
    assert [e.route for e in engine.ledger.entries] == ["generate-output"]


def test_generate_output_falls_back_to_output_type_prompt():
    llm = WorkbookLLM()
    engine = ContentEngine(config=EngineConfig(), llm=llm, registry=OutputTypeRegistry([BATTLE_CARDS]))

    asyncio.run(engine.generate_output(
        ConfigOutput(output_type_id="battle-cards"),
        {"industry": "Retail", "competitors": ["Acme", "Globex"]}
    ))

    assert "- Industry: Retail\n" in llm.prompts[0]
    assert "- Competitors: Acme, Globex\n" in llm.prompts[0]


def test_engine_rejects_caller_ledger():
    engine = make_engine(PlaybookLLM())
    with pytest.raises(TypeError):
        asyncio.run(engine.generate_section("playbook", {"industry": "Retail"}, cost_data=engine.ledger))
    assert engine.ledger.entries == ()
