"""
Test Section Generation Orchestrator
====================================

Verifies fan-out, per-driver failure isolation, ordering and cost folding
using an in-memory model client.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import importlib
import logging
import pytest

from providers.llm_client import GenerationOutput
from sectionEngine.contracts import InstructionDirective, OutputField, OutputTypeDefinition, SectionDriver
from sectionEngine import orchestrator as orchestrator_module
from sectionEngine.exceptions import MissingPromptTemplateError, UnknownOutputTypeError
from sectionEngine.orchestrator import SectionOrchestrator
from sectionEngine.registry import OutputTypeRegistry
from sectionEngine.usage_ledger import TokenUsage, add_cost_entry, empty_cost_data, make_cost_entry


class FakeLLM:
    """
    Answers per driver. A behavior is a dict (section output), an exception
    instance (raised), or a callable returning either. ``delays`` in seconds.
    """

    def __init__(self, behaviors=None, delays=None, default_items=1):
        self.behaviors = behaviors or {}
        self.delays = delays or {}
        self.default_items = default_items
        self.known_names = []
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    def _driver_for(self, prompt):
        names = [name for name in self.known_names if f'"{name}"' in prompt]
        assert len(names) == 1, f"Prompt should name exactly one driver, found {names}"
        return names[0]

    async def generate(self, prompt, output_schema=None):
        driver = self._driver_for(prompt)
        self.calls.append((driver, prompt))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(driver, 0))
            behavior = self.behaviors.get(driver)
            if callable(behavior):
                behavior = behavior()
            if isinstance(behavior, Exception):
                raise behavior
            if behavior is None:
                behavior = {
                    "name": driver,
                    "description": f"About {driver}",
                    "items": [
                        {"title": f"{driver} tip {i}", "body": f"Do {driver} well"}
                        for i in range(self.default_items)
                    ],
                }
            return GenerationOutput(
                output=behavior,
                usage=TokenUsage(prompt_tokens=1000, completion_tokens=200, total_tokens=1200),
                model="fake/model",
            )
        finally:
            self.in_flight -= 1


def make_output_type(driver_count=10, directives=True):
    return OutputTypeDefinition(
        id="test-guide",
        name="Guide",
        description="Practical tips grouped by chapter",
        section_label="Chapter",
        element_label="Tip",
        fields=[
            OutputField(key="title", label="Title", type="short-text", primary=True),
            OutputField(key="body", label="Body"),
        ],
        drivers=[SectionDriver(name=f"d{i}", description=f"Driver {i}") for i in range(1, driver_count + 1)],
        directives=[
            InstructionDirective(label="Role", content="You are a guide writer."),
            InstructionDirective(label="Relevance filter", content="Return an empty items array when not relevant."),
        ] if directives else [],
    )


def make_orchestrator(llm, output_type=None, **kwargs):
    output_type = output_type or make_output_type()
    llm.known_names = [d.name for d in output_type.drivers]
    return SectionOrchestrator(llm, OutputTypeRegistry([output_type]), **kwargs)


CONTEXT = {"industry": "Healthcare", "service": "Telemedicine", "role": ""}


def test_ten_drivers_one_failure():
    llm = FakeLLM(behaviors={"d4": RuntimeError("upstream 500")})
    orchestrator = make_orchestrator(llm)

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))

    assert [r.driver.name for r in result.results] == [f"d{i}" for i in range(1, 11)]
    assert [r.position for r in result.results] == list(range(10))

    failed = result.failed()
    assert [r.driver.name for r in failed] == ["d4"]
    assert failed[0].failure.error_type == "RuntimeError"
    assert "upstream 500" in failed[0].failure.reason
    assert failed[0].items == []

    assert len(result.succeeded()) == 9
    assert all(len(r.items) == 1 for r in result.succeeded())

    # Exactly one cost entry per successful call, in catalog order
    assert len(result.cost.entries) == 9
    assert [e.action for e in result.cost.entries] == [f"d{i}" for i in range(1, 11) if i != 4]
    assert all(e.route == "generate-test-guide" for e in result.cost.entries)
    assert result.cost.total_input_tokens == 9 * 1000
    assert result.cost.total_output_tokens == 9 * 200
    # 1000 * 1.75/1M + 200 * 14/1M = 0.00455 per call
    assert result.cost.total_cost == pytest.approx(9 * 0.00455)


def test_results_follow_catalog_order_not_completion_order():
    delays = {f"d{i}": (11 - i) * 0.01 for i in range(1, 11)}
    llm = FakeLLM(delays=delays)
    orchestrator = make_orchestrator(llm)

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))

    assert [r.driver.name for r in result.results] == [f"d{i}" for i in range(1, 11)]
    assert [e.action for e in result.cost.entries] == [f"d{i}" for i in range(1, 11)]


def test_empty_driver_is_success_not_failure():
    llm = FakeLLM(behaviors={"d2": {"name": "d2", "description": "", "items": []}})
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=3))

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))
    empty = result.results[1]

    assert empty.status == "ok"
    assert empty.is_empty
    assert result.failed() == []
    assert [r.driver.name for r in result.relevant()] == ["d1", "d3"]
    assert len(result.cost.entries) == 3, "Empty results were still paid for"


def test_malformed_output_fails_only_that_driver():
    llm = FakeLLM(behaviors={"d1": {"name": "d1", "items": [{"title": "missing body"}]}})
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=2))

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))

    assert result.results[0].failed
    assert result.results[0].failure.error_type == "MalformedOutputError"
    assert not result.results[1].failed
    assert len(result.cost.entries) == 1


def test_slow_driver_times_out_in_isolation():
    llm = FakeLLM(delays={"d2": 1.0})
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=3), timeout=0.05)

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))

    assert [r.status for r in result.results] == ["ok", "failed", "ok"]
    assert result.results[1].failure.error_type == "CallTimeoutError"


def test_excluded_drivers_are_never_invoked():
    llm = FakeLLM()
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=4))

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT, exclude_drivers=["d2", "d4"]))

    assert sorted(name for name, _ in llm.calls) == ["d1", "d3"]
    assert [r.driver.name for r in result.results] == ["d1", "d3"]
    assert [r.position for r in result.results] == [0, 2]
    assert result.excluded_drivers == ["d2", "d4"]


def test_prompt_carries_context_driver_and_numbered_directives():
    llm = FakeLLM()
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=1))

    asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))
    prompt = llm.calls[0][1]

    assert prompt.startswith("CONTEXT:\n- Industry: Healthcare\n- Service: Telemedicine\n\n")
    assert "- Role:" not in prompt, "Blank context values are dropped"
    assert 'CHAPTER: "d1"\nDriver 1' in prompt
    assert "INSTRUCTIONS (follow all of these):\n1. [Role] You are a guide writer.\n2. [Relevance filter]" in prompt


def test_custom_drivers_and_empty_directives_use_default_prompt():
    llm = FakeLLM()
    output_type = make_output_type(driver_count=1)
    orchestrator = make_orchestrator(llm, output_type)
    llm.known_names = ["Custom One", "Custom Two"]

    result = asyncio.run(orchestrator.generate_section(
        "test-guide",
        CONTEXT,
        drivers=[{"name": "Custom One", "description": "First"}, SectionDriver(name="Custom Two")],
        directives=[]
    ))

    assert [r.driver.name for r in result.results] == ["Custom One", "Custom Two"]
    prompt = dict(llm.calls)["Custom One"]
    assert "INSTRUCTIONS" not in prompt
    assert 'Generate tips for the "Custom One" chapter.' in prompt
    assert "- body: Body" in prompt


def test_max_concurrency_bounds_in_flight_calls():
    llm = FakeLLM(delays={f"d{i}": 0.02 for i in range(1, 11)})
    orchestrator = make_orchestrator(llm, max_concurrency=2)

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT))

    assert len(result.succeeded()) == 10
    assert llm.max_in_flight <= 2


def test_existing_ledger_is_extended_not_mutated():
    prior = add_cost_entry(
        empty_cost_data(),
        make_cost_entry("generate-field-suggestions", "industry", "gpt-5.2", TokenUsage(prompt_tokens=10, completion_tokens=10))
    )
    llm = FakeLLM()
    orchestrator = make_orchestrator(llm, make_output_type(driver_count=2))

    result = asyncio.run(orchestrator.generate_section("test-guide", CONTEXT, cost_data=prior, route="product-42"))

    assert len(prior.entries) == 1
    assert [e.route for e in result.cost.entries] == ["generate-field-suggestions", "product-42", "product-42"]


def test_unknown_output_type():
    orchestrator = make_orchestrator(FakeLLM())
    with pytest.raises(UnknownOutputTypeError):
        asyncio.run(orchestrator.generate_section("nope", CONTEXT))


# =================================================================================================
# Driverless output types (single call from a prompt template)
# =================================================================================================

class TemplateLLM:
    """Returns a whole product in one reply, or raises ``error``."""

    def __init__(self, sections=None, error=None):
        self.sections = sections if sections is not None else [
            {"name": "Pricing", "description": "Where we win on price", "items": [{"title": "Bundle", "body": "Lead with the bundle"}]},
            {"name": "", "description": "", "items": [{"title": "Support", "body": "Quote response times"}]},
        ]
        self.error = error
        self.calls = []

    async def generate(self, prompt, output_schema=None):
        self.calls.append((prompt, output_schema))
        if self.error is not None:
            raise self.error
        return GenerationOutput(
            output={"sections": self.sections},
            usage=TokenUsage(prompt_tokens=2000, completion_tokens=1000, total_tokens=3000),
        )


def make_workbook(prompt="Build a workbook for {{industry}} teams selling {{service}}"):
    return OutputTypeDefinition(
        id="custom-workbook",
        name="Workbook",
        section_label="Chapter",
        element_label="Tip",
        fields=[
            OutputField(key="title", label="Title", type="short-text", primary=True),
            OutputField(key="body", label="Body"),
        ],
        prompt=prompt,
    )


def test_driverless_output_type_is_generated_in_one_call():
    llm = TemplateLLM()
    orchestrator = SectionOrchestrator(llm, OutputTypeRegistry([make_workbook()]))

    result = asyncio.run(orchestrator.generate_section("custom-workbook", CONTEXT))

    assert len(llm.calls) == 1
    prompt, schema = llm.calls[0]
    assert prompt.startswith("Build a workbook for Healthcare teams selling Telemedicine\n\nOUTPUT FORMAT:\n")
    assert 'Each tip must have these fields: "title" (Title), "body" (Body).' in prompt
    assert 'Lead each tip with a concise "title".' in prompt
    assert "sections" in schema["properties"]

    assert [r.driver.name for r in result.results] == ["Pricing", "Chapter 2"]
    assert [r.position for r in result.results] == [0, 1]
    assert result.results[0].items == [{"title": "Bundle", "body": "Lead with the bundle"}]
    assert [(e.route, e.action) for e in result.cost.entries] == [("generate-output", "custom-workbook")]
    assert result.cost.total_input_tokens == 2000


def test_prompt_template_argument_wins_over_output_type_prompt():
    llm = TemplateLLM()
    orchestrator = SectionOrchestrator(llm, OutputTypeRegistry([make_workbook()]))

    asyncio.run(orchestrator.generate_section(
        "custom-workbook",
        {"industry": "Retail"},
        prompt_template="Cards for {{industry}} in {{geography}}"
    ))

    assert llm.calls[0][0].startswith("Cards for Retail in\n\nOUTPUT FORMAT:")


def test_driverless_call_failure_is_one_failed_result():
    llm = TemplateLLM(error=RuntimeError("upstream 503"))
    orchestrator = SectionOrchestrator(llm, OutputTypeRegistry([make_workbook()]))

    result = asyncio.run(orchestrator.generate_section("custom-workbook", CONTEXT))

    assert [r.status for r in result.results] == ["failed"]
    assert result.results[0].driver.name == "Workbook"
    assert result.results[0].failure.error_type == "RuntimeError"
    assert result.cost.entries == ()


def test_driverless_malformed_output_fails():
    llm = TemplateLLM(sections=[{"name": "Pricing", "items": [{"title": "no body"}]}])
    orchestrator = SectionOrchestrator(llm, OutputTypeRegistry([make_workbook()]))

    result = asyncio.run(orchestrator.generate_section("custom-workbook", CONTEXT))

    assert result.results[0].failure.error_type == "MalformedOutputError"


def test_driverless_output_type_without_template():
    orchestrator = SectionOrchestrator(TemplateLLM(), OutputTypeRegistry([make_workbook(prompt="")]))
    with pytest.raises(MissingPromptTemplateError):
        asyncio.run(orchestrator.generate_section("custom-workbook", CONTEXT))


def test_engine_logger_is_configured_by_constructor_not_import():
    engine_logger = logging.getLogger("SectionEngine")
    saved = engine_logger.handlers[:]
    engine_logger.handlers.clear()
    try:
        importlib.reload(orchestrator_module)
        assert engine_logger.handlers == [], "Importing the orchestrator must not attach handlers"

        orchestrator_module.SectionOrchestrator(FakeLLM(), OutputTypeRegistry([make_output_type()]))
        assert engine_logger.handlers, "Constructor configures the engine logger"
    finally:
        engine_logger.handlers[:] = saved
