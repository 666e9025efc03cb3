"""
Content Engine
==============

Facade wiring configuration, model provider, output type registry and field
catalog. Keeps a running cost ledger for every call made through it.
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence

from core.config import EngineConfig
from sectionEngine.contracts import SectionGenerationResult
from sectionEngine.dependency_graph import DependencyGraph
from sectionEngine.field_catalog import FieldCatalog, default_field_catalog
from sectionEngine.field_suggestions import FieldSuggester, FieldSuggestionResult
from sectionEngine.orchestrator import SectionOrchestrator
from sectionEngine.prompt_template import ResolvedPrompt, resolve_prompt
from sectionEngine.registry import OutputTypeRegistry, default_registry
from sectionEngine.setup_config import ConfigOutput, values_to_context
from sectionEngine.usage_ledger import (
    ProductCostData,
    add_cost_entry,
    empty_cost_data,
    format_cost,
    format_token_count,
    merge_cost_data,
)

logger = logging.getLogger("SectionEngine")


class ContentEngine:
    """
    Entry point for callers (API routes, scripts).

    Example:
        >>> engine = ContentEngine()
        >>> engine.resolve_order()[:2]
        ['industry', 'service']
        >>> result = await engine.generate_section("playbook", {"industry": "Retail"})
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        llm=None,
        registry: Optional[OutputTypeRegistry] = None,
        catalog: Optional[FieldCatalog] = None
    ):
        self.config = config or EngineConfig.from_env()
        self.registry = registry or default_registry()
        self.catalog = catalog or default_field_catalog()
        self._llm = llm
        self.ledger: ProductCostData = empty_cost_data()

    @property
    def llm(self):
        """Model client; the OpenRouter provider is built on first use."""
        if self._llm is None:
            from providers.openrouter_async import AsyncOpenRouterProvider
            self._llm = AsyncOpenRouterProvider(
                model=self.config.model,
                api_key=self.config.openrouter_api_key,
                base_url=self.config.base_url,
                temperature=self.config.temperature,
                timeout=self.config.timeout
            )
        return self._llm

    def reset_ledger(self) -> ProductCostData:
        """Start a new ledger; returns the previous one."""
        previous, self.ledger = self.ledger, empty_cost_data()
        return previous

    # =================================================================================================
    # Fields
    # =================================================================================================

    def dependency_graph(self, prompt_overrides: Optional[Mapping[str, str]] = None) -> DependencyGraph:
        return DependencyGraph(self.catalog, prompt_overrides)

    def resolve_order(
        self,
        field_keys: Optional[Sequence[str]] = None,
        prompt_overrides: Optional[Mapping[str, str]] = None
    ) -> List[str]:
        """Evaluation order of the catalog (or a subset). Raises CycleDetected."""
        return self.dependency_graph(prompt_overrides).evaluation_order(field_keys)

    def resolve_field_prompt(
        self,
        field_key: str,
        values: Mapping[str, Any],
        prompt_override: Optional[str] = None
    ) -> ResolvedPrompt:
        template = prompt_override or self.catalog.get(field_key).prompt
        return resolve_prompt(template, values)

    async def suggest_field_values(
        self,
        field_key: str,
        values: Mapping[str, Any],
        prompt_override: Optional[str] = None
    ) -> FieldSuggestionResult:
        suggester = FieldSuggester(
            self.llm,
            self.catalog,
            model_id=self.config.pricing_model,
            timeout=self.config.timeout
        )
        result = await suggester.suggest(field_key, values, prompt_override)
        if result.cost_entry is not None:
            self.ledger = add_cost_entry(self.ledger, result.cost_entry)
        return result

    # =================================================================================================
    # Sections
    # =================================================================================================

    def orchestrator(self) -> SectionOrchestrator:
        return SectionOrchestrator(
            self.llm,
            self.registry,
            model_id=self.config.pricing_model,
            timeout=self.config.timeout,
            max_concurrency=self.config.max_concurrency
        )

    async def generate_section(self, output_type: str, context: Mapping[str, Any], **kwargs) -> SectionGenerationResult:
        """
        Generate every driver of ``output_type``. Keyword arguments are passed
        to ``SectionOrchestrator.generate_section``.

        The result's cost covers this request only; the engine ledger
        accumulates across requests, so ``cost_data`` raises TypeError.
        """
        if "cost_data" in kwargs:
            raise TypeError("ContentEngine keeps its own ledger; cost_data is not accepted")
        result = await self.orchestrator().generate_section(output_type, context, **kwargs)
        self.ledger = merge_cost_data(self.ledger, result.cost)
        logger.info(
            f"💲 [Engine] Ledger: {len(self.ledger.entries)} calls, "
            f"{format_cost(self.ledger.total_cost)}, "
            f"{format_token_count(self.ledger.total_input_tokens)} in / {format_token_count(self.ledger.total_output_tokens)} out"
        )
        return result

    async def generate_output(self, output: ConfigOutput, values: Mapping[str, Any]) -> SectionGenerationResult:
        """
        Generate one configured output from raw form values.

        Output types without drivers use ``output.prompt_override`` (or their own
        prompt template) resolved against the form values.
        """
        return await self.generate_section(
            output.output_type_id,
            values_to_context(values),
            drivers=output.section_drivers,
            directives=output.instruction_directives,
            exclude_drivers=output.excluded_drivers,
            prompt_template=output.prompt_override
        )
