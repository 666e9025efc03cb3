"""
Section Generation Orchestrator
===============================

Fans one generate-section request out into one model call per section driver,
settles every call, and merges the results back in catalog order.

Flow:
    registry lookup -> driver filtering -> per-driver prompt
    -> scatter (AsyncTaskExecutor) -> validate each output
    -> ordered DriverResults -> serial cost fold

Output types without drivers take a single call built from their resolved
prompt template instead.
"""

import logging
import os
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from core.config import setup_logging
from core.executor_async import AsyncTaskExecutor
from sectionEngine.contracts import (
    DriverFailure,
    DriverResult,
    InstructionDirective,
    OutputTypeDefinition,
    SectionDriver,
    SectionGenerationResult,
)
from sectionEngine.exceptions import DriverGenerationFailed, MalformedOutputError, MissingPromptTemplateError
from sectionEngine.prompt_assembly import build_driver_prompt, build_output_prompt
from sectionEngine.prompt_template import resolve_prompt
from sectionEngine.registry import OutputTypeRegistry, default_registry
from sectionEngine.usage_ledger import (
    DEFAULT_PRICING_MODEL,
    ModelPricing,
    ProductCostData,
    TokenUsage,
    add_cost_entry,
    empty_cost_data,
    make_cost_entry,
)

logger = logging.getLogger("SectionEngine")

OUTPUT_ROUTE = "generate-output"

DriverLike = Union[SectionDriver, Mapping[str, Any]]
DirectiveLike = Union[InstructionDirective, Mapping[str, Any]]


def _as_drivers(drivers: Iterable[DriverLike]) -> List[SectionDriver]:
    return [d if isinstance(d, SectionDriver) else SectionDriver.model_validate(d) for d in drivers]


def _as_directives(directives: Iterable[DirectiveLike]) -> List[InstructionDirective]:
    return [
        d if isinstance(d, InstructionDirective) else InstructionDirective.model_validate(d)
        for d in directives
    ]


class SectionOrchestrator:
    """
    Generates every section of one output type concurrently.

    A driver either succeeds (possibly with zero items, meaning "not relevant
    here") or fails in isolation. The request as a whole never fails because
    of one driver.
    """

    def __init__(
        self,
        llm,
        registry: Optional[OutputTypeRegistry] = None,
        model_id: str = DEFAULT_PRICING_MODEL,
        timeout: Optional[float] = 120.0,
        max_concurrency: int = 0,
        price_table: Optional[Mapping[str, ModelPricing]] = None
    ):
        """
        Args:
            llm: Object exposing ``async generate(prompt, output_schema)``
            registry: Output type registry (defaults to the built-ins)
            model_id: Pricing model recorded on every cost entry
            timeout: Per driver call timeout in seconds
            max_concurrency: Max concurrent model calls (0 = unbounded)
            price_table: Optional pricing override
        """
        self.llm = llm
        self.registry = registry or default_registry()
        self.model_id = model_id
        self.price_table = price_table
        self.executor = AsyncTaskExecutor(timeout=timeout, max_concurrency=max_concurrency)
        setup_logging("SectionEngine", os.getenv("SECTION_ENGINE_LOG_FILE"))

    async def _generate_for_driver(
        self,
        definition: OutputTypeDefinition,
        section_model: Type[BaseModel],
        output_schema: Dict[str, Any],
        driver: SectionDriver,
        context: Mapping[str, Any],
        directives: Optional[Sequence[InstructionDirective]]
    ) -> Tuple[List[Dict[str, Any]], TokenUsage]:
        prompt = build_driver_prompt(context, driver, definition, directives)
        generation = await self.llm.generate(prompt, output_schema)

        try:
            section = section_model.model_validate(generation.output)
        except ValidationError as e:
            raise MalformedOutputError(
                f"Output for '{driver.name}' does not match the {definition.name} schema: "
                f"{e.error_count()} validation error(s)"
            ) from e

        items = [item.model_dump() for item in section.items]
        return items, generation.usage

    async def _generate_output(
        self,
        definition: OutputTypeDefinition,
        output_model: Type[BaseModel],
        prompt: str
    ) -> Tuple[List[BaseModel], TokenUsage]:
        generation = await self.llm.generate(prompt, output_model.model_json_schema())

        try:
            output = output_model.model_validate(generation.output)
        except ValidationError as e:
            raise MalformedOutputError(
                f"Output for '{definition.name}' does not match the {definition.name} schema: "
                f"{e.error_count()} validation error(s)"
            ) from e

        return output.sections, generation.usage

    @staticmethod
    def _failed_result(position: int, driver: SectionDriver, cause: BaseException) -> DriverResult:
        error = DriverGenerationFailed(driver.name, cause)
        logger.error(f"❌ [Orchestrator] {error}")
        return DriverResult(
            position=position,
            driver=driver,
            status="failed",
            failure=DriverFailure(
                driver_name=driver.name,
                reason=str(error),
                error_type=type(cause).__name__
            )
        )

    async def generate_from_prompt(
        self,
        output_type: str,
        context: Mapping[str, Any],
        *,
        prompt_template: Optional[str] = None,
        route: Optional[str] = None,
        cost_data: Optional[ProductCostData] = None
    ) -> SectionGenerationResult:
        """
        Generate a driverless output type with a single model call.

        ``prompt_template`` (or the output type's own prompt) is resolved
        against ``context``; the model returns every section at once. Sections
        come back as ``ok`` DriverResults in the order the model produced them.
        A failed call yields one ``failed`` result named after the output type.

        Raises:
            UnknownOutputTypeError: output type is not registered
            MissingPromptTemplateError: neither a template nor an output type prompt exists
        """
        definition = self.registry.get(output_type)
        template = prompt_template or definition.prompt
        if not template:
            raise MissingPromptTemplateError(output_type)

        resolved = resolve_prompt(template, context)
        if not resolved.is_complete:
            logger.warning(
                f"⚠️ [Orchestrator] {output_type}: prompt references empty fields: "
                f"{', '.join(sorted(resolved.unresolved_keys))}"
            )

        prompt = build_output_prompt(resolved.prompt, definition)
        output_model = definition.output_model()
        route = route or OUTPUT_ROUTE

        logger.info(f"📝 [Orchestrator] {output_type}: single call from prompt template, context keys: {', '.join(context.keys())}")
        start_time = time.perf_counter()

        outcomes = await self.executor.gather_by_position(
            [lambda: self._generate_output(definition, output_model, prompt)],
            names=[definition.name]
        )
        outcome = outcomes[0]

        results: List[DriverResult] = []
        ledger = cost_data if cost_data is not None else empty_cost_data()

        if outcome.ok:
            sections, usage = outcome.value
            for position, section in enumerate(sections):
                name = section.name.strip() or f"{definition.section_label} {position + 1}"
                results.append(DriverResult(
                    position=position,
                    driver=SectionDriver(name=name, description=section.description),
                    status="ok",
                    items=[item.model_dump() for item in section.items]
                ))
            ledger = add_cost_entry(
                ledger,
                make_cost_entry(route, output_type, self.model_id, usage, self.price_table)
            )
        else:
            driver = SectionDriver(name=definition.name or output_type, description=definition.description)
            results.append(self._failed_result(0, driver, outcome.error))

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(f"✅ [Orchestrator] {output_type}: {len(results)} sections in {duration_ms}ms")

        return SectionGenerationResult(
            output_type=output_type,
            results=results,
            cost=ledger,
            duration_ms=duration_ms
        )

    async def generate_section(
        self,
        output_type: str,
        context: Mapping[str, Any],
        *,
        drivers: Optional[Sequence[DriverLike]] = None,
        directives: Optional[Sequence[DirectiveLike]] = None,
        exclude_drivers: Optional[Iterable[str]] = None,
        prompt_template: Optional[str] = None,
        route: Optional[str] = None,
        cost_data: Optional[ProductCostData] = None
    ) -> SectionGenerationResult:
        """
        Generate every driver of ``output_type`` for ``context``.

        An output type without drivers is generated from its prompt template
        in one call (see ``generate_from_prompt``).

        Args:
            output_type: Registered output type id
            context: Field values keyed by field key
            drivers: Custom driver list (empty or None = registry drivers)
            directives: Custom directives (None = registry directives,
                empty = default prompt)
            exclude_drivers: Driver names to skip entirely
            prompt_template: Template for driverless output types
                (default: the output type prompt)
            route: Route recorded on cost entries (default 'generate-<output_type>')
            cost_data: Ledger to extend (default: a new one)

        Returns:
            SectionGenerationResult with one DriverResult per non-excluded
            driver, in catalog order

        Raises:
            UnknownOutputTypeError: output type is not registered
            MissingPromptTemplateError: driverless output type without a prompt template
        """
        definition = self.registry.get(output_type)
        all_drivers = _as_drivers(drivers) if drivers else list(definition.drivers)
        if not all_drivers:
            return await self.generate_from_prompt(
                output_type,
                context,
                prompt_template=prompt_template,
                route=route,
                cost_data=cost_data
            )

        active_directives = None if directives is None else _as_directives(directives)
        excluded = set(exclude_drivers or [])

        active: List[Tuple[int, SectionDriver]] = []
        excluded_names: List[str] = []
        for position, driver in enumerate(all_drivers):
            if driver.name in excluded:
                excluded_names.append(driver.name)
            else:
                active.append((position, driver))

        route = route or f"generate-{output_type}"
        section_model = definition.section_model()
        output_schema = definition.output_schema()

        logger.info(
            f"🔀 [Orchestrator] {output_type}: {len(active)} drivers"
            f"{' (custom drivers)' if drivers else ''}"
            f"{f' ({len(excluded_names)} excluded)' if excluded_names else ''}"
            f"{f' ({len(active_directives)} directives)' if active_directives else ''}"
            f", context keys: {', '.join(context.keys())}"
        )

        start_time = time.perf_counter()

        factories = [
            (lambda d=driver: self._generate_for_driver(
                definition, section_model, output_schema, d, context, active_directives
            ))
            for _, driver in active
        ]
        outcomes = await self.executor.gather_by_position(
            factories,
            names=[driver.name for _, driver in active]
        )

        results: List[DriverResult] = []
        ledger = cost_data if cost_data is not None else empty_cost_data()

        for outcome in outcomes:
            position, driver = active[outcome.position]

            if not outcome.ok:
                results.append(self._failed_result(position, driver, outcome.error))
                continue

            items, usage = outcome.value
            if not items:
                logger.info(f"⚪ [Orchestrator] '{driver.name}' not relevant (0 items)")

            results.append(DriverResult(
                position=position,
                driver=driver,
                status="ok",
                items=items,
                usage=usage
            ))
            ledger = add_cost_entry(
                ledger,
                make_cost_entry(route, driver.name, self.model_id, usage, self.price_table)
            )

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        result = SectionGenerationResult(
            output_type=output_type,
            results=results,
            excluded_drivers=excluded_names,
            cost=ledger,
            duration_ms=duration_ms
        )

        logger.info(
            f"✅ [Orchestrator] {output_type}: {len(result.relevant())}/{len(results)} drivers relevant, "
            f"{len(result.failed())} failed in {duration_ms}ms"
        )
        return result
