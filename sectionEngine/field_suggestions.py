"""
Field Suggestions
=================

AI-assisted values for one form field: the field's prompt is resolved against
the current form values and sent to the model for a flat list of options.
"""

import logging
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.timeout_decorator import run_with_timeout
from sectionEngine.exceptions import MalformedOutputError
from sectionEngine.field_catalog import FieldCatalog
from sectionEngine.prompt_template import resolve_prompt
from sectionEngine.usage_ledger import DEFAULT_PRICING_MODEL, CostEntry, ModelPricing, make_cost_entry

logger = logging.getLogger(__name__)

SUGGESTIONS_ROUTE = "generate-field-suggestions"
SUGGESTIONS_SUFFIX = (
    "Return the items as a flat list of concise strings. "
    "No numbering, no descriptions, just the values."
)


class SuggestionList(BaseModel):
    """Structured output requested from the model."""
    suggestions: List[str] = Field(
        default_factory=list,
        description="A list of suggestions based on the given prompt"
    )


class FieldSuggestionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_key: str
    prompt: str = Field(..., description="Resolved prompt (without the list suffix)")
    suggestions: List[str] = Field(default_factory=list)
    unresolved_keys: List[str] = Field(default_factory=list)
    cost_entry: Optional[CostEntry] = None

    @property
    def requested(self) -> bool:
        """False when the model was not called because references were unresolved."""
        return not self.unresolved_keys


def _clean(suggestions: List[str]) -> List[str]:
    cleaned = []
    for suggestion in suggestions:
        text = suggestion.strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


class FieldSuggester:
    def __init__(
        self,
        llm,
        catalog: FieldCatalog,
        model_id: str = DEFAULT_PRICING_MODEL,
        timeout: Optional[float] = 60.0,
        price_table: Optional[Mapping[str, ModelPricing]] = None
    ):
        self.llm = llm
        self.catalog = catalog
        self.model_id = model_id
        self.timeout = timeout
        self.price_table = price_table

    async def suggest(
        self,
        field_key: str,
        values: Mapping[str, Any],
        prompt_override: Optional[str] = None
    ) -> FieldSuggestionResult:
        """
        Ask the model for candidate values of ``field_key``.

        The model is only called once every referenced field has a value.

        Raises:
            UnknownFieldError: ``field_key`` is not in the catalog
            MalformedOutputError: the reply does not carry a suggestions list
        """
        template = prompt_override or self.catalog.get(field_key).prompt
        resolved = resolve_prompt(template, values)

        if not resolved.is_complete:
            missing = sorted(resolved.unresolved_keys, key=lambda k: self.catalog.position(k) if k in self.catalog else len(self.catalog))
            logger.info(f"⏸️ [FieldSuggester] '{field_key}' waiting on: {', '.join(missing)}")
            return FieldSuggestionResult(field_key=field_key, prompt=resolved.prompt, unresolved_keys=missing)

        generation = await run_with_timeout(
            self.llm.generate(f"{resolved.prompt}\n\n{SUGGESTIONS_SUFFIX}", SuggestionList.model_json_schema()),
            self.timeout,
            f"suggest:{field_key}"
        )

        try:
            parsed = SuggestionList.model_validate(generation.output)
        except ValidationError as e:
            raise MalformedOutputError(f"Suggestions for '{field_key}' are malformed: {e.error_count()} error(s)") from e

        entry = make_cost_entry(SUGGESTIONS_ROUTE, field_key, self.model_id, generation.usage, self.price_table)
        suggestions = _clean(parsed.suggestions)
        logger.info(f"💡 [FieldSuggester] '{field_key}': {len(suggestions)} suggestions")

        return FieldSuggestionResult(
            field_key=field_key,
            prompt=resolved.prompt,
            suggestions=suggestions,
            cost_entry=entry
        )
