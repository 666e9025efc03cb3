"""
Usage / Cost Ledger
===================

Append-only token and cost accounting for one logical product.

Every value here is immutable: ``add_cost_entry`` returns a new ledger and
never touches the one passed in. Costs and running totals are rounded to
micro-dollars after every operation so re-deriving totals is bit-stable.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_PRICING_MODEL = "gpt-5.2"
_MICRO = Decimal("0.000001")


class ModelPricing(BaseModel):
    """Per-model price, USD per 1M tokens."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    provider: str
    input_per_1m_tokens: float
    cached_input_per_1m_tokens: Optional[float] = None
    output_per_1m_tokens: float


MODEL_PRICING: Dict[str, ModelPricing] = {
    "gpt-5.2": ModelPricing(
        id="gpt-5.2",
        name="GPT-5.2",
        provider="openai",
        input_per_1m_tokens=1.75,
        cached_input_per_1m_tokens=0.175,
        output_per_1m_tokens=14.0,
    ),
}


class TokenUsage(BaseModel):
    """Token counts reported by one model call."""
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @classmethod
    def from_provider(cls, usage: Optional[Mapping[str, Any]]) -> "TokenUsage":
        """Build from an OpenAI-style usage dict (missing keys count as 0)."""
        usage = usage or {}
        prompt = int(usage.get("prompt_tokens") or 0)
        completion = int(usage.get("completion_tokens") or 0)
        total = int(usage.get("total_tokens") or (prompt + completion))
        return cls(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


class CostEntry(BaseModel):
    """One completed model call. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    route: str = Field(..., description="Route that issued the call (e.g. 'generate-checklist')")
    action: str = Field(..., description="Action within the route (e.g. the driver name)")
    model: str = Field(..., description="Pricing model identifier")
    usage: TokenUsage
    cost: float = Field(default=0.0, ge=0.0, description="USD, micro-dollar precision")
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ProductCostData(BaseModel):
    """Ordered cost entries plus totals that always equal their sum."""
    model_config = ConfigDict(frozen=True)

    entries: Tuple[CostEntry, ...] = ()
    total_cost: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0


def round_micro(value: float) -> float:
    """Round half-up to 6 fractional digits (micro-dollars)."""
    return float(Decimal(repr(float(value))).quantize(_MICRO, rounding=ROUND_HALF_UP))


def get_model_pricing(model_id: str, price_table: Optional[Mapping[str, ModelPricing]] = None) -> Optional[ModelPricing]:
    table = MODEL_PRICING if price_table is None else price_table
    return table.get(model_id)


def calculate_cost(
    usage: TokenUsage,
    model_id: str = DEFAULT_PRICING_MODEL,
    price_table: Optional[Mapping[str, ModelPricing]] = None
) -> float:
    """
    USD cost of one call. Unknown models cost 0: cost tracking is observability,
    not a correctness gate.
    """
    pricing = get_model_pricing(model_id, price_table)
    if pricing is None:
        logger.debug(f"💲 [Ledger] No pricing for model '{model_id}', cost recorded as 0")
        return 0.0
    input_cost = (usage.prompt_tokens / 1_000_000) * pricing.input_per_1m_tokens
    output_cost = (usage.completion_tokens / 1_000_000) * pricing.output_per_1m_tokens
    return round_micro(input_cost + output_cost)


def make_cost_entry(
    route: str,
    action: str,
    model: str,
    usage: TokenUsage,
    price_table: Optional[Mapping[str, ModelPricing]] = None
) -> CostEntry:
    return CostEntry(
        route=route,
        action=action,
        model=model,
        usage=usage,
        cost=calculate_cost(usage, model, price_table),
    )


def empty_cost_data() -> ProductCostData:
    return ProductCostData()


def add_cost_entry(data: ProductCostData, entry: CostEntry) -> ProductCostData:
    """Return a new ledger with ``entry`` appended; totals updated from the entry alone."""
    return ProductCostData(
        entries=data.entries + (entry,),
        total_cost=round_micro(data.total_cost + entry.cost),
        total_input_tokens=data.total_input_tokens + entry.usage.prompt_tokens,
        total_output_tokens=data.total_output_tokens + entry.usage.completion_tokens,
    )


def merge_cost_data(left: ProductCostData, right: ProductCostData) -> ProductCostData:
    """
    Combine two independently folded ledgers.

    Totals are plain sums, so the merge is commutative on totals; entries keep
    ``left`` first.
    """
    return ProductCostData(
        entries=left.entries + right.entries,
        total_cost=round_micro(left.total_cost + right.total_cost),
        total_input_tokens=left.total_input_tokens + right.total_input_tokens,
        total_output_tokens=left.total_output_tokens + right.total_output_tokens,
    )


def format_cost(cost: float) -> str:
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"


def format_token_count(count: int) -> str:
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)
