from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from sectionEngine.usage_ledger import TokenUsage


class GenerationOutput(BaseModel):
    """Structured output of one model call plus its token usage."""
    output: Dict[str, Any] = Field(default_factory=dict, description="Parsed JSON object")
    usage: TokenUsage = Field(default_factory=TokenUsage)
    model: str = Field(default="", description="Model that served the call")


@runtime_checkable
class LLMClient(Protocol):
    """
    Interface the engine uses to talk to a generative model.

    Implementations return the parsed object or raise; they never return
    partial output.
    """

    async def generate(self, prompt: str, output_schema: Optional[Dict[str, Any]] = None) -> GenerationOutput:
        ...
