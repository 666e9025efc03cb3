"""
Section Contracts - Domain Models
=================================

Output type definitions (drivers, directives, item schema) and the structured
per-driver results the orchestrator returns.

A driver result is either:
- ``ok`` with a populated item list
- ``ok`` with an EMPTY item list (driver not relevant to the context)
- ``failed`` with a DriverFailure (model error, malformed output, timeout)

Empty-by-relevance is a normal outcome; only ``failed`` is a partial failure.
"""

from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model

from sectionEngine.usage_ledger import ProductCostData, TokenUsage


class SectionDriver(BaseModel):
    """
    One named dimension an output type decomposes generation into.

    Example:
        SectionDriver(
            name="Risk & Contingency",
            description="Potential failure points, mitigation steps, fallback plans"
        )
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str = Field(default="")


class InstructionDirective(BaseModel):
    """A generation rule shared by every driver of one output type."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class OutputField(BaseModel):
    """One structured field of a generated item."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    label: str
    type: Literal["short-text", "long-text"] = "long-text"
    primary: bool = False


class OutputTypeDefinition(BaseModel):
    """
    Registry entry: everything needed to generate one kind of product.

    Drivers are iterated in declared order; that order is the canonical
    output order.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str = ""
    section_label: str = Field(default="Section", description="Human label for a driver, e.g. 'Phase'")
    element_label: str = Field(default="Item", description="Human label for an item, e.g. 'Play'")
    fields: List[OutputField] = Field(..., min_length=1)
    drivers: List[SectionDriver] = Field(default_factory=list)
    directives: List[InstructionDirective] = Field(default_factory=list)
    prompt: str = Field(
        default="",
        description="{{field}} template for output types generated in one call, without drivers"
    )

    @property
    def primary_field(self) -> OutputField:
        for field in self.fields:
            if field.primary:
                return field
        return self.fields[0]

    def item_model(self) -> Type[BaseModel]:
        """Pydantic model of one generated item, one string per output field."""
        definitions: Dict[str, Any] = {
            f.key: (str, Field(..., description=f.label)) for f in self.fields
        }
        return create_model(_model_name(self.id, "Item"), **definitions)

    def section_model(self) -> Type[BaseModel]:
        """Pydantic model of one driver's structured result."""
        item = self.item_model()
        return create_model(
            _model_name(self.id, "Section"),
            name=(str, Field(..., description=f"The {self.section_label} name")),
            description=(str, Field(default="", description=f"A brief description of this {self.section_label}")),
            items=(List[item], Field(
                default_factory=list,
                description=f"The {self.element_label}s in this {self.section_label}; empty when not relevant"
            )),
        )

    def output_schema(self) -> Dict[str, Any]:
        """JSON schema handed to the model client for structured output."""
        return self.section_model().model_json_schema()

    def output_model(self) -> Type[BaseModel]:
        """Whole-product model for single-call generation: a list of sections."""
        section = self.section_model()
        return create_model(
            _model_name(self.id, "Output"),
            sections=(List[section], Field(..., description=f"The {self.section_label}s of this {self.name}")),
        )


def _model_name(output_type_id: str, suffix: str) -> str:
    parts = [p for p in output_type_id.replace("_", "-").split("-") if p]
    return "".join(p.capitalize() for p in parts) + suffix


class DriverFailure(BaseModel):
    """Why one driver produced no result."""
    model_config = ConfigDict(frozen=True)

    driver_name: str
    reason: str
    error_type: str


class DriverResult(BaseModel):
    """Result slot for one driver, keyed by its catalog position."""
    model_config = ConfigDict(frozen=True)

    position: int = Field(..., ge=0)
    driver: SectionDriver
    status: Literal["ok", "failed"]
    items: List[Dict[str, Any]] = Field(default_factory=list)
    failure: Optional[DriverFailure] = None
    usage: Optional[TokenUsage] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def is_empty(self) -> bool:
        """Succeeded but judged not relevant."""
        return self.status == "ok" and not self.items


class SectionGenerationResult(BaseModel):
    """Ordered results for one generate-section request."""
    output_type: str
    results: List[DriverResult] = Field(default_factory=list)
    excluded_drivers: List[str] = Field(
        default_factory=list,
        description="Drivers filtered out by configuration; never sent to the model"
    )
    cost: ProductCostData = Field(default_factory=ProductCostData)
    duration_ms: int = 0

    def failed(self) -> List[DriverResult]:
        return [r for r in self.results if r.failed]

    def succeeded(self) -> List[DriverResult]:
        return [r for r in self.results if not r.failed]

    def relevant(self) -> List[DriverResult]:
        """Succeeded drivers that produced at least one item."""
        return [r for r in self.results if not r.failed and r.items]
