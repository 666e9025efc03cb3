from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from sectionEngine.contracts import InstructionDirective, SectionDriver


class FieldOrderRequest(BaseModel):
    """Request to compute the field evaluation order"""
    field_keys: Optional[List[str]] = Field(default=None, description="Subset of fields to order (default: whole catalog)")
    prompt_overrides: Dict[str, str] = Field(default_factory=dict, description="Per-configuration prompt overrides")


class FieldOrderResponse(BaseModel):
    """Evaluation order"""
    order: List[str] = Field(..., description="Field keys, dependencies first")


class ResolvePromptRequest(BaseModel):
    """Resolve a template (or a catalog field's prompt) against form values"""
    field_key: Optional[str] = Field(default=None, description="Catalog field whose prompt is resolved")
    template: Optional[str] = Field(default=None, description="Explicit template (wins over field_key)")
    values: Dict[str, Any] = Field(default_factory=dict, description="Current form values")


class ResolvePromptResponse(BaseModel):
    """Resolved prompt"""
    prompt: str
    unresolved_keys: List[str] = Field(default_factory=list)
    is_complete: bool
    warnings: List[str] = Field(default_factory=list, description="References to unknown fields")


class SuggestionRequest(BaseModel):
    """Request for AI suggested values of one field"""
    values: Dict[str, Any] = Field(default_factory=dict, description="Current form values")
    prompt_override: Optional[str] = Field(default=None)


class SuggestionResponse(BaseModel):
    """Suggested values"""
    field_key: str
    suggestions: List[str] = Field(default_factory=list)
    unresolved_keys: List[str] = Field(default_factory=list)


class GenerateSectionRequest(BaseModel):
    """Request to generate every section of one output type"""
    context: Dict[str, Any] = Field(..., description="Form values keyed by field key")
    section_drivers: Optional[List[SectionDriver]] = Field(default=None, description="Custom drivers")
    instruction_directives: Optional[List[InstructionDirective]] = Field(default=None, description="Custom directives")
    excluded_drivers: List[str] = Field(default_factory=list, description="Driver names to skip")
    prompt_template: Optional[str] = Field(default=None, description="{{field}} template for output types without drivers")
    include_empty: bool = Field(default=False, description="Also return drivers that produced no items (failed drivers are always returned)")


class SectionPayload(BaseModel):
    """One generated section"""
    position: int
    name: str
    description: str
    status: str
    items: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class GenerateSectionResponse(BaseModel):
    """Generated sections plus usage"""
    output_type: str
    sections: List[SectionPayload] = Field(default_factory=list)
    failed_drivers: List[str] = Field(default_factory=list)
    excluded_drivers: List[str] = Field(default_factory=list)
    total_cost: float = 0.0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    duration_ms: int = 0
