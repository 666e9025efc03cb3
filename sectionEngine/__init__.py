"""
Section Engine
==============

Form-driven content generation: field dependency resolution, prompt
templating and section-driver fan-out with cost accounting.
"""
from .exceptions import (
    CycleDetected,
    DriverGenerationFailed,
    DuplicateFieldError,
    MalformedOutputError,
    MissingPromptTemplateError,
    SectionEngineError,
    UnknownFieldError,
    UnknownOutputTypeError,
)
from .field_catalog import FieldCatalog, FieldDefinition, default_field_catalog
from .dependency_graph import DependencyGraph, resolve_order, sort_fields_by_dependency
from .prompt_template import ResolvedPrompt, resolve_prompt
from .contracts import DriverResult, OutputTypeDefinition, SectionDriver, SectionGenerationResult
from .registry import OutputTypeRegistry, default_registry
from .usage_ledger import CostEntry, ProductCostData, TokenUsage, add_cost_entry, calculate_cost

__all__ = [
    "CycleDetected",
    "DriverGenerationFailed",
    "DuplicateFieldError",
    "MalformedOutputError",
    "MissingPromptTemplateError",
    "SectionEngineError",
    "UnknownFieldError",
    "UnknownOutputTypeError",
    "FieldCatalog",
    "FieldDefinition",
    "default_field_catalog",
    "DependencyGraph",
    "resolve_order",
    "sort_fields_by_dependency",
    "ResolvedPrompt",
    "resolve_prompt",
    "DriverResult",
    "OutputTypeDefinition",
    "SectionDriver",
    "SectionGenerationResult",
    "OutputTypeRegistry",
    "default_registry",
    "CostEntry",
    "ProductCostData",
    "TokenUsage",
    "add_cost_entry",
    "calculate_cost",
]
