"""
Setup Configuration
===================

A configuration groups catalog fields into ordered form steps and lists the
output types to produce from the filled form.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from sectionEngine.contracts import InstructionDirective, SectionDriver
from sectionEngine.dependency_graph import DependencyGraph, sort_fields_by_dependency
from sectionEngine.field_catalog import FieldCatalog
from sectionEngine.prompt_template import format_value


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConfigStepField(BaseModel):
    field_key: str = Field(..., description="Catalog key of the field")
    required: bool = Field(default=False)
    prompt_override: Optional[str] = Field(default=None, description="Replaces the catalog prompt in this configuration")


class ConfigStep(BaseModel):
    id: str
    name: str
    description: str = ""
    fields: List[ConfigStepField] = Field(default_factory=list)

    def field_keys(self) -> List[str]:
        return [f.field_key for f in self.fields]


class ConfigOutput(BaseModel):
    """One requested output type, optionally with its own drivers and directives."""
    output_type_id: str
    prompt_override: Optional[str] = None
    section_drivers: Optional[List[SectionDriver]] = None
    instruction_directives: Optional[List[InstructionDirective]] = None
    excluded_drivers: List[str] = Field(default_factory=list)


class SetupConfiguration(BaseModel):
    """
    Ordered form steps plus the outputs generated from them.

    Example:
        SetupConfiguration(
            id="cfg-1",
            name="Consulting kickoff",
            steps=[ConfigStep(id="s1", name="Basics", fields=[ConfigStepField(field_key="industry")])],
            outputs=[ConfigOutput(output_type_id="checklist")]
        )
    """
    id: str
    name: str
    description: str = ""
    steps: List[ConfigStep] = Field(default_factory=list)
    outputs: List[ConfigOutput] = Field(default_factory=list)
    created_at: str = Field(default_factory=_now)
    updated_at: str = Field(default_factory=_now)

    def all_field_keys(self) -> List[str]:
        """Every field key used by the configuration, in step order."""
        return [f.field_key for step in self.steps for f in step.fields]

    def prompt_overrides(self) -> Dict[str, str]:
        return {
            f.field_key: f.prompt_override
            for step in self.steps
            for f in step.fields
            if f.prompt_override
        }

    def get_step(self, step_id: str) -> ConfigStep:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Step '{step_id}' not found in configuration '{self.id}'")

    def replace_step(self, step: ConfigStep) -> "SetupConfiguration":
        steps = [step if s.id == step.id else s for s in self.steps]
        return self.model_copy(update={"steps": steps, "updated_at": _now()})

    def step_field_order(self, step: ConfigStep, catalog: FieldCatalog) -> List[str]:
        """Keys of ``step`` sorted so dependencies render first."""
        return sort_fields_by_dependency(catalog, step.field_keys(), self.prompt_overrides())

    def required_filled(self, step: ConfigStep, values: Mapping[str, Any]) -> bool:
        """True when every required field of ``step`` has a non-blank value."""
        return all(
            format_value(values.get(f.field_key)).strip()
            for f in step.fields
            if f.required
        )


def values_to_context(values: Mapping[str, Any]) -> Dict[str, str]:
    """Flatten form values (multi-select lists joined) and drop blanks."""
    context = {}
    for key, value in values.items():
        text = format_value(value).strip()
        if text:
            context[key] = text
    return context


def add_field_with_dependencies(
    step: ConfigStep,
    field_key: str,
    graph: DependencyGraph,
    config: Optional[SetupConfiguration] = None,
    required: bool = False
) -> ConfigStep:
    """
    Return a copy of ``step`` with ``field_key`` appended, preceded by any of
    its transitive dependencies not already present in the configuration.

    Raises:
        UnknownFieldError: ``field_key`` is not in the catalog
        CycleDetected: the field's dependencies loop
    """
    present = set(step.field_keys())
    if config is not None:
        present.update(config.all_field_keys())

    new_fields = list(step.fields)
    for dep in graph.missing_dependencies(field_key, present):
        new_fields.append(ConfigStepField(field_key=dep))
        present.add(dep)

    if field_key not in present:
        new_fields.append(ConfigStepField(field_key=field_key, required=required))

    return step.model_copy(update={"fields": new_fields})
