"""
Field Catalog
=============

Declared form fields. Every field is prompt-driven: its template may reference
other fields with ``{{fieldKey}}`` placeholders, and those references are the
field's dependencies. Declaration order is significant (it breaks ties when
ordering fields for evaluation).
"""

import logging
from datetime import datetime
from typing import Dict, Iterator, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from sectionEngine.exceptions import DuplicateFieldError, UnknownFieldError
from sectionEngine.prompt_template import extract_references

logger = logging.getLogger(__name__)


class FieldDefinition(BaseModel):
    """
    A single named value in the intake form.

    Example:
        FieldDefinition(
            key="service",
            name="Service",
            prompt='For the "{{industry}}" industry, list 15-20 services...'
        )
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Stable identifier, unique within a catalog")
    name: str = Field(default="", description="Human-readable label")
    description: str = Field(default="", description="What the field captures")
    prompt: str = Field(default="", description="Generation template, may contain {{key}} references")
    value_type: Literal["text", "choice"] = Field(default="text", description="Free text or enumerated choice")
    choices: List[str] = Field(default_factory=list, description="Allowed values when value_type is 'choice'")
    selection_mode: Literal["single", "multi"] = Field(default="single")
    allow_custom_values: bool = Field(default=True)
    placeholder: Optional[str] = None
    category: str = Field(default="Custom")
    is_built_in: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def dependency_keys(self) -> List[str]:
        """Keys referenced by this field's own template (direct, unvalidated)."""
        return extract_references(self.prompt)


class FieldCatalog:
    """
    Ordered, keyed collection of field definitions.

    Mutating operations return the new/updated definition and keep
    declaration order stable (updates stay in place, adds go to the end).
    """

    def __init__(self, fields: Optional[List[FieldDefinition]] = None):
        self._fields: Dict[str, FieldDefinition] = {}
        for field in fields or []:
            self.add(field)

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(list(self._fields.values()))

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def keys(self) -> List[str]:
        return list(self._fields.keys())

    def get(self, key: str) -> FieldDefinition:
        field = self._fields.get(key)
        if field is None:
            raise UnknownFieldError(key)
        return field

    def find(self, key: str) -> Optional[FieldDefinition]:
        return self._fields.get(key)

    def position(self, key: str) -> int:
        """Declaration index of ``key`` (unknown keys sort last)."""
        try:
            return self.keys().index(key)
        except ValueError:
            return len(self._fields)

    def add(self, field: FieldDefinition) -> FieldDefinition:
        if field.key in self._fields:
            raise DuplicateFieldError(field.key)
        self._fields[field.key] = field
        return field

    def update(self, key: str, **changes) -> FieldDefinition:
        """Replace a field with an updated copy. ``key`` and ``created_at`` are fixed."""
        current = self.get(key)
        changes.pop("key", None)
        changes.pop("created_at", None)
        changes["updated_at"] = datetime.now()
        updated = current.model_copy(update=changes)
        self._fields[key] = updated
        return updated

    def remove(self, key: str) -> bool:
        """Remove a custom field. Built-in and unknown fields are left alone."""
        field = self._fields.get(key)
        if field is None:
            return False
        if field.is_built_in:
            logger.warning(f"🔒 [FieldCatalog] Built-in field '{key}' cannot be removed")
            return False
        del self._fields[key]
        return True

    def prompt_for(self, key: str, prompt_overrides: Optional[Mapping[str, str]] = None) -> str:
        """Effective template for ``key``: a non-empty override wins over the declared prompt."""
        if prompt_overrides and prompt_overrides.get(key):
            return prompt_overrides[key]
        return self.get(key).prompt


# =================================================================================================
# Built-in fields
# =================================================================================================

SEED_FIELDS: List[Dict] = [
    {
        "key": "industry",
        "name": "Industry",
        "description": "The target industry or market sector",
        "prompt": "List 20 diverse and specific industries or business sectors. Include both traditional "
                  "sectors (Healthcare, Manufacturing, Financial Services) and emerging ones (AI/ML, "
                  "CleanTech, EdTech). Return each as a concise name.",
        "category": "Core",
    },
    {
        "key": "service",
        "name": "Service",
        "description": "The specific service or product area within the industry",
        "prompt": 'For the "{{industry}}" industry, list 15-20 specific services, products, or solutions '
                  "that organizations typically offer. Be practical and industry-specific.",
        "category": "Core",
    },
    {
        "key": "role",
        "name": "Role",
        "description": "The target persona, job title, or function",
        "prompt": 'For an organization in the "{{industry}}" industry providing "{{service}}", list 15-20 '
                  "key job roles across different departments. Include a mix of leadership and individual "
                  "contributor positions. Return each as a clear job title.",
        "category": "Core",
    },
    {
        "key": "activity",
        "name": "Activity",
        "description": "The specific task, workflow, or responsibility",
        "prompt": 'For a "{{role}}" working in the "{{industry}}" industry at an organization providing '
                  '"{{service}}", list 12-15 specific activities, tasks, and responsibilities they '
                  "regularly perform. Be action-oriented.",
        "category": "Core",
    },
    {
        "key": "situation",
        "name": "Situation",
        "description": "A specific scenario or context to focus on",
        "prompt": 'For a "{{role}}" working on "{{activity}}" in the "{{industry}}" industry, list 6-8 '
                  "specific situations, scenarios, or decision points they might face. Each should be a "
                  "brief, concrete description.",
        "category": "Core",
    },
    {
        "key": "targetAudience",
        "name": "Target Audience",
        "description": "Who will consume the generated product",
        "prompt": 'For products targeting the "{{industry}}" industry and the "{{role}}" persona, suggest '
                  "8-10 specific audience segments. Be specific about role, niche, and context.",
        "category": "Audience",
    },
    {
        "key": "geography",
        "name": "Geography",
        "description": "Geographic focus or market region",
        "prompt": "List 15 common geographic markets and regions used in business strategy. Include "
                  "specific countries, continents, and trade designations (EMEA, APAC, LATAM).",
        "selection_mode": "multi",
        "category": "Context",
    },
    {
        "key": "painPoints",
        "name": "Pain Points",
        "description": "Key challenges and frustrations",
        "prompt": 'For a "{{role}}" working on "{{activity}}" in the "{{industry}}" industry, list 8-10 '
                  "specific pain points, challenges, and frustrations they commonly face. Be concrete.",
        "selection_mode": "multi",
        "category": "Context",
    },
    {
        "key": "objectives",
        "name": "Objectives",
        "description": "Goals and desired outcomes",
        "prompt": 'For a "{{role}}" in the "{{industry}}" industry, list 8-10 common business objectives, '
                  "KPIs, and success metrics they are measured on.",
        "selection_mode": "multi",
        "category": "Context",
    },
    {
        "key": "stakeholders",
        "name": "Stakeholders",
        "description": "Key people involved in the process",
        "prompt": 'For a "{{role}}" working on "{{activity}}" in the "{{industry}}" industry, list 8-10 '
                  "key stakeholders, decision-makers, and influencers they typically interact with.",
        "selection_mode": "multi",
        "category": "Context",
    },
    {
        "key": "competitors",
        "name": "Competitors",
        "description": "Key competitors or alternative solutions",
        "prompt": 'For the "{{service}}" market in the "{{industry}}" industry, list 10-12 notable '
                  "competitors, alternative solutions, or market players.",
        "selection_mode": "multi",
        "category": "Context",
    },
    {
        "key": "tools",
        "name": "Tools & Technology",
        "description": "Software, platforms, and tools used",
        "prompt": 'For a "{{role}}" working on "{{activity}}" in the "{{industry}}" industry, list 10-12 '
                  "common tools, software platforms, and technologies they use in their daily work.",
        "selection_mode": "multi",
        "category": "Context",
    },
]


def default_field_catalog() -> FieldCatalog:
    """Fresh catalog seeded with the built-in fields."""
    return FieldCatalog([FieldDefinition(is_built_in=True, **spec) for spec in SEED_FIELDS])
