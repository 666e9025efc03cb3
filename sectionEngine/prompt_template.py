"""
Prompt Template Resolver
========================

Field prompts reference other fields with ``{{fieldKey}}`` placeholders.
The same pattern drives dependency extraction and substitution.
"""

import re
from typing import Any, FrozenSet, List, Mapping

from pydantic import BaseModel, ConfigDict, Field

# {{key}} with optional inner whitespace
REFERENCE_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class ResolvedPrompt(BaseModel):
    """Concrete prompt plus the references that had no value yet."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="Template with every reference substituted")
    unresolved_keys: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Referenced field keys whose value was empty or missing"
    )

    @property
    def is_complete(self) -> bool:
        return not self.unresolved_keys


def extract_references(template: str) -> List[str]:
    """Return referenced field keys, unique, in order of first appearance."""
    if not template:
        return []
    seen = []
    for match in REFERENCE_PATTERN.finditer(template):
        key = match.group(1)
        if key not in seen:
            seen.append(key)
    return seen


def format_value(value: Any) -> str:
    """Flatten a field value to prompt text. Multi-select lists join with ', '."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return str(value)


def resolve_prompt(template: str, values_by_key: Mapping[str, Any]) -> ResolvedPrompt:
    """
    Substitute every ``{{key}}`` reference in ``template``.

    All references resolve against one snapshot of ``values_by_key`` in a single
    pass, so substituted text is never scanned again. Blank or missing values are
    replaced with an empty string and reported in ``unresolved_keys``.

    Example:
        >>> r = resolve_prompt("For {{industry}} providing {{service}}",
        ...                    {"industry": "Healthcare", "service": ""})
        >>> r.prompt
        'For Healthcare providing '
        >>> sorted(r.unresolved_keys)
        ['service']
    """
    if not template:
        return ResolvedPrompt(prompt=template or "")

    snapshot = dict(values_by_key or {})
    unresolved = set()

    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        text = format_value(snapshot.get(key))
        if not text.strip():
            unresolved.add(key)
            return ""
        return text

    prompt = REFERENCE_PATTERN.sub(_substitute, template)
    return ResolvedPrompt(prompt=prompt, unresolved_keys=frozenset(unresolved))
