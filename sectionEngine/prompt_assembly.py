"""
Prompt Assembly
===============

Builds the per-driver prompt: user context block, the driver being generated
and the output type's numbered instruction directives. Driverless output types
get their resolved template with an output format block instead.
"""

import re
from typing import Any, Mapping, Optional, Sequence

from sectionEngine.contracts import InstructionDirective, OutputTypeDefinition, SectionDriver
from sectionEngine.prompt_template import format_value

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def humanize_key(key: str) -> str:
    """'targetAudience' -> 'Target Audience'"""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", key)
    return (spaced[:1].upper() + spaced[1:]).strip()


def format_context(context: Mapping[str, Any]) -> str:
    """One '- Label: value' line per non-blank context value, in mapping order."""
    lines = []
    for key, value in context.items():
        text = format_value(value).strip()
        if not text:
            continue
        lines.append(f"- {humanize_key(key)}: {text}")
    return "\n".join(lines)


def assemble_directives_prompt(
    context: Mapping[str, Any],
    driver: SectionDriver,
    section_label: str,
    directives: Sequence[InstructionDirective]
) -> str:
    """
    Full prompt for one driver.

    Example:
        CONTEXT:
        - Industry: Healthcare

        PHASE: "Core Execution"
        The primary work ...

        INSTRUCTIONS (follow all of these):
        1. [Role] You are ...
    """
    instructions = "\n".join(
        f"{index}. [{directive.label}] {directive.content}"
        for index, directive in enumerate(directives, start=1)
    )
    return (
        f"CONTEXT:\n{format_context(context)}\n\n"
        f"{section_label.upper()}: \"{driver.name}\"\n{driver.description}\n\n"
        f"INSTRUCTIONS (follow all of these):\n{instructions}"
    )


def build_default_prompt(
    context: Mapping[str, Any],
    driver: SectionDriver,
    output_type: OutputTypeDefinition
) -> str:
    """Prompt used when an output type is generated without directives."""
    section = output_type.section_label
    element = output_type.element_label.lower()
    field_lines = "\n".join(f"- {f.key}: {f.label}" for f in output_type.fields)
    return (
        f"You are an expert producing a {output_type.name.lower()}: {output_type.description}.\n\n"
        f"CONTEXT:\n{format_context(context)}\n\n"
        f"TASK:\nGenerate {element}s for the \"{driver.name}\" {section.lower()}.\n\n"
        f"{section.upper()} DEFINITION:\n{driver.name}: {driver.description}\n\n"
        f"EACH {element.upper()} HAS:\n{field_lines}\n\n"
        "GUIDELINES:\n"
        f"- Only generate {element}s if this {section.lower()} is genuinely relevant to the given context. "
        "If not relevant, return an empty items array.\n"
        "- Be specific to the described context, not generic advice.\n"
        "- Tailor everything to the context provided."
    )


def build_driver_prompt(
    context: Mapping[str, Any],
    driver: SectionDriver,
    output_type: OutputTypeDefinition,
    directives: Optional[Sequence[InstructionDirective]] = None
) -> str:
    """Directive prompt when directives exist, otherwise the default prompt."""
    if directives is None:
        directives = output_type.directives
    if directives:
        return assemble_directives_prompt(context, driver, output_type.section_label, directives)
    return build_default_prompt(context, driver, output_type)


def build_output_prompt(resolved_prompt: str, output_type: OutputTypeDefinition) -> str:
    """Resolved template plus the output format block for single-call generation."""
    section = output_type.section_label.lower()
    element = output_type.element_label.lower()
    field_list = ", ".join(f'"{f.key}" ({f.label})' for f in output_type.fields)
    return (
        f"{resolved_prompt.strip()}\n\n"
        "OUTPUT FORMAT:\n"
        f"Generate 4-8 {section}s, each containing 3-6 {element}s.\n"
        f"Each {section} should have a clear name and description.\n"
        f"Each {element} must have these fields: {field_list}.\n"
        f"Lead each {element} with a concise \"{output_type.primary_field.key}\".\n"
        "Be specific, practical, and tailored to the context provided."
    )
