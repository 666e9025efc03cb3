from typing import Dict, Iterable, List, Optional

from sectionEngine.contracts import OutputTypeDefinition
from sectionEngine.exceptions import UnknownOutputTypeError


class OutputTypeRegistry:
    """Keyed registry: output type id -> drivers, directives and item schema"""

    def __init__(self, output_types: Optional[Iterable[OutputTypeDefinition]] = None):
        self.output_types: Dict[str, OutputTypeDefinition] = {}
        for output_type in output_types or []:
            self.register(output_type)

    def register(self, output_type: OutputTypeDefinition, replace: bool = False):
        """Register an output type"""
        if output_type.id in self.output_types and not replace:
            raise ValueError(f"Output type '{output_type.id}' already registered")
        self.output_types[output_type.id] = output_type

    def get(self, output_type_id: str) -> OutputTypeDefinition:
        """Get output type by id"""
        output_type = self.output_types.get(output_type_id)
        if output_type is None:
            raise UnknownOutputTypeError(output_type_id)
        return output_type

    def __contains__(self, output_type_id: object) -> bool:
        return output_type_id in self.output_types

    def list(self) -> List[str]:
        """List all output type ids"""
        return list(self.output_types.keys())

    def describe(self) -> List[Dict]:
        """Summary of every output type (for listings)"""
        return [
            {
                "id": ot.id,
                "name": ot.name,
                "description": ot.description,
                "section_label": ot.section_label,
                "element_label": ot.element_label,
                "drivers": [d.name for d in ot.drivers],
                "fields": [f.key for f in ot.fields],
            }
            for ot in self.output_types.values()
        ]


def default_registry() -> OutputTypeRegistry:
    """Fresh registry seeded with the built-in output types"""
    from sectionEngine.builtin_output_types import BUILTIN_OUTPUT_TYPES
    return OutputTypeRegistry(BUILTIN_OUTPUT_TYPES)
