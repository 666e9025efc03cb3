"""
Dependency Graph Resolver
=========================

Derives field dependencies from prompt templates and computes a deterministic
evaluation order.

- Direct dependencies: known field keys referenced by a field's own template.
- Transitive dependencies: closure over the direct map (iterative walk, never
  unbounded recursion).
- Evaluation order: Kahn's topological sort, ties broken by declaration order.

Cycles are configuration errors and always surface as ``CycleDetected``.
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set

from sectionEngine.exceptions import CycleDetected
from sectionEngine.field_catalog import FieldCatalog
from sectionEngine.prompt_template import extract_references, format_value

logger = logging.getLogger(__name__)

DirectMap = Mapping[str, Iterable[str]]


def compute_dependencies(
    catalog: FieldCatalog,
    prompt_overrides: Optional[Mapping[str, str]] = None
) -> Dict[str, FrozenSet[str]]:
    """
    Map every field key to the known field keys its template references.

    References to keys outside the catalog are ignored. A self-reference is
    kept so the cycle check can report it.
    """
    known = set(catalog.keys())
    direct: Dict[str, FrozenSet[str]] = {}
    for key in catalog.keys():
        refs = extract_references(catalog.prompt_for(key, prompt_overrides))
        direct[key] = frozenset(ref for ref in refs if ref in known)
    return direct


def find_unknown_references(
    catalog: FieldCatalog,
    prompt_overrides: Optional[Mapping[str, str]] = None
) -> Dict[str, List[str]]:
    """Fields whose templates reference keys missing from the catalog."""
    known = set(catalog.keys())
    unknown: Dict[str, List[str]] = {}
    for key in catalog.keys():
        refs = extract_references(catalog.prompt_for(key, prompt_overrides))
        missing = [ref for ref in refs if ref not in known]
        if missing:
            unknown[key] = missing
    return unknown


def validate_prompt_refs(prompt: str, catalog: FieldCatalog) -> List[str]:
    """Human-readable warnings for placeholders that match no catalog field."""
    return [
        f'Prompt references "{{{{{ref}}}}}" which is not a field in the catalog'
        for ref in extract_references(prompt)
        if ref not in catalog
    ]


def get_transitive_dependencies(field_key: str, direct_map: DirectMap) -> Set[str]:
    """
    Full set of fields ``field_key`` depends on, directly or through others.

    Depth-first walk with an explicit stack. ``visited`` guarantees termination;
    ``on_path`` tracks the current chain so that reaching a key already on it
    is reported as a cycle instead of being silently skipped.

    Raises:
        CycleDetected: naming the fields on the cycle that was reached
    """
    closure: Set[str] = set()
    visited: Set[str] = set()
    on_path: List[str] = []
    on_path_set: Set[str] = set()

    # (key, iterator over its deps) frames
    stack = [(field_key, iter(sorted(direct_map.get(field_key, ()))))]
    on_path.append(field_key)
    on_path_set.add(field_key)
    visited.add(field_key)

    while stack:
        key, deps = stack[-1]
        dep = next(deps, None)
        if dep is None:
            stack.pop()
            on_path.pop()
            on_path_set.discard(key)
            continue

        if dep in on_path_set:
            cycle = on_path[on_path.index(dep):]
            logger.error(f"🔁 [DependencyGraph] Cycle reached from '{field_key}': {' -> '.join(cycle + [dep])}")
            raise CycleDetected(cycle)

        closure.add(dep)
        if dep in visited:
            continue

        visited.add(dep)
        on_path.append(dep)
        on_path_set.add(dep)
        stack.append((dep, iter(sorted(direct_map.get(dep, ())))))

    return closure


def _cyclic_nodes(remaining: Sequence[str], direct_map: DirectMap) -> List[str]:
    """Nodes of ``remaining`` that can reach themselves (lie on some cycle)."""
    remaining_set = set(remaining)
    cyclic = []
    for start in remaining:
        seen: Set[str] = set()
        frontier = [d for d in direct_map.get(start, ()) if d in remaining_set]
        while frontier:
            node = frontier.pop()
            if node == start:
                cyclic.append(start)
                break
            if node in seen:
                continue
            seen.add(node)
            frontier.extend(d for d in direct_map.get(node, ()) if d in remaining_set)
    return cyclic


def _topological_order(keys: Sequence[str], direct_map: DirectMap) -> List[str]:
    """Kahn's algorithm over ``keys``; the earliest-declared ready key goes first."""
    position = {key: index for index, key in enumerate(keys)}
    key_set = set(keys)

    dependents: Dict[str, Set[str]] = {key: set() for key in keys}
    indegree: Dict[str, int] = {key: 0 for key in keys}
    for key in keys:
        for dep in set(direct_map.get(key, ())):
            if dep not in key_set:
                continue
            dependents[dep].add(key)
            indegree[key] += 1

    ready = sorted((key for key in keys if indegree[key] == 0), key=position.__getitem__)
    ordered: List[str] = []

    while ready:
        current = ready.pop(0)
        ordered.append(current)
        for dependent in dependents[current]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                ready.append(dependent)
        ready.sort(key=position.__getitem__)

    if len(ordered) != len(keys):
        remaining = [key for key in keys if indegree[key] > 0]
        cycle = _cyclic_nodes(remaining, direct_map)
        logger.error(f"🔁 [DependencyGraph] No evaluation order, cycle among: {', '.join(cycle)}")
        raise CycleDetected(cycle)

    return ordered


def sort_fields_by_dependency(
    catalog: FieldCatalog,
    field_keys: Optional[Sequence[str]] = None,
    prompt_overrides: Optional[Mapping[str, str]] = None
) -> List[str]:
    """
    Order fields so every field comes after all of its dependencies.

    Args:
        catalog: Field definitions
        field_keys: Optional subset (and tie-break order). Dependencies outside
            the subset are ignored. Defaults to the whole catalog in
            declaration order.
        prompt_overrides: Per-configuration template overrides

    Raises:
        CycleDetected: naming every field that lies on a cycle
    """
    direct = compute_dependencies(catalog, prompt_overrides)
    if field_keys is None:
        keys = catalog.keys()
    else:
        keys = list(dict.fromkeys(field_keys))
    return _topological_order(keys, direct)


# Name used by form collaborators
resolve_order = sort_fields_by_dependency


class DependencyGraph:
    """
    Read-only dependency view of one catalog (plus overrides).

    Build a new graph whenever the catalog changes. Transitive closures are
    memoized per key.

    Example:
        >>> graph = DependencyGraph(default_field_catalog())
        >>> graph.evaluation_order()[:3]
        ['industry', 'service', 'role']
    """

    def __init__(self, catalog: FieldCatalog, prompt_overrides: Optional[Mapping[str, str]] = None):
        self.catalog = catalog
        self.prompt_overrides = dict(prompt_overrides or {})
        self.direct: Dict[str, FrozenSet[str]] = compute_dependencies(catalog, self.prompt_overrides)
        self._closures: Dict[str, FrozenSet[str]] = {}
        self._order: Optional[List[str]] = None

    def dependencies_of(self, key: str) -> FrozenSet[str]:
        self.catalog.get(key)
        return self.direct[key]

    def transitive_dependencies(self, key: str) -> FrozenSet[str]:
        self.catalog.get(key)
        if key not in self._closures:
            self._closures[key] = frozenset(get_transitive_dependencies(key, self.direct))
        return self._closures[key]

    def dependents_of(self, key: str) -> List[str]:
        """Fields whose templates reference ``key`` directly, in declaration order."""
        self.catalog.get(key)
        return [other for other in self.catalog.keys() if key in self.direct[other] and other != key]

    def evaluation_order(self, field_keys: Optional[Sequence[str]] = None) -> List[str]:
        if field_keys is not None:
            return _topological_order(list(dict.fromkeys(field_keys)), self.direct)
        if self._order is None:
            self._order = _topological_order(self.catalog.keys(), self.direct)
        return list(self._order)

    def missing_dependencies(self, key: str, present_keys: Iterable[str]) -> List[str]:
        """
        Transitive dependencies of ``key`` not in ``present_keys``, dependencies first.

        Used when a field is added to a form step: everything it needs must be
        added before it.
        """
        present = set(present_keys)
        missing = [dep for dep in self.transitive_dependencies(key) if dep not in present]
        if not missing:
            return []
        return _topological_order(
            sorted(missing, key=self.catalog.position),
            self.direct
        )

    def ready_fields(self, values: Mapping[str, Any]) -> List[str]:
        """Fields whose direct dependencies all have a non-blank value, in evaluation order."""
        ready = []
        for key in self.evaluation_order():
            if all(format_value(values.get(dep)).strip() for dep in self.direct[key]):
                ready.append(key)
        return ready
