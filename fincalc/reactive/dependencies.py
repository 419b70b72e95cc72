"""
Dependency graph between calculator fields.

An edge A -> B means "a change to A can invalidate B" (e.g. home price ->
down payment, because down payment must not exceed home price). Editing A
re-validates A and its direct dependents.

Only declared edges are followed: no transitive closure, no inference from
what a rule happens to read. The graph is expected to be acyclic but this is
not enforced; since nothing is followed transitively a cycle is harmless.
"""

from typing import Iterable, Mapping


class DependencyGraph:
    """Adjacency mapping field -> ordered dependents."""

    def __init__(self, edges: Mapping[str, Iterable[str]] | None = None):
        self._edges: dict[str, list[str]] = {}
        for field, dependents in (edges or {}).items():
            for dependent in dependents:
                self.add_edge(field, dependent)

    def add_edge(self, field: str, dependent: str) -> None:
        """Declare that dependent must be re-validated when field changes."""
        if dependent == field:
            return
        dependents = self._edges.setdefault(field, [])
        if dependent not in dependents:
            dependents.append(dependent)

    def dependents_of(self, field: str) -> tuple[str, ...]:
        return tuple(self._edges.get(field, ()))

    def fields_to_revalidate(self, field: str) -> tuple[str, ...]:
        """
        Examples:
            >>> graph = DependencyGraph({"home_price": ["down_payment"]})
            >>> graph.fields_to_revalidate("home_price")
            ('home_price', 'down_payment')
            >>> graph.fields_to_revalidate("down_payment")
            ('down_payment',)
        """
        return (field, *self.dependents_of(field))

    def as_dict(self) -> dict[str, tuple[str, ...]]:
        return {field: tuple(dependents) for field, dependents in self._edges.items()}
