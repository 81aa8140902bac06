"""
Reference graph over the definitions of a resolved schema.

The resolver only guarantees that every ref names a definition. Backends
that need to know more about a reference (what it ultimately aliases,
whether it participates in a cycle) ask this graph instead of expanding
refs themselves.
"""

from __future__ import annotations

from ..schema_ast.nodes import RefNode, ResolvedSchema, SchemaNode


class ReferenceResolver:
    """Answers structural questions about refs between definitions."""

    def __init__(self, schema: ResolvedSchema):
        """
        Initialize the resolver.

        Args:
            schema: The resolved schema (read only)
        """
        self.schema = schema
        self._edges: dict[str, tuple[str, ...]] = {}
        self._build_edges()
        self._components = self._find_cycles()

    def _build_edges(self) -> None:
        """Collect, per definition, the names it references (first-seen order, no duplicates)."""
        for name, node in self.schema.definitions.items():
            targets: dict[str, None] = {}
            stack: list[SchemaNode] = [node]
            while stack:
                current = stack.pop()
                if isinstance(current, RefNode):
                    targets[current.ref] = None
                stack.extend(reversed(list(current.children())))
            self._edges[name] = tuple(targets)

    def references(self, name: str) -> tuple[str, ...]:
        """Definitions referenced from the body of a definition."""
        return self._edges[name]

    def is_recursive(self, name: str) -> bool:
        """Whether a definition can reach itself through refs."""
        return name in self._components

    def in_cycle_with(self, name: str, other: str) -> bool:
        """Whether two definitions lie on a common ref cycle."""
        component = self._components.get(name)
        return component is not None and component == self._components.get(other)

    def resolve_alias(self, name: str) -> SchemaNode | None:
        """
        Follow a chain of definitions that are bare refs.

        Returns:
            The first non-ref definition body, or None when the chain loops
        """
        seen = set()
        node = self.schema.definition(name)
        while isinstance(node, RefNode):
            if node.ref in seen:
                return None
            seen.add(node.ref)
            node = self.schema.definition(node.ref)
        return node

    def is_nullable(self, name: str) -> bool:
        """Whether a definition, or any definition its alias chain passes through, is nullable."""
        seen = set()
        node = self.schema.definition(name)
        while not node.nullable and isinstance(node, RefNode) and node.ref not in seen:
            seen.add(node.ref)
            node = self.schema.definition(node.ref)
        return node.nullable

    def _find_cycles(self) -> dict[str, int]:
        """
        Tarjan's strongly connected components, iterative so deep schemas cannot overflow the stack.

        Returns:
            Component number of every definition that is on a cycle
        """
        index: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: dict[str, int] = {}
        counter = 0

        for start in self._edges:
            if start in index:
                continue
            work = [(start, 0)]
            while work:
                name, child_index = work.pop()
                if child_index == 0:
                    index[name] = lowlink[name] = counter
                    counter += 1
                    stack.append(name)
                    on_stack.add(name)

                targets = self._edges[name]
                if child_index < len(targets):
                    work.append((name, child_index + 1))
                    target = targets[child_index]
                    if target not in index:
                        work.append((target, 0))
                    elif target in on_stack:
                        lowlink[name] = min(lowlink[name], index[target])
                    continue

                # All successors done: propagate to the caller and pop a component
                if work:
                    caller = work[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[name])
                if lowlink[name] == index[name]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == name:
                            break
                    if len(component) > 1 or name in self._edges[name]:
                        for member in component:
                            components[member] = index[name]

        return components
