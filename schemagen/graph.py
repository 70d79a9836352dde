"""Reference graph builder and analyzer."""

from collections import defaultdict, deque
from typing import Dict, List, Optional, Set, Tuple

from schemagen.definitions import Definitions
from schemagen.prune import referenced_names


class ReferenceGraph:
    """Builds and analyzes the reference graph of a set of definitions."""

    def __init__(self, definitions: Definitions):
        """Initialize reference graph.

        Args:
            definitions: Definition graph keyed by type name
        """
        self.definitions = definitions
        # Edge from a type to every type it references
        self.adjacency_list: Dict[str, List[str]] = defaultdict(list)
        self.reverse_adjacency_list: Dict[str, List[str]] = defaultdict(list)

        self._build_graph()

    def _build_graph(self) -> None:
        for name, definition in self.definitions.items():
            for target in dict.fromkeys(referenced_names(definition)):
                self.adjacency_list[name].append(target)
                self.reverse_adjacency_list[target].append(name)

    def missing_references(self) -> List[Tuple[str, str]]:
        """Return (referencing type, missing type) pairs."""
        missing = []
        for name in sorted(self.definitions):
            for target in self.adjacency_list[name]:
                if target not in self.definitions:
                    missing.append((name, target))
        return missing

    def find_cycle(self) -> Optional[List[str]]:
        """Find a reference cycle.

        Recursive types are legal in referenced output; a cycle only matters
        when the definitions are embedded.

        Returns:
            Cycle path (first name repeated at the end) if found, None otherwise
        """
        visited = set()
        rec_stack = set()

        def visit(node: str, path: List[str]) -> Optional[List[str]]:
            if node in rec_stack:
                cycle_start = path.index(node)
                return path[cycle_start:] + [node]

            if node in visited or node not in self.definitions:
                return None

            visited.add(node)
            rec_stack.add(node)
            path.append(node)

            for target in self.adjacency_list[node]:
                cycle = visit(target, path[:])
                if cycle:
                    return cycle

            rec_stack.remove(node)
            return None

        for name in sorted(self.definitions):
            if name not in visited:
                cycle = visit(name, [])
                if cycle:
                    return cycle
        return None

    def get_dependencies(self, name: str) -> Set[str]:
        """Get all types (direct and transitive) referenced by a type.

        Raises:
            ValueError: If the type is not in the graph
        """
        if name not in self.definitions:
            raise ValueError(f"Type '{name}' not found")

        dependencies = set()
        queue = deque([name])

        while queue:
            current = queue.popleft()
            for target in self.adjacency_list[current]:
                if target not in dependencies:
                    dependencies.add(target)
                    queue.append(target)

        return dependencies

    def get_dependents(self, name: str) -> Set[str]:
        """Get all types (direct and transitive) that reference a type.

        Raises:
            ValueError: If the type is not in the graph
        """
        if name not in self.definitions:
            raise ValueError(f"Type '{name}' not found")

        dependents = set()
        queue = deque([name])

        while queue:
            current = queue.popleft()
            for source in self.reverse_adjacency_list[current]:
                if source not in dependents:
                    dependents.add(source)
                    queue.append(source)

        return dependents

    def focus(self, name: str) -> "ReferenceGraph":
        """Subgraph of a type, the types it references and the types referencing it.

        Raises:
            ValueError: If the type is not in the graph
        """
        related = {name} | self.get_dependencies(name) | self.get_dependents(name)
        return ReferenceGraph(
            {key: definition for key, definition in self.definitions.items() if key in related}
        )

    def visualize(self) -> str:
        """Generate a text visualization of the graph."""
        lines = ["Reference Graph:", ""]

        for name in sorted(self.definitions):
            targets = self.adjacency_list[name]
            refs = f" (references: {', '.join(sorted(targets))})" if targets else ""
            lines.append(f"  - {name}{refs}")

        missing = self.missing_references()
        if missing:
            lines.append("")
            lines.append("Missing:")
            for source, target in missing:
                lines.append(f"  - {target} (referenced by {source})")

        cycle = self.find_cycle()
        if cycle:
            lines.append("")
            lines.append("Cycle: " + " → ".join(cycle))

        return "\n".join(lines)
