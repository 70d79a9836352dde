"""
Graph CLI Command
=================

Visualizes the reference graph of the definitions reachable from the entry types.
"""

from schemagen.cli.generate import load_config
from schemagen.generator import SchemaGenerator
from schemagen.graph import ReferenceGraph


def graph_command(args):
    """
    Handle graph subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    try:
        config = load_config(args)
        config.strict = False
        definitions = SchemaGenerator(config).build_definitions()
        graph = ReferenceGraph(definitions)
        if getattr(args, "focus", None):
            graph = graph.focus(args.focus)

        if args.format == "ascii":
            print(graph.visualize())
        elif args.format == "dot":
            print(_generate_dot(graph, config.package, config.types))
        elif args.format == "mermaid":
            print(_generate_mermaid(graph, config.types))

        return 0

    except Exception as e:
        print(f"❌ Error generating graph: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


def _node_id(name: str) -> str:
    return name.replace(".", "_").replace("/", "_").replace("-", "_")


def _generate_dot(graph: ReferenceGraph, package_name: str, entry_types) -> str:
    """Generate DOT (Graphviz) representation."""
    lines = []
    lines.append(f'digraph "{package_name}" {{')
    lines.append("    rankdir=LR;")
    lines.append('    node [shape=box, style=rounded, fontname="Helvetica"];')
    lines.append('    edge [fontname="Helvetica"];')
    lines.append("")

    for name in sorted(graph.definitions):
        color = "lightblue" if name in entry_types else "lightyellow"
        lines.append(f'    "{name}" [style="filled", fillcolor="{color}"];')

        for target in graph.adjacency_list[name]:
            style = "" if target in graph.definitions else " [style=dashed, color=red]"
            lines.append(f'    "{name}" -> "{target}"{style};')

    lines.append("}")
    return "\n".join(lines)


def _generate_mermaid(graph: ReferenceGraph, entry_types) -> str:
    """Generate Mermaid diagram."""
    lines = []
    lines.append("graph LR")

    for name in sorted(graph.definitions):
        node_id = _node_id(name)
        if name in entry_types:
            lines.append(f"    {node_id}(({name}))")
        else:
            lines.append(f"    {node_id}[{name}]")

        for target in graph.adjacency_list[name]:
            lines.append(f"    {node_id} --> {_node_id(target)}")

    return "\n".join(lines)
