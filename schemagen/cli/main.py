"""Main CLI entry point."""

import sys
import argparse
from schemagen.cli.generate import add_pipeline_arguments, check_command, generate_command
from schemagen.cli.graph import graph_command
from schemagen.cli.validate import validate_command
from schemagen.utils.logging import configure_logging


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="JSON Schema generator for Python record declarations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  schemagen generate --package myapp.models --types Person
  schemagen generate --config schemagen.yaml --output-file schema.yaml
  schemagen check --package ./models --types Person,Order
  schemagen graph --package myapp.models --types Person --format mermaid
  schemagen graph --package myapp.models --types Person --focus Address
  schemagen validate schemagen.yaml
        """,
    )

    # Global arguments
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging verbosity (default: WARNING, or log_level from --config)",
    )
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit logs as JSON lines"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # schemagen generate
    generate_parser = subparsers.add_parser("generate", help="Generate the schema")
    add_pipeline_arguments(generate_parser)
    generate_parser.add_argument(
        "--output-file", help="Write the schema to this file instead of stdout"
    )
    generate_parser.add_argument(
        "--output-format",
        choices=["json", "yaml"],
        help="Output format (default: json)",
    )
    generate_parser.add_argument(
        "--referenced",
        action="store_true",
        help="Keep $ref links instead of embedding referenced definitions",
    )

    # schemagen check
    check_parser = subparsers.add_parser("check", help="Type-check the entry types")
    add_pipeline_arguments(check_parser)

    # schemagen graph
    graph_parser = subparsers.add_parser("graph", help="Visualize the reference graph")
    add_pipeline_arguments(graph_parser)
    graph_parser.add_argument(
        "--format",
        choices=["ascii", "dot", "mermaid"],
        default="ascii",
        help="Output format (default: ascii)",
    )
    graph_parser.add_argument(
        "--focus",
        metavar="TYPE",
        help="Only show this type, the types it references and the types referencing it",
    )

    # schemagen validate
    validate_parser = subparsers.add_parser("validate", help="Validate config")
    validate_parser.add_argument("config", help="Path to YAML config file")
    validate_parser.add_argument("--env", help="Environment override from the config file")

    args = parser.parse_args()

    configure_logging(structured=args.json_logs, level=args.log_level or "WARNING")

    if args.command == "generate":
        return generate_command(args)
    elif args.command == "check":
        return check_command(args)
    elif args.command == "graph":
        return graph_command(args)
    elif args.command == "validate":
        return validate_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
