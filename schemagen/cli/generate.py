"""
Generate and Check Commands
===========================

Run the schema pipeline from command-line flags or a YAML config.
"""

from pydantic import ValidationError

from schemagen.config import GeneratorConfig
from schemagen.exceptions import ConfigValidationError
from schemagen.generator import SchemaGenerator
from schemagen.utils.logging import configure_logging


def add_pipeline_arguments(parser):
    """Add the flags shared by the commands that run the pipeline."""
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--env", help="Environment override from the config file")
    parser.add_argument("--package", help="Package (dotted name or directory) holding the types")
    parser.add_argument("--types", help="Comma-separated list of entry types")
    parser.add_argument(
        "--search-path",
        action="append",
        dest="search_paths",
        help="Directory searched for packages (repeatable)",
    )
    parser.add_argument(
        "--auto-install", action="store_true", help="Install missing packages with pip"
    )
    parser.add_argument(
        "--no-strict",
        action="store_true",
        help="Skip the type check of the pruned definitions",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")


def load_config(args) -> GeneratorConfig:
    """Build the run configuration, command-line flags overriding the file.

    Raises:
        ConfigValidationError: If the resulting configuration is invalid
    """
    data = {}
    if getattr(args, "config", None):
        data = GeneratorConfig.from_yaml(args.config, env=getattr(args, "env", None)).model_dump()

    overrides = {
        "package": getattr(args, "package", None),
        "types": getattr(args, "types", None),
        "output_path": getattr(args, "output_file", None),
        "output_format": getattr(args, "output_format", None),
    }
    data.update({key: value for key, value in overrides.items() if value})

    if getattr(args, "referenced", False):
        data["referenced"] = True
    if getattr(args, "no_strict", False):
        data["strict"] = False

    resolver = dict(data.get("resolver") or {})
    if getattr(args, "search_paths", None):
        resolver["search_paths"] = list(resolver.get("search_paths", [])) + args.search_paths
    if getattr(args, "auto_install", False):
        resolver["auto_install"] = True
    data["resolver"] = resolver

    try:
        config = GeneratorConfig(**data)
    except ValidationError as e:
        raise ConfigValidationError(str(e), file=getattr(args, "config", None)) from e

    # --log-level on the command line wins over the file
    if getattr(args, "config", None) and not getattr(args, "log_level", None):
        configure_logging(
            structured=config.structured_logs or getattr(args, "json_logs", False),
            level=config.log_level.value,
        )
    return config


def generate_command(args):
    """
    Handle generate subcommand.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    try:
        config = load_config(args)
        generator = SchemaGenerator(config)
        text = generator.run()
        if not config.output_path:
            print(text, end="")
        return 0
    except Exception as e:
        print(f"❌ Error generating schema: {e}")
        if getattr(args, "verbose", False):
            import traceback

            traceback.print_exc()
        return 1


def check_command(args):
    """Handle check subcommand: resolve, prune and type-check the entry types."""
    try:
        config = load_config(args)
        config.strict = True
        generator = SchemaGenerator(config)
        definitions = generator.build_definitions()
    except Exception as e:
        print(f"❌ Type checking failed: {e}")
        if getattr(args, "verbose", False):
            import traceback

            traceback.print_exc()
        return 1

    if generator.type_check_passed:
        print(f"✓ Type checking PASSED ({len(definitions)} definitions)")
        return 0
    print(f"❌ Type checking FAILED ({len(definitions)} definitions)")
    return 1
