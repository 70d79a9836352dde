"""Validate command implementation."""

from schemagen.config import GeneratorConfig


def validate_command(args):
    """Validate config file."""
    try:
        config = GeneratorConfig.from_yaml(args.config, env=getattr(args, "env", None))
        print(f"Config is valid ({config.package}: {', '.join(config.types)})")
        return 0
    except Exception as e:
        print(f"Config validation failed: {e}")
        return 1
