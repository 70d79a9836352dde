"""Serialization of generated schemas."""

import json
from pathlib import Path
from typing import Union

import yaml

from schemagen.config import OutputFormat
from schemagen.definitions import Definition
from schemagen.utils.logging import logger


def dump_schema(schema: Definition, output_format: Union[OutputFormat, str] = OutputFormat.JSON) -> str:
    """Encode a schema as JSON or YAML text."""
    output_format = OutputFormat(output_format.lower())
    data = schema.to_dict()

    if output_format == OutputFormat.YAML:
        return yaml.safe_dump(data, sort_keys=True, default_flow_style=False, allow_unicode=True)
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_schema(
    schema: Definition,
    path: Union[str, Path],
    output_format: Union[OutputFormat, str] = OutputFormat.JSON,
) -> Path:
    """Write a schema to ``path``, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_schema(schema, output_format), encoding="utf-8")
    logger.info("Schema written", path=str(path), format=OutputFormat(output_format.lower()).value)
    return path
