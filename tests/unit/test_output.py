"""Tests for schema serialization."""

import json

import yaml

from schemagen.config import OutputFormat
from schemagen.definitions import Definition
from schemagen.output import dump_schema, write_schema


def _schema():
    return Definition(
        type="object",
        any_of=[Definition.reference("Person")],
        definitions={
            "Person": Definition(
                type="object",
                description="Zoë's record",
                properties={"name": Definition(type="string")},
            )
        },
    )


class TestDumpSchema:
    """Test JSON and YAML encoding."""

    def test_json(self):
        text = dump_schema(_schema(), OutputFormat.JSON)

        assert text.endswith("}\n")
        data = json.loads(text)
        assert data["anyOf"] == [{"$ref": "#/definitions/Person"}]
        assert "Zoë" in text

    def test_yaml(self):
        text = dump_schema(_schema(), "YAML")

        data = yaml.safe_load(text)
        assert data["definitions"]["Person"]["properties"]["name"] == {"type": "string"}
        assert "$ref: '#/definitions/Person'" in text


class TestWriteSchema:
    """Test writing schemas to disk."""

    def test_parent_directories_are_created(self, tmp_path):
        path = write_schema(_schema(), tmp_path / "build" / "schema.json")

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8"))["type"] == "object"
