"""End-to-end tests of the schema generation pipeline."""

import json

import pytest

from schemagen.config import GeneratorConfig
from schemagen.exceptions import (
    CyclicReferenceError,
    PackageResolutionError,
    UnknownTypeError,
    UnresolvableReferenceError,
)
from schemagen.generator import SchemaGenerator, build_root_schema
from schemagen.package import Package
from schemagen.prune import referenced_names

PERSON_SOURCE = '''
from typing import List, Optional

from pydantic import BaseModel

from address import Address
from geo.location import Location


class Person(BaseModel):
    """A person."""

    name: str
    address: Address
    home: Optional[Location] = None


class Employee(Person):
    salary: float
'''

ADDRESS_SOURCE = '''
from pydantic import BaseModel


class Address(BaseModel):
    """A postal address."""

    street: str
    city: str
'''

LOCATION_SOURCE = """
from pydantic import BaseModel


class Location(BaseModel):
    lat: float
    lon: float


class Unused(BaseModel):
    x: int
"""


@pytest.fixture
def project(write_package, tmp_path):
    """Root package 'models' referencing the vendored 'geo' package."""
    models = write_package("models", {"person.py": PERSON_SOURCE, "address.py": ADDRESS_SOURCE})
    write_package("vendor/geo", {"__init__.py": "", "location.py": LOCATION_SOURCE})
    return models, tmp_path / "vendor"


def _config(project, **kwargs):
    models, vendor = project
    data = {
        "package": str(models),
        "types": ["Employee"],
        "resolver": {"search_paths": [str(vendor)]},
    }
    data.update(kwargs)
    return GeneratorConfig(**data)


class TestBuildDefinitions:
    """Test resolution, flattening and pruning."""

    def test_external_package_is_resolved(self, project):
        generator = SchemaGenerator(_config(project))

        definitions = generator.build_definitions()

        assert set(definitions) == {"Employee", "Address", "geo.location.Location"}
        assert generator.type_check_passed is True

    def test_inheritance_is_flattened(self, project):
        definitions = SchemaGenerator(_config(project)).build_definitions()
        employee = definitions["Employee"]

        assert employee.all_of is None
        assert set(employee.properties) == {"name", "address", "home", "salary"}
        assert employee.required == ["name", "address", "salary"]
        assert employee.properties["home"].to_dict() == {
            "anyOf": [{"$ref": "#/definitions/geo.location.Location"}, {"type": "null"}]
        }

    def test_package_type_pair_is_resolved_once(self, project):
        calls = []

        def factory(name, **kwargs):
            calls.append(name)
            return Package(name, **kwargs)

        generator = SchemaGenerator(_config(project), package_factory=factory)
        generator.build_definitions()

        assert calls == [str(project[0]), "geo.location"]
        assert generator.parse_types_in_package("geo.location", ["Location"]) == {}
        assert len(calls) == 2

    def test_unresolvable_package_raises(self, project):
        config = _config(project, resolver={"search_paths": []})

        with pytest.raises(PackageResolutionError) as exc_info:
            SchemaGenerator(config).build_definitions()

        assert exc_info.value.package == "geo.location"

    def test_missing_local_type_fails_type_check(self, write_package):
        models = write_package(
            "ghosts",
            {"person.py": 'class Person:\n    friend: "Ghost"\n'},
        )
        config = GeneratorConfig(package=str(models), types=["Person"])

        with pytest.raises(UnknownTypeError) as exc_info:
            SchemaGenerator(config).build_definitions()

        assert exc_info.value.type_name == "Ghost"

    def test_declared_but_unreachable_type_fails_type_check(self, write_package):
        models = write_package(
            "people",
            {
                "person.py": """
                from pydantic import BaseModel


                class Address(BaseModel):
                    street: str


                class Person(BaseModel):
                    address: Address


                class Orphan(BaseModel):
                    x: int
                """
            },
        )
        generator = SchemaGenerator(GeneratorConfig(package=str(models), types=["Person"]))

        definitions = generator.build_definitions()

        assert set(definitions) == {"Person", "Address"}
        assert generator.declared_types == {"Person", "Address", "Orphan"}
        assert generator.type_check_passed is False

    def test_non_strict_run_skips_type_check(self, project):
        generator = SchemaGenerator(_config(project, strict=False))

        generator.build_definitions()

        assert generator.type_check_passed is None


class TestReexports:
    """Test types re-exported by a package __init__ from a nested subpackage."""

    @pytest.fixture
    def blog(self, write_package, tmp_path):
        posts = write_package(
            "blog",
            {
                "post.py": """
                from pydantic import BaseModel

                from lib import Tag


                class Post(BaseModel):
                    title: str
                    tag: Tag
                """
            },
        )
        write_package(
            "vendor/lib",
            {
                "__init__.py": "from .sub.models import Tag\n",
                "sub/__init__.py": "",
                "sub/models.py": """
                from pydantic import BaseModel


                class Tag(BaseModel):
                    label: str
                """,
            },
        )
        return posts, tmp_path / "vendor"

    def test_alias_resolves_to_declaring_module(self, blog):
        generator = SchemaGenerator(_config(blog, types=["Post"], referenced=True))

        schema = generator.generate()

        assert set(schema.definitions) == {"Post", "lib.Tag", "lib.sub.models.Tag"}
        assert schema.definitions["Post"].properties["tag"].ref == "#/definitions/lib.Tag"
        assert schema.definitions["lib.Tag"].ref == "#/definitions/lib.sub.models.Tag"
        assert generator.type_check_passed is True

    def test_alias_is_embedded(self, blog):
        schema = SchemaGenerator(_config(blog, types=["Post"])).generate()

        tag = schema.definitions["Post"].properties["tag"]
        assert tag.ref is None
        assert tag.type == "object"
        assert tag.properties["label"].type == "string"
        assert tag.required == ["label"]


class TestGenerate:
    """Test the root schema in both output modes."""

    def test_embedded_schema_is_self_contained(self, project):
        schema = SchemaGenerator(_config(project)).generate()

        assert schema.type == "object"
        assert [member.ref for member in schema.any_of] == ["#/definitions/Employee"]
        assert list(schema.definitions) == ["Employee"]

        employee = schema.definitions["Employee"]
        assert referenced_names(employee) == []
        address = employee.properties["address"]
        assert address.type == "object"
        assert address.properties["street"].type == "string"
        assert address.required == ["street", "city"]
        home, null = employee.properties["home"].any_of
        assert set(home.properties) == {"lat", "lon"}
        assert null.type == "null"

    def test_referenced_schema_keeps_links(self, project):
        schema = SchemaGenerator(_config(project, referenced=True)).generate()

        assert set(schema.definitions) == {"Employee", "Address", "geo.location.Location"}
        assert schema.definitions["Employee"].properties["address"].ref == "#/definitions/Address"

    def test_recursive_type_needs_referenced_output(self, write_package):
        models = write_package(
            "tree",
            {
                "node.py": """
                from typing import List


                class Node:
                    value: int
                    children: List["Node"]
                """
            },
        )

        referenced = GeneratorConfig(package=str(models), types=["Node"], referenced=True)
        schema = SchemaGenerator(referenced).generate()
        assert schema.definitions["Node"].properties["children"].items.ref == "#/definitions/Node"

        embedded = GeneratorConfig(package=str(models), types=["Node"])
        with pytest.raises(CyclicReferenceError):
            SchemaGenerator(embedded).generate()

    def test_non_strict_dangling_reference_fails_embedding(self, write_package):
        models = write_package(
            "ghosts",
            {"person.py": 'class Person:\n    friend: "Ghost"\n'},
        )
        config = GeneratorConfig(package=str(models), types=["Person"], strict=False)

        with pytest.raises(UnresolvableReferenceError):
            SchemaGenerator(config).generate()

    def test_run_writes_output_file(self, project, tmp_path):
        output = tmp_path / "out" / "schema.json"
        generator = SchemaGenerator(_config(project, output_path=str(output)))

        text = generator.run()

        assert output.read_text(encoding="utf-8") == text
        data = json.loads(text)
        assert data["anyOf"] == [{"$ref": "#/definitions/Employee"}]
        assert "$ref" not in json.dumps(data["definitions"])


class TestBuildRootSchema:
    """Test the root wrapper."""

    def test_root_schema_lists_entry_types(self):
        schema = build_root_schema({}, ["A", "B"])

        assert schema.to_dict() == {
            "type": "object",
            "anyOf": [{"$ref": "#/definitions/A"}, {"$ref": "#/definitions/B"}],
            "definitions": {},
        }
