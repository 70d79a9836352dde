"""Tests for allOf flattening."""

import pytest

from schemagen.definitions import Definition, definitions_to_dict
from schemagen.exceptions import CyclicCompositionError, UnknownTypeError
from schemagen.flatten import flatten_all_of, merge_into, recursive_flatten


def _composed_graph():
    return {
        "Base": Definition(
            type="object",
            description="Base record",
            properties={"id": Definition(type="string")},
            required=["id"],
        ),
        "Employee": Definition(
            all_of=[
                Definition.reference("Base"),
                Definition(
                    type="object",
                    description="An employee",
                    properties={"salary": Definition(type="number")},
                    required=["salary"],
                ),
            ]
        ),
    }


class TestFlattenAllOf:
    """Test flattening of allOf compositions."""

    def test_members_are_merged(self):
        flattened = flatten_all_of(_composed_graph())
        employee = flattened["Employee"]

        assert employee.all_of is None
        assert employee.type == "object"
        assert set(employee.properties) == {"id", "salary"}
        assert employee.required == ["id", "salary"]
        assert employee.description == "An employee"

    def test_definitions_without_all_of_are_unchanged(self):
        graph = _composed_graph()

        flattened = flatten_all_of(graph)

        assert flattened["Base"].to_dict() == graph["Base"].to_dict()

    def test_input_is_not_mutated(self):
        graph = _composed_graph()
        before = definitions_to_dict(graph)

        flatten_all_of(graph)

        assert definitions_to_dict(graph) == before

    def test_flatten_is_idempotent(self):
        once = flatten_all_of(_composed_graph())
        twice = flatten_all_of(once)

        assert definitions_to_dict(twice) == definitions_to_dict(once)

    def test_later_member_wins(self):
        """Later members overwrite properties and the description."""
        graph = {
            "X": Definition(type="object", properties={"p": Definition(type="string")}),
            "Y": Definition(
                type="object",
                description="Y-desc",
                properties={"p": Definition(type="number")},
            ),
            "Z": Definition(all_of=[Definition.reference("X"), Definition.reference("Y")]),
        }

        z = flatten_all_of(graph)["Z"]

        assert z.properties["p"].type == "number"
        assert z.description == "Y-desc"

    def test_last_member_without_description_clears_it(self):
        graph = {
            "X": Definition(type="object", description="X-desc"),
            "Y": Definition(type="object"),
            "Z": Definition(all_of=[Definition.reference("X"), Definition.reference("Y")]),
        }

        assert flatten_all_of(graph)["Z"].description is None

    def test_nested_composition(self):
        graph = _composed_graph()
        graph["Manager"] = Definition(
            all_of=[
                Definition.reference("Employee"),
                Definition(properties={"reports": Definition(type="integer")}),
            ]
        )

        manager = flatten_all_of(graph)["Manager"]

        assert set(manager.properties) == {"id", "salary", "reports"}
        assert manager.required == ["id", "salary"]

    def test_diamond_is_not_a_cycle(self):
        """The same member reached twice on different branches is legal."""
        graph = {
            "Root": Definition(type="object", properties={"id": Definition(type="string")}),
            "Left": Definition(all_of=[Definition.reference("Root")]),
            "Right": Definition(all_of=[Definition.reference("Root")]),
            "Both": Definition(
                all_of=[Definition.reference("Left"), Definition.reference("Right")]
            ),
        }

        both = flatten_all_of(graph)["Both"]

        assert set(both.properties) == {"id"}

    def test_member_alias_is_followed(self):
        graph = _composed_graph()
        graph["lib.Base"] = Definition.reference("Base")
        graph["Employee"].all_of[0] = Definition.reference("lib.Base")

        employee = flatten_all_of(graph)["Employee"]

        assert set(employee.properties) == {"id", "salary"}
        assert employee.required == ["id", "salary"]

    def test_alias_cycle_raises(self):
        graph = {
            "A": Definition.reference("B"),
            "B": Definition.reference("A"),
            "Z": Definition(all_of=[Definition.reference("A")]),
        }

        with pytest.raises(CyclicCompositionError) as exc_info:
            flatten_all_of(graph)

        assert exc_info.value.cycle == ["A", "B", "A"]

    def test_missing_member_raises(self):
        graph = {"Z": Definition(all_of=[Definition.reference("Missing")])}

        with pytest.raises(UnknownTypeError) as exc_info:
            flatten_all_of(graph)

        assert exc_info.value.type_name == "Missing"
        assert exc_info.value.stage == "flatten"
        assert exc_info.value.referenced_by == "Z"


class TestCompositionCycles:
    """Test detection of cyclic allOf chains."""

    def _cyclic_graph(self):
        return {
            "A": Definition(all_of=[Definition.reference("B")]),
            "B": Definition(all_of=[Definition.reference("A")]),
        }

    def test_cycle_raises(self):
        with pytest.raises(CyclicCompositionError) as exc_info:
            flatten_all_of(self._cyclic_graph())

        assert exc_info.value.type_name in ("A", "B")
        assert "Cycle detected in definitions" in str(exc_info.value)

    @pytest.mark.parametrize("start", ["A", "B"])
    def test_cycle_detected_from_either_side(self, start):
        graph = self._cyclic_graph()

        with pytest.raises(CyclicCompositionError) as exc_info:
            recursive_flatten(graph, graph[start], start)

        assert exc_info.value.type_name == start
        assert exc_info.value.cycle[0] == start
        assert exc_info.value.cycle[-1] == start

    def test_self_composition(self):
        graph = {"A": Definition(all_of=[Definition.reference("A")])}

        with pytest.raises(CyclicCompositionError) as exc_info:
            flatten_all_of(graph)

        assert exc_info.value.cycle == ["A", "A"]


class TestMergeInto:
    """Test folding a member into an aggregate."""

    def test_type_is_only_filled(self):
        aggregate = Definition(type="object")

        merge_into(aggregate, Definition(type="string"))

        assert aggregate.type == "object"

    def test_required_is_deduplicated(self):
        aggregate = Definition(required=["a"])

        merge_into(aggregate, Definition(required=["a", "b"]))

        assert aggregate.required == ["a", "b"]
