"""
Unit tests for archhub.core.changes.validator.

Tests the structural invariant checks that run after every apply.
"""

import copy

from archhub.core.changes import ConflictType, validate_spec_structure


def _entity(entity_id, name, *targets):
    return {
        "id": entity_id,
        "name": name,
        "fields": [{"name": "id", "type": "String"}],
        "relations": [{"target": t, "type": "one-to-many"} for t in targets],
    }


class TestEntityChecks:
    """Tests for duplicate names and field definitions."""

    def test_sound_spec_has_no_conflicts(self, base_spec):
        assert validate_spec_structure(base_spec) == []

    def test_duplicate_entity_names_reported_per_repeat(self):
        spec = {"entities": [_entity("a", "User"), _entity("b", "User"), _entity("c", "User")]}
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == [
            "Duplicate entity name detected: User",
            "Duplicate entity name detected: User",
        ]
        assert all(c.type == ConflictType.NAMING for c in conflicts)
        assert conflicts[0].details == {"entityName": "User"}

    def test_names_of_different_types_do_not_collide(self):
        spec = {"entities": [_entity("a", 1), _entity("b", "1")]}
        assert validate_spec_structure(spec) == []

    def test_missing_names_collide(self):
        spec = {"entities": [{"id": "a", "fields": []}, {"id": "b", "fields": []}]}
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == ["Duplicate entity name detected: None"]

    def test_field_without_type(self):
        spec = {"entities": [{"id": "a", "name": "User", "fields": [{"name": "email"}]}]}
        conflicts = validate_spec_structure(spec)
        assert len(conflicts) == 1
        assert conflicts[0].type == ConflictType.MISSING_FIELD
        assert conflicts[0].message == "Entity User has an invalid field definition"
        assert conflicts[0].details == {"entityName": "User", "field": {"name": "email"}}

    def test_non_object_field_is_invalid(self):
        spec = {"entities": [{"id": "a", "name": "User", "fields": ["email"]}]}
        conflicts = validate_spec_structure(spec)
        assert [c.details["field"] for c in conflicts] == ["email"]

    def test_missing_fields_list_is_treated_as_empty(self):
        spec = {"entities": [{"id": "a", "name": "User"}, {"id": "b", "name": "Tag", "fields": None}]}
        assert validate_spec_structure(spec) == []


class TestEndpointChecks:
    """Tests for duplicate endpoint detection."""

    def test_duplicate_method_and_path(self):
        spec = {
            "endpoints": [
                {"id": "1", "method": "POST", "path": "/widgets"},
                {"id": "2", "method": "POST", "path": "/widgets"},
                {"id": "3", "method": "GET", "path": "/widgets"},
            ]
        }
        conflicts = validate_spec_structure(spec)
        assert len(conflicts) == 1
        assert conflicts[0].type == ConflictType.NAMING
        assert conflicts[0].message == "Duplicate endpoint detected: POST /widgets"
        assert conflicts[0].details == {"method": "POST", "path": "/widgets"}


class TestCycleDetection:
    """Tests for circular relation detection."""

    def test_three_entity_cycle(self):
        spec = {"entities": [_entity("a", "A", "B"), _entity("b", "B", "C"), _entity("c", "C", "A")]}
        conflicts = validate_spec_structure(spec)
        assert [c.type for c in conflicts] == [ConflictType.CIRCULAR_RELATION]
        assert conflicts[0].message == "Circular relation detected involving A"
        assert conflicts[0].details == {"entityId": "a", "entityName": "A"}

    def test_chain_without_back_edge(self):
        spec = {"entities": [_entity("a", "A", "B"), _entity("b", "B", "C"), _entity("c", "C")]}
        assert validate_spec_structure(spec) == []

    def test_self_relation(self):
        spec = {"entities": [_entity("a", "Node", "Node")]}
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == ["Circular relation detected involving Node"]

    def test_targets_resolve_by_id(self):
        spec = {"entities": [_entity("ent-a", "A", "ent-b"), _entity("ent-b", "B", "ent-a")]}
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == ["Circular relation detected involving A"]

    def test_unknown_targets_have_no_edge(self):
        spec = {"entities": [_entity("a", "A", "Ghost"), _entity("b", "B", "A")]}
        assert validate_spec_structure(spec) == []

    def test_abandoned_path_is_not_reported_again(self):
        """Nodes on a path that hit a back edge are finished for later roots."""
        spec = {"entities": [_entity("a", "A", "B"), _entity("b", "B", "A"), _entity("c", "C", "A")]}
        conflicts = validate_spec_structure(spec)
        assert len(conflicts) == 1

    def test_disjoint_cycles_each_reported(self):
        spec = {
            "entities": [
                _entity("a", "A", "B"),
                _entity("b", "B", "A"),
                _entity("c", "C", "D"),
                _entity("d", "D", "C"),
            ]
        }
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == [
            "Circular relation detected involving A",
            "Circular relation detected involving C",
        ]

    def test_ambiguous_target_resolves_to_earliest_entity(self):
        """A target matching one entity's name and another's id picks the earlier one."""
        spec = {
            "entities": [
                {"id": "x", "name": "b", "relations": [{"target": "Y", "type": "one-to-one"}]},
                {"id": "b", "name": "Y", "relations": [{"target": "b", "type": "one-to-one"}]},
            ]
        }
        conflicts = validate_spec_structure(spec)
        assert [c.message for c in conflicts] == ["Circular relation detected involving b"]

    def test_long_chain_does_not_recurse(self):
        entities = [_entity(f"e{i}", f"E{i}", f"E{i + 1}") for i in range(3000)]
        assert validate_spec_structure({"entities": entities}) == []


class TestValidatorContract:
    """General guarantees of the structural validator."""

    def test_idempotent(self):
        spec = {
            "entities": [_entity("a", "A", "B"), _entity("b", "B", "A"), _entity("c", "A")],
            "endpoints": [{"method": "GET", "path": "/a"}, {"method": "GET", "path": "/a"}],
        }
        first = [c.to_dict() for c in validate_spec_structure(spec)]
        second = [c.to_dict() for c in validate_spec_structure(spec)]
        assert first == second
        assert len(first) == 3

    def test_does_not_mutate(self, base_spec):
        base_spec["entities"][0]["fields"].append({"name": ""})
        snapshot = copy.deepcopy(base_spec)
        validate_spec_structure(base_spec)
        assert base_spec == snapshot

    def test_non_mapping_spec(self):
        assert validate_spec_structure(None) == []
        assert validate_spec_structure(["entities"]) == []

    def test_non_object_items_are_skipped(self):
        spec = {"entities": ["User", _entity("a", "A")], "endpoints": "GET /"}
        assert validate_spec_structure(spec) == []
