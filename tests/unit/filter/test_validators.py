"""Tests for filter validation."""

import pytest

from dbview.core.modules.filter.models import FilterCondition, FilterOperator
from dbview.core.modules.filter.validators import validate_filter_condition, validate_filter_value
from dbview.core.modules.property.models import Property, PropertyType, Schema
from dbview.errors import ValidationError


@pytest.fixture
def schema(properties):
    return Schema(properties)


def check(schema, property_id, operator, value=None):
    return validate_filter_condition(FilterCondition(property=property_id, condition=operator, value=value), schema)


class TestValidateFilterCondition:
    def test_unknown_property(self, schema):
        with pytest.raises(ValidationError, match="'ghost' referenced in filter condition does not exist"):
            check(schema, "ghost", "is", "x")

    def test_operator_not_valid_for_type(self, schema):
        with pytest.raises(ValidationError, match="not valid for property 'status'"):
            check(schema, "status", "greater_than", 1)

    def test_unknown_operator(self, schema):
        with pytest.raises(ValidationError, match="'sounds_like' is not valid"):
            check(schema, "title", "sounds_like", "x")

    def test_type_without_operators(self):
        """Test that relation properties cannot be filtered."""
        schema = Schema([Property(id="rel", name="Related", type=PropertyType.RELATION)])
        with pytest.raises(ValidationError, match="cannot be filtered"):
            check(schema, "rel", "equals", "x")

    def test_returns_normalized_copy(self, schema):
        """Test that the stored condition carries the normalized value."""
        original = FilterCondition(property="status", condition="is", value={"id": "done", "label": "Done"})
        validated = validate_filter_condition(original, schema)
        assert validated.value == "done"
        assert validated.condition == FilterOperator.IS
        assert original.value == {"id": "done", "label": "Done"}


class TestValidateFilterValue:
    """Tests for value rules per property type."""

    def test_valueless_operator_drops_value(self, schema):
        assert check(schema, "due", "is_today", "ignored").value is None
        assert check(schema, "done", "is_checked", True).value is None

    def test_missing_value(self, schema):
        with pytest.raises(ValidationError, match="requires a value"):
            check(schema, "title", "contains")

    def test_number_strings(self, schema):
        assert check(schema, "estimate", "greater_than", "5").value == 5
        with pytest.raises(ValidationError, match="must be a number"):
            check(schema, "estimate", "greater_than", "five")

    def test_text_must_be_string(self, schema):
        assert check(schema, "title", "contains", "rep").value == "rep"
        with pytest.raises(ValidationError, match="must be a string"):
            check(schema, "title", "contains", 5)

    def test_date_kept_when_parseable(self, schema):
        assert check(schema, "due", "before", "2024-03-09").value == "2024-03-09"
        with pytest.raises(ValidationError, match="Invalid date"):
            check(schema, "due", "before", "someday")

    def test_options(self, schema):
        assert check(schema, "tags", "contains", "home").value == "home"
        assert check(schema, "tags", "contains", ["home", {"id": "work"}]).value == ["home", "work"]
        with pytest.raises(ValidationError, match="Allowed values: todo, doing, done"):
            check(schema, "status", "is", "blocked")

    def test_list_operators_need_non_empty_list(self, schema):
        assert check(schema, "status", "is_any_of", ["todo", "done"]).value == ["todo", "done"]
        with pytest.raises(ValidationError, match="non-empty list"):
            check(schema, "status", "is_any_of", "todo")
        with pytest.raises(ValidationError, match="non-empty list"):
            check(schema, "tags", "contains_all", [])

    def test_direct_call(self, status_property):
        assert validate_filter_value(status_property, FilterOperator.IS_NOT, "doing") == "doing"
