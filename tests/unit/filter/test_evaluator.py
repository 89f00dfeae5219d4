"""Tests for filter evaluation."""

from datetime import UTC, datetime

import pytest

from dbview.core.modules.filter.evaluator import evaluate_condition, filter_records, is_empty_value, matches
from dbview.core.modules.filter.models import Combinator, FilterCondition, FilterOperator
from dbview.core.modules.property.models import Property, PropertyConfig, PropertyOption, PropertyType, Schema
from dbview.core.modules.record.models import Record

# Sunday; the week runs from Monday 2024-03-04 to Sunday 2024-03-10
NOW = datetime(2024, 3, 10, 9, 0, tzinfo=UTC)


def ids(records):
    return [r.id for r in records]


def run(records, properties, *conditions):
    return ids(filter_records(records, list(conditions), properties, NOW))


def cond(property_id, operator, value=None, combinator=Combinator.AND):
    return FilterCondition(property=property_id, condition=operator, value=value, combinator=combinator)


class TestSelectScenario:
    def test_is_matches_option(self):
        """Test that 'is' keeps records whose option matches."""
        p1 = Property(
            id="p1",
            name="P1",
            type=PropertyType.SELECT,
            config=PropertyConfig(options=[PropertyOption(id="o1", label="Todo"), PropertyOption(id="o2", label="Done")]),
        )
        records = [
            Record(id="r1", properties={"p1": "o1"}),
            Record(id="r2", properties={"p1": "o2"}),
            Record(id="r3", properties={"p1": None}),
        ]
        assert run(records, [p1], cond("p1", "is", "o1")) == ["r1"]


class TestTextOperators:
    """Tests for text operators."""

    def test_case_insensitive(self, records, properties):
        """Test that text comparisons ignore case, including negations."""
        assert run(records, properties, cond("title", FilterOperator.CONTAINS, "REPORT")) == ["r1"]
        assert run(records, properties, cond("title", FilterOperator.NOT_CONTAINS, "report")) == ["r2", "r3", "r4"]
        assert run(records, properties, cond("title", FilterOperator.EQUALS, "write REPORT")) == ["r1"]
        assert run(records, properties, cond("title", FilterOperator.NOT_EQUALS, "WRITE report")) == ["r2", "r3", "r4"]

    def test_prefix_and_suffix(self, records, properties):
        assert run(records, properties, cond("title", FilterOperator.STARTS_WITH, "buy")) == ["r2"]
        assert run(records, properties, cond("title", FilterOperator.ENDS_WITH, "BIKE")) == ["r4"]

    def test_missing_text_value(self, records, properties):
        """Test that records without a value never contain anything."""
        assert run(records, properties, cond("notes", FilterOperator.CONTAINS, "visa")) == ["r3"]
        assert run(records, properties, cond("notes", FilterOperator.NOT_CONTAINS, "visa")) == ["r1", "r2", "r4"]


class TestNumberOperators:
    def test_comparisons(self, records, properties):
        """Test numeric comparisons; missing values never match ordered operators."""
        assert run(records, properties, cond("estimate", FilterOperator.GREATER_THAN, 1)) == ["r1", "r4"]
        assert run(records, properties, cond("estimate", FilterOperator.LESS_THAN_OR_EQUAL, "2")) == ["r2", "r4"]
        assert run(records, properties, cond("estimate", FilterOperator.EQUALS, 3)) == ["r1"]
        assert run(records, properties, cond("estimate", FilterOperator.NOT_EQUALS, 3)) == ["r2", "r3", "r4"]


class TestDateOperators:
    """Tests for date operators, compared on UTC days."""

    def test_day_granularity(self, records, properties):
        """Test that a time of day does not affect equality."""
        assert run(records, properties, cond("due", FilterOperator.EQUALS, "2024-03-08")) == ["r2"]
        assert run(records, properties, cond("due", FilterOperator.EQUALS, "2024-03-10T23:00:00Z")) == ["r1"]

    def test_ordering(self, records, properties):
        assert run(records, properties, cond("due", FilterOperator.BEFORE, "2024-03-09")) == ["r2"]
        assert run(records, properties, cond("due", FilterOperator.ON_OR_AFTER, "2024-03-10")) == ["r1", "r4"]
        assert run(records, properties, cond("due", FilterOperator.AFTER, "2024-03-10")) == ["r4"]
        assert run(records, properties, cond("due", FilterOperator.ON_OR_BEFORE, "2024-03-08")) == ["r2"]

    def test_relative_days(self, records, properties):
        """Test relative operators against the evaluation clock."""
        assert run(records, properties, cond("due", FilterOperator.IS_TODAY)) == ["r1"]
        assert run(records, properties, cond("due", FilterOperator.IS_YESTERDAY)) == []
        assert run(records, properties, cond("due", FilterOperator.IS_THIS_WEEK)) == ["r1", "r2"]
        assert run(records, properties, cond("due", FilterOperator.IS_NEXT_WEEK)) == ["r4"]
        assert run(records, properties, cond("due", FilterOperator.IS_LAST_WEEK)) == []
        assert run(records, properties, cond("due", FilterOperator.IS_THIS_MONTH)) == ["r1", "r2", "r4"]
        assert run(records, properties, cond("due", FilterOperator.IS_LAST_MONTH)) == []

    def test_month_boundaries(self):
        """Test last/next month across a year boundary."""
        due = Property(id="due", name="Due", type=PropertyType.DATE)
        records = [
            Record(id="dec", properties={"due": "2023-12-31"}),
            Record(id="jan", properties={"due": "2024-01-15"}),
            Record(id="feb", properties={"due": "2024-02-01"}),
        ]
        clock = datetime(2024, 1, 20, tzinfo=UTC)
        last = filter_records(records, [cond("due", FilterOperator.IS_LAST_MONTH)], [due], clock)
        upcoming = filter_records(records, [cond("due", FilterOperator.IS_NEXT_MONTH)], [due], clock)
        assert ids(last) == ["dec"]
        assert ids(upcoming) == ["feb"]


class TestCheckboxAndSelect:
    def test_checkbox(self, records, properties):
        assert run(records, properties, cond("done", FilterOperator.IS_CHECKED)) == ["r2"]
        assert run(records, properties, cond("done", FilterOperator.IS_UNCHECKED)) == ["r1", "r3", "r4"]

    def test_select_with_embedded_option(self, records, properties):
        """Test that embedded option objects compare by id."""
        assert run(records, properties, cond("status", FilterOperator.IS, "done")) == ["r2"]
        assert run(records, properties, cond("status", FilterOperator.IS, {"id": "done"})) == ["r2"]
        assert run(records, properties, cond("status", FilterOperator.IS_NOT, "todo")) == ["r2", "r3", "r4"]

    def test_select_membership(self, records, properties):
        assert run(records, properties, cond("status", FilterOperator.IS_ANY_OF, ["todo", "doing"])) == ["r1", "r4"]
        assert run(records, properties, cond("status", FilterOperator.IS_NONE_OF, ["todo"])) == ["r2", "r3", "r4"]


class TestMultiSelectOperators:
    def test_contains_any_overlap(self, records, properties):
        """Test that contains with a list means any overlap."""
        assert run(records, properties, cond("tags", FilterOperator.CONTAINS, "home")) == ["r2", "r4"]
        assert run(records, properties, cond("tags", FilterOperator.CONTAINS, ["work", "urgent"])) == ["r1", "r2"]

    def test_contains_all(self, records, properties):
        """Test that contains_all requires every element; a scalar is a one-element list."""
        assert run(records, properties, cond("tags", FilterOperator.CONTAINS_ALL, ["home", "urgent"])) == ["r2"]
        assert run(records, properties, cond("tags", FilterOperator.CONTAINS_ALL, "home")) == ["r2", "r4"]

    def test_not_contains(self, records, properties):
        assert run(records, properties, cond("tags", FilterOperator.NOT_CONTAINS, "home")) == ["r1", "r3"]


class TestEmptiness:
    def test_is_empty_value(self):
        assert is_empty_value(None)
        assert is_empty_value("")
        assert is_empty_value([])
        assert not is_empty_value(0)
        assert not is_empty_value(False)

    def test_is_empty_across_types(self, records, properties):
        assert run(records, properties, cond("tags", FilterOperator.IS_EMPTY)) == ["r3"]
        assert run(records, properties, cond("status", FilterOperator.IS_EMPTY)) == ["r3"]
        assert run(records, properties, cond("due", FilterOperator.IS_NOT_EMPTY)) == ["r1", "r2", "r4"]


class TestFailOpen:
    """Conditions that cannot be evaluated keep every record."""

    def test_missing_property(self, records, properties):
        assert run(records, properties, cond("deleted", FilterOperator.EQUALS, "x")) == ["r1", "r2", "r3", "r4"]

    def test_operator_not_valid_for_type(self, records, properties):
        assert run(records, properties, cond("status", FilterOperator.GREATER_THAN, 1)) == ["r1", "r2", "r3", "r4"]

    def test_unknown_operator_string(self, records, properties):
        condition = cond("title", "sounds_like", "rite")
        assert condition.condition == "sounds_like"
        assert run(records, properties, condition) == ["r1", "r2", "r3", "r4"]

    @pytest.mark.parametrize(
        ("property_id", "operator", "value"),
        [
            ("title", FilterOperator.CONTAINS, None),
            ("estimate", FilterOperator.GREATER_THAN, "many"),
            ("due", FilterOperator.BEFORE, "someday"),
            ("status", FilterOperator.IS, None),
            ("tags", FilterOperator.CONTAINS_ALL, []),
        ],
    )
    def test_unusable_value(self, records, properties, property_id, operator, value):
        assert run(records, properties, cond(property_id, operator, value)) == ["r1", "r2", "r3", "r4"]

    def test_single_condition_evaluation(self, records, properties):
        schema = Schema(properties)
        assert evaluate_condition(records[0], cond("gone", FilterOperator.IS, "x"), schema) is True


class TestConjunction:
    def test_combinator_is_ignored(self, records, properties):
        """Test that conditions are ANDed even when marked 'or'."""
        result = run(
            records,
            properties,
            cond("status", FilterOperator.IS, "todo"),
            cond("status", FilterOperator.IS, "done", Combinator.OR),
        )
        assert result == []

    def test_matches_accepts_schema(self, records, properties):
        conditions = [cond("tags", FilterOperator.CONTAINS, "home"), cond("done", FilterOperator.IS_CHECKED)]
        assert matches(records[1], conditions, Schema(properties), NOW)
        assert not matches(records[3], conditions, properties, NOW)

    def test_adding_conditions_never_grows_result(self, records, properties):
        """Test that each added condition narrows (or keeps) the result, in input order."""
        conditions = [
            cond("estimate", FilterOperator.IS_NOT_EMPTY),
            cond("missing", FilterOperator.EQUALS, 1),
            cond("tags", FilterOperator.CONTAINS, "home"),
            cond("done", FilterOperator.IS_UNCHECKED),
        ]
        previous = ids(records)
        for count in range(1, len(conditions) + 1):
            current = run(records, properties, *conditions[:count])
            assert set(current) <= set(previous)
            assert current == [i for i in previous if i in current]
            previous = current
        assert previous == ["r4"]
