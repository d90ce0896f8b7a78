"""
Tests for request descriptor parsing.
"""

from datetime import date

import pytest

from query_cache.entities import FilterClause, FilterOperator, QuerySpec, SortClause, SortDirection
from query_cache.errors import ParseError, ParseErrorKind
from query_cache.services import RequestParser


def test_empty_request_is_first_page_in_default_order(parser, schema):
    """An empty request means all records, default order, first page, default size."""
    spec = parser.parse({}, schema)

    assert spec == QuerySpec(
        filters=(),
        sort=(SortClause("id", SortDirection.ASC),),
        fields=frozenset(),
        expand=frozenset(),
        page=1,
        page_size=20,
    )


def test_filter_with_operator_and_quoted_value(parser, schema):
    """Test filter[name]=contains:"al" becomes a contains clause without quotes."""
    spec = parser.parse({"filter[name]": 'contains:"al"'}, schema)

    assert spec.filters == (FilterClause("name", FilterOperator.CONTAINS, "al"),)


def test_filter_without_operator_defaults_to_eq(parser, schema):
    """Test a bare filter value is an equality filter."""
    spec = parser.parse({"filter[name]": "Alice"}, schema)

    assert spec.filters == (FilterClause("name", FilterOperator.EQ, "Alice"),)


def test_filter_value_with_colon_but_no_operator_stays_eq(parser, schema):
    """Test that only known operator names are treated as a prefix."""
    spec = parser.parse({"filter[email]": "mailto:alice@example.com"}, schema)

    assert spec.filters == (FilterClause("email", FilterOperator.EQ, "mailto:alice@example.com"),)


def test_filter_values_are_coerced_to_field_types(parser, schema):
    """Test integer, float, boolean and date coercion."""
    spec = parser.parse(
        [
            ("filter[age]", "gte:30"),
            ("filter[score]", "lt:90.5"),
            ("filter[active]", "true"),
            ("filter[joined]", "gt:2018-01-01"),
        ],
        schema,
    )

    assert spec.filters == (
        FilterClause("age", FilterOperator.GTE, 30),
        FilterClause("score", FilterOperator.LT, 90.5),
        FilterClause("active", FilterOperator.EQ, True),
        FilterClause("joined", FilterOperator.GT, date(2018, 1, 1)),
    )


def test_in_filter_coerces_each_value(parser, schema):
    """Test in:1,2,3 becomes a tuple of integers."""
    spec = parser.parse({"filter[id]": "in:1, 2,3"}, schema)

    assert spec.filters == (FilterClause("id", FilterOperator.IN, (1, 2, 3)),)


def test_repeated_filter_keys_keep_arrival_order(parser, schema):
    """Test repeated keys produce several clauses in request order."""
    spec = parser.parse({"filter[age]": ["lt:50", "gt:20"]}, schema)

    assert [c.operator for c in spec.filters] == [FilterOperator.LT, FilterOperator.GT]


def test_unknown_filter_field_is_rejected(parser, schema):
    """Test filter[ssn] against a schema without ssn."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"filter[ssn]": "123"}, schema)

    assert exc_info.value.kind is ParseErrorKind.UNKNOWN_FIELD
    assert exc_info.value.details["field"] == "ssn"


def test_uncoercible_filter_value_is_type_mismatch(parser, schema):
    """Test a non-integer value for an integer field."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"filter[age]": "gt:old"}, schema)

    assert exc_info.value.kind is ParseErrorKind.TYPE_MISMATCH


def test_substring_operator_on_non_string_field_is_type_mismatch(parser, schema):
    """Test contains on an integer field."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"filter[age]": "contains:3"}, schema)

    assert exc_info.value.kind is ParseErrorKind.TYPE_MISMATCH


def test_sort_parsing(parser, schema):
    """Test field:direction pairs and the leading minus shorthand."""
    spec = parser.parse({"sort": "name:asc,-age, score:DESC"}, schema)

    assert spec.sort == (
        SortClause("name", SortDirection.ASC),
        SortClause("age", SortDirection.DESC),
        SortClause("score", SortDirection.DESC),
    )


def test_sort_keeps_first_mention_of_a_field(parser, schema):
    """Test duplicate sort fields collapse to the first occurrence."""
    spec = parser.parse({"sort": "name:desc,age,name:asc"}, schema)

    assert spec.sort == (SortClause("name", SortDirection.DESC), SortClause("age", SortDirection.ASC))


def test_invalid_sort_direction(parser, schema):
    """Test sort=name:sideways."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"sort": "name:sideways"}, schema)

    assert exc_info.value.kind is ParseErrorKind.TYPE_MISMATCH


def test_unknown_sort_field(parser, schema):
    """Test sort on a field outside the allow-list."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"sort": "salary"}, schema)

    assert exc_info.value.kind is ParseErrorKind.UNKNOWN_FIELD


def test_fields_and_expansions(parser, schema):
    """Test fields and both with/expand spellings."""
    spec = parser.parse([("fields", "id,name"), ("with", "posts"), ("expand", "team")], schema)

    assert spec.fields == frozenset({"id", "name"})
    assert spec.expand == frozenset({"posts", "team"})


def test_unknown_projection_field(parser, schema):
    """Test fields naming something the schema does not have."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"fields": "id,password"}, schema)

    assert exc_info.value.kind is ParseErrorKind.UNKNOWN_FIELD


def test_unknown_relation(parser, schema):
    """Test with=friends against a schema without that relation."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"with": "friends"}, schema)

    assert exc_info.value.kind is ParseErrorKind.UNKNOWN_RELATION


def test_page_size_is_clamped_to_max(parser, schema):
    """Test pageSize=10000 with maxPageSize=100 is clamped, not rejected."""
    spec = parser.parse({"pageSize": "10000"}, schema)

    assert spec.page_size == 100


def test_page_size_and_page_lower_bounds(parser, schema):
    """Test pageSize=0 clamps to 1 and page=-3 clamps to 1."""
    spec = parser.parse({"pageSize": "0", "page": "-3"}, schema)

    assert spec.page_size == 1
    assert spec.page == 1


def test_page_size_aliases(parser, schema):
    """Test page_size and per_page are accepted."""
    assert parser.parse({"page_size": "7"}, schema).page_size == 7
    assert parser.parse({"per_page": "8"}, schema).page_size == 8


def test_non_integer_page_is_type_mismatch(parser, schema):
    """Test page=two."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse({"page": "two"}, schema)

    assert exc_info.value.kind is ParseErrorKind.TYPE_MISMATCH


def test_schema_page_size_limits_apply(schema):
    """Test a per-resource ceiling lower than the global one."""
    narrow = type(schema)(
        name=schema.name,
        fields=schema.fields,
        relations=schema.relations,
        default_sort=schema.default_sort,
        max_page_size=10,
        default_page_size=5,
    )
    parser = RequestParser(default_page_size=20, max_page_size=100)

    assert parser.parse({}, narrow).page_size == 5
    assert parser.parse({"pageSize": "50"}, narrow).page_size == 10


def test_unrelated_parameters_are_ignored(parser, schema):
    """Test that tracking or auth parameters do not change the parsed query."""
    assert parser.parse({"utm_source": "mail", "token": "abc"}, schema) == parser.parse({}, schema)


def test_equivalent_requests_produce_equal_specs(parser, schema):
    """Test projection and expansion order does not matter."""
    first = parser.parse({"fields": "name,id", "with": "team,posts", "filter[age]": "gt:30"}, schema)
    second = parser.parse({"with": "posts,team", "filter[age]": "gt:30", "fields": "id,name"}, schema)

    assert first == second


def test_parse_lookup_builds_primary_key_filter(parser, schema):
    """Test single-record lookups filter on the primary key and ignore paging."""
    spec = parser.parse_lookup("7", {"fields": "id,name", "with": "team", "page": "3"}, schema)

    assert spec.filters == (FilterClause("id", FilterOperator.EQ, 7),)
    assert spec.fields == frozenset({"id", "name"})
    assert spec.expand == frozenset({"team"})
    assert (spec.page, spec.page_size) == (1, 1)


def test_parse_lookup_rejects_bad_id(parser, schema):
    """Test a non-integer id for an integer primary key."""
    with pytest.raises(ParseError) as exc_info:
        parser.parse_lookup("abc", {}, schema)

    assert exc_info.value.kind is ParseErrorKind.TYPE_MISMATCH
