"""Request descriptor parsing.

Turns raw query parameters into a validated, canonical QuerySpec:

    filter[<field>]=<op>:<value>   repeated keys allowed, op defaults to eq
    sort=<field>[:asc|:desc],...   a leading '-' also means desc
    fields=<field>,...
    with=<relation>,...            'expand' is accepted as an alias
    page=<n>
    pageSize=<n>                   'page_size' and 'per_page' are aliases

Parameters outside this vocabulary are ignored.
"""

import re
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

from query_cache.config import settings
from query_cache.entities import (
    FieldSpec,
    FieldType,
    FilterClause,
    FilterOperator,
    QuerySpec,
    ResourceSchema,
    SortClause,
    SortDirection,
)
from query_cache.errors import ParseError, ParseErrorKind

RawParams = Mapping[str, Any] | Iterable[tuple[str, str]]

_FILTER_KEY = re.compile(r"^filter\[([^\[\]]+)\]$")
_PAGE_SIZE_KEYS = ("pageSize", "page_size", "per_page")
_EXPAND_KEYS = ("with", "expand")
_OPERATORS = frozenset(op.value for op in FilterOperator)
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


def _to_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


_COERCERS: dict[FieldType, Callable[[str], Any]] = {
    FieldType.STRING: str,
    FieldType.INTEGER: int,
    FieldType.FLOAT: float,
    FieldType.BOOLEAN: _to_bool,
    FieldType.DATE: date.fromisoformat,
    FieldType.DATETIME: datetime.fromisoformat,
}


def iter_params(raw_params: RawParams) -> list[tuple[str, str]]:
    """Flatten raw parameters into ordered (key, value) pairs.

    Accepts Starlette QueryParams, plain mappings (list values expand to
    repeated keys) and sequences of pairs.
    """
    if hasattr(raw_params, "multi_items"):
        return [(str(k), str(v)) for k, v in raw_params.multi_items()]
    if isinstance(raw_params, Mapping):
        pairs = []
        for key, value in raw_params.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(key), str(v)) for v in value)
            elif value is not None:
                pairs.append((str(key), str(value)))
        return pairs
    return [(str(k), str(v)) for k, v in raw_params]


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class RequestParser:
    """Validates raw request parameters against a resource schema.

    Pure: no cache or data source access happens here, so a ParseError
    always short-circuits before any I/O.

    Example:
        ```python
        parser = RequestParser.create(max_page_size=100)
        spec = parser.parse({"filter[name]": 'contains:"al"', "sort": "name:asc"}, schema)
        ```
    """

    def __init__(
        self,
        default_page_size: int | None = None,
        max_page_size: int | None = None,
    ) -> None:
        """Initialize the parser.

        Args:
            default_page_size: Page size when none is requested. Defaults to settings.
            max_page_size: Upper clamp for requested page sizes. Defaults to settings.
        """
        self._default_page_size = default_page_size or settings.default_page_size
        self._max_page_size = max_page_size or settings.max_page_size

    @classmethod
    def create(
        cls,
        default_page_size: int | None = None,
        max_page_size: int | None = None,
    ) -> "RequestParser":
        """Factory method to create RequestParser with settings defaults."""
        return cls(default_page_size=default_page_size, max_page_size=max_page_size)

    def parse(self, raw_params: RawParams, schema: ResourceSchema) -> QuerySpec:
        """Parse raw parameters into a QuerySpec.

        Args:
            raw_params: Query parameters as received by the endpoint
            schema: Allow-lists and limits of the target resource

        Returns:
            The canonical QuerySpec

        Raises:
            ParseError: On unknown fields or relations, or values that do not
                coerce to the declared field type
        """
        filters: list[FilterClause] = []
        sort: list[SortClause] = []
        fields: set[str] = set()
        expand: set[str] = set()
        page_value: str | None = None
        page_size_value: str | None = None

        for key, value in iter_params(raw_params):
            match = _FILTER_KEY.match(key)
            if match:
                filters.append(self._parse_filter(match.group(1).strip(), value, schema))
            elif key == "sort":
                sort.extend(self._parse_sort(value, schema))
            elif key == "fields":
                fields.update(self._parse_fields(value, schema))
            elif key in _EXPAND_KEYS:
                expand.update(self._parse_expand(value, schema))
            elif key == "page":
                page_value = value
            elif key in _PAGE_SIZE_KEYS:
                page_size_value = value

        max_page_size = min(schema.max_page_size or self._max_page_size, self._max_page_size)
        default_page_size = min(schema.default_page_size or self._default_page_size, max_page_size)

        page = self._parse_int("page", page_value, default=1)
        page_size = self._parse_int("pageSize", page_size_value, default=default_page_size)

        return QuerySpec(
            filters=tuple(filters),
            sort=self._dedupe_sort(sort) or schema.default_sort,
            fields=frozenset(fields),
            expand=frozenset(expand),
            page=max(page, 1),
            page_size=min(max(page_size, 1), max_page_size),
        )

    def parse_lookup(self, record_id: str, raw_params: RawParams, schema: ResourceSchema) -> QuerySpec:
        """Parse a single-record fetch on the schema's primary key.

        Only fields and with/expand are honored; filter, sort and paging
        parameters are ignored.

        Args:
            record_id: Raw primary key value from the request path
            raw_params: Query parameters as received by the endpoint
            schema: Allow-lists of the target resource

        Returns:
            A one-record QuerySpec filtered on the primary key

        Raises:
            ParseError: On unknown fields or relations, or an id that does not
                coerce to the primary key type
        """
        fields: set[str] = set()
        expand: set[str] = set()
        for key, value in iter_params(raw_params):
            if key == "fields":
                fields.update(self._parse_fields(value, schema))
            elif key in _EXPAND_KEYS:
                expand.update(self._parse_expand(value, schema))

        pk = schema.fields[schema.primary_key]
        return QuerySpec(
            filters=(FilterClause(field=pk.name, operator=FilterOperator.EQ, value=self._coerce(pk, record_id)),),
            fields=frozenset(fields),
            expand=frozenset(expand),
            page=1,
            page_size=1,
        )

    def _field(self, name: str, schema: ResourceSchema, usage: str) -> FieldSpec:
        spec = schema.field_spec(name)
        allowed = spec is not None and (
            (usage == "filter" and spec.filterable)
            or (usage == "sort" and spec.sortable)
            or usage == "fields"
        )
        if not allowed:
            raise ParseError(
                ParseErrorKind.UNKNOWN_FIELD,
                f"Unknown {usage} field '{name}' for resource '{schema.name}'",
                {"field": name, "resource": schema.name},
            )
        return spec

    def _parse_filter(self, name: str, raw_value: str, schema: ResourceSchema) -> FilterClause:
        spec = self._field(name, schema, "filter")

        operator = FilterOperator.EQ
        value = raw_value
        head, sep, tail = raw_value.partition(":")
        if sep and head.strip().lower() in _OPERATORS:
            operator = FilterOperator(head.strip().lower())
            value = tail

        if operator.is_substring and spec.type is not FieldType.STRING:
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"Operator '{operator.value}' requires a string field, '{name}' is {spec.type.value}",
                {"field": name, "operator": operator.value},
            )

        if operator is FilterOperator.IN:
            coerced: Any = tuple(self._coerce(spec, _unquote(part)) for part in _split_list(value))
        else:
            coerced = self._coerce(spec, _unquote(value))

        return FilterClause(field=name, operator=operator, value=coerced)

    def _coerce(self, spec: FieldSpec, value: str) -> Any:
        try:
            return _COERCERS[spec.type](value)
        except (TypeError, ValueError) as e:
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"Value {value!r} is not a valid {spec.type.value} for field '{spec.name}'",
                {"field": spec.name, "expected": spec.type.value},
            ) from e

    def _parse_sort(self, value: str, schema: ResourceSchema) -> list[SortClause]:
        clauses = []
        for token in _split_list(value):
            direction = SortDirection.ASC
            if token.startswith("-"):
                direction = SortDirection.DESC
                token = token[1:]
            name, sep, raw_direction = token.partition(":")
            if sep:
                try:
                    direction = SortDirection(raw_direction.strip().lower())
                except ValueError as e:
                    raise ParseError(
                        ParseErrorKind.TYPE_MISMATCH,
                        f"Sort direction must be 'asc' or 'desc', got {raw_direction!r}",
                        {"field": name, "direction": raw_direction},
                    ) from e
            name = name.strip()
            self._field(name, schema, "sort")
            clauses.append(SortClause(field=name, direction=direction))
        return clauses

    @staticmethod
    def _dedupe_sort(clauses: list[SortClause]) -> tuple[SortClause, ...]:
        # The first mention of a field decides its direction.
        seen: set[str] = set()
        result = []
        for clause in clauses:
            if clause.field not in seen:
                seen.add(clause.field)
                result.append(clause)
        return tuple(result)

    def _parse_fields(self, value: str, schema: ResourceSchema) -> list[str]:
        names = _split_list(value)
        for name in names:
            self._field(name, schema, "fields")
        return names

    def _parse_expand(self, value: str, schema: ResourceSchema) -> list[str]:
        names = _split_list(value)
        for name in names:
            if name not in schema.relations:
                raise ParseError(
                    ParseErrorKind.UNKNOWN_RELATION,
                    f"Unknown relation '{name}' for resource '{schema.name}'",
                    {"relation": name, "resource": schema.name},
                )
        return names

    @staticmethod
    def _parse_int(name: str, value: str | None, default: int) -> int:
        if value is None or not value.strip():
            return default
        try:
            return int(value.strip())
        except ValueError as e:
            raise ParseError(
                ParseErrorKind.TYPE_MISMATCH,
                f"Parameter '{name}' must be an integer, got {value!r}",
                {"parameter": name},
            ) from e
