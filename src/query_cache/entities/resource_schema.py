"""Resource schema domain entity."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .query_spec import SortClause


class FieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"


@dataclass(frozen=True)
class FieldSpec:
    """Declared type and capabilities of one queryable field.

    Attributes:
        name: Field name as it appears in records and requests
        type: Declared type, used to coerce filter values
        case_sensitive: Whether like/contains compare case-sensitively
        filterable: Whether the field may appear in filter[...] parameters
        sortable: Whether the field may appear in sort parameters
    """

    name: str
    type: FieldType = FieldType.STRING
    case_sensitive: bool = False
    filterable: bool = True
    sortable: bool = True


@dataclass(frozen=True)
class ResourceSchema:
    """Allow-lists and limits for one query endpoint.

    Resolved once when the endpoint is registered, never per request.

    Attributes:
        name: Resource identity, part of every cache key
        fields: Field specs keyed by field name
        relations: Relation names that may be expanded
        primary_key: Field used for single-record fetches
        default_sort: Order applied when a request names none
        max_page_size: Upper bound for pageSize (None uses settings)
        default_page_size: pageSize when a request names none (None uses settings)
    """

    name: str
    fields: Mapping[str, FieldSpec]
    relations: frozenset[str] = field(default_factory=frozenset)
    primary_key: str = "id"
    default_sort: tuple[SortClause, ...] = ()
    max_page_size: int | None = None
    default_page_size: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "relations", frozenset(self.relations))
        object.__setattr__(self, "default_sort", tuple(self.default_sort))
        if not self.name or ":" in self.name:
            raise ValueError(f"Resource name {self.name!r} must be non-empty and may not contain ':'")
        if self.primary_key not in self.fields:
            raise ValueError(f"Primary key {self.primary_key!r} is not a field of {self.name!r}")
        for clause in self.default_sort:
            if clause.field not in self.fields:
                raise ValueError(f"Default sort field {clause.field!r} is not a field of {self.name!r}")

    @classmethod
    def create(
        cls,
        name: str,
        fields: list[FieldSpec],
        relations: list[str] | None = None,
        primary_key: str = "id",
        default_sort: list[SortClause] | None = None,
        max_page_size: int | None = None,
        default_page_size: int | None = None,
    ) -> "ResourceSchema":
        """Build a schema from a list of field specs.

        Args:
            name: Resource identity
            fields: Field specs, keyed by their own name
            relations: Expandable relation names
            primary_key: Single-record lookup field
            default_sort: Order applied when a request names none
            max_page_size: Per-resource page size ceiling
            default_page_size: Per-resource default page size

        Returns:
            Configured ResourceSchema
        """
        return cls(
            name=name,
            fields={spec.name: spec for spec in fields},
            relations=frozenset(relations or ()),
            primary_key=primary_key,
            default_sort=tuple(default_sort or ()),
            max_page_size=max_page_size,
            default_page_size=default_page_size,
        )

    def field_spec(self, name: str) -> FieldSpec | None:
        return self.fields.get(name)
