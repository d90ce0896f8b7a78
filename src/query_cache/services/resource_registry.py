"""Registry of query endpoints.

Each resource name maps to its schema and data source, resolved once at
registration time instead of per request.
"""

from dataclasses import dataclass

from query_cache.entities import ResourceSchema
from query_cache.errors import UnknownResourceError
from query_cache.protocols import DataSource


@dataclass(frozen=True)
class Endpoint:
    """A registered resource: its allow-lists plus the collection behind it."""

    schema: ResourceSchema
    data_source: DataSource

    @property
    def name(self) -> str:
        return self.schema.name


class ResourceRegistry:
    """Name-to-endpoint lookup shared by the query service and the API."""

    def __init__(self) -> None:
        self._endpoints: dict[str, Endpoint] = {}

    def register(self, schema: ResourceSchema, data_source: DataSource) -> Endpoint:
        """Register a resource.

        Args:
            schema: The resource schema; its name becomes the resource identity
            data_source: The collection serving the resource

        Returns:
            The registered Endpoint

        Raises:
            ValueError: If the name is already registered
        """
        if schema.name in self._endpoints:
            raise ValueError(f"Resource '{schema.name}' is already registered")
        endpoint = Endpoint(schema=schema, data_source=data_source)
        self._endpoints[schema.name] = endpoint
        return endpoint

    def get(self, name: str) -> Endpoint:
        """Look up a resource.

        Raises:
            UnknownResourceError: If nothing is registered under name
        """
        endpoint = self._endpoints.get(name)
        if endpoint is None:
            raise UnknownResourceError(name)
        return endpoint

    def names(self) -> list[str]:
        return sorted(self._endpoints)

    def __contains__(self, name: object) -> bool:
        return name in self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)
