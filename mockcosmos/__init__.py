"""
MockCosmos: In-memory Cosmos DB SQL query emulator

Parses and evaluates the Cosmos DB SQL subset against JSON documents held in
memory, for offline development and testing.
"""

__version__ = "1.0.0"

from .cosmosdb.backend import InMemoryCosmosDB
from .query.parser import parse_query
from .query.executor import QueryExecutor
from .query.pagination import QueryPager

__all__ = ["InMemoryCosmosDB", "parse_query", "QueryExecutor", "QueryPager", "__version__"]
