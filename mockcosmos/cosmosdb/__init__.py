"""
In-memory Cosmos DB facade.

Provides named containers of JSON documents queried with the Cosmos DB SQL
subset, matching Azure Cosmos DB error codes and result shapes.

Author: MockCosmos Team
Version: 1.0.0
"""

from .backend import InMemoryCosmosDB
from .models import (
    Container,
    ContainerListResult,
    CreateDocumentRequest,
    QueryParameter,
    QueryRequest,
    QueryResult,
)
from .exceptions import (
    CosmosDBError,
    ContainerNotFoundError,
    DocumentAlreadyExistsError,
    BadRequestError,
)

__all__ = [
    # Backend
    "InMemoryCosmosDB",
    # Models
    "Container",
    "ContainerListResult",
    "CreateDocumentRequest",
    "QueryParameter",
    "QueryRequest",
    "QueryResult",
    # Exceptions
    "CosmosDBError",
    "ContainerNotFoundError",
    "DocumentAlreadyExistsError",
    "BadRequestError",
]
