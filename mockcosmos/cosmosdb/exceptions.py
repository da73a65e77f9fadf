"""
Cosmos DB Facade Exceptions.

Exception classes for container and document operations on the in-memory
database, matching Azure Cosmos DB error codes. Query syntax and evaluation
errors live in ``mockcosmos.query.exceptions``.

Author: MockCosmos Team
Version: 1.0.0
"""


class CosmosDBError(Exception):
    """Base exception for Cosmos DB errors.

    Attributes:
        message: Error message
        error_code: Azure Cosmos DB error code
    """

    def __init__(self, message: str, error_code: str = "InternalServerError"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ContainerNotFoundError(CosmosDBError):
    """Container not found error."""

    def __init__(self, message: str, container_id: str = ""):
        """Initialize container not found error.

        Args:
            message: Error message
            container_id: Container identifier
        """
        super().__init__(message, "NotFound")
        self.container_id = container_id


class DocumentAlreadyExistsError(CosmosDBError):
    """A document with the same id already exists in the container."""

    def __init__(self, message: str, document_id: str = "", container_id: str = ""):
        super().__init__(message, "Conflict")
        self.document_id = document_id
        self.container_id = container_id


class BadRequestError(CosmosDBError):
    """Bad request error."""

    def __init__(self, message: str):
        super().__init__(message, "BadRequest")
