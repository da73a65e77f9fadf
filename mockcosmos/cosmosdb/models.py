"""
Cosmos DB Models.

Pydantic models for containers, documents and query results of the
in-memory database, shaped like Azure Cosmos DB REST payloads.

Author: MockCosmos Team
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Container(BaseModel):
    """Cosmos DB container.

    Attributes:
        id: Container identifier
        _rid: Resource ID (internal)
        _ts: Creation timestamp
        _self: Self link
    """

    id: str
    rid: str = Field(default="", alias="_rid")
    ts: int = Field(default=0, alias="_ts")
    self_link: str = Field(default="", alias="_self")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Validate container ID.

        Raises:
            ValueError: If ID is invalid
        """
        if not v or not v.strip():
            raise ValueError("Container ID cannot be empty")

        if len(v) > 255:
            raise ValueError("Container ID must be 255 characters or less")

        if any(c in v for c in "/\\?#"):
            raise ValueError("Container ID cannot contain '/', '\\', '?' or '#'")

        return v


class ContainerListResult(BaseModel):
    """List of containers.

    Attributes:
        document_collections: Containers in creation order
        _count: Count of containers
    """

    document_collections: List[Container] = Field(default_factory=list, alias="DocumentCollections")
    count: int = Field(default=0, alias="_count")

    model_config = ConfigDict(populate_by_name=True)


class CreateDocumentRequest(BaseModel):
    """Request to create a document.

    Allows any fields in the document body; ``id`` is generated when absent.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow"
    )

    id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        if not isinstance(v, str):
            raise ValueError("Document id must be a string")
        return v


class QueryParameter(BaseModel):
    """Named query parameter (``{"name": "@age", "value": 21}``)."""

    name: str
    value: Any = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.startswith("@") or len(v) < 2:
            raise ValueError("Parameter names must start with '@'")
        return v


class QueryRequest(BaseModel):
    """SQL query request.

    Attributes:
        query: SQL query string
        parameters: Query parameters for parameterized queries
    """

    query: str
    parameters: List[QueryParameter] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def parameter_values(self) -> Dict[str, Any]:
        return {param.name: param.value for param in self.parameters}


class QueryResult(BaseModel):
    """SQL query result.

    Attributes:
        _rid: Resource ID of container
        documents: Query result documents
        _count: Count of documents in this page
        _continuation: Continuation token for pagination
    """

    rid: str = Field(default="", alias="_rid")
    documents: List[Dict[str, Any]] = Field(default_factory=list, alias="Documents")
    count: int = Field(default=0, alias="_count")
    continuation: Optional[str] = Field(default=None, alias="_continuation")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def has_more_results(self) -> bool:
        return self.continuation is not None
