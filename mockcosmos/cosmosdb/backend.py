"""
In-memory Cosmos DB facade.

Holds named containers of JSON documents and answers SQL queries against
them through the query engine, with async locking for concurrent callers.

Example:
    >>> db = InMemoryCosmosDB()
    >>> await db.add_container("people")
    >>> await db.add_item("people", {"id": "1", "name": "Alice", "age": 30})
    >>> await db.query("people", "SELECT c.name FROM c WHERE c.age > 21")
    [{'id': '1', 'name': 'Alice'}]

Author: MockCosmos Team
Version: 1.0.0
"""

import asyncio
import copy
import hashlib
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from ..core.config_manager import ConfigManager, MockCosmosConfig
from ..core.logging_config import (
    clear_correlation_id,
    log_with_context,
    new_correlation_id,
    setup_logging,
)
from ..query.diagnostics import (
    CompositeQueryObserver,
    LoggingQueryObserver,
    MetricsQueryObserver,
    QueryObserver,
    get_metrics,
)
from ..query.executor import QueryExecutor
from ..query.pagination import QueryPager
from ..query.parser import Parameters, SqlQueryParser
from .exceptions import BadRequestError, ContainerNotFoundError, DocumentAlreadyExistsError
from .models import Container, ContainerListResult, CreateDocumentRequest, QueryRequest, QueryResult

logger = logging.getLogger(__name__)


class InMemoryCosmosDB:
    """In-memory Cosmos DB with SQL query support.

    Containers are created on demand and hold documents in insertion order.
    Stored documents and query results are deep copies, so callers can never
    mutate stored state.

    Attributes:
        config: Active configuration
        observer: Observer shared by the parser, executor and pager
        _containers: Containers by ID
        _documents: Documents by container ID, then document ID
        _lock: Async lock for concurrent access
    """

    def __init__(
        self,
        config: Optional[MockCosmosConfig] = None,
        observer: Optional[QueryObserver] = None
    ) -> None:
        """Initialize the database.

        Args:
            config: Configuration (defaults if None)
            observer: Extra observer notified alongside query logging and,
                when enabled, metrics
        """
        self.config = config or MockCosmosConfig()

        observers: List[QueryObserver] = [LoggingQueryObserver()]
        if observer is not None:
            observers.append(observer)
        if self.config.metrics.enabled:
            observers.append(MetricsQueryObserver(get_metrics(self.config.metrics.namespace)))
        self.observer = CompositeQueryObserver(*observers)

        self._parser = SqlQueryParser(observer=self.observer)
        self._executor = QueryExecutor(
            observer=self.observer,
            strict_mode=self.config.query.strict_mode
        )
        self._pager = QueryPager(parser=self._parser, executor=self._executor, observer=self.observer)

        self._containers: Dict[str, Container] = {}
        self._documents: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        observer: Optional[QueryObserver] = None,
        configure_logging: bool = True
    ) -> "InMemoryCosmosDB":
        """Create a database from a config file, environment and overrides.

        Args:
            config_file: Optional YAML or JSON configuration file
            overrides: Nested dictionary of explicit overrides
            observer: Extra query observer
            configure_logging: Apply the logging section to the root logger

        Returns:
            Configured database

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If config_file doesn't exist
        """
        config = ConfigManager().load(config_file=config_file, overrides=overrides)

        if configure_logging:
            setup_logging(
                level=config.logging.level,
                format_type=config.logging.format,
                log_file=config.logging.file,
                rotation_size=config.logging.rotation_size,
                rotation_count=config.logging.rotation_count,
                module_levels=config.logging.module_levels
            )

        logger.info(f"MockCosmos v{config.version} initialized (strict_mode={config.query.strict_mode})")
        return cls(config=config, observer=observer)

    def _generate_resource_id(self, identifier: str) -> str:
        hash_input = f"coll:{identifier}:{time.time()}"
        return hashlib.sha256(hash_input.encode()).hexdigest()[:8]

    async def add_container(self, container_id: str) -> Container:
        """Create a container if it does not exist.

        Args:
            container_id: Container identifier

        Returns:
            The new or existing container

        Raises:
            BadRequestError: If the container ID is invalid
        """
        async with self._lock:
            if container_id in self._containers:
                return self._containers[container_id]

            rid = self._generate_resource_id(container_id)
            try:
                container = Container(
                    id=container_id,
                    _rid=rid,
                    _ts=int(datetime.now(timezone.utc).timestamp()),
                    _self=f"colls/{rid}",
                )
            except ValidationError as e:
                raise BadRequestError(f"Invalid container id {container_id!r}: {e.errors()[0]['msg']}")

            self._containers[container_id] = container
            self._documents[container_id] = {}
            log_with_context(
                logger, logging.INFO, f"Created container: {container_id}",
                container_id=container_id, rid=rid
            )
            return container

    async def add_item(self, container_id: str, item: Any) -> Dict[str, Any]:
        """Add a document to a container.

        Args:
            container_id: Container identifier
            item: Document as a dict or pydantic model; ``id`` is generated
                when missing

        Returns:
            Copy of the stored document

        Raises:
            ContainerNotFoundError: If container not found
            DocumentAlreadyExistsError: If a document with the same id exists
            BadRequestError: If the item is not a JSON object
        """
        document = self._to_document(item)

        async with self._lock:
            documents = self._get_documents_unlocked(container_id)

            doc_id = document["id"]
            if doc_id in documents:
                raise DocumentAlreadyExistsError(
                    f"Document with id '{doc_id}' already exists",
                    document_id=doc_id,
                    container_id=container_id
                )

            documents[doc_id] = document
            logger.debug(f"Added document {doc_id!r} to container {container_id}")
            return copy.deepcopy(document)

    @staticmethod
    def _to_document(item: Any) -> Dict[str, Any]:
        if isinstance(item, BaseModel):
            item = item.model_dump(by_alias=True)
        if not isinstance(item, dict):
            raise BadRequestError(f"Items must be JSON objects, got {type(item).__name__}")

        try:
            request = CreateDocumentRequest.model_validate(copy.deepcopy(item))
        except ValidationError as e:
            raise BadRequestError(f"Invalid document: {e.errors()[0]['msg']}")

        document = request.model_dump()
        if document["id"] is None:
            document["id"] = str(uuid.uuid4())
        return document

    async def query(
        self,
        container_id: str,
        sql: Union[str, QueryRequest],
        parameters: Parameters = None
    ) -> List[Dict[str, Any]]:
        """Run a SQL query and return every result.

        Args:
            container_id: Container identifier
            sql: SQL query text, or a QueryRequest carrying its own parameters
            parameters: Values for ``@name`` references

        Returns:
            Result documents (copies)

        Raises:
            ContainerNotFoundError: If container not found
            QueryError: If the query is invalid or fails to evaluate
        """
        sql, parameters = self._unpack_query(sql, parameters)
        new_correlation_id()
        try:
            async with self._lock:
                documents = list(self._get_documents_unlocked(container_id).values())
                query = self._parser.parse(sql, parameters)
                results = self._executor.execute(query, documents)
                return [copy.deepcopy(doc) for doc in results]
        finally:
            clear_correlation_id()

    async def query_page(
        self,
        container_id: str,
        sql: Union[str, QueryRequest],
        max_item_count: Optional[int] = None,
        continuation_token: Optional[str] = None,
        parameters: Parameters = None
    ) -> QueryResult:
        """Run a SQL query and return one page of results.

        Args:
            container_id: Container identifier
            sql: SQL query text, or a QueryRequest carrying its own parameters
            max_item_count: Page size (configured default if None, capped
                at the configured maximum)
            continuation_token: Token from the previous page, if any
            parameters: Values for ``@name`` references

        Returns:
            Query result with documents and continuation token

        Raises:
            ContainerNotFoundError: If container not found
            BadRequestError: If max_item_count is not positive
            QueryError: If the query or continuation token is invalid
        """
        sql, parameters = self._unpack_query(sql, parameters)
        page_size = self.config.query.default_page_size if max_item_count is None else max_item_count
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size <= 0:
            raise BadRequestError(f"max_item_count must be a positive integer, got {max_item_count!r}")
        page_size = min(page_size, self.config.query.max_page_size)

        new_correlation_id()
        try:
            async with self._lock:
                container = self._get_container_unlocked(container_id)
                documents = list(self._documents[container_id].values())
                page = self._pager.page(sql, documents, page_size, continuation_token, parameters)

                return QueryResult(
                    _rid=container.rid,
                    Documents=[copy.deepcopy(doc) for doc in page.documents],
                    _count=len(page.documents),
                    _continuation=page.continuation_token
                )
        finally:
            clear_correlation_id()

    @staticmethod
    def _unpack_query(sql: Union[str, QueryRequest], parameters: Parameters) -> Tuple[str, Parameters]:
        if isinstance(sql, QueryRequest):
            return sql.query, sql.parameter_values()
        return sql, parameters

    async def list_containers(self) -> ContainerListResult:
        """List all containers in creation order."""
        async with self._lock:
            containers = list(self._containers.values())
            return ContainerListResult(
                DocumentCollections=containers,
                _count=len(containers)
            )

    def _get_container_unlocked(self, container_id: str) -> Container:
        """Get container without acquiring lock (internal use).

        Raises:
            ContainerNotFoundError: If container not found
        """
        if container_id not in self._containers:
            raise ContainerNotFoundError(
                f"Container '{container_id}' not found",
                container_id=container_id
            )
        return self._containers[container_id]

    def _get_documents_unlocked(self, container_id: str) -> Dict[str, Dict[str, Any]]:
        self._get_container_unlocked(container_id)
        return self._documents[container_id]

    async def clear(self) -> None:
        """Clear all containers and documents.

        Used for testing purposes.
        """
        async with self._lock:
            self._containers.clear()
            self._documents.clear()
