"""
Paginated query execution with continuation tokens.

Each page request re-parses and re-runs the whole query, then slices the
result from the offset carried in the continuation token. The token is an
opaque URL-safe base64 string wrapping a small JSON object:

    {"v": 1, "o": <offset>, "q": <query fingerprint>, "s": <page size>}

Tokens that cannot be decoded restart from the beginning. Tokens minted for
a different query or page size are rejected.

Example:
    >>> pager = QueryPager()
    >>> page = pager.page("SELECT * FROM c", docs, page_size=2)
    >>> next_page = pager.page("SELECT * FROM c", docs, 2, page.continuation_token)

Author: MockCosmos Team
Version: 1.0.0
"""

import base64
import binascii
import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from .diagnostics import QueryObserver
from .exceptions import InvalidContinuationTokenError
from .executor import QueryExecutor
from .parser import Parameters, SqlQueryParser

logger = logging.getLogger(__name__)

TOKEN_VERSION = 1


@dataclass(frozen=True)
class ContinuationToken:
    """Decoded continuation token."""
    offset: int
    fingerprint: str
    page_size: int

    def encode(self) -> str:
        payload = json.dumps(
            {'v': TOKEN_VERSION, 'o': self.offset, 'q': self.fingerprint, 's': self.page_size},
            separators=(',', ':')
        )
        return base64.urlsafe_b64encode(payload.encode('utf-8')).decode('ascii').rstrip('=')

    @classmethod
    def decode(cls, token: Optional[str]) -> Optional['ContinuationToken']:
        """
        Decode a token string.

        Returns:
            Decoded token, or None if the token is absent or malformed
        """
        if not token:
            return None

        try:
            padded = token + '=' * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode('ascii')))
        except (binascii.Error, UnicodeError, ValueError):
            return None

        if not isinstance(payload, dict) or payload.get('v') != TOKEN_VERSION:
            return None

        offset = payload.get('o')
        fingerprint = payload.get('q')
        page_size = payload.get('s')
        if (
            not isinstance(offset, int) or isinstance(offset, bool) or offset < 0
            or not isinstance(fingerprint, str)
            or not isinstance(page_size, int) or isinstance(page_size, bool)
        ):
            return None

        return cls(offset, fingerprint, page_size)


def query_fingerprint(query_text: str) -> str:
    """Short stable digest identifying a query text."""
    return hashlib.sha256(query_text.encode('utf-8')).hexdigest()[:16]


@dataclass(frozen=True)
class Page:
    """
    One page of query results.

    Attributes:
        documents: Documents on this page
        continuation_token: Token for the next page, or None on the last page
    """
    documents: List[Dict[str, Any]]
    continuation_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None


class QueryPager:
    """
    Serves query results one page at a time.

    Pages concatenated in order reproduce the unpaginated result exactly,
    provided the collection does not change between requests.
    """

    def __init__(
        self,
        parser: Optional[SqlQueryParser] = None,
        executor: Optional[QueryExecutor] = None,
        observer: Optional[QueryObserver] = None
    ):
        """
        Initialize pager.

        Args:
            parser: Query parser (created with the observer if None)
            executor: Pipeline executor (created with the observer if None)
            observer: Receives a notification per page served
        """
        self.observer = observer or QueryObserver()
        self.parser = parser or SqlQueryParser(observer=self.observer)
        self.executor = executor or QueryExecutor(observer=self.observer)

    def page(
        self,
        query_text: str,
        documents: Iterable[Dict[str, Any]],
        page_size: int,
        token: Optional[str] = None,
        parameters: Parameters = None
    ) -> Page:
        """
        Produce one page of results.

        Args:
            query_text: SQL query text
            documents: Collection to query
            page_size: Maximum documents per page (positive)
            token: Continuation token from the previous page, if any
            parameters: Values for ``@name`` references

        Returns:
            Page of documents with the token for the next page

        Raises:
            ValueError: If page_size is not a positive integer
            InvalidContinuationTokenError: If token belongs to another query or page size
            ParseError: If the query text is invalid
        """
        if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size <= 0:
            raise ValueError(f"page_size must be a positive integer, got {page_size!r}")

        fingerprint = query_fingerprint(query_text)
        offset = self._resolve_offset(token, fingerprint, page_size)

        query = self.parser.parse(query_text, parameters)
        results = self.executor.execute(query, documents)

        end = offset + page_size
        page_docs = results[offset:end]
        has_more = end < len(results)

        next_token = None
        if has_more:
            next_token = ContinuationToken(end, fingerprint, page_size).encode()

        self.observer.on_page(offset, len(page_docs), has_more)
        return Page(page_docs, next_token)

    @staticmethod
    def _resolve_offset(token: Optional[str], fingerprint: str, page_size: int) -> int:
        decoded = ContinuationToken.decode(token)
        if decoded is None:
            if token:
                logger.debug("Ignoring undecodable continuation token %r", token)
            return 0

        if decoded.fingerprint != fingerprint:
            raise InvalidContinuationTokenError(
                "Continuation token was issued for a different query"
            )
        if decoded.page_size != page_size:
            raise InvalidContinuationTokenError(
                f"Continuation token was issued for page size {decoded.page_size}, not {page_size}"
            )
        return decoded.offset
