import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional

import requests
from pydantic import ValidationError

from .models import CatalogItem, Page, QueryRequest

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

API_BASE_URL = "https://bandcamp.com/api/fancollection/1"
DEFAULT_TIMEOUT = 30


class QueryError(Exception):
    """Raised when a collection or wishlist query fails as a whole."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class QueryTransportError(QueryError):
    """Connection failure, timeout or non-2xx HTTP status."""


class QueryDecodeError(QueryError):
    """Response body is not JSON or does not match the expected page shape."""


class QueryCancelled(QueryError):
    """The query was cancelled before it finished."""


class ResourceKind(str, Enum):
    """The collections of a fan which can be listed."""
    COLLECTION = "collection"
    WISHLIST = "wishlist"

    @property
    def url(self) -> str:
        return f"{API_BASE_URL}/{self.value}_items"


def utc_now():
    return datetime.now(timezone.utc)


def utc_now_token(now: Optional[datetime] = None) -> str:
    """
    Build the synthetic continuation token used for the first page.

    The Bandcamp website seeds its first request with the current time in
    this exact shape, and the API rejects an empty token.

    Args:
        now: Time to derive the token from, defaults to the current UTC time

    Returns:
        Token of the form '<unix_timestamp>:0:a::'
    """
    if now is None:
        now = utc_now()
    return f"{int(now.timestamp())}:0:a::"


def fetch_page(request: QueryRequest, url: str, identity: Optional[str] = None,
               session: Optional[Any] = None, timeout: float = DEFAULT_TIMEOUT) -> Page:
    """
    Fetch and decode a single page of results.

    Args:
        request: Fan ID and continuation token for the page
        url: Endpoint of the collection or wishlist API
        identity: Optional identity cookie, sent as-is to see private items
        session: Object with a requests-compatible ``post`` method
        timeout: Seconds to wait for the server

    Returns:
        The decoded page

    Raises:
        QueryTransportError: If the request fails or returns an error status
        QueryDecodeError: If the body is not a valid page
    """
    http = session or requests
    cookies = {"identity": identity} if identity is not None else None

    try:
        response = http.post(url, json=request.payload(), cookies=cookies, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise QueryTransportError(f"Request to {url} failed: {e}", cause=e) from e

    # requests' JSONDecodeError is also a RequestException, so decode separately
    try:
        data = response.json()
    except ValueError as e:
        raise QueryDecodeError(f"Response from {url} is not valid JSON: {e}", cause=e) from e

    try:
        return Page.model_validate(data)
    except ValidationError as e:
        raise QueryDecodeError(f"Unexpected response from {url}: {e}", cause=e) from e


class CollectionClient:
    """Lists every item in a fan's collection or wishlist."""

    def __init__(self, identity: Optional[str] = None, session: Optional[Any] = None,
                 timeout: float = DEFAULT_TIMEOUT, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the client.

        Args:
            identity: Identity cookie passed through on every request
            session: Optional requests session used for all requests
            timeout: Per-request timeout in seconds
            clock: Source of the current time, used for the first continuation token
        """
        self.identity = identity
        self.session = session
        self.timeout = timeout
        self.clock = clock or utc_now

    def list(self, kind: ResourceKind, fan_id: int,
             cancel_event: Optional[threading.Event] = None,
             on_page: Optional[Callable[[Page], None]] = None) -> List[CatalogItem]:
        """
        Query all items of one kind, following continuation tokens until the
        server reports that no more are available.

        Items are returned in server order. Nothing is returned if any page fails.

        Args:
            kind: Collection or wishlist
            fan_id: ID of the fan whose items to list
            cancel_event: When set, the query stops before the next page
            on_page: Called with each page after it has been decoded

        Returns:
            List of every item across all pages
        """
        items: List[CatalogItem] = []
        token = utc_now_token(self.clock())
        pages = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise QueryCancelled(f"Listing {kind.value} for fan {fan_id} was cancelled")

            logger.debug(f"Fetching {kind.value} page {pages + 1} for fan {fan_id} (token {token})")
            page = fetch_page(
                QueryRequest(fan_id=fan_id, continuation_token=token),
                kind.url,
                identity=self.identity,
                session=self.session,
                timeout=self.timeout,
            )
            pages += 1

            items.extend(page.items)
            token = page.continuation_token
            if on_page is not None:
                on_page(page)

            if not page.more_available:
                break

        logger.info(f"Fetched {len(items)} {kind.value} items for fan {fan_id} in {pages} pages")
        return items

    def list_collection(self, fan_id: int, **kwargs) -> List[CatalogItem]:
        """List all purchased items."""
        return self.list(ResourceKind.COLLECTION, fan_id, **kwargs)

    def list_wishlist(self, fan_id: int, **kwargs) -> List[CatalogItem]:
        """List all wishlisted items."""
        return self.list(ResourceKind.WISHLIST, fan_id, **kwargs)


def list_items(kind: ResourceKind, fan_id: int, identity: Optional[str] = None, **kwargs) -> List[CatalogItem]:
    """Convenience wrapper that lists items with a one-off client."""
    client_options = {key: kwargs.pop(key) for key in ("session", "timeout", "clock") if key in kwargs}
    return CollectionClient(identity=identity, **client_options).list(kind, fan_id, **kwargs)
