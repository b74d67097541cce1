"""Record store client - HTTP client for the remote records API.

The engine depends only on the ``RecordStore`` protocol. ``HttpRecordStore``
implements it against a PocketBase-style REST API
(``/api/collections/{collection}/records``).
"""

import json
from typing import Any, Protocol

import httpx

from catalog.config import settings
from catalog.core.errors import RecordStoreError
from catalog.core.filter_translator import Predicate
from catalog.infra.logging import get_logger
from catalog.schemas.common import RecordPage

logger = get_logger(__name__)

# key -> (filename, content, content_type)
UploadFiles = dict[str, tuple[str, bytes, str]]


class RecordStore(Protocol):
    """Operations the engine needs from the backing record store."""

    async def list(
        self,
        collection: str,
        page: int,
        per_page: int,
        sort: str | None = None,
        predicate: Predicate | None = None,
        expand: str | None = None,
    ) -> RecordPage: ...

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        files: UploadFiles | None = None,
    ) -> dict[str, Any]: ...

    async def update(
        self,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        files: UploadFiles | None = None,
    ) -> dict[str, Any]: ...

    async def delete(self, collection: str, record_id: str) -> None: ...


def quote(value: str) -> str:
    """Quote a literal for the store's filter grammar."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_filter(predicate: Predicate | None) -> str:
    """Render a predicate as a filter expression.

    Equality becomes ``field = "v"``; each text token becomes
    ``(a ~ "t" || b ~ "t" ...)`` (``~`` is case-insensitive contains).
    Every clause is AND-combined.
    """
    if predicate is None or predicate.is_empty:
        return ""
    clauses: list[str] = []
    for constraint in predicate.text:
        alternatives = " || ".join(
            f"{name} ~ {quote(constraint.token)}" for name in constraint.fields
        )
        clauses.append(f"({alternatives})")
    for constraint in predicate.equals:
        clauses.append(f"{constraint.field} = {quote(constraint.value)}")
    return " && ".join(clauses)


class HttpRecordStore:
    """HTTP client for the records API."""

    def __init__(
        self,
        base_url: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize record store client.

        Args:
            base_url: Store base URL (defaults to settings)
            auth_token: Caller token (defaults to settings; empty means anonymous)
            timeout: Request timeout in seconds (defaults to settings, where
                None disables it)
            transport: Optional httpx transport (used in tests)
        """
        self.base_url = base_url or settings.store_url
        self.auth_token = auth_token if auth_token is not None else settings.store_auth_token
        self.timeout = timeout if timeout is not None else settings.store_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.auth_token:
                headers["Authorization"] = self.auth_token
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _records_path(self, collection: str, record_id: str | None = None) -> str:
        path = f"/api/collections/{collection}/records"
        return f"{path}/{record_id}" if record_id else path

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error("Record store unreachable", method=method, path=path, error=str(e))
            raise RecordStoreError(0, message=str(e)) from e

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            logger.warning(
                "Record store returned error",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            raise RecordStoreError(
                response.status_code,
                body if isinstance(body, dict) else {},
                message=str(body.get("message", "")) if isinstance(body, dict) else "",
            )
        return response

    async def list(
        self,
        collection: str,
        page: int,
        per_page: int,
        sort: str | None = None,
        predicate: Predicate | None = None,
        expand: str | None = None,
    ) -> RecordPage:
        """Fetch one page of records.

        Args:
            collection: Collection name
            page: 1-based page number
            per_page: Page size
            sort: Sort expression (e.g. "-created")
            predicate: Constraints to filter by
            expand: Comma-separated relations to expand

        Returns:
            RecordPage with items and totals
        """
        params: dict[str, Any] = {"page": page, "perPage": per_page}
        if sort:
            params["sort"] = sort
        filter_expr = render_filter(predicate)
        if filter_expr:
            params["filter"] = filter_expr
        if expand:
            params["expand"] = expand

        response = await self._request("GET", self._records_path(collection), params=params)
        result = RecordPage.model_validate(response.json())
        logger.debug(
            "Listed records",
            collection=collection,
            page=result.page,
            total_items=result.total_items,
        )
        return result

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        files: UploadFiles | None = None,
    ) -> dict[str, Any]:
        """Create a record; multipart when files are attached."""
        response = await self._request(
            "POST", self._records_path(collection), **self._body(data, files)
        )
        record = response.json()
        logger.info("Record created", collection=collection, record_id=record.get("id"))
        return record

    async def update(
        self,
        collection: str,
        record_id: str,
        data: dict[str, Any],
        files: UploadFiles | None = None,
    ) -> dict[str, Any]:
        """Update a record with the full data set."""
        response = await self._request(
            "PATCH", self._records_path(collection, record_id), **self._body(data, files)
        )
        logger.info("Record updated", collection=collection, record_id=record_id)
        return response.json()

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete a record."""
        await self._request("DELETE", self._records_path(collection, record_id))
        logger.info("Record deleted", collection=collection, record_id=record_id)

    def _body(self, data: dict[str, Any], files: UploadFiles | None) -> dict[str, Any]:
        """Request body kwargs: JSON, or form fields plus files."""
        if not files:
            return {"json": data}
        form: dict[str, str] = {}
        for key, value in data.items():
            if isinstance(value, (list, dict)):
                form[key] = json.dumps(value)
            elif value is None:
                form[key] = ""
            else:
                form[key] = str(value)
        return {"data": form, "files": files}


# Singleton instance
_record_store: HttpRecordStore | None = None


def get_record_store() -> HttpRecordStore:
    """Get record store client singleton."""
    global _record_store
    if _record_store is None:
        _record_store = HttpRecordStore()
    return _record_store
