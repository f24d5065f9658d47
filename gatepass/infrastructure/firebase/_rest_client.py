"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.

Beyond plain reads and writes this client exposes the two primitives the
guest pass core needs for concurrency safety:

- conditional updates guarded by the document's updateTime (compare-and-set);
- atomic server-side increments via a single commit with field transforms.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from gatepass.infrastructure.exceptions import StoreUnavailableError
from gatepass.infrastructure.firebase._rest_encoding import (
    decode_fields,
    encode_document,
    encode_fields,
    encode_value,
    increment_transforms,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentExistsError(Exception):
    """Raised when createDocument finds the document ID already taken (ALREADY_EXISTS)."""


class PreconditionFailedError(Exception):
    """Raised when a write precondition (updateTime / exists) does not hold."""


def _error_status(resp: httpx.Response) -> str:
    """Return the google.rpc status name from an error body ('' if absent)."""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if isinstance(body, list):
        body = body[0] if body else {}
    return (body.get("error") or {}).get("status", "") if isinstance(body, dict) else ""


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: list[tuple[str, str]] | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None.

    Raises:
        DocumentExistsError: create on an existing document ID.
        PreconditionFailedError: a currentDocument precondition failed.
        StoreUnavailableError: timeout, transport error, 429 or 5xx (retryable).
        httpx.HTTPStatusError: any other non-success status.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method not in ("GET", "PATCH", "POST"):
        raise ValueError(f"Unsupported method: {method!r}")
    try:
        resp = await client.request(
            method, url, headers=headers, json=body, params=params
        )
    except httpx.TimeoutException as e:
        raise StoreUnavailableError("timeout", str(e)) from e
    except httpx.TransportError as e:
        raise StoreUnavailableError("transport", str(e)) from e

    if resp.status_code == 404:
        return None
    if resp.status_code in (400, 409, 412):
        status = _error_status(resp)
        if status == "ALREADY_EXISTS":
            raise DocumentExistsError("Document already exists")
        if status in ("FAILED_PRECONDITION", "ABORTED") or resp.status_code == 412:
            raise PreconditionFailedError(status or "precondition failed")
    if resp.status_code == 429 or resp.status_code >= 500:
        raise StoreUnavailableError(f"http_{resp.status_code}", _error_status(resp))
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _doc_id(name: str) -> str:
    return name.rsplit("/", 1)[-1] if name else ""


class DocumentSnapshot:
    """Snapshot of a document (id + data + server update time)."""

    def __init__(self, id_: str, data: dict, update_time: str | None = None):
        self.id = id_
        self._data = data
        # Raw RFC 3339 string as returned by the server; passed back verbatim
        # in preconditions so nanosecond precision is preserved.
        self.update_time = update_time

    def to_dict(self) -> dict:
        return self._data

    @classmethod
    def from_rest(cls, doc: dict) -> "DocumentSnapshot":
        return cls(
            _doc_id(doc.get("name", "")),
            decode_fields(doc.get("fields")),
            doc.get("updateTime"),
        )


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return _doc_id(self._path)

    @property
    def path(self) -> str:
        return self._path

    def collection(self, collection_id: str) -> "CollectionReference":
        """Sub-collection under this document."""
        return CollectionReference(self._client, f"{self._path}/{collection_id}")

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await self._client._call(f"{_BASE}/{self._path}")
        if not out:
            return None
        return DocumentSnapshot.from_rest(out)

    async def merge(self, data: dict[str, Any]) -> None:
        """Create the document or overwrite only the given top-level fields."""
        params = [("updateMask.fieldPaths", k) for k in data]
        await self._client._call(
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            params=params,
        )

    async def update(
        self, data: dict[str, Any], *, update_time: str | None = None
    ) -> bool:
        """Update the given fields of an existing document.

        With update_time, the write succeeds only if the document was not
        modified since that snapshot (compare-and-set).

        Returns:
            True on success, False if the document does not exist.

        Raises:
            PreconditionFailedError: update_time no longer matches.
        """
        params = [("updateMask.fieldPaths", k) for k in data]
        if update_time is not None:
            params.append(("currentDocument.updateTime", update_time))
        else:
            params.append(("currentDocument.exists", "true"))
        out = await self._client._call(
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            params=params,
        )
        return out is not None


# Operators the repositories filter with; anything else is passed through verbatim.
_OP_MAP: dict[str, str] = {
    "==": "EQUAL",
    ">=": "GREATER_THAN_OR_EQUAL",
}


class Query:
    """Fluent query builder for a collection; runs via runQuery on the server.

    Multiple where() calls are combined with AND.
    """

    def __init__(self, client: "FirestoreRESTClient", parent: str, collection_id: str):
        self._client = client
        self._parent = parent
        self._collection_id = collection_id
        self._filters: list[dict] = []
        self._limit: int | None = None

    def where(self, field: str, op: str, value: Any) -> "Query":
        self._filters.append({
            "fieldFilter": {
                "field": {"fieldPath": field},
                "op": _OP_MAP.get(op, op),
                "value": encode_value(value),
            }
        })
        return self

    def limit(self, n: int) -> "Query":
        self._limit = n
        return self

    def to_structured_query(self) -> dict[str, Any]:
        structured: dict[str, Any] = {"from": [{"collectionId": self._collection_id}]}
        if len(self._filters) == 1:
            structured["where"] = self._filters[0]
        elif self._filters:
            structured["where"] = {
                "compositeFilter": {"op": "AND", "filters": self._filters}
            }
        if self._limit is not None:
            structured["limit"] = self._limit
        return structured

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """Execute the query and yield document snapshots."""
        resp = await self._client._call(
            f"{_BASE}/{self._parent}:runQuery",
            method="POST",
            body={"structuredQuery": self.to_structured_query()},
        )
        items = resp if isinstance(resp, list) else ([resp] if resp else [])
        for item in items:
            if "document" in item:
                yield DocumentSnapshot.from_rest(item["document"])


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: "FirestoreRESTClient", path: str):
        self._client = client
        self._path = path.rstrip("/")

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (DocumentExistsError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await self._client._call(url, method="POST", body=encode_document(data))

    def where(self, field: str, op: str, value: Any) -> Query:
        """Start a query with a filter. Chain .where(), .limit(), then .stream()."""
        parent, collection_id = self._path.rsplit("/", 1)
        return Query(self._client, parent, collection_id).where(field, op, value)


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._database = f"projects/{project_id}/databases/(default)"
        self._prefix = f"{self._database}/documents"
        self._http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    async def _call(self, url: str, **kwargs: Any) -> Any:
        return await _request_async(
            self._http, url, access_token=await self.get_token(), **kwargs
        )

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    def document(self, path: str) -> DocumentReference:
        """Document by slash-separated path relative to the database root."""
        return DocumentReference(self, f"{self._prefix}/{path.strip('/')}")

    async def increment(
        self,
        doc: DocumentReference,
        increments: dict[str, int],
        fields: dict[str, Any] | None = None,
    ) -> None:
        """Atomically add to integer fields and set other fields in one commit.

        Creates the document if it does not exist (missing counters start at 0).
        """
        fields = fields or {}
        write = {
            "update": {"name": doc.path, "fields": encode_fields(fields)},
            "updateMask": {"fieldPaths": list(fields)},
            "updateTransforms": increment_transforms(increments),
        }
        await self._call(
            f"{_BASE}/{self._prefix}:commit",
            method="POST",
            body={"writes": [write]},
        )
