"""Elasticsearch REST implementation of the store client."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any, Callable
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import StoreOperationError
from .store import (
    BulkFailure,
    BulkOperation,
    BulkResult,
    DeleteOperation,
    GetResult,
    Hit,
    IndexOperation,
    ScrollPage,
)


logger = logging.getLogger(__name__)

_NDJSON = "application/x-ndjson"


class HttpStoreClient:
    """Talk to an Elasticsearch node through its REST API using ``httpx``."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        template_endpoint: str = "_template",
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._template_endpoint = template_endpoint.strip("/") or "_template"
        self._owns_client = owns_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpStoreClient":
        """Create a client (and its HTTP connection pool) from settings."""

        client = httpx.Client(**settings.http_client_kwargs())
        return cls(client, template_endpoint=settings.template_endpoint, owns_client=True)

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpStoreClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ping(self) -> bool:
        """Return True when the node answers its root endpoint."""

        try:
            response = self._client.get("/")
        except httpx.HTTPError as exc:
            logger.debug("store.ping.failed url=%s error=%s", self.base_url, exc)
            return False
        return response.is_success

    def count(self, indices: Sequence[str] | None = None) -> int:
        response = self._client.get(_path(indices, "_count"))
        data = self._checked(response, "count documents")
        return int(data.get("count", 0))

    def get(self, index: str, doc_type: str | None, doc_id: str) -> GetResult:
        path = f"/{_index_segment(index)}/{_segment(doc_type or '_doc')}/{_segment(doc_id)}"
        response = self._client.get(path)
        if response.status_code == 404:
            return GetResult(found=False)
        data = self._checked(response, f"get document {index}/{doc_id}")
        if not data.get("found", False):
            return GetResult(found=False)
        return GetResult(found=True, source=data.get("_source") or {})

    def bulk(self, operations: Sequence[BulkOperation]) -> BulkResult:
        if not operations:
            return BulkResult()

        lines: list[str] = []
        for operation in operations:
            if isinstance(operation, IndexOperation):
                lines.append(json.dumps({"index": _action_meta(operation.index, operation.doc_type, operation.doc_id)}))
                lines.append(json.dumps(dict(operation.source)))
            elif isinstance(operation, DeleteOperation):
                lines.append(json.dumps({"delete": _action_meta(operation.index, operation.doc_type, operation.doc_id)}))
            else:
                msg = f"Unsupported bulk operation {operation!r}"
                raise TypeError(msg)
        body = "\n".join(lines) + "\n"

        response = self._client.post("/_bulk", content=body.encode("utf-8"), headers={"Content-Type": _NDJSON})
        data = self._checked(response, "bulk request")
        if not data.get("errors"):
            return BulkResult()
        return BulkResult(failures=tuple(_bulk_failures(data.get("items") or [])))

    def create_index(self, name: str, settings: Mapping[str, Any]) -> None:
        response = self._client.put(f"/{_index_segment(name)}", json=dict(settings or {}))
        self._checked(response, f"create index {name}")

    def delete_index(self, pattern: str) -> None:
        response = self._client.delete(f"/{_index_segment(pattern)}")
        self._checked(response, f"delete index {pattern}")

    def create_template(self, name: str, body: Mapping[str, Any]) -> None:
        response = self._client.put(f"/{self._template_endpoint}/{_segment(name)}", json=dict(body))
        self._checked(response, f'create template "{name}"')

    def delete_template(self, name: str) -> None:
        response = self._client.delete(f"/{self._template_endpoint}/{_segment(name)}")
        self._checked(response, f'delete template "{name}"')

    def refresh(self, indices: Sequence[str] | None = None) -> None:
        response = self._client.post(_path(indices, "_refresh"))
        self._checked(response, "refresh")

    def open_scroll(
        self,
        query: Mapping[str, Any],
        size: int,
        keep_alive: str,
        indices: Sequence[str] | None = None,
    ) -> ScrollPage:
        body = {"query": dict(query), "size": size, "sort": ["_doc"], "_source": False}
        response = self._client.post(_path(indices, "_search"), params={"scroll": keep_alive}, json=body)
        return _scroll_page(self._checked(response, "open scroll"))

    def scroll(self, scroll_id: str, keep_alive: str) -> ScrollPage:
        response = self._client.post("/_search/scroll", json={"scroll": keep_alive, "scroll_id": scroll_id})
        return _scroll_page(self._checked(response, "scroll"))

    def clear_scroll(self, scroll_id: str) -> None:
        try:
            response = self._client.request("DELETE", "/_search/scroll", json={"scroll_id": [scroll_id]})
        except httpx.HTTPError as exc:
            logger.warning("store.scroll.clear_failed error=%s", exc)
            return
        if not response.is_success and response.status_code != 404:
            logger.warning("store.scroll.clear_failed status=%s body=%s", response.status_code, response.text)

    @staticmethod
    def _checked(response: httpx.Response, action: str) -> dict[str, Any]:
        if not response.is_success:
            try:
                detail: Any = response.json()
            except ValueError:
                detail = response.text
            msg = f"Elasticsearch {action} failed with status {response.status_code}: {response.text}"
            raise StoreOperationError(msg, status_code=response.status_code, detail=detail)
        if not response.content:
            return {}
        return response.json()


def wait_until_available(
    client: HttpStoreClient,
    *,
    retries: int = 3,
    wait: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until the node answers or raise ``AssertionError`` after ``retries`` attempts."""

    for attempt in range(1, max(1, retries) + 1):
        if client.ping():
            return
        logger.info("store.connect.retry attempt=%s url=%s", attempt, client.base_url)
        sleep(wait)
    raise AssertionError(f"Couldn't connect to Elasticsearch at {client.base_url}")


def _segment(value: str) -> str:
    return quote(value, safe="")


def _index_segment(value: str) -> str:
    # wildcards and comma-separated lists keep their meaning
    return quote(value, safe="*,")


def _path(indices: Sequence[str] | None, endpoint: str) -> str:
    if indices:
        return f"/{_index_segment(','.join(indices))}/{endpoint}"
    return f"/{endpoint}"


def _action_meta(index: str, doc_type: str | None, doc_id: str | None) -> dict[str, str]:
    meta = {"_index": index}
    if doc_type is not None:
        meta["_type"] = doc_type
    if doc_id is not None:
        meta["_id"] = doc_id
    return meta


def _bulk_failures(items: Sequence[Mapping[str, Any]]) -> list[BulkFailure]:
    failures: list[BulkFailure] = []
    for item in items:
        for action, result in item.items():
            error = result.get("error")
            if not error:
                continue
            if isinstance(error, Mapping):
                reason = f"{error.get('type', 'error')}: {error.get('reason', '')}".strip()
            else:
                reason = str(error)
            failures.append(
                BulkFailure(
                    action=action,
                    index=result.get("_index"),
                    doc_id=result.get("_id"),
                    status=result.get("status"),
                    reason=reason,
                )
            )
    return failures


def _scroll_page(data: Mapping[str, Any]) -> ScrollPage:
    hits_section = data.get("hits") or {}
    total = hits_section.get("total")
    if isinstance(total, Mapping):
        total = total.get("value")
    hits = tuple(
        Hit(index=hit["_index"], doc_id=hit["_id"], doc_type=hit.get("_type"))
        for hit in hits_section.get("hits") or []
        if isinstance(hit, Mapping)
    )
    shards = data.get("_shards") or {}
    return ScrollPage(
        scroll_id=data.get("_scroll_id"),
        hits=hits,
        total=total,
        shard_failures=tuple(shards.get("failures") or ()),
    )
