"""
Endpoint knowledge base.

Maintains the cached catalog of upstream operations. The current catalog is an
immutable KnowledgeBaseSnapshot: a refresh builds a new snapshot and publishes
it with a single reference assignment, so readers never see a partial catalog.
"""

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from ..client import UpstreamClient
from ..models.endpoint import EndpointRecord, KnowledgeBaseSnapshot

logger = logging.getLogger("gateway.knowledge_base")


def build_records(raw_endpoints: Iterable[Any]) -> Tuple[EndpointRecord, ...]:
    """
    Validate raw endpoint dicts into records.

    Invalid entries are skipped. A repeated (path, method) replaces the earlier
    entry in place: first position kept, last value wins.
    """
    catalog: Dict[Tuple[str, str], EndpointRecord] = {}
    for index, raw in enumerate(raw_endpoints):
        try:
            record = EndpointRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid endpoint entry #{index}: {e.error_count()} validation error(s)"
            )
            continue
        catalog[record.key] = record
    return tuple(catalog.values())


def _extract_endpoint_list(data: Any) -> Optional[List[Any]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("endpoints"), list):
        return data["endpoints"]
    return None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


class EndpointKnowledgeBase:
    """
    Searchable catalog of upstream endpoints, persisted to a JSON cache file.

    Only this component writes the cache file; refreshes (and therefore writes)
    are serialized by a lock.
    """

    def __init__(
        self,
        client: UpstreamClient,
        cache_path: str,
        source_version: Optional[str] = None,
    ):
        self.client = client
        self.cache_path = cache_path
        self.source_version = source_version
        self._snapshot = KnowledgeBaseSnapshot(source_version=source_version)
        self._generation = 0
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> KnowledgeBaseSnapshot:
        return self._snapshot

    def _publish(
        self,
        endpoints: Tuple[EndpointRecord, ...],
        last_updated: Optional[datetime],
        source_version: Optional[str],
    ) -> KnowledgeBaseSnapshot:
        snapshot = KnowledgeBaseSnapshot(
            endpoints=endpoints,
            last_updated=last_updated,
            source_version=source_version,
            generation=self._generation + 1,
        )
        self._generation = snapshot.generation
        self._snapshot = snapshot
        return snapshot

    # ===========================================
    # Persistence
    # ===========================================

    async def load_knowledge_base(self) -> bool:
        """
        Load the persisted snapshot, if any.

        Returns:
            True when a cache file was loaded; a missing or unreadable file
            leaves the catalog empty and returns False.
        """
        try:
            payload = await asyncio.to_thread(self._read_cache_file)
        except FileNotFoundError:
            logger.info(f"No knowledge base cache at {self.cache_path}, starting empty")
            return False
        except (OSError, ValueError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError.
            logger.warning(f"Ignoring unreadable knowledge base cache {self.cache_path}: {e}")
            return False

        raw_endpoints = _extract_endpoint_list(payload)
        if raw_endpoints is None:
            logger.warning(f"Knowledge base cache {self.cache_path} has no endpoint list")
            return False

        meta = payload if isinstance(payload, dict) else {}
        try:
            snapshot = self._publish(
                build_records(raw_endpoints),
                _parse_timestamp(meta.get("lastUpdated")),
                meta.get("version", self.source_version),
            )
        except ValidationError as e:
            logger.warning(
                f"Ignoring knowledge base cache {self.cache_path} with invalid metadata: "
                f"{e.error_count()} error(s)"
            )
            return False
        logger.info(
            f"Loaded {len(snapshot.endpoints)} endpoints from {self.cache_path}",
            extra={"generation": snapshot.generation},
        )
        return True

    def _read_cache_file(self) -> Any:
        with open(self.cache_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_cache_file(self, snapshot: KnowledgeBaseSnapshot) -> None:
        directory = os.path.dirname(os.path.abspath(self.cache_path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".kb-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.to_cache_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.cache_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # ===========================================
    # Refresh
    # ===========================================

    async def update_endpoints(self) -> bool:
        """
        Re-discover endpoints from the upstream API.

        On success the new snapshot is published and persisted. On failure the
        current snapshot stays untouched.

        Returns:
            True when the catalog was refreshed
        """
        async with self._refresh_lock:
            response = await self.client.get_endpoints()
            if not response.success:
                logger.error(f"Endpoint discovery failed: {response.error}")
                return False

            raw_endpoints = _extract_endpoint_list(response.data)
            if raw_endpoints is None:
                logger.error("Endpoint discovery returned an unexpected payload shape")
                return False

            if not raw_endpoints:
                logger.warning("Upstream reported zero endpoints; publishing an empty catalog")

            snapshot = self._publish(
                build_records(raw_endpoints),
                datetime.now(timezone.utc),
                self.source_version,
            )
            logger.info(
                f"Endpoint catalog refreshed: {len(snapshot.endpoints)} endpoints",
                extra={"generation": snapshot.generation},
            )

            try:
                await asyncio.to_thread(self._write_cache_file, snapshot)
            except OSError as e:
                logger.error(f"Failed to persist knowledge base to {self.cache_path}: {e}")
            return True

    # ===========================================
    # Read path
    # ===========================================

    def get_all_endpoints(self) -> List[EndpointRecord]:
        return list(self._snapshot.endpoints)

    def search_endpoints(self, query: Optional[str]) -> List[EndpointRecord]:
        """
        Case-insensitive substring search over path, method, description and tags.

        A blank query returns every endpoint. Catalog order is preserved.
        """
        snapshot = self._snapshot
        needle = (query or "").strip().lower()
        if not needle:
            return list(snapshot.endpoints)

        return [
            endpoint
            for endpoint in snapshot.endpoints
            if needle in endpoint.path.lower()
            or needle in endpoint.method.lower()
            or needle in endpoint.description.lower()
            or any(needle in tag.lower() for tag in endpoint.tags)
        ]

    def get_endpoint_count(self) -> int:
        return len(self._snapshot.endpoints)
