"""Composite keys and the two processing-record shapes (ban and listing)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

import structlog

from ..config import CycleConfig, StoreConfig
from ..infra.records import RecordStore, UpsertRequest

CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


class RecordKeys:
    """Build ``<namespace>#<operator>#<prefix>-<id>`` keys and destination SKUs."""

    def __init__(self, store: StoreConfig, cycle: CycleConfig) -> None:
        self.namespace = store.key_namespace
        self.operator = store.key_operator
        self.prefix = store.origin_prefix
        self.platform = store.origin_platform
        self.url_template = cycle.origin_url_template

    def sku(self, item_id: str) -> str:
        return f"{self.prefix}-{item_id}"

    def key(self, item_id: str) -> str:
        return self.key_for_sku(self.sku(item_id))

    def key_for_sku(self, sku: str) -> str:
        return f"{self.namespace}#{self.operator}#{sku}"

    def origin_url(self, item_id: str) -> str:
        return self.url_template.format(item_id=item_id)


def is_terminal(record: dict[str, Any]) -> bool:
    """True when a stored record means the item must not be processed again.

    Ban records are terminal. Listing records are terminal while neither
    the image nor the title changed since they were written.
    """

    if record.get("isDraft"):
        return True
    return not record.get("isImageChanged") and not record.get("isTitleChanged")


class RecordWriter:
    """Write ban and listing records through a ``RecordStore``."""

    def __init__(
        self,
        store: RecordStore,
        keys: RecordKeys,
        tz: str = "Asia/Tokyo",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.keys = keys
        self.tz = ZoneInfo(tz)
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.logger = structlog.get_logger("relister.records")

    def created_at(self) -> str:
        return self._now().astimezone(self.tz).strftime(CREATED_AT_FORMAT)

    def write_ban(self, item_id: str, stage: str) -> str:
        key = self.keys.key(item_id)
        self.store.upsert(
            UpsertRequest(
                key=key,
                overwrite={
                    "isDraft": True,
                    "createdAt": self.created_at(),
                    "orgUrl": self.keys.origin_url(item_id),
                    "orgPlatform": self.keys.platform,
                },
            )
        )
        self.logger.info("ban_record_saved", item_id=item_id, key=key, stage=stage)
        return key

    def write_listing(self, listing: dict[str, Any]) -> str:
        key = self.keys.key_for_sku(listing["ebaySku"])
        overwrite = {
            **listing,
            "isDraft": False,
            "createdAt": self.created_at(),
            "isImageChanged": False,
            "isTitleChanged": False,
            "isListed": True,
            "isListedGsi": 1,
            "isOrgLive": True,
        }
        self.store.upsert(UpsertRequest(key=key, overwrite=overwrite, create_only={"scanCount": 0}))
        self.logger.info("listing_record_saved", key=key, sku=listing["ebaySku"])
        return key


__all__ = ["CREATED_AT_FORMAT", "RecordKeys", "RecordWriter", "is_terminal"]
