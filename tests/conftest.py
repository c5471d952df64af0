"""Pytest configuration providing shared fixtures for relister tests."""

from __future__ import annotations

import json
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from relister.config import (
    ConfigLocator,
    ConfigRepository,
    DeployMode,
    FunctionRefs,
    RelisterConfig,
    StoreConfig,
)
from relister.engine import ItemPipeline, RateLimiter, RecordKeys, RecordWriter
from relister.errors import TransportFailure
from relister.infra import RemoteInvoker, SQLiteManager, SQLiteRecordStore

FUNCTION_REFS = {
    "search_planner": "fn-get-search",
    "candidate_search": "fn-search",
    "item_detail": "fn-item",
    "eligibility": "fn-eligible",
    "image_processor": "fn-images",
    "moderation": "fn-moderation",
    "content_primary": "fn-create",
    "content_fallback": "fn-create-fallback",
    "title_shortener": "fn-shorten",
    "store_chooser": "fn-choose-store",
    "offer_builder": "fn-offer",
    "publisher": "fn-publish",
}

FIXED_NOW = datetime(2024, 5, 20, 3, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Millisecond clock whose ``sleep`` simply advances time."""

    def __init__(self, start_ms: float = 1_000_000.0) -> None:
        self.now_ms = start_ms
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now_ms

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now_ms += seconds * 1000.0

    def advance(self, ms: float) -> None:
        self.now_ms += ms


class ScriptedTransport:
    """Transport returning scripted envelopes per function reference.

    A script entry may be a result object (wrapped as a success envelope),
    an ``Envelope`` (sent as-is), an exception instance (raised) or a
    callable taking the decoded payload and returning any of those.
    """

    def __init__(self) -> None:
        self.scripts: dict[str, list[Any]] = {}
        self.defaults: dict[str, Any] = {}
        self.calls: list[tuple[str, dict]] = []
        self.refreshed: list[str] = []

    def script(self, ref: str, *entries: Any) -> "ScriptedTransport":
        self.scripts.setdefault(ref, []).extend(entries)
        return self

    def always(self, ref: str, entry: Any) -> "ScriptedTransport":
        self.defaults[ref] = entry
        return self

    def calls_to(self, ref: str) -> list[dict]:
        return [payload for called, payload in self.calls if called == ref]

    def send(self, function_ref: str, body: str) -> str:
        payload = json.loads(body)
        self.calls.append((function_ref, payload))
        queue = self.scripts.get(function_ref)
        if queue:
            entry = queue.pop(0)
        elif function_ref in self.defaults:
            entry = self.defaults[function_ref]
        else:
            raise AssertionError(f"Unscripted call to {function_ref}")
        if callable(entry) and not isinstance(entry, Envelope):
            entry = entry(payload)
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, Envelope):
            return entry.text
        return json.dumps({"success": True, "result": entry})

    def refresh(self, function_ref: str) -> None:
        self.refreshed.append(function_ref)


class Envelope:
    def __init__(self, text: str) -> None:
        self.text = text


def lambda_error(message: str = "Task timed out") -> Envelope:
    return Envelope(json.dumps({"errorMessage": message, "errorType": "Runtime.ExitError"}))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def invoker(transport: ScriptedTransport) -> RemoteInvoker:
    return RemoteInvoker(transport)


@pytest.fixture
def make_config() -> Callable[..., RelisterConfig]:
    def _builder(**overrides: Any) -> RelisterConfig:
        base: dict[str, Any] = {
            "deploy_mode": DeployMode.PRODUCTION,
            "functions": FunctionRefs(**FUNCTION_REFS),
            "store": StoreConfig(backend="sqlite", batch_read_limit=100),
        }
        base.update(overrides)
        return RelisterConfig(**base)

    return _builder


@pytest.fixture
def config(make_config) -> RelisterConfig:
    return make_config()


@pytest.fixture
def record_store(tmp_path: Path) -> SQLiteRecordStore:
    return SQLiteRecordStore(SQLiteManager(), tmp_path / "records.db")


@pytest.fixture
def record_keys(config: RelisterConfig) -> RecordKeys:
    return RecordKeys(config.store, config.cycle)


@pytest.fixture
def writer(record_store: SQLiteRecordStore, record_keys: RecordKeys) -> RecordWriter:
    return RecordWriter(record_store, record_keys, now=lambda: FIXED_NOW)


@pytest.fixture
def rate_limiter(config: RelisterConfig, fake_clock: FakeClock) -> RateLimiter:
    return RateLimiter(config.rate_limits, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def pipeline(config, invoker, rate_limiter, writer, fake_clock) -> ItemPipeline:
    return ItemPipeline(config, invoker, rate_limiter, writer, sleep=fake_clock.sleep)


_DETAIL: dict[str, Any] = {
    "id": "m100",
    "status": "on_sale",
    "name": "Figure box set",
    "price": 4500,
    "description": "Unused, opened once.",
    "photos": ["https://static.example/m100_1.jpg", "https://static.example/m100_2.jpg"],
    "seller": {"id": 777, "num_sell_items": 58, "ratings": {"good": 55}, "num_ratings": 56},
    "item_category_ntiers": {"id": 3, "name": "Figures"},
    "parent_categories_ntiers": [{"id": 1, "name": "Hobby"}, {"id": 2, "name": "Anime"}],
    "item_condition": {"id": 2, "name": "Like new", "subname": ""},
    "shipping_payer": {"id": 2, "name": "Seller", "code": "seller"},
    "shipping_method": {"id": 14, "name": "Rakuraku", "is_deprecated": "false"},
    "shipping_from_area": {"id": 13, "name": "Tokyo"},
    "shipping_duration": {"id": 2, "name": "2-3 days", "min_days": 2, "max_days": 3},
    "num_likes": 12,
    "num_comments": 1,
    "created": 1_700_000_000,
    "updated": 1_700_100_000,
}


@pytest.fixture
def detail_payload() -> Callable[..., dict[str, Any]]:
    def _builder(**overrides: Any) -> dict[str, Any]:
        payload = deepcopy(_DETAIL)
        payload.update(overrides)
        return payload

    return _builder


def content_result(
    *,
    title: str = "Anime Figure Box Set Japan",
    weight: float = 900,
    box: tuple[float, float, float] = (30, 20, 10),
    specifics: dict[str, Any] | None = None,
    condition_text: str = "Opened once, no damage.",
    blocked: bool = False,
) -> dict[str, Any]:
    length, width, height = box
    return {
        "blocked": blocked,
        "shipping_weight_and_box_dimensions": {
            "weight": weight,
            "box_dimensions": {"length": length, "width": width, "height": height},
        },
        "information_for_ebay_listing": {
            "listing_title_for_ebay_listing": title,
            "item_condition_description_for_ebay_listing": condition_text,
            "item_specifics_for_ebay_listing": specifics
            if specifics is not None
            else {"Brand": "Good Smile", "Character": ["Miku", "Rin"]},
            "promotional_text_for_ebay_listing": "Ships from Japan.",
        },
    }


OFFER_PART = {
    "pricingSummary": {"price": {"currency": "USD", "value": "59.99"}},
    "listingPolicies": {
        "fulfillmentPolicyId": "f1",
        "paymentPolicyId": "p1",
        "returnPolicyId": "r1",
        "bestOfferTerms": {"bestOfferEnabled": False},
    },
}


@pytest.fixture
def happy_path(transport: ScriptedTransport, detail_payload) -> Callable[..., ScriptedTransport]:
    """Script every function so a candidate passes all gates."""

    def _install(**detail_overrides: Any) -> ScriptedTransport:
        transport.always(FUNCTION_REFS["item_detail"], lambda p: detail_payload(id=p["id"], **detail_overrides))
        transport.always(FUNCTION_REFS["eligibility"], {"isEligible": True})
        transport.always(
            FUNCTION_REFS["image_processor"],
            lambda p: {
                "r2ImageUrls": [f"https://cdn.example/{p['id']}_{i}.jpg" for i in range(2)],
                "base64Images": ["aGVsbG8=", "d29ybGQ="],
            },
        )
        transport.always(FUNCTION_REFS["moderation"], {"blocked": False, "isAllPassed": True})
        transport.always(FUNCTION_REFS["content_primary"], content_result())
        transport.always(FUNCTION_REFS["store_chooser"], {"store": "A"})
        transport.always(FUNCTION_REFS["offer_builder"], OFFER_PART)
        transport.always(FUNCTION_REFS["publisher"], lambda p: {"listingId": f"L-{p['sku']}"})
        return transport

    return _install


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigRepository:
    monkeypatch.setenv("RELISTER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    return ConfigRepository(locator, environ={})


__all__ = ["Envelope", "FakeClock", "ScriptedTransport", "TransportFailure"]
