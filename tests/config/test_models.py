from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import FUNCTION_REFS
from relister.config import (
    CycleConfig,
    DeployMode,
    FunctionRefs,
    RateLimitConfig,
    RelisterConfig,
    StoreConfig,
    TransportConfig,
)


def test_function_refs_missing_lists_empty_required() -> None:
    assert FunctionRefs(**FUNCTION_REFS).missing() == []
    refs = FunctionRefs(item_detail="fn-item")
    missing = refs.missing()
    assert "item_detail" not in missing
    assert "publisher" in missing
    assert "moderation" in missing


def test_legacy_moderation_variant() -> None:
    with pytest.raises(ValidationError):
        FunctionRefs(moderation_variant="legacy")
    refs = FunctionRefs(
        **{**FUNCTION_REFS, "moderation": ""},
        moderation_legacy="fn-moderation-old",
        moderation_variant="legacy",
    )
    assert refs.active_moderation == "fn-moderation-old"
    assert refs.missing() == []


def test_transport_http_requires_base_url() -> None:
    with pytest.raises(ValidationError):
        TransportConfig(kind="http")
    assert TransportConfig(kind="http", base_url="http://fn.local").base_url == "http://fn.local"


def test_store_validation() -> None:
    with pytest.raises(ValidationError):
        StoreConfig(backend="dynamodb")
    with pytest.raises(ValidationError):
        StoreConfig(backend="sqlite", batch_read_limit=101)
    assert StoreConfig(backend="dynamodb", table_name="records").batch_read_limit == 100


def test_source_spacing_validation() -> None:
    assert RateLimitConfig(source_spacing_ms=[5, 7]).source_spacing_ms == (5, 7)
    with pytest.raises(ValidationError):
        RateLimitConfig(source_spacing_ms=(10, 5))
    with pytest.raises(ValidationError):
        RateLimitConfig(source_spacing_ms=(-1, 5))
    with pytest.raises(ValidationError):
        RateLimitConfig(source_spacing_ms=5)


def test_cycle_config_requires_item_placeholder() -> None:
    with pytest.raises(ValidationError):
        CycleConfig(origin_url_template="https://jp.mercari.com/item/")
    with pytest.raises(ValidationError):
        CycleConfig(max_listed_per_cycle=0)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("prod", DeployMode.PRODUCTION),
        ("Production", DeployMode.PRODUCTION),
        ("dev", DeployMode.DEV),
        ("DEV", DeployMode.DEV),
    ],
)
def test_deploy_mode_coercion(raw: str, expected: DeployMode) -> None:
    assert RelisterConfig(deploy_mode=raw).deploy_mode is expected


def test_unknown_deploy_mode_rejected() -> None:
    with pytest.raises(ValidationError):
        RelisterConfig(deploy_mode="staging")
