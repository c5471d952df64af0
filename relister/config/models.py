"""Pydantic models used across the relister configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


class DeployMode(str, Enum):
    """Deployment modes; anything but production lists under test identities."""

    PRODUCTION = "production"
    DEV = "dev"


class FunctionRefs(BaseModel):
    """One reference per remote function the core talks to."""

    search_planner: str = ""
    candidate_search: str = ""
    item_detail: str = ""
    eligibility: str = ""
    image_processor: str = ""
    moderation: str = ""
    moderation_legacy: str | None = None
    moderation_variant: Literal["current", "legacy"] = "current"
    content_primary: str = ""
    content_fallback: str = ""
    title_shortener: str = ""
    store_chooser: str = ""
    offer_builder: str = ""
    publisher: str = ""

    REQUIRED: ClassVar[tuple[str, ...]] = (
        "search_planner",
        "candidate_search",
        "item_detail",
        "eligibility",
        "image_processor",
        "content_primary",
        "content_fallback",
        "title_shortener",
        "store_chooser",
        "offer_builder",
        "publisher",
    )

    @model_validator(mode="after")
    def _validate_variant(self) -> "FunctionRefs":
        if self.moderation_variant == "legacy" and not self.moderation_legacy:
            raise ValueError("moderation_variant 'legacy' requires moderation_legacy")
        return self

    def missing(self) -> list[str]:
        """Names of required references that are still empty."""

        names = [name for name in self.REQUIRED if not getattr(self, name)]
        if self.moderation_variant == "current" and not self.moderation:
            names.append("moderation")
        return names

    @property
    def active_moderation(self) -> str:
        if self.moderation_variant == "legacy":
            return self.moderation_legacy or ""
        return self.moderation


class TransportConfig(BaseModel):
    """How remote functions are reached."""

    kind: Literal["lambda", "http"] = "lambda"
    region: str | None = None
    base_url: str | None = None
    timeout_seconds: float = 900.0

    @model_validator(mode="after")
    def _validate_http(self) -> "TransportConfig":
        if self.kind == "http" and not self.base_url:
            raise ValueError("http transport requires base_url")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return self


class StoreConfig(BaseModel):
    """Processing-record store settings and composite key layout."""

    backend: Literal["dynamodb", "sqlite"] = "dynamodb"
    table_name: str = ""
    region: str | None = None
    sqlite_path: Path = Field(default=Path("data/records.db"))
    batch_read_limit: int = 100
    key_namespace: str = "ITEM"
    key_operator: str = "naoto"
    origin_prefix: str = "merc"
    origin_platform: str = "merc"
    timezone: str = "Asia/Tokyo"

    @field_validator("sqlite_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("batch_read_limit")
    @classmethod
    def _check_batch(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("batch_read_limit must be between 1 and 100")
        return value

    @model_validator(mode="after")
    def _validate_table(self) -> "StoreConfig":
        if self.backend == "dynamodb" and not self.table_name:
            raise ValueError("dynamodb backend requires table_name")
        return self

    def resolved_sqlite_path(self, base_dir: Path) -> Path:
        if not self.sqlite_path.is_absolute():
            return (base_dir / self.sqlite_path).resolve()
        return self.sqlite_path


class RateLimitConfig(BaseModel):
    """Spacing between calls to the two throttled upstreams."""

    source_spacing_ms: tuple[int, int] = (9000, 11000)
    publish_spacing_ms: int = 15000
    transport_cooldown_seconds: float = 10.0

    @field_validator("source_spacing_ms", mode="before")
    @classmethod
    def _coerce_spacing(cls, value: Any) -> tuple[int, int]:
        if isinstance(value, (list, tuple)) and len(value) == 2:
            low, high = int(value[0]), int(value[1])
            if low < 0 or high < 0:
                raise ValueError("Spacing values must be non-negative")
            if high < low:
                raise ValueError("Spacing upper bound must be >= lower bound")
            return (low, high)
        raise ValueError("source_spacing_ms expects two items [low, high]")


class CycleConfig(BaseModel):
    """Per-cycle throughput and candidate admission rules."""

    max_listed_per_cycle: int = 10
    min_candidate_age_seconds: int = 24 * 60 * 60
    source_item_type: str = "ITEM_TYPE_MERCARI"
    auto_store_marker: str = "X"
    origin_url_template: str = "https://jp.mercari.com/item/{item_id}"

    @model_validator(mode="after")
    def _validate_limits(self) -> "CycleConfig":
        if self.max_listed_per_cycle < 1:
            raise ValueError("max_listed_per_cycle must be >= 1")
        if self.min_candidate_age_seconds < 0:
            raise ValueError("min_candidate_age_seconds must be >= 0")
        if "{item_id}" not in self.origin_url_template:
            raise ValueError("origin_url_template must contain {item_id}")
        return self


class PackageLimits(BaseModel):
    """Shipping limits past which an item is banned."""

    max_weight: float = 8000
    volumetric_divisor: float = 5000
    max_volumetric: float = 12
    max_side: float = 80


class ListingDefaults(BaseModel):
    """Static destination listing values and aspect rules."""

    category_id: str = "69528"
    store_category: str = "/Anime Merchandise"
    condition: str = "USED_EXCELLENT"
    marketplace_id: str = "EBAY_US"
    merchant_location_key: str = "main-warehouse"
    listing_format: str = "FIXED_PRICE"
    title_max_length: int = 80
    aspect_value_max_length: int = 65
    aspect_max_values: int = 30
    fixed_aspects: dict[str, list[str]] = Field(
        default_factory=lambda: {"Country/Region of Manufacture": ["Japan"]}
    )


class AccountIdentity(BaseModel):
    """Publishing account plus the operator username stored on the record."""

    account: str
    username: str


class AccountMap(BaseModel):
    """Store choice to operator identity mapping."""

    primary_store: str = "A"
    secondary_store: str = "B"
    primary: AccountIdentity = Field(
        default_factory=lambda: AccountIdentity(account="main", username="naoto")
    )
    secondary: AccountIdentity = Field(
        default_factory=lambda: AccountIdentity(account="sub", username="sub")
    )
    test: AccountIdentity = Field(
        default_factory=lambda: AccountIdentity(account="test", username="test")
    )

    @property
    def known_stores(self) -> tuple[str, str]:
        return (self.primary_store, self.secondary_store)


class RelisterConfig(BaseModel):
    """Full runtime configuration."""

    deploy_mode: DeployMode = DeployMode.DEV
    functions: FunctionRefs = Field(default_factory=FunctionRefs)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    store: StoreConfig = Field(
        default_factory=lambda: StoreConfig(backend="sqlite")
    )
    rate_limits: RateLimitConfig = Field(default_factory=RateLimitConfig)
    cycle: CycleConfig = Field(default_factory=CycleConfig)
    package_limits: PackageLimits = Field(default_factory=PackageLimits)
    listing: ListingDefaults = Field(default_factory=ListingDefaults)
    accounts: AccountMap = Field(default_factory=AccountMap)

    @field_validator("deploy_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in ("prod", "production"):
            return DeployMode.PRODUCTION
        if isinstance(value, str):
            return value.lower()
        return value


__all__ = [
    "AccountIdentity",
    "AccountMap",
    "CycleConfig",
    "DeployMode",
    "FunctionRefs",
    "ListingDefaults",
    "PackageLimits",
    "RateLimitConfig",
    "RelisterConfig",
    "StoreConfig",
    "TransportConfig",
]
