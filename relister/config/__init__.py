"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, apply_env_overrides
from .models import (
    AccountIdentity,
    AccountMap,
    CycleConfig,
    DeployMode,
    FunctionRefs,
    ListingDefaults,
    PackageLimits,
    RateLimitConfig,
    RelisterConfig,
    StoreConfig,
    TransportConfig,
)

__all__ = [
    "AccountIdentity",
    "AccountMap",
    "ConfigLocator",
    "ConfigRepository",
    "CycleConfig",
    "DeployMode",
    "FunctionRefs",
    "ListingDefaults",
    "PackageLimits",
    "RateLimitConfig",
    "RelisterConfig",
    "StoreConfig",
    "TransportConfig",
    "apply_env_overrides",
]
