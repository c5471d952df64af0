"""Configuration loading helpers for relister."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import FunctionRefs, RelisterConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "relister.yaml"
ENV_PREFIX = "RELISTER_"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def apply_env_overrides(payload: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay ``RELISTER_*`` environment variables onto a raw config mapping.

    ``RELISTER_DEPLOY_ENV`` sets the deploy mode, ``RELISTER_TABLE_NAME`` the
    persistence namespace and ``RELISTER_FUNCTION_<FIELD>`` any remote
    function reference (``RELISTER_FUNCTION_ITEM_DETAIL`` and so on).
    """

    merged = dict(payload)
    deploy = environ.get(f"{ENV_PREFIX}DEPLOY_ENV")
    if deploy:
        merged["deploy_mode"] = deploy
    table = environ.get(f"{ENV_PREFIX}TABLE_NAME")
    if table:
        store = dict(merged.get("store") or {})
        store["table_name"] = table
        store.setdefault("backend", "dynamodb")
        merged["store"] = store
    functions = dict(merged.get("functions") or {})
    for name in FunctionRefs.model_fields:
        value = environ.get(f"{ENV_PREFIX}FUNCTION_{name.upper()}")
        if value:
            functions[name] = value
    if functions:
        merged["functions"] = functions
    return merged


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("RELISTER_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        for suffix in CONFIG_EXTENSIONS:
            candidate = self.data_dir / f"relister{suffix}"
            if candidate.exists():
                return candidate
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO, env overrides and schema validation."""

    def __init__(
        self,
        locator: ConfigLocator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.locator = locator or ConfigLocator()
        self.environ = os.environ if environ is None else environ
        self._cache: RelisterConfig | None = None

    def load(self, path: Path | None = None) -> RelisterConfig:
        if self._cache is not None and path is None:
            return self._cache
        path = path or self.locator.config_path()
        payload = _read_file(path) if path.exists() else {}
        try:
            config = RelisterConfig.model_validate(apply_env_overrides(payload, self.environ))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc
        if path == self.locator.config_path():
            self._cache = config
        return config

    def load_validated(self, path: Path | None = None) -> RelisterConfig:
        """Load configuration and insist every required function is referenced."""

        config = self.load(path)
        missing = config.functions.missing()
        if missing:
            raise ConfigurationError(
                "Missing remote function references: " + ", ".join(sorted(missing))
            )
        return config

    def save(self, config: RelisterConfig) -> Path:
        path = self.locator.config_path()
        _write_file(path, config.model_dump(mode="json"))
        self._cache = config
        return path

    def sqlite_path(self, config: RelisterConfig) -> Path:
        return config.store.resolved_sqlite_path(self.locator.project_root)


__all__ = [
    "CONFIG_EXTENSIONS",
    "ConfigLocator",
    "ConfigRepository",
    "apply_env_overrides",
]
