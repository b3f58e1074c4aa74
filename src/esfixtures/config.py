"""Configuration helpers for the fixture engine."""

from __future__ import annotations

import json
from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Final

import yaml
from dotenv import load_dotenv

load_dotenv()

_DEFAULT_ELASTICSEARCH_URL: Final[str] = "http://localhost:9200"
_DEFAULT_ELASTICSEARCH_TIMEOUT: Final[float] = 30.0
_DEFAULT_TEMPLATE_ENDPOINT: Final[str] = "_template"
_DEFAULT_INDEX_PATTERN: Final[str] = "*"
_DEFAULT_SCROLL_KEEP_ALIVE: Final[str] = "1m"
_DEFAULT_SCROLL_MAX_PAGE_SIZE: Final[int] = 10_000
_DEFAULT_CONNECT_RETRIES: Final[int] = 3
_DEFAULT_CONNECT_RETRY_WAIT: Final[float] = 1.0
_DEFAULT_NAMESPACE: Final[str] = "esfixtures"
_STRUCTURED_SUFFIXES: Final[tuple[str, ...]] = (".json", ".yaml", ".yml")


def _env_optional_bool(name: str) -> bool | None:
    """Read an optional boolean environment variable."""

    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    msg = f"Environment variable {name} must be a boolean value (true/false)."
    raise ValueError(msg)


def _env_optional_int(name: str) -> int | None:
    """Read an optional integer environment variable."""

    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_optional_float(name: str) -> float | None:
    """Read an optional float environment variable."""

    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a float") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = _env_optional_bool(name)
    return default if value is None else value


def _env_int(name: str, default: int) -> int:
    value = _env_optional_int(name)
    return default if value is None else value


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable with a fallback (preserving zero)."""

    value = _env_optional_float(name)
    return default if value is None else value


def _read_structured_file(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) if path.suffix.lower() in {".yaml", ".yml"} else json.loads(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{path} must contain a JSON/YAML object."
        raise ValueError(msg)
    return data


@dataclass(slots=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    elasticsearch_url: str = _DEFAULT_ELASTICSEARCH_URL
    elasticsearch_username: str | None = None
    elasticsearch_password: str | None = None
    elasticsearch_timeout: float = _DEFAULT_ELASTICSEARCH_TIMEOUT
    elasticsearch_verify_certs: bool = True
    template_endpoint: str = _DEFAULT_TEMPLATE_ENDPOINT
    delete_all_indices: bool = False
    create_indices: bool = False
    index_settings_path: str | None = None
    templates_dir: str | None = None
    index_pattern: str = _DEFAULT_INDEX_PATTERN
    scroll_keep_alive: str = _DEFAULT_SCROLL_KEEP_ALIVE
    scroll_max_page_size: int = _DEFAULT_SCROLL_MAX_PAGE_SIZE
    connect_retries: int = _DEFAULT_CONNECT_RETRIES
    connect_retry_wait: float = _DEFAULT_CONNECT_RETRY_WAIT
    observability_metrics_enabled: bool = True
    observability_namespace: str = _DEFAULT_NAMESPACE
    observability_prometheus_enabled: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings by reading environment variables."""

        return cls(
            elasticsearch_url=os.getenv("ELASTICSEARCH_URL", _DEFAULT_ELASTICSEARCH_URL),
            elasticsearch_username=os.getenv("ELASTICSEARCH_USERNAME") or None,
            elasticsearch_password=os.getenv("ELASTICSEARCH_PASSWORD") or None,
            elasticsearch_timeout=_env_float("ELASTICSEARCH_TIMEOUT", _DEFAULT_ELASTICSEARCH_TIMEOUT),
            elasticsearch_verify_certs=_env_bool("ELASTICSEARCH_VERIFY_CERTS", True),
            template_endpoint=os.getenv("ELASTICSEARCH_TEMPLATE_ENDPOINT", _DEFAULT_TEMPLATE_ENDPOINT),
            delete_all_indices=_env_bool("FIXTURE_DELETE_ALL_INDICES", False),
            create_indices=_env_bool("FIXTURE_CREATE_INDICES", False),
            index_settings_path=os.getenv("FIXTURE_INDEX_SETTINGS_PATH") or None,
            templates_dir=os.getenv("FIXTURE_TEMPLATES_DIR") or None,
            index_pattern=os.getenv("FIXTURE_INDEX_PATTERN", _DEFAULT_INDEX_PATTERN),
            scroll_keep_alive=os.getenv("FIXTURE_SCROLL_KEEP_ALIVE", _DEFAULT_SCROLL_KEEP_ALIVE),
            scroll_max_page_size=max(
                1, _env_int("FIXTURE_SCROLL_MAX_PAGE_SIZE", _DEFAULT_SCROLL_MAX_PAGE_SIZE)
            ),
            connect_retries=max(1, _env_int("ELASTICSEARCH_CONNECT_RETRIES", _DEFAULT_CONNECT_RETRIES)),
            connect_retry_wait=max(
                0.0, _env_float("ELASTICSEARCH_CONNECT_RETRY_WAIT", _DEFAULT_CONNECT_RETRY_WAIT)
            ),
            observability_metrics_enabled=_env_bool("OBSERVABILITY_METRICS_ENABLED", True),
            observability_namespace=os.getenv("OBSERVABILITY_NAMESPACE", _DEFAULT_NAMESPACE),
            observability_prometheus_enabled=_env_bool("OBSERVABILITY_PROMETHEUS_ENABLED", False),
        )

    def http_client_kwargs(self) -> dict[str, Any]:
        """Return keyword arguments for ``httpx.Client``."""

        kwargs: dict[str, Any] = {
            "base_url": self.elasticsearch_url.rstrip("/"),
            "timeout": self.elasticsearch_timeout,
            "verify": self.elasticsearch_verify_certs,
        }
        if self.elasticsearch_username:
            kwargs["auth"] = (self.elasticsearch_username, self.elasticsearch_password or "")
        return kwargs

    def load_index_settings(self) -> dict[str, Any]:
        """Return the index settings body, or an empty mapping when none is configured."""

        if not self.index_settings_path:
            return {}
        return _read_structured_file(Path(self.index_settings_path))

    def load_templates(self) -> dict[str, dict[str, Any]]:
        """Return index templates keyed by file stem from ``templates_dir``."""

        if not self.templates_dir:
            return {}
        directory = Path(self.templates_dir)
        if not directory.is_dir():
            msg = f"Templates directory {directory} does not exist."
            raise ValueError(msg)
        templates: dict[str, dict[str, Any]] = {}
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix.lower() in _STRUCTURED_SUFFIXES:
                if path.stem in templates:
                    msg = f"Duplicate template name '{path.stem}' in {directory}."
                    raise ValueError(msg)
                templates[path.stem] = _read_structured_file(path)
        return templates
