"""
================================================================================
Run Configuration
================================================================================

Immutable run parameters for the UI automation framework.

Features:
    - JSON configuration files with environment-tagged variants
      (framework-config.json, framework-config-dev.json, ...)
    - Layered resolution: built-in defaults <- default file <- tagged file
    - Environment variable overrides (UI_BASE_URL, UI_BROWSER, UI_HEADLESS)
    - Single initialization under concurrent first access

Configuration loading order:
    1. Built-in defaults (explicit=10s, implicit=2s, page load=30s)
    2. Default configuration file (config/framework-config.json)
    3. Environment-specific file (config/framework-config-{env}.json),
       where {env} comes from $env or $FRAMEWORK_ENV
    4. Environment variable overrides

A layer that is missing or fails to parse is skipped and logged; loading
never raises.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from .exceptions import ConfigLoadError, UnsupportedBackendError


DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_BASE_NAME = "framework-config"

# Process variables selecting the environment tag, in priority order
ENV_TAG_VARIABLES = ("env", "FRAMEWORK_ENV")


class BackendKind(str, Enum):
    """Browser engines a session can be created for."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @classmethod
    def parse(cls, value: Any, default: "BackendKind" = None) -> "BackendKind":
        """
        Lenient conversion used for configuration values.

        Matching is case-insensitive and whitespace-trimmed; anything that
        does not match falls back to ``default`` (CHROMIUM).
        """
        default = default or cls.CHROMIUM
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return default
        normalized = value.strip().lower()
        if normalized in _BACKEND_ALIASES:
            return _BACKEND_ALIASES[normalized]
        logger.warning(f"Unknown browser '{value}', falling back to {default.value}")
        return default

    @classmethod
    def require(cls, value: Any) -> "BackendKind":
        """
        Strict conversion used for explicit session requests.

        Raises:
            UnsupportedBackendError: If value names no known backend
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() in _BACKEND_ALIASES:
            return _BACKEND_ALIASES[value.strip().lower()]
        raise UnsupportedBackendError(value)


_BACKEND_ALIASES: Dict[str, BackendKind] = {
    "chromium": BackendKind.CHROMIUM,
    "chrome": BackendKind.CHROMIUM,
    "edge": BackendKind.CHROMIUM,
    "firefox": BackendKind.FIREFOX,
    "ff": BackendKind.FIREFOX,
    "webkit": BackendKind.WEBKIT,
    "safari": BackendKind.WEBKIT,
}


class SinkKind(str, Enum):
    """Notification webhook flavours."""

    WECOM = "wecom"
    DINGTALK = "dingtalk"


_SINK_ALIASES: Dict[str, SinkKind] = {
    "wecom": SinkKind.WECOM,
    "wechat": SinkKind.WECOM,
    "wework": SinkKind.WECOM,
    "dingtalk": SinkKind.DINGTALK,
    "dingding": SinkKind.DINGTALK,
}


@dataclass(frozen=True)
class NotificationSink:
    """A webhook delivery target."""

    kind: SinkKind
    endpoint: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.endpoint.strip())


@dataclass(frozen=True)
class RunConfig:
    """
    Run parameters shared read-only by every worker thread.

    Attributes:
        base_url: Application URL opened when a session starts (optional)
        engine_kind: Default browser backend
        headless: Launch browsers without a window
        explicit_wait_seconds: Default deadline for explicit waits
        implicit_wait_seconds: Default timeout for element actions
        page_load_timeout_seconds: Navigation timeout
        notification_sinks: Ordered webhook targets for the suite summary
        max_retries: Extra attempts granted to a failing execution unit
        screenshots_dir: Where failure screenshots are written
    """

    base_url: Optional[str] = None
    engine_kind: BackendKind = BackendKind.CHROMIUM
    headless: bool = False
    explicit_wait_seconds: int = 10
    implicit_wait_seconds: int = 2
    page_load_timeout_seconds: int = 30
    notification_sinks: Tuple[NotificationSink, ...] = ()
    max_retries: int = 1
    screenshots_dir: str = "reports/screenshots"


# JSON key -> RunConfig field. Legacy keys of older config files map to the same fields.
_INT_FIELDS: Dict[str, str] = {
    "explicitWaitSeconds": "explicit_wait_seconds",
    "explicitWaitSec": "explicit_wait_seconds",
    "implicitWaitSeconds": "implicit_wait_seconds",
    "implicitWaitSec": "implicit_wait_seconds",
    "pageLoadTimeoutSeconds": "page_load_timeout_seconds",
    "pageLoadTimeoutSec": "page_load_timeout_seconds",
    "maxRetries": "max_retries",
}

_LEGACY_SINK_KEYS: Tuple[Tuple[str, SinkKind], ...] = (
    ("weComWebhookUrl", SinkKind.WECOM),
    ("dingTalkWebhookUrl", SinkKind.DINGTALK),
)


def _to_bool(value: Any, source: str, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "1", "yes", "on", "false", "0", "no", "off"):
        return value.strip().lower() in ("true", "1", "yes", "on")
    raise ConfigLoadError(source, f"'{key}' must be a boolean, got {value!r}")


def _to_non_negative_int(value: Any, source: str, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigLoadError(source, f"'{key}' must be a non-negative integer, got {value!r}")
    return value


def _parse_sinks(value: Any, source: str) -> Tuple[NotificationSink, ...]:
    if not isinstance(value, list):
        raise ConfigLoadError(source, "'notificationSinks' must be a list")

    sinks: List[NotificationSink] = []
    for entry in value:
        if not isinstance(entry, dict):
            raise ConfigLoadError(source, f"Invalid notification sink: {entry!r}")
        kind = _SINK_ALIASES.get(str(entry.get("kind", "")).strip().lower())
        if kind is None:
            raise ConfigLoadError(source, f"Unknown notification sink kind: {entry.get('kind')!r}")
        endpoint = entry.get("endpoint")
        if endpoint is not None and not isinstance(endpoint, str):
            raise ConfigLoadError(source, f"Sink endpoint must be a string: {endpoint!r}")
        sinks.append(NotificationSink(kind=kind, endpoint=endpoint))
    return tuple(sinks)


def normalize_document(document: Mapping[str, Any], source: str = "<memory>") -> Dict[str, Any]:
    """
    Convert one JSON configuration document into RunConfig field values.

    Keys with a null value are treated as absent. Unknown keys are ignored.

    Raises:
        ConfigLoadError: If a value has the wrong type or range
    """
    fields: Dict[str, Any] = {}

    for key, value in document.items():
        if value is None:
            continue

        if key in _INT_FIELDS:
            fields[_INT_FIELDS[key]] = _to_non_negative_int(value, source, key)
        elif key == "baseUrl":
            if not isinstance(value, str):
                raise ConfigLoadError(source, f"'baseUrl' must be a string, got {value!r}")
            fields["base_url"] = value.strip() or None
        elif key in ("engineKind", "browser"):
            fields["engine_kind"] = BackendKind.parse(value)
        elif key == "headless":
            fields["headless"] = _to_bool(value, source, key)
        elif key == "screenshotsDir":
            fields["screenshots_dir"] = str(value)

    if document.get("notificationSinks") is not None:
        fields["notification_sinks"] = _parse_sinks(document["notificationSinks"], source)
    elif any(document.get(key) is not None for key, _ in _LEGACY_SINK_KEYS):
        sinks: List[NotificationSink] = []
        for key, kind in _LEGACY_SINK_KEYS:
            endpoint = document.get(key)
            if endpoint is None:
                continue
            if not isinstance(endpoint, str):
                raise ConfigLoadError(source, f"'{key}' must be a string, got {endpoint!r}")
            sinks.append(NotificationSink(kind=kind, endpoint=endpoint))
        fields["notification_sinks"] = tuple(sinks)

    return fields


class ConfigSource:
    """
    Lazily built, process-wide RunConfig.

    The first thread calling ``load()`` performs the resolution; concurrent
    callers block on the guard and then all receive the same instance.

    Usage:
        >>> source = ConfigSource(config_dir=Path("config"))
        >>> config = source.load()
        >>> config.explicit_wait_seconds
        10
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        base_name: str = DEFAULT_BASE_NAME,
        env: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize configuration source.

        Args:
            config_dir: Directory holding the JSON files (default: ./config)
            base_name: File name stem, e.g. "framework-config"
            env: Explicit environment tag; overrides $env / $FRAMEWORK_ENV
            environ: Process environment (defaults to os.environ)
        """
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self.base_name = base_name
        self._explicit_env = env
        self._environ = environ if environ is not None else os.environ

        self._lock = threading.Lock()
        self._config: Optional[RunConfig] = None

    @property
    def env_tag(self) -> Optional[str]:
        """Environment tag in effect, or None when unset/blank."""
        candidates = [self._explicit_env] + [self._environ.get(name) for name in ENV_TAG_VARIABLES]
        for candidate in candidates:
            if candidate and candidate.strip():
                return candidate.strip()
        return None

    @property
    def default_path(self) -> Path:
        return self.config_dir / f"{self.base_name}.json"

    def tagged_path(self, env: str) -> Path:
        return self.config_dir / f"{self.base_name}-{env}.json"

    def load(self) -> RunConfig:
        """Return the cached RunConfig, resolving it on first use."""
        config = self._config
        if config is not None:
            return config

        with self._lock:
            if self._config is None:
                self._config = self._resolve()
            return self._config

    def reset(self) -> None:
        """Drop the cached configuration (used by tests)."""
        with self._lock:
            self._config = None

    def _resolve(self) -> RunConfig:
        fields: Dict[str, Any] = {}

        layers = [self.default_path]
        env = self.env_tag
        if env:
            logger.info(f"Environment tag '{env}' detected, trying {self.tagged_path(env).name}")
            layers.append(self.tagged_path(env))

        for path in layers:
            try:
                fields.update(self._read_layer(path))
                logger.info(f"Loaded configuration from {path}")
            except ConfigLoadError as e:
                logger.warning(f"{e}. Falling back to lower configuration layer.")

        fields.update(self._env_overrides())

        config = RunConfig(**fields)
        logger.debug(f"Resolved run configuration: {config}")
        return config

    def _read_layer(self, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise ConfigLoadError(str(path), "file not found")

        try:
            with open(path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigLoadError(str(path), str(e)) from e

        if not isinstance(document, dict):
            raise ConfigLoadError(str(path), "top-level JSON value must be an object")

        return normalize_document(document, str(path))

    def _env_overrides(self) -> Dict[str, Any]:
        """
        Read UI_* variables, e.g. UI_BROWSER=firefox overrides engineKind.

        Invalid values are ignored with a warning.
        """
        overrides: Dict[str, Any] = {}

        base_url = self._environ.get("UI_BASE_URL")
        if base_url is not None:
            overrides["base_url"] = base_url.strip() or None

        browser = self._environ.get("UI_BROWSER")
        if browser:
            overrides["engine_kind"] = BackendKind.parse(browser)

        headless = self._environ.get("UI_HEADLESS")
        if headless:
            try:
                overrides["headless"] = _to_bool(headless, "environment", "UI_HEADLESS")
            except ConfigLoadError as e:
                logger.warning(f"Ignoring override: {e}")

        return overrides


__all__ = [
    "BackendKind",
    "SinkKind",
    "NotificationSink",
    "RunConfig",
    "ConfigSource",
    "normalize_document",
    "DEFAULT_BASE_NAME",
    "ENV_TAG_VARIABLES",
]
