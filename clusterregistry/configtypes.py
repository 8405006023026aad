"""Configuration documents of the config API group for the client and the sync manager."""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from clusterregistry.registry import (
    _BOOL,
    _INT,
    _STR_MAP,
    Model,
    _Codec,
    _field,
    _List,
    _many,
    _Map,
    _mapping,
    _nested,
    _Nested,
    _Optional,
    _text,
)
from clusterregistry.schema import GroupVersion, SchemaError

GROUP_VERSION = GroupVersion("config.registry.ethos.adobe.com", "v1")

_NANOS_PER_SECOND = 1_000_000_000
_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": _NANOS_PER_SECOND,
    "m": 60 * _NANOS_PER_SECOND,
    "h": 3600 * _NANOS_PER_SECOND,
}
_PART = re.compile("([0-9]*)(?:\\.([0-9]*))?(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")


def _parse_nanos(text: str) -> int:
    original = text
    sign = 1
    if text and text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return 0
    if not text:
        raise SchemaError(f"invalid duration {original!r}")
    total = 0
    pos = 0
    while pos < len(text):
        match = _PART.match(text, pos)
        if match is None or not (match.group(1) or match.group(2)):
            raise SchemaError(f"invalid duration {original!r}")
        unit = _UNITS[match.group(3)]
        total += int(match.group(1) or 0) * unit
        frac = match.group(2)
        if frac:
            total += int(frac) * unit // 10 ** len(frac)
        pos = match.end()
    return sign * total


def parse_duration(text: str) -> float:
    """Parse a duration such as ``1h30m`` or ``250ms`` into seconds."""
    if not isinstance(text, str):
        raise SchemaError(f"invalid duration {text!r}")
    return _parse_nanos(text) / _NANOS_PER_SECOND


def _fraction(value: int, precision: int) -> tuple[int, str]:
    whole, frac = divmod(value, 10**precision)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return whole, f".{digits}" if digits else ""


def format_duration(seconds: float) -> str:
    """Format seconds the way durations are written in configuration, e.g. ``1h0m0s``."""
    nanos = round(seconds * _NANOS_PER_SECOND)
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        whole, frac = _fraction(nanos, 3)
        return f"{sign}{whole}{frac}\u00b5s"
    if nanos < _NANOS_PER_SECOND:
        whole, frac = _fraction(nanos, 6)
        return f"{sign}{whole}{frac}ms"
    whole_seconds, frac = _fraction(nanos, 9)
    text = f"{whole_seconds % 60}{frac}s"
    minutes = whole_seconds // 60
    if minutes:
        text = f"{minutes % 60}m{text}"
        hours = minutes // 60
        if hours:
            text = f"{hours}h{text}"
    return sign + text


class _Duration(_Codec):
    """A duration written as text, held as seconds."""

    def decode(self, value: Any, path: str) -> Any:
        if not isinstance(value, str):
            raise SchemaError(f"{path}: expected a duration string, got {type(value).__name__}")
        try:
            return parse_duration(value)
        except SchemaError as exc:
            raise SchemaError(f"{path}: {exc}") from None

    def encode(self, value: Any) -> Any:
        return format_duration(value)

    def is_empty(self, value: Any) -> bool:
        return False


class _Nanoseconds(_Codec):
    """A duration written as an integer count of nanoseconds, held as seconds."""

    def decode(self, value: Any, path: str) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SchemaError(f"{path}: expected an integer, got {type(value).__name__}")
        return value / _NANOS_PER_SECOND

    def encode(self, value: Any) -> Any:
        return round(value * _NANOS_PER_SECOND)

    def is_empty(self, value: Any) -> bool:
        return False


_DURATION = _Duration()


def _maybe_duration(name: str) -> Any:
    return _field(name, _Optional(_DURATION), omitempty=True, default=None)


@dataclass
class WatchedGVK(Model):
    """A group, version and kind to watch."""

    group: str = _text("group")
    version: str = _text("version")
    kind: str = _text("kind")


@dataclass
class LeaderElectionConfiguration(Model):
    """Leader election settings of a controller manager."""

    leader_elect: bool | None = _field("leaderElect", _Optional(_BOOL), default=None)
    lease_duration: float = _field("leaseDuration", _DURATION, default=0.0)
    renew_deadline: float = _field("renewDeadline", _DURATION, default=0.0)
    retry_period: float = _field("retryPeriod", _DURATION, default=0.0)
    resource_lock: str = _text("resourceLock")
    resource_name: str = _text("resourceName")
    resource_namespace: str = _text("resourceNamespace")


@dataclass
class ControllerConfigurationSpec(Model):
    """Global settings for the controllers registered with a manager."""

    group_kind_concurrency: dict[str, int] = _mapping(
        "groupKindConcurrency", _Map(_INT), omitempty=True
    )
    cache_sync_timeout: float | None = _field(
        "cacheSyncTimeout", _Optional(_Nanoseconds()), omitempty=True, default=None
    )
    recover_panic: bool | None = _field(
        "recoverPanic", _Optional(_BOOL), omitempty=True, default=None
    )


@dataclass
class ControllerMetrics(Model):
    """Where the controller serves its metrics."""

    bind_address: str = _text("bindAddress", omitempty=True)


@dataclass
class ControllerHealth(Model):
    """Where and under which names the controller serves health probes."""

    health_probe_bind_address: str = _text("healthProbeBindAddress", omitempty=True)
    readiness_endpoint_name: str = _text("readinessEndpointName", omitempty=True)
    liveness_endpoint_name: str = _text("livenessEndpointName", omitempty=True)


@dataclass
class ControllerWebhook(Model):
    """The webhook server of the controller."""

    port: int | None = _field("port", _Optional(_INT), omitempty=True, default=None)
    host: str = _text("host", omitempty=True)
    cert_dir: str = _text("certDir", omitempty=True)


@dataclass
class _TypeMeta(Model):
    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)


@dataclass
class ControllerManager(Model):
    """Settings shared by every controller manager configuration."""

    sync_period: float | None = _maybe_duration("syncPeriod")
    leader_election: LeaderElectionConfiguration | None = _field(
        "leaderElection", _Optional(_Nested(LeaderElectionConfiguration)),
        omitempty=True, default=None,
    )
    cache_namespace: str = _text("cacheNamespace", omitempty=True)
    graceful_shutdown_timeout: float | None = _maybe_duration("gracefulShutDown")
    controller: ControllerConfigurationSpec | None = _field(
        "controller", _Optional(_Nested(ControllerConfigurationSpec)),
        omitempty=True, default=None,
    )
    metrics: ControllerMetrics = _nested("metrics", ControllerMetrics)
    health: ControllerHealth = _nested("health", ControllerHealth)
    webhook: ControllerWebhook = _nested("webhook", ControllerWebhook)

    def complete(self) -> ControllerManager:
        """Return the controller manager settings as a standalone copy."""
        return ControllerManager(
            **{f.name: copy.deepcopy(getattr(self, f.name)) for f in fields(ControllerManager)}
        )


@dataclass
class ControllerManagerConfiguration(ControllerManager, _TypeMeta):
    """A controller manager configuration document."""


@dataclass
class AlertRule(Model):
    """Actions taken when an alert fires or resolves."""

    alert_name: str = _text("alertName")
    on_firing: dict[str, str] = _mapping("onFiring", _STR_MAP)
    on_resolved: dict[str, str] = _mapping("onResolved", _STR_MAP)


@dataclass
class AlertmanagerWebhookConfig(Model):
    """The alertmanager webhook endpoint and its rules."""

    bind_address: str = _text("bindAddress")
    alert_map: list[AlertRule] = _many("alertMap", _List(_Nested(AlertRule)))


@dataclass
class ServiceMetadataConfig(Model):
    """Which kinds are watched for service metadata, and how services are identified."""

    watched_gvks: list[WatchedGVK] = _many("watchedGVKs", _List(_Nested(WatchedGVK)))
    service_id_annotation: str = _text("serviceIdAnnotation")


def _decode_document(cls: type[Model], data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise SchemaError(f"{cls.__name__}: expected an object, got {type(data).__name__}")
    api_version = data.get("apiVersion")
    if api_version and api_version != str(GROUP_VERSION):
        raise SchemaError(
            f"{cls.__name__}: unexpected apiVersion {api_version!r}, expected {GROUP_VERSION}"
        )
    kind = data.get("kind")
    if kind and kind != cls.__name__:
        raise SchemaError(f"{cls.__name__}: unexpected kind {kind!r}")
    return cls._decode(data, cls.__name__)


def _encode_document(doc: Model) -> dict[str, Any]:
    body = Model.to_dict(doc)
    body.pop("apiVersion", None)
    body.pop("kind", None)
    return {"apiVersion": str(GROUP_VERSION), "kind": type(doc).__name__, **body}


@dataclass
class ClientConfig(ControllerManager, _TypeMeta):
    """Configuration of the registry client."""

    namespace: str = _text("namespace", omitempty=True)
    alertmanager_webhook: AlertmanagerWebhookConfig = _nested(
        "alertmanagerWebhook", AlertmanagerWebhookConfig
    )
    service_metadata: ServiceMetadataConfig = _nested(
        "serviceMetadata", ServiceMetadataConfig
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        """Read a ClientConfig document, rejecting a foreign apiVersion or kind."""
        return _decode_document(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Write the configuration as a document with apiVersion and kind set."""
        return _encode_document(self)


@dataclass
class SyncConfig(ControllerManager, _TypeMeta):
    """Configuration of the sync manager."""

    namespace: str = _text("namespace", omitempty=True)
    watched_gvks: list[WatchedGVK] = _many("watchedGVKs", _List(_Nested(WatchedGVK)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SyncConfig:
        """Read a SyncConfig document, rejecting a foreign apiVersion or kind."""
        return _decode_document(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Write the configuration as a document with apiVersion and kind set."""
        return _encode_document(self)