"""Loading, encoding and applying client and sync manager configuration files."""

from __future__ import annotations

import copy
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar, Union

import yaml

from clusterregistry.configtypes import ClientConfig, SyncConfig
from clusterregistry.schema import SchemaError

ConfigDocument = Union[ClientConfig, SyncConfig]
_C = TypeVar("_C", ClientConfig, SyncConfig)


class ConfigError(SchemaError):
    """Raised when a configuration file cannot be read, decoded or applied."""


@dataclass(frozen=True)
class WebhookServerOptions:
    """Where the webhook server listens and where it finds its certificates."""

    host: str
    port: int
    cert_dir: str


@dataclass
class ManagerOptions:
    """Options of a controller manager that a configuration file can fill in."""

    leader_election: bool = False
    leader_election_resource_lock: str = ""
    leader_election_namespace: str = ""
    leader_election_id: str = ""
    lease_duration: float | None = None
    renew_deadline: float | None = None
    retry_period: float | None = None
    metrics_bind_address: str = ""
    health_probe_bind_address: str = ""
    readiness_endpoint_name: str = ""
    liveness_endpoint_name: str = ""
    webhook_server: WebhookServerOptions | None = None
    cache_sync_timeout: float = 0.0
    group_kind_concurrency: dict[str, int] = field(default_factory=dict)


def _parse(cls: type, text: str | bytes) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"cannot parse {cls.__name__} document: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f"{cls.__name__} document must be an object")
    if not data.get("apiVersion"):
        raise ConfigError(f"{cls.__name__} document: 'apiVersion' is missing")
    if not data.get("kind"):
        raise ConfigError(f"{cls.__name__} document: 'kind' is missing")
    return dict(data)


def _from_dict(cls: type[_C], data: Mapping[str, Any]) -> _C:
    try:
        return cls.from_dict(data)
    except ConfigError:
        raise
    except SchemaError as exc:
        raise ConfigError(str(exc)) from exc


def _read(path: str | os.PathLike[str]) -> bytes:
    try:
        with open(os.path.normpath(path), "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {os.fspath(path)}: {exc}") from exc


def decode(cls: type[_C], text: str | bytes) -> _C:
    """Decode a YAML or JSON document of the given configuration class."""
    return _from_dict(cls, _parse(cls, text))


def load_file(cls: type[_C], path: str | os.PathLike[str]) -> _C:
    """Read and decode a configuration file of the given class."""
    return decode(cls, _read(path))


def encode(cfg: ConfigDocument) -> str:
    """Return the YAML representation of a configuration, with apiVersion and kind."""
    if not isinstance(cfg, (ClientConfig, SyncConfig)):
        raise ConfigError(f"unable to encode object of type {type(cfg).__name__}")
    return yaml.safe_dump(cfg.to_dict(), sort_keys=True, default_flow_style=False)


def _overlay(base: dict[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Lay ``update`` over ``base``: objects merge key by key, other values replace."""
    for key, value in update.items():
        current = base.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _overlay(current, value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _apply_leader_election(cfg: ConfigDocument, options: ManagerOptions) -> None:
    election = cfg.leader_election
    if election is None:
        return
    if not options.leader_election and election.leader_elect is not None:
        options.leader_election = election.leader_elect
    if not options.leader_election_resource_lock and election.resource_lock:
        options.leader_election_resource_lock = election.resource_lock
    if not options.leader_election_namespace and election.resource_namespace:
        options.leader_election_namespace = election.resource_namespace
    if not options.leader_election_id and election.resource_name:
        options.leader_election_id = election.resource_name
    if options.lease_duration is None and election.lease_duration:
        options.lease_duration = election.lease_duration
    if options.renew_deadline is None and election.renew_deadline:
        options.renew_deadline = election.renew_deadline
    if options.retry_period is None and election.retry_period:
        options.retry_period = election.retry_period


def _apply_webhook(cfg: ConfigDocument, options: ManagerOptions) -> None:
    hook = cfg.webhook
    if options.webhook_server is not None or not hook.host:
        return
    if hook.port is None:
        raise ConfigError("webhook host is set but its port is not")
    if hook.port > 0 and hook.cert_dir:
        options.webhook_server = WebhookServerOptions(
            host=hook.host, port=hook.port, cert_dir=hook.cert_dir
        )


def apply_to_options(cfg: ConfigDocument, options: ManagerOptions) -> ManagerOptions:
    """Return a copy of ``options`` with unset values filled in from ``cfg``."""
    result = replace(options, group_kind_concurrency=dict(options.group_kind_concurrency))
    _apply_leader_election(cfg, result)
    if not result.metrics_bind_address and cfg.metrics.bind_address:
        result.metrics_bind_address = cfg.metrics.bind_address
    health = cfg.health
    if not result.health_probe_bind_address and health.health_probe_bind_address:
        result.health_probe_bind_address = health.health_probe_bind_address
    if not result.readiness_endpoint_name and health.readiness_endpoint_name:
        result.readiness_endpoint_name = health.readiness_endpoint_name
    if not result.liveness_endpoint_name and health.liveness_endpoint_name:
        result.liveness_endpoint_name = health.liveness_endpoint_name
    _apply_webhook(cfg, result)
    controller = cfg.controller
    if controller is not None:
        if result.cache_sync_timeout == 0 and controller.cache_sync_timeout is not None:
            result.cache_sync_timeout = controller.cache_sync_timeout
        if not result.group_kind_concurrency and controller.group_kind_concurrency:
            result.group_kind_concurrency = dict(controller.group_kind_concurrency)
    return result


def _new_config(
    cls: type[_C],
    default_options: ManagerOptions | None,
    config_file: str | os.PathLike[str] | None,
    defaults: _C | None,
) -> tuple[ManagerOptions, _C]:
    if defaults is not None and not isinstance(defaults, cls):
        raise TypeError(f"defaults must be a {cls.__name__}, not {type(defaults).__name__}")
    options = default_options if default_options is not None else ManagerOptions()
    cfg = copy.deepcopy(defaults) if defaults is not None else cls()
    if config_file:
        document = _parse(cls, _read(config_file))
        cfg = _from_dict(cls, _overlay(cfg.to_dict(), document))
    return apply_to_options(cfg, options), cfg


def new_client_config(
    default_options: ManagerOptions | None,
    config_file: str | os.PathLike[str] | None,
    defaults: ClientConfig | None,
) -> tuple[ManagerOptions, ClientConfig]:
    """Build manager options and a ClientConfig from defaults and an optional file."""
    return _new_config(ClientConfig, default_options, config_file, defaults)


def new_sync_config(
    default_options: ManagerOptions | None,
    config_file: str | os.PathLike[str] | None,
    defaults: SyncConfig | None,
) -> tuple[ManagerOptions, SyncConfig]:
    """Build manager options and a SyncConfig from defaults and an optional file."""
    return _new_config(SyncConfig, default_options, config_file, defaults)