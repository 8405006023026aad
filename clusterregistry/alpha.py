"""Objects of the registry v1alpha1 API group: cluster syncs and service metadata watchers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from clusterregistry.registry import (
    _STR,
    _STR_LIST,
    _STR_MAP,
    Model,
    ObjectMeta,
    _field,
    _List,
    _Map,
    _many,
    _mapping,
    _nested,
    _Nested,
    _Optional,
    _Raw,
    _text,
)
from clusterregistry.schema import GroupVersion, GroupVersionKind, parse_group_version

GROUP_VERSION = GroupVersion("registry.ethos.adobe.com", "v1alpha1")


@dataclass
class LabelSelector(Model):
    """A label query over a set of resources."""

    match_labels: dict[str, str] = _mapping("matchLabels", _STR_MAP, omitempty=True)
    match_expressions: list[dict[str, Any]] = _many(
        "matchExpressions", _List(_Map(_Raw())), omitempty=True
    )


@dataclass
class WatchedResource(Model):
    """A resource whose changes are synced into the registry."""

    kind: str = _text("kind")
    api_version: str = _text("apiVersion")
    namespace: str = _text("namespace")
    name: str = _text("name", omitempty=True)
    label_selector: LabelSelector | None = _field(
        "labelSelector", _Optional(_Nested(LabelSelector)), omitempty=True, default=None
    )

    def gvk(self) -> GroupVersionKind:
        """Return the group, version and kind of the watched resource."""
        return parse_group_version(self.api_version).with_kind(self.kind)


@dataclass
class ClusterSyncSpec(Model):
    """The desired state of a ClusterSync."""

    watched_resources: list[WatchedResource] = _many(
        "watchedResources", _List(_Nested(WatchedResource))
    )
    initial_data: str = _text("initialData", omitempty=True)


def _maybe_text(name: str) -> Any:
    return _field(name, _Optional(_STR), omitempty=True, default=None)


@dataclass
class ClusterSyncStatus(Model):
    """The observed state of a ClusterSync."""

    last_sync_time: str | None = _maybe_text("lastSyncTime")
    last_sync_status: str | None = _maybe_text("lastSyncStatus")
    last_sync_error: str | None = _maybe_text("lastSyncError")
    synced_data: str | None = _maybe_text("syncedData")
    synced_data_hash: str | None = _maybe_text("syncedDataHash")


@dataclass
class ClusterSync(Model):
    """A ClusterSync object."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: ObjectMeta = _nested("metadata", ObjectMeta)
    spec: ClusterSyncSpec = _nested("spec", ClusterSyncSpec)
    status: ClusterSyncStatus = _nested("status", ClusterSyncStatus)


@dataclass
class ClusterSyncList(Model):
    """A list of ClusterSync objects."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: dict[str, Any] = _field("metadata", _Raw(), factory=dict)
    items: list[ClusterSync] = _many("items", _List(_Nested(ClusterSync)))


@dataclass
class ObjectReference(Model):
    """A reference to an object by name, API version and kind."""

    name: str = _text("name")
    api_version: str = _text("apiVersion")
    kind: str = _text("kind")

    def __str__(self) -> str:
        return f"{self.name}/{self.api_version}/{self.kind}"


@dataclass
class WatchedField(Model):
    """A field copied from a source path to a destination path."""

    source: str = _text("src")
    destination: str = _text("dst")


@dataclass
class WatchedServiceObject(Model):
    """An object whose fields are copied into service metadata."""

    object_reference: ObjectReference = _nested("objectReference", ObjectReference)
    watched_fields: list[WatchedField] = _many(
        "watchedFields", _List(_Nested(WatchedField))
    )


@dataclass
class WatchedServiceObjectStatus(Model):
    """The observed state of one watched service object."""

    last_updated: str | None = _field("lastUpdated", _Optional(_STR), default=None)
    object_reference: ObjectReference = _nested("objectReference", ObjectReference)
    errors: list[str] = _many("errors", _STR_LIST)


@dataclass
class ServiceMetadataWatcherSpec(Model):
    """The desired state of a ServiceMetadataWatcher."""

    watched_service_objects: list[WatchedServiceObject] = _many(
        "watchedServiceObjects", _List(_Nested(WatchedServiceObject))
    )


@dataclass
class ServiceMetadataWatcherStatus(Model):
    """The observed state of a ServiceMetadataWatcher."""

    watched_service_objects: list[WatchedServiceObjectStatus] = _many(
        "watchedServiceObjects", _List(_Nested(WatchedServiceObjectStatus))
    )


@dataclass
class ServiceMetadataWatcher(Model):
    """A ServiceMetadataWatcher object."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: ObjectMeta = _nested("metadata", ObjectMeta)
    spec: ServiceMetadataWatcherSpec = _nested("spec", ServiceMetadataWatcherSpec)
    status: ServiceMetadataWatcherStatus = _nested("status", ServiceMetadataWatcherStatus)


@dataclass
class ServiceMetadataWatcherList(Model):
    """A list of ServiceMetadataWatcher objects."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: dict[str, Any] = _field("metadata", _Raw(), factory=dict)
    items: list[ServiceMetadataWatcher] = _many(
        "items", _List(_Nested(ServiceMetadataWatcher))
    )