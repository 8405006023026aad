"""Cluster records of the registry API group, with JSON-shaped conversion."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import MISSING, dataclass, field, fields
from typing import Any

from clusterregistry.schema import GroupVersion, SchemaError

GROUP_VERSION = GroupVersion("registry.ethos.adobe.com", "v1")


class _Codec:
    def decode(self, value: Any, path: str) -> Any:
        return value

    def encode(self, value: Any) -> Any:
        return value

    def is_empty(self, value: Any) -> bool:
        return not value


class _Scalar(_Codec):
    def __init__(self, kind: type) -> None:
        self.kind = kind

    def decode(self, value: Any, path: str) -> Any:
        if isinstance(value, bool) != (self.kind is bool) or not isinstance(value, self.kind):
            raise SchemaError(
                f"{path}: expected {self.kind.__name__}, got {type(value).__name__}"
            )
        return value


class _Optional(_Codec):
    def __init__(self, inner: _Codec) -> None:
        self.inner = inner

    def decode(self, value: Any, path: str) -> Any:
        return self.inner.decode(value, path)

    def encode(self, value: Any) -> Any:
        return None if value is None else self.inner.encode(value)

    def is_empty(self, value: Any) -> bool:
        return value is None


class _List(_Codec):
    def __init__(self, item: _Codec) -> None:
        self.item = item

    def decode(self, value: Any, path: str) -> Any:
        if not isinstance(value, list):
            raise SchemaError(f"{path}: expected a list, got {type(value).__name__}")
        return [self.item.decode(v, f"{path}[{i}]") for i, v in enumerate(value)]

    def encode(self, value: Any) -> Any:
        return [self.item.encode(v) for v in value]


class _Map(_Codec):
    def __init__(self, item: _Codec) -> None:
        self.item = item

    def decode(self, value: Any, path: str) -> Any:
        if not isinstance(value, Mapping):
            raise SchemaError(f"{path}: expected an object, got {type(value).__name__}")
        return {str(k): self.item.decode(v, f"{path}.{k}") for k, v in value.items()}

    def encode(self, value: Any) -> Any:
        return {k: self.item.encode(v) for k, v in value.items()}


class _Nested(_Codec):
    def __init__(self, cls: type[Model]) -> None:
        self.cls = cls

    def decode(self, value: Any, path: str) -> Any:
        return self.cls._decode(value, path)

    def encode(self, value: Any) -> Any:
        return value.to_dict()

    def is_empty(self, value: Any) -> bool:
        return False


class _Raw(_Codec):
    def decode(self, value: Any, path: str) -> Any:
        return copy.deepcopy(value)

    def encode(self, value: Any) -> Any:
        return copy.deepcopy(value)

    def is_empty(self, value: Any) -> bool:
        return False


class _Empty(_Codec):
    """An object with no known fields: whatever it holds is dropped."""

    def decode(self, value: Any, path: str) -> Any:
        if not isinstance(value, Mapping):
            raise SchemaError(f"{path}: expected an object, got {type(value).__name__}")
        return {}

    def encode(self, value: Any) -> Any:
        return {}

    def is_empty(self, value: Any) -> bool:
        return False


_STR = _Scalar(str)
_INT = _Scalar(int)
_BOOL = _Scalar(bool)
_STR_MAP = _Map(_STR)
_STR_LIST = _List(_STR)


def _field(name: str, codec: _Codec, *, omitempty: bool = False,
           default: Any = MISSING, factory: Any = MISSING) -> Any:
    meta = {"json": name, "codec": codec, "omitempty": omitempty}
    if factory is not MISSING:
        return field(default_factory=factory, metadata=meta)
    return field(default=default, metadata=meta)


def _text(name: str, omitempty: bool = False) -> Any:
    return _field(name, _STR, omitempty=omitempty, default="")


def _number(name: str, omitempty: bool = False) -> Any:
    return _field(name, _INT, omitempty=omitempty, default=0)


def _flag(name: str, omitempty: bool = False) -> Any:
    return _field(name, _BOOL, omitempty=omitempty, default=False)


def _many(name: str, codec: _Codec, omitempty: bool = False) -> Any:
    return _field(name, codec, omitempty=omitempty, factory=list)


def _mapping(name: str, codec: _Codec, omitempty: bool = False) -> Any:
    return _field(name, codec, omitempty=omitempty, factory=dict)


def _nested(name: str, cls: type[Model]) -> Any:
    return _field(name, _Nested(cls), factory=cls)


class Model:
    """Base for records that convert to and from JSON-shaped dictionaries."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Any:
        return cls._decode(data, cls.__name__)

    @classmethod
    def _decode(cls, data: Any, path: str) -> Any:
        if not isinstance(data, Mapping):
            raise SchemaError(f"{path}: expected an object, got {type(data).__name__}")
        kwargs = {}
        for f in fields(cls):
            key = f.metadata["json"]
            value = data.get(key)
            if value is None:
                continue
            kwargs[f.name] = f.metadata["codec"].decode(value, f"{path}.{key}")
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for f in fields(self):
            codec = f.metadata["codec"]
            value = getattr(self, f.name)
            if f.metadata["omitempty"] and codec.is_empty(value):
                continue
            out[f.metadata["json"]] = codec.encode(value)
        return out


@dataclass
class APIServer(Model):
    """Endpoint and CA data of a cluster's Kubernetes API."""

    endpoint: str = _text("endpoint")
    certificate_authority_data: str = _text("certificateAuthorityData")


@dataclass
class AllowedOnboardingTeam(Model):
    """Git teams and LDAP groups allowed to onboard onto a cluster."""

    name: str = _text("name")
    git_teams: list[str] = _many("gitTeams", _STR_LIST, omitempty=True)
    ldap_groups: list[str] = _many("ldapGroups", _STR_LIST, omitempty=True)


@dataclass
class Extra(Model):
    """Extra information, not necessarily about the cluster itself."""

    domain_name: str = _text("domainName")
    lb_endpoints: dict[str, str] = _mapping("lbEndpoints", _STR_MAP)
    logging_endpoints: list[dict[str, str]] = _many(
        "loggingEndpoints", _List(_STR_MAP), omitempty=True
    )
    ecr_iam_arns: dict[str, list[str]] = _mapping(
        "ecrIamArns", _Map(_STR_LIST), omitempty=True
    )
    egress_ports: str = _text("egressPorts", omitempty=True)
    nfs_info: list[dict[str, str]] = _many("nfsInfo", _List(_STR_MAP), omitempty=True)
    extended_region: str = _text("extendedRegion", omitempty=True)
    oidc_issuer: str = _text("oidcIssuer", omitempty=True)
    namespace_profile_infra_type: str = _text("namespaceProfileInfraType", omitempty=True)


@dataclass
class Tier(Model):
    """A group of nodes sharing instance type and capacity limits."""

    name: str = _text("name")
    instance_type: str = _text("instanceType")
    container_runtime: str = _text("containerRuntime")
    min_capacity: int = _number("minCapacity")
    max_capacity: int = _number("maxCapacity")
    labels: dict[str, str] = _mapping("labels", _STR_MAP, omitempty=True)
    taints: list[str] = _many("taints", _STR_LIST, omitempty=True)
    enable_kata_support: bool = _flag("enableKataSupport", omitempty=True)
    kernel_parameters: dict[str, str] = _mapping(
        "kernelParameters", _STR_MAP, omitempty=True
    )


@dataclass
class VirtualNetwork(Model):
    """A virtual private network and its CIDRs."""

    id: str = _text("id")
    cidrs: list[str] = _many("cidrs", _STR_LIST)


@dataclass
class PeerVirtualNetwork(Model):
    """A network peered with the cluster at onboarding."""

    id: str = _text("id", omitempty=True)
    cidrs: list[str] = _many("cidrs", _STR_LIST, omitempty=True)
    owner_id: str = _text("ownerID", omitempty=True)


@dataclass
class Capacity(Model):
    """Capacity figures of a cluster."""

    last_updated: str = _text("lastUpdated")
    cluster_capacity: int = _number("clusterCapacity")
    cluster_provisioning: int = _number("clusterProvisioning")
    max_bqu_per_request: int = _number("maxBquPerRequest")
    cluster_max_bqu: int = _number("clusterMaxBqu")
    cluster_current_bqu: int = _number("clusterCurrentBqu")


@dataclass
class AvailabilityZone(Model):
    """An availability zone of the cluster."""

    name: str = _text("name")
    id: str = _text("id", omitempty=True)


@dataclass
class ClusterSpec(Model):
    """The desired state of a registered cluster."""

    name: str = _text("name")
    short_name: str = _text("shortName")
    api_server: APIServer = _nested("apiServer", APIServer)
    region: str = _text("region")
    cloud_type: str = _text("cloudType")
    cloud_provider_region: str = _text("cloudProviderRegion")
    environment: str = _text("environment")
    business_unit: str = _text("businessUnit")
    chargeback_business_unit: str = _text("chargebackBusinessUnit", omitempty=True)
    charged_back: bool | None = _field(
        "chargedBack", _Optional(_BOOL), omitempty=True, default=None
    )
    managing_org: str = _text("managingOrg")
    offering: list[str] = _many("offering", _STR_LIST)
    account_id: str = _text("accountId")
    tiers: list[Tier] = _many("tiers", _List(_Nested(Tier)))
    virtual_networks: list[VirtualNetwork] = _many(
        "virtualNetworks", _List(_Nested(VirtualNetwork))
    )
    registered_at: str = _text("registeredAt")
    status: str = _text("status")
    phase: str = _text("phase")
    maintenance_group: str = _text("maintenanceGroup")
    argo_instance: str = _text("argoInstance")
    type: str = _text("type", omitempty=True)
    extra: Extra = _nested("extra", Extra)
    allowed_onboarding_teams: list[AllowedOnboardingTeam] = _many(
        "allowedOnboardingTeams", _List(_Nested(AllowedOnboardingTeam)), omitempty=True
    )
    capabilities: list[str] = _many("capabilities", _STR_LIST, omitempty=True)
    peer_virtual_networks: list[PeerVirtualNetwork] = _many(
        "peerVirtualNetworks", _List(_Nested(PeerVirtualNetwork)), omitempty=True
    )
    last_updated: str = _text("lastUpdated")
    tags: dict[str, str] = _mapping("tags", _STR_MAP, omitempty=True)
    capacity: Capacity = _nested("capacity", Capacity)
    service_metadata: dict[str, dict[str, dict[str, str]]] = _mapping(
        "services", _Map(_Map(_STR_MAP)), omitempty=True
    )
    availability_zones: list[AvailabilityZone] = _many(
        "availabilityZones", _List(_Nested(AvailabilityZone)), omitempty=True
    )


@dataclass
class ObjectMeta(Model):
    """The commonly used part of an object's metadata."""

    name: str = _text("name", omitempty=True)
    namespace: str = _text("namespace", omitempty=True)
    uid: str = _text("uid", omitempty=True)
    resource_version: str = _text("resourceVersion", omitempty=True)
    generation: int = _number("generation", omitempty=True)
    creation_timestamp: str = _text("creationTimestamp", omitempty=True)
    labels: dict[str, str] = _mapping("labels", _STR_MAP, omitempty=True)
    annotations: dict[str, str] = _mapping("annotations", _STR_MAP, omitempty=True)


@dataclass
class Cluster(Model):
    """A cluster object as stored in the registry."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: ObjectMeta = _nested("metadata", ObjectMeta)
    spec: ClusterSpec = _nested("spec", ClusterSpec)
    status: dict[str, Any] = _field("status", _Empty(), factory=dict)


@dataclass
class ClusterList(Model):
    """A list of clusters."""

    api_version: str = _text("apiVersion", omitempty=True)
    kind: str = _text("kind", omitempty=True)
    metadata: dict[str, Any] = _field("metadata", _Raw(), factory=dict)
    items: list[Cluster] = _many("items", _List(_Nested(Cluster)))