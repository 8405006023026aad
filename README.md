# clusterregistry

Data models and helpers for a registry of Kubernetes clusters:

- the resource types that describe a cluster, and their conversion to and
  from JSON-shaped dictionaries;
- the rules for merging one cluster spec into another;
- the `ClusterSync` and `ServiceMetadataWatcher` resources;
- the configuration documents of the registry client and the sync manager,
  and how they fill in controller manager options;
- a command that turns an RSA certificate into a JSON Web Key Set.

## Installation

```
pip install clusterregistry
```

Tests run with `pip install clusterregistry[test]` and `pytest`.

## Identifiers

`clusterregistry.schema` has `GroupVersion` and `GroupVersionKind`.
`parse_group_version("registry.ethos.adobe.com/v1")` splits a group from its
version; a bare `"v1"` gives an empty group, and a string with more than one
`/` raises `SchemaError`. `GroupVersion.with_kind(kind)` and
`GroupVersionKind.group_version()` convert between the two.

## Cluster resources

`clusterregistry.registry` holds `Cluster`, `ClusterList` and `ClusterSpec`
with their parts: `APIServer`, `AllowedOnboardingTeam`, `Extra`, `Tier`,
`VirtualNetwork`, `PeerVirtualNetwork`, `Capacity`, `AvailabilityZone` and
`ObjectMeta`. Every model derives from `Model`, whose `from_dict` and
`to_dict` use the JSON field names of the manifests (`shortName`,
`apiServer`, `virtualNetworks`, `services`, ...). Missing or `null` fields
keep their defaults; a value of the wrong type raises `SchemaError`; fields
marked optional in the manifests are left out of `to_dict` when empty.

```python
from clusterregistry.registry import Cluster

cluster = Cluster.from_dict(manifest)
print(cluster.spec.name, cluster.spec.status)
data = cluster.to_dict()
```

## Merging cluster specs

`clusterregistry.merge.merge_spec(dst, src)` merges `src` into `dst` in
place and returns `dst`. Non-empty values of `src` replace those of `dst`
and maps are merged key by key. Tiers already in `dst` are merged with the
source tier of the same name; source tiers with no match are ignored.

`merge_tiers(dst, src)` does that tier step on its own: each matched tier
has its empty fields filled from the source tier, and its lists (such as
`taints`) appended to.

## Syncs and service metadata watchers

`clusterregistry.alpha` defines `ClusterSync`, `ClusterSyncList`,
`ClusterSyncSpec`, `ClusterSyncStatus`, `WatchedResource` and
`LabelSelector`, and `ServiceMetadataWatcher` with its list, spec, status,
`WatchedServiceObject`, `WatchedServiceObjectStatus`, `WatchedField` and
`ObjectReference`. `WatchedResource.gvk()` returns the `GroupVersionKind`
of the watched resource; `str(ObjectReference)` is `name/apiVersion/kind`.

## Controller manager configuration

`clusterregistry.configtypes` defines `ClientConfig` and `SyncConfig`
(apiVersion `config.registry.ethos.adobe.com/v1`), built on
`ControllerManager` with `LeaderElectionConfiguration`,
`ControllerConfigurationSpec`, `ControllerMetrics`, `ControllerHealth` and
`ControllerWebhook`. Their `from_dict` rejects another apiVersion or kind;
`to_dict` always writes both. Durations such as `leaseDuration` are written
as text (`"15s"`, `"1h30m"`) and held as seconds; `parse_duration` and
`format_duration` convert between the two. `cacheSyncTimeout` is written
as an integer number of nanoseconds.

`clusterregistry.configload` reads and applies them:

```python
from clusterregistry.configload import ManagerOptions, encode, new_client_config

options, cfg = new_client_config(ManagerOptions(), "client-config.yaml", None)
print(encode(cfg))
```

- `decode(cls, text)` and `load_file(cls, path)` read a YAML or JSON
  document, which must carry `apiVersion` and `kind`.
- `new_client_config(default_options, config_file, defaults)` and
  `new_sync_config(...)` lay the file over a copy of `defaults`; with no
  file, the defaults are used as they are. They return the options and the
  configuration.
- `apply_to_options(cfg, options)` returns a copy of `ManagerOptions` in
  which only unset values are filled in from the configuration. A
  `WebhookServerOptions` is set when the webhook has a host, a positive
  port and a certificate directory.
- `encode(cfg)` renders a configuration as YAML with sorted keys.

Every failure to read, parse or decode a file raises `ConfigError`, as does
a webhook host given without a port.

## Generating a JWKS

```
clusterregistry-jwks certificate.pem
```

prints, as compact JSON, a key set holding the certificate's RSA public key
(`n`, `e`), its SHA-256 JWK thumbprint as `kid`, the SHA-1 fingerprint as
`x5t` and the certificate as `x5c`, with `alg` `RS256` and `use` `sig`. The
same is available as `clusterregistry.jwks.build_jwks(pem)`, returning a
`JWKSet` whose `to_json()` gives that text; `rsa_thumbprint(public_key)`
computes the thumbprint alone.

## What this package does not do

It holds the data types and the configuration logic only. It does not run
an API server, store clusters in a database, talk to a Kubernetes cluster
or a message queue, run controllers or reconcilers, or start a webhook or
metrics server: `ManagerOptions` and `WebhookServerOptions` are plain data
for whatever program starts those.