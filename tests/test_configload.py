import pytest
import yaml

from clusterregistry.configload import (
    ConfigError,
    ManagerOptions,
    WebhookServerOptions,
    apply_to_options,
    decode,
    encode,
    load_file,
    new_client_config,
    new_sync_config,
)
from clusterregistry.configtypes import (
    AlertmanagerWebhookConfig,
    ClientConfig,
    ControllerConfigurationSpec,
    ControllerWebhook,
    LeaderElectionConfiguration,
    ServiceMetadataConfig,
    SyncConfig,
    WatchedGVK,
)
from clusterregistry.schema import SchemaError

CLIENT_DOC = """\
apiVersion: config.registry.ethos.adobe.com/v1
kind: ClientConfig
namespace: from-file
alertmanagerWebhook:
  alertMap:
    - alertName: Probe
      onFiring: {state: down}
      onResolved: {state: up}
leaderElection:
  leaderElect: true
  resourceLock: leases
  resourceName: lock-name
  leaseDuration: 15s
"""


def _client_defaults():
    return ClientConfig(
        namespace="cluster-registry",
        alertmanager_webhook=AlertmanagerWebhookConfig(bind_address=":9092"),
        service_metadata=ServiceMetadataConfig(service_id_annotation="adobe.serviceid"),
    )


def test_decode_client_config():
    cfg = decode(ClientConfig, CLIENT_DOC)
    assert cfg.namespace == "from-file"
    assert cfg.alertmanager_webhook.alert_map[0].alert_name == "Probe"
    assert cfg.leader_election.lease_duration == 15.0
    assert cfg.leader_election.leader_elect is True


def test_decode_requires_kind():
    with pytest.raises(ConfigError):
        decode(ClientConfig, "apiVersion: config.registry.ethos.adobe.com/v1\n")


def test_decode_requires_api_version():
    with pytest.raises(ConfigError):
        decode(ClientConfig, "kind: ClientConfig\n")


def test_decode_rejects_other_kind():
    text = "apiVersion: config.registry.ethos.adobe.com/v1\nkind: SyncConfig\n"
    with pytest.raises(SchemaError):
        decode(ClientConfig, text)


def test_decode_rejects_bad_yaml_and_non_mapping():
    with pytest.raises(ConfigError):
        decode(SyncConfig, "a: [unclosed")
    with pytest.raises(ConfigError):
        decode(SyncConfig, "- just\n- a list\n")


def test_load_file(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text(CLIENT_DOC)
    cfg = load_file(ClientConfig, path)
    assert cfg.leader_election.resource_name == "lock-name"


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_file(SyncConfig, tmp_path / "absent.yaml")


def test_encode_round_trip():
    cfg = decode(ClientConfig, CLIENT_DOC)
    text = encode(cfg)
    assert decode(ClientConfig, text) == cfg
    doc = yaml.safe_load(text)
    assert doc["kind"] == "ClientConfig"
    assert doc["apiVersion"] == "config.registry.ethos.adobe.com/v1"


def test_encode_rejects_other_objects():
    with pytest.raises(ConfigError):
        encode(WatchedGVK(group="g", version="v1", kind="K"))


def test_apply_fills_unset_options():
    cfg = decode(ClientConfig, CLIENT_DOC)
    options = apply_to_options(cfg, ManagerOptions())
    assert options.leader_election is True
    assert options.leader_election_resource_lock == "leases"
    assert options.leader_election_id == "lock-name"
    assert options.lease_duration == 15.0
    assert options.renew_deadline is None


def test_apply_keeps_set_options():
    cfg = decode(ClientConfig, CLIENT_DOC)
    original = ManagerOptions(leader_election_id="kept", leader_election_resource_lock="mine")
    options = apply_to_options(cfg, original)
    assert options.leader_election_id == "kept"
    assert options.leader_election_resource_lock == "mine"
    assert original.leader_election is False


def test_apply_leader_elect_false_does_not_disable():
    cfg = SyncConfig(leader_election=LeaderElectionConfiguration(leader_elect=False))
    options = apply_to_options(cfg, ManagerOptions(leader_election=True))
    assert options.leader_election is True


def test_apply_webhook():
    cfg = SyncConfig(webhook=ControllerWebhook(port=9443, host="0.0.0.0", cert_dir="/tmp/certs"))
    options = apply_to_options(cfg, ManagerOptions())
    assert options.webhook_server == WebhookServerOptions("0.0.0.0", 9443, "/tmp/certs")


def test_apply_webhook_needs_cert_dir():
    cfg = SyncConfig(webhook=ControllerWebhook(port=9443, host="0.0.0.0"))
    assert apply_to_options(cfg, ManagerOptions()).webhook_server is None


def test_apply_webhook_host_without_port():
    cfg = SyncConfig(webhook=ControllerWebhook(host="0.0.0.0", cert_dir="/tmp/certs"))
    with pytest.raises(ConfigError):
        apply_to_options(cfg, ManagerOptions())


def test_apply_controller_settings():
    cfg = SyncConfig(
        controller=ControllerConfigurationSpec(
            cache_sync_timeout=30.0, group_kind_concurrency={"Cluster.registry": 4}
        )
    )
    options = apply_to_options(cfg, ManagerOptions())
    assert options.cache_sync_timeout == 30.0
    assert options.group_kind_concurrency == {"Cluster.registry": 4}
    kept = apply_to_options(cfg, ManagerOptions(cache_sync_timeout=5.0))
    assert kept.cache_sync_timeout == 5.0


def test_new_client_config_without_file():
    defaults = _client_defaults()
    options, cfg = new_client_config(ManagerOptions(metrics_bind_address=":9090"), None, defaults)
    assert cfg == defaults
    assert cfg is not defaults
    assert options.metrics_bind_address == ":9090"


def test_new_client_config_overlays_file(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text(CLIENT_DOC)
    defaults = _client_defaults()
    options, cfg = new_client_config(ManagerOptions(), str(path), defaults)
    assert cfg.namespace == "from-file"
    assert cfg.alertmanager_webhook.bind_address == ":9092"
    assert cfg.service_metadata.service_id_annotation == "adobe.serviceid"
    assert options.leader_election_id == "lock-name"
    assert defaults.namespace == "cluster-registry"


def test_new_sync_config_from_file(tmp_path):
    path = tmp_path / "sync.yaml"
    path.write_text(
        "apiVersion: config.registry.ethos.adobe.com/v1\n"
        "kind: SyncConfig\n"
        "watchedGVKs:\n"
        "  - {group: cluster.x-k8s.io, version: v1beta1, kind: Cluster}\n"
    )
    defaults = SyncConfig(namespace="cluster-registry")
    _, cfg = new_sync_config(None, path, defaults)
    assert cfg.namespace == "cluster-registry"
    assert cfg.watched_gvks == [WatchedGVK("cluster.x-k8s.io", "v1beta1", "Cluster")]


def test_new_sync_config_rejects_client_defaults():
    with pytest.raises(TypeError):
        new_sync_config(None, None, _client_defaults())


def test_new_sync_config_rejects_client_file(tmp_path):
    path = tmp_path / "client.yaml"
    path.write_text(CLIENT_DOC)
    with pytest.raises(SchemaError):
        new_sync_config(None, path, None)