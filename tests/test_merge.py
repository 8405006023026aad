import pytest

from clusterregistry.merge import merge_spec, merge_tiers
from clusterregistry.registry import Capacity, ClusterSpec, Extra, Tier


def test_non_empty_strings_override_and_empty_ones_do_not():
    dst = ClusterSpec(name="cluster01", region="useast1")
    src = ClusterSpec(name="cluster02")
    result = merge_spec(dst, src)
    assert result is dst
    assert dst.name == "cluster02"
    assert dst.region == "useast1"


def test_tiers_merged_by_name_without_override():
    dst = ClusterSpec(tiers=[Tier(name="proxy", instance_type="c5.9xlarge", taints=["a"])])
    src = ClusterSpec(
        tiers=[
            Tier(name="proxy", instance_type="r5.xlarge", container_runtime="docker",
                 min_capacity=3, taints=["b"]),
            Tier(name="worker", instance_type="m5.large"),
        ]
    )
    merge_spec(dst, src)
    assert [tier.name for tier in dst.tiers] == ["proxy"]
    tier = dst.tiers[0]
    assert tier.instance_type == "c5.9xlarge"
    assert tier.container_runtime == "docker"
    assert tier.min_capacity == 3
    assert tier.taints == ["a", "b"]


def test_tier_labels_only_fill_missing_keys():
    dst = [Tier(name="proxy", labels={"role": "proxy"})]
    src = [Tier(name="proxy", labels={"role": "worker", "zone": "a"})]
    merged = merge_tiers(dst, src)
    assert merged is dst
    assert dst[0].labels == {"role": "proxy", "zone": "a"}


def test_tiers_copied_when_destination_has_none():
    src = ClusterSpec(tiers=[Tier(name="proxy", min_capacity=2)])
    dst = merge_spec(ClusterSpec(), src)
    assert dst.tiers == src.tiers
    src.tiers[0].min_capacity = 9
    assert dst.tiers[0].min_capacity == 2


def test_tags_merged_with_override():
    dst = ClusterSpec(tags={"a": "1", "b": "2"})
    merge_spec(dst, ClusterSpec(tags={"b": "3"}))
    assert dst.tags == {"a": "1", "b": "3"}


def test_merged_map_is_not_shared_with_source():
    src = ClusterSpec(tags={"onboarding": "on"})
    dst = merge_spec(ClusterSpec(), src)
    src.tags["onboarding"] = "off"
    assert dst.tags["onboarding"] == "on"


def test_empty_map_value_in_source_overrides():
    dst = ClusterSpec(extra=Extra(domain_name="example.com", lb_endpoints={"public": "x"}))
    merge_spec(dst, ClusterSpec(extra=Extra(lb_endpoints={"public": ""})))
    assert dst.extra.lb_endpoints["public"] == ""
    assert dst.extra.domain_name == "example.com"


def test_service_metadata_merged_deeply():
    dst = ClusterSpec(service_metadata={"svc": {"stage": {"a": "1"}}})
    src = ClusterSpec(service_metadata={"svc": {"stage": {"b": "2"}, "prod": {"c": "3"}}})
    merge_spec(dst, src)
    assert dst.service_metadata["svc"]["stage"] == {"a": "1", "b": "2"}
    assert dst.service_metadata["svc"]["prod"] == {"c": "3"}


def test_non_empty_slices_replace_and_empty_ones_keep():
    dst = ClusterSpec(capabilities=["gpu"], offering=["CaaS"])
    merge_spec(dst, ClusterSpec(capabilities=["arm"]))
    assert dst.capabilities == ["arm"]
    assert dst.offering == ["CaaS"]


@pytest.mark.parametrize(
    "before, incoming, after",
    [(None, False, False), (True, False, True), (False, True, True), (True, None, True)],
)
def test_charged_back_pointer_semantics(before, incoming, after):
    dst = ClusterSpec(charged_back=before)
    merge_spec(dst, ClusterSpec(charged_back=incoming))
    assert dst.charged_back is after


def test_zero_numbers_do_not_override():
    dst = ClusterSpec(capacity=Capacity(cluster_capacity=100, cluster_max_bqu=50))
    merge_spec(dst, ClusterSpec(capacity=Capacity(cluster_capacity=0, cluster_max_bqu=60)))
    assert dst.capacity.cluster_capacity == 100
    assert dst.capacity.cluster_max_bqu == 60


def test_merge_requires_cluster_specs():
    with pytest.raises(TypeError):
        merge_spec(ClusterSpec(), Tier())