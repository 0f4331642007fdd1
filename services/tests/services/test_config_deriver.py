"""Tests for cluster configuration derivation."""

import pytest

from clusterlcm.config import ClusterDefaults, RegionTable
from clusterlcm.errors import DerivationError, InvalidConfiguration
from clusterlcm.models import ClusterRawConf
from clusterlcm.services.config_deriver import derive_cluster_config

REGIONS = RegionTable(max_az={"ap-northeast-2": 3, "us-east-1": 6, "us-west-1": 2})


class TestDefaults:
    def test_none_uses_all_defaults(self):
        conf = derive_cluster_config(None, REGIONS)

        assert conf.region == "ap-northeast-2"
        assert conf.num_of_az == 3
        assert conf.ssh_key_name == "tks-seoul"
        assert conf.machine_type == "t3.large"
        assert conf.machine_replicas == 0
        assert conf.min_size_per_az == 1
        assert conf.max_size_per_az == 5

    def test_zero_values_fall_back_to_defaults(self):
        raw = ClusterRawConf(region="", num_of_az=0, ssh_key_name="", machine_type="")
        conf = derive_cluster_config(raw, REGIONS)

        assert conf.region == "ap-northeast-2"
        assert conf.num_of_az == 3

    def test_explicit_values_are_kept(self):
        raw = ClusterRawConf(
            region="us-east-1", num_of_az=2, ssh_key_name="my-key", machine_type="m5.xlarge"
        )
        conf = derive_cluster_config(raw, REGIONS)

        assert conf.region == "us-east-1"
        assert conf.num_of_az == 2
        assert conf.ssh_key_name == "my-key"
        assert conf.machine_type == "m5.xlarge"

    def test_custom_defaults(self):
        defaults = ClusterDefaults(region="us-east-1", num_of_az=4, machine_type="m5.large")
        conf = derive_cluster_config(None, REGIONS, defaults)

        assert conf.region == "us-east-1"
        assert conf.num_of_az == 4
        assert conf.machine_type == "m5.large"


class TestAzBounds:
    def test_az_count_at_region_maximum(self):
        conf = derive_cluster_config(ClusterRawConf(region="us-west-1", num_of_az=2), REGIONS)
        assert conf.num_of_az == 2

    def test_az_count_above_region_maximum_fails(self):
        with pytest.raises(DerivationError, match="ap-northeast-2"):
            derive_cluster_config(ClusterRawConf(num_of_az=4), REGIONS)

    def test_default_az_count_exceeds_small_region(self):
        with pytest.raises(DerivationError, match="us-west-1"):
            derive_cluster_config(ClusterRawConf(region="us-west-1"), REGIONS)

    def test_unknown_region_has_zero_maximum(self):
        with pytest.raises(DerivationError, match="mars-central-1"):
            derive_cluster_config(ClusterRawConf(region="mars-central-1", num_of_az=1), REGIONS)

    def test_invalid_configuration_alias(self):
        with pytest.raises(InvalidConfiguration):
            derive_cluster_config(ClusterRawConf(num_of_az=5), REGIONS)


class TestReplicaSizing:
    @pytest.mark.parametrize(
        ("replicas", "num_of_az", "expected_min", "expected_max"),
        [
            (3, 3, 1, 5),
            (6, 3, 2, 10),
            (12, 6, 2, 10),
            (57, 3, 19, 95),
            (60, 3, 20, 99),
            (300, 3, 100, 99),
            (2, 1, 2, 10),
        ],
    )
    def test_min_and_max_per_az(self, replicas, num_of_az, expected_min, expected_max):
        raw = ClusterRawConf(region="us-east-1", num_of_az=num_of_az, machine_replicas=replicas)
        conf = derive_cluster_config(raw, REGIONS)

        assert conf.min_size_per_az == expected_min
        assert conf.max_size_per_az == expected_max
        assert conf.machine_replicas == replicas

    def test_max_never_exceeds_ceiling(self):
        for replicas in range(3, 600, 3):
            conf = derive_cluster_config(ClusterRawConf(machine_replicas=replicas), REGIONS)
            assert conf.max_size_per_az == min(replicas // 3 * 5, 99)

    def test_zero_replicas_uses_default_sizes_regardless_of_region(self):
        for region, num_of_az in (("ap-northeast-2", 1), ("us-east-1", 6), ("us-west-1", 2)):
            raw = ClusterRawConf(region=region, num_of_az=num_of_az, machine_replicas=0)
            conf = derive_cluster_config(raw, REGIONS)
            assert (conf.min_size_per_az, conf.max_size_per_az) == (1, 5)

    @pytest.mark.parametrize("replicas", [1, 2, 4, 5, 7, 100])
    def test_replicas_not_multiple_of_az_fails(self, replicas):
        with pytest.raises(DerivationError, match="multiple of numOfAz 3"):
            derive_cluster_config(ClusterRawConf(machine_replicas=replicas), REGIONS)

    def test_az_check_runs_before_replica_check(self):
        with pytest.raises(DerivationError, match="exceeds"):
            derive_cluster_config(ClusterRawConf(num_of_az=4, machine_replicas=5), REGIONS)
