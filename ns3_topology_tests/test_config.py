#!/usr/bin/env python3
"""
Tests for Scenario Configuration

These tests verify:
1. Defaults describe the reference two-cluster scenario
2. Dictionary and JSON conversion keep every value
3. Validation rejects short stop times and empty clusters
4. Malformed input surfaces as ConfigurationError
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from topology import (
    MIN_STOP_TIME,
    ChannelConfig,
    ConfigurationError,
    GridLayout,
    LinkConfig,
    MobilityConfig,
    RoutingProtocol,
    ScenarioConfig,
    TopologyError,
    TracingConfig,
    check_stop_time,
)


EXAMPLE_SCENARIO = Path(__file__).parent.parent / "examples" / "two_clusters.json"


class TestDefaults:
    """Tests for default values."""

    def test_scenario_defaults(self):
        config = ScenarioConfig()
        assert config.cluster_sizes == [4, 3]
        assert config.stop_time == 20.0
        assert config.routing == RoutingProtocol.OLSR
        assert config.num_clusters == 2
        assert config.total_nodes == 7
        assert config.min_stop_time == MIN_STOP_TIME == 10.0

    def test_sub_config_defaults(self):
        assert ChannelConfig().data_mode == "OfdmRate54Mbps"
        assert LinkConfig().data_rate_bps == 5000000
        mobility = MobilityConfig()
        assert mobility.bounds == (-500.0, 500.0, -500.0, 500.0)
        assert mobility.speed == 2.0
        assert mobility.pause == 0.2
        assert not TracingConfig().enabled

    def test_default_lists_not_shared(self):
        a = ScenarioConfig()
        b = ScenarioConfig()
        a.cluster_sizes.append(9)
        assert b.cluster_sizes == [4, 3]


class TestValidation:
    """Tests for ScenarioConfig.validate."""

    def test_valid(self):
        ScenarioConfig().validate()
        ScenarioConfig(cluster_sizes=[1], stop_time=10.0).validate()

    def test_short_stop_time(self):
        with pytest.raises(ConfigurationError, match="Use a simulation stop time >= 10 seconds"):
            ScenarioConfig(stop_time=9.99).validate()

    def test_custom_minimum(self):
        with pytest.raises(ConfigurationError, match=">= 30 seconds"):
            ScenarioConfig(stop_time=20.0, min_stop_time=30.0).validate()

    def test_check_stop_time(self):
        check_stop_time(10.0)
        with pytest.raises(ConfigurationError):
            check_stop_time(0.0)

    @pytest.mark.parametrize("sizes", [[], [4, 0], [-1], [2.5]])
    def test_bad_cluster_sizes(self, sizes):
        with pytest.raises(ConfigurationError):
            ScenarioConfig(cluster_sizes=sizes).validate()

    def test_no_cluster_pools(self):
        with pytest.raises(ConfigurationError):
            ScenarioConfig(cluster_bases=[]).validate()

    @pytest.mark.parametrize("stop_time", [float("nan"), float("inf"), "20"])
    def test_non_finite_stop_time(self, stop_time):
        with pytest.raises(ConfigurationError, match="stop time >= 10"):
            ScenarioConfig(stop_time=stop_time).validate()

    def test_nan_stop_time_from_dict(self):
        config = ScenarioConfig.from_dict({"stop_time": float("nan")})
        with pytest.raises(ConfigurationError):
            config.validate()

    @pytest.mark.parametrize("seed", ["abc", -1, 1.5, True])
    def test_bad_seed(self, seed):
        with pytest.raises(ConfigurationError, match="Seed"):
            ScenarioConfig.from_dict({"seed": seed}).validate()

    def test_bool_cluster_size(self):
        with pytest.raises(ConfigurationError, match="Cluster 0 size"):
            ScenarioConfig.from_dict({"cluster_sizes": [True, 3]}).validate()

    @pytest.mark.parametrize("overrides", [
        {"backbone_base": "192.168.0.0"},
        {"cluster_bases": ["10.0.0.0", "10.0.0.0"]},
        {"subnet_mask": "255.0.255.0"},
        {"backbone_base": "172.16.0.1"},
    ])
    def test_bad_subnet_pools(self, overrides):
        with pytest.raises(ConfigurationError, match="Invalid subnet pools"):
            ScenarioConfig.from_dict(overrides).validate()

    def test_configuration_error_is_topology_error(self):
        assert issubclass(ConfigurationError, TopologyError)


class TestSerialization:
    """Tests for dictionary and JSON conversion."""

    def test_dict_keeps_values(self):
        config = ScenarioConfig(
            cluster_sizes=[5, 2, 6],
            stop_time=42.0,
            seed=3,
            routing=RoutingProtocol.DSDV,
            mobility=MobilityConfig(speed=4.0, layout=GridLayout.COLUMN_FIRST),
            backbone_link=LinkConfig(delay_ms=5.0),
            tracing=TracingConfig(animation_file="a.xml", course_changes=True),
        )
        restored = ScenarioConfig.from_dict(config.to_dict())
        assert restored == config

    def test_to_dict_is_json(self):
        data = json.loads(json.dumps(ScenarioConfig().to_dict()))
        assert data["routing"] == "olsr"
        assert data["mobility"]["layout"] == "row_first"

    def test_partial_dict_uses_defaults(self):
        config = ScenarioConfig.from_dict({"cluster_sizes": [2, 2, 2], "routing": "aodv"})
        assert config.cluster_sizes == [2, 2, 2]
        assert config.routing == RoutingProtocol.AODV
        assert config.stop_time == 20.0
        assert config.backbone_base == "172.16.0.0"

    def test_unknown_routing(self):
        with pytest.raises(ConfigurationError, match="Invalid scenario configuration"):
            ScenarioConfig.from_dict({"routing": "rip"})

    def test_bad_stop_time_type(self):
        with pytest.raises(ConfigurationError):
            ScenarioConfig.from_dict({"stop_time": "soon"})

    def test_example_scenario_file(self):
        config = ScenarioConfig.from_json_file(EXAMPLE_SCENARIO)
        assert config == ScenarioConfig(seed=42)
        config.validate()

    def test_json_file_roundtrip(self, tmp_path):
        path = tmp_path / "scenario.json"
        path.write_text(json.dumps(ScenarioConfig(cluster_sizes=[3], seed=8).to_dict()))
        config = ScenarioConfig.from_json_file(path)
        assert config.cluster_sizes == [3]
        assert config.seed == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Could not read"):
            ScenarioConfig.from_json_file(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{ not json")
        with pytest.raises(ConfigurationError):
            ScenarioConfig.from_json_file(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[4, 3]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            ScenarioConfig.from_json_file(path)
