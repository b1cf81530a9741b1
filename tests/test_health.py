"""Tests for server and system health classification."""

import pytest

from fleetpulse.core.health import HealthAggregator
from fleetpulse.models.enums import HealthStatus
from fleetpulse.models.runtime import NetworkIO, ServerMetric


def _server(cpu=10.0, mem=10.0, load=0.5):
    return ServerMetric(
        server_id="s", server_name="s", cpu_usage=cpu, memory_usage=mem, disk_usage=50.0,
        network_io=NetworkIO(inbound=1.0, outbound=1.0), load_average_1m=load,
    )


HEALTHY = _server()
WARNING = _server(cpu=75.0)
ERROR = _server(cpu=90.0)


class TestClassifyServer:
    @pytest.mark.parametrize(
        "server, expected",
        [
            (_server(cpu=86.0), HealthStatus.ERROR),
            (_server(mem=91.0), HealthStatus.ERROR),
            (_server(load=5.1), HealthStatus.ERROR),
            (_server(cpu=71.0), HealthStatus.WARNING),
            (_server(mem=81.0), HealthStatus.WARNING),
            (_server(load=3.1), HealthStatus.WARNING),
            (_server(cpu=70.0, mem=80.0, load=3.0), HealthStatus.HEALTHY),
            (_server(cpu=85.0), HealthStatus.WARNING),
        ],
    )
    def test_thresholds(self, server, expected):
        assert HealthAggregator.classify_server(server) == expected

    def test_error_tier_checked_first(self):
        assert HealthAggregator.classify_server(_server(cpu=75.0, mem=95.0)) == HealthStatus.ERROR


class TestSystem:
    def test_empty_is_healthy(self):
        assert HealthAggregator.system([]) == HealthStatus.HEALTHY

    def test_all_healthy(self):
        assert HealthAggregator.system([HEALTHY] * 5) == HealthStatus.HEALTHY

    def test_forty_percent_warning_no_errors_is_healthy(self):
        servers = [WARNING] * 2 + [HEALTHY] * 3
        assert HealthAggregator.system(servers) == HealthStatus.HEALTHY

    def test_majority_warning(self):
        servers = [WARNING] * 3 + [HEALTHY] * 2
        assert HealthAggregator.system(servers) == HealthStatus.WARNING

    def test_exactly_half_warning_is_healthy(self):
        servers = [WARNING] * 2 + [HEALTHY] * 2
        assert HealthAggregator.system(servers) == HealthStatus.HEALTHY

    def test_any_error_is_warning(self):
        servers = [ERROR] + [HEALTHY] * 9
        assert HealthAggregator.system(servers) == HealthStatus.WARNING

    def test_error_share_above_thirty_percent(self):
        servers = [ERROR] * 4 + [HEALTHY] * 6
        assert HealthAggregator.system(servers) == HealthStatus.ERROR

    def test_error_share_exactly_thirty_percent(self):
        servers = [ERROR] * 3 + [HEALTHY] * 7
        assert HealthAggregator.system(servers) == HealthStatus.WARNING

    def test_malformed_ignored(self):
        servers = [_server(cpu=None), HEALTHY]
        assert HealthAggregator.system(servers) == HealthStatus.HEALTHY

    def test_deterministic(self):
        servers = [WARNING, ERROR, HEALTHY, WARNING]
        results = {HealthAggregator.system(servers) for _ in range(20)}
        assert len(results) == 1

    def test_counts(self):
        counts = HealthAggregator.counts([WARNING, ERROR, HEALTHY, HEALTHY])
        assert counts == {
            HealthStatus.HEALTHY: 2,
            HealthStatus.WARNING: 1,
            HealthStatus.ERROR: 1,
        }
