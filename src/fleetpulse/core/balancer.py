"""Load balancer node traffic simulation and imbalance detection."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fleetpulse.config import BalancerConfig
from fleetpulse.core.random_walk import RandomWalk
from fleetpulse.models.enums import NodeStatus
from fleetpulse.models.runtime import BalancerNode, LoadBalancerRecord

logger = logging.getLogger("fleetpulse.balancer")

NET_IN_AMPLITUDE = 5.0
NET_OUT_AMPLITUDE = 4.0
NETWORK_FLOOR = 0.1


def imbalance(nodes: tuple[BalancerNode, ...], threshold: float = 3.0) -> tuple[float, bool]:
    """Return (max/min inbound ratio, ratio > threshold). No nodes -> (0.0, False)."""
    if not nodes:
        return 0.0, False
    values = [n.net_in for n in nodes]
    ratio = max(values) / min(values)
    return ratio, ratio > threshold


def node_status(
    walk: RandomWalk, net_in: float, average: float, config: BalancerConfig
) -> NodeStatus:
    """Classify a node by its inbound traffic relative to the balancer average."""
    rng = walk.rng
    if net_in > average * config.high_factor:
        return NodeStatus.ERROR if rng.random() < config.high_error_share else NodeStatus.WARNING
    if net_in < average * config.low_factor:
        if rng.random() < config.low_warning_probability:
            return NodeStatus.WARNING
    return NodeStatus.HEALTHY


class LoadBalancerSimulator:
    """Evolves per-node network IO and recomputes status and imbalance each tick."""

    def __init__(self, walk: RandomWalk, config: BalancerConfig | None = None) -> None:
        self._walk = walk
        self._config = config or BalancerConfig()

    def tick(
        self, balancers: tuple[LoadBalancerRecord, ...], now: datetime | None = None
    ) -> tuple[LoadBalancerRecord, ...]:
        now = now or datetime.now(timezone.utc)
        return tuple(self.evolve(lb, now) for lb in balancers)

    def evolve(self, lb: LoadBalancerRecord, now: datetime) -> LoadBalancerRecord:
        walk = self._walk
        traffic = [
            (
                node,
                round(max(NETWORK_FLOOR, node.net_in + walk.delta(NET_IN_AMPLITUDE)), 2),
                round(max(NETWORK_FLOOR, node.net_out + walk.delta(NET_OUT_AMPLITUDE)), 2),
            )
            for node in lb.nodes
        ]

        # Average over this tick's updated values, not the previous ones
        average = sum(net_in for _, net_in, _ in traffic) / len(traffic) if traffic else 0.0
        nodes = tuple(
            BalancerNode(
                node_id=node.node_id,
                name=node.name,
                net_in=net_in,
                net_out=net_out,
                status=node_status(walk, net_in, average, self._config),
            )
            for node, net_in, net_out in traffic
        )

        ratio, imbalanced = imbalance(nodes, self._config.imbalance_ratio)
        if imbalanced and not lb.is_imbalanced:
            logger.info("Load balancer %s became imbalanced (ratio %.2f)", lb.name, ratio)

        return LoadBalancerRecord(
            balancer_id=lb.balancer_id,
            name=lb.name,
            nodes=nodes,
            is_imbalanced=imbalanced,
            ratio=round(ratio, 2),
            timestamp=now,
        )
