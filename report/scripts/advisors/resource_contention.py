"""
Cluster-wide resource contention.
"""

import math

from data_models import Impact, Severity, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.thresholds import CONTENTION_HEAP_PERCENT, CONTENTION_NODE_FRACTION, SCALE_OUT_FACTOR


class ResourceContentionAdvisor(BaseAdvisor):
    """Emit one scaling recommendation when most nodes are memory-pressured."""

    def __init__(self):
        super().__init__("resource_contention", "CLUSTER_SCALING")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        nodes = snapshots.nodes
        high_memory_nodes = [n for n in nodes if n.heap_used_percent > CONTENTION_HEAP_PERCENT]
        findings = AdvisorFindings(insights={"memory_contention": [n.node_name for n in high_memory_nodes]})

        if not nodes or len(high_memory_nodes) <= len(nodes) * CONTENTION_NODE_FRACTION:
            return findings

        findings.recommendations.append(self.create_recommendation(
            severity=Severity.CRITICAL,
            title='Cluster-Wide Memory Pressure',
            description=(
                f"{len(high_memory_nodes)}/{len(nodes)} nodes show high memory usage. "
                "This indicates cluster-wide memory pressure."
            ),
            impact=Impact.HIGH,
            action='Scale cluster horizontally (add more nodes) or vertically (increase memory per node)',
            priority=1,
            specifics={
                "affected_nodes": [n.node_name for n in high_memory_nodes],
                "scaling_options": [
                    f"Add {math.ceil(len(high_memory_nodes) * SCALE_OUT_FACTOR)} more data nodes",
                    'Increase memory by 50% on existing nodes',
                    'Implement data tiering (hot/warm/cold)',
                ],
            },
        ))

        return findings
