"""
Shard health checks: unassigned shards and uneven shard counts per node.
"""

from data_models import Impact, Severity, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.thresholds import UNASSIGNED_DETAIL_LIMIT, UNEVEN_DISTRIBUTION_FACTOR


class ShardHealthAdvisor(BaseAdvisor):
    """Check unassigned shards and the node-level shard distribution."""

    def __init__(self):
        super().__init__("shard_health", "SHARDS")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings()
        shard_analysis = snapshots.shard_analysis

        if not shard_analysis:
            return findings

        unassigned = shard_analysis.unassigned_shards
        if unassigned:
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.CRITICAL,
                title='Unassigned Shards Detected',
                description=(
                    f"{len(unassigned)} shards are unassigned. This means data is not fully "
                    "replicated and cluster health is degraded."
                ),
                impact=Impact.HIGH,
                action=(
                    'Investigate and resolve shard allocation issues. '
                    'Use the allocation explain API (GET _cluster/allocation/explain) to determine the cause.'
                ),
                priority=1,
                specifics={
                    "unassigned_count": len(unassigned),
                    "shards": [
                        {
                            "index": s.index,
                            "shard": s.shard,
                            "prirep": s.prirep,
                            "reason": s.unassigned_reason or 'unknown',
                        }
                        for s in unassigned[:UNASSIGNED_DETAIL_LIMIT]
                    ],
                },
            ))

        counts = list(shard_analysis.shard_distribution.values())
        if len(counts) > 1:
            max_shards = max(counts)
            min_shards = min(counts)

            if max_shards > min_shards * UNEVEN_DISTRIBUTION_FACTOR:
                findings.recommendations.append(self.create_recommendation(
                    severity=Severity.INFO,
                    category='BALANCE',
                    title='Uneven Shard Distribution',
                    description=(
                        f"Shards are not evenly distributed across nodes ({min_shards} to "
                        f"{max_shards} shards per node)."
                    ),
                    impact=Impact.LOW,
                    action='Consider rebalancing shards for optimal performance',
                    priority=4,
                    specifics={"shard_distribution": dict(shard_analysis.shard_distribution)},
                ))

        return findings
