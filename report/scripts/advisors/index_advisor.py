"""
Index-level checks over the largest shards: oversized shards, shard size
imbalance and hot nodes.
"""

import logging
import math
from typing import Any, Dict, List

from data_models import Impact, NodeSnapshot, Severity, ShardRecord, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from advisors.shard_rebalancing import find_best_target_node
from es_utils.sizes import format_bytes
from es_utils.thresholds import (
    HOT_NODE_HEAP_PERCENT, HOT_NODE_MIN_SHARDS, OVERSIZED_SHARD_BYTES,
    SHARD_SIZE_RATIO_LIMIT, TARGET_SHARD_BYTES,
)

logger = logging.getLogger(__name__)


def group_shards_by_index(shards: List[ShardRecord]) -> Dict[str, List[ShardRecord]]:
    """Group shards by index name, keeping first-seen order."""
    groups: Dict[str, List[ShardRecord]] = {}
    for shard in shards:
        groups.setdefault(shard.index, []).append(shard)
    return groups


def identify_hot_nodes(shards: List[ShardRecord], nodes: List[NodeSnapshot]) -> List[Dict[str, Any]]:
    """Nodes holding more than two of the index's shards while under heap pressure."""
    counts: Dict[str, int] = {}
    for shard in shards:
        counts[shard.node] = counts.get(shard.node, 0) + 1

    heap_by_name = {n.node_name: n.heap_used_percent for n in nodes}
    hot_nodes = []
    for node_name, count in counts.items():
        heap_usage = heap_by_name.get(node_name, 0)
        if count > HOT_NODE_MIN_SHARDS and heap_usage > HOT_NODE_HEAP_PERCENT:
            hot_nodes.append({
                "node_name": node_name,
                "shard_count": count,
                "heap_usage": heap_usage,
            })

    return hot_nodes


def suggested_primary_shards(total_bytes: int) -> int:
    return math.ceil(total_bytes / TARGET_SHARD_BYTES)


def generate_reindex_command(index_name: str, suggested_shards: int) -> str:
    return (
        f'curl -X PUT "elasticsearch:9200/{index_name}_reindexed" -H \'Content-Type: application/json\' '
        f'-d\'{{"settings":{{"number_of_shards":{suggested_shards},"number_of_replicas":1}}}}\''
    )


class IndexOptimizationAdvisor(BaseAdvisor):
    """Evaluate each index present in the largest-shards list."""

    def __init__(self):
        super().__init__("index_optimization", "INDEX_OPTIMIZATION")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings(insights={"index_insights": {}})

        if not snapshots.shard_analysis:
            return findings

        groups = group_shards_by_index(snapshots.shard_analysis.largest_shards)

        for index_name, shards in groups.items():
            insight = self._evaluate_index(index_name, shards, snapshots.nodes, findings)
            findings.insights["index_insights"][index_name] = insight

        return findings

    def _evaluate_index(self, index_name, shards, nodes, findings: AdvisorFindings) -> Dict[str, Any]:
        sizes = [s.store_bytes for s in shards]
        total_size = sum(sizes)
        max_size = max(sizes)
        min_size = min(sizes)
        # an empty shard next to a non-empty one counts as imbalanced
        imbalanced = max_size > SHARD_SIZE_RATIO_LIMIT * min_size
        hot_nodes = identify_hot_nodes(shards, nodes)
        primaries = sum(1 for s in shards if s.is_primary)

        insight = {
            "index_name": index_name,
            "total_size": total_size,
            "shard_count": len(shards),
            "avg_shard_size": total_size / len(shards),
            "max_shard_size": max_size,
            "min_shard_size": min_size,
            "imbalance_ratio": round(max_size / min_size, 2) if min_size else None,
            "hot_nodes": hot_nodes,
            "issues": [],
        }

        if max_size > OVERSIZED_SHARD_BYTES:
            insight["issues"].append('OVERSIZED_SHARDS')
            suggested = suggested_primary_shards(total_size)
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title=f"Oversized Shards in Index: {index_name}",
                description=(
                    f"Index {index_name} has shards up to {format_bytes(max_size)}. "
                    "Large shards impact recovery time and performance."
                ),
                impact=Impact.MEDIUM,
                action=(
                    "Consider reindexing with more primary shards. "
                    f"Current: {primaries} primary, suggest: {suggested} primary shards"
                ),
                priority=3,
                specifics={
                    "current_primary_shards": primaries,
                    "suggested_primary_shards": suggested,
                    "reindex_command": generate_reindex_command(index_name, suggested),
                },
            ))

        if imbalanced:
            insight["issues"].append('SHARD_IMBALANCE')
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.INFO,
                title=f"Shard Size Imbalance in Index: {index_name}",
                description=(
                    f"Index {index_name} has uneven shard sizes ({format_bytes(min_size)} to "
                    f"{format_bytes(max_size)}). This may indicate uneven data distribution."
                ),
                impact=Impact.LOW,
                action='Review indexing strategy. Consider custom routing or document distribution patterns.',
                priority=4,
                specifics={
                    "shard_size_distribution": [
                        {"shard": s.shard, "size": format_bytes(s.store_bytes), "node": s.node}
                        for s in shards
                    ],
                },
            ))

        if hot_nodes:
            insight["issues"].append('HOT_NODES')
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                category='SHARD_REBALANCING',
                title=f"Hot Nodes Detected for Index: {index_name}",
                description=(
                    f"Index {index_name} has multiple shards on high-resource nodes: "
                    f"{', '.join(n['node_name'] for n in hot_nodes)}"
                ),
                impact=Impact.MEDIUM,
                action='Redistribute shards from hot nodes to cooler nodes for better performance',
                priority=2,
                specifics={
                    "hot_nodes": hot_nodes,
                    "redistribution_plan": self._redistribution_plan(shards, nodes),
                },
            ))

        if insight["issues"]:
            logger.debug("Index %s: %s", index_name, ', '.join(insight["issues"]))

        return insight

    def _redistribution_plan(self, shards: List[ShardRecord], nodes: List[NodeSnapshot]) -> List[Dict[str, Any]]:
        plan = []
        for shard in shards:
            target = find_best_target_node(nodes, shard.node_id, shard.node)
            plan.append({
                "index": shard.index,
                "shard": shard.shard,
                "current": shard.node,
                "suggested": target.node_name if target else None,
                "reason": 'Reduce hot node pressure',
            })
        return plan
