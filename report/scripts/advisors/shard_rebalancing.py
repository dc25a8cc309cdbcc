"""
Shard rebalancing advisor.

Target selection is greedy: candidate nodes are ordered least-loaded first
and paired with the source node's heaviest shards by position. It does not
check disk space or whether the target already holds a copy of the shard,
so the output is advisory text only and must never be sent to the cluster
automatically.
"""

import logging
from typing import Dict, List, Optional

from data_models import (
    Impact, NodeSnapshot, Severity, ShardAnalysisSnapshot, ShardMove, ShardRecord, SnapshotSet
)
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.sizes import bytes_to_gib, format_bytes
from es_utils.thresholds import (
    HEAP_REDUCTION_PER_GIB, IMBALANCE_FACTOR, MAX_SHARDS_TO_MOVE, TARGET_MAX_HEAP_PERCENT
)

logger = logging.getLogger(__name__)


def get_node_shards(node: NodeSnapshot, shard_analysis: Optional[ShardAnalysisSnapshot]) -> List[ShardRecord]:
    """Shards from the largest-shards list hosted on the given node."""
    if not shard_analysis:
        return []

    return [
        shard for shard in shard_analysis.largest_shards
        if (shard.node_id == node.node_id if shard.node_id else shard.node == node.node_name)
    ]


def heaviest_first(shards: List[ShardRecord]) -> List[ShardRecord]:
    """Sort shards by store size, largest first, keeping input order for ties."""
    return sorted(shards, key=lambda s: s.store_bytes, reverse=True)


def select_target_nodes(
    nodes: List[NodeSnapshot],
    source_node_id: Optional[str],
    source_node_name: Optional[str] = None,
) -> List[NodeSnapshot]:
    """
    Candidate targets for shards leaving the source node.

    Data nodes other than the source with heap below the target limit,
    least-loaded first.
    """
    candidates = [
        n for n in nodes
        if n.is_data
        and n.heap_used_percent < TARGET_MAX_HEAP_PERCENT
        and not (source_node_id and n.node_id == source_node_id)
        and not (source_node_name and n.node_name == source_node_name)
    ]
    return sorted(candidates, key=lambda n: n.heap_used_percent)


def find_best_target_node(
    nodes: List[NodeSnapshot],
    source_node_id: Optional[str],
    source_node_name: Optional[str] = None,
) -> Optional[NodeSnapshot]:
    """The least-loaded eligible target, or None when no node qualifies."""
    candidates = select_target_nodes(nodes, source_node_id, source_node_name)
    return candidates[0] if candidates else None


def estimate_heap_reduction(shard: ShardRecord) -> float:
    """Heuristic heap relief, in percentage points, from moving one shard."""
    return bytes_to_gib(shard.store_bytes) * HEAP_REDUCTION_PER_GIB


def _build_move(shard: ShardRecord, source: NodeSnapshot, target: NodeSnapshot, reason: str) -> ShardMove:
    return ShardMove(
        index=shard.index,
        shard=shard.shard,
        prirep=shard.prirep,
        store_bytes=shard.store_bytes,
        source_node=source.node_name,
        source_node_id=source.node_id,
        target_node=target.node_name,
        target_node_id=target.node_id,
        expected_heap_reduction=estimate_heap_reduction(shard),
        reason=reason,
    )


def find_movable_shards(
    heaviest_shards: List[ShardRecord],
    nodes: List[NodeSnapshot],
    source: NodeSnapshot,
) -> List[ShardMove]:
    """
    Pair the source node's heaviest shards with target nodes by position.

    Shard i goes to candidate i. When there are fewer candidates than
    shards, the remaining shards are left out of the plan.
    """
    targets = select_target_nodes(nodes, source.node_id, source.node_name)
    shards = heaviest_first(heaviest_shards)[:MAX_SHARDS_TO_MOVE]

    moves = []
    for position, shard in enumerate(shards):
        if position >= len(targets):
            break
        moves.append(_build_move(shard, source, targets[position], 'Reduce heap pressure'))

    return moves


def calculate_heap_reduction(moves: List[ShardMove]) -> float:
    """Total estimated heap reduction for a set of moves."""
    return sum(move.expected_heap_reduction for move in moves)


def generate_rebalance_commands(moves: List[ShardMove]) -> List[str]:
    """Example reroute commands for the operator to review."""
    return [
        'curl -X POST "elasticsearch:9200/_cluster/reroute" -H \'Content-Type: application/json\' '
        f'-d\'{{"commands":[{{"move":{{"index":"{move.index}","shard":{move.shard},'
        f'"from_node":"{move.source_node_id}","to_node":"{move.target_node_id}"}}}}]}}\''
        for move in moves
    ]


class ShardRebalancingAdvisor(BaseAdvisor):
    """Flag nodes carrying far more shards or shard data than the cluster average."""

    def __init__(self, imbalance_factor: float = IMBALANCE_FACTOR):
        super().__init__("shard_rebalancing", "BALANCE")
        self.imbalance_factor = imbalance_factor

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings(insights={"imbalanced_nodes": []})
        shard_analysis = snapshots.shard_analysis

        if not shard_analysis or not shard_analysis.shard_distribution:
            return findings

        nodes_by_name = {n.node_name: n for n in snapshots.nodes}
        shard_counts: Dict[str, int] = {}
        shard_sizes: Dict[str, int] = {}

        for node_name, shard_count in shard_analysis.shard_distribution.items():
            node = nodes_by_name.get(node_name)
            if node:
                shard_counts[node.node_id] = shard_count
                shard_sizes[node.node_id] = sum(s.store_bytes for s in get_node_shards(node, shard_analysis))

        if not shard_counts:
            return findings

        avg_count = sum(shard_counts.values()) / len(shard_counts)
        avg_size = sum(shard_sizes.values()) / len(shard_sizes)
        nodes_by_id = {n.node_id: n for n in snapshots.nodes}

        for node_id, shard_count in shard_counts.items():
            node = nodes_by_id[node_id]
            shard_size = shard_sizes[node_id]

            if not (shard_count > avg_count * self.imbalance_factor
                    or shard_size > avg_size * self.imbalance_factor):
                continue

            moves = self._plan_moves(node, snapshots)
            ratios = [shard_count / avg_count if avg_count else 0.0]
            if avg_size:
                ratios.append(shard_size / avg_size)

            findings.insights["imbalanced_nodes"].append({
                "node_id": node_id,
                "node_name": node.node_name,
                "current_shard_count": shard_count,
                "current_shard_size": shard_size,
                "imbalance_ratio": round(max(ratios), 2),
                "movable_candidates": moves,
            })
            logger.debug("Node %s is imbalanced: %d shards, %d bytes", node.node_name, shard_count, shard_size)

            if moves:
                findings.recommendations.append(self.create_recommendation(
                    severity=Severity.INFO,
                    title=f"Rebalance Shards from Overloaded {node.node_name}",
                    description=(
                        f"Node has {shard_count} shards (avg: {avg_count:.0f}) with "
                        f"{format_bytes(shard_size)} data (avg: {format_bytes(avg_size)}). "
                        "Rebalancing can improve performance."
                    ),
                    impact=Impact.MEDIUM,
                    action=(
                        f"Move {len(moves)} shards to underutilized nodes: "
                        f"{', '.join(m.target_node for m in moves)}"
                    ),
                    priority=3,
                    node_id=node_id,
                    specifics={
                        "rebalance_plan": moves,
                        "commands": generate_rebalance_commands(moves),
                        "expected_improvement": "More even resource distribution, reduced hotspots",
                    },
                ))

        return findings

    def _plan_moves(self, node: NodeSnapshot, snapshots: SnapshotSet) -> List[ShardMove]:
        """Send the node's heaviest shards to the single least-loaded target."""
        target = find_best_target_node(snapshots.nodes, node.node_id, node.node_name)
        if target is None:
            return []

        shards = heaviest_first(get_node_shards(node, snapshots.shard_analysis))[:MAX_SHARDS_TO_MOVE]
        return [_build_move(shard, node, target, 'Balance shard distribution') for shard in shards]
