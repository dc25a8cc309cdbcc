"""
Per-node rules: heap, disk, CPU and load average.

Every rule is evaluated independently, so one node can trigger several
recommendations. Output order per node follows rule order below.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from data_models import (
    Impact, NodeInsight, NodeSnapshot, Recommendation, Severity, ShardAnalysisSnapshot, SnapshotSet
)
from advisors.base import AdvisorFindings, BaseAdvisor
from advisors.shard_rebalancing import (
    calculate_heap_reduction, find_movable_shards, generate_rebalance_commands,
    get_node_shards, heaviest_first,
)
from es_utils.sizes import format_bytes
from es_utils.thresholds import (
    CPU_WARNING_PERCENT, DISK_CRITICAL_PERCENT, DISK_WARNING_PERCENT, GIB,
    HEAP_CRITICAL_PERCENT, HEAP_GROWTH_FACTOR, HEAP_WARNING_PERCENT,
    LOAD_AVERAGE_WARNING, MAX_SHARDS_TO_MOVE,
)

logger = logging.getLogger(__name__)


def analyze_node_operations(node: NodeSnapshot) -> Dict[str, Any]:
    """Summarize what is keeping a node's CPU busy."""
    return {
        "summary": (
            f"Indexing total: {node.indexing_rate}, search total: {node.search_rate}, "
            f"load average (1m): {node.load_average_1m:.2f}"
        ),
        "recommendations": [
            'Optimize bulk request sizes',
            'Review query patterns',
            'Consider index refresh intervals',
        ],
        "breakdown": {
            "indexing": node.indexing_rate,
            "searching": node.search_rate,
            "load_average": node.load_average_1m,
        },
        "optimizations": [
            'Reduce bulk size if > 15MB',
            'Use async search for heavy queries',
            'Implement query caching',
        ],
    }


def _issue(issue_type: str, severity: Severity, current: float, threshold: float, impact: str) -> Dict[str, Any]:
    return {
        "type": issue_type,
        "severity": severity.value,
        "current": f"{current:.1f}%",
        "threshold": f"{threshold:g}%",
        "impact": impact,
    }


class NodePerformanceAdvisor(BaseAdvisor):
    """Threshold rules evaluated for every node."""

    def __init__(self):
        super().__init__("node_performance", "MEMORY")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings(insights={"node_insights": {}})

        for node in snapshots.nodes:
            recommendations, insight = self.evaluate_node(node, snapshots.nodes, snapshots.shard_analysis)
            findings.recommendations.extend(recommendations)
            findings.insights["node_insights"][node.node_id] = insight

        return findings

    def evaluate_node(
        self,
        node: NodeSnapshot,
        nodes: List[NodeSnapshot],
        shard_analysis: Optional[ShardAnalysisSnapshot] = None,
    ) -> Tuple[List[Recommendation], NodeInsight]:
        """
        Run all node rules for one node.

        Returns the node's recommendations and its issue list.
        """
        recommendations: List[Recommendation] = []
        issues: List[Dict[str, Any]] = []
        node_shards = heaviest_first(get_node_shards(node, shard_analysis))

        if node.heap_used_percent > HEAP_CRITICAL_PERCENT:
            issues.append(_issue('HIGH_HEAP_USAGE', Severity.CRITICAL, node.heap_used_percent,
                                 HEAP_CRITICAL_PERCENT, 'GC pressure, performance degradation, potential OOM'))
            recommendations.extend(self._high_heap(node, nodes, node_shards))
        elif node.heap_used_percent > HEAP_WARNING_PERCENT:
            issues.append(_issue('ELEVATED_HEAP_USAGE', Severity.WARNING, node.heap_used_percent,
                                 HEAP_WARNING_PERCENT, 'Rising GC pressure'))
            recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title=f"Elevated Heap Usage on {node.node_name}",
                description=(
                    f"Node {node.node_name} is using {node.heap_used_percent:.1f}% of heap memory. "
                    "Monitor closely."
                ),
                impact=Impact.MEDIUM,
                action='Monitor heap usage and consider optimization',
                priority=2,
                node_id=node.node_id,
            ))

        if node.disk_usage_percent > DISK_CRITICAL_PERCENT:
            issues.append(_issue('CRITICAL_DISK_USAGE', Severity.CRITICAL, node.disk_usage_percent,
                                 DISK_CRITICAL_PERCENT, 'Writes refused at 95%'))
            recommendations.append(self.create_recommendation(
                severity=Severity.CRITICAL,
                category='STORAGE',
                title=f"Critical Disk Usage on {node.node_name}",
                description=(
                    f"Node {node.node_name} is using {node.disk_usage_percent:.1f}% of disk space. "
                    "Elasticsearch will start refusing new data at 95%."
                ),
                impact=Impact.CRITICAL,
                action='Free up disk space immediately or add storage',
                priority=1,
                node_id=node.node_id,
            ))
        elif node.disk_usage_percent > DISK_WARNING_PERCENT:
            issues.append(_issue('HIGH_DISK_USAGE', Severity.WARNING, node.disk_usage_percent,
                                 DISK_WARNING_PERCENT, 'Approaching disk watermarks'))
            recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                category='STORAGE',
                title=f"High Disk Usage on {node.node_name}",
                description=f"Node {node.node_name} is using {node.disk_usage_percent:.1f}% of disk space.",
                impact=Impact.MEDIUM,
                action='Plan for additional storage or data cleanup',
                priority=2,
                node_id=node.node_id,
            ))

        if node.cpu_usage_percent > CPU_WARNING_PERCENT:
            operations = analyze_node_operations(node)
            issues.append(_issue('HIGH_CPU_USAGE', Severity.WARNING, node.cpu_usage_percent,
                                 CPU_WARNING_PERCENT, 'Query slowdown, indexing delays'))
            recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                category='CPU',
                title=f"High CPU Load on {node.node_name}",
                description=(
                    f"Node {node.node_name} shows {node.cpu_usage_percent:.1f}% CPU usage. "
                    f"Analysis shows: {operations['summary']}"
                ),
                impact=Impact.MEDIUM,
                action=f"{operations['summary']}. {'; '.join(operations['recommendations'])}",
                priority=2,
                node_id=node.node_id,
                specifics={
                    "cpu_breakdown": operations['breakdown'],
                    "optimizations": operations['optimizations'],
                },
            ))

        if node.load_average_1m > LOAD_AVERAGE_WARNING:
            issues.append({
                "type": 'HIGH_LOAD_AVERAGE',
                "severity": Severity.WARNING.value,
                "current": f"{node.load_average_1m:.2f}",
                "threshold": f"{LOAD_AVERAGE_WARNING:g}",
                "impact": 'System stress',
            })
            recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                category='PERFORMANCE',
                title=f"High Load Average on {node.node_name}",
                description=(
                    f"Node {node.node_name} has a 1-minute load average of {node.load_average_1m:.2f}. "
                    "This indicates system stress."
                ),
                impact=Impact.MEDIUM,
                action='Investigate system bottlenecks',
                priority=2,
                node_id=node.node_id,
            ))

        if issues:
            logger.debug("Node %s: %d issue(s)", node.node_name, len(issues))

        insight = NodeInsight(
            node_id=node.node_id,
            node_name=node.node_name,
            roles=list(node.roles),
            shard_count=len(node_shards),
            largest_shards=node_shards[:5],
            issues=issues,
        )
        return recommendations, insight

    def _high_heap(self, node: NodeSnapshot, nodes: List[NodeSnapshot], node_shards) -> List[Recommendation]:
        recommendations = [self.create_recommendation(
            severity=Severity.CRITICAL,
            title=f"High Heap Usage on {node.node_name}",
            description=(
                f"Node {node.node_name} is using {node.heap_used_percent:.1f}% of heap memory. "
                "This can cause GC pressure and performance issues."
            ),
            impact=Impact.HIGH,
            action='Increase heap size or reduce data/query load',
            priority=1,
            node_id=node.node_id,
        )]

        heaviest = node_shards[:MAX_SHARDS_TO_MOVE]
        moves = find_movable_shards(heaviest, nodes, node) if heaviest else []

        if moves:
            reduction = calculate_heap_reduction(moves)
            recommendations.append(self.create_recommendation(
                severity=Severity.CRITICAL,
                category='SHARD_REBALANCING',
                title=f"Rebalance Heavy Shards from {node.node_name}",
                description=(
                    f"Node {node.node_name} ({node.heap_used_percent:.1f}% heap) has {len(heaviest)} large "
                    "shards consuming significant memory. Move specific shards to reduce heap pressure."
                ),
                impact=Impact.HIGH,
                action=(
                    f"Move shards: {', '.join(f'{m.index}[{m.shard}]' for m in moves)} "
                    f"to nodes: {', '.join(m.target_node for m in moves)}"
                ),
                priority=1,
                node_id=node.node_id,
                specifics={
                    "shards_to_move": moves,
                    "expected_heap_reduction": round(reduction, 2),
                    "commands": generate_rebalance_commands(moves),
                },
            ))

        suggested_heap = node.heap_max_bytes * HEAP_GROWTH_FACTOR
        suggested_gb = math.floor(suggested_heap / GIB)
        recommendations.append(self.create_recommendation(
            severity=Severity.WARNING,
            title=f"Increase Heap Size for {node.node_name}",
            description=(
                f"Current heap: {format_bytes(node.heap_used_bytes)}/{format_bytes(node.heap_max_bytes)}. "
                "Consider increasing heap size."
            ),
            impact=Impact.MEDIUM,
            action=(
                f"Increase heap from {format_bytes(node.heap_max_bytes)} to {format_bytes(suggested_heap)} "
                "(but not exceed 50% of RAM)"
            ),
            priority=2,
            node_id=node.node_id,
            specifics={
                "current_heap": node.heap_max_bytes,
                "suggested_heap": suggested_heap,
                "commands": [f'docker run -e "ES_JAVA_OPTS=-Xms{suggested_gb}g -Xmx{suggested_gb}g"'],
            },
        ))

        return recommendations
