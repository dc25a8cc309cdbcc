"""
Recommendation engine.
Central registry that runs every advisor in a fixed order and builds the
executive summary.
"""

import logging
from typing import Any, Dict, List

from data_models import (
    AnalysisResult, ExecutiveSummary, NodeSnapshot, Recommendation, Severity, SnapshotSet
)
from advisors.base import BaseAdvisor
from advisors.node_rules import NodePerformanceAdvisor
from advisors.shard_rebalancing import ShardRebalancingAdvisor
from advisors.index_advisor import IndexOptimizationAdvisor
from advisors.shard_health import ShardHealthAdvisor
from advisors.operations import OperationsAdvisor
from advisors.topology import ClusterTopologyAdvisor
from advisors.allocation import AllocationAdvisor
from advisors.resource_contention import ResourceContentionAdvisor
from es_utils.thresholds import TOP_PRIORITY_LIMIT

logger = logging.getLogger(__name__)


def calculate_health_score(recommendations: List[Recommendation]) -> int:
    """
    Calculate overall health score based on recommendations.

    Returns score from 0-100.
    """
    score = 100

    for rec in recommendations:
        if rec.severity == Severity.CRITICAL:
            score -= 20
        elif rec.severity == Severity.WARNING:
            score -= 5
        elif rec.severity == Severity.INFO:
            score -= 1

    return max(0, min(100, score))


def _average(nodes: List[NodeSnapshot], attribute: str) -> float:
    if not nodes:
        return 0.0
    return round(sum(getattr(n, attribute) for n in nodes) / len(nodes), 1)


def build_executive_summary(
    recommendations: List[Recommendation],
    snapshots: SnapshotSet,
    insights: Dict[str, Any],
) -> ExecutiveSummary:
    """Derive the executive summary from one pass's recommendations."""
    nodes = snapshots.nodes
    critical = sum(1 for r in recommendations if r.severity == Severity.CRITICAL)
    warnings = sum(1 for r in recommendations if r.severity == Severity.WARNING)
    info = sum(1 for r in recommendations if r.severity == Severity.INFO)

    node_insights = insights.get('node_insights', {})
    nodes_with_issues = sum(1 for insight in node_insights.values() if insight.has_issues)

    return ExecutiveSummary(
        overall_health=snapshots.cluster_health.status if snapshots.cluster_health else 'unknown',
        total_nodes=len(nodes),
        data_nodes=sum(1 for n in nodes if n.is_data),
        master_nodes=sum(1 for n in nodes if n.is_master),
        critical_issues=critical,
        warnings=warnings,
        info_count=info,
        score=calculate_health_score(recommendations),
        avg_heap_usage=_average(nodes, 'heap_used_percent'),
        avg_disk_usage=_average(nodes, 'disk_usage_percent'),
        avg_cpu_usage=_average(nodes, 'cpu_usage_percent'),
        top_priority=[r for r in recommendations if r.priority == 1][:TOP_PRIORITY_LIMIT],
        actionable_insights=[
            f"{critical} critical issues requiring immediate attention",
            f"{warnings} warnings that should be addressed",
            f"{len(node_insights)} nodes analyzed for optimization opportunities",
        ],
        nodes_with_issues=nodes_with_issues,
        rebalance_opportunities=len(insights.get('imbalanced_nodes', [])),
        index_optimizations=len(insights.get('index_insights', {})),
    )


class RecommendationEngine:
    """Registry for managing and running advisors."""

    def __init__(self):
        self.advisors: List[BaseAdvisor] = []

    def register_all_advisors(self):
        """Register all advisors in execution order."""
        self.advisors = [
            NodePerformanceAdvisor(),
            ShardRebalancingAdvisor(),
            IndexOptimizationAdvisor(),
            ShardHealthAdvisor(),
            OperationsAdvisor(),
            ClusterTopologyAdvisor(),
            AllocationAdvisor(),
            ResourceContentionAdvisor(),
        ]

    def run_advisors(self, snapshots: SnapshotSet):
        """
        Run all registered advisors.

        Returns the concatenated recommendations, in advisor order, and the
        merged insights.
        """
        recommendations: List[Recommendation] = []
        insights: Dict[str, Any] = {}

        for advisor in self.advisors:
            findings = advisor.advise(snapshots)
            logger.debug("Advisor %s produced %d recommendation(s)",
                         advisor.name, len(findings.recommendations))
            recommendations.extend(findings.recommendations)
            insights.update(findings.insights)

        return recommendations, insights

    def analyze(self, snapshots: SnapshotSet) -> AnalysisResult:
        """Run one analysis pass and assemble the result."""
        recommendations, insights = self.run_advisors(snapshots)
        summary = build_executive_summary(recommendations, snapshots, insights)

        cluster_name = snapshots.cluster_name
        if cluster_name == 'unknown' and snapshots.cluster_health:
            cluster_name = snapshots.cluster_health.cluster_name

        logger.info("Analysis of %s complete: %d critical, %d warning(s), %d info",
                    cluster_name, summary.critical_issues, summary.warnings, summary.info_count)

        return AnalysisResult(
            cluster_name=cluster_name,
            recommendations=recommendations,
            summary=summary,
            nodes=list(snapshots.nodes),
            shard_analysis=snapshots.shard_analysis,
            allocation=snapshots.allocation,
            cluster_health=snapshots.cluster_health,
            insights=insights,
            timestamp=snapshots.collected_at,
        )


def generate_recommendations(snapshots: SnapshotSet) -> AnalysisResult:
    """Generate recommendations and the executive summary from one snapshot set."""
    engine = RecommendationEngine()
    engine.register_all_advisors()
    return engine.analyze(snapshots)
