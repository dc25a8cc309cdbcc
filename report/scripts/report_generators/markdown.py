"""
Markdown report generator.
"""

from typing import List
from data_models import AnalysisResult, Recommendation, Severity


def generate_markdown_report(result: AnalysisResult) -> str:
    """
    Generate Markdown formatted recommendation report.

    Returns complete Markdown string.
    """
    lines = []
    summary = result.summary

    lines.append("# Cluster Recommendations Report\n")
    lines.append(f"**Generated**: {result.timestamp or 'unknown'}\n")
    lines.append(f"**Cluster**: {result.cluster_name}\n")

    lines.append("## Executive Summary\n")
    lines.append(f"- **Cluster Status**: {_get_status_emoji(summary.overall_health)} {summary.overall_health}")
    lines.append(f"- **Nodes**: {summary.total_nodes} ({summary.data_nodes} data, {summary.master_nodes} master)")
    lines.append(f"- **Critical Issues**: {summary.critical_issues}")
    lines.append(f"- **Warnings**: {summary.warnings}")
    lines.append(f"- **Info**: {summary.info_count}")
    lines.append(f"- **Average Heap / Disk / CPU**: "
                 f"{summary.avg_heap_usage}% / {summary.avg_disk_usage}% / {summary.avg_cpu_usage}%")
    lines.append(f"- **Overall Score**: {summary.score}/100\n")

    if summary.top_priority:
        lines.append("### Top Priorities\n")
        for rec in summary.top_priority:
            lines.append(f"- {rec.title}")
        lines.append("")

    sections = [
        (Severity.CRITICAL, "Critical Issues"),
        (Severity.WARNING, "Warnings"),
        (Severity.INFO, "Information"),
    ]
    for severity, heading in sections:
        recs = result.get_recommendations_by_severity(severity)
        if recs:
            lines.append(f"## {heading}\n")
            lines.extend(_render_recommendations(recs))

    if not result.recommendations:
        lines.append("No issues detected.\n")

    if result.nodes:
        lines.append("## Node Overview\n")
        lines.append("| Node | Roles | Heap % | CPU % | Disk % | Load 1m |")
        lines.append("|------|-------|--------|-------|--------|---------|")
        for node in result.nodes:
            roles = ', '.join(node.roles) or '-'
            lines.append(f"| {node.node_name} | {roles} | {node.heap_used_percent:.1f}% | "
                         f"{node.cpu_usage_percent:.1f}% | {node.disk_usage_percent:.1f}% | "
                         f"{node.load_average_1m:.2f} |")
        lines.append("")

    return "\n".join(lines)


def _render_recommendations(recs: List[Recommendation]) -> List[str]:
    lines = []
    for i, rec in enumerate(recs, 1):
        lines.append(f"### {i}. {rec.title}")
        lines.append(f"- **Category**: {rec.category} (priority {rec.priority}, impact {rec.impact.value})")
        lines.append(f"- **Description**: {rec.description}")
        lines.append(f"- **Action**: {rec.action}")

        commands = (rec.specifics or {}).get('commands')
        if commands:
            lines.append("- **Suggested commands** (review before running):\n")
            lines.append("```")
            lines.extend(commands)
            lines.append("```")
        lines.append("")
    return lines


def _get_status_emoji(status: str) -> str:
    """Get emoji for cluster status."""
    if status == 'green':
        return '✅'
    elif status == 'yellow':
        return '⚠️'
    elif status == 'red':
        return '❌'
    return '❓'
