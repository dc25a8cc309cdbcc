"""
Disk watermark checks over _cat/allocation.
"""

from data_models import Impact, Severity, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.thresholds import WATERMARK_HIGH_PERCENT, WATERMARK_WARNING_PERCENT


class AllocationAdvisor(BaseAdvisor):
    """Check each node's allocated disk against the high watermark."""

    def __init__(self):
        super().__init__("allocation", "STORAGE")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings()

        if not snapshots.allocation:
            return findings

        for allocation in snapshots.allocation.node_allocations:
            disk_percent = allocation.disk_percent

            if disk_percent > WATERMARK_HIGH_PERCENT:
                findings.recommendations.append(self.create_recommendation(
                    severity=Severity.CRITICAL,
                    title=f"Node {allocation.node} Exceeds High Watermark",
                    description=(
                        f"Node {allocation.node} is using {disk_percent:g}% disk space, exceeding the high "
                        f"watermark ({WATERMARK_HIGH_PERCENT:g}%). New shards cannot be allocated to this node."
                    ),
                    impact=Impact.CRITICAL,
                    action='Immediately free up disk space or add storage',
                    priority=1,
                ))
            elif disk_percent > WATERMARK_WARNING_PERCENT:
                findings.recommendations.append(self.create_recommendation(
                    severity=Severity.WARNING,
                    title=f"Node {allocation.node} Approaching High Watermark",
                    description=(
                        f"Node {allocation.node} is using {disk_percent:g}% disk space, approaching the high "
                        f"watermark ({WATERMARK_HIGH_PERCENT:g}%)."
                    ),
                    impact=Impact.MEDIUM,
                    action='Plan for additional storage or data cleanup',
                    priority=2,
                ))

        return findings
