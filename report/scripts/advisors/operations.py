"""
Operations checks over pending cluster tasks and long-running node tasks.
"""

from typing import Dict, List

from data_models import ActiveTask, Impact, PendingTask, Severity, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.thresholds import LONG_RUNNING_TASK_MINUTES, PENDING_TASKS_WARNING


def categorize_pending_tasks(pending_tasks: List[PendingTask]) -> Dict[str, int]:
    """Count pending tasks per source."""
    categories: Dict[str, int] = {}
    for task in pending_tasks:
        source = task.source or 'unknown'
        categories[source] = categories.get(source, 0) + 1
    return categories


def find_long_running_tasks(active_tasks: List[ActiveTask],
                            threshold_minutes: float = LONG_RUNNING_TASK_MINUTES) -> Dict[str, List[ActiveTask]]:
    """Group tasks running longer than the threshold by node id, slowest first."""
    by_node: Dict[str, List[ActiveTask]] = {}
    for task in active_tasks:
        if task.running_time_minutes > threshold_minutes:
            by_node.setdefault(task.node_id, []).append(task)

    return {
        node_id: sorted(tasks, key=lambda t: t.running_time_in_nanos, reverse=True)
        for node_id, tasks in by_node.items()
    }


class OperationsAdvisor(BaseAdvisor):
    """Flag cluster congestion and long-running operations."""

    def __init__(self):
        super().__init__("operations", "OPERATIONS")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings()
        names = {n.node_id: n.node_name for n in snapshots.nodes}

        for node_id, tasks in find_long_running_tasks(snapshots.active_tasks).items():
            node_name = names.get(node_id) or tasks[0].node_name or node_id
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title=f"Long-Running Operations on {node_name}",
                description=(
                    f"Node is running {len(tasks)} operation(s) for more than "
                    f"{LONG_RUNNING_TASK_MINUTES} minutes. Longest: {tasks[0].action} "
                    f"({tasks[0].running_time_minutes:.1f} min)."
                ),
                impact=Impact.MEDIUM,
                action='Review the listed tasks and cancel runaway searches; optimize heavy operations',
                priority=2,
                node_id=node_id,
                specifics={
                    "operations": tasks,
                    "optimizations": ['Batch smaller operations', 'Use async search for heavy queries'],
                },
            ))

        pending = snapshots.pending_tasks
        if len(pending) > PENDING_TASKS_WARNING:
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title='High Number of Pending Tasks',
                description=(
                    f"{len(pending)} tasks are pending execution. This may indicate cluster congestion."
                ),
                impact=Impact.MEDIUM,
                action='Review cluster capacity and consider scaling or optimizing operations',
                priority=2,
                specifics={
                    "pending_task_types": categorize_pending_tasks(pending),
                    "recommendations": [
                        'Consider increasing master node capacity',
                        'Review bulk operation sizing',
                        'Implement operation throttling',
                    ],
                },
            ))

        return findings
