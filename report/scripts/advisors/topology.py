"""
Cluster topology checks: status, node counts and disk spread.
"""

from data_models import Impact, Severity, SnapshotSet
from advisors.base import AdvisorFindings, BaseAdvisor
from es_utils.thresholds import DISK_SPREAD_PERCENT, MIN_DATA_NODES, MIN_MASTER_NODES


class ClusterTopologyAdvisor(BaseAdvisor):
    """Stateless checks over cluster health and the node list."""

    def __init__(self):
        super().__init__("cluster_topology", "CLUSTER_STABILITY")

    def advise(self, snapshots: SnapshotSet) -> AdvisorFindings:
        findings = AdvisorFindings()
        health = snapshots.cluster_health
        nodes = snapshots.nodes

        if health and health.status == 'red':
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.CRITICAL,
                category='CLUSTER_HEALTH',
                title='Cluster Status is RED',
                description=(
                    'Cluster health is RED, indicating some primary shards are not allocated. '
                    'Data may be unavailable.'
                ),
                impact=Impact.CRITICAL,
                action='Immediately investigate and resolve shard allocation issues',
                priority=1,
            ))
        elif health and health.status == 'yellow':
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                category='CLUSTER_HEALTH',
                title='Cluster Status is YELLOW',
                description=(
                    'Cluster health is YELLOW, indicating some replica shards are not allocated. '
                    'Data is available but not fully replicated.'
                ),
                impact=Impact.MEDIUM,
                action='Investigate replica shard allocation issues',
                priority=2,
            ))

        total_nodes = (health.number_of_nodes if health else 0) or len(nodes)
        if total_nodes == 1:
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title='Single Node Cluster',
                description=(
                    'Running a single-node cluster provides no redundancy. '
                    'Node failure will result in data loss.'
                ),
                impact=Impact.HIGH,
                action='Add additional nodes for redundancy',
                priority=2,
            ))

        if not nodes:
            return findings

        master_nodes = [n for n in nodes if n.is_master]
        data_nodes = [n for n in nodes if n.is_data]

        if len(master_nodes) < MIN_MASTER_NODES:
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.CRITICAL,
                title='Insufficient Master Nodes',
                description=(
                    f"You have {len(master_nodes)} master-eligible nodes. For production clusters, you "
                    f"should have at least {MIN_MASTER_NODES} master-eligible nodes to prevent split-brain "
                    "scenarios."
                ),
                impact=Impact.HIGH,
                action='Add more master-eligible nodes',
                priority=1,
                specifics={"master_nodes": [n.node_name for n in master_nodes]},
            ))

        if len(data_nodes) < MIN_DATA_NODES:
            findings.recommendations.append(self.create_recommendation(
                severity=Severity.WARNING,
                title='Insufficient Data Nodes',
                description=(
                    f"Only {len(data_nodes)} data node(s) available. "
                    "Add more data nodes for better performance and redundancy."
                ),
                impact=Impact.MEDIUM,
                action='Add additional data nodes',
                priority=3,
            ))

        if len(data_nodes) >= 2:
            disk_usages = [n.disk_usage_percent for n in data_nodes]
            max_disk = max(disk_usages)
            min_disk = min(disk_usages)

            if max_disk - min_disk > DISK_SPREAD_PERCENT:
                findings.recommendations.append(self.create_recommendation(
                    severity=Severity.WARNING,
                    category='BALANCE',
                    title='Unbalanced Disk Usage Across Data Nodes',
                    description=(
                        f"Disk usage varies significantly across data nodes ({min_disk:.1f}% to "
                        f"{max_disk:.1f}%). This may indicate poor shard allocation."
                    ),
                    impact=Impact.MEDIUM,
                    action='Review shard allocation and rebalance if necessary',
                    priority=3,
                    specifics={
                        "disk_usage_by_node": {n.node_name: n.disk_usage_percent for n in data_nodes},
                    },
                ))

        return findings
