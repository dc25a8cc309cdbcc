"""
Data models for the Elasticsearch cluster recommendation engine.

Snapshots are built once per poll cycle by the snapshot parser (or any other
collector) and are never mutated afterwards. Numeric gauges that arrive as
None are replaced with 0, and missing lists and mappings with empty ones, at
construction time so that rules can use them directly.
"""

from dataclasses import MISSING, dataclass, field, fields
from typing import Dict, List, Optional, Any
from enum import Enum


DATA_ROLES = ('data', 'data_hot', 'data_warm', 'data_cold', 'data_content', 'data_frozen')


class Severity(Enum):
    """Severity levels for recommendations."""
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


class Impact(Enum):
    """Expected impact of leaving a finding unaddressed."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def _zero_missing_numbers(instance) -> None:
    """Replace None in int/float fields with 0 on a frozen dataclass."""
    for f in fields(instance):
        if f.type in (int, float, 'int', 'float') and getattr(instance, f.name) is None:
            object.__setattr__(instance, f.name, 0)


def _default_missing_collections(instance) -> None:
    """Replace None in fields that have a default factory with a fresh default."""
    for f in fields(instance):
        if f.default_factory is not MISSING and getattr(instance, f.name) is None:
            object.__setattr__(instance, f.name, f.default_factory())


@dataclass(frozen=True)
class NodeSnapshot:
    """Current stats of a single node in the cluster."""
    node_id: str
    node_name: str
    roles: List[str] = field(default_factory=list)
    cpu_usage_percent: float = 0
    heap_used_percent: float = 0
    heap_used_bytes: int = 0
    heap_max_bytes: int = 0
    disk_usage_percent: float = 0
    disk_total_bytes: int = 0
    disk_used_bytes: int = 0
    disk_available_bytes: int = 0
    load_average_1m: float = 0
    load_average_5m: float = 0
    load_average_15m: float = 0
    open_file_descriptors: int = 0
    max_file_descriptors: int = 0
    indexing_rate: int = 0
    search_rate: int = 0
    uptime: str = ""
    version: str = ""

    def __post_init__(self):
        _zero_missing_numbers(self)
        _default_missing_collections(self)

    @property
    def is_master(self) -> bool:
        return 'master' in self.roles

    @property
    def is_data(self) -> bool:
        return any(role in DATA_ROLES for role in self.roles)

    @property
    def is_ingest(self) -> bool:
        return 'ingest' in self.roles

    def to_dict(self) -> Dict[str, Any]:
        """Convert node snapshot to dictionary."""
        return {
            "node_id": self.node_id,
            "node_name": self.node_name,
            "roles": list(self.roles),
            "is_master": self.is_master,
            "is_data": self.is_data,
            "is_ingest": self.is_ingest,
            "cpu_usage_percent": self.cpu_usage_percent,
            "heap_used_percent": self.heap_used_percent,
            "heap_used_bytes": self.heap_used_bytes,
            "heap_max_bytes": self.heap_max_bytes,
            "disk_usage_percent": self.disk_usage_percent,
            "disk_total_bytes": self.disk_total_bytes,
            "disk_used_bytes": self.disk_used_bytes,
            "disk_available_bytes": self.disk_available_bytes,
            "load_average_1m": self.load_average_1m,
            "load_average_5m": self.load_average_5m,
            "load_average_15m": self.load_average_15m,
            "open_file_descriptors": self.open_file_descriptors,
            "max_file_descriptors": self.max_file_descriptors,
            "indexing_rate": self.indexing_rate,
            "search_rate": self.search_rate,
            "uptime": self.uptime,
            "version": self.version,
        }


@dataclass(frozen=True)
class ShardRecord:
    """A single shard copy and its placement."""
    index: str
    shard: int
    prirep: str
    state: str
    docs: int = 0
    store: Optional[str] = None
    store_bytes: int = 0
    node: Optional[str] = None
    node_id: Optional[str] = None
    unassigned_reason: Optional[str] = None

    def __post_init__(self):
        _zero_missing_numbers(self)

    @property
    def role(self) -> str:
        return 'primary' if self.prirep == 'p' else 'replica'

    @property
    def is_primary(self) -> bool:
        return self.prirep == 'p'

    def to_dict(self) -> Dict[str, Any]:
        """Convert shard record to dictionary."""
        return {
            "index": self.index,
            "shard": self.shard,
            "prirep": self.prirep,
            "state": self.state,
            "docs": self.docs,
            "store": self.store,
            "store_bytes": self.store_bytes,
            "node": self.node,
            "node_id": self.node_id,
            "unassigned_reason": self.unassigned_reason,
        }


@dataclass(frozen=True)
class ShardAnalysisSnapshot:
    """Aggregate view over all shard records of one poll cycle."""
    largest_shards: List[ShardRecord] = field(default_factory=list)
    unassigned_shards: List[ShardRecord] = field(default_factory=list)
    shard_distribution: Dict[str, int] = field(default_factory=dict)
    index_shard_counts: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        _default_missing_collections(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert shard analysis to dictionary."""
        return {
            "largest_shards": [s.to_dict() for s in self.largest_shards],
            "unassigned_shards": [s.to_dict() for s in self.unassigned_shards],
            "shard_distribution": dict(self.shard_distribution),
            "index_shard_counts": dict(self.index_shard_counts),
        }


@dataclass(frozen=True)
class NodeAllocation:
    """Disk allocation of a single node as reported by _cat/allocation."""
    node: str
    shards: int = 0
    disk_indices: Optional[str] = None
    disk_used: Optional[str] = None
    disk_avail: Optional[str] = None
    disk_total: Optional[str] = None
    disk_percent: float = 0
    host: Optional[str] = None
    ip: Optional[str] = None

    def __post_init__(self):
        _zero_missing_numbers(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert node allocation to dictionary."""
        return {
            "node": self.node,
            "shards": self.shards,
            "disk_indices": self.disk_indices,
            "disk_used": self.disk_used,
            "disk_avail": self.disk_avail,
            "disk_total": self.disk_total,
            "disk_percent": self.disk_percent,
            "host": self.host,
            "ip": self.ip,
        }


@dataclass(frozen=True)
class ClusterShardStats:
    """Cluster-wide shard counters."""
    active_primary_shards: int = 0
    active_shards: int = 0
    relocating_shards: int = 0
    initializing_shards: int = 0
    unassigned_shards: int = 0

    def __post_init__(self):
        _zero_missing_numbers(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert shard counters to dictionary."""
        return {
            "active_primary_shards": self.active_primary_shards,
            "active_shards": self.active_shards,
            "relocating_shards": self.relocating_shards,
            "initializing_shards": self.initializing_shards,
            "unassigned_shards": self.unassigned_shards,
        }


@dataclass(frozen=True)
class AllocationSnapshot:
    """Per-node disk allocation plus cluster shard counters."""
    node_allocations: List[NodeAllocation] = field(default_factory=list)
    cluster_shard_stats: ClusterShardStats = field(default_factory=ClusterShardStats)

    def __post_init__(self):
        _default_missing_collections(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert allocation snapshot to dictionary."""
        return {
            "node_allocations": [a.to_dict() for a in self.node_allocations],
            "cluster_shard_stats": self.cluster_shard_stats.to_dict(),
        }


@dataclass(frozen=True)
class ClusterHealthSnapshot:
    """Cluster health as reported by _cluster/health."""
    status: str
    cluster_name: str = "unknown"
    number_of_nodes: int = 0
    number_of_data_nodes: int = 0
    shard_stats: ClusterShardStats = field(default_factory=ClusterShardStats)

    def __post_init__(self):
        _zero_missing_numbers(self)
        _default_missing_collections(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert cluster health to dictionary."""
        return {
            "status": self.status,
            "cluster_name": self.cluster_name,
            "number_of_nodes": self.number_of_nodes,
            "number_of_data_nodes": self.number_of_data_nodes,
            **self.shard_stats.to_dict(),
        }


@dataclass(frozen=True)
class PendingTask:
    """A queued cluster-state update task."""
    source: str = "unknown"
    priority: str = "NORMAL"
    insert_order: int = 0
    time_in_queue_millis: int = 0

    def __post_init__(self):
        _zero_missing_numbers(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "priority": self.priority,
            "insert_order": self.insert_order,
            "time_in_queue_millis": self.time_in_queue_millis,
        }


@dataclass(frozen=True)
class ActiveTask:
    """A task currently running on a node."""
    node_id: str
    action: str
    node_name: Optional[str] = None
    description: str = ""
    running_time_in_nanos: int = 0

    def __post_init__(self):
        _zero_missing_numbers(self)

    @property
    def running_time_minutes(self) -> float:
        return self.running_time_in_nanos / 60e9

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "node_name": self.node_name,
            "action": self.action,
            "description": self.description,
            "running_time_in_nanos": self.running_time_in_nanos,
            "running_time_minutes": round(self.running_time_minutes, 1),
        }


@dataclass(frozen=True)
class SnapshotSet:
    """All snapshots collected during one poll cycle."""
    nodes: List[NodeSnapshot] = field(default_factory=list)
    shard_analysis: Optional[ShardAnalysisSnapshot] = None
    allocation: Optional[AllocationSnapshot] = None
    cluster_health: Optional[ClusterHealthSnapshot] = None
    pending_tasks: List[PendingTask] = field(default_factory=list)
    active_tasks: List[ActiveTask] = field(default_factory=list)
    cluster_name: str = "unknown"
    collected_at: Optional[str] = None

    def __post_init__(self):
        _default_missing_collections(self)


@dataclass(frozen=True)
class ShardMove:
    """A suggested relocation of one shard to a less loaded node."""
    index: str
    shard: int
    prirep: str
    store_bytes: int
    source_node: Optional[str]
    source_node_id: Optional[str]
    target_node: str
    target_node_id: str
    expected_heap_reduction: float
    reason: str = ""

    @property
    def expected_benefit(self) -> str:
        return f"Reduce source heap by ~{self.expected_heap_reduction:.1f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "shard": self.shard,
            "prirep": self.prirep,
            "store_bytes": self.store_bytes,
            "source_node": self.source_node,
            "source_node_id": self.source_node_id,
            "target_node": self.target_node,
            "target_node_id": self.target_node_id,
            "expected_heap_reduction": round(self.expected_heap_reduction, 2),
            "expected_benefit": self.expected_benefit,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Recommendation:
    """A single actionable finding produced by an advisor."""
    severity: Severity
    category: str
    title: str
    description: str
    impact: Impact
    action: str
    priority: int
    node_id: Optional[str] = None
    specifics: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert recommendation to dictionary."""
        return {
            "severity": self.severity.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
            "action": self.action,
            "priority": self.priority,
            "node_id": self.node_id,
            "specifics": _serialize(self.specifics),
        }


@dataclass(frozen=True)
class NodeInsight:
    """Per-node issue list collected while evaluating node rules."""
    node_id: str
    node_name: str
    roles: List[str] = field(default_factory=list)
    shard_count: int = 0
    largest_shards: List[ShardRecord] = field(default_factory=list)
    issues: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "node_name": self.node_name,
            "roles": list(self.roles),
            "shard_count": self.shard_count,
            "largest_shards": [s.to_dict() for s in self.largest_shards],
            "issues": list(self.issues),
        }


@dataclass(frozen=True)
class ExecutiveSummary:
    """Headline numbers derived from one analysis pass."""
    overall_health: str
    total_nodes: int
    data_nodes: int
    master_nodes: int
    critical_issues: int
    warnings: int
    info_count: int
    score: int
    avg_heap_usage: float
    avg_disk_usage: float
    avg_cpu_usage: float
    top_priority: List[Recommendation] = field(default_factory=list)
    actionable_insights: List[str] = field(default_factory=list)
    nodes_with_issues: int = 0
    rebalance_opportunities: int = 0
    index_optimizations: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary."""
        return {
            "overall_health": self.overall_health,
            "total_nodes": self.total_nodes,
            "data_nodes": self.data_nodes,
            "master_nodes": self.master_nodes,
            "critical_issues": self.critical_issues,
            "warnings": self.warnings,
            "info_count": self.info_count,
            "score": self.score,
            "avg_heap_usage": self.avg_heap_usage,
            "avg_disk_usage": self.avg_disk_usage,
            "avg_cpu_usage": self.avg_cpu_usage,
            "top_priority": [r.to_dict() for r in self.top_priority],
            "actionable_insights": list(self.actionable_insights),
            "nodes_with_issues": self.nodes_with_issues,
            "rebalance_opportunities": self.rebalance_opportunities,
            "index_optimizations": self.index_optimizations,
        }


@dataclass
class AnalysisResult:
    """Complete output of one engine run."""
    cluster_name: str
    recommendations: List[Recommendation]
    summary: ExecutiveSummary
    nodes: List[NodeSnapshot] = field(default_factory=list)
    shard_analysis: Optional[ShardAnalysisSnapshot] = None
    allocation: Optional[AllocationSnapshot] = None
    cluster_health: Optional[ClusterHealthSnapshot] = None
    insights: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def get_recommendations_by_severity(self, severity: Severity) -> List[Recommendation]:
        """Get all recommendations of a specific severity."""
        return [r for r in self.recommendations if r.severity == severity]

    def get_recommendations_by_category(self, category: str) -> List[Recommendation]:
        """Get all recommendations in a specific category."""
        return [r for r in self.recommendations if r.category == category]

    def to_dict(self) -> Dict[str, Any]:
        """Convert analysis result to dictionary."""
        return {
            "cluster_name": self.cluster_name,
            "timestamp": self.timestamp,
            "summary": self.summary.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "node_analysis": [n.to_dict() for n in self.nodes],
            "shard_analysis": self.shard_analysis.to_dict() if self.shard_analysis else None,
            "allocation_analysis": self.allocation.to_dict() if self.allocation else None,
            "cluster_health": self.cluster_health.to_dict() if self.cluster_health else None,
            "insights": _serialize(self.insights),
        }


def _serialize(value: Any) -> Any:
    """Recursively convert model objects inside specifics/insights to plain data."""
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value
