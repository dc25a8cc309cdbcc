"""
Snapshot parser for Elasticsearch monitoring API responses.

Builds the snapshot objects consumed by the recommendation engine from raw
API JSON, either already loaded in memory or read from a diagnostic ZIP
archive / directory. Missing values are replaced with defaults here, once,
so the advisors never have to.
"""

import json
import logging
import re
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from data_models import (
    ActiveTask, AllocationSnapshot, ClusterHealthSnapshot, ClusterShardStats, NodeAllocation,
    NodeSnapshot, PendingTask, ShardAnalysisSnapshot, ShardRecord, SnapshotSet,
)
from es_utils.sizes import has_size, parse_size
from es_utils.thresholds import DEFAULT_LARGEST_SHARDS_LIMIT

logger = logging.getLogger(__name__)

ROLE_ABBREVIATIONS = {
    'c': 'data_cold',
    'd': 'data',
    'f': 'data_frozen',
    'h': 'data_hot',
    'i': 'ingest',
    'l': 'ml',
    'm': 'master',
    'r': 'remote_cluster_client',
    's': 'data_content',
    't': 'transform',
    'v': 'voting_only',
    'w': 'data_warm',
}

CAT_SOURCES = ('cat_nodes', 'cat_shards', 'cat_allocation')


def extract_archive(archive_path: str, extract_to: str) -> Dict[str, Path]:
    """
    Extract diagnostic ZIP archive and return file mapping.

    Returns:
        {
            'cat_shards': Path('cat/cat_shards.txt'),
            'nodes_stats': Path('nodes_stats.json'),
            ...
        }
    """
    archive_file = Path(archive_path)
    extract_dir = Path(extract_to)

    if not archive_file.exists():
        raise FileNotFoundError(f"Archive not found: {archive_path}")

    extract_dir.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(archive_file, 'r') as zf:
        zf.extractall(extract_dir)

    return map_source_files(extract_dir)


def map_source_files(root: Path) -> Dict[str, Path]:
    """Map API response files under root to source keys (file stem)."""
    file_map = {}

    for file_path in sorted(root.rglob('*')):
        if not file_path.is_file():
            continue

        if file_path.suffix == '.json':
            file_map[file_path.stem] = file_path
        elif file_path.suffix == '.txt' and file_path.stem.startswith('cat_'):
            file_map.setdefault(f"{file_path.stem}_text", file_path)

    file_map['root'] = root
    return file_map


def parse_cat_text_file(file_path: Optional[Path]) -> List[Dict[str, str]]:
    """
    Parse cat API text files with whitespace-aligned columns.

    Cells are matched to columns by their position under the header line, so
    blank cells in the middle of a row (docs, store, ip and node of an
    unassigned shard) are simply absent from that row. Left-aligned text and
    right-aligned numbers both overlap their header. Words past the last
    header belong to the last column, e.g. unassigned.details.

    Returns list of dictionaries mapping column names to values.
    """
    if not file_path or not file_path.exists():
        return []

    data = []
    with open(file_path, 'r', encoding='utf-8', errors='ignore') as f:
        lines = f.readlines()

    spans = None

    for line in lines:
        line = line.rstrip('\r\n').expandtabs()

        if not line.strip() or line.lstrip().startswith('['):
            continue

        if spans is None:
            spans = _token_spans(line)
            continue

        row: Dict[str, str] = {}
        for value, start, end in _token_spans(line):
            column = spans[_column_for(start, end, spans)][0]
            row[column] = f"{row[column]} {value}" if column in row else value

        data.append(row)

    return data


def _token_spans(line: str) -> List[Tuple[str, int, int]]:
    return [(m.group(), m.start(), m.end()) for m in re.finditer(r'\S+', line)]


def _column_for(start: int, end: int, spans: List[Tuple[str, int, int]]) -> int:
    """Index of the header column overlapping [start, end), else the nearest one."""
    distances = []
    for i, (_, col_start, col_end) in enumerate(spans):
        if start < col_end and end > col_start:
            return i
        distances.append(col_start - end if end <= col_start else start - col_end)
    return distances.index(min(distances))


def parse_json_file(file_path: Optional[Path]) -> Optional[Any]:
    """Parse JSON file and return data."""
    if not file_path or not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring invalid JSON in %s: %s", file_path, e)
        return None


def load_responses(file_map: Dict[str, Path]) -> Dict[str, Any]:
    """Load every known API response from a file map."""
    responses = {}

    for key in ('nodes_stats', 'nodes', 'cluster_health', 'pending_tasks', 'tasks', 'manifest'):
        responses[key] = parse_json_file(file_map.get(key))

    for key in CAT_SOURCES:
        rows = parse_json_file(file_map.get(key))
        if rows is None:
            rows = parse_cat_text_file(file_map.get(f"{key}_text"))
        responses[key] = rows or []

    missing = [k for k, v in responses.items() if not v]
    if missing:
        logger.debug("No data for: %s", ', '.join(missing))

    return responses


def parse_roles(raw_roles: Any) -> List[str]:
    """Normalize roles from a list of names or a cat abbreviation string like 'dim'."""
    if not raw_roles:
        return []
    if isinstance(raw_roles, str):
        if raw_roles == '-':
            return []
        return [ROLE_ABBREVIATIONS[c] for c in raw_roles if c in ROLE_ABBREVIATIONS]
    return list(raw_roles)


def parse_nodes(nodes_stats: Optional[Dict[str, Any]],
                nodes_info: Optional[Dict[str, Any]] = None,
                cat_nodes: Optional[List[Dict[str, Any]]] = None) -> List[NodeSnapshot]:
    """Parse node snapshots from _nodes/stats, _nodes and _cat/nodes."""
    nodes = []
    info_nodes = (nodes_info or {}).get('nodes', {})
    cat_nodes = cat_nodes or []

    for node_id, node_data in (nodes_stats or {}).get('nodes', {}).items():
        name = node_data.get('name', node_id)
        info = info_nodes.get(node_id, {})
        cat_node = next((n for n in cat_nodes if n.get('id') == node_id), None) or \
            next((n for n in cat_nodes if n.get('name') == name), {})

        mem = node_data.get('jvm', {}).get('mem', {})
        os_cpu = node_data.get('os', {}).get('cpu', {})
        fs_total = node_data.get('fs', {}).get('total', {})
        process = node_data.get('process', {})
        indices = node_data.get('indices', {})
        load_avg = os_cpu.get('load_average', {}) or {}

        heap_used = mem.get('heap_used_in_bytes', 0) or 0
        heap_max = mem.get('heap_max_in_bytes', 0) or 0
        disk_total = fs_total.get('total_in_bytes', 0) or 0
        disk_available = fs_total.get('available_in_bytes', 0) or 0

        roles = info.get('roles') or node_data.get('roles') or cat_node.get('node.role')

        nodes.append(NodeSnapshot(
            node_id=node_id,
            node_name=name,
            roles=parse_roles(roles),
            cpu_usage_percent=os_cpu.get('percent', 0) or 0,
            heap_used_percent=(heap_used / heap_max * 100) if heap_max else 0,
            heap_used_bytes=heap_used,
            heap_max_bytes=heap_max,
            disk_usage_percent=((disk_total - disk_available) / disk_total * 100) if disk_total else 0,
            disk_total_bytes=disk_total,
            disk_used_bytes=disk_total - disk_available if disk_total else 0,
            disk_available_bytes=disk_available,
            load_average_1m=load_avg.get('1m', 0) or 0,
            load_average_5m=load_avg.get('5m', 0) or 0,
            load_average_15m=load_avg.get('15m', 0) or 0,
            open_file_descriptors=process.get('open_file_descriptors', 0) or 0,
            max_file_descriptors=process.get('max_file_descriptors', 0) or 0,
            indexing_rate=indices.get('indexing', {}).get('index_total', 0) or 0,
            search_rate=indices.get('search', {}).get('query_total', 0) or 0,
            uptime=cat_node.get('uptime') or '',
            version=cat_node.get('version') or info.get('version') or '',
        ))

    return nodes


def parse_shards(cat_shards: List[Dict[str, Any]]) -> List[ShardRecord]:
    """Parse shard records from _cat/shards rows."""
    shards = []

    for row in cat_shards or []:
        node = row.get('node')
        shards.append(ShardRecord(
            index=row.get('index', 'unknown'),
            shard=_parse_int(row.get('shard')) or 0,
            prirep=row.get('prirep', 'p'),
            state=row.get('state', 'unknown'),
            docs=_parse_int(row.get('docs')) or 0,
            store=row.get('store'),
            store_bytes=parse_size(row.get('store')),
            node=node if node and node != 'UNASSIGNED' else None,
            node_id=row.get('node.id') or row.get('id'),
            unassigned_reason=row.get('unassigned.reason'),
        ))

    return shards


def build_shard_analysis(shards: List[ShardRecord],
                         largest_limit: int = DEFAULT_LARGEST_SHARDS_LIMIT) -> ShardAnalysisSnapshot:
    """Aggregate shard records into the shard analysis snapshot."""
    sized = [s for s in shards if has_size(s.store)]
    largest = sorted(sized, key=lambda s: s.store_bytes, reverse=True)[:largest_limit]

    unassigned = [
        ShardRecord(
            index=s.index, shard=s.shard, prirep=s.prirep, state=s.state,
            unassigned_reason=s.unassigned_reason or 'unknown',
        )
        for s in shards if s.state == 'UNASSIGNED'
    ]

    distribution: Dict[str, int] = {}
    index_counts: Dict[str, int] = {}
    for shard in shards:
        if shard.node:
            distribution[shard.node] = distribution.get(shard.node, 0) + 1
        if shard.index:
            index_counts[shard.index] = index_counts.get(shard.index, 0) + 1

    return ShardAnalysisSnapshot(
        largest_shards=largest,
        unassigned_shards=unassigned,
        shard_distribution=distribution,
        index_shard_counts=index_counts,
    )


def parse_shard_stats(health: Optional[Dict[str, Any]]) -> ClusterShardStats:
    health = health or {}
    return ClusterShardStats(
        active_primary_shards=_parse_int(health.get('active_primary_shards')) or 0,
        active_shards=_parse_int(health.get('active_shards')) or 0,
        relocating_shards=_parse_int(health.get('relocating_shards')) or 0,
        initializing_shards=_parse_int(health.get('initializing_shards')) or 0,
        unassigned_shards=_parse_int(health.get('unassigned_shards')) or 0,
    )


def parse_cluster_health(health: Optional[Dict[str, Any]]) -> Optional[ClusterHealthSnapshot]:
    """Parse _cluster/health. Returns None when the response is absent."""
    if not health:
        return None

    return ClusterHealthSnapshot(
        status=health.get('status', 'unknown'),
        cluster_name=health.get('cluster_name', 'unknown'),
        number_of_nodes=_parse_int(health.get('number_of_nodes')) or 0,
        number_of_data_nodes=_parse_int(health.get('number_of_data_nodes')) or 0,
        shard_stats=parse_shard_stats(health),
    )


def parse_allocation(cat_allocation: List[Dict[str, Any]],
                     health: Optional[Dict[str, Any]] = None) -> AllocationSnapshot:
    """Parse _cat/allocation rows plus the cluster shard counters."""
    allocations = [
        NodeAllocation(
            node=row.get('node', 'unknown'),
            shards=_parse_int(row.get('shards')) or 0,
            disk_indices=row.get('disk.indices'),
            disk_used=row.get('disk.used'),
            disk_avail=row.get('disk.avail'),
            disk_total=row.get('disk.total'),
            disk_percent=_parse_float(row.get('disk.percent')) or 0,
            host=row.get('host'),
            ip=row.get('ip'),
        )
        for row in cat_allocation or []
        if row.get('node') != 'UNASSIGNED'
    ]

    return AllocationSnapshot(node_allocations=allocations, cluster_shard_stats=parse_shard_stats(health))


def parse_pending_tasks(pending: Optional[Dict[str, Any]]) -> List[PendingTask]:
    """Parse _cluster/pending_tasks."""
    return [
        PendingTask(
            source=task.get('source') or 'unknown',
            priority=task.get('priority', 'NORMAL'),
            insert_order=_parse_int(task.get('insert_order')) or 0,
            time_in_queue_millis=_parse_int(task.get('time_in_queue_millis')) or 0,
        )
        for task in (pending or {}).get('tasks', [])
    ]


def parse_active_tasks(tasks: Optional[Dict[str, Any]]) -> List[ActiveTask]:
    """Parse the node-grouped _tasks response."""
    active = []

    for node_id, node_data in (tasks or {}).get('nodes', {}).items():
        for task in node_data.get('tasks', {}).values():
            active.append(ActiveTask(
                node_id=task.get('node', node_id),
                node_name=node_data.get('name'),
                action=task.get('action', 'unknown'),
                description=task.get('description', ''),
                running_time_in_nanos=_parse_int(task.get('running_time_in_nanos')) or 0,
            ))

    return active


def build_snapshot_set(responses: Dict[str, Any],
                       largest_shards_limit: int = DEFAULT_LARGEST_SHARDS_LIMIT,
                       collected_at: Optional[str] = None) -> SnapshotSet:
    """
    Build one coherent snapshot set from API responses of a single poll cycle.

    Keys: nodes_stats, nodes, cat_nodes, cat_shards, cat_allocation,
    cluster_health, pending_tasks, tasks. Any key may be missing.
    """
    health_json = responses.get('cluster_health')
    cat_shards = responses.get('cat_shards')
    cat_allocation = responses.get('cat_allocation')
    cluster_health = parse_cluster_health(health_json)

    return SnapshotSet(
        nodes=parse_nodes(responses.get('nodes_stats'), responses.get('nodes'), responses.get('cat_nodes')),
        shard_analysis=build_shard_analysis(parse_shards(cat_shards), largest_shards_limit)
        if cat_shards else None,
        allocation=parse_allocation(cat_allocation, health_json) if cat_allocation else None,
        cluster_health=cluster_health,
        pending_tasks=parse_pending_tasks(responses.get('pending_tasks')),
        active_tasks=parse_active_tasks(responses.get('tasks')),
        cluster_name=cluster_health.cluster_name if cluster_health else 'unknown',
        collected_at=collected_at or _collected_at(responses.get('manifest')),
    )


def parse_snapshot_source(source_path: str,
                          largest_shards_limit: int = DEFAULT_LARGEST_SHARDS_LIMIT) -> SnapshotSet:
    """
    Main parsing pipeline for a diagnostic archive or directory.

    Returns SnapshotSet with all parsed information.
    """
    source = Path(source_path)

    if not source.exists():
        raise FileNotFoundError(f"Source not found: {source_path}")

    if source.is_dir():
        logger.info("Reading API responses from directory %s", source)
        return build_snapshot_set(load_responses(map_source_files(source)), largest_shards_limit)

    with tempfile.TemporaryDirectory() as temp_dir:
        logger.info("Extracting diagnostic archive %s", source)
        file_map = extract_archive(source_path, temp_dir)
        return build_snapshot_set(load_responses(file_map), largest_shards_limit)


def _collected_at(manifest: Optional[Dict[str, Any]]) -> str:
    if manifest and manifest.get('collectionDate'):
        return str(manifest['collectionDate'])
    return datetime.now().strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_float(value: Any) -> Optional[float]:
    """Parse string to float."""
    if value is None or value == '':
        return None
    try:
        return float(str(value).replace('%', ''))
    except ValueError:
        return None


def _parse_int(value: Any) -> Optional[int]:
    """Parse string to int."""
    if value is None or value == '':
        return None
    if isinstance(value, int):
        return value
    try:
        return int(float(re.sub(r'[,\s]', '', str(value))))
    except ValueError:
        return None
