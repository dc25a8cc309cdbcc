"""Property-based tests for the recommendation engine."""

import sys
from pathlib import Path

from hypothesis import given, settings, strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))

from data_models import ClusterHealthSnapshot, NodeSnapshot, Severity, ShardAnalysisSnapshot, ShardRecord, SnapshotSet
from recommendation_engine import generate_recommendations

GIB = 1024 ** 3

percent = st.floats(min_value=0, max_value=100, allow_nan=False)
role_sets = st.sampled_from([
    ['master', 'data', 'ingest'],
    ['master'],
    ['data'],
    ['data_hot', 'ingest'],
    ['ingest'],
])


@st.composite
def node_lists(draw, min_size=1, max_size=6):
    count = draw(st.integers(min_value=min_size, max_value=max_size))
    return [
        NodeSnapshot(
            node_id=f"id-{i}",
            node_name=f"node-{i}",
            roles=draw(role_sets),
            heap_used_percent=draw(percent),
            disk_usage_percent=draw(percent),
            cpu_usage_percent=draw(percent),
            load_average_1m=draw(st.floats(min_value=0, max_value=16, allow_nan=False)),
            heap_max_bytes=4 * GIB,
        )
        for i in range(count)
    ]


@st.composite
def snapshot_sets(draw, status=None):
    nodes = draw(node_lists())
    shard_count = draw(st.integers(min_value=0, max_value=12))
    shards = []
    distribution = {}
    for i in range(shard_count):
        node = draw(st.sampled_from(nodes))
        shards.append(ShardRecord(
            index=f"index-{i % 3}",
            shard=i,
            prirep=draw(st.sampled_from(['p', 'r'])),
            state='STARTED',
            store_bytes=draw(st.integers(min_value=0, max_value=80 * GIB)),
            node=node.node_name,
            node_id=node.node_id,
        ))
        distribution[node.node_name] = distribution.get(node.node_name, 0) + 1

    health = None
    if status or draw(st.booleans()):
        health = ClusterHealthSnapshot(
            status=status or draw(st.sampled_from(['green', 'yellow', 'red'])),
            number_of_nodes=len(nodes),
        )

    return SnapshotSet(
        nodes=nodes,
        shard_analysis=ShardAnalysisSnapshot(
            largest_shards=sorted(shards, key=lambda s: s.store_bytes, reverse=True),
            shard_distribution=distribution,
        ),
        cluster_health=health,
        collected_at='2024-05-01T10:00:00Z',
    )


# Property 1: heap threshold always yields a critical memory finding
@given(snapshot_sets())
@settings(max_examples=50)
def test_property_high_heap_is_critical(snapshots):
    """Property: every node above 85% heap gets a critical MEMORY recommendation."""
    result = generate_recommendations(snapshots)

    for node in snapshots.nodes:
        if node.heap_used_percent > 85:
            assert any(
                r.severity == Severity.CRITICAL and r.category == 'MEMORY'
                and r.node_id == node.node_id and node.node_name in r.title
                for r in result.recommendations
            )


# Property 2: high and elevated heap are mutually exclusive
@given(snapshot_sets())
@settings(max_examples=50)
def test_property_heap_findings_exclusive(snapshots):
    """Property: no node gets both a high and an elevated heap finding."""
    result = generate_recommendations(snapshots)

    for node in snapshots.nodes:
        titles = {r.title for r in result.recommendations if r.node_id == node.node_id}
        assert not (f"High Heap Usage on {node.node_name}" in titles
                    and f"Elevated Heap Usage on {node.node_name}" in titles)


# Property 3: red status maps to exactly one health finding
@given(snapshot_sets(status='red'))
@settings(max_examples=30)
def test_property_red_status(snapshots):
    """Property: a red cluster has exactly one critical CLUSTER_HEALTH finding."""
    result = generate_recommendations(snapshots)

    health = result.get_recommendations_by_category('CLUSTER_HEALTH')
    assert len(health) == 1
    assert health[0].severity == Severity.CRITICAL
    assert health[0].priority == 1


# Property 4: master quorum
@given(snapshot_sets())
@settings(max_examples=50)
def test_property_master_quorum(snapshots):
    """Property: fewer than three masters yields exactly one priority-1 stability finding."""
    result = generate_recommendations(snapshots)

    masters = [r for r in result.recommendations if r.title == 'Insufficient Master Nodes']
    if sum(1 for n in snapshots.nodes if n.is_master) < 3:
        assert len(masters) == 1
        assert masters[0].category == 'CLUSTER_STABILITY'
        assert masters[0].priority == 1
    else:
        assert masters == []


# Property 5: move targets are always eligible
@given(snapshot_sets())
@settings(max_examples=50)
def test_property_move_targets_eligible(snapshots):
    """Property: every planned move goes to another data node below 70% heap."""
    result = generate_recommendations(snapshots)
    nodes_by_id = {n.node_id: n for n in snapshots.nodes}

    for rec in result.recommendations:
        specifics = rec.specifics or {}
        for move in specifics.get('shards_to_move', []) + specifics.get('rebalance_plan', []):
            target = nodes_by_id[move.target_node_id]
            assert move.target_node_id != move.source_node_id
            assert target.is_data
            assert target.heap_used_percent < 70


# Property 6: summary consistency
@given(snapshot_sets())
@settings(max_examples=50)
def test_property_summary_consistent(snapshots):
    """Property: summary counts and score agree with the recommendation list."""
    result = generate_recommendations(snapshots)
    summary = result.summary

    critical = len(result.get_recommendations_by_severity(Severity.CRITICAL))
    warnings = len(result.get_recommendations_by_severity(Severity.WARNING))
    info = len(result.get_recommendations_by_severity(Severity.INFO))

    assert (summary.critical_issues, summary.warnings, summary.info_count) == (critical, warnings, info)
    assert summary.score == max(0, 100 - 20 * critical - 5 * warnings - info)
    assert len(summary.top_priority) <= 3


# Property 7: idempotence
@given(snapshot_sets())
@settings(max_examples=30)
def test_property_idempotent(snapshots):
    """Property: the same snapshot set always produces the same result."""
    assert generate_recommendations(snapshots).to_dict() == generate_recommendations(snapshots).to_dict()
