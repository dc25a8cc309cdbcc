"""
Tests for shard move planning and the cluster-wide rebalancing pass.
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))

from data_models import NodeSnapshot, Severity, ShardAnalysisSnapshot, ShardRecord, SnapshotSet
from advisors.shard_rebalancing import (
    ShardRebalancingAdvisor, calculate_heap_reduction, find_best_target_node,
    find_movable_shards, generate_rebalance_commands, get_node_shards, select_target_nodes,
)

GIB = 1024 ** 3


def make_node(name, heap=40.0, roles=('master', 'data')):
    return NodeSnapshot(node_id=f"id-{name}", node_name=name, roles=list(roles), heap_used_percent=heap)


def make_shard(index, shard, node, size_gib, with_id=True):
    return ShardRecord(
        index=index,
        shard=shard,
        prirep='p',
        state='STARTED',
        store_bytes=int(size_gib * GIB),
        node=node,
        node_id=f"id-{node}" if with_id else None,
    )


@pytest.fixture
def nodes():
    return [
        make_node('node-1', heap=90.0),
        make_node('node-2', heap=55.0),
        make_node('node-3', heap=20.0),
        make_node('node-4', heap=70.0),
        make_node('node-5', heap=5.0, roles=('master', 'ingest')),
    ]


def test_select_target_nodes_filters_and_sorts(nodes):
    """Only other data nodes below 70% heap qualify, least loaded first."""
    targets = select_target_nodes(nodes, 'id-node-1', 'node-1')

    assert [n.node_name for n in targets] == ['node-3', 'node-2']


def test_find_best_target_node(nodes):
    """The least-loaded candidate wins."""
    assert find_best_target_node(nodes, 'id-node-1').node_name == 'node-3'
    assert find_best_target_node(nodes[:1], 'id-node-1') is None


def test_get_node_shards_matches_by_id_or_name():
    """Shards without a node id fall back to the node name."""
    node = make_node('node-1')
    analysis = ShardAnalysisSnapshot(largest_shards=[
        make_shard('a', 0, 'node-1', 1),
        make_shard('b', 0, 'node-1', 1, with_id=False),
        make_shard('c', 0, 'node-2', 1),
    ])

    assert [s.index for s in get_node_shards(node, analysis)] == ['a', 'b']
    assert get_node_shards(node, None) == []


def test_find_movable_shards_pairs_by_position(nodes):
    """Heaviest shard goes to the least-loaded target."""
    shards = [make_shard('logs', 0, 'node-1', 5), make_shard('logs', 1, 'node-1', 25)]

    moves = find_movable_shards(shards, nodes, nodes[0])

    assert [(m.shard, m.target_node) for m in moves] == [(1, 'node-3'), (0, 'node-2')]
    assert all(m.source_node == 'node-1' for m in moves)
    assert moves[0].expected_heap_reduction == pytest.approx(2.5)
    assert moves[0].expected_benefit == 'Reduce source heap by ~2.5%'


def test_find_movable_shards_more_shards_than_targets():
    """Extra shards are dropped when targets run out."""
    source = make_node('node-1', heap=95.0)
    target = make_node('node-2', heap=10.0)
    shards = [make_shard('logs', i, 'node-1', size) for i, size in enumerate([10, 30, 20])]

    moves = find_movable_shards(shards, [source, target], source)

    assert len(moves) == 1
    assert moves[0].shard == 1
    assert moves[0].target_node == 'node-2'


def test_find_movable_shards_without_targets():
    """No candidate means no moves."""
    source = make_node('node-1', heap=95.0)

    assert find_movable_shards([make_shard('logs', 0, 'node-1', 10)], [source], source) == []


def test_calculate_heap_reduction(nodes):
    """0.1 percentage points per GiB moved."""
    shards = [make_shard('logs', 0, 'node-1', 10), make_shard('logs', 1, 'node-1', 20)]
    moves = find_movable_shards(shards, nodes, nodes[0])

    assert calculate_heap_reduction(moves) == pytest.approx(3.0)
    assert calculate_heap_reduction([]) == 0


def test_generate_rebalance_commands(nodes):
    """Commands reference node ids on both ends of the move."""
    moves = find_movable_shards([make_shard('logs', 3, 'node-1', 10)], nodes, nodes[0])

    commands = generate_rebalance_commands(moves)

    assert len(commands) == 1
    assert '_cluster/reroute' in commands[0]
    assert '"index":"logs","shard":3' in commands[0]
    assert '"from_node":"id-node-1","to_node":"id-node-3"' in commands[0]


@pytest.fixture
def imbalanced_cluster():
    nodes = [
        make_node('node-1', heap=60.0),
        make_node('node-2', heap=30.0),
        make_node('node-3', heap=50.0),
    ]
    shard_analysis = ShardAnalysisSnapshot(
        largest_shards=[
            make_shard('logs', 0, 'node-1', 10),
            make_shard('logs', 1, 'node-1', 12),
            make_shard('logs', 2, 'node-1', 8),
            make_shard('metrics', 0, 'node-2', 5),
            make_shard('metrics', 1, 'node-3', 5),
        ],
        shard_distribution={'node-1': 10, 'node-2': 2, 'node-3': 3},
    )
    return SnapshotSet(nodes=nodes, shard_analysis=shard_analysis)


def test_rebalancing_flags_overloaded_node(imbalanced_cluster):
    """The overloaded node's heaviest shards all go to the single best target."""
    findings = ShardRebalancingAdvisor().advise(imbalanced_cluster)

    assert len(findings.recommendations) == 1
    rec = findings.recommendations[0]
    assert rec.severity == Severity.INFO
    assert rec.category == 'BALANCE'
    assert rec.priority == 3
    assert rec.node_id == 'id-node-1'
    assert rec.title == 'Rebalance Shards from Overloaded node-1'
    assert rec.action == 'Move 3 shards to underutilized nodes: node-2, node-2, node-2'
    assert [m.shard for m in rec.specifics['rebalance_plan']] == [1, 0, 2]

    imbalanced = findings.insights['imbalanced_nodes']
    assert [n['node_name'] for n in imbalanced] == ['node-1']
    assert imbalanced[0]['imbalance_ratio'] == 2.25


def test_rebalancing_without_target(imbalanced_cluster):
    """An overloaded node with nowhere to send shards yields no recommendation."""
    busy = SnapshotSet(
        nodes=[make_node(n.node_name, heap=80.0) for n in imbalanced_cluster.nodes],
        shard_analysis=imbalanced_cluster.shard_analysis,
    )

    findings = ShardRebalancingAdvisor().advise(busy)

    assert findings.recommendations == []
    assert findings.insights['imbalanced_nodes'][0]['movable_candidates'] == []


def test_rebalancing_without_shard_data():
    """Missing shard analysis is not an error."""
    findings = ShardRebalancingAdvisor().advise(SnapshotSet(nodes=[make_node('node-1')]))

    assert findings.recommendations == []
    assert findings.insights == {'imbalanced_nodes': []}
