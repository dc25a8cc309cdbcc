"""
Tests for report generation and the CLI pipeline.
"""

import json
import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'scripts'))

from data_models import ClusterHealthSnapshot, NodeSnapshot, ShardAnalysisSnapshot, SnapshotSet
from recommendation_engine import generate_recommendations
from report_generators.markdown import generate_markdown_report
from report_generators.json_report import generate_json_report, save_json_report
import analyze_cluster

GIB = 1024 ** 3


@pytest.fixture
def sample_result():
    """Analysis result for a single overloaded node."""
    snapshots = SnapshotSet(
        nodes=[NodeSnapshot(
            node_id='abc', node_name='node-1', roles=['master', 'data'],
            heap_used_percent=90.0, disk_usage_percent=50.0, cpu_usage_percent=20.0,
            heap_used_bytes=int(3.6 * GIB), heap_max_bytes=4 * GIB,
        )],
        shard_analysis=ShardAnalysisSnapshot(),
        cluster_health=ClusterHealthSnapshot(status='green', cluster_name='test-cluster', number_of_nodes=1),
        collected_at='2026-01-19T10:00:00Z',
    )
    return generate_recommendations(snapshots)


@pytest.fixture
def healthy_result():
    nodes = [
        NodeSnapshot(node_id=f"id-{i}", node_name=f"node-{i}", roles=['master', 'data'],
                     heap_used_percent=40.0, disk_usage_percent=40.0, cpu_usage_percent=40.0)
        for i in range(3)
    ]
    return generate_recommendations(SnapshotSet(
        nodes=nodes,
        cluster_health=ClusterHealthSnapshot(status='green', cluster_name='prod', number_of_nodes=3),
        collected_at='2026-01-19T10:00:00Z',
    ))


def test_generate_markdown_report(sample_result):
    """Test Markdown report generation."""
    markdown = generate_markdown_report(sample_result)
    summary = sample_result.summary

    assert '# Cluster Recommendations Report' in markdown
    assert '**Generated**: 2026-01-19T10:00:00Z' in markdown
    assert '**Cluster**: test-cluster' in markdown
    assert f"**Critical Issues**: {summary.critical_issues}" in markdown
    assert f"**Warnings**: {summary.warnings}" in markdown
    assert f"**Overall Score**: {summary.score}/100" in markdown
    assert '### Top Priorities' in markdown
    assert 'High Heap Usage on node-1' in markdown
    assert '-Xms6g -Xmx6g' in markdown
    assert '| node-1 | master, data | 90.0% |' in markdown


def test_generate_markdown_report_healthy(healthy_result):
    markdown = generate_markdown_report(healthy_result)

    assert 'No issues detected.' in markdown
    assert '## Critical Issues' not in markdown
    assert '**Overall Score**: 100/100' in markdown


def test_generate_json_report(sample_result):
    """Test JSON report generation."""
    data = json.loads(generate_json_report(sample_result))

    assert data['cluster_name'] == 'test-cluster'
    assert data['timestamp'] == '2026-01-19T10:00:00Z'
    assert data['summary']['critical_issues'] == sample_result.summary.critical_issues
    assert data['summary']['score'] == sample_result.summary.score
    assert len(data['recommendations']) == len(sample_result.recommendations)
    assert data['node_analysis'][0]['is_master'] is True
    assert data['cluster_health']['status'] == 'green'


def test_save_json_report(tmp_path, sample_result):
    """Test saving JSON report to file."""
    output_path = tmp_path / 'recommendations.json'

    assert save_json_report(sample_result, str(output_path)) == str(output_path)

    data = json.loads(output_path.read_text())
    assert data['cluster_name'] == 'test-cluster'


def _write_minimal_source(root: Path):
    root.mkdir(parents=True, exist_ok=True)
    (root / 'nodes_stats.json').write_text(json.dumps({
        'nodes': {
            'abc': {
                'name': 'node-1',
                'roles': ['master', 'data'],
                'jvm': {'mem': {'heap_used_in_bytes': 9 * GIB, 'heap_max_in_bytes': 10 * GIB}},
            },
        },
    }))
    (root / 'cluster_health.json').write_text(json.dumps({
        'cluster_name': 'cli-cluster', 'status': 'green', 'number_of_nodes': 1,
    }))


def test_cli_writes_reports(tmp_path, monkeypatch, capsys):
    """The CLI writes both reports to the output directory."""
    source = tmp_path / 'diag'
    output = tmp_path / 'out'
    _write_minimal_source(source)
    monkeypatch.setattr(sys, 'argv', ['analyze-cluster', str(source), '--output', str(output)])

    analyze_cluster.main()

    data = json.loads((output / 'recommendations.json').read_text())
    assert data['cluster_name'] == 'cli-cluster'
    assert 'High Heap Usage on node-1' in (output / 'recommendations.md').read_text()
    assert 'Analysis complete. Score:' in capsys.readouterr().out


def test_cli_single_format(tmp_path, monkeypatch):
    source = tmp_path / 'diag'
    output = tmp_path / 'out'
    _write_minimal_source(source)
    monkeypatch.setattr(sys, 'argv', ['analyze-cluster', str(source), '-o', str(output), '--format', 'json'])

    analyze_cluster.main()

    assert (output / 'recommendations.json').exists()
    assert not (output / 'recommendations.md').exists()


def test_cli_report_formats_from_yaml_list(tmp_path, monkeypatch):
    """report_formats may be a YAML list; settings are read once and passed through."""
    source = tmp_path / 'diag'
    output = tmp_path / 'out'
    config = tmp_path / 'settings.yml'
    _write_minimal_source(source)
    config.write_text("report_formats:\n  - markdown\nlargest_shards_limit: 5\n")
    monkeypatch.setattr(sys, 'argv', ['analyze-cluster', str(source), '-o', str(output), '-c', str(config)])

    loaded = []
    real_load_settings = analyze_cluster.load_settings

    def counting_load_settings(*args, **kwargs):
        loaded.append(args)
        return real_load_settings(*args, **kwargs)

    monkeypatch.setattr(analyze_cluster, 'load_settings', counting_load_settings)

    analyze_cluster.main()

    assert (output / 'recommendations.md').exists()
    assert not (output / 'recommendations.json').exists()
    assert len(loaded) == 1


def test_cli_missing_source(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, 'argv', ['analyze-cluster', str(tmp_path / 'missing')])

    with pytest.raises(SystemExit) as exc_info:
        analyze_cluster.main()

    assert exc_info.value.code == 1
    assert 'Error:' in capsys.readouterr().err
