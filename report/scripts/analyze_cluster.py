#!/usr/bin/env python3
"""
Elasticsearch Cluster Recommendation Tool
Main CLI entry point.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from snapshot_parser import parse_snapshot_source
from recommendation_engine import generate_recommendations
from data_models import AnalysisResult
from report_generators.markdown import generate_markdown_report
from report_generators.json_report import save_json_report
from es_utils.logging_config import setup_logging
from es_utils.settings import load_settings, parse_report_formats

logger = logging.getLogger(__name__)


def analyze_cluster(source_path: str, settings: Optional[Dict[str, Any]] = None) -> AnalysisResult:
    """
    Main analysis pipeline.

    Returns complete analysis result.
    """
    settings = settings or load_settings()

    logger.info("Analyzing cluster snapshots from: %s", source_path)
    snapshots = parse_snapshot_source(source_path, settings['largest_shards_limit'])
    logger.info("Parsed %d node(s)", len(snapshots.nodes))

    result = generate_recommendations(snapshots)

    print(f"Analysis complete. Score: {result.summary.score}/100")
    print(f"Critical issues: {result.summary.critical_issues}")
    print(f"Warnings: {result.summary.warnings}")
    print(f"Info: {result.summary.info_count}")

    return result


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Analyze Elasticsearch monitoring snapshots and generate recommendations"
    )

    parser.add_argument(
        "source",
        type=str,
        help="Path to a diagnostic ZIP archive or a directory of API responses",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=".",
        help="Output directory for reports (default: current directory)",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML settings file",
    )

    parser.add_argument(
        "--format",
        "-f",
        type=str,
        default=None,
        help="Report format(s): json, markdown (default: both)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Path to log file (default: log to console only)",
    )

    args = parser.parse_args()
    settings = load_settings(args.config)
    setup_logging(debug=args.verbose, log_file=args.log_file or settings['log_file'],
                  level=settings['log_level'])

    try:
        result = analyze_cluster(args.source, settings)

        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)

        formats = parse_report_formats(args.format or settings['report_formats'])

        if 'json' in formats or 'all' in formats:
            json_path = output_dir / "recommendations.json"
            save_json_report(result, str(json_path))
            print(f"JSON report saved to: {json_path}")

        if 'markdown' in formats or 'all' in formats:
            md_path = output_dir / "recommendations.md"
            md_content = generate_markdown_report(result)
            with open(md_path, 'w') as f:
                f.write(md_content)
            print(f"Markdown report saved to: {md_path}")

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.exception("Analysis failed")
        print(f"Error during analysis: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
