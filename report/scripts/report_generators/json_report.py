"""
JSON report generator.
"""

import json
from data_models import AnalysisResult


def generate_json_report(result: AnalysisResult) -> str:
    """
    Generate JSON formatted recommendation report.

    Returns complete JSON string.
    """
    return json.dumps(result.to_dict(), indent=2, default=str)


def save_json_report(result: AnalysisResult, output_path: str):
    """
    Save JSON report to file.

    Args:
        result: Analysis result object
        output_path: Path to output file
    """
    report_json = generate_json_report(result)

    with open(output_path, 'w') as f:
        f.write(report_json)

    return output_path
