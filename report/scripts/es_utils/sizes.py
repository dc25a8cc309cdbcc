"""
Byte size parsing and formatting helpers.
"""

import re
from typing import Optional, Union

_UNITS = {
    'b': 1,
    'kb': 1024,
    'mb': 1024 ** 2,
    'gb': 1024 ** 3,
    'tb': 1024 ** 4,
    'pb': 1024 ** 5,
}

_SIZE_PATTERN = re.compile(r'^(\d+\.?\d*)\s*([kmgtp]?b)?$')

_LABELS = ['Bytes', 'KB', 'MB', 'GB', 'TB', 'PB']


def parse_size(size_str: Optional[Union[str, int, float]]) -> int:
    """
    Parse a human-readable size (e.g. '10gb', '512.5mb', '1024') to bytes.

    A bare number is taken as bytes. Unparsable values return 0.
    """
    if size_str is None:
        return 0
    if isinstance(size_str, (int, float)):
        return int(size_str)

    size_str = size_str.strip().lower()
    if not size_str or size_str == '-':
        return 0

    match = _SIZE_PATTERN.match(size_str)
    if not match:
        return 0

    value, unit = match.groups()
    return int(float(value) * _UNITS[unit or 'b'])


def has_size(size_str: Optional[str]) -> bool:
    """True when the value starts with a number, e.g. a started shard's store."""
    return bool(size_str) and bool(re.match(r'^\s*\d', str(size_str)))


def format_bytes(bytes_value: Optional[float]) -> str:
    """Format bytes as e.g. '1.5 GB'."""
    if not bytes_value or bytes_value <= 0:
        return '0 Bytes'

    size = float(bytes_value)
    unit_index = 0

    while size >= 1024 and unit_index < len(_LABELS) - 1:
        size /= 1024
        unit_index += 1

    return f"{round(size, 2):g} {_LABELS[unit_index]}"


def bytes_to_gib(bytes_value: float) -> float:
    return bytes_value / 1024 ** 3
