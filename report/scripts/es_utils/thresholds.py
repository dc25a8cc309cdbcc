"""
Fixed thresholds used by the advisors.

These are part of the rule definitions and are not read from the settings
file.
"""

GIB = 1024 ** 3

# Node rules
HEAP_CRITICAL_PERCENT = 85.0
HEAP_WARNING_PERCENT = 75.0
DISK_CRITICAL_PERCENT = 90.0
DISK_WARNING_PERCENT = 85.0
CPU_WARNING_PERCENT = 80.0
LOAD_AVERAGE_WARNING = 4.0
HEAP_GROWTH_FACTOR = 1.5

# Shard rebalancing
TARGET_MAX_HEAP_PERCENT = 70.0
MAX_SHARDS_TO_MOVE = 3
HEAP_REDUCTION_PER_GIB = 0.1
IMBALANCE_FACTOR = 1.3

# Index optimization
OVERSIZED_SHARD_BYTES = 50 * GIB
TARGET_SHARD_BYTES = 30 * GIB
SHARD_SIZE_RATIO_LIMIT = 2.0
HOT_NODE_MIN_SHARDS = 2
HOT_NODE_HEAP_PERCENT = 75.0

# Topology
MIN_MASTER_NODES = 3
MIN_DATA_NODES = 2
DISK_SPREAD_PERCENT = 20.0

# Shard health
UNEVEN_DISTRIBUTION_FACTOR = 1.5
UNASSIGNED_DETAIL_LIMIT = 5

# Operations
PENDING_TASKS_WARNING = 10
LONG_RUNNING_TASK_MINUTES = 5

# Allocation watermarks
WATERMARK_HIGH_PERCENT = 95.0
WATERMARK_WARNING_PERCENT = 85.0

# Resource contention
CONTENTION_HEAP_PERCENT = 75.0
CONTENTION_NODE_FRACTION = 0.5
SCALE_OUT_FACTOR = 0.5

# Summary
TOP_PRIORITY_LIMIT = 3
DEFAULT_LARGEST_SHARDS_LIMIT = 20
