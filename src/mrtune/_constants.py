"""Shared constants for mrtune."""

# Unified output directory -- single top-level directory for all mrtune outputs.
# Contains:
#   journal/   -- session-scoped JSONL provenance logs
DEFAULT_OUTPUT_DIR = "./mrtune-output"

# Bytes per mebibyte, used for memory-valued tunables
MB = 1 << 20

# Per-task memory when mapred.child.java.opts carries no -Xmx setting
DEFAULT_TASK_MEMORY = 200 * MB
