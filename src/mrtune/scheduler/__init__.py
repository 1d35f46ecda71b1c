"""What-if FIFO scheduler simulation."""

from .fifo import (
    CLEANUP_TASK_DURATION,
    HALF_HEARTBEAT_DELAY,
    HEARTBEAT_DELAY,
    SCHEDULER_NAMES,
    SETUP_TASK_DURATION,
    FifoScheduler,
    SchedulerError,
    Slot,
    UnsupportedSchedulerError,
    create_scheduler,
    slow_start_count,
)

__all__ = [
    "CLEANUP_TASK_DURATION",
    "HALF_HEARTBEAT_DELAY",
    "HEARTBEAT_DELAY",
    "SCHEDULER_NAMES",
    "SETUP_TASK_DURATION",
    "FifoScheduler",
    "SchedulerError",
    "Slot",
    "UnsupportedSchedulerError",
    "create_scheduler",
    "slow_start_count",
]
