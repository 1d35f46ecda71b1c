"""Journal event definitions for optimization provenance."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """Types of journal events."""

    # Session lifecycle
    SESSION_START = "session.start"
    SESSION_END = "session.end"

    # Command lifecycle
    COMMAND_START = "command.start"
    COMMAND_END = "command.end"

    # Inputs (profile, configuration, cluster, input specs)
    INPUTS_LOADED = "inputs.loaded"

    # Optimizer
    OPTIMIZE_START = "optimize.start"
    OPTIMIZE_COMPLETE = "optimize.complete"

    # What-if
    WHATIF_ANSWERED = "whatif.answered"

    # Cluster synthesis
    CLUSTER_WRITTEN = "cluster.written"


class CommandName(str, Enum):
    """CLI command names for journal tracking."""

    OPTIMIZE = "optimize"
    WHATIF = "whatif"
    CLUSTER = "cluster"


@dataclass
class JournalEvent:
    """One journal line.

    ``inputs_hash`` fingerprints the documents the command read, so two
    events of a session can be told apart when a profile or configuration
    changed in between.
    """

    event_type: EventType
    session_id: str
    message: str
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    command: str | None = None
    success: bool | None = None
    details: dict[str, Any] = field(default_factory=dict)
    inputs_hash: str | None = None
    duration_s: float | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["event_type"] = self.event_type.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEvent:
        data = dict(data)
        data["event_type"] = EventType(data["event_type"])
        return cls(**data)
