"""Journal -- append-only provenance of optimize and what-if runs.

Every job gets one session file, ``session-<job>.jsonl`` (one JSON object
per line), under ``./mrtune-output/journal``. Optimizing, asking what-if
questions, and synthesizing clusters for the same job all append to it,
so the file reads as the tuning history of that job: which inputs were
used, which optimizer ran, and what it recommended.

Closing a session archives the file under a timestamped name; the next
command for that job starts a fresh one.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import uuid
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from mrtune import __version__
from mrtune._constants import DEFAULT_OUTPUT_DIR

from .events import CommandName, EventType, JournalEvent

logger = logging.getLogger(__name__)

DEFAULT_JOURNAL_DIR = str(Path(DEFAULT_OUTPUT_DIR) / "journal")


def _generate_session_id() -> str:
    return datetime.now().strftime("%Y%m%d-%H%M%S") + "-" + uuid.uuid4().hex[:6]


def _sanitize_name(name: str) -> str:
    """Make a job name safe to use inside a filename."""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", name) if name else "unnamed"


def hash_inputs(paths: Iterable[Path | None]) -> str:
    """Truncated SHA256 over the given documents, in order.

    Missing or unreadable files contribute their path only.
    """
    digest = hashlib.sha256()
    for path in paths:
        if path is None:
            continue
        digest.update(str(path).encode())
        try:
            digest.update(path.read_bytes())
        except OSError as e:
            logger.debug("Cannot hash %s: %s", path, e)
    return digest.hexdigest()[:16]


class Journal:
    """Session-scoped event log, one session per job.

    Usage::

        journal = Journal()
        journal.open_session(job_name="wordcount", inputs=[Path("profile.yaml")])
        journal.begin_command(CommandName.OPTIMIZE, {"mode": "smart_rrs"})
        journal.record(EventType.OPTIMIZE_COMPLETE, "Best predicted time 42000 ms")
        journal.end_command(success=True)
    """

    def __init__(self, journal_dir: Path | str = DEFAULT_JOURNAL_DIR) -> None:
        self.journal_dir = Path(journal_dir)
        self.session_id: str | None = None
        self.inputs_hash: str | None = None
        self._session_file: Path | None = None
        self._current_command: CommandName | None = None
        self._command_start_time: datetime | None = None
        self._event_count = 0
        self._command_count = 0

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def open_session(self, job_name: str = "", inputs: Iterable[Path | None] = ()) -> str:
        """Resume the job's open session, or start a new one.

        Args:
            job_name: Job the session belongs to
            inputs: Documents the current command reads, for fingerprinting

        Returns:
            The session id
        """
        self.journal_dir.mkdir(parents=True, exist_ok=True)
        self.inputs_hash = hash_inputs(inputs)
        safe_name = _sanitize_name(job_name)

        existing = self._find_resumable_session(safe_name)
        if existing:
            self.session_id = existing["session_id"]
            self._session_file = existing["path"]
            self._event_count = existing["event_count"]
            logger.debug("Resumed session %s for job '%s'", self.session_id, job_name)
            return self.session_id

        self.session_id = _generate_session_id()
        self._session_file = self.journal_dir / f"session-{safe_name}.jsonl"
        self._event_count = 0
        self._command_count = 0

        self.record(
            EventType.SESSION_START,
            message=f"Session started for job '{job_name}'",
            details={"job_name": job_name, "mrtune_version": __version__},
        )
        return self.session_id

    def close_session(self) -> None:
        """Close the current session and archive its file."""
        if not self.session_id:
            return

        self.record(
            EventType.SESSION_END,
            message="Session ended",
            details={
                "events_recorded": self._event_count,
                "commands_run": self._command_count,
            },
        )

        if self._session_file and self._session_file.exists():
            ts = datetime.now().strftime("%Y%m%d-%H%M%S")
            archive_path = self._session_file.with_name(f"{self._session_file.stem}-{ts}.jsonl")
            try:
                self._session_file.rename(archive_path)
                logger.debug("Archived session to %s", archive_path)
            except OSError as e:
                logger.warning("Failed to archive session file: %s", e)

        self.session_id = None
        self._session_file = None

    # ------------------------------------------------------------------
    # Command lifecycle
    # ------------------------------------------------------------------

    def begin_command(self, command: CommandName, args: dict[str, Any] | None = None) -> None:
        self._current_command = command
        self._command_start_time = datetime.now()
        self.record(
            EventType.COMMAND_START,
            message=f"Command '{command.value}' started",
            command=command.value,
            details={"args": args or {}},
        )

    def end_command(self, success: bool, message: str = "") -> None:
        duration = None
        if self._command_start_time:
            duration = (datetime.now() - self._command_start_time).total_seconds()

        name = self._current_command.value if self._current_command else "unknown"
        self.record(
            EventType.COMMAND_END,
            message=message or f"Command '{name}' {'succeeded' if success else 'failed'}",
            command=name,
            success=success,
            duration_s=duration,
            details={"exit_code": 0 if success else 1},
        )

        self._current_command = None
        self._command_start_time = None
        self._command_count += 1

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(
        self,
        event_type: EventType,
        message: str,
        command: str | None = None,
        success: bool | None = None,
        details: dict[str, Any] | None = None,
        duration_s: float | None = None,
    ) -> JournalEvent:
        """Append one event line to the session file.

        Without an open session nothing is written and a stub event is
        returned.
        """
        if not self.session_id or not self._session_file:
            logger.debug("Journal not open, skipping event")
            return JournalEvent(event_type=event_type, session_id="none", message=message)

        event = JournalEvent(
            event_type=event_type,
            session_id=self.session_id,
            message=message,
            command=command or (self._current_command.value if self._current_command else None),
            success=success,
            details=details or {},
            inputs_hash=self.inputs_hash,
            duration_s=duration_s,
        )
        with open(self._session_file, "a") as f:
            f.write(json.dumps(event.to_dict()) + "\n")

        self._event_count += 1
        return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _find_resumable_session(self, safe_name: str) -> dict[str, Any] | None:
        path = self.journal_dir / f"session-{safe_name}.jsonl"
        if not path.exists():
            return None

        try:
            events = self._load_events(path)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", path, e)
            return None
        if not events or events[-1].get("event_type") == EventType.SESSION_END.value:
            return None
        if "session_id" not in events[0]:
            return None
        return {
            "session_id": events[0]["session_id"],
            "path": path,
            "event_count": len(events),
        }

    def list_sessions(self) -> list[dict[str, Any]]:
        """Summaries of every session, most recently started first."""
        sessions = []
        for path in self.journal_dir.glob("session-*.jsonl"):
            try:
                events = self._load_events(path)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Skipping unreadable session file %s: %s", path, e)
                continue
            if not events:
                continue

            first, last = events[0], events[-1]
            closed = last.get("event_type") == EventType.SESSION_END.value
            sessions.append(
                {
                    "session_id": first.get("session_id", ""),
                    "job_name": first.get("details", {}).get("job_name", ""),
                    "started": first.get("timestamp", ""),
                    "ended": last.get("timestamp", "") if closed else None,
                    "closed": closed,
                    "event_count": len(events),
                    "commands": [
                        e.get("command", "")
                        for e in events
                        if e.get("event_type") == EventType.COMMAND_START.value
                    ],
                    "path": str(path),
                }
            )

        sessions.sort(key=lambda s: s.get("started", ""), reverse=True)
        return sessions

    def load_session_events(self, session_id: str) -> list[dict[str, Any]]:
        """Events of one session in chronological order (empty if unknown)."""
        for path in self.journal_dir.glob("session-*.jsonl"):
            try:
                events = self._load_events(path)
            except (json.JSONDecodeError, OSError):
                continue
            if events and events[0].get("session_id") == session_id:
                return events
        return []

    @staticmethod
    def _load_events(path: Path) -> list[dict[str, Any]]:
        with open(path) as f:
            return [json.loads(line) for line in f if line.strip()]

    def purge(self) -> int:
        """Delete every session file; returns how many were deleted."""
        count = 0
        for path in self.journal_dir.glob("session-*.jsonl"):
            path.unlink()
            count += 1
        return count
