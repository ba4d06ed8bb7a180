from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from swar_pipeline.config import TunerConfig
from swar_pipeline.pipeline import StabilizedOutput, SwarPipeline


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionRecord:
    session_id: str
    pipeline: SwarPipeline
    created_at: str = field(default_factory=_utc_now_iso)
    frames: int = 0
    pitched_frames: int = 0
    last_output: Optional[StabilizedOutput] = None
    # serializes ticks for this session; pipelines are single-threaded
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "running": self.pipeline.is_running,
            "scale_root": self.pipeline.scale_root,
            "swar_mode": self.pipeline.swar_mode,
            "frames": self.frames,
            "pitched_frames": self.pitched_frames,
        }


class SessionManager:
    """
    Registry of live tuner sessions, one pipeline each.

    The registry is shared across request threads; each session's frames are
    processed one at a time under that session's lock.
    """

    def __init__(self, default_config: Optional[TunerConfig] = None) -> None:
        self.default_config = default_config or TunerConfig()
        self._lock = threading.RLock()
        self._sessions: Dict[str, SessionRecord] = {}

    def create(self, scale_root: Any = None, swar_mode: Optional[str] = None) -> SessionRecord:
        overrides: Dict[str, Any] = {"mode": "serve"}
        if scale_root is not None:
            overrides["scale_root"] = scale_root
        if swar_mode is not None:
            overrides["swar_mode"] = swar_mode
        # replace() re-runs validation, so bad roots / modes raise here
        config = replace(self.default_config, **overrides)

        pipeline = SwarPipeline(config)
        pipeline.start()
        record = SessionRecord(session_id=uuid.uuid4().hex, pipeline=pipeline)
        with self._lock:
            self._sessions[record.session_id] = record
        return record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(session_id)

    def list(self) -> List[SessionRecord]:
        with self._lock:
            return list(self._sessions.values())

    def delete(self, session_id: str) -> bool:
        with self._lock:
            record = self._sessions.pop(session_id, None)
        if record is None:
            return False
        record.pipeline.stop()
        return True

    def push_frame(
        self,
        record: SessionRecord,
        samples: Sequence[float],
        sample_rate: float,
        timestamp: Optional[float] = None,
    ) -> StabilizedOutput:
        with record.lock:
            output = record.pipeline.push_frame(samples, sample_rate, timestamp=timestamp)
            record.frames += 1
            if output.has_pitch:
                record.pitched_frames += 1
            record.last_output = output
        return output

    def set_scale_root(self, record: SessionRecord, root: Any) -> int:
        with record.lock:
            return record.pipeline.set_scale_root(root)

    def start(self, record: SessionRecord) -> None:
        with record.lock:
            record.pipeline.start()
            record.last_output = None

    def stop(self, record: SessionRecord) -> None:
        with record.lock:
            record.pipeline.stop()

    def shutdown(self) -> None:
        with self._lock:
            records = list(self._sessions.values())
            self._sessions.clear()
        for record in records:
            record.pipeline.stop()
