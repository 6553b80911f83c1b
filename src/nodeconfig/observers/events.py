# src/nodeconfig/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events of one configure() call
    instance_id: str

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(instance_id: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "run_id": run_id or str(uuid.uuid4()),
        "instance_id": instance_id,
    }


# ---------------------------------------------------------------------
# Node bootstrap lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class NodeConfigStarted(BaseEvent):
    ip_address: str

@dataclass(frozen=True)
class NodeDiscovered(BaseEvent):
    node_name: str

@dataclass(frozen=True)
class AnnotationObserved(BaseEvent):
    node_name: str
    annotation: str
    value: str

@dataclass(frozen=True)
class NetworkStepCompleted(BaseEvent):
    node_name: str
    step: str

@dataclass(frozen=True)
class NodeConfigured(BaseEvent):
    node_name: str
    version: str
    duration_ms: int

@dataclass(frozen=True)
class NodeConfigFailed(BaseEvent):
    phase: str
    error: str
