# src/nodeconfig/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import List, Optional, Protocol
from .events import BaseEvent

log = logging.getLogger("nodeconfig")


class Observer(Protocol):
    def notify(self, event: BaseEvent) -> None: ...


class EventBus:
    """
    Fans lifecycle events of one configure() run out to observers.
    Observers may be shared between the buses of concurrent runs, so they
    must tolerate calls from several worker threads.
    """

    def __init__(self, observers: Optional[List[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as e:
                # an observer failure never fails the node
                log.debug("observer %r failed on %s: %s", ob, event.__class__.__name__, e)
