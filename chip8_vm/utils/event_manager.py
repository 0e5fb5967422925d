"""
Event bus for machine notifications.

The interpreter core performs no I/O of its own. Whatever the host must
react to (a tone starting or stopping, a reset, a fault) is published on
an EventManager, and the host subscribes the handlers it needs.
"""

import logging
import time
from typing import Dict, List, Callable, Any, Optional
from enum import Enum, auto
from collections import defaultdict

logger = logging.getLogger("Chip8VM.EventManager")

class EventPriority(Enum):
    """Dispatch order for handlers of one event type (highest first)."""
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()

class EventType(Enum):
    """Notifications published by a Chip8System."""
    SYSTEM_RESET = auto()
    ROM_LOADED = auto()
    SOUND_START = auto()
    SOUND_END = auto()
    KEY_CHANGE = auto()
    FAULT = auto()

class Event:
    """
    One published notification.

    A handler may set ``handled`` to stop delivery to lower-priority handlers.
    """

    def __init__(self, event_type: EventType,
                source: str,
                payload: Optional[Dict[str, Any]] = None,
                timestamp: Optional[float] = None):
        self.type = event_type
        self.source = source
        self.payload = payload or {}
        self.timestamp = timestamp or time.time()
        self.handled = False

    def __str__(self) -> str:
        return f"Event({self.type.name}, source={self.source}, payload={self.payload})"

EventHandler = Callable[[Event], None]

# Highest priority first
_DISPATCH_ORDER = sorted(EventPriority, key=lambda p: p.value, reverse=True)

class EventManager:
    """
    Dispatches machine events to subscribed handlers and keeps a short
    history of what was published.
    """

    def __init__(self, max_history: int = 100):
        """
        Initialize the event bus.

        Args:
            max_history: Number of recent events kept for inspection
        """
        self.handlers: Dict[EventType, Dict[EventPriority, List[EventHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self.event_history: List[Event] = []
        self.max_history = max_history

        logger.debug("EventManager initialized")

    def register_handler(self, event_type: EventType,
                        handler: EventHandler,
                        priority: EventPriority = EventPriority.NORMAL) -> None:
        """
        Subscribe a handler to one event type.

        Args:
            event_type: Type of event to handle
            handler: Called with the Event
            priority: Handler priority
        """
        self.handlers[event_type][priority].append(handler)
        logger.debug(f"Registered handler for {event_type.name} with {priority.name} priority")

    def trigger_event(self, event: Event) -> bool:
        """
        Deliver an event to its handlers.

        A handler that raises is logged and skipped; the remaining handlers
        still run and the machine is unaffected.

        Args:
            event: Event to deliver

        Returns:
            True if at least one handler ran to completion
        """
        self.event_history.append(event)
        if len(self.event_history) > self.max_history:
            del self.event_history[:-self.max_history]

        handled = False
        by_priority = self.handlers.get(event.type, {})
        for priority in _DISPATCH_ORDER:
            for handler in by_priority.get(priority, ()):
                try:
                    handler(event)
                    handled = True
                except Exception as e:
                    logger.error(f"Error in event handler for {event.type.name}: {e}")

                if event.handled:
                    return handled

        return handled

    def create_event(self, event_type: EventType,
                    source: str,
                    payload: Optional[Dict[str, Any]] = None) -> Event:
        """
        Build an event and deliver it.

        Returns:
            The delivered event
        """
        event = Event(event_type, source, payload)
        self.trigger_event(event)
        return event

    def get_event_history(self, event_type: Optional[EventType] = None) -> List[Event]:
        """
        Get recently published events, oldest first.

        Args:
            event_type: Only return events of this type (None for all)
        """
        if event_type is None:
            return list(self.event_history)
        return [e for e in self.event_history if e.type == event_type]

    def add_tone_listener(self,
                          on_start: Callable[[], None],
                          on_end: Callable[[], None]) -> None:
        """
        Wire a host audio device to the sound timer.

        Args:
            on_start: Called when the sound timer becomes non-zero
            on_end: Called when the sound timer returns to zero, whether by
                counting down or by being loaded with zero
        """
        self.register_handler(EventType.SOUND_START, lambda event: on_start())
        self.register_handler(EventType.SOUND_END, lambda event: on_end())

        logger.info("Registered tone listener")

    def register_logger(self,
                      event_types: List[EventType],
                      log_level: int = logging.INFO) -> None:
        """
        Log every event of the given types.

        Args:
            event_types: Event types to log
            log_level: Logging level for the messages
        """
        def event_logger(event: Event) -> None:
            logger.log(log_level, f"Event: {event}")

        for event_type in event_types:
            self.register_handler(event_type, event_logger, EventPriority.LOW)
