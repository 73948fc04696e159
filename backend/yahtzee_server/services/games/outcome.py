from typing import Any, Dict, List, Optional, Tuple

Event = Tuple[str, Dict[str, Any]]


class Outcome:
    """Result of one state operation.

    ``applied`` is True when shared state changed and a full ``update`` should
    follow. ``events`` are emitted to every client, in order, before that
    update.
    """

    def __init__(self, applied: bool = True, events: Optional[List[Event]] = None):
        self.applied = applied
        self.events: List[Event] = list(events or [])
        self.ticket = None

    def add(self, name: str, payload: Optional[Dict[str, Any]] = None) -> 'Outcome':
        self.events.append((name, payload or {}))
        return self

    def sfx(self, name: str, **payload) -> 'Outcome':
        return self.add('sfx', {'name': name, **payload})

    def extend(self, other: 'Outcome') -> 'Outcome':
        self.applied = self.applied or other.applied
        self.events.extend(other.events)
        return self

    def __bool__(self):
        return self.applied or bool(self.events)


def noop() -> Outcome:
    return Outcome(applied=False)
