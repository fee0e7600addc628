"""
Key-value session stores consumed by the heating service.

The heating service only needs three string operations, so any per-user bag
of strings can back it: the signed Flask session cookie for HTTP requests, or
a plain dictionary for SocketIO connections and tests.
"""
from typing import Optional, Protocol


class SessionStore(Protocol):
    def get_string(self, key: str) -> Optional[str]: ...

    def set_string(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemorySessionStore:
    """A session store backed by a dictionary; one instance per connection."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.values: dict[str, str] = dict(initial or {})

    def get_string(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set_string(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class FlaskSessionStore:
    """
    Adapts `flask.session` (or any mutable mapping) to the store contract.

    Must be used inside a request context when wrapping `flask.session`.
    """

    def __init__(self, session):
        self.session = session

    def get_string(self, key: str) -> Optional[str]:
        value = self.session.get(key)
        return None if value is None else str(value)

    def set_string(self, key: str, value: str) -> None:
        self.session[key] = value

    def remove(self, key: str) -> None:
        self.session.pop(key, None)
