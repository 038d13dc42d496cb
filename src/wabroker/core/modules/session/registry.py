import asyncio
from collections.abc import Callable, Iterator

from wabroker.core.modules.session.models import Session


class SessionRegistry:
    """Mapping of user id to its single live session.

    All mutations run on the event loop without suspending, so a lookup
    followed by ``create`` can never produce two sessions for one user.
    ``lock`` serializes the multi-step lifecycle updates of a user.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, user_id: str) -> Session | None:
        return self._sessions.get(user_id)

    def create(self, user_id: str, build: Callable[[], Session]) -> Session:
        """Return the user's session, calling ``build`` only when none exists."""
        existing = self._sessions.get(user_id)
        if existing is not None:
            return existing
        session = build()
        self._sessions[user_id] = session
        return session

    def remove(self, user_id: str, session: Session | None = None) -> Session | None:
        """Remove the user's session.

        When ``session`` is given, the entry is only removed if it is still that session.
        """
        current = self._sessions.get(user_id)
        if current is None or (session is not None and current is not session):
            return None
        del self._sessions[user_id]
        return current

    def lock(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def release_lock(self, user_id: str) -> None:
        """Forget the user's lock once the user has no session and nobody holds it."""
        lock = self._locks.get(user_id)
        if lock is not None and user_id not in self._sessions and not lock.locked():
            del self._locks[user_id]

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))
