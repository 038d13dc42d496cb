class RecreateGuard:
    """Limits automatic session recreation after disconnects.

    Within ``window`` seconds a user gets at most ``max_attempts`` recreates. The
    first one is immediate, each later one waits twice as long as the previous,
    starting at ``base_delay``.
    """

    def __init__(self, window: float, max_attempts: int, base_delay: float) -> None:
        self._window = window
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._history: dict[str, list[float]] = {}

    def next_delay(self, user_id: str, now: float) -> float | None:
        """Record a recreate attempt and return its delay, or None when the cap is reached."""
        recent = [t for t in self._history.get(user_id, []) if now - t < self._window]
        if len(recent) >= self._max_attempts:
            self._history[user_id] = recent
            return None

        delay = 0.0 if not recent else self._base_delay * 2 ** (len(recent) - 1)
        recent.append(now)
        self._history[user_id] = recent
        return delay

    def reset(self, user_id: str) -> None:
        self._history.pop(user_id, None)
