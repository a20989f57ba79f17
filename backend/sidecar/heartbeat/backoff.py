"""Exponential retry backoff for failed heartbeats."""


class RetryBackoff:
    """Doubling retry delay, capped at ``max_interval``.

    ``next_interval()`` returns the delay for the current failure and advances
    the state, giving base, 2*base, 4*base, ... up to ``max_interval``.
    Only ``reset()`` (on a successful heartbeat) brings it back to base.
    """

    def __init__(self, base_interval: float = 30.0, max_interval: float = 300.0) -> None:
        if base_interval <= 0 or max_interval < base_interval:
            raise ValueError("Backoff requires 0 < base_interval <= max_interval")
        self._base = base_interval
        self._max = max_interval
        self._current = base_interval

    @property
    def current(self) -> float:
        """Delay that the next failure will use."""
        return self._current

    def next_interval(self) -> float:
        interval = self._current
        self._current = min(self._current * 2, self._max)
        return interval

    def reset(self) -> None:
        self._current = self._base
