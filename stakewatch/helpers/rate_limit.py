"""Per-provider request throttling."""

import asyncio
import time


class IntervalGate:
    """Enforce a minimum interval between successive requests to one provider.

    Every outbound call to a provider awaits ``wait()`` first. The gate is
    shared by all callers of that provider, so the pacing lives in one place
    instead of sleeps scattered through fetch loops.

    Example:
        ```python
        gate = IntervalGate(0.5)

        for batch in batches:
            await gate.wait()
            await fetch(batch)
        ```
    """

    def __init__(self, min_interval: float = 0.0) -> None:
        """Initialize the gate.

        Args:
            min_interval: Minimum seconds between two passes (0 disables waiting)

        Raises:
            ValueError: If min_interval is negative
        """
        if min_interval < 0:
            msg = "min_interval cannot be negative"
            raise ValueError(msg)

        self.min_interval = min_interval
        self._last_pass: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        """Sleep until the interval since the previous pass has elapsed."""
        async with self._lock:
            now = time.monotonic()
            if self._last_pass is not None and self.min_interval > 0:
                remaining = self.min_interval - (now - self._last_pass)
                if remaining > 0:
                    await asyncio.sleep(remaining)
                    now = time.monotonic()
            self._last_pass = now


__all__ = ["IntervalGate"]
