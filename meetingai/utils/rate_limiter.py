"""Fixed-window request counters.

State is process-local: limits hold for a single-process deployment only.
Several workers each keep their own counters, so a shared store (for example a
Redis INCR/EXPIRE pair) would be needed once the app is scaled out.
"""
import time


class RateLimiter:
    def __init__(self, max_requests, window_seconds, clock=None, sweep_interval=60.0):
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self.clock = clock or time.monotonic
        self.sweep_interval = sweep_interval
        # key -> [count, reset_at]
        self._entries = {}
        self._next_sweep = self.clock() + sweep_interval

    def check(self, key) -> bool:
        """Count one request for ``key``; False once the window's quota is used."""
        now = self.clock()
        if now >= self._next_sweep:
            self.sweep(now)

        entry = self._entries.get(key)
        if entry is None or now >= entry[1]:
            self._entries[key] = [1, now + self.window_seconds]
            return True

        if entry[0] >= self.max_requests:
            return False
        entry[0] += 1
        return True

    def remaining(self, key) -> int:
        entry = self._entries.get(key)
        if entry is None or self.clock() >= entry[1]:
            return self.max_requests
        return max(0, self.max_requests - entry[0])

    def reset_time(self, key) -> float:
        entry = self._entries.get(key)
        return entry[1] if entry else self.clock()

    def retry_after(self, key) -> int:
        return max(0, int(round(self.reset_time(key) - self.clock() + 0.5)))

    def sweep(self, now=None) -> int:
        now = self.clock() if now is None else now
        expired = [k for k, (_, reset_at) in self._entries.items() if now >= reset_at]
        for k in expired:
            del self._entries[k]
        self._next_sweep = now + self.sweep_interval
        return len(expired)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


def build_rate_limiters(limits, clock=None):
    return {name: RateLimiter(requests, window, clock=clock) for name, (requests, window) in limits.items()}
