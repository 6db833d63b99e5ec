import logging
import time

from .scheduler import default_scheduler

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Keeps a realtime subscription alive: idle heartbeats and backoff reconnects."""

    def __init__(self, max_retries=5, base_delay=1.0, max_delay=30.0, heartbeat_interval=30.0,
                 scheduler=None, clock=None):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.heartbeat_interval = heartbeat_interval
        self.scheduler = scheduler or default_scheduler
        self.clock = clock or time.monotonic

        self.retry_count = 0
        self._last_activity = self.clock()
        self._heartbeat_handle = None
        self._reconnect_handle = None
        self._destroyed = False
        self._channel = None

    def next_delay(self):
        return min(self.base_delay * (2 ** self.retry_count), self.max_delay)

    def update_activity(self):
        self._last_activity = self.clock()

    def start_heartbeat(self, channel):
        self.stop_heartbeat()
        self._channel = channel
        self._heartbeat_handle = self.scheduler.call_later(self.heartbeat_interval, self._beat)

    def _beat(self):
        channel = self._channel
        if channel is None:
            return
        now = self.clock()
        if now - self._last_activity > self.heartbeat_interval / 2:
            try:
                channel.send({"type": "broadcast", "event": "heartbeat", "payload": {"timestamp": time.time()}})
            except Exception as e:
                logger.warning('Heartbeat failed: %s', e)
        if self._channel is channel:
            self._heartbeat_handle = self.scheduler.call_later(self.heartbeat_interval, self._beat)

    def stop_heartbeat(self):
        if self._heartbeat_handle is not None:
            self._heartbeat_handle.cancel()
            self._heartbeat_handle = None
        self._channel = None

    def reconnect(self, connect_fn, on_success, on_failure):
        """Schedule ``connect_fn`` with exponential backoff until it succeeds or retries run out."""
        self._cancel_reconnect()
        if self._destroyed:
            return

        if self.retry_count >= self.max_retries:
            on_failure(ConnectionError("Max reconnection attempts reached"))
            return

        delay = self.next_delay()
        logger.info('Reconnecting in %.1fs (attempt %s/%s)', delay, self.retry_count + 1, self.max_retries)

        def attempt():
            self._reconnect_handle = None
            if self._destroyed:
                return
            try:
                channel = connect_fn()
            except Exception as e:
                logger.warning('Reconnect attempt %s failed: %s', self.retry_count + 1, e)
                self.retry_count += 1
                self.reconnect(connect_fn, on_success, on_failure)
                return
            if self._destroyed:
                logger.info('Connection manager destroyed during reconnect, dropping new channel')
                return
            self.retry_count = 0
            self.update_activity()
            on_success(channel)

        self._reconnect_handle = self.scheduler.call_later(delay, attempt)

    def _cancel_reconnect(self):
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def reset(self):
        self.retry_count = 0
        self.stop_heartbeat()
        self._cancel_reconnect()

    def destroy(self):
        """Stop all timers for good; reconnects still in flight are dropped."""
        self._destroyed = True
        self.reset()
