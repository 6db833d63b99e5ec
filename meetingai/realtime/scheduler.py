"""Timer scheduling used by the client-side sync layer.

Anything with ``call_later(delay, fn) -> handle`` where ``handle.cancel()``
stops a pending call will do; an asyncio event loop qualifies as is.
"""
import threading


class ThreadingScheduler:
    def call_later(self, delay, fn, *args):
        timer = threading.Timer(delay, fn, args=args)
        timer.daemon = True
        timer.start()
        return timer


default_scheduler = ThreadingScheduler()
