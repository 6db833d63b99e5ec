"""Redis pub/sub transport for row-change events.

``subscribe(filter, on_event)`` returns a zero-argument callable that tears
the subscription down.
"""
import json
import logging

logger = logging.getLogger(__name__)


def channel_for(filter):
    if "meeting_id" in filter:
        return f"meetings:{filter['meeting_id']}"
    if "user_id" in filter:
        return f"meetings:user:{filter['user_id']}"
    raise ValueError(f"Unsupported subscription filter: {filter!r}")


class RedisChannel:
    def __init__(self, redis, name):
        self.redis = redis
        self.name = name

    def send(self, payload):
        return self.redis.publish(self.name, json.dumps(payload))


class RedisChannelTransport:
    def __init__(self, redis, poll_interval=0.1):
        self.redis = redis
        self.poll_interval = poll_interval

    def channel(self, name):
        return RedisChannel(self.redis, name)

    def subscribe(self, filter, on_event):
        name = channel_for(filter)

        def handler(message):
            try:
                event = json.loads(message["data"])
            except (TypeError, ValueError):
                logger.warning('Dropping malformed event on %s', name)
                return
            on_event(event)

        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(**{name: handler})
        thread = pubsub.run_in_thread(sleep_time=self.poll_interval, daemon=True)

        def unsubscribe():
            thread.stop()
            try:
                pubsub.unsubscribe(name)
                pubsub.close()
            except Exception as e:
                logger.warning('Failed to close subscription %s: %s', name, e)

        return unsubscribe
