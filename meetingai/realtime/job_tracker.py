import logging

from .scheduler import default_scheduler

logger = logging.getLogger(__name__)

TERMINAL_STATES = ("completed", "error")


class TranscriptionJobTracker:
    """Poll a meeting's transcription status until it finishes.

    ``status_fn(meeting_id)`` returns the status-check payload
    (``{"status": ..., "hasTranscript": ..., "error"?: ...}``). The first check
    runs immediately, later ones every ``interval`` seconds; the pending timer
    is cancelled once a terminal state is seen or ``stop()`` is called.
    """

    def __init__(self, status_fn, meeting_id, scheduler=None, interval=5.0,
                 on_complete=None, on_error=None, on_status=None):
        self.status_fn = status_fn
        self.meeting_id = meeting_id
        self.scheduler = scheduler or default_scheduler
        self.interval = interval
        self.on_complete = on_complete
        self.on_error = on_error
        self.on_status = on_status

        self.status = "idle"
        self.error = None
        self._handle = None
        self._stopped = False

    @property
    def active(self):
        return not self._stopped and self.status not in TERMINAL_STATES

    def start(self):
        if self._stopped:
            return
        self.status = "queued"
        self._check()

    def _check(self):
        self._handle = None
        if self._stopped:
            return
        try:
            result = self.status_fn(self.meeting_id)
        except Exception as e:
            # transient failure of the status endpoint: try again next tick
            logger.warning('Transcription status check failed for %s: %s', self.meeting_id, e)
            self._schedule()
            return

        status = result.get("status")
        if status == "not_started":
            self.status = "idle"
            self._finish()
            return

        self.status = status
        if self.on_status:
            self.on_status(status)

        if status == "completed":
            self._finish()
            if self.on_complete:
                self.on_complete(result)
        elif status == "error":
            self.error = result.get("error") or "Transcription failed"
            self._finish()
            if self.on_error:
                self.on_error(self.error)
        else:
            self._schedule()

    def _schedule(self):
        if not self._stopped:
            self._handle = self.scheduler.call_later(self.interval, self._check)

    def _finish(self):
        self._stopped = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def stop(self):
        self._finish()
