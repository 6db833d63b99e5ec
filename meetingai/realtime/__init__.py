from .scheduler import ThreadingScheduler, default_scheduler
from .connection import ConnectionManager
from .job_tracker import TranscriptionJobTracker
from .transport import RedisChannelTransport
from .cache_sync import MeetingCache, MeetingsRealtimeSync, MeetingRealtimeSync
from .notes_sync import NotesSync, LocalBroadcast, CollaborativeNotesSession
