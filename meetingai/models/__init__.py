from .user import User
from .meeting import Meeting
from .comment import MeetingComment
from .share import SharedMeeting
from .notes import MeetingNotes
from .annotation import MeetingAnnotation
from .insights import MeetingInsights
from .template import MeetingTemplate
# base and mixins are imported by the above as needed
