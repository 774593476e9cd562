"""SQLAlchemy models for Humanika CMS."""
from humanika.models.work_program import WorkProgram
from humanika.models.event import Event
from humanika.models.finance import Finance
from humanika.models.document import Document
from humanika.models.article import Article
from humanika.models.letter import Letter
from humanika.models.approval_request import ApprovalRequest
from humanika.models.activity_log import ActivityLog

__all__ = [
    "WorkProgram",
    "Event",
    "Finance",
    "Document",
    "Article",
    "Letter",
    "ApprovalRequest",
    "ActivityLog",
]
