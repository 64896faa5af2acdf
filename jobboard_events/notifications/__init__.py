"""In-app notifications: rendering, writing, querying and retention.

- NotificationWriter: validates and stores one notification per call
- NotificationService: paginated listing, get/delete, retention purge
- TemplateRenderer: Jinja2 titles and bodies for each event kind
"""

from .models import (
    NotificationError,
    NotificationTemplateError,
    NotificationWriteError,
    RenderedNotification,
)
from .service import NotificationService
from .templates import TemplateRenderer
from .writer import NotificationWriter

__all__ = [
    # Services
    "NotificationWriter",
    "NotificationService",
    "TemplateRenderer",
    # Models
    "RenderedNotification",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "NotificationWriteError",
]
