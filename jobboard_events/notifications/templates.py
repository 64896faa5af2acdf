"""Template rendering for notification titles and bodies using Jinja2.

Templates are plain text and live in the ``message_templates`` directory of
this package. StrictUndefined makes a missing variable an error instead of a
silently empty string.
"""

import logging
import re
from typing import Any, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from .models import NotificationTemplateError, RenderedNotification

logger = logging.getLogger(__name__)

_STATUS_NAME = re.compile(r"[a-z0-9_-]+")


class TemplateRenderer:
    """Renders notification text for each event kind.

    Templates are compiled once and cached by the Jinja2 environment, so one
    renderer can be shared across threads.
    """

    def __init__(self, template_dir: str = "message_templates"):
        """Initialize the Jinja2 environment.

        Args:
            template_dir: Directory name within the jobboard_events.notifications package
        """
        self.env = Environment(
            loader=PackageLoader("jobboard_events.notifications", template_dir),
            autoescape=False,
            undefined=StrictUndefined,
        )
        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render_job_alert(self, job_title: str, company: Optional[str] = None) -> RenderedNotification:
        """Text for a ``job_alert`` notification."""
        return self._render("job_alert", job_title=job_title or "A new job", company=company)

    def render_status_update(self, job_title: str, status: str) -> RenderedNotification:
        """Text for a ``status_update`` notification.

        The body is chosen by destination status; statuses without their own
        template use ``status/default.j2``.
        """
        status_name = (status or "").strip().lower()
        if not _STATUS_NAME.fullmatch(status_name):
            status_name = "default"
        context = {"job_title": job_title or "the job", "status": status}
        try:
            title = self.env.get_template("status_update_title.j2").render(context)
            body = self.env.select_template(
                [f"status/{status_name}.j2", "status/default.j2"]
            ).render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for status {status!r}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
        return RenderedNotification(title=_one_line(title), message=_one_line(body))

    def render_message(self, sender_name: str) -> RenderedNotification:
        """Text for a ``message`` notification."""
        return self._render("message", sender_name=sender_name or "Someone")

    def render_application(self, applicant_name: str, job_title: str) -> RenderedNotification:
        """Text for an ``application`` notification sent to the employer."""
        return self._render(
            "application",
            applicant_name=applicant_name or "A candidate",
            job_title=job_title or "your job",
        )

    def _render(self, kind: str, **context: Any) -> RenderedNotification:
        try:
            title = self.env.get_template(f"{kind}_title.j2").render(context)
            body = self.env.get_template(f"{kind}_message.j2").render(context)
        except TemplateError as e:
            error_msg = f"Template rendering failed for {kind}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
        return RenderedNotification(title=_one_line(title), message=_one_line(body))


def _one_line(text: str) -> str:
    return " ".join(text.split())
