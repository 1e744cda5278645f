"""
Renders the notification email with Jinja2
"""

import logging
import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from event_messenger.core.errors import RenderError
from event_messenger.services.batch_builder import NotificationBatch
from event_messenger.utils.dates import utc_to_local_date

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")
EMAIL_TEMPLATE = "email_notification.html"


class EmailRenderer:
    """Pure function of the batch: the same batch always renders the same HTML"""

    def __init__(self, templates_dir: Optional[str] = None, template_name: str = EMAIL_TEMPLATE):
        self.template_name = template_name
        self.env = Environment(
            loader=FileSystemLoader(templates_dir or TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, batch: NotificationBatch) -> str:
        try:
            template = self.env.get_template(self.template_name)
            return template.render(
                event_name=batch.event_name,
                recipient_name=batch.recipient_name,
                event_date=utc_to_local_date(batch.event_date),
                coordinator_name=batch.coordinator_name,
                total_count=batch.total_count,
                truncated=batch.truncated,
                submissions=batch.entries,
            )
        except TemplateError as e:
            logger.error(f"Email template render error: {e}")
            raise RenderError(f"Failed to render email template: {e}") from e
