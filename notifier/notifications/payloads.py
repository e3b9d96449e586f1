"""Notification payload construction."""

import json
from dataclasses import dataclass
from typing import Dict

from notifier.config.models import NotificationsConfig
from notifier.domain.models import NotificationRequest


@dataclass(frozen=True)
class NotificationPayload:
    """Immutable message body shared by every delivery of one notify() call."""

    title: str
    body: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "body": self.body, "url": self.url}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


def build_payload(request: NotificationRequest, config: NotificationsConfig) -> NotificationPayload:
    """Fill absent request fields with the configured fallbacks.

    Empty strings count as absent.

    Example:
        >>> build_payload(NotificationRequest(title="Turno libre"), NotificationsConfig()).url
        '/'
    """
    return NotificationPayload(
        title=request.title or config.default_title,
        body=request.body or config.default_body,
        url=request.url or config.default_url,
    )
