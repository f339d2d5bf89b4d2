"""
Outbound notifications of the audit creation flow.

Collaborators (navigation, toasts, list views) subscribe callbacks; the
wizard controller triggers them after a creation attempt.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

AUDITS_LIST_KEY = "audits"


@dataclass
class Notification:
    level: str  # "success" | "error"
    title: str
    message: str
    audit_id: Optional[str] = None


@dataclass
class AuditEvents:
    """Callback registry for audit creation outcomes"""
    on_created: List[Callable[[str], None]] = field(default_factory=list)
    on_notify: List[Callable[[Notification], None]] = field(default_factory=list)
    on_invalidate: List[Callable[[str], None]] = field(default_factory=list)

    def created(self, audit_id: str) -> None:
        for callback in self.on_created:
            callback(audit_id)

    def notify(self, notification: Notification) -> None:
        log = logger.info if notification.level == "success" else logger.warning
        log(f"{notification.title}: {notification.message}")
        for callback in self.on_notify:
            callback(notification)

    def invalidate(self, key: str = AUDITS_LIST_KEY) -> None:
        for callback in self.on_invalidate:
            callback(key)


audit_events = AuditEvents()
