"""Notification Engine: rule-based staff notifications for distress alerts.

This engine:
1. Selects the active notification rules a risk level satisfies
2. Creates one pending notification per rule (immediate or delayed)
3. Delivers messages to teachers and admins through the external sink
4. Lets staff cancel delayed notifications before they fire

Endpoints:
- POST /feedback - Analyze feedback and schedule notifications
- GET /notifications/pending - List pending notifications
- DELETE /notifications/<id> - Cancel a pending notification
- POST /notifications/run - Execute due notifications
- GET /rules, PUT /rules - Read or replace the rule set
- GET /alerts - Recorded alert history
- GET /alerts/stats - Alert totals (unreviewed, critical, per school)
- POST /alerts/<id>/review - Mark an alert reviewed
"""

from .rules import DEFAULT_RULES, InvalidRuleError, NotificationRule, RuleStore, select_rules
from .scheduler import NotificationScheduler, NotificationState, PendingNotification
from .sink import AlertRecord, InMemorySink, NotificationSink, Recipient, RecipientRole
from .alert_publisher import AlertEventPublisher, DistressAlertEvent
from .monitor import AlertStats, DistressMonitor, FeedbackOutcome
from .config import NotificationConfig

__all__ = [
    "DEFAULT_RULES",
    "InvalidRuleError",
    "NotificationRule",
    "RuleStore",
    "select_rules",
    "NotificationScheduler",
    "NotificationState",
    "PendingNotification",
    "AlertRecord",
    "InMemorySink",
    "NotificationSink",
    "Recipient",
    "RecipientRole",
    "AlertEventPublisher",
    "DistressAlertEvent",
    "AlertStats",
    "DistressMonitor",
    "FeedbackOutcome",
    "NotificationConfig",
]
