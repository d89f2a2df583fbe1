"""External sink interface for the notification engine.

Persistence, recipient lookup, message delivery and in-app signalling
live outside this package; the scheduler and monitor only talk to a
NotificationSink. InMemorySink backs local development and tests.
"""
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from schoolpulse.shared.models import DistressAnalysis

logger = logging.getLogger(__name__)


class RecipientRole:
    TEACHER = "teacher"
    ADMIN = "admin"
    PARENT = "parent"


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str


@dataclass(frozen=True)
class AlertRecord:
    """Durable alert a human reviewer later marks as reviewed."""
    alert_id: str
    student_id: str
    school: str
    analysis: DistressAnalysis
    severity_level: int
    created_at: datetime
    is_reviewed: bool = False
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "alert_id": self.alert_id,
            "student_id": self.student_id,
            "school": self.school,
            "severity_level": self.severity_level,
            "risk_level": self.analysis.risk_level.value,
            "alert_type": "distress_detected",
            "created_at": self.created_at.isoformat(),
            "is_reviewed": self.is_reviewed,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }


@dataclass(frozen=True)
class SentMessage:
    recipient_email: str
    subject: str
    body: str


@dataclass(frozen=True)
class Signal:
    """In-app toast shown to the current user."""
    title: str
    description: str
    variant: str = "default"


class NotificationSink(ABC):
    """Collaborators the notification engine calls out to."""

    @abstractmethod
    def get_recipients(self, school: str, role: str) -> List[Recipient]:
        """Staff of a school with the given role."""

    @abstractmethod
    def record_alert(self, student_id: str, school: str, analysis: DistressAnalysis) -> str:
        """Persist an alert and return its id."""

    @abstractmethod
    def send_message(self, recipient_email: str, subject: str, body: str) -> bool:
        """Deliver one message over email, SMS or push."""

    @abstractmethod
    def signal(self, title: str, description: str, variant: str = "default") -> None:
        """Immediate in-app feedback, independent of delivery outcome."""

    @abstractmethod
    def list_alerts(self, student_id: Optional[str] = None, limit: Optional[int] = 50) -> List[AlertRecord]:
        """Most recent alerts first. No limit when limit is None."""

    @abstractmethod
    def mark_reviewed(self, alert_id: str, reviewer: str) -> Optional[AlertRecord]:
        """Record who reviewed an alert; None if the alert does not exist."""


class InMemorySink(NotificationSink):
    """Dictionary-backed sink for local development and tests.

    Directory layout: {school: [(role, Recipient), ...]}. An admin is
    also a teacher of the school, as in the staff table it stands in for.
    """

    def __init__(self, directory: Optional[Dict[str, List[Tuple[str, Recipient]]]] = None):
        self._lock = threading.Lock()
        self._directory = {school: list(staff) for school, staff in (directory or {}).items()}
        self.alerts: List[AlertRecord] = []
        self.sent: List[SentMessage] = []
        self.signals: List[Signal] = []
        self.failing_emails: set = set()

    def add_staff(self, school: str, role: str, email: str, display_name: str) -> None:
        with self._lock:
            self._directory.setdefault(school, []).append((role, Recipient(email, display_name)))

    def get_recipients(self, school: str, role: str) -> List[Recipient]:
        with self._lock:
            staff = list(self._directory.get(school, []))
        if role == RecipientRole.TEACHER:
            roles = {RecipientRole.TEACHER, RecipientRole.ADMIN}
        else:
            roles = {role}
        return [recipient for staff_role, recipient in staff if staff_role in roles]

    def record_alert(self, student_id: str, school: str, analysis: DistressAnalysis) -> str:
        record = AlertRecord(
            alert_id=str(uuid.uuid4()),
            student_id=student_id,
            school=school,
            analysis=analysis,
            severity_level=analysis.risk_level.alert_severity,
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self.alerts.append(record)
        return record.alert_id

    def send_message(self, recipient_email: str, subject: str, body: str) -> bool:
        if recipient_email in self.failing_emails:
            return False
        with self._lock:
            self.sent.append(SentMessage(recipient_email, subject, body))
        return True

    def signal(self, title: str, description: str, variant: str = "default") -> None:
        with self._lock:
            self.signals.append(Signal(title, description, variant))

    def list_alerts(self, student_id: Optional[str] = None, limit: Optional[int] = 50) -> List[AlertRecord]:
        with self._lock:
            alerts = list(self.alerts)
        if student_id:
            alerts = [a for a in alerts if a.student_id == student_id]
        return list(reversed(alerts))[:limit]

    def mark_reviewed(self, alert_id: str, reviewer: str) -> Optional[AlertRecord]:
        """First review wins; marking a reviewed alert again changes nothing."""
        with self._lock:
            for index, alert in enumerate(self.alerts):
                if alert.alert_id != alert_id:
                    continue
                if not alert.is_reviewed:
                    alert = replace(
                        alert,
                        is_reviewed=True,
                        reviewed_by=reviewer,
                        reviewed_at=datetime.now(timezone.utc),
                    )
                    self.alerts[index] = alert
                return alert
        return None
