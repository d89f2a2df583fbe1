"""Notification scheduler - delayed, cancellable staff notifications.

Lifecycle of a PendingNotification:
    SCHEDULED -> EXECUTING -> COMPLETED   (removed)
    SCHEDULED -> CANCELLED                (removed)

Delivery is at-most-once: a failed send is logged and the entry is
still removed. Nothing raised by the sink crosses schedule(), execute()
or run_pending(); the caller's flow never breaks on a delivery problem.

Deferred executions sit in a (fire_at, seq, id) heap polled by
run_pending(). run_forever() polls on an interval and runs each due
notification in its own worker thread, so a hanging sink call only
holds up that one notification.
"""
import asyncio
import heapq
import itertools
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from schoolpulse.shared.models import DistressAnalysis, RiskLevel
from schoolpulse.shared.utils import log_safe_id
from .config import NotificationConfig
from .rules import InvalidRuleError, NotificationRule, RuleStore
from .sink import NotificationSink, Recipient, RecipientRole

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationState(Enum):
    """State machine for a pending notification."""
    SCHEDULED = "scheduled"
    EXECUTING = "executing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class PendingNotification:
    """Mutable record of one rule firing for one analysis.

    Owned by NotificationScheduler; readers get snapshots.
    """
    id: str
    student_id: str
    student_name: str
    school: str
    analysis: DistressAnalysis
    scheduled_for: datetime
    rule: NotificationRule
    notifications_sent: Set[str] = field(default_factory=set)
    state: NotificationState = NotificationState.SCHEDULED

    def snapshot(self) -> "PendingNotification":
        return replace(self, notifications_sent=set(self.notifications_sent))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "school": self.school,
            "risk_level": self.analysis.risk_level.value,
            "rule_id": self.rule.id,
            "scheduled_for": self.scheduled_for.isoformat(),
            "notifications_sent": sorted(self.notifications_sent),
            "state": self.state.value,
        }


@dataclass(frozen=True)
class OutgoingMessage:
    role: str
    recipient: Recipient
    subject: str
    body: str

    @property
    def channel_id(self) -> str:
        return f"{self.role}:{self.recipient.email}"


class NotificationScheduler:
    """Turns distress analyses into staff notifications per the rule set."""

    def __init__(
        self,
        sink: NotificationSink,
        rule_store: Optional[RuleStore] = None,
        config: Optional[NotificationConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize scheduler with dependencies.

        Args:
            sink: Recipient lookup, delivery and in-app signalling
            rule_store: Rule set to select from (defaults to DEFAULT_RULES)
            config: Polling configuration
            clock: Time source, injectable for simulated-time tests
        """
        self.sink = sink
        self.rule_store = rule_store or RuleStore()
        self.config = config or NotificationConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingNotification] = {}
        self._queue: List[Tuple[datetime, int, str]] = []
        self._sequence = itertools.count()
        self._workers: Set[asyncio.Task] = set()

        logger.info(
            "NOTIFICATION_SCHEDULER_INITIALIZED",
            extra={"rule_count": len(self.rule_store.rules())}
        )

    def schedule(
        self,
        student_id: str,
        student_name: str,
        school: str,
        analysis: DistressAnalysis,
    ) -> List[str]:
        """Create one pending notification per applicable rule.

        Rules with no delay execute before this method returns; the rest
        wait for run_pending() to find them due.

        Args:
            student_id: Student identifier (hashed for logging)
            student_name: Display name used in messages
            school: School whose staff are notified
            analysis: Analysis that triggered the notification

        Returns:
            Ids of the notifications created, in rule order
        """
        student_id_hash = log_safe_id(student_id)
        created: List[str] = []

        for rule in self.rule_store.select(analysis.risk_level):
            try:
                rule.validate()
            except InvalidRuleError as e:
                logger.error(
                    "NOTIFICATION_RULE_SKIPPED",
                    extra={
                        "rule_id": rule.id,
                        "student_id_hash": student_id_hash,
                        "error": str(e),
                    }
                )
                continue

            notification = PendingNotification(
                id=str(uuid.uuid4()),
                student_id=student_id,
                student_name=student_name,
                school=school,
                analysis=analysis,
                scheduled_for=self._clock() + timedelta(minutes=rule.delay_minutes),
                rule=rule,
            )

            with self._lock:
                self._pending[notification.id] = notification
                if rule.delay_minutes > 0:
                    heapq.heappush(
                        self._queue,
                        (notification.scheduled_for, next(self._sequence), notification.id),
                    )
            created.append(notification.id)

            logger.info(
                "NOTIFICATION_SCHEDULED",
                extra={
                    "notification_id": notification.id,
                    "rule_id": rule.id,
                    "student_id_hash": student_id_hash,
                    "risk_level": analysis.risk_level.value,
                    "delay_minutes": rule.delay_minutes,
                    "scheduled_for": notification.scheduled_for.isoformat(),
                }
            )

            if rule.delay_minutes == 0:
                self.execute(notification)

        return created

    def execute(self, notification: PendingNotification) -> bool:
        """Deliver a scheduled notification now.

        Returns:
            False if it was cancelled or already started, True otherwise
        """
        with self._lock:
            current = self._pending.get(notification.id)
            if current is None or current.state != NotificationState.SCHEDULED:
                return False
            current.state = NotificationState.EXECUTING
        self._deliver(current)
        return True

    def cancel(self, notification_id: str) -> bool:
        """Cancel a notification that has not started executing.

        Returns:
            True if the notification was cancelled
        """
        with self._lock:
            notification = self._pending.get(notification_id)
            if notification is None or notification.state != NotificationState.SCHEDULED:
                cancelled = False
            else:
                notification.state = NotificationState.CANCELLED
                del self._pending[notification_id]
                cancelled = True

        logger.info(
            "NOTIFICATION_CANCELLED" if cancelled else "NOTIFICATION_CANCEL_IGNORED",
            extra={"notification_id": notification_id}
        )
        return cancelled

    def run_pending(self, now: Optional[datetime] = None) -> int:
        """Execute every notification due at or before now.

        Returns:
            Number of notifications executed
        """
        due = self._claim_due(now or self._clock())
        for notification in due:
            self._deliver(notification)
        return len(due)

    async def run_forever(
        self,
        poll_interval: Optional[float] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Poll for due notifications until stop_event is set."""
        interval = poll_interval if poll_interval is not None else self.config.poll_interval_seconds
        stop_event = stop_event or asyncio.Event()

        logger.info("NOTIFICATION_LOOP_STARTED", extra={"poll_interval": interval})
        while not stop_event.is_set():
            for notification in self._claim_due(self._clock()):
                worker = asyncio.create_task(asyncio.to_thread(self._deliver, notification))
                self._workers.add(worker)
                worker.add_done_callback(self._workers.discard)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        logger.info("NOTIFICATION_LOOP_STOPPED")

    @property
    def rules(self) -> List[NotificationRule]:
        return self.rule_store.rules()

    def pending_notifications(self) -> List[PendingNotification]:
        """Snapshot of pending notifications, earliest first."""
        with self._lock:
            snapshot = [n.snapshot() for n in self._pending.values()]
        return sorted(snapshot, key=lambda n: n.scheduled_for)

    def _claim_due(self, now: datetime) -> List[PendingNotification]:
        due: List[PendingNotification] = []
        with self._lock:
            while self._queue and self._queue[0][0] <= now:
                _, _, notification_id = heapq.heappop(self._queue)
                notification = self._pending.get(notification_id)
                # Cancelled entries are gone from _pending; their heap slot is skipped
                if notification is None or notification.state != NotificationState.SCHEDULED:
                    continue
                notification.state = NotificationState.EXECUTING
                due.append(notification)
        return due

    def _deliver(self, notification: PendingNotification) -> None:
        """Send all messages for a notification, then remove it.

        Logs:
            - NOTIFICATION_DELIVERY_FAILED: One recipient failed
            - NOTIFICATION_PARENT_CONTACT_REQUIRED: Rule asks for parents
            - NOTIFICATION_EXECUTION_FAILED: Unexpected fault
            - NOTIFICATION_COMPLETED: Always, after removal
        """
        rule = notification.rule
        attempted = 0
        try:
            for message in self._build_messages(notification):
                attempted += 1
                try:
                    delivered = self.sink.send_message(
                        message.recipient.email, message.subject, message.body
                    )
                except Exception as e:
                    logger.error(
                        "NOTIFICATION_DELIVERY_FAILED",
                        extra={
                            "notification_id": notification.id,
                            "role": message.role,
                            "error": str(e),
                            "error_type": type(e).__name__,
                        }
                    )
                    continue

                if delivered:
                    with self._lock:
                        notification.notifications_sent.add(message.channel_id)
                else:
                    logger.error(
                        "NOTIFICATION_DELIVERY_FAILED",
                        extra={
                            "notification_id": notification.id,
                            "role": message.role,
                            "error": "sink reported failure",
                        }
                    )

            if rule.notify_parents:
                logger.warning(
                    "NOTIFICATION_PARENT_CONTACT_REQUIRED",
                    extra={
                        "notification_id": notification.id,
                        "rule_id": rule.id,
                        "action": "MANUAL_PARENT_CONTACT",
                    }
                )

            self._signal(notification)

        except Exception as e:
            logger.error(
                "NOTIFICATION_EXECUTION_FAILED",
                extra={
                    "notification_id": notification.id,
                    "rule_id": rule.id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
        finally:
            with self._lock:
                self._pending.pop(notification.id, None)
                notification.state = NotificationState.COMPLETED
                sent_count = len(notification.notifications_sent)

            logger.info(
                "NOTIFICATION_COMPLETED",
                extra={
                    "notification_id": notification.id,
                    "rule_id": rule.id,
                    "attempted": attempted,
                    "delivered": sent_count,
                }
            )

    def _build_messages(self, notification: PendingNotification) -> List[OutgoingMessage]:
        rule = notification.rule
        student = notification.student_name
        level = notification.analysis.risk_level.value
        messages: List[OutgoingMessage] = []

        if rule.notify_teachers:
            for recipient in self._lookup(notification, RecipientRole.TEACHER):
                messages.append(OutgoingMessage(
                    role=RecipientRole.TEACHER,
                    recipient=recipient,
                    subject=f"Student Mental Health Alert - {student}",
                    body=(
                        f"A {level} risk level has been detected in feedback from {student}. "
                        "Please consider reaching out to provide support."
                    ),
                ))

        if rule.notify_admins:
            for recipient in self._lookup(notification, RecipientRole.ADMIN):
                messages.append(OutgoingMessage(
                    role=RecipientRole.ADMIN,
                    recipient=recipient,
                    subject=f"URGENT: Mental Health Alert - {student}",
                    body=(
                        f"{level.capitalize()} mental health alert detected for student {student}. "
                        "Immediate intervention may be required."
                    ),
                ))

        return messages

    def _lookup(self, notification: PendingNotification, role: str) -> List[Recipient]:
        try:
            return list(self.sink.get_recipients(notification.school, role))
        except Exception as e:
            logger.error(
                "NOTIFICATION_RECIPIENT_LOOKUP_FAILED",
                extra={
                    "notification_id": notification.id,
                    "role": role,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return []

    def _signal(self, notification: PendingNotification) -> None:
        level = notification.analysis.risk_level
        critical = level == RiskLevel.CRITICAL
        try:
            self.sink.signal(
                title="Critical Alert" if critical else "Mental Health Alert",
                description=f"{level.value.upper()} risk detected for {notification.student_name}",
                variant="destructive" if critical else "default",
            )
        except Exception as e:
            logger.warning(
                "NOTIFICATION_SIGNAL_FAILED",
                extra={"notification_id": notification.id, "error": str(e)}
            )
