"""Feedback monitor - the end-to-end distress pipeline.

text -> OptimizedAnalyzer (cache) -> alert record + alert event
     -> NotificationScheduler (rules -> pending notifications)
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from schoolpulse.shared.models import DistressAnalysis, RiskLevel
from schoolpulse.shared.utils import log_safe_id
from schoolpulse.services.distress_service import OptimizedAnalyzer
from .alert_publisher import AlertEventPublisher, DistressAlertEvent
from .scheduler import NotificationScheduler
from .sink import AlertRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackOutcome:
    """What happened to one piece of feedback."""
    analysis: Optional[DistressAnalysis]
    alert_id: Optional[str] = None
    notification_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "analyzed": self.analysis is not None,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "alert_id": self.alert_id,
            "notification_ids": list(self.notification_ids),
        }


class DistressMonitor:
    """Analyzes student feedback and routes concerning results to staff."""

    def __init__(
        self,
        scheduler: NotificationScheduler,
        analyzer: Optional[OptimizedAnalyzer] = None,
        publisher: Optional[AlertEventPublisher] = None,
    ):
        self.scheduler = scheduler
        self.analyzer = analyzer or OptimizedAnalyzer()
        self.publisher = publisher or AlertEventPublisher(enabled=False)

    @property
    def sink(self):
        return self.scheduler.sink

    def process_feedback(
        self,
        student_id: str,
        student_name: str,
        school: str,
        text: str,
    ) -> FeedbackOutcome:
        """Analyze feedback, record an alert if warranted, and schedule notifications.

        Args:
            student_id: Student identifier
            student_name: Display name used in staff messages
            school: Student's school
            text: Raw feedback text

        Returns:
            FeedbackOutcome; analysis is None for too-short text
        """
        student_id_hash = log_safe_id(student_id)
        analysis = self.analyzer.analyze(text)
        if analysis is None:
            return FeedbackOutcome(analysis=None)

        alert_id = None
        if analysis.requires_alert:
            alert_id = self._record_alert(student_id, student_id_hash, school, analysis)

        notification_ids = self.scheduler.schedule(student_id, student_name, school, analysis)

        logger.info(
            "FEEDBACK_PROCESSED",
            extra={
                "student_id_hash": student_id_hash,
                "risk_level": analysis.risk_level.value,
                "alert_recorded": alert_id is not None,
                "notifications": len(notification_ids),
            }
        )
        return FeedbackOutcome(
            analysis=analysis,
            alert_id=alert_id,
            notification_ids=notification_ids,
        )

    def _record_alert(
        self,
        student_id: str,
        student_id_hash: str,
        school: str,
        analysis: DistressAnalysis,
    ) -> Optional[str]:
        try:
            alert_id = self.sink.record_alert(student_id, school, analysis)
        except Exception as e:
            logger.error(
                "ALERT_RECORD_FAILED",
                extra={
                    "student_id_hash": student_id_hash,
                    "risk_level": analysis.risk_level.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                }
            )
            return None

        self.publisher.publish(
            DistressAlertEvent.from_analysis(alert_id, student_id_hash, school, analysis)
        )
        return alert_id

    def alert_history(self, student_id: Optional[str] = None, limit: Optional[int] = 50) -> List[AlertRecord]:
        """Recent alerts, newest first; empty on sink failure."""
        try:
            return self.sink.list_alerts(student_id=student_id, limit=limit)
        except Exception as e:
            logger.error("ALERT_HISTORY_FAILED", extra={"error": str(e)})
            return []

    def mark_reviewed(self, alert_id: str, reviewer: str) -> Optional[AlertRecord]:
        """Mark an alert reviewed by a staff member.

        Returns:
            The updated record, or None if unknown or the sink failed
        """
        try:
            record = self.sink.mark_reviewed(alert_id, reviewer)
        except Exception as e:
            logger.error(
                "ALERT_REVIEW_FAILED",
                extra={"alert_id": alert_id, "error": str(e), "error_type": type(e).__name__}
            )
            return None

        logger.info(
            "ALERT_REVIEWED" if record else "ALERT_REVIEW_NOT_FOUND",
            extra={"alert_id": alert_id, "reviewer_hash": log_safe_id(reviewer)}
        )
        return record

    def alert_stats(self) -> "AlertStats":
        """Counts over every recorded alert; zeros on sink failure."""
        return AlertStats.from_alerts(self.alert_history(limit=None))


@dataclass(frozen=True)
class AlertStats:
    total: int
    unreviewed: int
    critical: int
    by_school: Dict[str, int]

    @classmethod
    def from_alerts(cls, alerts: List[AlertRecord]) -> "AlertStats":
        by_school: Dict[str, int] = {}
        for alert in alerts:
            by_school[alert.school] = by_school.get(alert.school, 0) + 1
        return cls(
            total=len(alerts),
            unreviewed=sum(1 for a in alerts if not a.is_reviewed),
            critical=sum(1 for a in alerts if a.analysis.risk_level == RiskLevel.CRITICAL),
            by_school=by_school,
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "unreviewed": self.unreviewed,
            "critical": self.critical,
            "by_school": dict(self.by_school),
        }
