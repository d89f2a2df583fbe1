"""Distress alert event publisher.

Publishes recorded distress alerts to a Kinesis stream so reporting and
counselor dashboards can consume them without calling this service.

Failure Handling:
    - Publishing failure never blocks notification scheduling
    - Failures are logged at CRITICAL level for alerting
"""
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from schoolpulse.shared.models import DistressAnalysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DistressAlertEvent:
    """Immutable alert event published after an alert is recorded."""
    event_id: str
    alert_id: str
    student_id_hash: str
    school: str
    risk_level: str
    severity_level: int
    confidence: float
    detected_language: str
    indicators: List[str] = field(default_factory=list)
    event_type: str = "distress.alert.recorded"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_analysis(
        cls,
        alert_id: str,
        student_id_hash: str,
        school: str,
        analysis: DistressAnalysis,
    ) -> "DistressAlertEvent":
        return cls(
            event_id=f"evt_{uuid.uuid4().hex[:12]}",
            alert_id=alert_id,
            student_id_hash=student_id_hash,
            school=school,
            risk_level=analysis.risk_level.value,
            severity_level=analysis.risk_level.alert_severity,
            confidence=analysis.confidence,
            detected_language=analysis.detected_language.value,
            indicators=list(analysis.indicators),
        )

    def to_kinesis_payload(self) -> dict:
        """Payload for the Kinesis put_record Data field."""
        return {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "timestamp": self.timestamp.isoformat(),
            "source": "notification-engine",
            "data": {
                "alert_id": self.alert_id,
                "student_id_hash": self.student_id_hash,
                "school": self.school,
                "risk_level": self.risk_level,
                "severity_level": self.severity_level,
                "confidence": self.confidence,
                "detected_language": self.detected_language,
                "indicators": self.indicators,
            }
        }


class AlertEventPublisher:
    """Publishes DistressAlertEvents to Kinesis."""

    def __init__(
        self,
        stream_name: str = "schoolpulse-distress-alerts",
        enabled: bool = True,
        region: Optional[str] = None,
    ):
        """Initialize publisher.

        Args:
            stream_name: Kinesis stream name
            enabled: Whether publishing is enabled (disable for local dev)
            region: AWS region (defaults to AWS_REGION env var)
        """
        self.stream_name = stream_name
        self.enabled = enabled
        self.region = region or os.getenv("AWS_REGION", "eu-north-1")
        self._kinesis_client = None

        logger.info(
            "ALERT_PUBLISHER_INITIALIZED",
            extra={
                "stream_name": stream_name,
                "enabled": enabled,
                "region": self.region,
            }
        )

    @property
    def kinesis_client(self):
        """Lazy initialization of Kinesis client."""
        if self._kinesis_client is None and self.enabled:
            try:
                import boto3
                self._kinesis_client = boto3.client("kinesis", region_name=self.region)
            except Exception as e:
                logger.error("KINESIS_CLIENT_INIT_FAILED", extra={"error": str(e)})
        return self._kinesis_client

    def publish(self, event: DistressAlertEvent) -> bool:
        """Publish one alert event.

        Returns:
            True if published successfully, False otherwise. Never raises.
        """
        if not self.enabled:
            logger.debug(
                "ALERT_PUBLISH_SKIPPED",
                extra={"alert_id": event.alert_id, "reason": "publishing_disabled"}
            )
            return False

        payload = event.to_kinesis_payload()

        try:
            if self.kinesis_client is None:
                logger.critical(
                    "ALERT_EVENT_FALLBACK_LOG",
                    extra={
                        "event_id": event.event_id,
                        "payload": json.dumps(payload),
                        "reason": "kinesis_client_unavailable",
                        "action": "MANUAL_PROCESSING_REQUIRED",
                    }
                )
                return False

            response = self.kinesis_client.put_record(
                StreamName=self.stream_name,
                Data=json.dumps(payload),
                PartitionKey=event.student_id_hash,  # Same student -> same shard
            )

            logger.info(
                "ALERT_EVENT_PUBLISHED",
                extra={
                    "event_id": event.event_id,
                    "alert_id": event.alert_id,
                    "risk_level": event.risk_level,
                    "shard_id": response.get("ShardId"),
                    "sequence_number": response.get("SequenceNumber"),
                }
            )
            return True

        except Exception as e:
            logger.critical(
                "ALERT_EVENT_PUBLISH_FAILED",
                extra={
                    "event_id": event.event_id,
                    "alert_id": event.alert_id,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "action": "MANUAL_REVIEW_REQUIRED",
                }
            )
            return False
