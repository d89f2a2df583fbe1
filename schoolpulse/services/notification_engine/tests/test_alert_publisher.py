"""Tests for AlertEventPublisher.

Recorded alerts publish to Kinesis; publishing must never raise into
the feedback pipeline.
"""
import json
import pytest
from unittest.mock import patch, MagicMock

from schoolpulse.shared.models import DistressAnalysis, Language, RiskLevel
from schoolpulse.services.notification_engine.alert_publisher import (
    AlertEventPublisher,
    DistressAlertEvent,
)


@pytest.fixture
def event():
    analysis = DistressAnalysis(
        risk_level=RiskLevel.CRITICAL,
        detected_language=Language.EN,
        confidence=1.0,
        indicators=("kill myself",),
    )
    return DistressAlertEvent.from_analysis("alert_123", "hash_abc", "Lincoln High", analysis)


class TestDistressAlertEvent:
    """Tests for DistressAlertEvent dataclass."""

    def test_from_analysis(self, event):
        """Event should carry the analysis summary."""
        assert event.event_type == "distress.alert.recorded"
        assert event.risk_level == "critical"
        assert event.severity_level == 5
        assert event.indicators == ["kill myself"]
        assert event.event_id.startswith("evt_")

    def test_to_kinesis_payload(self, event):
        payload = event.to_kinesis_payload()

        assert payload["event_type"] == "distress.alert.recorded"
        assert payload["source"] == "notification-engine"
        assert "timestamp" in payload
        assert payload["data"]["alert_id"] == "alert_123"
        assert payload["data"]["student_id_hash"] == "hash_abc"
        assert payload["data"]["school"] == "Lincoln High"
        assert payload["data"]["detected_language"] == "en"

    def test_event_is_immutable(self, event):
        with pytest.raises(Exception):  # FrozenInstanceError
            event.risk_level = "low"


class TestAlertEventPublisher:

    def test_publisher_initialization(self):
        publisher = AlertEventPublisher(
            stream_name="test-stream",
            enabled=True,
            region="us-west-2",
        )

        assert publisher.stream_name == "test-stream"
        assert publisher.region == "us-west-2"

    def test_publish_disabled_returns_false(self, event):
        publisher = AlertEventPublisher(enabled=False)

        assert publisher.publish(event) is False
        assert publisher.kinesis_client is None

    @patch('boto3.client')
    def test_publish_success(self, mock_boto_client, event):
        """Successful publish should return True."""
        mock_kinesis = MagicMock()
        mock_kinesis.put_record.return_value = {
            "ShardId": "shard-001",
            "SequenceNumber": "12345",
        }
        mock_boto_client.return_value = mock_kinesis

        publisher = AlertEventPublisher(stream_name="test-stream", region="eu-north-1")

        assert publisher.publish(event) is True
        mock_boto_client.assert_called_once_with("kinesis", region_name="eu-north-1")

        call_kwargs = mock_kinesis.put_record.call_args.kwargs
        assert call_kwargs["StreamName"] == "test-stream"
        assert call_kwargs["PartitionKey"] == "hash_abc"
        payload = json.loads(call_kwargs["Data"])
        assert payload["data"]["alert_id"] == "alert_123"

    @patch('boto3.client')
    def test_publish_failure_returns_false(self, mock_boto_client, event):
        """Failed publish should return False, not raise."""
        mock_kinesis = MagicMock()
        mock_kinesis.put_record.side_effect = Exception("Kinesis error")
        mock_boto_client.return_value = mock_kinesis

        publisher = AlertEventPublisher(stream_name="test-stream")

        assert publisher.publish(event) is False

    @patch('boto3.client')
    def test_publish_without_client_logs_fallback(self, mock_boto_client, event, caplog):
        mock_boto_client.side_effect = Exception("no credentials")

        publisher = AlertEventPublisher(stream_name="test-stream")

        assert publisher.publish(event) is False
        assert "ALERT_EVENT_FALLBACK_LOG" in caplog.text
