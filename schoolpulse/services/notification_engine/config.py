"""Notification engine configuration."""
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationConfig:
    """Configuration for scheduling and alert event publishing."""

    # Seconds between due-notification polls in run_forever()
    poll_interval_seconds: float = 5.0

    alert_stream_name: str = "schoolpulse-distress-alerts"
    alert_publishing_enabled: bool = False

    @classmethod
    def from_env(cls) -> "NotificationConfig":
        """Create config from environment variables.

        Environment variables:
            SCHOOLPULSE_POLL_INTERVAL_SECONDS: Scheduler poll interval (default 5)
            SCHOOLPULSE_ALERT_STREAM: Kinesis stream for alert events
            SCHOOLPULSE_ALERT_PUBLISHING_ENABLED: "true" to publish alert events
        """
        defaults = cls()
        return cls(
            poll_interval_seconds=float(
                os.getenv("SCHOOLPULSE_POLL_INTERVAL_SECONDS", str(defaults.poll_interval_seconds))
            ),
            alert_stream_name=os.getenv("SCHOOLPULSE_ALERT_STREAM", defaults.alert_stream_name),
            alert_publishing_enabled=os.getenv(
                "SCHOOLPULSE_ALERT_PUBLISHING_ENABLED", "false"
            ).lower() == "true",
        )
