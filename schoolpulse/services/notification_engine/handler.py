"""Notification Engine HTTP handler.

Feedback forms post student text here; staff dashboards list and
cancel pending notifications and manage the rule set.

The sink is in-memory for dev; production wires the hosted backend's
staff directory, alert table and mail provider behind NotificationSink.

Delayed rules fire from the scheduler loop, which __main__ starts in a
daemon thread. Deployments that serve the app through a WSGI server
instead call start_scheduler_loop() once per process, or have a cron
job POST /notifications/run.
"""
import asyncio
import logging
import os
import threading

from flask import Flask, jsonify, request

from schoolpulse.shared.utils import configure_pii_salt, log_safe_id
from schoolpulse.services.distress_service import DistressConfig, OptimizedAnalyzer
from .alert_publisher import AlertEventPublisher
from .config import NotificationConfig
from .monitor import DistressMonitor
from .rules import InvalidRuleError, NotificationRule, RuleStore
from .scheduler import NotificationScheduler
from .sink import InMemorySink

logger = logging.getLogger(__name__)

app = Flask(__name__)

pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

config = NotificationConfig.from_env()
sink = InMemorySink()
rule_store = RuleStore()
scheduler = NotificationScheduler(sink=sink, rule_store=rule_store, config=config)
monitor = DistressMonitor(
    scheduler=scheduler,
    analyzer=OptimizedAnalyzer(config=DistressConfig.from_env()),
    publisher=AlertEventPublisher(
        stream_name=config.alert_stream_name,
        enabled=config.alert_publishing_enabled,
    ),
)


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "service": "notification-engine",
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check."""
    if scheduler is None:
        return jsonify({"status": "not_ready"}), 503
    return jsonify({"status": "ready"}), 200


@app.route("/feedback", methods=["POST"])
def submit_feedback():
    """Analyze student feedback and schedule staff notifications.

    Request Body:
        {
            "student_id": "stu_123",
            "student_name": "Jonas",
            "school": "Lincoln High",
            "text": "Student feedback text"
        }

    Response:
        {
            "analyzed": true,
            "analysis": {...},
            "alert_id": "..." | null,
            "notification_ids": ["..."]
        }
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Request body required"}), 400

    fields = ("student_id", "student_name", "school", "text")
    missing = [f for f in fields if not data.get(f)]
    if missing:
        logger.warning("FEEDBACK_REQUEST_INVALID", extra={"missing_fields": missing})
        return jsonify({"error": f"Missing required fields: {', '.join(missing)}"}), 400

    not_strings = [f for f in fields if not isinstance(data[f], str)]
    if not_strings:
        logger.warning("FEEDBACK_REQUEST_INVALID", extra={"non_string_fields": not_strings})
        return jsonify({"error": f"Fields must be strings: {', '.join(not_strings)}"}), 400

    outcome = monitor.process_feedback(
        student_id=data["student_id"],
        student_name=data["student_name"],
        school=data["school"],
        text=data["text"],
    )
    status = 201 if outcome.notification_ids else 200
    return jsonify(outcome.to_dict()), status


@app.route("/notifications/pending", methods=["GET"])
def list_pending():
    """List pending notifications, optionally for one school."""
    school = request.args.get("school")
    pending = scheduler.pending_notifications()
    if school:
        pending = [n for n in pending if n.school == school]
    return jsonify({
        "pending": [n.to_dict() for n in pending],
        "count": len(pending),
    }), 200


@app.route("/notifications/<notification_id>", methods=["DELETE"])
def cancel_notification(notification_id: str):
    """Cancel a notification before it fires."""
    if not scheduler.cancel(notification_id):
        return jsonify({"error": "Notification not pending"}), 404
    return jsonify({"notification_id": notification_id, "state": "cancelled"}), 200


@app.route("/notifications/run", methods=["POST"])
def run_due_notifications():
    """Execute due notifications; for cron-driven deployments."""
    executed = scheduler.run_pending()
    return jsonify({"executed": executed}), 200


@app.route("/rules", methods=["GET"])
def get_rules():
    return jsonify({"rules": [rule.to_dict() for rule in rule_store.rules()]}), 200


@app.route("/rules", methods=["PUT"])
def replace_rules():
    """Replace the rule set.

    Request Body:
        {"rules": [{"id": "...", "trigger_level": "high", ...}, ...]}

    Already scheduled notifications keep the rule they were created with.
    """
    data = request.get_json(silent=True)
    raw_rules = data.get("rules") if data else None
    if not isinstance(raw_rules, list):
        return jsonify({"error": "Field 'rules' must be a list"}), 400

    try:
        rules = [NotificationRule.from_dict(item) for item in raw_rules]
    except (InvalidRuleError, TypeError, AttributeError) as e:
        logger.warning("RULES_UPDATE_REJECTED", extra={"error": str(e)})
        return jsonify({"error": str(e)}), 400

    rule_store.replace(rules)
    return jsonify({"rules": [rule.to_dict() for rule in rules]}), 200


@app.route("/alerts", methods=["GET"])
def alert_history():
    """Recorded alerts, newest first."""
    student_id = request.args.get("student_id")
    try:
        limit = int(request.args.get("limit", "50"))
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400

    alerts = monitor.alert_history(student_id=student_id, limit=limit)
    logger.info(
        "ALERT_HISTORY_REQUESTED",
        extra={
            "student_id_hash": log_safe_id(student_id) if student_id else None,
            "count": len(alerts),
        }
    )
    return jsonify({"alerts": [a.to_dict() for a in alerts]}), 200


@app.route("/alerts/stats", methods=["GET"])
def alert_stats():
    """Totals across recorded alerts: unreviewed, critical and per school."""
    return jsonify(monitor.alert_stats().to_dict()), 200


@app.route("/alerts/<alert_id>/review", methods=["POST"])
def review_alert(alert_id: str):
    """Mark an alert reviewed.

    Request Body:
        {"reviewer": "counselor@school.edu"}
    """
    data = request.get_json(silent=True)
    reviewer = data.get("reviewer") if data else None
    if not isinstance(reviewer, str) or not reviewer:
        return jsonify({"error": "Missing required field: reviewer"}), 400

    record = monitor.mark_reviewed(alert_id, reviewer)
    if record is None:
        return jsonify({"error": "Alert not found"}), 404
    return jsonify({"alert": record.to_dict()}), 200


def start_scheduler_loop() -> threading.Thread:
    """Run scheduler.run_forever() in a daemon thread for the process lifetime."""
    thread = threading.Thread(
        target=lambda: asyncio.run(scheduler.run_forever()),
        name="notification-scheduler",
        daemon=True,
    )
    thread.start()
    logger.info(
        "NOTIFICATION_LOOP_THREAD_STARTED",
        extra={"poll_interval": config.poll_interval_seconds}
    )
    return thread


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    start_scheduler_loop()

    port = int(os.getenv("PORT", "8011"))
    app.run(host="0.0.0.0", port=port, debug=False)
