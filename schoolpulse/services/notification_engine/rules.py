"""Notification rules and rule selection.

A rule says who hears about an analysis at or above its trigger level,
and after what delay. Rules are frozen: a pending notification keeps the
rule it was created from, so editing the rule set never changes
notifications that are already scheduled.
"""
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from schoolpulse.shared.models import RiskLevel

logger = logging.getLogger(__name__)

TRIGGER_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


class InvalidRuleError(ValueError):
    """Raised when a notification rule is malformed."""


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    # "false" must not become True
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise InvalidRuleError(f"Rule field {key} must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class NotificationRule:
    """Notification policy for analyses at or above trigger_level."""
    id: str
    trigger_level: RiskLevel
    notify_teachers: bool = True
    notify_admins: bool = False
    notify_parents: bool = False
    delay_minutes: int = 0
    is_active: bool = True

    def validate(self) -> None:
        """Check the rule can be scheduled.

        Raises:
            InvalidRuleError: On unsupported trigger level or bad delay
        """
        if not self.id:
            raise InvalidRuleError("Rule id is required")
        if self.trigger_level not in TRIGGER_LEVELS:
            raise InvalidRuleError(
                f"Rule {self.id}: trigger level must be high or critical, "
                f"got {getattr(self.trigger_level, 'value', self.trigger_level)}"
            )
        if isinstance(self.delay_minutes, bool) or not isinstance(self.delay_minutes, int):
            raise InvalidRuleError(f"Rule {self.id}: delay_minutes must be an integer")
        if self.delay_minutes < 0:
            raise InvalidRuleError(f"Rule {self.id}: delay_minutes must be >= 0")

    def matches(self, risk_level: RiskLevel) -> bool:
        """Inclusive hierarchy: a high rule also fires for critical."""
        if not self.is_active or not isinstance(self.trigger_level, RiskLevel):
            return False
        return risk_level.at_least(self.trigger_level)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationRule":
        """Parse a rule from its API representation.

        Raises:
            InvalidRuleError: On missing fields or invalid values
        """
        try:
            rule = cls(
                id=str(data["id"]),
                trigger_level=RiskLevel(data["trigger_level"]),
                notify_teachers=_flag(data, "notify_teachers", True),
                notify_admins=_flag(data, "notify_admins", False),
                notify_parents=_flag(data, "notify_parents", False),
                delay_minutes=data.get("delay_minutes", 0),
                is_active=_flag(data, "is_active", True),
            )
        except KeyError as e:
            raise InvalidRuleError(f"Missing rule field: {e.args[0]}") from e
        except ValueError as e:
            raise InvalidRuleError(str(e)) from e

        rule.validate()
        return rule

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["trigger_level"] = self.trigger_level.value
        return result


DEFAULT_RULES: Tuple[NotificationRule, ...] = (
    NotificationRule(
        id="critical-immediate",
        trigger_level=RiskLevel.CRITICAL,
        notify_teachers=True,
        notify_admins=True,
        notify_parents=False,  # Parents are contacted manually after review
        delay_minutes=0,
    ),
    NotificationRule(
        id="high-delayed",
        trigger_level=RiskLevel.HIGH,
        notify_teachers=True,
        notify_admins=False,
        notify_parents=False,
        delay_minutes=15,
    ),
)


def select_rules(
    rules: Iterable[NotificationRule],
    risk_level: RiskLevel,
) -> List[NotificationRule]:
    """Active rules satisfied by risk_level, in rule-set order."""
    return [rule for rule in rules if rule.matches(risk_level)]


class RuleStore:
    """Holds the configurable rule set.

    Passed into the scheduler rather than living as process state so
    each scheduler (and each test) owns its own rules.
    """

    def __init__(self, rules: Optional[Iterable[NotificationRule]] = None):
        self._lock = threading.Lock()
        self._rules: Tuple[NotificationRule, ...] = tuple(
            DEFAULT_RULES if rules is None else rules
        )

    def rules(self) -> List[NotificationRule]:
        """Snapshot of the current rule set."""
        with self._lock:
            return list(self._rules)

    def replace(self, rules: Iterable[NotificationRule]) -> None:
        """Swap in a new rule set; already scheduled notifications keep theirs."""
        new_rules = tuple(rules)
        with self._lock:
            self._rules = new_rules
        logger.info(
            "NOTIFICATION_RULES_UPDATED",
            extra={
                "rule_count": len(new_rules),
                "active_count": sum(1 for r in new_rules if r.is_active),
            }
        )

    def select(self, risk_level: RiskLevel) -> List[NotificationRule]:
        return select_rules(self.rules(), risk_level)
