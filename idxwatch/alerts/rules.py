"""Price alert definitions and their evaluation against cached quotes."""

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..cache import QuoteCache

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 300


class AlertType(str, Enum):
    ABOVE = "above"  # price >= value
    BELOW = "below"  # price <= value
    PERCENT_GAIN = "percent_gain"  # change % >= value
    PERCENT_LOSS = "percent_loss"  # change % <= -value

    def next(self) -> "AlertType":
        members = list(AlertType)
        return members[(members.index(self) + 1) % len(members)]

    @property
    def label(self) -> str:
        return {
            AlertType.ABOVE: "Price above",
            AlertType.BELOW: "Price below",
            AlertType.PERCENT_GAIN: "Gain % above",
            AlertType.PERCENT_LOSS: "Loss % above",
        }[self]


@dataclass
class Alert:
    symbol: str
    alert_type: AlertType
    value: float
    enabled: bool = True
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS
    last_triggered: Optional[int] = None  # unix seconds
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def should_trigger(self, price: float, change_pct: float, now: Optional[float] = None) -> bool:
        if not self.enabled:
            return False
        now = time.time() if now is None else now
        if self.last_triggered is not None and now - self.last_triggered < self.cooldown_seconds:
            return False

        if self.alert_type == AlertType.ABOVE:
            return price >= self.value
        if self.alert_type == AlertType.BELOW:
            return price <= self.value
        if self.alert_type == AlertType.PERCENT_GAIN:
            return change_pct >= self.value
        return change_pct <= -self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "alert_type": self.alert_type.value,
            "value": self.value,
            "enabled": self.enabled,
            "cooldown_seconds": self.cooldown_seconds,
            "last_triggered": self.last_triggered,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alert":
        if not isinstance(data, dict):
            raise ValueError(f"alert must be an object, got {type(data).__name__}")
        try:
            return cls(
                id=str(data["id"]),
                symbol=str(data["symbol"]),
                alert_type=AlertType(data["alert_type"]),
                value=float(data["value"]),
                enabled=bool(data.get("enabled", True)),
                cooldown_seconds=int(data.get("cooldown_seconds", DEFAULT_COOLDOWN_SECONDS)),
                last_triggered=data.get("last_triggered"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"invalid alert {data!r}: {exc}") from exc


@dataclass
class AlertEvent:
    """A fired alert, ready for an external notifier."""
    alert: Alert
    price: float
    change_pct: float
    message: str


def evaluate_alerts(alerts: Iterable[Alert], cache: QuoteCache, now: Optional[float] = None) -> List[AlertEvent]:
    """
    Check every alert against the cached quote of its symbol.

    Fired alerts get `last_triggered` stamped so the cooldown applies to the
    next cycle. Symbols without a cached quote are skipped.
    """
    now = time.time() if now is None else now
    events: List[AlertEvent] = []
    for alert in alerts:
        quote = cache.get(alert.symbol)
        if quote is None:
            continue
        if not alert.should_trigger(quote.price, quote.change_percent, now):
            continue
        alert.last_triggered = int(now)
        message = (
            f"{alert.symbol}: {alert.alert_type.label} {alert.value:g} "
            f"(price {quote.price:,.0f}, {quote.change_percent:+.2f}%)"
        )
        logger.info("Alert triggered: %s", message)
        events.append(AlertEvent(alert=alert, price=quote.price, change_pct=quote.change_percent, message=message))
    return events
