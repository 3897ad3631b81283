from .rules import Alert, AlertEvent, AlertType, evaluate_alerts

__all__ = ["Alert", "AlertEvent", "AlertType", "evaluate_alerts"]
