from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import Callable
from storefront.domain.models import Notification, Order, utcnow
from .schemas import MetricsSummary

class MetricsService:
    """Read-only aggregates for the admin dashboard."""

    def __init__(self, db: Session, clock: Callable = utcnow):
        self.db = db
        self.clock = clock

    def summary(self) -> MetricsSummary:
        by_status = dict(self.db.execute(
            select(Order.status, func.count(Order.id)).group_by(Order.status)
        ).all())
        pending_payment = self.db.scalar(
            select(func.count(Order.id)).where(Order.payment_status == "pending")
        ) or 0
        paid_revenue = self.db.scalar(
            select(func.coalesce(func.sum(Order.total_price), 0.0)).where(Order.payment_status == "paid")
        ) or 0.0
        notifications = dict(self.db.execute(
            select(Notification.status, func.count(Notification.id)).group_by(Notification.status)
        ).all())
        return MetricsSummary(
            orders_total=sum(by_status.values()),
            orders_by_status=by_status,
            orders_pending_payment=pending_payment,
            paid_revenue=float(paid_revenue),
            notifications_sent=notifications.get("sent", 0),
            notifications_failed=notifications.get("failed", 0),
            generated_at=self.clock(),
        )
