"""
Admin dashboard statistics.
"""

import logging
from datetime import datetime
from typing import Dict

from sqlalchemy import func

from database.models import Chat, Order, Quote, Service, User
from services.base import BaseRepository

logger = logging.getLogger(__name__)

IN_FLIGHT_STATUSES = ('payment_confirmed', 'in_progress')


class DashboardRepository(BaseRepository):
    """Aggregate counts for the admin dashboard."""

    def get_stats(self, now: datetime = None, recent_limit: int = 10) -> Dict:
        now = now or datetime.utcnow()
        month_start = datetime(now.year, now.month, 1)

        monthly_revenue = self.session.query(func.coalesce(func.sum(Order.total_amount), 0)).filter(
            Order.payment_status == 'completed',
            Order.created_at >= month_start
        ).scalar()

        recent_orders = self.session.query(Order).filter(
            Order.status.in_(IN_FLIGHT_STATUSES)
        ).order_by(Order.created_at.desc()).limit(recent_limit).all()

        return {
            'stats': {
                'totalUsers': self.session.query(User).filter(User.role == 'client').count(),
                'totalServices': self.session.query(Service).filter(Service.is_active == True).count(),  # noqa: E712
                'totalOrders': self.session.query(Order).count(),
                'totalQuotes': self.session.query(Quote).count(),
                'pendingQuotes': self.session.query(Quote).filter(Quote.status == 'pending').count(),
                'activeChats': self.session.query(Chat).filter(Chat.status == 'active').count(),
                'monthlyRevenue': float(monthly_revenue or 0)
            },
            'recentOrders': [o.to_dict() for o in recent_orders]
        }
