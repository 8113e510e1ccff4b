"""
Indicadores do painel e do faturamento.

Tudo é recalculado a cada chamada, com uma consulta por indicador, sem cache.
As datas usam o relógio local do servidor.
"""
import calendar
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from grafica_crm.core.statuses import (
    COMPLETED_STATUSES,
    ONGOING_STATUSES,
    OPEN_STATUSES,
    PENDING_STATUSES,
    status_values,
)
from grafica_crm.models.customer import Customer
from grafica_crm.models.order import Order

# Abreviações de toLocaleString('pt-BR', {month: 'short'})
MONTH_LABELS_PT_BR = [
    "jan.", "fev.", "mar.", "abr.", "mai.", "jun.",
    "jul.", "ago.", "set.", "out.", "nov.", "dez.",
]

DISTRIBUTION_COMPLETED = ("Finalizados", "#3b82f6")
DISTRIBUTION_OPEN = ("Em Aberto", "#10b981")


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Primeiro e último dia do mês, ambos inclusivos"""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _count_orders(db: Session, user_id: str, statuses=None) -> int:
    query = db.query(func.count(Order.id)).filter(Order.user_id == user_id)
    if statuses is not None:
        query = query.filter(Order.status.in_(status_values(statuses)))
    return query.scalar() or 0


def revenue_between(db: Session, user_id: str, start: date, end: date) -> float:
    total = db.query(func.coalesce(func.sum(Order.total_price), 0)).filter(
        Order.user_id == user_id,
        Order.order_date >= start,
        Order.order_date <= end,
    ).scalar()
    return float(total or 0)


def compute_stats(db: Session, user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()

    total_orders = _count_orders(db, user_id)
    ongoing_orders = _count_orders(db, user_id, ONGOING_STATUSES)
    total_customers = db.query(func.count(Customer.id)).filter(Customer.user_id == user_id).scalar() or 0
    pending_orders = _count_orders(db, user_id, PENDING_STATUSES)

    start, end = month_bounds(today.year, today.month)
    monthly_revenue = revenue_between(db, user_id, start, end)

    return {
        "totalOrders": total_orders,
        "ongoingOrders": ongoing_orders,
        "monthlyRevenue": monthly_revenue,
        "totalCustomers": total_customers,
        "pendingOrders": pending_orders,
    }


def billing_trends(db: Session, user_id: str, today: Optional[date] = None, months: int = 6) -> List[Dict[str, Any]]:
    """Faturamento dos últimos `months` meses, do mais antigo ao atual"""
    today = today or date.today()
    trends = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(today.year, today.month, -offset)
        start, end = month_bounds(year, month)
        trends.append({
            "name": MONTH_LABELS_PT_BR[month - 1],
            "revenue": revenue_between(db, user_id, start, end),
        })
    return trends


def billing_distribution(db: Session, user_id: str) -> List[Dict[str, Any]]:
    completed = _count_orders(db, user_id, COMPLETED_STATUSES)
    pending = _count_orders(db, user_id, OPEN_STATUSES)
    return [
        {"name": DISTRIBUTION_COMPLETED[0], "value": completed, "color": DISTRIBUTION_COMPLETED[1]},
        {"name": DISTRIBUTION_OPEN[0], "value": pending, "color": DISTRIBUTION_OPEN[1]},
    ]
