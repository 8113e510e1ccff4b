"""
Agrupamento de pedidos em lote para a listagem.

Pedidos sem batch_id ficam como estão; cada lote vira uma linha sintética
com service_type "DIVERSOS", total somado e a lista completa em batch_items.
"""
from decimal import Decimal
from typing import Any, Dict, List

BATCH_SERVICE_LABEL = "DIVERSOS"


def _sum_totals(items: List[Dict[str, Any]]):
    total = sum((Decimal(str(item.get("total_price") or 0)) for item in items), Decimal("0"))
    return float(total)


def group_batches(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    groups: Dict[str, List[Dict[str, Any]]] = {}
    single_orders: List[Dict[str, Any]] = []

    for order in orders:
        batch_id = order.get("batch_id")
        if batch_id:
            groups.setdefault(batch_id, []).append(order)
        else:
            single_orders.append(order)

    grouped = []
    for items in groups.values():
        # Mesma ordem do detalhe (id crescente); o primeiro criado representa o lote
        items = sorted(items, key=lambda o: o.get("id") or 0)
        first = items[0]
        grouped.append({
            **first,
            "service_type": BATCH_SERVICE_LABEL,
            "total_price": _sum_totals(items),
            "is_group": True,
            "batch_items": items,
        })

    merged = single_orders + grouped
    merged.sort(key=lambda o: str(o.get("order_date") or ""), reverse=True)
    return merged
