"""
Pedidos: criação (simples ou em lote), consulta e cascata de status/exclusão.

Um lote é só uma chave de agrupamento (batch_id) sobre N linhas de orders;
toda alteração em um membro vale para o lote inteiro e roda numa transação só.
"""
from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from grafica_crm.core.errors import NotFound, PersistenceFailure, ValidationConflict
from grafica_crm.core.serialization_helpers import serialize_datetime, serialize_decimal
from grafica_crm.core.statuses import OrderStatus
from grafica_crm.models.customer import Customer
from grafica_crm.models.order import Order, OrderImage


logger = logging.getLogger(__name__)

_BATCH_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_batch_id() -> str:
    """batch_<epoch ms>_<9 chars base 36>"""
    suffix = "".join(secrets.choice(_BATCH_SUFFIX_ALPHABET) for _ in range(9))
    return f"batch_{int(time.time() * 1000)}_{suffix}"


def serialize_order(order: Order, include_images: bool = False) -> Dict[str, Any]:
    data = {
        "id": order.id,
        "customer_id": order.customer_id,
        "customer_name": order.customer.name if order.customer else None,
        "customer_phone": order.customer.phone if order.customer else None,
        "service_type": order.service_type,
        "description": order.description,
        "quantity": order.quantity,
        "unit_price": serialize_decimal(order.unit_price),
        "total_price": serialize_decimal(order.total_price),
        "order_date": serialize_datetime(order.order_date),
        "delivery_date": serialize_datetime(order.delivery_date),
        "status": order.status,
        "notes": order.notes,
        "batch_id": order.batch_id,
        "created_at": serialize_datetime(order.created_at),
    }
    if include_images:
        data["images"] = [img.image_data for img in order.images]
    return data


def _user_orders(db: Session, user_id: str):
    return db.query(Order).filter(Order.user_id == user_id)


def _get_order(db: Session, user_id: str, order_id: int) -> Order:
    order = _user_orders(db, user_id).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Pedido não encontrado")
    return order


def list_orders(db: Session, user_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
    query = _user_orders(db, user_id).options(joinedload(Order.customer))
    if status:
        query = query.filter(Order.status == status)
    orders = query.order_by(Order.order_date.desc(), Order.id.desc()).all()
    return [serialize_order(o) for o in orders]


def search_orders(orders: List[Dict[str, Any]], search: Optional[str]) -> List[Dict[str, Any]]:
    """Filtra por nome do cliente, telefone ou serviço (sem diferenciar maiúsculas)."""
    term = (search or "").strip().lower()
    if not term:
        return orders
    return [
        o for o in orders
        if term in (o.get("customer_name") or "").lower()
        or term in (o.get("customer_phone") or "").lower()
        or term in (o.get("service_type") or "").lower()
    ]


def get_order_detail(db: Session, user_id: str, order_id: int) -> Dict[str, Any]:
    """Pedido com imagens e, se fizer parte de um lote, todos os itens do lote."""
    order = _get_order(db, user_id, order_id)
    data = serialize_order(order, include_images=True)

    batch_items = None
    if order.batch_id:
        members = (
            _user_orders(db, user_id)
            .filter(Order.batch_id == order.batch_id)
            .order_by(Order.id.asc())
            .all()
        )
        batch_items = [serialize_order(m) for m in members]
    data["batch_items"] = batch_items
    return data


def create_orders(db: Session, user_id: str, payloads: Sequence[Any]) -> List[int]:
    """
    Insere um ou mais pedidos (com imagens) numa única transação.

    Mais de um item recebe um batch_id novo e compartilhado; um item só fica sem lote.
    Qualquer falha do banco desfaz tudo.
    """
    if not payloads:
        raise ValidationConflict("Nenhum pedido informado.")

    # Autorização explícita: todo cliente referenciado precisa ser do usuário
    customer_ids = {p.customer_id for p in payloads}
    owned = {
        row.id
        for row in db.query(Customer.id).filter(
            Customer.user_id == user_id,
            Customer.id.in_(customer_ids),
        )
    }
    missing = customer_ids - owned
    if missing:
        raise NotFound("Cliente não encontrado")

    batch_id = generate_batch_id() if len(payloads) > 1 else None

    ids: List[int] = []
    try:
        for payload in payloads:
            total_price = payload.total_price
            if total_price is None:
                total_price = Decimal(str(payload.unit_price)) * payload.quantity

            order = Order(
                user_id=user_id,
                customer_id=payload.customer_id,
                service_type=payload.service_type,
                description=payload.description,
                quantity=payload.quantity,
                unit_price=payload.unit_price,
                total_price=total_price,
                order_date=payload.order_date or date.today(),
                delivery_date=payload.delivery_date,
                status=OrderStatus(payload.status).value,
                notes=payload.notes,
                batch_id=batch_id,
            )
            db.add(order)
            db.flush()  # Get the order.id

            for image in payload.images or []:
                db.add(OrderImage(order_id=order.id, image_data=image))
            ids.append(order.id)

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save orders user=%s items=%s", user_id, len(payloads))
        raise PersistenceFailure("Erro ao salvar pedidos.")

    logger.info("Orders created user=%s ids=%s batch=%s", user_id, ids, batch_id)
    return ids


def _cascade_targets(db: Session, user_id: str, order_id: int):
    order = _get_order(db, user_id, order_id)
    query = _user_orders(db, user_id)
    if order.batch_id:
        return order, query.filter(Order.batch_id == order.batch_id)
    return order, query.filter(Order.id == order.id)


def update_order_status(db: Session, user_id: str, order_id: int, status: OrderStatus) -> int:
    """Aplica o status ao pedido ou, se estiver num lote, a todos os membros do lote."""
    order, targets = _cascade_targets(db, user_id, order_id)
    batch_id = order.batch_id
    try:
        updated = targets.update({Order.status: OrderStatus(status).value}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update status order=%s user=%s", order_id, user_id)
        raise PersistenceFailure("Erro ao atualizar status.")
    logger.info(
        "Status updated order=%s batch=%s status=%s rows=%s",
        order_id, batch_id, OrderStatus(status).value, updated,
    )
    return updated


def delete_order(db: Session, user_id: str, order_id: int) -> int:
    """Exclui o pedido ou o lote inteiro, com as imagens, numa transação só."""
    order, targets = _cascade_targets(db, user_id, order_id)
    batch_id = order.batch_id
    ids = [o.id for o in targets.all()]
    try:
        db.query(OrderImage).filter(OrderImage.order_id.in_(ids)).delete(synchronize_session=False)
        deleted = db.query(Order).filter(Order.id.in_(ids)).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete order=%s user=%s", order_id, user_id)
        raise PersistenceFailure("Erro ao excluir pedido.")
    logger.info("Orders deleted order=%s batch=%s ids=%s", order_id, batch_id, ids)
    return deleted
