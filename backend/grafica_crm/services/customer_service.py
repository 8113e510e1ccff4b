from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from grafica_crm.core.errors import NotFound, PersistenceFailure, ValidationConflict
from grafica_crm.models.customer import Customer
from grafica_crm.models.order import Order, OrderImage


logger = logging.getLogger(__name__)

DUPLICATE_CUSTOMER_MESSAGE = "Cliente já cadastrado com este nome e telefone."
REQUIRED_FIELDS_MESSAGE = "Nome e telefone são obrigatórios."


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def list_customers(db: Session, user_id: str, search: Optional[str] = None) -> List[Customer]:
    """Clientes do usuário por nome; search filtra por nome, telefone ou empresa."""
    query = db.query(Customer).filter(Customer.user_id == user_id)
    if search:
        qn = search.strip().lower()
        if qn:
            query = query.filter(
                or_(
                    func.lower(Customer.name).like(f"%{qn}%"),
                    func.lower(Customer.phone).like(f"%{qn}%"),
                    func.lower(Customer.company).like(f"%{qn}%"),
                )
            )
    return query.order_by(Customer.name.asc()).all()


def _find_duplicate(db: Session, user_id: str, name: str, phone: str):
    return db.query(Customer.id).filter(
        Customer.user_id == user_id,
        Customer.name == name,
        Customer.phone == phone,
    ).first()


def get_customer(db: Session, user_id: str, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(
        Customer.id == customer_id,
        Customer.user_id == user_id,
    ).first()
    if not customer:
        raise NotFound("Cliente não encontrado")
    return customer


def create_customer(
    db: Session,
    user_id: str,
    name: str,
    phone: str,
    email: Optional[str] = None,
    company: Optional[str] = None,
) -> Customer:
    """
    Create a customer for the user.
    - (name, phone) must be unique per user: checked first, and the unique
      constraint catches a concurrent insert that slipped past the check.
    """
    name = _normalize_text(name)
    phone = _normalize_text(phone)
    if not name or not phone:
        raise ValidationConflict(REQUIRED_FIELDS_MESSAGE)

    if _find_duplicate(db, user_id, name, phone):
        logger.warning("Duplicate customer rejected user=%s phone=%s", user_id, phone)
        raise ValidationConflict(DUPLICATE_CUSTOMER_MESSAGE)

    customer = Customer(
        user_id=user_id,
        name=name,
        phone=phone,
        email=_normalize_text(email),
        company=_normalize_text(company),
    )
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Só a unique (user_id, name, phone) vira conflito; o resto é falha de persistência
        if _find_duplicate(db, user_id, name, phone):
            logger.warning("Duplicate customer caught by constraint user=%s phone=%s", user_id, phone)
            raise ValidationConflict(DUPLICATE_CUSTOMER_MESSAGE)
        logger.exception("Integrity error creating customer user=%s", user_id)
        raise PersistenceFailure("Erro ao salvar cliente.")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create customer user=%s", user_id)
        raise PersistenceFailure("Erro ao salvar cliente.")
    db.refresh(customer)
    logger.info("Customer created id=%s user=%s", customer.id, user_id)
    return customer


def delete_customer(db: Session, user_id: str, customer_id: int) -> None:
    """Remove o cliente junto com todos os pedidos (e imagens) dele, numa transação só."""
    customer = get_customer(db, user_id, customer_id)

    order_ids = [
        row.id
        for row in db.query(Order.id).filter(
            Order.customer_id == customer.id,
            Order.user_id == user_id,
        )
    ]
    try:
        if order_ids:
            db.query(OrderImage).filter(OrderImage.order_id.in_(order_ids)).delete(synchronize_session=False)
            db.query(Order).filter(Order.id.in_(order_ids)).delete(synchronize_session=False)
        db.delete(customer)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete customer id=%s user=%s", customer_id, user_id)
        raise PersistenceFailure("Erro ao excluir cliente.")
    logger.info("Customer deleted id=%s user=%s orders=%s", customer_id, user_id, len(order_ids))
