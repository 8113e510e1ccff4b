"""
Rotas de pedidos (simples e em lote).
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from grafica_crm.core.config import Settings, get_settings
from grafica_crm.core.database import get_db
from grafica_crm.core.deps import CurrentUser, get_current_user
from grafica_crm.core.statuses import OrderStatus
from grafica_crm.services import export_service, order_service
from grafica_crm.services.batch_grouping import group_batches


router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class OrderCreate(BaseModel):
    customer_id: int
    service_type: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quantity: int = Field(1, ge=1)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    total_price: Optional[Decimal] = None  # calculado no cliente; confiamos no valor enviado
    order_date: Optional[date] = None
    delivery_date: Optional[date] = None
    status: OrderStatus = OrderStatus.quote
    notes: Optional[str] = None
    images: List[str] = []

    @field_validator("order_date", "delivery_date", "description", "notes", mode="before")
    @classmethod
    def empty_string_to_none(cls, value):
        # O formulário envia "" para campos não preenchidos
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.get("")
def list_orders(
    grouped: bool = Query(False),
    status: Optional[OrderStatus] = Query(None),
    q: Optional[str] = Query(None, description="Busca por cliente, telefone ou serviço"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Listar pedidos (mais recentes primeiro); com grouped=true os lotes viram uma linha só"""
    orders = order_service.list_orders(db, user.id, status=status.value if status else None)
    if grouped:
        orders = group_batches(orders)
    return order_service.search_orders(orders, q)


@router.get("/export")
def export_orders(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Planilha .xlsx com todos os pedidos do usuário"""
    content = export_service.export_orders_spreadsheet(order_service.list_orders(db, user.id))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="pedidos.xlsx"'},
    )


@router.get("/{order_id}")
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return order_service.get_order_detail(db, user.id, order_id)


@router.get("/{order_id}/document", response_class=HTMLResponse)
def get_order_document(
    order_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    order = order_service.get_order_detail(db, user.id, order_id)
    return HTMLResponse(content=export_service.render_order_document(order, settings))


@router.get("/{order_id}/share")
def get_order_share(
    order_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """Link wa.me com o resumo do pedido"""
    order = order_service.get_order_detail(db, user.id, order_id)
    return export_service.build_whatsapp_share(order, settings)


@router.post("")
def create_orders(
    payload: Union[List[OrderCreate], OrderCreate],
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Criar um pedido ou vários de uma vez (vários = mesmo lote)"""
    items = payload if isinstance(payload, list) else [payload]
    ids = order_service.create_orders(db, user.id, items)
    return {"ids": ids}


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    order_service.update_order_status(db, user.id, order_id, data.status)
    return {"success": True}


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    order_service.delete_order(db, user.id, order_id)
    return {"success": True}
