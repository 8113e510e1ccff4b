from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from grafica_crm.core.database import get_db
from grafica_crm.core.deps import CurrentUser, get_current_user
from grafica_crm.services import customer_service


router = APIRouter()


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=50)
    email: Optional[str] = None
    company: Optional[str] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_required(cls, value):
        # "   " não pode passar por min_length
        if isinstance(value, str):
            return value.strip()
        return value


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str]
    company: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("", response_model=List[CustomerOut])
def list_customers(
    q: Optional[str] = Query(None, description="Busca por nome, telefone ou empresa"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Listar clientes do usuário em ordem alfabética"""
    return customer_service.list_customers(db, user.id, search=q)


@router.post("")
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    customer = customer_service.create_customer(
        db,
        user.id,
        name=data.name,
        phone=data.phone,
        email=data.email,
        company=data.company,
    )
    return {"id": customer.id}


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Excluir cliente e todos os pedidos dele"""
    customer_service.delete_customer(db, user.id, customer_id)
    return {"success": True}
