from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grafica_crm.core.database import get_db
from grafica_crm.core.deps import CurrentUser, get_current_user
from grafica_crm.services.stats_service import billing_distribution, billing_trends

router = APIRouter()


@router.get("/trends")
def get_trends(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return billing_trends(db, user.id)


@router.get("/distribution")
def get_distribution(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return billing_distribution(db, user.id)
