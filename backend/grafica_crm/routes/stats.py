from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from grafica_crm.core.database import get_db
from grafica_crm.core.deps import CurrentUser, get_current_user
from grafica_crm.services.stats_service import compute_stats

router = APIRouter()


@router.get("")
def get_stats(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Indicadores do painel, recalculados a cada chamada"""
    return compute_stats(db, user.id)
