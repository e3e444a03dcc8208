"""Stock shortage endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.category import Shortage
from app.services.shortages import list_shortages

router = APIRouter(prefix="/shortages", tags=["shortages"])


@router.get("", response_model=list[Shortage])
def get_shortages(db: Session = Depends(get_db)):
    """Categories holding fewer sealed bottles than desired, by name."""
    return list_shortages(db)
