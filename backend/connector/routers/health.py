from fastapi import APIRouter, Depends

from ..models import Envelope
from ..security import require_api_key

router = APIRouter(tags=["health"], dependencies=[Depends(require_api_key)])

ONLINE_MESSAGE = "Digistorm Connector Online"


@router.get("/")
def root():
    return Envelope.success(ONLINE_MESSAGE).model_dump()
