from typing import Optional

from fastapi import APIRouter, Depends, Header

from api.deps import get_delivery_service
from services.delivery_service import DeliveryService


router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.head("/{filename}")
def head_upload(filename: str, delivery: DeliveryService = Depends(get_delivery_service)):
    return delivery.head(filename)


@router.get("/{filename}")
async def stream_upload(
    filename: str,
    range: Optional[str] = Header(None),
    delivery: DeliveryService = Depends(get_delivery_service),
):
    return delivery.serve(filename, range)
