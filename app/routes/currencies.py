"""Currency reference data routes."""

from fastapi import APIRouter, Depends

from app.dependencies import authenticate, get_currency_controller
from src.controllers import CurrencyController
from src.models.project import Currency


router = APIRouter(tags=["currencies"])


@router.get("/currencies", response_model=list[Currency])
async def list_currencies(
    user_id: str = Depends(authenticate),
    controller: CurrencyController = Depends(get_currency_controller),
):
    return await controller.get_all()
