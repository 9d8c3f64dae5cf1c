"""User-scoped API endpoints"""

from fastapi import APIRouter

from ..dep import SessionDep, CurrentUserDep, ensure_owner
from ..schema.order import OrderOut
from ..schema.response import SuccessResponse
from ..service import OrderService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/{user_id}/orders",
    response_model=SuccessResponse[list[OrderOut]],
    summary="List a user's orders",
    description="Only the user themselves or an admin may list these orders.",
)
async def list_user_orders(
    user_id: int,
    user: CurrentUserDep,
    session: SessionDep,
):
    """List the orders of a user"""
    ensure_owner(user, user_id)
    orders = await OrderService.list_user_orders(session, user_id)
    return SuccessResponse(data=[OrderOut.model_validate(order) for order in orders])
