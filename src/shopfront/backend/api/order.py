"""Order API endpoints"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..dep import (
    SessionDep,
    IdentityDep,
    VerifiedUserDep,
    VerificationStatusDep,
    get_order_service,
    require_roles,
    with_verification_status,
)
from ..enum import UserRole
from ..schema.order import (
    AdminOrderOut,
    CreateOrderRequest,
    OrderItemOut,
    OrderOut,
    OrderWithItemsOut,
    UpdateOrderRequest,
)
from ..schema.response import SuccessResponse, VerifiedSuccessResponse
from ..service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Order Management"])

OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]


@router.post(
    "",
    response_model=SuccessResponse[OrderWithItemsOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="""
    Place an order. Requires a verified email address.

    Every item must reference an existing, in-stock product. Item prices are
    copied from the products at the time of ordering and the total is their
    sum. The order and its items are stored atomically.

    **Errors:**
    - 400 PRODUCT_NOT_FOUND / PRODUCT_OUT_OF_STOCK
    - 403 EMAIL_NOT_VERIFIED
    """
)
async def create_order(
    request: CreateOrderRequest,
    user: VerifiedUserDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """Create an order"""
    order = await order_service.create_order(session, user.id, request)
    return SuccessResponse(data=order, message="Order created successfully")


@router.get(
    "",
    response_model=VerifiedSuccessResponse[list[OrderOut]],
    summary="List my orders",
)
async def list_orders(
    identity: IdentityDep,
    verification: VerificationStatusDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """List the caller's orders, newest first"""
    orders = await order_service.list_user_orders(session, identity.user_id)
    return with_verification_status(
        [OrderOut.model_validate(order) for order in orders],
        verification,
    )


@router.get(
    "/all",
    response_model=SuccessResponse[list[AdminOrderOut]],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
    summary="List all orders (admin)",
)
async def list_all_orders(
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """List every order with its owner"""
    return SuccessResponse(data=await order_service.list_all_orders(session))


@router.get(
    "/{order_id}",
    response_model=VerifiedSuccessResponse[OrderOut],
    summary="Get order",
    description="""
    Get one of the caller's orders. Orders of other users are reported as
    not found.
    """
)
async def get_order(
    order_id: int,
    identity: IdentityDep,
    verification: VerificationStatusDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """Get an order"""
    order = await order_service.get_order(session, order_id, identity.user_id)
    return with_verification_status(OrderOut.model_validate(order), verification)


@router.get(
    "/{order_id}/items",
    response_model=SuccessResponse[list[OrderItemOut]],
    summary="List order items",
)
async def get_order_items(
    order_id: int,
    identity: IdentityDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """List the items of an order with product details"""
    items = await order_service.get_order_items(session, order_id, identity.user_id)
    return SuccessResponse(data=items)


@router.patch(
    "/{order_id}",
    response_model=SuccessResponse[OrderOut],
    summary="Update order",
    description="""
    Update status, delivery address, phone or notes. Only the fields sent
    are changed. Delivered and cancelled orders cannot be modified.

    **Errors:**
    - 400 EMPTY_PATCH / ORDER_NOT_MUTABLE
    - 404 ORDER_NOT_FOUND
    """
)
async def update_order(
    order_id: int,
    request: UpdateOrderRequest,
    identity: IdentityDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """Update an order"""
    order = await order_service.update_order(session, order_id, identity.user_id, request)
    return SuccessResponse(data=OrderOut.model_validate(order), message="Order updated successfully")


@router.delete(
    "/{order_id}",
    response_model=SuccessResponse[None],
    summary="Delete order",
    description="""
    Delete a pending order together with its items.

    **Errors:**
    - 400 ORDER_NOT_DELETABLE
    - 404 ORDER_NOT_FOUND
    """
)
async def delete_order(
    order_id: int,
    identity: IdentityDep,
    session: SessionDep,
    order_service: OrderServiceDep,
):
    """Delete an order"""
    await order_service.delete_order(session, order_id, identity.user_id)
    return SuccessResponse(data=None, message="Order deleted successfully")
