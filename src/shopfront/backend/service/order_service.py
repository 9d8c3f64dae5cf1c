"""Order service"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..enum import OrderStatus
from ..exception import (
    DependencyError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from ..model import Order, OrderItem, Product, User
from ..schema.order import (
    AdminOrderOut,
    CreateOrderRequest,
    OrderItemOut,
    OrderOut,
    OrderWithItemsOut,
    UpdateOrderRequest,
)
from .catalog_service import CatalogService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class OrderService:
    """Order placement and owner-scoped order management

    Every lookup that takes a ``user_id`` is scoped to that owner: an order
    belonging to someone else is reported as not found.
    """

    def __init__(self, transaction_timeout: float):
        self.transaction_timeout = transaction_timeout

    # ==================== Placement ====================

    async def create_order(
        self,
        session: AsyncSession,
        user_id: int,
        request: CreateOrderRequest,
    ) -> OrderWithItemsOut:
        """Validate requested items and persist the order atomically

        Each item is checked against the live product. The order header and
        all of its items are written in one transaction that must finish
        within ``transaction_timeout`` seconds; on any failure nothing is
        stored.

        Raises:
            ValidationError: A product does not exist or is out of stock
            DependencyError: The transaction timed out
        """
        lines: list[tuple[Product, int]] = []
        total = Decimal("0")
        for item in request.items:
            product = await CatalogService.get_product_by_id(session, item.product_id)
            if product is None:
                logger.warning(f"Order rejected for user {user_id}: product {item.product_id} not found")
                raise ValidationError(
                    f"Product with id {item.product_id} not found",
                    code="PRODUCT_NOT_FOUND",
                )
            if not product.in_stock:
                logger.warning(f"Order rejected for user {user_id}: product {product.id} out of stock")
                raise ValidationError(
                    f"Product '{product.name}' is out of stock",
                    code="PRODUCT_OUT_OF_STOCK",
                )
            total += Decimal(product.price) * item.quantity
            lines.append((product, item.quantity))

        try:
            async with asyncio.timeout(self.transaction_timeout):
                order = Order(
                    user_id=user_id,
                    status=OrderStatus.PENDING,
                    total_amount=total.quantize(CENT),
                    delivery_address=request.delivery_address,
                    phone=request.phone,
                    notes=request.notes,
                )
                session.add(order)
                await session.flush()

                items = []
                for product, quantity in lines:
                    order_item = OrderItem(
                        order_id=order.id,
                        product_id=product.id,
                        quantity=quantity,
                        price=product.price,
                    )
                    session.add(order_item)
                    await session.flush()
                    items.append((order_item, product))

                await session.commit()
        except TimeoutError as e:
            await session.rollback()
            logger.error(f"Order transaction timed out for user {user_id}, rolled back")
            raise DependencyError(
                "Order could not be saved, please try again",
                code="TRANSACTION_TIMEOUT",
            ) from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.exception(f"Order transaction failed for user {user_id}, rolled back")
            raise DependencyError(
                "Order could not be saved, please try again",
                code="ORDER_PERSISTENCE_FAILED",
            ) from e
        except Exception:
            await session.rollback()
            logger.exception(f"Order transaction failed for user {user_id}, rolled back")
            raise

        logger.info(f"Order created: {order.id} for user {user_id}, total {order.total_amount}")
        return OrderWithItemsOut(
            **OrderOut.model_validate(order).model_dump(),
            items=[
                OrderItemOut(
                    id=order_item.id,
                    order_id=order_item.order_id,
                    product_id=order_item.product_id,
                    quantity=order_item.quantity,
                    price=order_item.price,
                    product_name=product.name,
                    product_description=product.description,
                )
                for order_item, product in items
            ],
        )

    # ==================== Queries ====================

    @staticmethod
    async def get_order(session: AsyncSession, order_id: int, user_id: int) -> Order:
        """Load an order owned by ``user_id``

        Raises:
            NotFoundError: Order does not exist or belongs to another user
        """
        stmt = select(Order).where(Order.id == order_id, Order.user_id == user_id)
        order = (await session.execute(stmt)).scalar_one_or_none()
        if order is None:
            raise NotFoundError("Order not found", code="ORDER_NOT_FOUND")
        return order

    @staticmethod
    async def list_user_orders(session: AsyncSession, user_id: int) -> list[Order]:
        """List a user's orders, newest first"""
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @classmethod
    async def get_order_items(
        cls,
        session: AsyncSession,
        order_id: int,
        user_id: int,
    ) -> list[OrderItemOut]:
        """List the items of an owned order with product details"""
        await cls.get_order(session, order_id, user_id)
        stmt = (
            select(OrderItem, Product.name, Product.description)
            .join(Product, Product.id == OrderItem.product_id, isouter=True)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.id)
        )
        result = await session.execute(stmt)
        return [
            OrderItemOut(
                id=order_item.id,
                order_id=order_item.order_id,
                product_id=order_item.product_id,
                quantity=order_item.quantity,
                price=order_item.price,
                product_name=name,
                product_description=description,
            )
            for order_item, name, description in result.all()
        ]

    @staticmethod
    async def list_all_orders(session: AsyncSession) -> list[AdminOrderOut]:
        """List every order with its owner's username and email

        Admin-only; the route enforces the role.
        """
        stmt = (
            select(Order, User.username, User.email)
            .join(User, User.id == Order.user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        result = await session.execute(stmt)
        return [
            AdminOrderOut(
                **OrderOut.model_validate(order).model_dump(),
                username=username,
                email=email,
            )
            for order, username, email in result.all()
        ]

    # ==================== Mutation ====================

    @classmethod
    async def update_order(
        cls,
        session: AsyncSession,
        order_id: int,
        user_id: int,
        request: UpdateOrderRequest,
    ) -> Order:
        """Apply a patch to an owned, non-terminal order

        Raises:
            ValidationError: Nothing to update
            NotFoundError: Order does not exist or belongs to another user
            StateConflictError: Order is delivered or cancelled
        """
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update", code="EMPTY_PATCH")

        order = await cls.get_order(session, order_id, user_id)
        if order.status.is_terminal:
            logger.warning(f"Update rejected for order {order.id}: status is {order.status.value}")
            raise StateConflictError(
                f"Order with status '{order.status.value}' can no longer be modified",
                code="ORDER_NOT_MUTABLE",
            )

        for field, value in changes.items():
            setattr(order, field, value)
        order.touch()
        await session.commit()

        logger.info(f"Order updated: {order.id} {sorted(changes)}")
        return order

    @classmethod
    async def delete_order(cls, session: AsyncSession, order_id: int, user_id: int) -> None:
        """Delete an owned order that is still pending, together with its items

        Raises:
            NotFoundError: Order does not exist or belongs to another user
            StateConflictError: Order is not pending
        """
        order = await cls.get_order(session, order_id, user_id)
        if order.status != OrderStatus.PENDING:
            logger.warning(f"Delete rejected for order {order.id}: status is {order.status.value}")
            raise StateConflictError(
                "Only pending orders can be deleted",
                code="ORDER_NOT_DELETABLE",
            )

        await session.execute(delete(OrderItem).where(OrderItem.order_id == order.id))
        await session.delete(order)
        await session.commit()
        logger.info(f"Order deleted: {order_id}")
