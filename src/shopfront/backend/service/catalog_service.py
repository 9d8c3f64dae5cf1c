"""Catalog service (products and categories)"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..exception import DuplicateResourceError, NotFoundError, StateConflictError, ValidationError
from ..model import Category, OrderItem, Product
from ..schema.catalog import CreateProductRequest, UpdateProductRequest

logger = logging.getLogger(__name__)


class CatalogService:
    """Product and category operations"""

    @staticmethod
    async def get_product_by_id(session: AsyncSession, product_id: int) -> Product | None:
        """Load a product by id"""
        return await session.get(Product, product_id)

    @staticmethod
    async def list_products(
        session: AsyncSession,
        category_id: int | None = None,
        in_stock: bool | None = None,
    ) -> list[Product]:
        """List products, optionally filtered by category and availability"""
        stmt = select(Product)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        if in_stock is not None:
            stmt = stmt.where(Product.in_stock == in_stock)
        stmt = stmt.order_by(Product.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_categories(session: AsyncSession) -> list[Category]:
        """List all categories"""
        result = await session.execute(select(Category).order_by(Category.id))
        return list(result.scalars().all())

    @staticmethod
    async def _check_category(session: AsyncSession, category_id: int | None) -> None:
        if category_id is not None and await session.get(Category, category_id) is None:
            raise ValidationError(f"Category {category_id} not found", code="CATEGORY_NOT_FOUND")

    @staticmethod
    async def _check_name(session: AsyncSession, name: str, exclude_id: int | None = None) -> None:
        stmt = select(Product.id).where(Product.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        if (await session.execute(stmt)).first() is not None:
            raise DuplicateResourceError(f"Product '{name}' already exists", code="DUPLICATE_PRODUCT")

    @staticmethod
    async def _commit(session: AsyncSession, name: str | None) -> None:
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise DuplicateResourceError(
                f"Product '{name}' already exists", code="DUPLICATE_PRODUCT"
            ) from e

    @classmethod
    async def create_product(cls, session: AsyncSession, request: CreateProductRequest) -> Product:
        """Create a product

        Raises:
            DuplicateResourceError: Name already used
            ValidationError: Category does not exist
        """
        await cls._check_name(session, request.name)
        await cls._check_category(session, request.category_id)

        product = Product(**request.model_dump())
        session.add(product)
        await cls._commit(session, request.name)
        await session.refresh(product)
        logger.info(f"Product created: {product.name} (id={product.id})")
        return product

    @classmethod
    async def update_product(
        cls,
        session: AsyncSession,
        product_id: int,
        request: UpdateProductRequest,
    ) -> Product:
        """Apply a product patch

        Price changes do not affect orders already placed.

        Raises:
            ValidationError: Nothing to update, or category does not exist
            NotFoundError: Product does not exist
            DuplicateResourceError: Name already used by another product
        """
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update", code="EMPTY_PATCH")

        product = await cls.get_product_by_id(session, product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")

        if "name" in changes:
            await cls._check_name(session, changes["name"], exclude_id=product.id)
        if "category_id" in changes:
            await cls._check_category(session, changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)
        product.touch()
        await cls._commit(session, changes.get("name"))
        await session.refresh(product)
        logger.info(f"Product updated: {product.id} {sorted(changes)}")
        return product

    @classmethod
    async def delete_product(cls, session: AsyncSession, product_id: int) -> None:
        """Delete a product that no order refers to

        Raises:
            NotFoundError: Product does not exist
            StateConflictError: Product appears in existing orders
        """
        product = await cls.get_product_by_id(session, product_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")

        stmt = select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
        if (await session.execute(stmt)).first() is not None:
            raise StateConflictError(
                "Product is referenced by existing orders",
                code="PRODUCT_IN_USE",
            )

        await session.delete(product)
        await session.commit()
        logger.info(f"Product deleted: {product_id}")
