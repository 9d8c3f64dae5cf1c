"""Catalog API endpoints (products and categories)"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ..dep import SessionDep, require_roles
from ..enum import UserRole
from ..exception import NotFoundError
from ..schema.catalog import (
    CategoryOut,
    CreateProductRequest,
    ProductOut,
    UpdateProductRequest,
)
from ..schema.response import SuccessResponse
from ..service import CatalogService

router = APIRouter(tags=["Catalog"])


@router.get(
    "/products",
    response_model=SuccessResponse[list[ProductOut]],
    summary="List products",
)
async def list_products(
    session: SessionDep,
    category_id: Annotated[int | None, Query(ge=1)] = None,
    in_stock: bool | None = None,
):
    """List products, optionally filtered"""
    products = await CatalogService.list_products(session, category_id, in_stock)
    return SuccessResponse(data=[ProductOut.model_validate(p) for p in products])


@router.get(
    "/products/{product_id}",
    response_model=SuccessResponse[ProductOut],
    summary="Get product",
)
async def get_product(product_id: int, session: SessionDep):
    """Get a product"""
    product = await CatalogService.get_product_by_id(session, product_id)
    if product is None:
        raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
    return SuccessResponse(data=ProductOut.model_validate(product))


@router.post(
    "/products",
    response_model=SuccessResponse[ProductOut],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.MANAGER, UserRole.ADMIN))],
    summary="Create product (manager, admin)",
)
async def create_product(request: CreateProductRequest, session: SessionDep):
    """Create a product"""
    product = await CatalogService.create_product(session, request)
    return SuccessResponse(data=ProductOut.model_validate(product), message="Product created")


@router.patch(
    "/products/{product_id}",
    response_model=SuccessResponse[ProductOut],
    dependencies=[Depends(require_roles(UserRole.MANAGER, UserRole.ADMIN))],
    summary="Update product (manager, admin)",
)
async def update_product(
    product_id: int,
    request: UpdateProductRequest,
    session: SessionDep,
):
    """Update a product"""
    product = await CatalogService.update_product(session, product_id, request)
    return SuccessResponse(data=ProductOut.model_validate(product), message="Product updated")


@router.delete(
    "/products/{product_id}",
    response_model=SuccessResponse[None],
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
    summary="Delete product (admin)",
)
async def delete_product(product_id: int, session: SessionDep):
    """Delete a product"""
    await CatalogService.delete_product(session, product_id)
    return SuccessResponse(data=None, message="Product deleted")


@router.get(
    "/categories",
    response_model=SuccessResponse[list[CategoryOut]],
    summary="List categories",
)
async def list_categories(session: SessionDep):
    """List categories"""
    categories = await CatalogService.list_categories(session)
    return SuccessResponse(data=[CategoryOut.model_validate(c) for c in categories])
