import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.attribute_service.schemas import AttributeResponse
from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import (
    AttributeValueResponse,
    AttributeValueSet,
    LinkCreate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    TagAssign,
)
from .service import ProductService

router = APIRouter(dependencies=[Depends(get_current_user)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "product", "status": "running"}


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.create_product(db, product, user_id)

@router.get("/", response_model=list[ProductResponse])
async def list_products(
    query: str | None = Query(default=None),
    active_only: bool = Query(default=False),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.list_products(db, query, active_only, skip, limit)

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    product = await ProductService.get_product_by_id(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.update_product(db, product_id, payload)

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await ProductService.delete_product(db, product_id)


# --- Attribute values ---

@router.put("/{product_id}/attributes", response_model=AttributeValueResponse)
async def set_attribute_value(
    product_id: uuid.UUID,
    payload: AttributeValueSet,
    db: AsyncSession = Depends(get_db)
):
    return await ProductService.set_attribute_value(db, product_id, payload.attribute_id, payload.value)

@router.get("/{product_id}/attributes", response_model=list[AttributeValueResponse])
async def list_attribute_values(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await ProductService.list_attribute_values(db, product_id)

@router.get("/{product_id}/attributes/missing", response_model=list[AttributeResponse])
async def list_missing_required_attributes(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await ProductService.missing_required_attributes(db, product_id)


# --- Tags ---

@router.post("/{product_id}/tags", response_model=ProductResponse)
async def assign_tag(product_id: uuid.UUID, payload: TagAssign, db: AsyncSession = Depends(get_db)):
    return await ProductService.assign_tag(db, product_id, payload.name)

@router.delete("/{product_id}/tags/{name}", response_model=ProductResponse)
async def remove_tag(product_id: uuid.UUID, name: str, db: AsyncSession = Depends(get_db)):
    return await ProductService.remove_tag(db, product_id, name)


# --- Links ---

@router.post("/{product_id}/links", response_model=list[ProductResponse])
async def link_product(product_id: uuid.UUID, payload: LinkCreate, db: AsyncSession = Depends(get_db)):
    return await ProductService.link_products(db, product_id, payload.linked_product_id)

@router.get("/{product_id}/links", response_model=list[ProductResponse])
async def list_linked_products(product_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await ProductService.list_linked_products(db, product_id)

@router.delete("/{product_id}/links/{linked_product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_product(
    product_id: uuid.UUID,
    linked_product_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    await ProductService.unlink_products(db, product_id, linked_product_id)
