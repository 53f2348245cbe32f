import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import AttributeCreate, AttributeResponse, AttributeUpdate
from .service import AttributeService

router = APIRouter(dependencies=[Depends(get_current_user)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "attribute", "status": "running"}


@router.post("/", response_model=AttributeResponse, status_code=status.HTTP_201_CREATED)
async def create_attribute(
    payload: AttributeCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AttributeService.create_attribute(db, payload, user_id)


@router.get("/", response_model=list[AttributeResponse])
async def list_attributes(
    active_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_db),
):
    return await AttributeService.list_attributes(db, active_only)


@router.get("/{attribute_id}", response_model=AttributeResponse)
async def get_attribute(attribute_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    attribute = await AttributeService.get_attribute(db, attribute_id)
    if not attribute:
        raise HTTPException(status_code=404, detail="Attribute not found")
    return attribute


@router.put("/{attribute_id}", response_model=AttributeResponse)
async def update_attribute(
    attribute_id: uuid.UUID,
    payload: AttributeUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await AttributeService.update_attribute(db, attribute_id, payload)


@router.delete("/{attribute_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attribute(attribute_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await AttributeService.delete_attribute(db, attribute_id)
