import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .lifecycle import OrderStatus
from .schemas import OrderCreate, OrderResponse, OrderTransactionCreate, OrderTransactionResponse
from .service import OrderService

router = APIRouter(dependencies=[Depends(get_current_user)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}

@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order: OrderCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.create_order(db, order, user_id)

@router.get("/", response_model=list[OrderResponse])
async def list_orders(
    status: OrderStatus | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.list_orders(db, status, skip, limit)

@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    order = await OrderService.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.post("/{order_id}/transactions", response_model=OrderResponse)
async def apply_transaction(
    order_id: uuid.UUID,
    payload: OrderTransactionCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.apply_transaction(
        db, order_id, payload.transaction_type, payload.note, user_id
    )

@router.get("/{order_id}/transactions", response_model=list[OrderTransactionResponse])
async def list_transactions(order_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await OrderService.list_transactions(db, order_id)
