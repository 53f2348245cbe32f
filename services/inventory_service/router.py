import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .models import InventoryTicketType
from .schemas import InventoryTicketCreate, InventoryTicketResponse
from .service import InventoryService

router = APIRouter(prefix="/tickets", dependencies=[Depends(get_current_user)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "inventory", "status": "running"}


@router.post("/", response_model=InventoryTicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: InventoryTicketCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await InventoryService.create_ticket(db, payload, user_id)


@router.get("/", response_model=list[InventoryTicketResponse])
async def list_tickets(
    ticket_type: InventoryTicketType | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await InventoryService.list_tickets(db, ticket_type)


@router.get("/{ticket_id}", response_model=InventoryTicketResponse)
async def get_ticket(ticket_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    ticket = await InventoryService.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Inventory ticket not found")
    return ticket
