"""Client API endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from offercraft.core.context import TenantContext
from offercraft.core.deps import get_tenant_context
from offercraft.dao.client import ClientDAO
from offercraft.db.session import get_db
from offercraft.schemas.client import ClientCreate, ClientResponse


router = APIRouter(prefix="/clients", tags=["clients"])


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create client",
)
async def create_client(
    data: ClientCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> ClientResponse:
    client = await ClientDAO(db).create(tenant_id=ctx.tenant_id, **data.model_dump())
    return ClientResponse.model_validate(client)


@router.get("", response_model=list[ClientResponse], summary="List clients")
async def list_clients(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
) -> list[ClientResponse]:
    clients = await ClientDAO(db).list_for_tenant(ctx.tenant_id, skip=skip, limit=limit)
    return [ClientResponse.model_validate(client) for client in clients]
