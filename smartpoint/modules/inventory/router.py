from fastapi import APIRouter, Request, status
from uuid import UUID

from smartpoint.dependencies.dbDependecies import async_db_dependency
from smartpoint.dependencies.scopeDependencies import scope_dependency
from smartpoint.common.schemas import MessageResponse
from smartpoint.modules.inventory.service import ItemService
from smartpoint.modules.inventory.schemas import ItemCreate, ItemOut, LowStockResponse, StockAdjustment

items_router = APIRouter(prefix="/items", tags=["Items"])


@items_router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    request: Request,
    db: async_db_dependency,
    scope: scope_dependency
):
    """
    Manual item entry.

    The item is created in the caller's scope; cashiers create items in their
    manager's pool and are recorded as cashier_id.
    """
    service = ItemService(db)
    return await service.create_item(item_data, scope, getattr(request.state, "device_id", None))


@items_router.get("/low-stock", response_model=LowStockResponse)
async def get_low_stock_items(db: async_db_dependency, scope: scope_dependency):
    """Active items at or below their minimum stock."""
    service = ItemService(db)
    items = await service.get_low_stock(scope)
    return LowStockResponse(
        data=[ItemOut.model_validate(item) for item in items],
        count=len(items),
        critical_count=sum(1 for item in items if item.is_critical_stock)
    )


@items_router.get("/{item_id}", response_model=ItemOut)
async def get_item(item_id: UUID, db: async_db_dependency, scope: scope_dependency):
    service = ItemService(db)
    return await service.get_item(item_id, scope)


@items_router.post("/{item_id}/stock", response_model=ItemOut)
async def update_stock(
    item_id: UUID,
    adjustment: StockAdjustment,
    db: async_db_dependency,
    scope: scope_dependency
):
    """
    Adjust stock.

    - **set**: replace the quantity on hand
    - **add**: receive stock
    - **subtract**: write off stock, clamped at zero
    """
    service = ItemService(db)
    return await service.adjust_stock(item_id, adjustment, scope)


@items_router.delete("/{item_id}", response_model=MessageResponse)
async def delete_item(item_id: UUID, db: async_db_dependency, scope: scope_dependency):
    service = ItemService(db)
    item = await service.deactivate_item(item_id, scope)
    return MessageResponse(message=f"Item '{item.name}' deleted")
