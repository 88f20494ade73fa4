from fastapi import APIRouter, Query
from uuid import UUID

from smartpoint.dependencies.dbDependecies import async_db_dependency
from smartpoint.dependencies.scopeDependencies import scope_dependency
from smartpoint.modules.cashiers.service import CashierService
from smartpoint.modules.cashiers.schemas import CashierListResponse, CashierOut, CashierStatusResponse

cashiers_router = APIRouter(prefix="/cashiers", tags=["Cashiers"])


@cashiers_router.get("", response_model=CashierListResponse)
async def list_cashiers(
    db: async_db_dependency,
    scope: scope_dependency,
    include_inactive: bool = Query(False, alias="includeInactive")
):
    """Cashiers of the current manager with today's collected sales."""
    service = CashierService(db)
    return CashierListResponse(data=await service.list_cashiers(scope, include_inactive))


@cashiers_router.post("/{cashier_id}/deactivate", response_model=CashierStatusResponse)
async def deactivate_cashier(cashier_id: UUID, db: async_db_dependency, scope: scope_dependency):
    service = CashierService(db)
    cashier = await service.set_active(cashier_id, False, scope)
    return CashierStatusResponse(
        data=CashierOut.model_validate(cashier),
        message=f"Cashier {cashier.full_name} has been deactivated successfully"
    )


@cashiers_router.post("/{cashier_id}/reactivate", response_model=CashierStatusResponse)
async def reactivate_cashier(cashier_id: UUID, db: async_db_dependency, scope: scope_dependency):
    service = CashierService(db)
    cashier = await service.set_active(cashier_id, True, scope)
    return CashierStatusResponse(
        data=CashierOut.model_validate(cashier),
        message=f"Cashier {cashier.full_name} has been reactivated successfully"
    )
