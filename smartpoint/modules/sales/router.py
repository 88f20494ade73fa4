from fastapi import APIRouter, Request, status
from uuid import UUID

from smartpoint.dependencies.dbDependecies import async_db_dependency
from smartpoint.dependencies.scopeDependencies import scope_dependency
from smartpoint.modules.sales.service import SaleService
from smartpoint.modules.sales.schemas import (
    CashierReassignRequest, CheckoutRequest, FailRequest, RefundRequest, SaleOut, SaleResponse
)

sales_router = APIRouter(prefix="/sales", tags=["Sales"])


@sales_router.post("/checkout", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    checkout_data: CheckoutRequest,
    request: Request,
    db: async_db_dependency,
    scope: scope_dependency
):
    """
    Ring up a sale.

    - **items**: lines with productId and quantity; price, name and subtotal
      default to the item's values
    - **total** / **paidAmount**: required; the stored total is recomputed from
      the lines, tax and discount
    - **receiptNumber**: optional; a resubmitted receipt number returns 409

    Stock is decremented for every line, or for none if any line fails.
    """
    service = SaleService(db)
    sale = await service.create_sale(checkout_data, scope, getattr(request.state, "device_id", None))
    return SaleResponse(data=SaleOut.model_validate(sale), message="Transaction completed successfully")


@sales_router.get("/receipt/{receipt_number}", response_model=SaleResponse)
async def get_sale_by_receipt(receipt_number: str, db: async_db_dependency, scope: scope_dependency):
    service = SaleService(db)
    sale = await service.get_by_receipt(receipt_number, scope)
    return SaleResponse(data=SaleOut.model_validate(sale))


@sales_router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(sale_id: UUID, db: async_db_dependency, scope: scope_dependency):
    service = SaleService(db)
    sale = await service.get_sale(sale_id, scope)
    return SaleResponse(data=SaleOut.model_validate(sale))


@sales_router.put("/{sale_id}/refund", response_model=SaleResponse)
async def refund_sale(
    sale_id: UUID,
    refund_data: RefundRequest,
    db: async_db_dependency,
    scope: scope_dependency
):
    """Refund a completed sale. Stock for every line is restored."""
    service = SaleService(db)
    sale = await service.refund_sale(sale_id, refund_data.reason, scope)
    return SaleResponse(data=SaleOut.model_validate(sale), message="Sale refunded successfully")


@sales_router.put("/{sale_id}/fail", response_model=SaleResponse)
async def fail_sale(
    sale_id: UUID,
    fail_data: FailRequest,
    db: async_db_dependency,
    scope: scope_dependency
):
    """Mark a pending or partial sale as failed. Stock for every line is restored."""
    service = SaleService(db)
    sale = await service.fail_sale(sale_id, fail_data.reason, scope)
    return SaleResponse(data=SaleOut.model_validate(sale), message="Sale marked as failed")


@sales_router.put("/{sale_id}/cashier", response_model=SaleResponse)
async def update_sale_cashier(
    sale_id: UUID,
    reassign_data: CashierReassignRequest,
    db: async_db_dependency,
    scope: scope_dependency
):
    service = SaleService(db)
    sale = await service.reassign_cashier(sale_id, reassign_data.cashier_id, scope)
    return SaleResponse(data=SaleOut.model_validate(sale), message="Sale cashier updated successfully")
