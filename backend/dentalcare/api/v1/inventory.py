"""
Inventory API Routes
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from typing import List

from dentalcare.core.database import get_db
from dentalcare.core.security import get_current_active_user, require_stock
from dentalcare.schemas import (
    InventoryItemCreate, InventoryItemResponse, SupplierCreate, SupplierResponse,
    OrderCreate, OrderUpdate, OrderResponse, parse_order_status
)
from dentalcare.services.inventory_service import (
    SupplierService, InventoryItemService, InventoryOrderService
)
from dentalcare.services.audit_service import AuditService, AuditAction, snapshot
from dentalcare.api.v1.auth import get_client_ip

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# ==================== ITEMS ====================

@router.get("/items", response_model=List[InventoryItemResponse])
async def list_items(
    category: str = None,
    low_stock: bool = False,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return InventoryItemService(db).get_all(category, low_stock)


@router.post("/items", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    item_data: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_stock)
):
    try:
        item = InventoryItemService(db).create(item_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return item


# ==================== SUPPLIERS ====================

@router.get("/suppliers", response_model=List[SupplierResponse])
async def list_suppliers(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    return SupplierService(db).get_all()


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    supplier_data: SupplierCreate,
    db: Session = Depends(get_db),
    current_user=Depends(require_stock)
):
    supplier = SupplierService(db).create(supplier_data)
    db.commit()
    return supplier


# ==================== ORDERS ====================

@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    status: str = None,
    supplier_id: int = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    try:
        status = parse_order_status(status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown order status: {status}")
    return InventoryOrderService(db).get_all(status, supplier_id)


@router.post("/orders", response_model=OrderResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_stock)
):
    try:
        order = InventoryOrderService(db).create(order_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.CREATE, order, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return order


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_active_user)
):
    order = InventoryOrderService(db).get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.put("/orders/{order_id}", response_model=OrderResponse)
async def update_order(
    order_id: int,
    order_data: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_stock)
):
    service = InventoryOrderService(db)
    current = service.get_by_id(order_id)
    if not current:
        raise HTTPException(status_code=404, detail="Order not found")
    before = snapshot(current)

    try:
        order = service.update(order_id, order_data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    AuditService(db).log_change(AuditAction.UPDATE, order, old_values=before, user=current_user,
                                ip_address=get_client_ip(request))
    db.commit()
    return order


@router.post("/orders/{order_id}/receive", response_model=OrderResponse)
async def receive_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user=Depends(require_stock)
):
    """Mark an order delivered and add its quantities to stock; repeat calls are no-ops"""
    try:
        order, received_now = InventoryOrderService(db).receive(order_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    if received_now:
        AuditService(db).log(
            action=AuditAction.ORDER_RECEIVED,
            resource_type="InventoryOrder",
            resource_id=order.id,
            resource_code=order.order_number,
            new_values={
                "items": [{"inventory_item_id": it.inventory_item_id, "quantity": it.quantity}
                          for it in order.items]
            },
            user=current_user,
            ip_address=get_client_ip(request)
        )
        db.commit()
    return order
