"""
Inventory Service - Stock items, Suppliers, Purchase orders
"""
from typing import Optional, List, Tuple
from datetime import date
import logging

from sqlalchemy.orm import Session, joinedload

from dentalcare.models import (
    InventoryItem, InventoryOrder, InventoryOrderItem, Supplier, OrderStatus, utcnow
)
from dentalcare.schemas import (
    InventoryItemCreate, OrderCreate, OrderUpdate, SupplierCreate
)
from dentalcare.services.financials import prepare
from dentalcare.services.numbering import NumberingService

logger = logging.getLogger(__name__)


class SupplierService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, supplier_id: int) -> Optional[Supplier]:
        return self.db.query(Supplier).filter(Supplier.id == supplier_id).first()

    def get_all(self, include_inactive: bool = False) -> List[Supplier]:
        query = self.db.query(Supplier)
        if not include_inactive:
            query = query.filter(Supplier.is_active == True)
        return query.order_by(Supplier.name).all()

    def create(self, supplier_data: SupplierCreate) -> Supplier:
        supplier = Supplier(**supplier_data.model_dump())
        self.db.add(supplier)
        self.db.flush()
        return supplier


class InventoryItemService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.query(InventoryItem).filter(InventoryItem.id == item_id).first()

    def get_all(self, category: str = None, low_stock: bool = False) -> List[InventoryItem]:
        query = self.db.query(InventoryItem)
        if category:
            query = query.filter(InventoryItem.category == category)
        if low_stock:
            query = query.filter(InventoryItem.quantity <= InventoryItem.min_quantity)
        return query.order_by(InventoryItem.item_name).all()

    def create(self, item_data: InventoryItemCreate) -> InventoryItem:
        data = item_data.model_dump()
        if data["supplier_id"] and not SupplierService(self.db).get_by_id(data["supplier_id"]):
            raise ValueError(f"Supplier {data['supplier_id']} not found")
        if data["sku"] and self.db.query(InventoryItem.id).filter(InventoryItem.sku == data["sku"]).first():
            raise ValueError(f"SKU {data['sku']} is already in use")

        data["category"] = data["category"].value
        data["unit"] = data["unit"].value
        item = InventoryItem(**data)
        NumberingService(self.db).assign(item, "inventory_item")
        self.db.add(item)
        self.db.flush()
        return item


class InventoryOrderService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, order_id: int) -> Optional[InventoryOrder]:
        return self.db.query(InventoryOrder).options(
            joinedload(InventoryOrder.items)
        ).filter(InventoryOrder.id == order_id).first()

    def get_all(self, status: str = None, supplier_id: int = None) -> List[InventoryOrder]:
        query = self.db.query(InventoryOrder).options(joinedload(InventoryOrder.items))
        if status:
            query = query.filter(InventoryOrder.status == status)
        if supplier_id:
            query = query.filter(InventoryOrder.supplier_id == supplier_id)
        return query.order_by(InventoryOrder.order_date.desc(), InventoryOrder.id.desc()).all()

    def _build_items(self, order: InventoryOrder, items: List[dict]):
        order.items.clear()
        for line in items:
            stock_item = self.db.query(InventoryItem).filter(
                InventoryItem.id == line["inventory_item_id"]
            ).first()
            if not stock_item:
                raise ValueError(f"Inventory item {line['inventory_item_id']} not found")
            order.items.append(InventoryOrderItem(
                inventory_item_id=stock_item.id,
                name=stock_item.item_name,
                quantity=line["quantity"],
                unit_cost=line["unit_cost"],
            ))

    def create(self, order_data: OrderCreate) -> InventoryOrder:
        if not SupplierService(self.db).get_by_id(order_data.supplier_id):
            raise ValueError(f"Supplier {order_data.supplier_id} not found")

        data = order_data.model_dump()
        order = InventoryOrder(
            supplier_id=data["supplier_id"],
            status=data["status"],
            order_date=data["order_date"] or date.today(),
            expected_date=data["expected_date"],
            notes=data["notes"],
        )
        self._build_items(order, data["items"])
        prepare(self.db, order)
        self.db.add(order)
        self.db.flush()
        logger.info(f"Created order {order.order_number} subtotal={order.subtotal}")
        return order

    def update(self, order_id: int, order_data: OrderUpdate) -> Optional[InventoryOrder]:
        order = self.get_by_id(order_id)
        if not order:
            return None
        if order.status in (OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value):
            raise ValueError(f"A {order.status} order cannot be modified")

        changes = order_data.model_dump(exclude_unset=True)
        items = changes.pop("items", None)
        for key, value in changes.items():
            setattr(order, key, value)
        if items is not None:
            self._build_items(order, items)

        prepare(self.db, order)
        self.db.flush()
        return order

    def receive(self, order_id: int) -> Tuple[Optional[InventoryOrder], bool]:
        """
        Book a delivered order into stock.

        Returns ``(order, received_now)``. Receiving an order that is already
        delivered changes nothing, so stock is incremented exactly once.
        """
        order = self.db.query(InventoryOrder).filter(
            InventoryOrder.id == order_id
        ).with_for_update().first()
        if not order:
            return None, False
        if order.status == OrderStatus.DELIVERED.value:
            return order, False
        if order.status == OrderStatus.CANCELLED.value:
            raise ValueError("A cancelled order cannot be received")

        now = utcnow()
        for line in order.items:
            stock_item = self.db.query(InventoryItem).filter(
                InventoryItem.id == line.inventory_item_id
            ).with_for_update().first()
            if stock_item is None or not line.quantity or line.quantity <= 0:
                continue
            stock_item.quantity = (stock_item.quantity or 0) + line.quantity
            stock_item.last_restocked = now

        order.status = OrderStatus.DELIVERED.value
        order.received_date = now
        self.db.flush()
        logger.info(f"Received order {order.order_number} into stock")
        return order, True
