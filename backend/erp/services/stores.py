from __future__ import annotations
from decimal import Decimal
from typing import Dict, List
import logging
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from erp.models.order import Order, OrderItem
from erp.models.product import MaterialRequirement
from erp.models.raw_material import RawMaterial, STOCK_SCALE
from erp.services.decisions import LineItem, MaterialCheckResult, RequirementRow, ZERO, to_decimal
from erp.services.errors import LookupFailure, OrderNotFound, StockReservationConflict

logger = logging.getLogger(__name__)


class SqlOrderStore:
    def __init__(self, session: Session):
        self.session = session

    def line_items(self, order_id: int) -> List[LineItem]:
        try:
            order = self.session.execute(select(Order).where(Order.id == order_id)).scalar_one_or_none()
            if order is None:
                raise OrderNotFound(order_id)
            rows = self.session.execute(
                select(OrderItem.product_id, OrderItem.quantity)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id.asc())
            ).all()
        except SQLAlchemyError as e:
            logger.error('Order lookup failed for %s: %s', order_id, e)
            raise LookupFailure('Failed to fetch order details') from e
        return [LineItem(product_id=r.product_id, quantity=r.quantity) for r in rows]


class SqlMaterialStore:
    def __init__(self, session: Session):
        self.session = session

    def requirements_for(self, product_id: int) -> List[RequirementRow]:
        try:
            rows = self.session.execute(
                select(
                    RawMaterial.id,
                    RawMaterial.name,
                    RawMaterial.current_stock,
                    MaterialRequirement.quantity_required,
                    MaterialRequirement.unit,
                )
                .join(RawMaterial, RawMaterial.id == MaterialRequirement.raw_material_id)
                .where(MaterialRequirement.product_id == product_id)
                .order_by(MaterialRequirement.id.asc())
            ).all()
        except SQLAlchemyError as e:
            logger.error('Material requirement lookup failed for product %s: %s', product_id, e)
            raise LookupFailure('Failed to fetch material requirements') from e
        return [
            RequirementRow(
                raw_material_id=r.id,
                name=r.name,
                quantity_required=to_decimal(r.quantity_required),
                unit=r.unit,
                current_stock=to_decimal(r.current_stock),
            )
            for r in rows
        ]

    def reserve_materials(self, requirements: List[MaterialCheckResult]) -> None:
        """Decrement stock for every requirement inside the caller's transaction.

        Each decrement is guarded by `current_stock - required >= 0`, rounded at the
        stock scale; a guard that matches no row raises StockReservationConflict and
        the caller must roll back.
        """
        totals: Dict[int, Decimal] = {}
        for r in requirements:
            totals[r.material_id] = totals.get(r.material_id, ZERO) + r.required_quantity
        conflicts = []
        try:
            for material_id, required in totals.items():
                # Round at the column scale; SQLite evaluates Numeric arithmetic as REAL
                remaining = func.round(RawMaterial.current_stock - required, STOCK_SCALE)
                result = self.session.execute(
                    update(RawMaterial)
                    .where(RawMaterial.id == material_id, remaining >= 0)
                    .values(current_stock=remaining)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    conflicts.append(material_id)
            # Loaded RawMaterial instances no longer reflect the decremented stock
            for obj in list(self.session.identity_map.values()):
                if isinstance(obj, RawMaterial):
                    self.session.expire(obj)
        except SQLAlchemyError as e:
            logger.error('Stock reservation failed: %s', e)
            raise LookupFailure('Failed to reserve raw materials') from e
        if conflicts:
            raise StockReservationConflict(conflicts)
