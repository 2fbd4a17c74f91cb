from __future__ import annotations


class LookupFailure(Exception):
    """Order, product or material data could not be read; the decision was not evaluated."""


class OrderNotFound(LookupFailure):
    def __init__(self, order_id):
        super().__init__(f'Order {order_id} not found')
        self.order_id = order_id


class StockReservationConflict(Exception):
    """Stock dropped below a required quantity between the check and the decrement."""

    def __init__(self, material_ids):
        super().__init__(f"Stock changed for materials: {', '.join(str(m) for m in material_ids)}")
        self.material_ids = list(material_ids)
