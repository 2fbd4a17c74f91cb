"""Production-log authorization across every product line of an order.

Requirements are scaled by the produced quantity of the log, applied uniformly to
each distinct product of the order; the ordered quantity of the line item is not
used. Each call evaluates from scratch, nothing is cached between calls.
"""
from __future__ import annotations
from typing import List, Protocol
import logging

from erp.services.decisions import Approved, Denied, LineItem, MaterialCheckResult, ProductionDecision
from erp.services.materials import (
    ALL_AVAILABLE_MESSAGE,
    MaterialAvailabilityChecker,
    Quantity,
    insufficient_message,
)

logger = logging.getLogger(__name__)

NO_ORDER_REQUIREMENTS_MESSAGE = 'No material requirements defined for this order'


class OrderLookup(Protocol):
    def line_items(self, order_id: int) -> List[LineItem]: ...


def distinct_products(items: List[LineItem]) -> List[int]:
    seen = []
    for item in items:
        if item.product_id not in seen:
            seen.append(item.product_id)
    return seen


class ProductionAuthorizationWorkflow:
    def __init__(self, orders: OrderLookup, checker: MaterialAvailabilityChecker):
        self.orders = orders
        self.checker = checker

    def authorize(self, order_id: int, produced_qty: Quantity) -> ProductionDecision:
        items = self.orders.line_items(order_id)
        requirements: List[MaterialCheckResult] = []
        shortfall: List[MaterialCheckResult] = []
        for product_id in distinct_products(items):
            decision = self.checker.check_availability(product_id, produced_qty)
            tagged = [r.for_product(product_id) for r in decision.requirements]
            requirements.extend(tagged)
            shortfall.extend(r for r in tagged if not r.can_produce)
            logger.debug('Order %s product %s can_produce=%s', order_id, product_id, decision.can_produce)

        if shortfall:
            logger.info('Production denied for order %s qty=%s: %d material(s) short', order_id, produced_qty, len(shortfall))
            return Denied(message=insufficient_message(shortfall), requirements=requirements, shortfall_materials=shortfall)
        logger.info('Production approved for order %s qty=%s', order_id, produced_qty)
        message = ALL_AVAILABLE_MESSAGE if requirements else NO_ORDER_REQUIREMENTS_MESSAGE
        return Approved(message=message, requirements=requirements)
