from __future__ import annotations
from decimal import Decimal
from typing import Iterable, List, Protocol, Union
import logging

from erp.services.decisions import (
    Approved,
    Denied,
    MaterialCheckResult,
    ProductionDecision,
    RequirementRow,
    ZERO,
    to_decimal,
)

logger = logging.getLogger(__name__)

NO_REQUIREMENTS_MESSAGE = 'No material requirements defined for this product'
ALL_AVAILABLE_MESSAGE = 'All materials available for production'
INSUFFICIENT_PREFIX = 'Insufficient materials: '

Quantity = Union[int, Decimal, str]


class RequirementLookup(Protocol):
    def requirements_for(self, product_id: int) -> List[RequirementRow]: ...


def check_material(row: RequirementRow, quantity: Decimal) -> MaterialCheckResult:
    return MaterialCheckResult(
        material_id=row.raw_material_id,
        material_name=row.name,
        required_quantity=to_decimal(row.quantity_required) * quantity,
        available_quantity=to_decimal(row.current_stock),
        unit=row.unit,
    )


def insufficient_message(shortfall: Iterable[MaterialCheckResult]) -> str:
    return INSUFFICIENT_PREFIX + ', '.join(r.material_name for r in shortfall)


def evaluate_requirements(rows: List[RequirementRow], quantity: Quantity) -> ProductionDecision:
    """Compute sufficiency of `rows` for `quantity` units. No I/O."""
    qty = to_decimal(quantity)
    if qty <= ZERO:
        raise ValueError('quantity must be positive')
    if not rows:
        return Approved(message=NO_REQUIREMENTS_MESSAGE, requirements=[])
    results = [check_material(row, qty) for row in rows]
    shortfall = [r for r in results if not r.can_produce]
    if shortfall:
        return Denied(message=insufficient_message(shortfall), requirements=results, shortfall_materials=shortfall)
    return Approved(message=ALL_AVAILABLE_MESSAGE, requirements=results)


class MaterialAvailabilityChecker:
    """Material sufficiency for producing a quantity of one product.

    Never mutates stock. Lookup errors propagate unchanged so callers can tell
    "could not evaluate" apart from a denial.
    """

    def __init__(self, lookup: RequirementLookup):
        self.lookup = lookup

    def check_availability(self, product_id: int, quantity: Quantity) -> ProductionDecision:
        rows = self.lookup.requirements_for(product_id)
        decision = evaluate_requirements(rows, quantity)
        logger.debug('Availability product=%s qty=%s can_produce=%s', product_id, quantity, decision.can_produce)
        return decision
