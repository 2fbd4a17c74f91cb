"""Result types produced by the material availability check and production authorization.

A decision is either `Approved` or `Denied`; both carry the per-material breakdown.
`to_dict()` renders the camelCase payload the HTTP layer returns.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

ZERO = Decimal('0')


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def as_number(value: Decimal):
    # JSON clients expect numbers, integral values stay integers
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class RequirementRow:
    raw_material_id: int
    name: str
    quantity_required: Decimal
    unit: str
    current_stock: Decimal


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class MaterialCheckResult:
    material_id: int
    material_name: str
    required_quantity: Decimal
    available_quantity: Decimal
    unit: str
    product_id: Optional[int] = None

    @property
    def shortfall(self) -> Decimal:
        return max(ZERO, self.required_quantity - self.available_quantity)

    @property
    def can_produce(self) -> bool:
        return self.available_quantity >= self.required_quantity

    def for_product(self, product_id: int) -> 'MaterialCheckResult':
        return MaterialCheckResult(
            material_id=self.material_id,
            material_name=self.material_name,
            required_quantity=self.required_quantity,
            available_quantity=self.available_quantity,
            unit=self.unit,
            product_id=product_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'materialId': self.material_id,
            'materialName': self.material_name,
            'requiredQuantity': as_number(self.required_quantity),
            'availableQuantity': as_number(self.available_quantity),
            'unit': self.unit,
            'canProduce': self.can_produce,
            'shortfall': as_number(self.shortfall),
        }
        if self.product_id is not None:
            data['productId'] = self.product_id
        return data


@dataclass(frozen=True)
class Approved:
    message: str
    requirements: List[MaterialCheckResult] = field(default_factory=list)

    can_produce = True

    @property
    def shortfall_materials(self) -> List[MaterialCheckResult]:
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {
            'canProduce': True,
            'message': self.message,
            'requirements': [r.to_dict() for r in self.requirements],
            'shortfallMaterials': [],
        }


@dataclass(frozen=True)
class Denied:
    message: str
    requirements: List[MaterialCheckResult]
    shortfall_materials: List[MaterialCheckResult]

    can_produce = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'canProduce': False,
            'message': self.message,
            'requirements': [r.to_dict() for r in self.requirements],
            'shortfallMaterials': [r.to_dict() for r in self.shortfall_materials],
        }


ProductionDecision = Union[Approved, Denied]
