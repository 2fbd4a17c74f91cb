from __future__ import annotations
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Numeric, DateTime, text
from typing import Optional

from .authz import Base

# Decimal places kept for stock and per-unit requirement quantities
STOCK_SCALE = 3


class RawMaterial(Base):
    __tablename__ = 'raw_materials'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    current_stock: Mapped[Decimal] = mapped_column(Numeric(12, STOCK_SCALE), nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)
    # Informational reorder threshold; not enforced by the availability check
    min_stock_level: Mapped[Decimal] = mapped_column(Numeric(12, STOCK_SCALE), nullable=False, default=0)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    supplier: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))
