from __future__ import annotations
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Numeric, ForeignKey, DateTime, UniqueConstraint, text
from typing import Optional

from .authz import Base
from .raw_material import STOCK_SCALE


class Product(Base):
    __tablename__ = 'products'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    requirements = relationship('MaterialRequirement', back_populates='product', cascade='all, delete-orphan')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))


class MaterialRequirement(Base):
    """Quantity of one raw material consumed per single unit of a product."""
    __tablename__ = 'production_material_requirements'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    raw_material_id: Mapped[int] = mapped_column(ForeignKey('raw_materials.id', ondelete='CASCADE'), nullable=False, index=True)
    quantity_required: Mapped[Decimal] = mapped_column(Numeric(12, STOCK_SCALE), nullable=False)
    unit: Mapped[str] = mapped_column(String(16), nullable=False)

    product = relationship('Product', back_populates='requirements')
    raw_material = relationship('RawMaterial')

    __table_args__ = (UniqueConstraint('product_id', 'raw_material_id', name='uq_product_material'),)
