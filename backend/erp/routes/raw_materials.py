from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, delete
from erp import get_db
from erp.models.raw_material import RawMaterial, STOCK_SCALE
from erp.models.product import Product, MaterialRequirement
from erp.decorators.auth import require_permission
from erp.decorators.audit import audit_log
from erp.services.decisions import as_number, to_decimal
from erp.services.errors import LookupFailure
from erp.services.materials import MaterialAvailabilityChecker
from erp.services.stores import SqlMaterialStore
from erp.utils.listing import apply_pagination, build_list_payload
from erp.utils.validation import require_non_negative_decimal, require_positive_int, require_text

materials_bp = Blueprint('raw_materials', __name__)


@materials_bp.get('')
@require_permission('products', 'read')
def list_materials():
    session = get_db()
    q = session.query(RawMaterial).order_by(RawMaterial.name.asc(), RawMaterial.id.asc())
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([_material_json(m) for m in paged_q.all()], total, limit, offset)


@materials_bp.post('')
@require_permission('products', 'create')
@audit_log('RAW_MATERIAL.CREATE', entity='RawMaterial', entity_id_key='id', meta_keys=['name', 'currentStock'])
def create_material():
    session = get_db()
    m = RawMaterial()
    _apply_payload(m, request.json or {})
    session.add(m)
    session.commit()
    return {'success': True, 'data': _material_json(m)}, 201


@materials_bp.put('/<int:material_id>')
@require_permission('products', 'update')
@audit_log(
    'RAW_MATERIAL.UPDATE',
    entity='RawMaterial',
    entity_id_key='id',
    diff_keys=['currentStock', 'minStockLevel', 'costPerUnit'],
    pre_fetch=lambda a, kw: _prefetch_material(kw.get('material_id')),
    meta_keys=['name']
)
def update_material(material_id: int):
    session = get_db()
    m = session.execute(select(RawMaterial).where(RawMaterial.id==material_id)).scalar_one_or_none()
    if not m:
        abort(404)
    _apply_payload(m, request.json or {})
    session.commit()
    return {'success': True, 'data': _material_json(m)}


@materials_bp.delete('/<int:material_id>')
@require_permission('products', 'delete')
@audit_log('RAW_MATERIAL.DELETE', entity='RawMaterial', entity_id_arg='material_id')
def delete_material(material_id: int):
    session = get_db()
    m = session.execute(select(RawMaterial).where(RawMaterial.id==material_id)).scalar_one_or_none()
    if not m:
        abort(404)
    session.delete(m)
    session.commit()
    return {'success': True, 'message': 'Raw material deleted successfully'}


@materials_bp.put('/requirements/<int:product_id>')
@require_permission('products', 'update')
@audit_log('PRODUCT.REQUIREMENTS.SET', entity='Product', entity_id_arg='product_id',
           meta_builder=lambda body, a, kw: {'count': len(body.get('data', []))})
def replace_requirements(product_id: int):
    """Replace the full set of material requirements declared for a product."""
    session = get_db()
    if not session.execute(select(Product).where(Product.id==product_id)).scalar_one_or_none():
        abort(404)
    entries = (request.json or {}).get('requirements')
    if not isinstance(entries, list):
        abort(400, description='requirements must be a list')
    rows = []
    seen = set()
    for entry in entries:
        entry = entry or {}
        material_id = require_positive_int(entry.get('rawMaterialId'), 'rawMaterialId')
        if material_id in seen:
            abort(400, description=f'duplicate rawMaterialId {material_id}')
        seen.add(material_id)
        material = session.execute(select(RawMaterial).where(RawMaterial.id==material_id)).scalar_one_or_none()
        if not material:
            abort(400, description=f'raw material {material_id} not found')
        qty = require_non_negative_decimal(entry.get('quantityRequired'), 'quantityRequired', places=STOCK_SCALE)
        if qty == 0:
            abort(400, description='quantityRequired must be positive')
        unit = entry.get('unit') or material.unit
        if unit != material.unit:
            abort(400, description=f'unit {unit} does not match raw material unit {material.unit}')
        rows.append(MaterialRequirement(product_id=product_id, raw_material_id=material_id, quantity_required=qty, unit=unit))
    session.execute(delete(MaterialRequirement).where(MaterialRequirement.product_id==product_id))
    session.add_all(rows)
    session.commit()
    return {'success': True, 'data': [_requirement_json(r) for r in rows]}


@materials_bp.get('/check-availability')
@require_permission('production', 'read')
def check_availability():
    product_id = request.args.get('productId')
    quantity = request.args.get('quantity')
    if not product_id or not quantity:
        return {'success': False, 'error': 'Product ID and quantity are required'}, 400
    product_id = require_positive_int(product_id, 'productId')
    quantity = require_positive_int(quantity, 'quantity')
    checker = MaterialAvailabilityChecker(SqlMaterialStore(get_db()))
    try:
        decision = checker.check_availability(product_id, quantity)
    except LookupFailure:
        current_app.logger.exception('Error checking material availability')
        return {'success': False, 'error': 'Failed to fetch material requirements'}, 500
    return {'success': True, 'data': decision.to_dict()}


def _apply_payload(m: RawMaterial, data: dict):
    m.name = require_text(data.get('name'), 'name')
    m.unit = require_text(data.get('unit'), 'unit')
    m.current_stock = require_non_negative_decimal(data.get('currentStock'), 'currentStock', places=STOCK_SCALE)
    m.min_stock_level = require_non_negative_decimal(data.get('minStockLevel', 0), 'minStockLevel', places=STOCK_SCALE)
    m.cost_per_unit = require_non_negative_decimal(data.get('costPerUnit', 0), 'costPerUnit', places=2)
    m.description = data.get('description') or ''
    m.supplier = data.get('supplier') or ''


def _material_json(m: RawMaterial):
    stock = to_decimal(m.current_stock)
    min_level = to_decimal(m.min_stock_level)
    return {
        'id': m.id,
        'name': m.name,
        'description': m.description,
        'currentStock': as_number(stock),
        'unit': m.unit,
        'minStockLevel': as_number(min_level),
        'costPerUnit': as_number(to_decimal(m.cost_per_unit)),
        'supplier': m.supplier,
        'lowStock': stock <= min_level,
    }


def _requirement_json(r: MaterialRequirement):
    return {
        'productId': r.product_id,
        'rawMaterialId': r.raw_material_id,
        'quantityRequired': as_number(to_decimal(r.quantity_required)),
        'unit': r.unit,
    }


def _prefetch_material(material_id: int):
    session = get_db()
    m = session.execute(select(RawMaterial).where(RawMaterial.id==material_id)).scalar_one_or_none()
    if not m:
        return {}
    return _material_json(m)
