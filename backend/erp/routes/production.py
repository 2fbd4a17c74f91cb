from __future__ import annotations
from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import get_jwt_identity
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from erp import get_db
from erp.models.production_log import ProductionLog
from erp.decorators.auth import require_permission
from erp.decorators.audit import audit_log
from erp.services.errors import LookupFailure, OrderNotFound, StockReservationConflict
from erp.services.materials import MaterialAvailabilityChecker
from erp.services.production import ProductionAuthorizationWorkflow
from erp.services.stores import SqlMaterialStore, SqlOrderStore
from erp.utils.listing import apply_pagination, build_list_payload
from erp.utils.validation import require_positive_int

production_bp = Blueprint('production', __name__)

CREATED_MESSAGE = 'Production log created successfully with sufficient materials'


@production_bp.get('')
@require_permission('production', 'read')
def list_logs():
    session = get_db()
    q = session.query(ProductionLog).order_by(ProductionLog.created_at.desc(), ProductionLog.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    return build_list_payload([_log_json(log) for log in paged_q.all()], total, limit, offset)


@production_bp.post('')
@require_permission('production', 'create')
@audit_log(
    'PRODUCTION.CREATE',
    entity='ProductionLog',
    entity_id_key='id',
    meta_builder=lambda body, a, kw: {
        'orderId': body['data']['orderId'],
        'producedQty': body['data']['producedQty'],
        'requirements': body['materialCheck']['requirements'],
    }
)
def create_log():
    data = request.json or {}
    if data.get('orderId') in (None, ''):
        return {'success': False, 'error': 'Order ID is required'}, 400
    order_id = require_positive_int(data.get('orderId'), 'orderId')
    produced_qty = require_positive_int(data.get('producedQty'), 'producedQty')
    session = get_db()
    materials = SqlMaterialStore(session)
    workflow = ProductionAuthorizationWorkflow(SqlOrderStore(session), MaterialAvailabilityChecker(materials))
    try:
        decision = workflow.authorize(order_id, produced_qty)
    except OrderNotFound:
        session.rollback()
        return {'success': False, 'error': 'Order not found'}, 404
    except LookupFailure:
        session.rollback()
        current_app.logger.exception('Production authorization failed for order %s', order_id)
        return {'success': False, 'error': 'Failed to fetch order details'}, 500

    if not decision.can_produce:
        session.rollback()
        return {
            'success': False,
            'error': 'Insufficient raw materials for production',
            'data': {
                'canProduce': False,
                'message': decision.message,
                'shortfallMaterials': [m.to_dict() for m in decision.shortfall_materials],
            }
        }, 400

    log = ProductionLog(
        order_id=order_id,
        quantity_produced=produced_qty,
        notes=data.get('notes') or '',
        created_by=int(get_jwt_identity()),
    )
    try:
        if current_app.config.get('PRODUCTION_RESERVE_STOCK'):
            materials.reserve_materials(decision.requirements)
        session.add(log)
        session.commit()
    except StockReservationConflict as e:
        session.rollback()
        current_app.logger.warning('Stock reservation conflict for order %s: %s', order_id, e)
        return {
            'success': False,
            'error': 'Stock changed during production authorization',
            'data': {'materialIds': e.material_ids},
        }, 409
    except (LookupFailure, SQLAlchemyError):
        session.rollback()
        current_app.logger.exception('Error creating production log for order %s', order_id)
        return {'success': False, 'error': 'Failed to create production log'}, 500

    return {
        'success': True,
        'data': _log_json(log),
        'materialCheck': {
            'canProduce': True,
            'message': CREATED_MESSAGE,
            'requirements': [r.to_dict() for r in decision.requirements],
        }
    }, 201


@production_bp.put('/<int:log_id>')
@require_permission('production', 'update')
@audit_log(
    'PRODUCTION.UPDATE',
    entity='ProductionLog',
    entity_id_key='id',
    diff_keys=['producedQty', 'notes'],
    pre_fetch=lambda a, kw: _prefetch_log(kw.get('log_id')),
    meta_keys=['producedQty']
)
def update_log(log_id: int):
    session = get_db()
    log = session.execute(select(ProductionLog).where(ProductionLog.id==log_id)).scalar_one_or_none()
    if not log:
        abort(404)
    data = request.json or {}
    log.quantity_produced = require_positive_int(data.get('producedQty'), 'producedQty')
    log.notes = data.get('notes') or ''
    session.commit()
    return {'success': True, 'data': _log_json(log)}


@production_bp.delete('/<int:log_id>')
@require_permission('production', 'delete')
@audit_log('PRODUCTION.DELETE', entity='ProductionLog', entity_id_arg='log_id')
def delete_log(log_id: int):
    session = get_db()
    log = session.execute(select(ProductionLog).where(ProductionLog.id==log_id)).scalar_one_or_none()
    if not log:
        abort(404)
    session.delete(log)
    session.commit()
    return {'success': True, 'message': 'Production log deleted successfully'}


def _log_json(log: ProductionLog):
    order = log.order
    created = log.created_at
    return {
        'id': log.id,
        'orderId': log.order_id,
        'orderNumber': order.order_number if order else 'Unknown',
        'customerName': order.customer_name if order else 'Unknown',
        'date': created.date().isoformat() if created else None,
        'producedQty': log.quantity_produced,
        'notes': log.notes,
        'createdAt': created.isoformat() if created else None,
    }


def _prefetch_log(log_id: int):
    session = get_db()
    log = session.execute(select(ProductionLog).where(ProductionLog.id==log_id)).scalar_one_or_none()
    if not log:
        return {}
    return {'producedQty': log.quantity_produced, 'notes': log.notes}
