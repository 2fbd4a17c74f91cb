from __future__ import annotations
"""Audit logging decorator for state-changing route handlers.

Usage:

@audit_log('RAW_MATERIAL.CREATE', entity='RawMaterial', entity_id_key='id', meta_keys=['name'])
def create_material():
    ... return {'success': True, 'data': {...}}, 201

Parameters:
  action: required audit action code (e.g. RAW_MATERIAL.CREATE)
  entity: optional entity label
  entity_id_key: key in the returned `data` object whose value becomes entity_id
  entity_id_arg: name of the path parameter to use for entity_id (fallback)
  meta_keys: keys projected from the returned `data` object into meta
  meta_builder: callable(body, args, kwargs) -> dict; overrides meta_keys
  diff_keys / pre_fetch: record {'changes': {key: {'before', 'after'}}} against a snapshot
    taken before the handler runs

Only successful responses (status < 400) are audited.
"""
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional
import logging

from erp.services.audit import add_audit
from erp import get_db

logger = logging.getLogger(__name__)


def _split_response(rv: Any):
    """Return (body, status) for the common Flask return shapes."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, 200


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, tuple, dict], dict]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(args, kwargs) if (diff_keys and pre_fetch) else None
            rv = fn(*args, **kwargs)
            body, status = _split_response(rv)
            if status >= 400 or not isinstance(body, dict):
                return rv
            data = body.get('data') if isinstance(body.get('data'), dict) else body
            entity_id = None
            if entity_id_key and entity_id_key in data:
                entity_id = data.get(entity_id_key)
            elif entity_id_arg and entity_id_arg in kwargs:
                entity_id = kwargs.get(entity_id_arg)
            if meta_builder:
                meta = meta_builder(body, args, kwargs)
            else:
                meta = {k: data.get(k) for k in (meta_keys or []) if k in data}
            if diff_keys and before:
                changes = {
                    k: {'before': before.get(k), 'after': data.get(k)}
                    for k in diff_keys
                    if k in before and k in data and before.get(k) != data.get(k)
                }
                if changes:
                    meta['changes'] = changes
            add_audit(action, entity, entity_id, meta)
            get_db().commit()
            logger.debug('Audit %s entity=%s id=%s', action, entity, entity_id)
            return rv
        return wrapper
    return outer
