from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from sqlalchemy import select
from erp.models.authz import User
from erp import get_db
from erp.constants.permissions import ROLE_ADMIN
from erp.services.policy import current_role, get_evaluator
from erp.decorators.audit import audit_log
from erp.decorators.auth import require_role

iam_bp = Blueprint('iam', __name__)


@iam_bp.post('/auth/login')
def login():
    data = request.json or {}
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        abort(400, description='email & password required')
    session = get_db()
    user = session.execute(select(User).where(User.email==email)).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    if not user.is_active:
        abort(403, description='account disabled')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
    return {'access_token': token}


@iam_bp.get('/auth/me')
@jwt_required()
def me():
    # Identity stored as string, cast back to int for DB lookup
    user_id = int(get_jwt_identity())
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    role = current_role()
    definition = get_evaluator().role_permissions(role)
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': role,
        'permissions': definition.as_dict()['permissions'] if definition else {},
    }


@iam_bp.get('/roles')
@jwt_required()
def list_roles():
    return {'success': True, 'data': get_evaluator().all_roles()}


@iam_bp.get('/roles/<role>')
@jwt_required()
def get_role(role: str):
    definition = get_evaluator().role_permissions(role)
    if definition is None:
        abort(404, description=f'unknown role {role}')
    return {'success': True, 'data': {'id': role, **definition.as_dict()}}


@iam_bp.put('/users/<int:user_id>/role')
@require_role([ROLE_ADMIN])
@audit_log(
    'USER.ROLE.SET',
    entity='User',
    entity_id_key='id',
    diff_keys=['role'],
    pre_fetch=lambda a, kw: _prefetch_user(kw.get('user_id')),
    meta_keys=['role']
)
def set_user_role(user_id: int):
    data = request.json or {}
    role = data.get('role')
    if not get_evaluator().is_known_role(role):
        abort(400, description='role invalid')
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    user.role = role
    session.commit()
    return {'success': True, 'data': {'id': user.id, 'email': user.email, 'role': user.role}}


def _prefetch_user(user_id: int):
    session = get_db()
    user = session.execute(select(User).where(User.id==user_id)).scalar_one_or_none()
    if not user:
        return {}
    return {'role': user.role}
