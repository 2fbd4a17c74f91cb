#!/usr/bin/env python
"""Idempotent bootstrap for the initial administrator account.

Roles are only ever assigned explicitly (here, or through PUT /iam/users/<id>/role);
nothing infers a role from an e-mail address.

Usage:
    python backend/scripts/seed_users.py               # create admin if missing
    python backend/scripts/seed_users.py --show-roles  # print role -> resource permissions
    python backend/scripts/seed_users.py --dry-run     # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from erp import create_app, get_db  # type: ignore
from erp.constants.permissions import ROLE_ADMIN, ACTIONS
from erp.models.authz import Base, User
import erp.models.audit  # noqa: F401
import erp.models.product  # noqa: F401
import erp.models.raw_material  # noqa: F401
import erp.models.order  # noqa: F401
import erp.models.production_log  # noqa: F401


def ensure_initial_admin(session) -> bool:
    admin_email = os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com')
    existing = session.execute(select(User).where(User.email==admin_email)).scalar_one_or_none()
    if existing:
        if existing.role != ROLE_ADMIN:
            print(f"[WARN] {admin_email} exists with role {existing.role!r}; leaving it unchanged")
        return False
    user = User(name='Administrator', email=admin_email, password_hash='', role=ROLE_ADMIN)
    user.set_password(os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'))
    session.add(user)
    print(f"[INFO] Created initial admin user {admin_email} with temporary password.")
    return True


def print_role_summary(evaluator):
    roles = evaluator.all_roles()
    name_w = max(len(r['id']) for r in roles)
    print(f"{'Role'.ljust(name_w)} | Resource permissions")
    print('-' * (name_w + 40))
    for role in roles:
        parts = []
        for resource, actions in role['permissions'].items():
            letters = ''.join(a[0].upper() for a in ACTIONS if a in actions) or '-'
            parts.append(f"{resource}:{letters}")
        print(f"{role['id'].ljust(name_w)} | {' '.join(parts)}")


def parse_args():
    p = argparse.ArgumentParser(description="Seed the initial administrator account")
    p.add_argument('--show-roles', action='store_true', help='Print the role permission table')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            session.rollback()
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            Base.metadata.create_all(session.get_bind())
        try:
            created = ensure_initial_admin(session)
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Admin would be created: {created}")
            else:
                session.commit()
                print(f"[DONE] Admin created: {created}")
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary(app.extensions['permission_evaluator'])
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
