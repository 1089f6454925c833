# Overview: Page access per role, and role assignment for accounts.

"""
Permission Gate

Access is decided per (role, page):
- no role: denied
- admin: always allowed, stored rows are ignored
- any other role: the stored can_access flag; no row means denied

The same check drives the navigation the client renders and the
server-side route decorators, so hiding a page and refusing its API agree.
"""

from flask import current_app

from ..extensions import db
from ..models import Profile, RolePermission, UserRole
from ..models.auth import ROLE_ADMIN, ROLES
from ..pages import ALL_PAGES, DEFAULT_ROLE_PAGE_ACCESS, PAGE_LABELS, validate_page_path
from ..validation import ConflictError, NotFoundError, ValidationError


class PermissionDeniedError(Exception):
    """Raised when a role may not open a page."""
    pass


def has_access(role: str | None, page_path: str) -> bool:
    if not role:
        return False
    if role == ROLE_ADMIN:
        return True

    row = db.session.query(RolePermission.can_access).filter_by(
        role=role,
        page_path=page_path,
    ).first()
    return bool(row and row[0])


def allowed_pages(role: str | None) -> list[str]:
    """Pages the role may open, in navigation order."""
    if not role:
        return []
    if role == ROLE_ADMIN:
        return list(ALL_PAGES)

    granted = {
        page_path
        for (page_path,) in db.session.query(RolePermission.page_path).filter_by(role=role, can_access=True)
    }
    return [page for page in ALL_PAGES if page in granted]


def navigation(role: str | None) -> list[dict]:
    return [{"path": page, "label": PAGE_LABELS[page]} for page in allowed_pages(role)]


def require_page_access(role: str | None, page_path: str) -> None:
    if not has_access(role, page_path):
        raise PermissionDeniedError(f"Access denied: {page_path}")


def list_permissions() -> list[RolePermission]:
    return (
        db.session.query(RolePermission)
        .order_by(RolePermission.role.asc(), RolePermission.page_path.asc())
        .all()
    )


def update_permission(role: str, page_path: str, can_access: bool) -> RolePermission:
    """
    Set the access flag for (role, page), creating the row if needed.

    Raises:
        ValidationError: Unknown role or page, or a non-boolean flag
    """
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")
    if not validate_page_path(page_path):
        raise ValidationError(f"Unknown page: {page_path}")
    if not isinstance(can_access, bool):
        raise ValidationError("can_access must be a boolean")

    permission = db.session.query(RolePermission).filter_by(role=role, page_path=page_path).first()
    if permission:
        permission.can_access = can_access
    else:
        permission = RolePermission(role=role, page_path=page_path, can_access=can_access)
        db.session.add(permission)

    db.session.commit()
    current_app.logger.info("Permission updated: role=%s page=%s can_access=%s", role, page_path, can_access)
    return permission


def seed_default_permissions() -> int:
    """
    Insert the default role/page matrix.

    Idempotent: existing rows are left as they are. Returns rows created.
    """
    created_count = 0
    for role, pages in DEFAULT_ROLE_PAGE_ACCESS.items():
        for page_path, can_access in pages.items():
            existing = db.session.query(RolePermission.id).filter_by(role=role, page_path=page_path).first()
            if existing:
                continue
            db.session.add(RolePermission(role=role, page_path=page_path, can_access=can_access))
            created_count += 1

    db.session.commit()
    return created_count


def list_users() -> list[dict]:
    """Accounts ordered by creation, each with its role."""
    rows = (
        db.session.query(Profile, UserRole.role)
        .outerjoin(UserRole, UserRole.user_id == Profile.id)
        .order_by(Profile.created_at.asc(), Profile.username.asc())
        .all()
    )
    result = []
    for profile, role in rows:
        data = profile.to_dict()
        data["role"] = role
        result.append(data)
    return result


def set_user_role(user_id: str, role: str) -> dict:
    """
    Assign a role to an account, replacing any previous one.

    Raises:
        ValidationError: Unknown role
        NotFoundError: Unknown account
        ConflictError: The change would leave no admin
    """
    if role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")

    user = db.session.query(Profile).filter_by(id=user_id).first()
    if not user:
        raise NotFoundError("User not found")

    user_role = db.session.query(UserRole).filter_by(user_id=user_id).first()

    if user_role and user_role.role == ROLE_ADMIN and role != ROLE_ADMIN:
        admins = db.session.query(UserRole).filter_by(role=ROLE_ADMIN).count()
        if admins <= 1:
            raise ConflictError("At least one admin account is required")

    if user_role:
        user_role.role = role
    else:
        db.session.add(UserRole(user_id=user_id, role=role))

    db.session.commit()
    current_app.logger.info("Role changed: user=%s role=%s", user.username, role)

    data = user.to_dict()
    data["role"] = role
    return data
