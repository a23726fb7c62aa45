"""Organizations, classes, users and settings: plain persistence around the request workflow."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from subfinder.core.exceptions import AuthError, NotFoundError, ValidationError
from subfinder.core.security import dummy_password_hash, get_password_hash, verify_password
from subfinder.db.store import Store
from subfinder.models.organization import Organization
from subfinder.models.school_class import SchoolClass
from subfinder.models.setting import Setting
from subfinder.models.user import User, UserRole
from subfinder.schemas.organization import OrganizationCreate, OrganizationOut, OrganizationUpdate
from subfinder.schemas.school_class import ClassCreate, ClassOut, ClassUpdate
from subfinder.schemas.setting import SettingOut, SettingUpdate
from subfinder.schemas.user import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)


def _require_organization(db: Session, organization_id: str, *, field: str) -> Organization:
    organization = db.get(Organization, organization_id)
    if organization is None:
        raise ValidationError("Organization does not exist", details={field: organization_id})
    return organization


def _assert_no_parent_cycle(db: Session, organization_id: str | None, parent_id: str | None) -> None:
    if parent_id is None:
        return
    seen: set[str] = set()
    cursor: str | None = parent_id
    while cursor is not None:
        if cursor == organization_id:
            raise ValidationError(
                "Parent organization would create a cycle",
                details={"parent_organization_id": parent_id},
            )
        if cursor in seen:
            # Existing data already loops; refuse to extend it.
            raise ValidationError("Organization hierarchy contains a cycle", details={"organization_id": cursor})
        seen.add(cursor)
        node = _require_organization(db, cursor, field="parent_organization_id")
        cursor = node.parent_organization_id


# Organizations


def create_organization(store: Store, payload: OrganizationCreate) -> OrganizationOut:
    with store.session() as db:
        _assert_no_parent_cycle(db, None, payload.parent_organization_id)
        record = Organization(**payload.model_dump())
        db.add(record)
        db.flush()
        return OrganizationOut.model_validate(record)


def list_organizations(store: Store) -> list[OrganizationOut]:
    query = select(Organization).order_by(Organization.name.asc(), Organization.id.asc())
    with store.session() as db:
        return [OrganizationOut.model_validate(item) for item in db.execute(query).scalars()]


def get_organization(store: Store, organization_id: str) -> OrganizationOut | None:
    with store.session() as db:
        record = db.get(Organization, organization_id)
        return OrganizationOut.model_validate(record) if record is not None else None


def update_organization(store: Store, organization_id: str, payload: OrganizationUpdate) -> OrganizationOut:
    with store.session() as db:
        record = db.get(Organization, organization_id)
        if record is None:
            raise NotFoundError("Organization", organization_id)
        _assert_no_parent_cycle(db, organization_id, payload.parent_organization_id)
        for field, value in payload.model_dump().items():
            setattr(record, field, value)
        db.flush()
        return OrganizationOut.model_validate(record)


def delete_organization(store: Store, organization_id: str) -> None:
    with store.session() as db:
        record = db.get(Organization, organization_id)
        if record is None:
            raise NotFoundError("Organization", organization_id)
        db.delete(record)


# Classes


def create_class(store: Store, payload: ClassCreate) -> ClassOut:
    with store.session() as db:
        _require_organization(db, payload.organization_id, field="organization_id")
        record = SchoolClass(**payload.model_dump())
        db.add(record)
        db.flush()
        return ClassOut.model_validate(record)


def list_classes(store: Store, organization_id: str | None = None) -> list[ClassOut]:
    query = select(SchoolClass).order_by(SchoolClass.name.asc(), SchoolClass.id.asc())
    if organization_id:
        query = query.where(SchoolClass.organization_id == organization_id)
    with store.session() as db:
        return [ClassOut.model_validate(item) for item in db.execute(query).scalars()]


def get_class(store: Store, class_id: str) -> ClassOut | None:
    with store.session() as db:
        record = db.get(SchoolClass, class_id)
        return ClassOut.model_validate(record) if record is not None else None


def update_class(store: Store, class_id: str, payload: ClassUpdate) -> ClassOut:
    with store.session() as db:
        record = db.get(SchoolClass, class_id)
        if record is None:
            raise NotFoundError("Class", class_id)
        _require_organization(db, payload.organization_id, field="organization_id")
        for field, value in payload.model_dump().items():
            setattr(record, field, value)
        db.flush()
        return ClassOut.model_validate(record)


def delete_class(store: Store, class_id: str) -> None:
    with store.session() as db:
        record = db.get(SchoolClass, class_id)
        if record is None:
            raise NotFoundError("Class", class_id)
        db.delete(record)


# Users


def create_user(store: Store, payload: UserCreate) -> UserOut:
    hashed_password = get_password_hash(payload.password)
    with store.session() as db:
        existing = db.execute(select(User.id).where(User.username == payload.username)).scalar_one_or_none()
        if existing is not None:
            raise ValidationError("Username is already taken", details={"username": payload.username})
        if payload.organization_id is not None:
            _require_organization(db, payload.organization_id, field="organization_id")
        record = User(
            username=payload.username,
            hashed_password=hashed_password,
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
            organization_id=payload.organization_id,
            is_active=True,
        )
        db.add(record)
        db.flush()
        created = UserOut.model_validate(record)
    logger.info("User %s created with role %s", created.username, created.role.value)
    return created


def list_users(store: Store, role: UserRole | None = None) -> list[UserOut]:
    query = select(User).order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc())
    if role is not None:
        query = query.where(User.role == role)
    with store.session() as db:
        return [UserOut.model_validate(item) for item in db.execute(query).scalars()]


def get_user(store: Store, user_id: str) -> UserOut | None:
    with store.session() as db:
        record = db.get(User, user_id)
        return UserOut.model_validate(record) if record is not None else None


def update_user(store: Store, user_id: str, payload: UserUpdate) -> UserOut:
    changes = payload.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    hashed_password = get_password_hash(password) if password else None
    with store.session() as db:
        record = db.get(User, user_id)
        if record is None:
            raise NotFoundError("User", user_id)
        if changes.get("organization_id") is not None:
            _require_organization(db, changes["organization_id"], field="organization_id")
        if hashed_password:
            record.hashed_password = hashed_password
        for field, value in changes.items():
            if value is None and field in {"email", "first_name", "last_name", "is_active"}:
                continue
            setattr(record, field, value)
        db.flush()
        return UserOut.model_validate(record)


def delete_user(store: Store, user_id: str) -> None:
    with store.session() as db:
        record = db.get(User, user_id)
        if record is None:
            raise NotFoundError("User", user_id)
        db.delete(record)


def authenticate(store: Store, username: str, password: str) -> UserOut:
    with store.session() as db:
        user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if user is None or not user.is_active:
            hashed_password = None
            snapshot = None
        else:
            hashed_password = user.hashed_password
            snapshot = UserOut.model_validate(user)
    if snapshot is None:
        verify_password(password, dummy_password_hash())
        raise AuthError()
    if not verify_password(password, hashed_password):
        raise AuthError()
    return snapshot


# Settings


def list_settings(store: Store) -> list[SettingOut]:
    with store.session() as db:
        rows = db.execute(select(Setting).order_by(Setting.key.asc())).scalars()
        return [SettingOut.model_validate(item) for item in rows]


def get_setting(store: Store, key: str) -> SettingOut | None:
    with store.session() as db:
        record = db.get(Setting, key)
        return SettingOut.model_validate(record) if record is not None else None


def put_setting(store: Store, key: str, payload: SettingUpdate) -> SettingOut:
    with store.session() as db:
        record = db.get(Setting, key)
        if record is None:
            record = Setting(key=key, value=payload.value, description=payload.description)
            db.add(record)
        else:
            record.value = payload.value
            if payload.description is not None:
                record.description = payload.description
        db.flush()
        return SettingOut.model_validate(record)
