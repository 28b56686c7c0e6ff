"""
Outlet service - outlets and per-user outlet access inside a partition

Everything here runs through a ScopedHandle, so grants can only ever
reference outlets and tenant-users of the caller's own partition.
"""

from datetime import datetime
from typing import Iterable, List, Optional
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from brandos.core.errors import ConflictError, NotFoundError, ValidationError
from brandos.models import Outlet, OutletGrant, TenantRoleName, TenantUser
from brandos.services.connection_router import ScopedHandle

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = ("code", "name", "address", "is_active")
REQUIRED_FIELDS = ("code", "name", "is_active")


class OutletService:
    """Outlet CRUD and the outlet access relation"""

    def __init__(self, owner_bypass: bool = False):
        # When set, Owners see every outlet of their tenant without grants
        self.owner_bypass = owner_bypass

    # Outlets

    def create_outlet(
        self, handle: ScopedHandle, code: str, name: str, address: Optional[str] = None
    ) -> Outlet:
        code = (code or "").strip()
        name = (name or "").strip()
        if not code or not name:
            raise ValidationError("Outlet code and name are required")

        def _create(session: Session) -> Outlet:
            if session.exec(select(Outlet.id).where(Outlet.code == code)).first() is not None:
                raise ConflictError(f"Outlet code '{code}' already exists")
            outlet = Outlet(code=code, name=name, address=address)
            session.add(outlet)
            session.flush()
            return outlet

        try:
            outlet = handle.run(_create)
        except IntegrityError as exc:
            raise ConflictError(f"Outlet code '{code}' already exists") from exc

        logger.info("Outlet created", partition=handle.partition, outlet_id=str(outlet.id), code=code)
        return outlet

    def get_outlet(self, handle: ScopedHandle, outlet_id: uuid.UUID) -> Outlet:
        outlet = handle.run(lambda session: session.get(Outlet, outlet_id))
        if outlet is None:
            raise NotFoundError("Outlet not found")
        return outlet

    def list_outlets(self, handle: ScopedHandle, skip: int = 0, limit: Optional[int] = 100) -> List[Outlet]:
        statement = select(Outlet).order_by(Outlet.code).offset(skip).limit(limit)
        return handle.run(lambda session: list(session.exec(statement).all()))

    def update_outlet(self, handle: ScopedHandle, outlet_id: uuid.UUID, **changes) -> Outlet:
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        for key in REQUIRED_FIELDS:
            if key in changes and changes[key] is None:
                raise ValidationError(f"Outlet {key} cannot be null")
        for key in ("code", "name"):
            if key in changes:
                changes[key] = changes[key].strip()
                if not changes[key]:
                    raise ValidationError("Outlet code and name are required")

        def _update(session: Session) -> Outlet:
            outlet = session.get(Outlet, outlet_id)
            if outlet is None:
                raise NotFoundError("Outlet not found")
            new_code = changes.get("code")
            if new_code and new_code != outlet.code:
                clash = session.exec(select(Outlet.id).where(Outlet.code == new_code)).first()
                if clash is not None:
                    raise ConflictError(f"Outlet code '{new_code}' already exists")
            for key, value in changes.items():
                setattr(outlet, key, value)
            outlet.updated_at = datetime.utcnow()
            session.add(outlet)
            return outlet

        try:
            outlet = handle.run(_update)
        except IntegrityError as exc:
            raise ConflictError(f"Outlet code '{changes.get('code')}' already exists") from exc
        logger.info("Outlet updated", partition=handle.partition, outlet_id=str(outlet_id))
        return outlet

    def delete_outlet(self, handle: ScopedHandle, outlet_id: uuid.UUID) -> None:
        def _delete(session: Session) -> None:
            outlet = session.get(Outlet, outlet_id)
            if outlet is None:
                raise NotFoundError("Outlet not found")
            for grant in session.exec(select(OutletGrant).where(OutletGrant.outlet_id == outlet_id)).all():
                session.delete(grant)
            session.delete(outlet)

        handle.run(_delete)
        logger.info("Outlet deleted", partition=handle.partition, outlet_id=str(outlet_id))

    # Access

    def grant_access(self, handle: ScopedHandle, user_id: uuid.UUID, outlet_id: uuid.UUID) -> bool:
        """Grant access; returns False when the grant already existed"""

        def _grant(session: Session) -> bool:
            self._require_user_and_outlet(session, user_id, outlet_id)
            if session.get(OutletGrant, (user_id, outlet_id)) is not None:
                return False
            session.add(OutletGrant(user_id=user_id, outlet_id=outlet_id))
            return True

        try:
            created = handle.run(_grant)
        except IntegrityError:
            # Lost a race with an identical grant
            created = False

        if created:
            logger.info("Outlet access granted", partition=handle.partition, user_id=str(user_id), outlet_id=str(outlet_id))
        return created

    def revoke_access(self, handle: ScopedHandle, user_id: uuid.UUID, outlet_id: uuid.UUID) -> bool:
        """Revoke access; returns False when there was nothing to revoke"""

        def _revoke(session: Session) -> bool:
            grant = session.get(OutletGrant, (user_id, outlet_id))
            if grant is None:
                return False
            session.delete(grant)
            return True

        removed = handle.run(_revoke)
        if removed:
            logger.info("Outlet access revoked", partition=handle.partition, user_id=str(user_id), outlet_id=str(outlet_id))
        return removed

    def replace_user_outlets(
        self, handle: ScopedHandle, user_id: uuid.UUID, outlet_ids: Iterable[uuid.UUID]
    ) -> List[Outlet]:
        """Make the user's grant set exactly ``outlet_ids``, in one transaction"""
        wanted = set(outlet_ids)

        def _replace(session: Session) -> List[Outlet]:
            if session.get(TenantUser, user_id) is None:
                raise NotFoundError("Tenant user not found")
            outlets = list(session.exec(select(Outlet).where(Outlet.id.in_(wanted))).all()) if wanted else []
            missing = wanted - {outlet.id for outlet in outlets}
            if missing:
                raise NotFoundError("Outlet not found")

            current = session.exec(select(OutletGrant).where(OutletGrant.user_id == user_id)).all()
            for grant in current:
                if grant.outlet_id not in wanted:
                    session.delete(grant)
            for outlet_id in wanted - {grant.outlet_id for grant in current}:
                session.add(OutletGrant(user_id=user_id, outlet_id=outlet_id))
            return sorted(outlets, key=lambda outlet: outlet.code)

        outlets = handle.run(_replace)
        logger.info("Outlet access replaced", partition=handle.partition, user_id=str(user_id), count=len(outlets))
        return outlets

    def list_accessible_outlets(
        self, handle: ScopedHandle, user_id: uuid.UUID, roles: Iterable[str] = ()
    ) -> List[Outlet]:
        if self._bypasses(roles):
            return self.list_outlets(handle, limit=None)

        statement = (
            select(Outlet)
            .join(OutletGrant, OutletGrant.outlet_id == Outlet.id)
            .where(OutletGrant.user_id == user_id)
            .order_by(Outlet.code)
        )
        return handle.run(lambda session: list(session.exec(statement).all()))

    def has_access(
        self, handle: ScopedHandle, user_id: uuid.UUID, outlet_id: uuid.UUID, roles: Iterable[str] = ()
    ) -> bool:
        if self._bypasses(roles):
            return handle.run(lambda session: session.get(Outlet, outlet_id)) is not None
        return handle.run(lambda session: session.get(OutletGrant, (user_id, outlet_id))) is not None

    def list_outlet_users(self, handle: ScopedHandle, outlet_id: uuid.UUID) -> List[TenantUser]:
        def _users(session: Session) -> List[TenantUser]:
            if session.get(Outlet, outlet_id) is None:
                raise NotFoundError("Outlet not found")
            statement = (
                select(TenantUser)
                .join(OutletGrant, OutletGrant.user_id == TenantUser.id)
                .where(OutletGrant.outlet_id == outlet_id)
                .order_by(TenantUser.created_at)
            )
            return list(session.exec(statement).all())

        return handle.run(_users)

    def _bypasses(self, roles: Iterable[str]) -> bool:
        return self.owner_bypass and TenantRoleName.OWNER.value in set(roles)

    @staticmethod
    def _require_user_and_outlet(session: Session, user_id: uuid.UUID, outlet_id: uuid.UUID) -> None:
        if session.get(TenantUser, user_id) is None:
            raise NotFoundError("Tenant user not found")
        if session.get(Outlet, outlet_id) is None:
            raise NotFoundError("Outlet not found")
