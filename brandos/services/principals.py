"""
Principal service - registration, roles and removal of human identities
"""

from datetime import datetime
from typing import Iterable, List, Optional
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from brandos.core.config import Settings
from brandos.core.errors import ConflictError, NotFoundError, ValidationError
from brandos.core.security import hash_password, validate_password_strength
from brandos.models import Principal, PrincipalRole, PrincipalRoleName
from brandos.services.provisioning import TenantProvisioner

logger = structlog.get_logger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class PrincipalService:
    """Manages principals; deleting one also destroys the tenants it owns"""

    def __init__(self, provisioner: TenantProvisioner):
        self._provisioner = provisioner

    def register(
        self,
        session: Session,
        email: str,
        password: str,
        display_name: Optional[str] = None,
        roles: Iterable[str] = (PrincipalRoleName.USER.value,),
    ) -> Principal:
        email = normalize_email(email)
        if "@" not in email:
            raise ValidationError("A valid email address is required")
        try:
            validate_password_strength(password)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        if self.get_by_email(session, email) is not None:
            raise ConflictError("Email already registered")

        principal = Principal(email=email, password_hash=hash_password(password), display_name=display_name)
        principal.roles = [PrincipalRole(role=self._role_value(role)) for role in sorted(set(roles))]
        session.add(principal)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError("Email already registered") from exc

        session.refresh(principal)
        logger.info("Principal registered", principal_id=str(principal.id), roles=principal.role_names)
        return principal

    def get(self, session: Session, principal_id: uuid.UUID) -> Principal:
        principal = session.get(Principal, principal_id)
        if principal is None:
            raise NotFoundError("Principal not found")
        return principal

    def get_by_email(self, session: Session, email: str) -> Optional[Principal]:
        return session.exec(select(Principal).where(Principal.email == normalize_email(email))).first()

    def list_principals(self, session: Session, skip: int = 0, limit: int = 100) -> List[Principal]:
        statement = select(Principal).order_by(Principal.created_at).offset(skip).limit(limit)
        return list(session.exec(statement).all())

    def assign_role(self, session: Session, principal_id: uuid.UUID, role: str) -> Principal:
        principal = self.get(session, principal_id)
        role = self._role_value(role)
        if not principal.has_role(role):
            principal.roles.append(PrincipalRole(role=role))
            principal.updated_at = datetime.utcnow()
            session.add(principal)
            session.commit()
            session.refresh(principal)
            logger.info("Principal role assigned", principal_id=str(principal_id), role=role)
        return principal

    def delete_principal(self, session: Session, principal_id: uuid.UUID) -> bool:
        """Delete a principal and cascade to every tenant it owns"""
        principal = session.get(Principal, principal_id)
        if principal is None:
            return False

        destroyed = self._provisioner.destroy_tenants_owned_by(session, principal_id)
        session.delete(principal)
        session.commit()
        logger.info("Principal deleted", principal_id=str(principal_id), tenants_destroyed=destroyed)
        return True

    def seed_super_admin(self, session: Session, settings: Settings) -> Optional[Principal]:
        """Create the bootstrap super admin from settings when configured and missing"""
        if not settings.SUPERADMIN_EMAIL or not settings.SUPERADMIN_PASSWORD:
            return None

        existing = self.get_by_email(session, settings.SUPERADMIN_EMAIL)
        if existing is not None:
            if not existing.has_role(PrincipalRoleName.SUPER_ADMIN.value):
                existing = self.assign_role(session, existing.id, PrincipalRoleName.SUPER_ADMIN.value)
            return existing

        logger.info("Seeding super admin", email=normalize_email(settings.SUPERADMIN_EMAIL))
        return self.register(
            session,
            settings.SUPERADMIN_EMAIL,
            settings.SUPERADMIN_PASSWORD,
            display_name="Super Admin",
            roles=(PrincipalRoleName.SUPER_ADMIN.value, PrincipalRoleName.USER.value),
        )

    @staticmethod
    def _role_value(role: str) -> str:
        try:
            return PrincipalRoleName(role).value
        except ValueError as exc:
            raise ValidationError(f"Unknown principal role: {role}") from exc
