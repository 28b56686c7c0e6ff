"""
Credential service - machine credentials for tenant-users

A credential is a public API secret plus a password. Only a bcrypt hash of
the password is stored; the plaintext is returned exactly once, at issuance
or reset.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional
import uuid

from sqlmodel import Session, select
import structlog

from brandos.core.config import Settings
from brandos.core.errors import ConflictError, InvalidCredentialsError, NotFoundError
from brandos.core.security import (
    dummy_verify,
    generate_random_chars,
    generate_secure_password,
    hash_password,
    verify_password,
)
from brandos.models import TenantRoleName, TenantUser, TenantUserRole
from brandos.services.connection_router import ScopedHandle

logger = structlog.get_logger(__name__)

SECRET_ALLOCATION_ATTEMPTS = 5


@dataclass(frozen=True)
class IssuedCredential:
    """Plaintext credential, shown to the caller once"""
    user_id: uuid.UUID
    secret: str
    password: str = field(repr=False)


class CredentialService:
    """Issues, rotates and verifies tenant-user credentials"""

    def __init__(self, settings: Settings):
        self.secret_length = settings.API_SECRET_LENGTH
        self.password_length = settings.API_PASSWORD_LENGTH

    def generate_api_secret(self) -> str:
        return generate_random_chars(self.secret_length)

    def generate_api_password(self) -> str:
        return generate_secure_password(self.password_length)

    def issue_initial_credential(
        self, handle: ScopedHandle, display_name: Optional[str] = None
    ) -> IssuedCredential:
        """First credential of a new partition; holds the Owner role"""
        return self.create_tenant_user(
            handle, display_name or "Owner", roles=[TenantRoleName.OWNER.value]
        )

    def create_tenant_user(
        self, handle: ScopedHandle, display_name: Optional[str], roles: Iterable[str]
    ) -> IssuedCredential:
        roles = sorted(set(roles))
        password = self.generate_api_password()
        password_hash = hash_password(password)

        def _create(session: Session):
            secret = self._allocate_secret(session)
            user = TenantUser(api_secret=secret, password_hash=password_hash, display_name=display_name)
            user.roles = [TenantUserRole(role=role) for role in roles]
            session.add(user)
            session.flush()
            return user.id, secret

        user_id, secret = handle.run(_create)
        logger.info("Credential issued", partition=handle.partition, user_id=str(user_id), roles=roles)
        return IssuedCredential(user_id=user_id, secret=secret, password=password)

    def reset_credential(self, handle: ScopedHandle, user_id: uuid.UUID) -> IssuedCredential:
        """
        Replace both the secret and the password of a tenant-user.

        The row is updated in one statement, so a concurrent sign-in sees
        either the old pair or the new one.
        """
        password = self.generate_api_password()
        password_hash = hash_password(password)

        def _rotate(session: Session) -> str:
            user = session.get(TenantUser, user_id, with_for_update=True)
            if user is None:
                raise NotFoundError("Tenant user not found")
            user.api_secret = self._allocate_secret(session)
            user.password_hash = password_hash
            user.updated_at = datetime.utcnow()
            session.add(user)
            return user.api_secret

        secret = handle.run(_rotate)
        logger.info("Credential reset", partition=handle.partition, user_id=str(user_id))
        return IssuedCredential(user_id=user_id, secret=secret, password=password)

    def verify_credential(self, handle: ScopedHandle, secret: str, password: str) -> TenantUser:
        """
        Return the active tenant-user owning the credential.

        Raises InvalidCredentialsError; the reason is only for audit logs.
        """

        def _lookup(session: Session) -> Optional[TenantUser]:
            return session.exec(select(TenantUser).where(TenantUser.api_secret == secret)).first()

        user = handle.run(_lookup)
        if user is None:
            dummy_verify()
            raise InvalidCredentialsError("unknown_secret")
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("wrong_password")
        if not user.is_active:
            raise InvalidCredentialsError("inactive_user")
        return user

    def mark_used(self, handle: ScopedHandle, user_id: uuid.UUID) -> None:
        def _touch(session: Session) -> None:
            user = session.get(TenantUser, user_id)
            if user is not None:
                user.last_used_at = datetime.utcnow()
                session.add(user)

        handle.run(_touch)

    def get_tenant_user(self, handle: ScopedHandle, user_id: uuid.UUID) -> TenantUser:
        user = handle.run(lambda session: session.get(TenantUser, user_id))
        if user is None:
            raise NotFoundError("Tenant user not found")
        return user

    def list_tenant_users(self, handle: ScopedHandle) -> list:
        return handle.run(
            lambda session: list(session.exec(select(TenantUser).order_by(TenantUser.created_at)).all())
        )

    def _allocate_secret(self, session: Session) -> str:
        for _ in range(SECRET_ALLOCATION_ATTEMPTS):
            secret = self.generate_api_secret()
            taken = session.exec(select(TenantUser.id).where(TenantUser.api_secret == secret)).first()
            if taken is None:
                return secret
        raise ConflictError("Could not allocate a unique API secret")
