"""
Authentication - sign-in for both identity kinds and token validation

Principals sign in with email and password against the control plane.
Tenant-users sign in with an API secret and password against their own
partition, selected by tenant ID. Every failed sign-in surfaces as the same
InvalidCredentialsError; the concrete reason only goes to the audit log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union
import uuid

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session, select
import structlog

from brandos.core.auth import TokenContext, create_access_token, decode_access_token
from brandos.core.config import Settings
from brandos.core.context import CallerContext, PrincipalCaller, TenantCaller, TenantUserStub
from brandos.core.errors import AuthenticationError, InvalidCredentialsError, NotFoundError
from brandos.core.security import dummy_verify, verify_password
from brandos.models import Principal, Tenant
from brandos.schemas.token import TokenPayload
from brandos.services.connection_router import ConnectionRouter
from brandos.services.credentials import CredentialService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SignInResult:
    token: str = field(repr=False)
    context: TokenContext
    subject_id: uuid.UUID
    roles: List[str]
    tenant_id: Optional[uuid.UUID] = None


class Authenticator:
    """Issues tokens for principals and tenant-users"""

    def __init__(self, router: ConnectionRouter, credentials: CredentialService, settings: Settings):
        self._router = router
        self._credentials = credentials
        self._settings = settings

    def sign_in(
        self,
        session: Session,
        identifier: str,
        secret: str,
        tenant_selector: Optional[Union[str, uuid.UUID]] = None,
    ) -> SignInResult:
        """Tenant flow when a selector is given, principal flow otherwise"""
        if tenant_selector:
            return self.sign_in_tenant(session, tenant_selector, identifier, secret)
        return self.sign_in_principal(session, identifier, secret)

    def sign_in_principal(self, session: Session, email: str, password: str) -> SignInResult:
        try:
            principal = session.exec(
                select(Principal).where(Principal.email == email.strip().lower())
            ).first()
            if principal is None:
                dummy_verify()
                raise InvalidCredentialsError("unknown_principal")
            if not verify_password(password, principal.password_hash):
                raise InvalidCredentialsError("wrong_password")
            if not principal.is_active:
                raise InvalidCredentialsError("inactive_principal")
        except InvalidCredentialsError as exc:
            logger.warning("Sign-in rejected", flow="principal", reason=exc.reason)
            raise

        principal.last_login_at = datetime.utcnow()
        session.add(principal)
        session.commit()

        roles = principal.role_names
        token = create_access_token(
            subject_id=principal.id,
            context=TokenContext.PRINCIPAL,
            roles=roles,
            settings=self._settings,
        )
        logger.info("Principal signed in", principal_id=str(principal.id))
        return SignInResult(token=token, context=TokenContext.PRINCIPAL, subject_id=principal.id, roles=roles)

    def sign_in_tenant(
        self,
        session: Session,
        tenant_selector: Union[str, uuid.UUID],
        api_secret: str,
        api_password: str,
    ) -> SignInResult:
        """
        Resolve the tenant, then verify the credential inside its partition.

        PartitionUnavailableError propagates; a reachable tenant that rejects
        the credential and an unknown tenant look the same to the caller.
        """
        try:
            tenant = self._find_tenant(session, tenant_selector)
            try:
                handle = self._router.resolve(tenant.partition_identifier)
            except NotFoundError:
                dummy_verify()
                raise InvalidCredentialsError("partition_missing")
            user = self._credentials.verify_credential(handle, api_secret, api_password)
        except InvalidCredentialsError as exc:
            logger.warning("Sign-in rejected", flow="tenant", reason=exc.reason)
            raise

        self._credentials.mark_used(handle, user.id)

        roles = user.role_names
        token = create_access_token(
            subject_id=user.id,
            context=TokenContext.TENANT,
            roles=roles,
            tenant_id=tenant.id,
            partition=tenant.partition_identifier,
            settings=self._settings,
        )
        logger.info("Tenant user signed in", tenant_id=str(tenant.id), user_id=str(user.id))
        return SignInResult(
            token=token,
            context=TokenContext.TENANT,
            subject_id=user.id,
            roles=roles,
            tenant_id=tenant.id,
        )

    def _find_tenant(self, session: Session, tenant_selector: Union[str, uuid.UUID]) -> Tenant:
        try:
            tenant_id = tenant_selector if isinstance(tenant_selector, uuid.UUID) else uuid.UUID(str(tenant_selector))
        except ValueError:
            dummy_verify()
            raise InvalidCredentialsError("malformed_tenant_selector")

        tenant = session.get(Tenant, tenant_id)
        if tenant is None:
            dummy_verify()
            raise InvalidCredentialsError("unknown_tenant")
        if not tenant.is_active:
            dummy_verify()
            raise InvalidCredentialsError("inactive_tenant")
        return tenant


class TokenValidator:
    """Turns a bearer token into a caller context"""

    def __init__(self, router: ConnectionRouter, settings: Settings):
        self._router = router
        self._settings = settings

    def validate(self, session: Session, token: str) -> CallerContext:
        """
        Raises AuthenticationError for bad, expired or orphaned tokens and
        PartitionUnavailableError when a tenant's partition cannot be reached.
        """
        payload = decode_access_token(token, self._settings)
        if payload is None:
            raise AuthenticationError("Could not validate credentials")

        try:
            claims = TokenPayload(**payload)
        except PydanticValidationError:
            logger.warning("Token rejected", reason="malformed_claims")
            raise AuthenticationError("Could not validate credentials")

        if claims.ctx == TokenContext.TENANT:
            return self._tenant_caller(claims)
        return self._principal_caller(session, claims)

    def _principal_caller(self, session: Session, claims: TokenPayload) -> PrincipalCaller:
        if claims.tenant_id is not None or claims.partition:
            logger.warning("Token rejected", reason="principal_token_with_tenant_claims")
            raise AuthenticationError("Could not validate credentials")

        principal = session.get(Principal, claims.sub)
        if principal is None or not principal.is_active:
            logger.warning("Token rejected", reason="unknown_principal", subject=str(claims.sub))
            raise AuthenticationError("Could not validate credentials")

        # Roles are re-read so revocations apply before the token expires
        return PrincipalCaller(principal=principal, roles=tuple(principal.role_names))

    def _tenant_caller(self, claims: TokenPayload) -> TenantCaller:
        if claims.tenant_id is None or not claims.partition:
            logger.warning("Token rejected", reason="missing_tenant_claims")
            raise AuthenticationError("Could not validate credentials")

        try:
            handle = self._router.resolve(claims.partition)
        except NotFoundError:
            logger.warning("Token rejected", reason="tenant_gone", partition=claims.partition)
            raise AuthenticationError("Could not validate credentials")

        if handle.tenant_id != claims.tenant_id:
            logger.warning("Token rejected", reason="tenant_mismatch", partition=claims.partition)
            raise AuthenticationError("Could not validate credentials")

        return TenantCaller(
            user=TenantUserStub(id=claims.sub, roles=tuple(claims.roles)),
            tenant_id=claims.tenant_id,
            handle=handle,
        )
