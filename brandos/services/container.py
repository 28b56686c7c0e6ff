"""
Service wiring

Services are constructed once per application and passed explicitly; there
is no module-level state besides cached settings.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from brandos.core.config import Settings
from brandos.core.database import create_control_plane_engine
from brandos.core.encryption import SecretCipher
from brandos.partitions import PartitionBackend, create_partition_backend
from brandos.services.authentication import Authenticator, TokenValidator
from brandos.services.brand_info import BrandInfoService
from brandos.services.connection_router import ConnectionRouter
from brandos.services.credentials import CredentialService
from brandos.services.outlets import OutletService
from brandos.services.principals import PrincipalService
from brandos.services.provisioning import TenantProvisioner


@dataclass
class Services:
    settings: Settings
    engine: Engine
    backend: PartitionBackend
    router: ConnectionRouter
    credentials: CredentialService
    provisioner: TenantProvisioner
    authenticator: Authenticator
    validator: TokenValidator
    outlets: OutletService
    brand_info: BrandInfoService
    principals: PrincipalService


def build_services(
    settings: Settings,
    engine: Optional[Engine] = None,
    backend: Optional[PartitionBackend] = None,
) -> Services:
    engine = engine or create_control_plane_engine(settings)
    backend = backend or create_partition_backend(settings, engine)
    cipher = SecretCipher.from_settings(settings)

    router = ConnectionRouter(engine, backend, cipher, settings)
    credentials = CredentialService(settings)
    brand_info = BrandInfoService()
    provisioner = TenantProvisioner(backend, router, credentials, brand_info, cipher, settings)

    return Services(
        settings=settings,
        engine=engine,
        backend=backend,
        router=router,
        credentials=credentials,
        provisioner=provisioner,
        authenticator=Authenticator(router, credentials, settings),
        validator=TokenValidator(router, settings),
        outlets=OutletService(owner_bypass=settings.OUTLET_OWNER_BYPASS),
        brand_info=brand_info,
        principals=PrincipalService(provisioner),
    )
