from brandos.models.principal import Principal, PrincipalRole, PrincipalRoleName
from brandos.models.tenant import Tenant
from brandos.models.tenant_user import TenantUser, TenantUserRole, TenantRoleName
from brandos.models.outlet import Outlet, OutletGrant
from brandos.models.brand_info import BrandInfo

# Tables living in the shared control-plane database
CONTROL_PLANE_TABLES = [
    Principal.__table__,
    PrincipalRole.__table__,
    Tenant.__table__,
]

# Tables created inside every tenant partition
PARTITION_TABLES = [
    TenantUser.__table__,
    TenantUserRole.__table__,
    Outlet.__table__,
    OutletGrant.__table__,
    BrandInfo.__table__,
]
