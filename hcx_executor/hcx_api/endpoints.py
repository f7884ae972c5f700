"""Canonical HCX endpoints used by the application.

Every path the orchestrator talks to is declared here. Application API paths
are relative to the connector URL, admin API paths are relative to the
connector URL on port 9443, cloud paths are relative to the cloud service
hosts from config. Keeping them centralized makes it easy to verify the rest
of the codebase never drifts away from the supported HCX contract.
"""

ADMIN_PORT = 9443

# Application API
SESSIONS = "/hybridity/api/sessions"
CLOUD_CONFIGS = "/hybridity/api/cloudConfigs"
ENDPOINT_PAIRING = "/hybridity/api/endpointPairing/{endpoint_id}"
CERTIFICATES = "/hybridity/api/admin/certificates"
NETWORKS = "/hybridity/api/networks"
NETWORK = "/hybridity/api/networks/{object_id}"
NETWORKS_QUERY_IP_USAGE = "/hybridity/api/networks?action=queryIpUsage"
COMPUTE_PROFILES = "/hybridity/api/interconnect/computeProfiles"
COMPUTE_PROFILES_BY_ENDPOINT = "/hybridity/api/interconnect/computeProfiles?endpointId={endpoint_id}"
COMPUTE_PROFILE = "/hybridity/api/interconnect/computeProfiles/{compute_profile_id}"
SERVICE_MESHES = "/hybridity/api/interconnect/serviceMesh"
SERVICE_MESH_DELETE = "/hybridity/api/interconnect/serviceMesh/{service_mesh_id}?force={force}"
L2_EXTENSIONS = "/hybridity/api/l2Extensions"
L2_EXTENSION = "/hybridity/api/l2Extensions/{stretch_id}"
JOB = "/hybridity/api/jobs/{job_id}"
TASK = "/hybridity/api/interconnect/tasks/{task_id}"
INVENTORY_VC_LIST = "/hybridity/api/service/inventory/vc/list"
INVENTORY_DATASTORES = "/hybridity/api/service/inventory/vc/datastores/query"
INVENTORY_DVS = "/hybridity/api/service/inventory/vc/dvs/query"
INVENTORY_NETWORKS = "/hybridity/api/service/inventory/networks"
INVENTORY_CLOUD_LIST = "/hybridity/api/service/inventory/cloud/list"
INVENTORY_RESOURCE_CONTAINERS = "/hybridity/api/service/inventory/resourcecontainer/list"
APPLIANCES_QUERY = "/hybridity/api/interconnect/appliances/query"

# Admin API (:9443)
ADMIN_ACTIVATION = "/api/admin/global/config/hcx"
ADMIN_LOOKUP_SERVICE = "/api/admin/global/config/lookupservice"
ADMIN_LOOKUP_SERVICE_ITEM = "/api/admin/global/config/lookupservice/{uuid}"
ADMIN_LOCATION = "/api/admin/global/config/location"
ADMIN_ROLE_MAPPINGS = "/api/admin/global/config/roleMappings"
ADMIN_VCENTER = "/api/admin/global/config/vcenter"
ADMIN_VCENTER_ITEM = "/api/admin/global/config/vcenter/{uuid}"
APP_ENGINE_START = "/components/appengine?action=start"
APP_ENGINE_STOP = "/components/appengine?action=stop"
APP_ENGINE_STATUS = "/components/appengine/status"

# Cloud services
VMC_AUTHORIZE = "/auth/api-tokens/authorize?refresh_token={token}"
HCX_CLOUD_SESSIONS = "/api/sessions"
SDDCS = "/api/sddcs"
SDDC_ACTION = "/api/sddcs/{sddc_id}?action={action}"

AUTH_HEADER = "x-hm-authorization"

CANONICAL_HCX_ENDPOINTS = {
    SESSIONS,
    CLOUD_CONFIGS,
    ENDPOINT_PAIRING,
    CERTIFICATES,
    NETWORKS,
    NETWORK,
    NETWORKS_QUERY_IP_USAGE,
    COMPUTE_PROFILES,
    COMPUTE_PROFILES_BY_ENDPOINT,
    COMPUTE_PROFILE,
    SERVICE_MESHES,
    SERVICE_MESH_DELETE,
    L2_EXTENSIONS,
    L2_EXTENSION,
    JOB,
    TASK,
    INVENTORY_VC_LIST,
    INVENTORY_DATASTORES,
    INVENTORY_DVS,
    INVENTORY_NETWORKS,
    INVENTORY_CLOUD_LIST,
    INVENTORY_RESOURCE_CONTAINERS,
    APPLIANCES_QUERY,
    ADMIN_ACTIVATION,
    ADMIN_LOOKUP_SERVICE,
    ADMIN_LOOKUP_SERVICE_ITEM,
    ADMIN_LOCATION,
    ADMIN_ROLE_MAPPINGS,
    ADMIN_VCENTER,
    ADMIN_VCENTER_ITEM,
    APP_ENGINE_START,
    APP_ENGINE_STOP,
    APP_ENGINE_STATUS,
    VMC_AUTHORIZE,
    HCX_CLOUD_SESSIONS,
    SDDCS,
    SDDC_ACTION,
}
