"""Resource handlers for the HCX executor"""

from .site_pairing import SitePairingHandler
from .compute_profile import ComputeProfileHandler, NetworkRoleAssigner
from .service_mesh import ServiceMeshHandler
from .l2_extension import ApplianceAllocator, L2ExtensionHandler
from .network_profile import NetworkProfileConfig, NetworkProfileHandler
from .vmc import VmcHandler
from .admin import AdminConfigHandler

__all__ = [
    'SitePairingHandler',
    'ComputeProfileHandler',
    'NetworkRoleAssigner',
    'ServiceMeshHandler',
    'ApplianceAllocator',
    'L2ExtensionHandler',
    'NetworkProfileConfig',
    'NetworkProfileHandler',
    'VmcHandler',
    'AdminConfigHandler',
]
