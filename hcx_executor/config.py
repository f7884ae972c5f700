import os

# HCX Connector URL (application API; the admin API lives on the same host at :9443)
HCX_URL = os.getenv("HCX_URL", "")

# Consumer credentials (vCenter SSO user used for /hybridity/api/sessions)
HCX_USER = os.getenv("HCX_USER", "")
HCX_PASSWORD = os.getenv("HCX_PASSWORD", "")

# Appliance admin credentials (basic auth on :9443)
HCX_ADMIN_USER = os.getenv("HCX_ADMIN_USER", "")
HCX_ADMIN_PASSWORD = os.getenv("HCX_ADMIN_PASSWORD", "")

# SSL verification is ON unless explicitly disabled
ALLOW_UNVERIFIED_SSL = os.getenv("HCX_ALLOW_UNVERIFIED_SSL", "false").lower() == "true"

# VMware Cloud Services API token (refresh token used for SDDC activation)
# This is a SECRET - do not commit to version control!
VMC_API_TOKEN = os.getenv("VMC_API_TOKEN", "")

# Cloud service hosts
HCX_CLOUD_URL = os.getenv("HCX_CLOUD_URL", "https://connect.hcx.vmware.com")
HCX_CLOUD_AUTH_URL = HCX_CLOUD_URL + "/provider/csp"
HCX_CLOUD_CONSUMER_URL = HCX_CLOUD_URL + "/provider/csp/consumer"
VMC_AUTH_URL = os.getenv("VMC_AUTH_URL", "https://console.cloud.vmware.com") + "/csp/gateway/am/api"

# HTTP timeouts (seconds)
HTTP_TIMEOUT = 60
ADMIN_HTTP_TIMEOUT = 300

# Login handshake
LOGIN_RETRY_DELAY = 180  # Wait 3 minutes before the single retry on a network failure
LOGIN_CERTIFICATE_WAIT = 10  # Re-try login every 10s while SSO trust is not configured

# Job / task polling (seconds)
JOB_POLL_INTERVAL = 5
TASK_POLL_INTERVAL = 5

# Site pairing
SITE_PAIRING_POLL_INTERVAL = 10
SITE_PAIRING_MAX_POLLS = 5
SITE_PAIRING_DELETE_POLL_INTERVAL = 5

# SDDC activation / deactivation
VMC_RETRY_INTERVAL = 10
VMC_MAX_RETRIES = 12
VMC_BACKOFF_BASE = 5
VMC_BACKOFF_MAX = 120

# App engine restart after vCenter registration
APP_ENGINE_POLL_INTERVAL = 5
APP_ENGINE_SETTLE_DELAY = 60  # Connector needs a moment after the daemon reports RUNNING

# Network extension appliances accept at most this many L2 extensions
APPLIANCE_EXTENSION_CAPACITY = 9

# Location reset values
DEFAULT_LATITUDE = 0.0
DEFAULT_LONGITUDE = 0.0
