"""Constants for the Humio Alert Operator."""

# API Group
API_GROUP = "core.humio.com"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_ALERT = "HumioAlert"
KIND_CLUSTER = "HumioCluster"
KIND_EXTERNAL_CLUSTER = "HumioExternalCluster"

# Plurals
PLURAL_ALERTS = "humioalerts"
PLURAL_CLUSTERS = "humioclusters"
PLURAL_EXTERNAL_CLUSTERS = "humioexternalclusters"

# Annotations
ANNOTATION_ALERT_ID = "humio.com/alert-id"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Controller
CONTROLLER_NAME = "humio-alert-operator"

# Alert States
STATE_EXISTS = "Exists"
STATE_NOT_FOUND = "NotFound"
STATE_CONFIG_ERROR = "ConfigError"

# Condition Types
COND_READY = "Ready"

# Event Reasons
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_ALERT_CREATED = "AlertCreated"
EVENT_REASON_ALERT_UPDATED = "AlertUpdated"
EVENT_REASON_ALERT_DELETED = "AlertDeleted"
EVENT_REASON_CONFIG_ERROR = "ConfigError"

# Cluster connection defaults
CLUSTER_PORT = 8080
API_TOKEN_SECRET_KEY = "token"
ADMIN_TOKEN_SECRET_SUFFIX = "-admin-token"
DEFAULT_QUERY_START = "24h"
