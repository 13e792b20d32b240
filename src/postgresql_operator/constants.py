"""Constants for the PostgreSQL Operator."""

# API Group
API_GROUP = "postgresql.baiju.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_DATABASE = "Database"
PLURAL_DATABASE = "databases"

# Child naming
SERVICE_NAME = "postgresql"
CHILD_NAME_SUFFIX = f"-{SERVICE_NAME}"

# Labels
LABEL_APP = "app"

# Field Manager
FIELD_MANAGER = "postgresql-operator"

# Config set keys
DB_HOST_KEY = "db.host"
DB_PORT_KEY = "db.port"
DB_USERNAME_KEY = "db.user"
DB_PASSWORD_KEY = "db.password"
DB_NAME_KEY = "db.name"

# Credential store keys
SECRET_USER_KEY = "user"
SECRET_PASSWORD_KEY = "password"

# Workload
DEFAULT_DB_NAME = "postgres"
POSTGRES_PORT = 5432
PGDATA_PATH = "/var/lib/postgresql/data/pgdata"
ENV_POSTGRES_USER = "POSTGRES_USER"
ENV_POSTGRES_PASSWORD = "POSTGRES_PASSWORD"
ENV_POSTGRES_DB = "POSTGRES_DB"
ENV_PGDATA = "PGDATA"

# Legacy fixed credentials
DEFAULT_DB_USER = "postgres"
DEFAULT_DB_PASSWORD = "password"

# Status fields
STATUS_DB_NAME = "dbName"
STATUS_CONNECTION_ADDRESS = "connectionAddress"
STATUS_CONNECTION_PORT = "connectionPort"
STATUS_CREDENTIALS_REF = "credentialsRef"
STATUS_CONFIG_REF = "configRef"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_CHILD_CREATED = "ChildCreated"
