"""Core constants: backend error codes, table names and key prefixes.

Backend error codes are opaque classification keys; they are mapped onto
ErrorKind by fiscalhub.application.services.retry_executor.classify_error_code.
"""

# Backend error codes (PostgREST / Postgres) by class
CODE_JWT_INVALID = "PGRST301"
CODE_INSUFFICIENT_PRIVILEGE = "42501"
CODE_SINGLE_ROW_NOT_FOUND = "PGRST116"
CODE_UNIQUE_VIOLATION = "23505"

# Backend-neutral classification keys (same strings as ErrorKind values)
KEY_FORBIDDEN = "forbidden"
KEY_NOT_FOUND = "not-found"
KEY_DUPLICATE = "duplicate"

FORBIDDEN_CODES = frozenset(
    {CODE_JWT_INVALID, CODE_INSUFFICIENT_PRIVILEGE, "401", "403", KEY_FORBIDDEN}
)
NOT_FOUND_CODES = frozenset({CODE_SINGLE_ROW_NOT_FOUND, "404", KEY_NOT_FOUND})
CONFLICT_CODES = frozenset({CODE_UNIQUE_VIOLATION, "409", KEY_DUPLICATE})

# Fallback message when a failure carries no message
UNKNOWN_ERROR_MESSAGE = "Unknown error"

# Tables (relational collections owned by the Backend Service)
TABLE_CLIENTS = "clients"
TABLE_FOLDERS = "folders"
TABLE_FILES = "files"
TABLE_PROFILES = "profiles"
TABLE_USER_ROLES = "user_roles"
TABLE_ACCOUNTANT_CLIENTS = "accountant_clients"
TABLE_APP_PERMISSIONS = "app_permissions"

# Privileged RPC function names
RPC_CREATE_USER = "create-user"
RPC_UPDATE_CREDENTIALS = "update-accountant-auth"

# Collection key prefixes (per-view caches)
COLLECTION_KEY_SEP = ":"
KEY_CLIENTS = "clients"
KEY_ACCOUNTANTS = "accountants"
KEY_SITE_USERS = "site-users"
KEY_FOLDERS = "folders"
KEY_FILES = "files"
KEY_PERMISSIONS = "permissions"

# User-facing messages
ALREADY_LINKED_MESSAGE = "This accountant is already linked to this client"
