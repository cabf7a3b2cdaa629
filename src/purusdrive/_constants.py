"""Internal constants shared across the library."""

DEFAULT_CONTAINER_ID = "iCloud.com.purus.driver"
DEFAULT_ZONE_NAME = "com.apple.coredata.cloudkit.zone"
DEFAULT_BASE_URL = "https://api.apple-cloudkit.com"
USER_AGENT = "purusdrive/0.4"

STORE_FILE_NAME = "default.store"
PREFERENCES_FILE_NAME = "preferences.json"

# Every remote field name and record type carries this namespace prefix.
FIELD_PREFIX = "CD_"

# Sort key understood by the record query endpoint (server creation time).
CREATION_TIME_SORT_KEY = "___createTime"

# Maximum number of operations in a single records/modify request.
MODIFY_BATCH_LIMIT = 200

# ------------------------------------------------------------------
# Server error codes
# ------------------------------------------------------------------

ZONE_EXISTS_CODES: frozenset[str] = frozenset({"SERVER_REJECTED_REQUEST", "ZONE_ALREADY_EXISTS"})
PERMANENT_ERROR_CODES: frozenset[str] = frozenset(
    {
        "ACCESS_DENIED",
        "AUTHENTICATION_FAILED",
        "AUTHENTICATION_REQUIRED",
        "BAD_REQUEST",
        "QUOTA_EXCEEDED",
        "INCOMPATIBLE_VERSION",
    }
)

# ------------------------------------------------------------------
# One-time migration checkpoints
# ------------------------------------------------------------------

CHECKLIST_OWNERSHIP_MIGRATION = "checklist_ownership_v1"
INITIAL_CLOUD_PUSH_MIGRATION = "initial_cloud_push_v1"
