"""
Centralized Constants for the Automation Flows Backend.
All hardcoded values should be defined here for easy maintenance.
"""

# ============================================
# DATABASE POOL SETTINGS
# ============================================
DB_POOL_SIZE = 5
DB_MAX_OVERFLOW = 10
DB_POOL_RECYCLE = 300

# ============================================
# PAGINATION
# ============================================
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# ============================================
# FLOW EDITOR LAYOUT
# ============================================
NODE_COLUMN_X = 250       # New nodes are stacked in a single column
NODE_ROW_SPACING = 100    # Vertical gap between stacked nodes

DEFAULT_TRIGGER_NODE_ID = "1"
DEFAULT_TRIGGER_LABEL = "Flow Started"

# Route placeholder used by the UI for a flow that was never saved
NEW_FLOW_ID = "new"

# ============================================
# IDENTITY HEADERS (forwarded from the cached user record)
# ============================================
HEADER_USER_ID = "x-user-id"
HEADER_USER_ROLE = "x-user-role"
HEADER_USER_NAME = "x-user-name"
HEADER_USER = "x-user"
HEADER_REQUEST_ID = "X-Request-ID"

# ============================================
# QUERY CACHE KEYS
# ============================================
CACHE_PREFIX_FLOWS = "flows"
CACHE_PATTERN_FLOWS = f"{CACHE_PREFIX_FLOWS}:*"
