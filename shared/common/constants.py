"""
Shared Constants Module.

Common constants used across the stadium reservation services.
"""
from enum import Enum

# =============================================================================
# SYSTEM CONSTANTS
# =============================================================================

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Cache TTL (seconds)
CACHE_TTL_SHORT = 60  # 1 minute


# =============================================================================
# ACTORS
# =============================================================================

class ActorRole(str, Enum):
    """Roles an authenticated actor can carry."""
    USER = "user"
    STAFF = "staff"
    STADIUM_OWNER = "stadium_owner"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


# Highest privilege first
PRIVILEGED_ROLES = (
    ActorRole.SUPERADMIN.value,
    ActorRole.ADMIN.value,
    ActorRole.STADIUM_OWNER.value,
    ActorRole.STAFF.value,
)

ADMIN_ROLES = (
    ActorRole.SUPERADMIN.value,
    ActorRole.ADMIN.value,
)

SYSTEM_ACTOR = "system"


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_TIMEZONE = "Asia/Vientiane"
DEFAULT_CURRENCY = "LAK"
