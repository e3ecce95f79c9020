from .user import RefreshToken, User  # noqa: F401
from .resident import Resident  # noqa: F401
from .meal_order import MealOrder  # noqa: F401
from .alert import Alert  # noqa: F401
from .audit_log import AuditLog  # noqa: F401
from .versioned_record import VersionedRecord  # noqa: F401
