from subfinder.models.notification_log import (  # noqa: F401
    NotificationLog,
    NotificationStatus,
    NotificationType,
)
from subfinder.models.organization import Organization  # noqa: F401
from subfinder.models.school_class import SchoolClass  # noqa: F401
from subfinder.models.setting import Setting  # noqa: F401
from subfinder.models.substitute_request import RequestEvent, RequestStatus, SubstituteRequest  # noqa: F401
from subfinder.models.user import User, UserRole  # noqa: F401
