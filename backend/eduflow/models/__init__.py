from eduflow.models.batch import Batch  # noqa: F401
from eduflow.models.center import Center  # noqa: F401
from eduflow.models.course import Course  # noqa: F401
from eduflow.models.notification import (  # noqa: F401
    AcademicNotification,
    NotificationType,
    TeacherNotification,
)
from eduflow.models.teacher import Teacher  # noqa: F401
from eduflow.models.teacher_batch_request import (  # noqa: F401
    RequestStatus,
    RequestType,
    TeacherBatchRequest,
)
from eduflow.models.user import User, UserRole  # noqa: F401
