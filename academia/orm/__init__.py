from .base import Base, BaseModel

from .user import User, UserRole
from .department import Department
from .course import Course
from .clo import CLO
from .faculty_assignment import FacultyCourseAssignment
from .content import Content, ContentType
from .activity_log import ActivityLog
