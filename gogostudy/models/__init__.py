from gogostudy.models.user import AuthProvider, Role, User, UserStatus  # noqa: F401
from gogostudy.models.study import MemberRole, MemberStatus, Study, StudyMember, StudyStatus  # noqa: F401
from gogostudy.models.attendance import AttendanceRecord, AttendanceSession, AttendanceStatus  # noqa: F401
from gogostudy.models.admin_log import AdminAction, AdminActionLog  # noqa: F401
