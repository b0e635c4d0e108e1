from fastapi import APIRouter

from campus.modules.academics.router import classes_router, subjects_router, terms_router
from campus.modules.admin.router import router as admin_router
from campus.modules.announcements.router import announcements_router, events_router
from campus.modules.attendance.router import router as attendance_router
from campus.modules.auth.router import router as auth_router
from campus.modules.dashboard.router import router as dashboard_router
from campus.modules.fees.router import router as fees_router
from campus.modules.grades.router import reports_router
from campus.modules.grades.router import router as grades_router
from campus.modules.messaging.router import messages_router, notifications_router
from campus.modules.parent_links.router import router as parent_links_router
from campus.modules.schools.router import router as schools_router
from campus.modules.students.router import router as students_router
from campus.modules.teachers.router import router as teachers_router
from campus.modules.timetables.router import router as timetables_router
from campus.modules.users.router import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(schools_router, prefix="/schools", tags=["Schools"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(terms_router, prefix="/terms", tags=["Academics"])
api_router.include_router(subjects_router, prefix="/subjects", tags=["Academics"])
api_router.include_router(classes_router, prefix="/classes", tags=["Academics"])

api_router.include_router(students_router, prefix="/students", tags=["Students"])
api_router.include_router(teachers_router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(timetables_router, prefix="/timetables", tags=["Timetables"])
api_router.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(grades_router, prefix="/grades", tags=["Grades"])
api_router.include_router(reports_router, prefix="/reports", tags=["Grades"])
api_router.include_router(fees_router, prefix="/fees", tags=["Fees"])

api_router.include_router(messages_router, prefix="/messages", tags=["Messaging"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Messaging"])
api_router.include_router(announcements_router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(events_router, prefix="/events", tags=["Announcements"])

api_router.include_router(parent_links_router, prefix="/parent-links", tags=["Parent Links"])
api_router.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
