# app/services/analytics_service.py
import logging
from app.core.errors import ForbiddenError
from app.database.assignment_repo import AssignmentRepo
from app.database.submission_repo import SubmissionRepo
from app.schemas.analytics import (
    AnalyticsOverview,
    AnalyticsReport,
    AssignmentAnalytics,
    SubmissionStats,
)
from app.schemas.context import Role, UserContext

logger = logging.getLogger("coursework.analytics")


class AnalyticsService:
    @staticmethod
    async def report(
        user: UserContext,
        assignments: AssignmentRepo,
        submissions: SubmissionRepo,
    ) -> AnalyticsReport:
        if user.role is not Role.TEACHER:
            raise ForbiddenError("Only teachers can access analytics", reason={"role": user.role.value})

        owned = await assignments.find_for_teacher(user.user_id)
        stats = await submissions.stats_by_assignment(a.assignmentId for a in owned)

        rows = []
        for a in owned:
            # assignment senza submission: riga a zero, non un errore
            s = stats.get(a.assignmentId) or SubmissionStats()
            rows.append(AssignmentAnalytics(
                assignmentId=a.assignmentId,
                title=a.title,
                status=a.status,
                dueDate=a.dueDate,
                totalSubmissions=s.totalSubmissions,
                reviewedSubmissions=s.reviewedSubmissions,
                pendingReviews=s.totalSubmissions - s.reviewedSubmissions,
                averageGrade=round(s.averageGrade, 2) if s.averageGrade is not None else None,
            ))

        total = sum(r.totalSubmissions for r in rows)
        reviewed = sum(r.reviewedSubmissions for r in rows)
        logger.debug("Analytics computed",
                     extra={"teacher_id": user.user_id, "assignments": len(rows), "submissions": total})
        return AnalyticsReport(
            overview=AnalyticsOverview(
                totalAssignments=len(owned),
                totalSubmissions=total,
                totalReviewed=reviewed,
                pendingReviews=total - reviewed,
            ),
            assignmentAnalytics=rows,
        )
