"""Dashboard service for admin statistics."""

from decimal import ROUND_HALF_UP, Decimal

from app.models.exam import ExamResult, ResultStatus
from app.schemas.dashboard import DashboardStats, StatusBreakdown
from app.schemas.exam import ExamResponse
from app.services.store import ResultStore

RECENT_EXAMS_LIMIT = 5


class DashboardService:
    """Dashboard data aggregation service."""

    def __init__(self, store: ResultStore):
        self.store = store

    def get_stats(self) -> DashboardStats:
        results = self.store.list_all_results()

        return DashboardStats(
            total_exams=self.store.count_exams(),
            total_results=len(results),
            unique_students=len({r.mobile_number for r in results}),
            statuses=self._status_breakdown(results),
            average_percentage=self._average_percentage(results),
            total_marks_awarded=sum((r.scored_mark or Decimal(0) for r in results), Decimal(0)),
            recent_exams=[
                ExamResponse.model_validate(exam)
                for exam in self.store.recent_exams(RECENT_EXAMS_LIMIT)
            ],
        )

    def _status_breakdown(self, results: list[ExamResult]) -> StatusBreakdown:
        """Count rows per status.

        Only exact status names are counted as pass/fail/pending; text such
        as "Passed with grace" lands in ``unrecognized``.
        """
        breakdown = StatusBreakdown()
        for result in results:
            status = ResultStatus.classify(result.status)
            if status == ResultStatus.PASS:
                breakdown.passed += 1
            elif status == ResultStatus.FAIL:
                breakdown.failed += 1
            elif status == ResultStatus.PENDING:
                breakdown.pending += 1
            else:
                breakdown.unrecognized += 1
        return breakdown

    def _average_percentage(self, results: list[ExamResult]) -> Decimal:
        percentages = [
            Decimal(r.scored_mark) / Decimal(r.total_mark) * 100
            for r in results
            if r.total_mark and r.scored_mark is not None
        ]
        if not percentages:
            return Decimal("0.00")
        average = sum(percentages, Decimal(0)) / len(percentages)
        return average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
