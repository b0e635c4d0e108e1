"""
Unit tests for grading rules and report card aggregation.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from campus.modules.grades.models import AssessmentType, Grade
from campus.modules.grades.service import (
    class_performance,
    grade_distribution,
    letter_grade,
    percentage,
    school_analytics,
    subject_results,
    validate_score,
)
from campus.modules.shared.errors import InvalidRequestError
from factories import make_class, make_student, make_subject


def _grade(subject_id: str, score: str, max_score: str = "100") -> Grade:
    return Grade(
        student_id="student-1",
        subject_id=subject_id,
        academic_term_id="term-1",
        assessment_type=AssessmentType.TEST,
        score=Decimal(score),
        max_score=Decimal(max_score),
    )


class TestLetterGrade:
    """Tests for letter_grade."""

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (100, "A"),
            (80, "A"),
            (79.99, "B"),
            (70, "B"),
            (60, "C"),
            (50, "D"),
            (40, "E"),
            (39.5, "F"),
            (0, "F"),
        ],
    )
    def test_boundaries(self, score, expected):
        assert letter_grade(Decimal(str(score)), Decimal("100")) == expected

    def test_uses_percentage_of_max_score(self):
        """40 out of 50 is 80 percent."""
        assert letter_grade(Decimal("40"), Decimal("50")) == "A"

    def test_zero_max_score(self):
        assert percentage(Decimal("5"), Decimal("0")) == 0.0


class TestValidateScore:
    """Tests for validate_score."""

    def test_accepts_bounds(self):
        validate_score(Decimal("0"), Decimal("50"))
        validate_score(Decimal("50"), Decimal("50"))

    @pytest.mark.parametrize("score", ["-1", "50.5"])
    def test_rejects_out_of_range(self, score):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_score(Decimal(score), Decimal("50"))
        assert exc_info.value.error_code == "INVALID_SCORE"


class TestSubjectResults:
    """Tests for subject_results."""

    def test_averages_percentages_per_subject(self, school):
        maths = make_subject(school)
        english = make_subject(school, name="English", code="ENG")
        grades = [
            _grade(maths.id, "40", "50"),
            _grade(maths.id, "60"),
            _grade(english.id, "90"),
        ]

        results = subject_results(grades, {maths.id: maths, english.id: english})

        assert [r.subject_name for r in results] == ["English", "Mathematics"]
        english_result, maths_result = results
        assert english_result.average == 90.0
        assert english_result.grade == "A"
        assert maths_result.assessments == 2
        assert maths_result.average == 70.0
        assert maths_result.grade == "B"
        assert maths_result.subject_code == "MATH"

    def test_missing_subject_has_blank_name(self):
        results = subject_results([_grade("gone", "55")], {})
        assert results[0].subject_name == ""
        assert results[0].grade == "D"

    def test_no_grades(self):
        assert subject_results([], {}) == []


def _scalars(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


class TestGradeDistribution:
    """Tests for grade_distribution."""

    def test_counts_every_letter(self):
        bands = grade_distribution([95.0, 81.0, 72.5, 10.0])
        assert [(b.grade, b.count) for b in bands] == [
            ("A", 2),
            ("B", 1),
            ("C", 0),
            ("D", 0),
            ("E", 0),
            ("F", 1),
        ]

    def test_empty(self):
        assert all(b.count == 0 for b in grade_distribution([]))


class TestClassPerformance:
    """Tests for class_performance."""

    @pytest.mark.asyncio
    async def test_averages_per_student(self, mock_db, school):
        school_class = make_class(school)
        maths = make_subject(school)
        first = make_student(school, class_id=school_class.id, student_number="ADM-001")
        second = make_student(school, class_id=school_class.id, student_number="ADM-002")
        grades = [_grade(maths.id, "80"), _grade(maths.id, "60")]
        for grade in grades:
            grade.student_id = first.id
        mock_db.execute.side_effect = [_scalars([first, second]), _scalars(grades), _scalars([maths])]

        report = await class_performance(mock_db, school_class)

        assert report.class_name == "Grade 4"
        graded, ungraded = report.students
        assert graded.student_id == first.id
        assert graded.subjects[0].average == 70.0
        assert graded.overall_grade == "B"
        assert ungraded.subjects == []
        assert ungraded.overall_average is None
        assert report.class_average == 70.0

    @pytest.mark.asyncio
    async def test_empty_class(self, mock_db, school):
        mock_db.execute.side_effect = [_scalars([]), _scalars([])]

        report = await class_performance(mock_db, make_class(school))

        assert report.students == []
        assert report.class_average is None


class TestSchoolAnalytics:
    """Tests for school_analytics."""

    @pytest.mark.asyncio
    async def test_grade_spread(self, mock_db, school):
        stats = MagicMock(name="stats")
        rows = MagicMock()
        rows.all.return_value = [(Decimal("45"), Decimal("50")), (Decimal("30"), Decimal("100"))]
        mock_db.execute.return_value = rows

        with (
            patch("campus.modules.grades.service.get_school_stats", new=AsyncMock(return_value=stats)),
            patch("campus.modules.grades.service.SchoolAnalyticsResponse") as response,
        ):
            await school_analytics(mock_db, school.id)

        fields = response.call_args.kwargs
        assert fields["stats"] is stats
        assert fields["graded_assessments"] == 2
        assert fields["average_grade"] == 60.0
        assert {b.grade: b.count for b in fields["grade_distribution"]}["A"] == 1
