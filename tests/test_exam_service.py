from datetime import date
from decimal import Decimal
from unittest import mock

import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.schemas.exam import CanonicalResultRow, EditableResultRow
from app.schemas.upload import BatchStatus
from app.services.exam import ExamService


def canonical(student_id: str, mobile_number: str, scored: str = "85", status: str = "Pass") -> CanonicalResultRow:
    return CanonicalResultRow(
        student_id=student_id,
        mobile_number=mobile_number,
        total_mark=Decimal("100"),
        scored_mark=Decimal(scored),
        status=status,
    )


@pytest.fixture()
def exam(store):
    exam = store.create_exam("Midterm", date(2025, 3, 1))
    store.insert_results(
        exam.id,
        [canonical("S1", "9876543210"), canonical("S2", "9876543211", "40", "Fail")],
    )
    return exam


def test_lookup_returns_only_matching_rows(store, exam):
    response = ExamService(store).lookup(exam.id, " 9876543210 ")

    assert response.mobile_number == "9876543210"
    assert response.exam.title == "Midterm"
    assert [r.student_id for r in response.results] == ["S1"]


def test_lookup_with_unknown_number_is_empty(store, exam):
    assert ExamService(store).lookup(exam.id, "1111111111").results == []


def test_lookup_is_scoped_to_the_exam(store, exam):
    other = store.create_exam("Final")
    store.insert_results(other.id, [canonical("S9", "9876543210")])

    response = ExamService(store).lookup(exam.id, "9876543210")

    assert [r.student_id for r in response.results] == ["S1"]


def test_lookup_requires_a_number(store, exam):
    with pytest.raises(ValidationError):
        ExamService(store).lookup(exam.id, "   ")


def test_lookup_of_missing_exam(store):
    with pytest.raises(NotFoundError):
        ExamService(store).lookup(999, "9876543210")


def test_list_exams_orders_by_exam_date(store):
    store.create_exam("Undated")
    store.create_exam("Older", date(2024, 1, 1))
    store.create_exam("Newer", date(2025, 1, 1))

    exams = ExamService(store).list_exams()

    assert [e.title for e in exams] == ["Newer", "Older", "Undated"]
    assert all(e.result_count == 0 for e in exams)


def test_save_inserts_new_rows_and_replaces_existing(store, exam):
    existing = store.list_results(exam.id)[0]
    rows = [
        EditableResultRow(id=existing.id, student_id="S1", mobile_number="9876543210",
                          total_mark=Decimal("100"), scored_mark=Decimal("90"), status="Pass"),
        EditableResultRow(id="temp-1", student_id="S3", mobile_number="9876543212",
                          total_mark=Decimal("100"), scored_mark=None, status=""),
    ]
    service = ExamService(store)

    with mock.patch.object(store, "insert_results", wraps=store.insert_results) as insert, \
            mock.patch.object(store, "upsert_results", wraps=store.upsert_results) as upsert, \
            mock.patch.object(store, "list_results", wraps=store.list_results) as reload:
        result = service.save_results(exam.id, rows)

    insert.assert_called_once()
    assert len(insert.call_args.args[1]) == 1
    upsert.assert_called_once()
    assert [result_id for result_id, _ in upsert.call_args.args[1]] == [existing.id]
    reload.assert_called_once_with(exam.id)

    assert result.status == BatchStatus.SUCCESS
    assert (result.inserted_rows, result.updated_rows) == (1, 1)
    assert result.message == "Updated 2 record(s)"

    by_student = {r.student_id: r for r in result.rows}
    assert set(by_student) == {"S1", "S2", "S3"}
    assert by_student["S1"].scored_mark == Decimal("90")
    assert by_student["S3"].status == "Pending"
    assert by_student["S3"].scored_mark is None


def test_save_with_invalid_row_writes_nothing(store, exam):
    rows = [
        EditableResultRow(id="temp-1", student_id="S3", mobile_number="9876543212"),
        EditableResultRow(id="temp-2", student_id="", mobile_number="12345"),
    ]

    with mock.patch.object(store, "insert_results") as insert, \
            mock.patch.object(store, "upsert_results") as upsert:
        result = ExamService(store).save_results(exam.id, rows)

    assert result.status == BatchStatus.FAILED
    assert [(e.row, e.message) for e in result.errors] == [
        (2, "Student ID is required"),
        (2, "Invalid mobile number format (should be 10 digits)"),
    ]
    insert.assert_not_called()
    upsert.assert_not_called()
    assert store.count_results(exam.id) == 2


def test_save_rejects_rows_of_another_exam(store, exam):
    other = store.create_exam("Final")
    foreign = store.insert_results(other.id, [canonical("S9", "9876543219")])[0]
    rows = [EditableResultRow(id=foreign.id, student_id="S9", mobile_number="9876543219")]

    with pytest.raises(NotFoundError):
        ExamService(store).save_results(exam.id, rows)

    assert store.get_result(foreign.id).exam_id == other.id


@pytest.mark.parametrize("result_id", ["abc", "1_000", "+7", "١٢"])
def test_save_rejects_malformed_ids(store, exam, result_id):
    rows = [EditableResultRow(id=result_id, student_id="S9", mobile_number="9876543219")]

    with pytest.raises(ValidationError):
        ExamService(store).save_results(exam.id, rows)


def test_delete_result_checks_ownership(store, exam):
    other = store.create_exam("Final")
    foreign = store.insert_results(other.id, [canonical("S9", "9876543219")])[0]
    service = ExamService(store)

    with pytest.raises(NotFoundError):
        service.delete_result(exam.id, foreign.id)

    target = store.list_results(exam.id)[0]
    service.delete_result(exam.id, target.id)
    assert store.count_results(exam.id) == 1


def test_delete_exam_removes_its_results(store, exam):
    ExamService(store).delete_exam(exam.id)

    assert store.get_exam(exam.id) is None
    assert store.list_all_results() == []


def test_export_uses_stored_rows(store, exam):
    filename, content = ExamService(store).export_results(exam.id)

    assert filename == "Midterm-results.xlsx"
    assert content.startswith(b"PK")
