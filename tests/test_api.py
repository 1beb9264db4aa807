from decimal import Decimal
from io import BytesIO

import pytest
from openpyxl import load_workbook

from app.core.config import XLSX_CONTENT_TYPE
from app.schemas.common import ErrorResponse
from tests.support import build_workbook, valid_row

UPLOAD_URL = "/api/v1/uploads/exams"


def upload(client, headers, rows, title="Midterm", content_type=XLSX_CONTENT_TYPE, **form):
    return client.post(
        UPLOAD_URL,
        headers=headers,
        files={"file": ("results.xlsx", build_workbook(rows), content_type)},
        data={"title": title, **form},
    )


@pytest.fixture()
def uploaded_exam_id(client, admin_headers):
    response = upload(
        client,
        admin_headers,
        [valid_row("S1"), valid_row("S2", "9876543211")],
        exam_date="2025-03-01",
    )
    assert response.status_code == 200, response.text
    return response.json()["exam_id"]


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_upload_requires_admin(client, regular_user, login):
    response = upload(client, login(regular_user), [valid_row()])

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "PERMISSION_DENIED"


def test_upload_creates_exam(client, admin_headers, uploaded_exam_id):
    exams = client.get("/api/v1/exams").json()

    assert [(e["id"], e["title"], e["exam_date"], e["result_count"]) for e in exams] == [
        (uploaded_exam_id, "Midterm", "2025-03-01", 2)
    ]


def test_invalid_upload_reports_rows_and_saves_nothing(client, admin_headers):
    rows = [valid_row("S1"), valid_row("S2"), valid_row("S3", "12345"), valid_row("S4"), valid_row("S5")]

    response = upload(client, admin_headers, rows)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "failed"
    assert body["errors"] == [{"row": 3, "message": "Invalid mobile number format (should be 10 digits)"}]
    assert client.get("/api/v1/exams").json() == []


def test_upload_of_wrong_type_is_rejected(client, admin_headers):
    response = upload(client, admin_headers, [valid_row()], content_type="text/csv")

    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        "Invalid file type. Please upload an Excel file (.xlsx or .xls)"
    )


def test_public_lookup_by_mobile_number(client, uploaded_exam_id):
    response = client.get(
        f"/api/v1/exams/{uploaded_exam_id}/lookup",
        params={"mobile_number": "9876543211"},
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert len(results) == 1
    assert results[0]["student_id"] == "S2"
    assert Decimal(results[0]["total_mark"]) == Decimal("100")
    assert Decimal(results[0]["scored_mark"]) == Decimal("85")


def test_lookup_with_blank_number(client, uploaded_exam_id):
    response = client.get(
        f"/api/v1/exams/{uploaded_exam_id}/lookup",
        params={"mobile_number": "  "},
    )

    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Mobile number is required"


def test_lookup_of_unknown_exam(client):
    response = client.get("/api/v1/exams/999/lookup", params={"mobile_number": "9876543210"})

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_results_table_needs_a_session(client, uploaded_exam_id):
    response = client.get(
        f"/api/v1/exams/{uploaded_exam_id}/results",
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert response.status_code == 401


def test_edit_results_table(client, admin_headers, uploaded_exam_id):
    url = f"/api/v1/exams/{uploaded_exam_id}/results"
    rows = client.get(url, headers=admin_headers).json()
    first = rows[0]
    payload = {
        "rows": [
            {**first, "scored_mark": "90", "status": "Pass"},
            {
                "id": "temp-1",
                "student_id": "S3",
                "mobile_number": "9876543212",
                "total_mark": "",
                "scored_mark": "",
                "status": "",
            },
        ]
    }

    response = client.put(url, headers=admin_headers, json=payload)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "success"
    assert (body["inserted_rows"], body["updated_rows"]) == (1, 1)
    by_student = {row["student_id"]: row for row in body["rows"]}
    assert set(by_student) == {"S1", "S2", "S3"}
    assert Decimal(by_student["S1"]["scored_mark"]) == Decimal("90")
    assert by_student["S3"]["status"] == "Pending"
    assert by_student["S3"]["total_mark"] is None


def test_invalid_edit_is_rejected(client, admin_headers, uploaded_exam_id):
    url = f"/api/v1/exams/{uploaded_exam_id}/results"
    first = client.get(url, headers=admin_headers).json()[0]

    response = client.put(
        url,
        headers=admin_headers,
        json={"rows": [{**first, "total_mark": "70", "scored_mark": "80"}]},
    )

    body = response.json()
    assert body["status"] == "failed"
    assert body["errors"][0]["message"] == "Scored mark (80) cannot be greater than total mark (70)"
    stored = client.get(url, headers=admin_headers).json()
    assert Decimal(stored[0]["scored_mark"]) == Decimal("85")


def test_delete_result_row(client, admin_headers, uploaded_exam_id):
    url = f"/api/v1/exams/{uploaded_exam_id}/results"
    target = client.get(url, headers=admin_headers).json()[0]

    response = client.delete(f"{url}/{target['id']}", headers=admin_headers)

    assert response.status_code == 200
    assert len(client.get(url, headers=admin_headers).json()) == 1


def test_export_download(client, admin_headers, uploaded_exam_id):
    response = client.get(f"/api/v1/exams/{uploaded_exam_id}/export", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_CONTENT_TYPE
    assert response.headers["content-disposition"] == 'attachment; filename="Midterm-results.xlsx"'
    sheet = load_workbook(BytesIO(response.content)).active
    assert [c.value for c in sheet[2]] == ["S1", "9876543210", 100, 85, "Pass"]


def test_delete_exam(client, admin_headers, uploaded_exam_id):
    response = client.delete(f"/api/v1/exams/{uploaded_exam_id}", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/api/v1/exams/{uploaded_exam_id}").status_code == 404


def test_dashboard(client, admin_headers, uploaded_exam_id):
    response = client.get("/api/v1/dashboard", headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_exams"] == 1
    assert body["total_results"] == 2
    assert body["statuses"]["passed"] == 2


def test_upload_preview_saves_nothing(client, admin_headers):
    rows = [valid_row(f"S{i}", f"98765432{i:02d}") for i in range(1, 8)]

    response = client.post(
        f"{UPLOAD_URL}/preview",
        headers=admin_headers,
        files={"file": ("results.xlsx", build_workbook(rows), XLSX_CONTENT_TYPE)},
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["total_rows"] == 7
    assert body["message"] == "Found 7 records"
    assert [row["student_id"] for row in body["rows"]] == ["S1", "S2", "S3", "S4", "S5"]
    assert body["errors"] == []
    assert client.get("/api/v1/exams").json() == []


def test_upload_preview_requires_admin(client, regular_user, login):
    response = client.post(
        f"{UPLOAD_URL}/preview",
        headers=login(regular_user),
        files={"file": ("results.xlsx", build_workbook([valid_row()]), XLSX_CONTENT_TYPE)},
    )

    assert response.status_code == 403


def test_edit_with_non_ascii_mark_text_is_refused(client, admin_headers, uploaded_exam_id):
    url = f"/api/v1/exams/{uploaded_exam_id}/results"
    first = client.get(url, headers=admin_headers).json()[0]

    response = client.put(url, headers=admin_headers, json={"rows": [{**first, "scored_mark": "٩٠"}]})

    assert response.status_code == 422
    stored = client.get(url, headers=admin_headers).json()
    assert Decimal(stored[0]["scored_mark"]) == Decimal("85")


def test_error_bodies_share_one_envelope(client, admin_headers):
    not_found = client.get("/api/v1/exams/999/lookup", params={"mobile_number": "9876543210"})
    invalid = client.put("/api/v1/exams/999/results", headers=admin_headers, json={"rows": "x"})

    for response in (not_found, invalid):
        body = ErrorResponse.model_validate(response.json())
        assert body.success is False
    assert ErrorResponse.model_validate(not_found.json()).error.code == "NOT_FOUND"
    assert ErrorResponse.model_validate(invalid.json()).error.code == "VALIDATION_ERROR"
