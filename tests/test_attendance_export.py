"""
스터디 출석 기록 CSV / XLSX export 테스트.
- 리더 접근, attachment 헤더, CSV BOM + 헤더/데이터 행,
  XLSX 시그니처(PK) 및 openpyxl 로 다시 읽었을 때의 내용,
  잘못된 format / 권한 없는 사용자 차단 확인.
"""

import csv
import io

from openpyxl import load_workbook

from tests.helpers import auth_header, create_session, create_study, join_and_approve, register

EXPECTED_HEADER = ["session_title", "session_date", "user_name", "user_email", "status", "recorded_at"]


def _parse_csv_text(text: str) -> list[list[str]]:
    text = text.lstrip("\ufeff")
    return list(csv.reader(io.StringIO(text)))


def _setup(client):
    leader = register(client, name="리더")
    member = register(client, name="김멤버")
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"], title="1주차")
    r = client.post(
        f"/studies/{study['id']}/sessions/{session['id']}/attendance",
        json={"status": "LATE"},
        headers=auth_header(member["accessToken"]),
    )
    assert r.status_code == 201, r.text
    return leader, member, study


def test_export_csv_ok(client):
    leader, member, study = _setup(client)

    res = client.get(
        f"/studies/{study['id']}/attendance/export?format=csv",
        headers=auth_header(leader["accessToken"]),
    )
    assert res.status_code == 200, res.text
    assert res.headers.get("content-type", "").startswith("text/csv")
    cd = res.headers.get("content-disposition", "")
    assert "attachment" in cd
    assert study["id"] in cd

    # Excel 호환 BOM
    assert res.content.startswith(b"\xef\xbb\xbf")

    rows = _parse_csv_text(res.content.decode("utf-8"))
    assert rows[0] == EXPECTED_HEADER
    assert len(rows) == 2
    assert rows[1][0] == "1주차"
    assert rows[1][2] == "김멤버"
    assert rows[1][3] == member["user"]["email"]
    assert rows[1][4] == "LATE"


def test_export_defaults_to_csv(client):
    leader, _, study = _setup(client)

    res = client.get(f"/studies/{study['id']}/attendance/export", headers=auth_header(leader["accessToken"]))
    assert res.status_code == 200
    assert res.headers.get("content-type", "").startswith("text/csv")


def test_export_xlsx_ok(client):
    leader, member, study = _setup(client)

    res = client.get(
        f"/studies/{study['id']}/attendance/export?format=xlsx",
        headers=auth_header(leader["accessToken"]),
    )
    assert res.status_code == 200, res.text
    ct = res.headers.get("content-type", "")
    assert ct.startswith("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert "attachment" in res.headers.get("content-disposition", "")

    # XLSX는 ZIP 기반 포맷이라 앞부분이 PK로 시작
    assert res.content[:2] == b"PK"

    wb = load_workbook(io.BytesIO(res.content))
    ws = wb.active
    rows = [list(r) for r in ws.iter_rows(values_only=True)]
    assert rows[0] == EXPECTED_HEADER
    assert rows[1][2] == "김멤버"
    assert rows[1][3] == member["user"]["email"]
    assert rows[1][4] == "LATE"


def test_export_invalid_format_400(client):
    leader, _, study = _setup(client)

    res = client.get(
        f"/studies/{study['id']}/attendance/export?format=pdf",
        headers=auth_header(leader["accessToken"]),
    )
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_PAYLOAD"


def test_export_forbidden_for_member(client):
    _, member, study = _setup(client)

    res = client.get(
        f"/studies/{study['id']}/attendance/export?format=csv",
        headers=auth_header(member["accessToken"]),
    )
    assert res.status_code == 403
