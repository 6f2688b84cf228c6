"""
출석 세션 / 출석 체크 / 출석 통계 통합 테스트.
- 가입부터 출석 요약까지의 전체 흐름, 승인 전 접근 차단,
  같은 세션 재제출 시 기록 교체, 기간 필터, 출석률 계산을 검증한다.
"""

import uuid

from sqlalchemy import func, select

from gogostudy.models.attendance import AttendanceRecord, AttendanceSession

from tests.helpers import auth_header, create_session, create_study, join_and_approve, register


def _check_in(client, study_id, session_id, status, token):
    return client.post(
        f"/studies/{study_id}/sessions/{session_id}/attendance",
        json={"status": status},
        headers=auth_header(token),
    )


def test_full_flow_register_to_summary(client):
    leader = register(client, name="리더")
    member = register(client, name="멤버")
    study = create_study(client, leader["accessToken"], maxMembers=2)

    j = client.post(f"/studies/{study['id']}/join", headers=auth_header(member["accessToken"]))
    assert j.status_code == 201
    assert j.json()["membership"]["status"] == "PENDING"

    a = client.patch(
        f"/studies/{study['id']}/members/{member['user']['id']}/status",
        json={"status": "APPROVED"},
        headers=auth_header(leader["accessToken"]),
    )
    assert a.status_code == 200
    assert a.json()["membership"]["status"] == "APPROVED"

    session = create_session(client, study["id"], leader["accessToken"])

    c = _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])
    assert c.status_code == 201, c.text
    assert c.json()["record"]["status"] == "PRESENT"

    s = client.get(f"/studies/{study['id']}/attendance/summary", headers=auth_header(leader["accessToken"]))
    assert s.status_code == 200, s.text
    body = s.json()
    assert body["studyId"] == study["id"]
    assert body["totalSessions"] == 1
    assert body["summary"] == {"total": 1, "PRESENT": 1, "LATE": 0, "ABSENT": 0}
    assert body["members"][0]["user"]["id"] == member["user"]["id"]
    assert body["members"][0]["attendanceRate"] == 100


def test_pending_member_is_blocked_until_approved(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    session = create_session(client, study["id"], leader["accessToken"])
    client.post(f"/studies/{study['id']}/join", headers=auth_header(member["accessToken"]))

    listed = client.get(f"/studies/{study['id']}/sessions", headers=auth_header(member["accessToken"]))
    assert listed.status_code == 403
    assert listed.json()["code"] == "NOT_A_MEMBER"

    checked = _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])
    assert checked.status_code == 403
    assert checked.json()["code"] == "NOT_A_MEMBER"

    client.patch(
        f"/studies/{study['id']}/members/{member['user']['id']}/status",
        json={"status": "APPROVED"},
        headers=auth_header(leader["accessToken"]),
    )

    listed = client.get(f"/studies/{study['id']}/sessions", headers=auth_header(member["accessToken"]))
    assert listed.status_code == 200
    assert [s["id"] for s in listed.json()["sessions"]] == [session["id"]]

    checked = _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])
    assert checked.status_code == 201


def test_check_in_replaces_previous_record(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"])

    first = _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])
    second = _check_in(client, study["id"], session["id"], "LATE", member["accessToken"])
    assert first.status_code == 201 and second.status_code == 201
    assert first.json()["record"]["id"] == second.json()["record"]["id"]

    records = client.get(
        f"/studies/{study['id']}/sessions/{session['id']}/attendance",
        headers=auth_header(leader["accessToken"]),
    )
    assert records.status_code == 200, records.text
    body = records.json()
    assert body["sessionId"] == session["id"]
    assert len(body["records"]) == 1
    assert body["records"][0]["status"] == "LATE"
    assert body["records"][0]["user"]["id"] == member["user"]["id"]


def test_leader_can_check_in(client):
    leader = register(client)
    study = create_study(client, leader["accessToken"])
    session = create_session(client, study["id"], leader["accessToken"])

    r = _check_in(client, study["id"], session["id"], "ABSENT", leader["accessToken"])
    assert r.status_code == 201
    assert r.json()["record"]["status"] == "ABSENT"


def test_invalid_status_and_date(client):
    leader = register(client)
    study = create_study(client, leader["accessToken"])

    bad_date = client.post(
        f"/studies/{study['id']}/sessions",
        json={"title": "1주차", "date": "next tuesday"},
        headers=auth_header(leader["accessToken"]),
    )
    assert bad_date.status_code == 400
    assert bad_date.json()["code"] == "INVALID_DATE"

    session = create_session(client, study["id"], leader["accessToken"])
    bad_status = _check_in(client, study["id"], session["id"], "HERE", leader["accessToken"])
    assert bad_status.status_code == 400
    assert bad_status.json()["code"] == "INVALID_STATUS"

    bad_range = client.get(
        f"/studies/{study['id']}/attendance/summary?from=yesterday",
        headers=auth_header(leader["accessToken"]),
    )
    assert bad_range.status_code == 400
    assert bad_range.json()["code"] == "INVALID_DATE"


def test_session_not_found(client):
    leader = register(client)
    study = create_study(client, leader["accessToken"])

    r = _check_in(client, study["id"], str(uuid.uuid4()), "PRESENT", leader["accessToken"])
    assert r.status_code == 404
    assert r.json()["code"] == "SESSION_NOT_FOUND"


def test_summary_date_range_is_inclusive(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)

    day1 = create_session(client, study["id"], leader["accessToken"], title="day1", date="2025-03-01T10:00:00Z")
    day5 = create_session(client, study["id"], leader["accessToken"], title="day5", date="2025-03-05T10:00:00Z")
    _check_in(client, study["id"], day1["id"], "PRESENT", member["accessToken"])
    _check_in(client, study["id"], day5["id"], "LATE", member["accessToken"])

    ranged = client.get(
        f"/studies/{study['id']}/attendance/summary?from=2025-03-02T00:00:00Z&to=2025-03-10T00:00:00Z",
        headers=auth_header(leader["accessToken"]),
    )
    assert ranged.status_code == 200, ranged.text
    assert ranged.json()["summary"] == {"total": 1, "PRESENT": 0, "LATE": 1, "ABSENT": 0}

    # 경계값 포함
    exact = client.get(
        f"/studies/{study['id']}/attendance/summary?from=2025-03-01T10:00:00Z&to=2025-03-01T10:00:00Z",
        headers=auth_header(leader["accessToken"]),
    )
    assert exact.json()["summary"]["total"] == 1
    assert exact.json()["summary"]["PRESENT"] == 1

    everything = client.get(
        f"/studies/{study['id']}/attendance/summary",
        headers=auth_header(leader["accessToken"]),
    )
    assert everything.json()["summary"]["total"] == 2


def test_user_summary_rate_uses_all_sessions(client):
    leader = register(client)
    member = register(client)
    outsider = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)

    sessions = [
        create_session(client, study["id"], leader["accessToken"], title=f"s{i}", date=f"2025-04-0{i}T09:00:00Z")
        for i in range(1, 4)
    ]
    _check_in(client, study["id"], sessions[0]["id"], "PRESENT", member["accessToken"])
    _check_in(client, study["id"], sessions[1]["id"], "ABSENT", member["accessToken"])

    url = f"/studies/{study['id']}/attendance/users/{member['user']['id']}/summary"

    mine = client.get(url, headers=auth_header(member["accessToken"]))
    assert mine.status_code == 200, mine.text
    body = mine.json()
    assert body["totalSessions"] == 3
    assert body["summary"] == {"total": 2, "PRESENT": 1, "LATE": 0, "ABSENT": 1}
    assert body["attendanceRate"] == 33.33

    # 기간 필터는 집계에만 적용되고 분모는 전체 세션 수
    ranged = client.get(url + "?from=2025-04-02T00:00:00Z", headers=auth_header(leader["accessToken"]))
    assert ranged.json()["summary"]["total"] == 1
    assert ranged.json()["totalSessions"] == 3
    assert ranged.json()["attendanceRate"] == 0

    denied = client.get(url, headers=auth_header(outsider["accessToken"]))
    assert denied.status_code == 403


def test_user_summary_without_sessions(client):
    leader = register(client)
    study = create_study(client, leader["accessToken"])

    r = client.get(
        f"/studies/{study['id']}/attendance/users/{leader['user']['id']}/summary",
        headers=auth_header(leader["accessToken"]),
    )
    assert r.status_code == 200
    assert r.json()["totalSessions"] == 0
    assert r.json()["attendanceRate"] == 0


def test_summary_requires_leader_or_admin(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)

    r = client.get(f"/studies/{study['id']}/attendance/summary", headers=auth_header(member["accessToken"]))
    assert r.status_code == 403
    assert r.json()["code"] == "FORBIDDEN"


def test_bulk_attendance(client):
    leader = register(client)
    m1 = register(client)
    m2 = register(client)
    pending = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], m1)
    join_and_approve(client, study["id"], leader["accessToken"], m2)
    client.post(f"/studies/{study['id']}/join", headers=auth_header(pending["accessToken"]))
    session = create_session(client, study["id"], leader["accessToken"])
    url = f"/studies/{study['id']}/sessions/{session['id']}/attendance/bulk"

    # 본인이 먼저 PRESENT 로 체크
    _check_in(client, study["id"], session["id"], "PRESENT", m1["accessToken"])

    r = client.post(
        url,
        json={"records": [
            {"userId": m1["user"]["id"], "status": "LATE"},
            {"userId": m2["user"]["id"], "status": "ABSENT"},
        ]},
        headers=auth_header(leader["accessToken"]),
    )
    assert r.status_code == 201, r.text
    statuses = {rec["userId"]: rec["status"] for rec in r.json()["records"]}
    assert statuses == {m1["user"]["id"]: "LATE", m2["user"]["id"]: "ABSENT"}

    invalid = client.post(
        url,
        json={"records": [{"userId": pending["user"]["id"], "status": "PRESENT"}]},
        headers=auth_header(leader["accessToken"]),
    )
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "INVALID_MEMBERS"

    not_leader = client.post(
        url,
        json={"records": [{"userId": m2["user"]["id"], "status": "PRESENT"}]},
        headers=auth_header(m1["accessToken"]),
    )
    assert not_leader.status_code == 403


def test_session_attendance_by_session_id(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"])
    _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])

    r = client.get(f"/sessions/{session['id']}/attendance", headers=auth_header(leader["accessToken"]))
    assert r.status_code == 200, r.text
    assert r.json()["studyId"] == study["id"]
    assert len(r.json()["records"]) == 1

    denied = client.get(f"/sessions/{session['id']}/attendance", headers=auth_header(member["accessToken"]))
    assert denied.status_code == 403


def test_update_and_delete_session(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"])
    _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])

    upd = client.patch(
        f"/studies/{study['id']}/sessions/{session['id']}",
        json={"title": "바뀐 제목", "date": "2025-03-02T12:00:00+09:00"},
        headers=auth_header(leader["accessToken"]),
    )
    assert upd.status_code == 200, upd.text
    assert upd.json()["session"]["title"] == "바뀐 제목"
    assert upd.json()["session"]["date"].startswith("2025-03-02T03:00:00")

    deleted = client.delete(
        f"/studies/{study['id']}/sessions/{session['id']}",
        headers=auth_header(leader["accessToken"]),
    )
    assert deleted.status_code == 200

    summary = client.get(f"/studies/{study['id']}/attendance/summary", headers=auth_header(leader["accessToken"]))
    assert summary.json()["totalSessions"] == 0
    assert summary.json()["summary"]["total"] == 0


def test_my_attendance(client):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"], title="출석 스터디")
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"])
    _check_in(client, study["id"], session["id"], "LATE", member["accessToken"])

    r = client.get("/users/me/attendance", headers=auth_header(member["accessToken"]))
    assert r.status_code == 200, r.text
    records = r.json()["records"]
    assert len(records) == 1
    assert records[0]["status"] == "LATE"
    assert records[0]["session"]["study"]["title"] == "출석 스터디"


def test_delete_study_removes_attendance(client, db_session):
    leader = register(client)
    member = register(client)
    study = create_study(client, leader["accessToken"])
    join_and_approve(client, study["id"], leader["accessToken"], member)
    session = create_session(client, study["id"], leader["accessToken"])
    _check_in(client, study["id"], session["id"], "PRESENT", member["accessToken"])

    r = client.delete(f"/studies/{study['id']}", headers=auth_header(leader["accessToken"]))
    assert r.status_code == 200, r.text

    assert db_session.scalar(select(func.count()).select_from(AttendanceRecord)) == 0
    assert db_session.scalar(select(func.count()).select_from(AttendanceSession)) == 0
