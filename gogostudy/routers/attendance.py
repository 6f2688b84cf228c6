"""
attendance.py

스터디 출석 통계 및 내보내기 API 모음.

주요 기능:
- 스터디 출석 요약 (상태별 집계 + 멤버별 출석률)
- 사용자별 출석 요약
- 출석 기록 CSV / XLSX 다운로드

관련 파일:
- gogostudy.services.attendance : 집계 로직
"""

import csv
import io
import uuid

from fastapi import APIRouter, Depends, Query
from openpyxl import Workbook
from sqlalchemy.orm import Session
from starlette.responses import Response, StreamingResponse

from gogostudy.core.deps import get_current_user, get_db
from gogostudy.core.errors import bad_request
from gogostudy.models.user import User
from gogostudy.schemas.user import UserSummary
from gogostudy.services import attendance as attendance_service
from gogostudy.services.studies import get_study_or_404

router = APIRouter(prefix="/studies/{study_id}/attendance", tags=["attendance"])

EXPORT_HEADER = ["session_title", "session_date", "user_name", "user_email", "status", "recorded_at"]


"""
스터디 출석 요약 API (리더 / 관리자)

- from / to : ISO-8601, 세션 날짜 기준 [from, to] (양 끝 포함, 둘 다 선택)
- 출석률 분모는 기간과 무관한 스터디 전체 세션 수

"""

@router.get("/summary")
def study_summary(
    study_id: uuid.UUID,
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    result = attendance_service.study_summary(db, study, current_user, date_from=date_from, date_to=date_to)
    return {
        "studyId": result["study_id"],
        "totalSessions": result["total_sessions"],
        "summary": result["summary"],
        "members": [
            {
                "user": UserSummary.model_validate(m["user"]) if m["user"] else None,
                "present": m["present"],
                "late": m["late"],
                "absent": m["absent"],
                "attendanceRate": m["attendance_rate"],
            }
            for m in result["members"]
        ],
    }


@router.get("/users/{user_id}/summary")
def user_summary(
    study_id: uuid.UUID,
    user_id: uuid.UUID,
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    study = get_study_or_404(db, study_id)
    result = attendance_service.user_summary(
        db, study, current_user, user_id, date_from=date_from, date_to=date_to
    )
    return {
        "studyId": result["study_id"],
        "userId": result["user_id"],
        "totalSessions": result["total_sessions"],
        "summary": result["summary"],
        "attendanceRate": result["attendance_rate"],
    }


def _export_row(session, record) -> list:
    # CSV / XLSX 는 문자열 기반이므로 datetime 은 ISO 문자열로 변환
    return [
        session.title,
        session.date.isoformat(),
        record.user.name,
        record.user.email,
        record.status.value,
        record.recorded_at.isoformat(),
    ]


"""
출석 기록 다운로드 API (리더 / 관리자)

- format=csv  : UTF-8 BOM + 스트리밍 (Excel 한글 깨짐 방지)
- format=xlsx : openpyxl 로 생성한 워크북

"""

@router.get("/export")
def export_attendance(
    study_id: uuid.UUID,
    format: str = Query("csv"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    fmt = format.lower()
    if fmt not in ("csv", "xlsx"):
        raise bad_request("format must be csv or xlsx")

    study = get_study_or_404(db, study_id)
    rows = [_export_row(s, r) for s, r in attendance_service.export_rows(db, study, current_user)]
    filename = f"attendance_{study.id}.{fmt}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if fmt == "xlsx":
        wb = Workbook()
        ws = wb.active
        ws.title = "attendance"
        ws.append(EXPORT_HEADER)
        for row in rows:
            ws.append(row)

        buf = io.BytesIO()
        wb.save(buf)
        return Response(
            content=buf.getvalue(),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    def generate():
        # Excel에서 UTF-8 CSV 한글 깨짐 방지를 위해 BOM(Byte Order Mark) 먼저 출력
        yield "\ufeff"

        output = io.StringIO()
        writer = csv.writer(output)
        writer.writerow(EXPORT_HEADER)
        yield output.getvalue()
        output.seek(0)
        output.truncate(0)

        for row in rows:
            writer.writerow(row)
            yield output.getvalue()
            output.seek(0)
            output.truncate(0)

    return StreamingResponse(generate(), media_type="text/csv; charset=utf-8", headers=headers)
