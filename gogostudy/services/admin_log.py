"""
services/admin_log.py

관리자 행위 로그 기록 서비스.

이 파일은 관리자(Admin)가 수행한 주요 행위를
AdminActionLog 테이블에 기록하는 역할을 담당한다.

라우터에서 호출되며,
로그 기록 자체는 DB에만 영향을 주고
비즈니스 흐름에는 개입하지 않는다.

설계 원칙:
- 로그 행은 대상 변경과 같은 트랜잭션에서 커밋
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계

"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from gogostudy.models.admin_log import AdminActionLog, AdminAction


"""
관리자 행위 로그 기록 함수

- actor_id       : 행위를 수행한 관리자 ID
- action         : 수행된 관리자 행위 유형
- target_user_id : 행위 대상 사용자 ID (선택)
- before_value   : 변경 전 값 (role 또는 status, 선택)
- after_value    : 변경 후 값 (선택)

NOTE:
- db.commit()은 호출 측(라우터)에서 수행

"""
def write_admin_log(
    db: Session,
    *,
    actor_id,
    action: AdminAction,
    target_user_id=None,
    before_value=None,
    after_value=None,
) -> AdminActionLog:
    log = AdminActionLog(
        actor_id=actor_id,
        action=action,
        target_user_id=target_user_id,
        before_value=before_value,
        after_value=after_value,
    )
    db.add(log)
    return log


def recent_logs(db: Session, limit: int = 50) -> list[AdminActionLog]:
    limit = max(1, min(limit, 200))
    return list(
        db.scalars(
            select(AdminActionLog).order_by(AdminActionLog.created_at.desc()).limit(limit)
        ).all()
    )
