"""
base.py

SQLAlchemy ORM Base 정의 파일.

모든 모델(User, Study, StudyMember, AttendanceSession, AttendanceRecord,
AdminActionLog)은 이 Base를 상속하며,
Alembic 마이그레이션과 테스트용 create_all 모두 Base.metadata를 기준으로 동작한다.

관련 파일:
- gogostudy.models.*      : 모든 ORM 모델
- alembic/env.py          : 마이그레이션 메타데이터 로드

"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
