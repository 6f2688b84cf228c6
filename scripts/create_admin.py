"""

ADMIN 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 단 한 번 실행하는 용도
- .env에 정의된 ADMIN_* 환경 변수를 읽어
  ADMIN 계정을 생성한다.
- 이미 활성 ADMIN 계정이 존재하면 생성하지 않고 종료한다.

사용 목적:
- 관리자 API(/admin/*)에 접근할 수 있는
  첫 관리자 계정을 초기화하기 위함 (회원가입 API로는 ADMIN 생성 불가)

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import select
from gogostudy.db.session import SessionLocal
from gogostudy.models.user import User, Role, UserStatus
from gogostudy.core.security import get_password_hash
from gogostudy.services.admin import count_admins
from gogostudy.services.auth import normalize_email

import gogostudy.models  # noqa: F401


def main():
    db = SessionLocal()
    try:
        if count_admins(db) > 0:
            print("✅ ADMIN already exists. Skip creation.")
            return

        email = normalize_email(os.environ["ADMIN_EMAIL"])
        password = os.environ["ADMIN_PASSWORD"]
        name = os.environ.get("ADMIN_NAME", "Admin")

        email_exists = db.scalar(
            select(User).where(User.email == email)
        )
        if email_exists:
            raise RuntimeError("Email already exists but is not an active ADMIN")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name,
            role=Role.ADMIN,
            status=UserStatus.ACTIVE,
        )

        db.add(user)
        db.commit()

        print(f"🚀 ADMIN created: {email}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
