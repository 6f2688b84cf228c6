from datetime import datetime, timezone


def utcnow() -> datetime:
    # DB에는 tz 정보 없는 UTC 시각으로 저장
    return datetime.now(timezone.utc).replace(tzinfo=None)
