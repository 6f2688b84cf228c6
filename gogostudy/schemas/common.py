"""
schemas/common.py

요청/응답 스키마 공통 베이스.

- JSON 키는 camelCase (예: maxMembers), snake_case 입력도 허용
- SQLAlchemy 객체에서 바로 변환 (from_attributes)

"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
