# hangwa/schemas/base.py

from typing import List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class CamelModel(BaseModel):
    """Поля в Python - snake_case, в JSON - camelCase (как ждёт фронтенд)."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

class BulkIdsRequest(CamelModel):
    ids: List[int] = Field(..., min_length=1, description="ID записей для пакетной операции")

class BulkResult(CamelModel):
    requested: int
    succeeded: int
    not_found: int
    not_found_ids: List[int] = []
    skipped: int = 0            # запись есть, но операция к ней не применима

class MessageResponse(BaseModel):
    detail: str
