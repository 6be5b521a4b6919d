from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, constr


class GenreIn(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100)


class GenreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: Optional[datetime] = None
