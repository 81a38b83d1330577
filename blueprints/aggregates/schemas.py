from __future__ import annotations
from datetime import datetime
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

class _Camel(BaseModel):
    # wire format is camelCase, legacy snake_case keys are still accepted
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# ---------- Input ----------
class AggregateIn(_Camel):
    # no coercion: "11.0" or true is not a coordinate
    lat: float = Field(strict=True)
    long: float = Field(strict=True)
    language: str = Field("english", min_length=1, max_length=64)
    number_of_doors: int = Field(1, ge=0, le=500)
    info: str = ""
    address: Optional[str] = Field("", max_length=255)
    territory_id: Optional[int] = 1
    congregation_id: int = Field(1, ge=1)

    @field_validator("language")
    @classmethod
    def _strip_language(cls, v: str):
        v = v.strip()
        if not v:
            raise ValueError("language_required")
        return v

    @field_validator("address")
    @classmethod
    def _strip_address(cls, v: Optional[str]):
        return v.strip() if v else ""

# ---------- Output ----------
class AggregateOut(_Camel):
    id: int
    lat: float
    long: float
    address: Optional[str] = None
    territory_id: Optional[int] = None
    last_modified: datetime
    number_of_doors: int
    info: str
    doors: List[str]
    language: Optional[str] = None
    congregation_id: Optional[int] = None
    pin_color: int
    pin_image: str

# one envelope for every read so clients never have to guess the shape
class AggregateEnvelope(BaseModel):
    kind: Literal["aggregate"] = "aggregate"
    data: AggregateOut

class AggregateListEnvelope(BaseModel):
    kind: Literal["aggregates"] = "aggregates"
    data: List[AggregateOut]

def dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)
