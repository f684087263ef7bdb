"""스톰캐스트 기반 모델 정의입니다. / Base definitions for stormcast models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class StormBaseModel(BaseModel):
    """불변 공통 모델입니다. / Frozen base for samples, periods and events.

    Tier and type enums are stored as their string values so events compare
    and serialize the same whether they come from a scan or from a store.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True,
        use_enum_values=True,
        validate_assignment=True,
    )
