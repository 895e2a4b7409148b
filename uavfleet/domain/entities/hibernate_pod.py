from __future__ import annotations

from pydantic import Field, model_validator

from .base import ApiModel


class HibernatePodStatus(ApiModel):
    current_capacity: int = Field(0, ge=0)
    max_capacity: int = Field(0, ge=0)
    uav_ids: list[int] | None = None

    @model_validator(mode="after")
    def _within_capacity(self) -> "HibernatePodStatus":
        if self.max_capacity and self.current_capacity > self.max_capacity:
            raise ValueError("current_capacity cannot exceed max_capacity")
        return self

    @property
    def available_capacity(self) -> int:
        return max(0, self.max_capacity - self.current_capacity)

    @property
    def is_full(self) -> bool:
        return self.max_capacity > 0 and self.current_capacity >= self.max_capacity

    @property
    def utilization_percentage(self) -> float:
        if self.max_capacity == 0:
            return 0.0
        return round(self.current_capacity / self.max_capacity * 100, 1)
