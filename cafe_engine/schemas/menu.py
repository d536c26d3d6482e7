"""
Cafe Engine — Menu schemas

Menu items come from ``GET /api/menu`` and are treated as read-only snapshots.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Modifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price: float = 0.0


class MenuItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str = Field(..., alias="_id")
    name: str
    category: str | None = None
    sub_category: str | None = Field(None, alias="subCategory")
    pricing: dict[str, float]
    description: str | None = None
    modifiers: list[Modifier] = Field(default_factory=list)

    @field_validator("pricing")
    @classmethod
    def _pricing_not_empty(cls, v: dict[str, float]) -> dict[str, float]:
        if not v:
            raise ValueError("pricing must declare at least one size")
        return v

    @property
    def sizes(self) -> list[str]:
        return list(self.pricing)

    @property
    def default_size(self) -> str:
        return "base" if "base" in self.pricing else next(iter(self.pricing))
