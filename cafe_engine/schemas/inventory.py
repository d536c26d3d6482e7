"""
Cafe Engine — Inventory schemas
"""
from enum import Enum as PyEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StockStatus(str, PyEnum):
    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"


class Batch(BaseModel):
    """
    One delivery of an item. ``expiration_date`` is kept raw because backend
    data is not always clean; the evaluator parses and vets it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(None, alias="_id")
    quantity: float = 0
    expiration_date: Any = Field(None, alias="expirationDate")


class InventoryItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(None, alias="_id")
    name: str
    category: str | None = None
    unit: str = "pcs"
    cost: float | None = None
    price: float | None = None
    vendor: str | None = None
    inventory: list[Batch] = Field(default_factory=list)


class InventoryAlert(BaseModel):
    type: str                  # "stock" | "expiration"
    id: str
    message: str
    days_left: int | None = None
    date: str


class InventoryEvaluation(BaseModel):
    id: str | None
    name: str
    total_quantity: float
    status: StockStatus
    alerts: list[InventoryAlert] = Field(default_factory=list)
