"""
Cafe Engine — Inventory API
"""
from fastapi import APIRouter, Depends

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.engine.inventory import evaluate_all
from cafe_engine.schemas.inventory import InventoryAlert, InventoryEvaluation, InventoryItem

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.post("/evaluate", response_model=list[InventoryEvaluation])
async def evaluate_items(items: list[InventoryItem]):
    """Derive stock status and alerts for the posted items."""
    return evaluate_all(items)


@router.get("/alerts", response_model=list[InventoryAlert])
async def inventory_alerts(backend: BackendClient = Depends(get_backend)):
    """Stock and expiration alerts across the backend's inventory."""
    evaluations = evaluate_all(await backend.list_items())
    return [alert for evaluation in evaluations for alert in evaluation.alerts]
