from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query

from ..models import ProfitLossReport
from ..services.profit_loss import compute_profit_loss_report

router = APIRouter(prefix="/api/v2/reports", tags=["profit-loss"])


@router.get("/profit-loss", response_model=ProfitLossReport)
def profit_loss_report(
    as_of: Optional[date] = Query(default=None, alias="asOf"),
) -> ProfitLossReport:
    return compute_profit_loss_report(today=as_of)
