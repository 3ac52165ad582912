from __future__ import annotations

import pytest

from app.config import settings
from app.services.profit_loss import clear_report_cache


@pytest.fixture(autouse=True)
def _fresh_report_cache():
    clear_report_cache()
    yield
    clear_report_cache()


@pytest.fixture
def report_enabled():
    original = settings.feature_profit_loss_report
    settings.feature_profit_loss_report = True
    try:
        yield
    finally:
        settings.feature_profit_loss_report = original
