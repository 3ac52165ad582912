"""Service layer namespace."""

__all__ = [
    "assignments",
    "cost_allocation",
    "dates",
    "profit_loss",
    "projects",
    "salary",
    "timeline",
]
