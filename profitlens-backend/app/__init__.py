"""ProfitLens backend application package."""
