"""
FastAPI REST API for VanProperty Insights

Endpoints under the configured prefix:
- Properties (search, lookups, statistics, valuation updates)
- Watchlist (per-user tracked properties)
- Saved searches (named filter sets with execution counts)
- Users (profiles and activity)
"""
