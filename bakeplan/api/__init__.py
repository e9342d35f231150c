"""
Bakeplan REST API.

Provides DRF ViewSets for:
- ProductionSchedule (CRUD, create from order, item lifecycle actions)
- Consumption analytics (read, recalculate)
"""
