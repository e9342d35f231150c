"""
Bakeplan Settings.

Supports two formats (dict takes priority):

    # Option 1: Dict
    BAKEPLAN = {
        "CASCADE_POLICY": "ignore_cancelled",
        "CONSUMPTION_PERIOD_DAYS": 14,
    }

    # Option 2: Flat
    BAKEPLAN_CASCADE_POLICY = "ignore_cancelled"
    BAKEPLAN_CONSUMPTION_PERIOD_DAYS = 14

All settings have defaults; no configuration is required.
"""

import threading

from django.conf import settings


# ── Defaults ──

CASCADE_STRICT = "strict"
CASCADE_IGNORE_CANCELLED = "ignore_cancelled"
CASCADE_POLICIES = (CASCADE_STRICT, CASCADE_IGNORE_CANCELLED)

DEFAULTS = {
    "SCHEDULE_REPOSITORY": "bakeplan.adapters.orm.OrmScheduleRepository",
    "RECIPE_REPOSITORY": "bakeplan.adapters.orm.OrmRecipeRepository",
    "INVENTORY_REPOSITORY": "bakeplan.adapters.orm.OrmInventoryRepository",
    "ORDER_REPOSITORY": "bakeplan.adapters.orm.OrmOrderRepository",
    "CASCADE_POLICY": CASCADE_STRICT,
    "CONSUMPTION_PERIOD_DAYS": 7,
    "STALE_TRACKING_DAYS": 30,
    "DEFAULT_LEAD_TIME_DAYS": 3,
    "SAFETY_BUFFER_DAYS": 2,
}


# ── Accessors ──

_sentinel = object()


def get_setting(name, default=_sentinel):
    """
    Get a bakeplan setting.

    Looks up in order:
    1. BAKEPLAN dict (e.g. BAKEPLAN = {"CASCADE_POLICY": "..."})
    2. Flat setting (e.g. BAKEPLAN_CASCADE_POLICY = "...")
    3. DEFAULTS
    """
    bakeplan_dict = getattr(settings, "BAKEPLAN", {})
    if name in bakeplan_dict:
        return bakeplan_dict[name]

    flat_value = getattr(settings, f"BAKEPLAN_{name}", _sentinel)
    if flat_value is not _sentinel:
        return flat_value

    if default is not _sentinel:
        return default

    return DEFAULTS.get(name)


def get_cascade_policy() -> str:
    """Return the configured order-cascade policy, validated."""
    policy = get_setting("CASCADE_POLICY")
    if policy not in CASCADE_POLICIES:
        from django.core.exceptions import ImproperlyConfigured

        raise ImproperlyConfigured(
            f"BAKEPLAN CASCADE_POLICY must be one of {CASCADE_POLICIES}, got {policy!r}"
        )
    return policy


# ── Repositories ──

_repository_lock = threading.Lock()
_repository_instances: dict = {}


def get_repository(kind: str):
    """
    Return the configured repository instance for ``kind``.

    ``kind`` is one of "schedule", "recipe", "inventory", "order"; the
    dotted path is read from the matching ``<KIND>_REPOSITORY`` setting.
    """
    instance = _repository_instances.get(kind)
    if instance is None:
        with _repository_lock:
            instance = _repository_instances.get(kind)
            if instance is None:  # double-checked
                from django.utils.module_loading import import_string

                path = get_setting(f"{kind.upper()}_REPOSITORY")
                instance = import_string(path)()
                _repository_instances[kind] = instance

    return instance


def get_schedule_repository():
    return get_repository("schedule")


def get_recipe_repository():
    return get_repository("recipe")


def get_inventory_repository():
    return get_repository("inventory")


def get_order_repository():
    return get_repository("order")


def reset_repositories() -> None:
    """Reset cached repositories (for tests)."""
    with _repository_lock:
        _repository_instances.clear()
