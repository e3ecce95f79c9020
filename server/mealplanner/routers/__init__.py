"""API routers for the meal planner service."""

from mealplanner.routers import (
    admin,
    alerts,
    audit_logs,
    auth,
    kitchen,
    meal_orders,
    reports,
    residents,
    users,
    versioned_records,
)  # noqa: F401
