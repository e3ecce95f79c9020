"""Role-based access policies.

A single table maps policy keys to the roles allowed to use them. Resource
policies follow the ``<resource>.<operation>`` naming so that
:func:`check_access` can look them up from a collection name and a CRUD verb.
Row and field level rules (own records, order status) are enforced by the
routers on top of this table.
"""

from __future__ import annotations

ADMIN = "admin"
CAREGIVER = "caregiver"
KITCHEN = "kitchen"
ALL_ROLES = (ADMIN, CAREGIVER, KITCHEN)

OPERATIONS = ("create", "read", "update", "delete")

RBAC_POLICIES: dict[str, tuple[str, ...]] = {
    # Pages
    "caregiver.access": (ADMIN, CAREGIVER),
    "kitchen.access": (ADMIN, KITCHEN),
    "reports.access": ALL_ROLES,
    "audit.access": (ADMIN,),
    # Residents
    "residents.read": ALL_ROLES,
    "residents.create": (ADMIN,),
    "residents.update": (ADMIN,),
    "residents.delete": (ADMIN,),
    # Meal orders
    "meal-orders.read": ALL_ROLES,
    "meal-orders.create": (ADMIN, CAREGIVER),
    "meal-orders.update": ALL_ROLES,
    "meal-orders.delete": (ADMIN,),
    # Alerts
    "alerts.read": (ADMIN, KITCHEN),
    "alerts.create": (ADMIN, CAREGIVER),
    "alerts.update": (ADMIN, KITCHEN),
    "alerts.delete": (ADMIN,),
    # Audit logs are written by the system only and never changed
    "audit-logs.read": (ADMIN,),
    "audit-logs.create": (),
    "audit-logs.update": (),
    "audit-logs.delete": (),
    # Users
    "users.read": (ADMIN,),
    "users.create": (ADMIN,),
    "users.update": (ADMIN,),
    "users.delete": (ADMIN,),
    # Version history is written by the system only and never changed
    "versioned-records.read": (ADMIN,),
    "versioned-records.create": (),
    "versioned-records.update": (),
    "versioned-records.delete": (),
}


def can(role: str | None, policy_key: str) -> bool:
    if not role:
        return False
    return role in RBAC_POLICIES.get(policy_key, ())


def check_access(role: str | None, resource: str, operation: str) -> bool:
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")
    return can(role, f"{resource}.{operation}")


def accessible_policies(role: str | None) -> list[str]:
    if not role:
        return []
    return [key for key, roles in RBAC_POLICIES.items() if role in roles]
