"""Hierarchical store paths scoped under an explicit tenant"""

from typing import List

from marine_workorders.exceptions import ValidationFailed

# Characters a single path segment may not contain
FORBIDDEN_KEY_CHARS = set("/.#$[]")

WORK_ORDERS = "workOrders"
STATUS_HISTORY = "workOrdersStatusHistory"
PHOTOS = "photos"
CLIENTS = "clients"
VESSELS = "vessels"
EQUIPMENT = "equipment"


def validate_key(key: str) -> str:
    """Reject empty keys and keys that would escape their path segment"""
    if not key or any(ch in FORBIDDEN_KEY_CHARS for ch in key):
        raise ValidationFailed(f"Invalid key: {key!r}")
    return key


def join(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part)


def split(path: str) -> List[str]:
    return [part for part in path.split("/") if part]


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    return path == ancestor or path.startswith(ancestor + "/")


def overlaps(a: str, b: str) -> bool:
    """True when a change at one path can alter the snapshot at the other"""
    return is_ancestor_or_self(a, b) or is_ancestor_or_self(b, a)


class TenantPaths:
    """
    Builds every store path and blob key for one tenant.

    Injected into each repository at construction so no module holds an
    implicit tenant.
    """

    def __init__(self, tenant_id: str):
        self.tenant_id = validate_key(tenant_id)
        self.root = join("tenants", tenant_id)

    def collection(self, name: str) -> str:
        return join(self.root, name)

    def record(self, name: str, record_id: str) -> str:
        return join(self.root, name, validate_key(record_id))

    def work_orders(self) -> str:
        return self.collection(WORK_ORDERS)

    def work_order(self, work_order_id: str) -> str:
        return self.record(WORK_ORDERS, work_order_id)

    def photos(self, work_order_id: str) -> str:
        return join(self.work_order(work_order_id), PHOTOS)

    def photo(self, work_order_id: str, photo_id: str) -> str:
        return join(self.photos(work_order_id), validate_key(photo_id))

    def history(self, work_order_id: str) -> str:
        return self.record(STATUS_HISTORY, work_order_id)

    def history_event(self, work_order_id: str, event_id: str) -> str:
        return join(self.history(work_order_id), validate_key(event_id))

    def photo_blob(self, work_order_id: str, photo_id: str, extension: str) -> str:
        """Blob key: tenants/{tenant}/workOrders/{work_order_id}/{photo_id}.{ext}"""
        return f"{self.work_order(work_order_id)}/{validate_key(photo_id)}.{extension}"
