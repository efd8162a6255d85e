"""
Group statistics schemas.
"""

from core.schema_base import HTTPSchemaModel


class DepartmentStats(HTTPSchemaModel):
    total: int = 0
    online: int = 0


class GroupStats(HTTPSchemaModel):
    """Per-department totals; every department is always present."""

    ups: DepartmentStats = DepartmentStats()
    lan: DepartmentStats = DepartmentStats()
    cctv: DepartmentStats = DepartmentStats()
