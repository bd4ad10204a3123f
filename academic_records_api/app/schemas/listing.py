"""
Pagination and sorting options shared by the list queries.
"""

from typing import Optional

from pydantic import BaseModel


class ListOptions(BaseModel):
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort_by: Optional[str] = None
    # Only the exact value "DESC" selects descending order.
    sort_order: Optional[str] = None
