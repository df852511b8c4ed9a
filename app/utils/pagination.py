from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

MAX_PAGE_LIMIT = 100


def paginate(
    *,
    session: Session,
    query,
    page: int = 1,
    limit: int = 10,
    serialize: Optional[Callable] = None,
) -> dict:
    """Run ``query`` one page at a time. Out-of-range page/limit values are clamped."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    rows = session.exec(query.offset((page - 1) * limit).limit(limit)).all()

    return {
        "total_items": total,
        "total_pages": -(-total // limit),
        "current_page": page,
        "limit": limit,
        "results": [serialize(row) for row in rows] if serialize else rows,
    }
