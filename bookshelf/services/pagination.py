from bookshelf.schemas.listing import PaginationInfo


def offset_for(page: int, limit: int) -> int:
    """Row offset of a 1-indexed page. Callers reject non-positive input."""
    return (page - 1) * limit


def compute_pagination(page: int, limit: int, total_items: int) -> PaginationInfo:
    """Pagination metadata for `page`/`limit` over `total_items` rows."""
    # ceiling division; 0 pages when there is nothing to show
    total_pages = -(-total_items // limit) if total_items > 0 else 0
    return PaginationInfo(
        total_items=total_items,
        items_per_page=limit,
        current_page=page,
        total_pages=total_pages,
        offset=offset_for(page, limit),
    )
