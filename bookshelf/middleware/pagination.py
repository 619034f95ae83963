from typing import Optional, Union

from bookshelf.config.settings import settings
from bookshelf.core.exceptions.exceptions import BadRequestError
from bookshelf.schemas.listing import ListingRequest, Paged, Unpaged


class Pagination:
    """Resolves raw `page`/`limit` query values into a listing request.

    Behavior:
    - Both values must be present and parse as positive integers to get a
      `Paged` request; anything else (missing, blank, non-numeric, zero or
      negative) falls back to `Unpaged`.
    - A positive `page` above `max_page` or `limit` above `max_limit` raises
      `BadRequestError` so oversized values never reach the store.
    - The raw request body travels with the request because it takes part
      in the cache key of paged listings.
    """

    def __init__(self, max_page: int = settings.MAX_PAGE, max_limit: int = settings.MAX_PAGE_LIMIT):
        self.max_page = max_page
        self.max_limit = max_limit

    @staticmethod
    def _positive_int(value: Optional[Union[str, int]]) -> Optional[int]:
        if value is None:
            return None
        try:
            number = int(str(value).strip())
        except ValueError:
            return None
        return number if number > 0 else None

    def resolve(
        self,
        page: Optional[Union[str, int]],
        limit: Optional[Union[str, int]],
        raw_body: bytes = b"",
    ) -> ListingRequest:
        page_num = self._positive_int(page)
        limit_num = self._positive_int(limit)
        if page_num is None or limit_num is None:
            return Unpaged(raw_body=raw_body)
        if page_num > self.max_page or limit_num > self.max_limit:
            raise BadRequestError(f"invalid pagination params: page <= {self.max_page}, limit <= {self.max_limit}")
        return Paged(page=page_num, limit=limit_num, raw_body=raw_body)
