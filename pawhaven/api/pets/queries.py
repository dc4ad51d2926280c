# pawhaven/api/pets/queries.py
"""
Listing search: turns validated query-string params into a storage-level
PetQuery plus paging, then runs the count and the page fetch side by side.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pawhaven.core.errors import Unauthenticated
from pawhaven.core.security import Principal
from pawhaven.models.pet import Pet, STATUS_VALUES
from pawhaven.repositories.base import PetQuery, PetRepository, SortSpec
from pawhaven.utils.coercion import parse_bool, parse_int, clamp

logger = logging.getLogger(__name__)

# wire sort key -> stored field
SORT_FIELDS = {
    "createdAt": "created_at",
    "ageMonths": "age_months",
    "name": "name",
}
DEFAULT_SORT = "-createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 12
MAX_LIMIT = 50

EXACT_FILTERS = ("species", "gender", "size")
SUBSTRING_FILTERS = ("city", "other_species")
CARE_FLAGS = ("vaccinated", "dewormed", "sterilized")


ALLOWED_SORTS = set(SORT_FIELDS) | {f"-{key}" for key in SORT_FIELDS}


def sanitize_sort(token: Any) -> str:
    return token if token in ALLOWED_SORTS else DEFAULT_SORT


def sort_spec_for(token: str) -> SortSpec:
    descending = token.startswith("-")
    return SortSpec(field=SORT_FIELDS[token.lstrip("-")], descending=descending)


@dataclass(frozen=True)
class ListingQuery:
    """A fully sanitized listing search."""
    filter: PetQuery
    sort: str = DEFAULT_SORT
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def sort_spec(self) -> SortSpec:
        return sort_spec_for(self.sort)

    @classmethod
    def from_params(cls, params: Mapping[str, Any], principal: Optional[Principal] = None,
                    owner_id: Optional[str] = None) -> "ListingQuery":
        """
        Build from PetListQuerySchema output.

        :param principal: caller, needed when ``mine`` is requested
        :param owner_id: forces the owner filter and narrows the search to status only (/pets/mine)
        """
        query = PetQuery()

        status = params.get("status")
        if status in STATUS_VALUES:
            query.equals["status"] = status

        if owner_id is not None:
            query.equals["listed_by"] = owner_id
        else:
            cls._apply_filters(query, params, principal)

        page = max(DEFAULT_PAGE, parse_int(params.get("page"), DEFAULT_PAGE))
        limit = clamp(parse_int(params.get("limit"), DEFAULT_LIMIT), 1, MAX_LIMIT)
        return cls(filter=query, sort=sanitize_sort(params.get("sort")), page=page, limit=limit)

    @staticmethod
    def _apply_filters(query: PetQuery, params: Mapping[str, Any], principal: Optional[Principal]) -> None:
        for key in EXACT_FILTERS:
            if params.get(key):
                query.equals[key] = params[key]

        for key in CARE_FLAGS:
            flag = parse_bool(params.get(key))
            if flag is not None:
                query.equals[key] = flag

        for key in SUBSTRING_FILTERS:
            value = params.get(key)
            if isinstance(value, str) and value.strip():
                query.contains[key] = value.strip()

        query.min_age = params.get("min_age")
        query.max_age = params.get("max_age")

        if parse_bool(params.get("mine")):
            if principal is None:
                raise Unauthenticated("Login required to list your own pets")
            query.equals["listed_by"] = principal.id

        text = params.get("q")
        if isinstance(text, str) and text.strip():
            query.text = text.strip()


class PetQueryService:
    """Runs ListingQuery objects against the pet repository."""

    def __init__(self, pets: PetRepository, max_workers: int = 4):
        self.pets = pets
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="pet-query")

    def search(self, listing: ListingQuery) -> Tuple[List[Pet], Dict[str, Any]]:
        # count and page fetch are independent reads of the same filter
        total_future = self._executor.submit(self.pets.count, listing.filter)
        items_future = self._executor.submit(
            self.pets.find, listing.filter, listing.sort_spec, listing.skip, listing.limit
        )
        total = total_future.result()
        items = items_future.result()

        logger.debug(f"Listing search: total={total} page={listing.page} limit={listing.limit} sort={listing.sort}")
        meta = {
            "total": total,
            "page": listing.page,
            "limit": listing.limit,
            "hasNext": listing.skip + len(items) < total,
            "sort": listing.sort,
        }
        return items, meta
