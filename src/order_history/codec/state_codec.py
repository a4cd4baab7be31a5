"""
State Codec - QueryState <-> URL Parameters.

Maps the structured query state onto the flat parameter set shared in
URLs, and back:

    hospitalId, startDate, endDate   YYYY-MM-DD dates, absent when unset
    bloodTypes, statuses             comma-joined, absent when empty
    bloodBank                        free text, absent when empty
    sortBy, sortOrder                column id, asc|desc
    page, pageSize                   integers

``encode``/``decode`` work on logical (unescaped) values, the form a web
framework hands over. ``encode_query_string``/``decode_query_string``
add the percent-encoding so free text survives ``&``, ``=``, ``+``,
``#`` and non-ASCII characters.

Decoding never fails: a missing or malformed value falls back to the
field default and is reported in ``DecodeResult.degraded``.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type, TypeVar
from urllib.parse import parse_qsl, quote, urlencode

from pydantic import BaseModel, Field

from order_history.config.models import QueryConfig
from order_history.domain.entities import BloodType, OrderStatus
from order_history.domain.value_objects import PAGE_SIZES, QueryState, SortDirection
from order_history.registry.sort_registry import SortColumnRegistry, default_registry

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
_INT_PATTERN = re.compile(r"\d+", re.ASCII)

# URL parameter names
HOSPITAL_ID = "hospitalId"
START_DATE = "startDate"
END_DATE = "endDate"
BLOOD_TYPES = "bloodTypes"
STATUSES = "statuses"
BLOOD_BANK = "bloodBank"
SORT_BY = "sortBy"
SORT_ORDER = "sortOrder"
PAGE = "page"
PAGE_SIZE = "pageSize"


class DecodeResult(BaseModel):
    """Decoded state plus the parameters that fell back to defaults."""

    state: QueryState
    degraded: List[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.degraded


class StateCodec:
    """Bidirectional mapping between QueryState and URL parameters."""

    def __init__(
        self,
        config: Optional[QueryConfig] = None,
        registry: Optional[SortColumnRegistry] = None,
    ) -> None:
        """
        Initialize codec.

        Args:
            config: Supplies the defaults used when decoding degrades
            registry: Sort columns accepted for ``sortBy``

        Raises:
            ValueError: If the configured default sort column is not
                        registered, since every decoded state would then
                        fail validation
        """
        self.config = config or QueryConfig()
        self.registry = registry or default_registry
        if not self.registry.has(self.config.default_sort_column):
            raise ValueError(
                f"default_sort_column '{self.config.default_sort_column}' is not a "
                f"registered sort column: {self.registry.names()}"
            )

    # =========================================================================
    # Encoding
    # =========================================================================

    def encode(self, state: QueryState) -> Dict[str, str]:
        """Flatten a query state into string parameters."""
        params: Dict[str, str] = {HOSPITAL_ID: state.hospital_id}

        if state.start_date is not None:
            params[START_DATE] = state.start_date.isoformat()
        if state.end_date is not None:
            params[END_DATE] = state.end_date.isoformat()
        if state.blood_types:
            params[BLOOD_TYPES] = _join_members(BloodType, state.blood_types)
        if state.statuses:
            params[STATUSES] = _join_members(OrderStatus, state.statuses)
        if state.blood_bank_search:
            params[BLOOD_BANK] = state.blood_bank_search

        params[SORT_BY] = state.sort_column
        params[SORT_ORDER] = state.sort_direction.value
        params[PAGE] = str(state.page)
        params[PAGE_SIZE] = str(state.page_size)
        return params

    def encode_query_string(self, state: QueryState) -> str:
        """Encode as a percent-encoded query string (no leading ``?``)."""
        return urlencode(list(self.encode(state).items()), quote_via=quote)

    # =========================================================================
    # Decoding
    # =========================================================================

    def decode(
        self,
        params: Mapping[str, Any],
        hospital_id: Optional[str] = None,
    ) -> QueryState:
        """
        Rebuild a query state from parameters. Never raises.

        Args:
            params: Unescaped parameters; list values use their first item
            hospital_id: Tenant from the caller's session; overrides any
                         ``hospitalId`` parameter when given
        """
        return self.decode_with_report(params, hospital_id).state

    def decode_query_string(
        self,
        query_string: str,
        hospital_id: Optional[str] = None,
    ) -> QueryState:
        """Decode a percent-encoded query string. Never raises."""
        return self.decode(parse_query_string(query_string), hospital_id)

    def decode_with_report(
        self,
        params: Mapping[str, Any],
        hospital_id: Optional[str] = None,
    ) -> DecodeResult:
        """Decode and report which parameters fell back to defaults."""
        degraded: List[str] = []

        def note(name: str, ok: bool) -> None:
            if not ok:
                degraded.append(name)

        raw = {key: _first(value) for key, value in params.items()}

        if hospital_id is None:
            hospital_id = raw.get(HOSPITAL_ID) or ""
            note(HOSPITAL_ID, bool(hospital_id))

        start_date, ok = _parse_date(raw.get(START_DATE))
        note(START_DATE, ok)
        end_date, ok = _parse_date(raw.get(END_DATE))
        note(END_DATE, ok)

        blood_types, ok = _parse_members(BloodType, raw.get(BLOOD_TYPES))
        note(BLOOD_TYPES, ok)
        statuses, ok = _parse_members(OrderStatus, raw.get(STATUSES))
        note(STATUSES, ok)

        sort_column = raw.get(SORT_BY)
        if sort_column is None or not self.registry.has(sort_column):
            note(SORT_BY, sort_column is None)
            sort_column = self.config.default_sort_column

        sort_direction = _parse_direction(raw.get(SORT_ORDER))
        if sort_direction is None:
            note(SORT_ORDER, raw.get(SORT_ORDER) is None)
            sort_direction = self.config.default_sort_direction

        page = _parse_int(raw.get(PAGE))
        if page is None or page < 1:
            note(PAGE, raw.get(PAGE) is None)
            page = 1

        page_size = _parse_int(raw.get(PAGE_SIZE))
        if page_size not in PAGE_SIZES:
            note(PAGE_SIZE, raw.get(PAGE_SIZE) is None)
            page_size = self.config.default_page_size

        if degraded:
            logger.warning(f"Query parameters fell back to defaults: {', '.join(degraded)}")

        state = QueryState(
            hospital_id=hospital_id,
            start_date=start_date,
            end_date=end_date,
            blood_types=blood_types,
            statuses=statuses,
            blood_bank_search=raw.get(BLOOD_BANK) or "",
            sort_column=sort_column,
            sort_direction=sort_direction,
            page=page,
            page_size=page_size,
        )
        return DecodeResult(state=state, degraded=degraded)


# =============================================================================
# Helpers
# =============================================================================


def parse_query_string(query_string: str) -> Dict[str, str]:
    """Split a percent-encoded query string; the first occurrence of a key wins."""
    params: Dict[str, str] = {}
    for key, value in parse_qsl(query_string.lstrip("?"), keep_blank_values=True):
        params.setdefault(key, value)
    return params


def _first(value: Any) -> Optional[str]:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)


def _join_members(enum_type: Type[E], members: FrozenSet[E]) -> str:
    # Declaration order keeps the encoding deterministic
    return ",".join(m.value for m in enum_type if m in members)


def _parse_date(value: Optional[str]) -> Tuple[Optional[date], bool]:
    """Returns (date or None, ok). A missing value is ok."""
    if value is None:
        return None, True
    if not _DATE_PATTERN.fullmatch(value):
        return None, False
    try:
        return date.fromisoformat(value), True
    except ValueError:
        return None, False


def _parse_members(
    enum_type: Type[E], value: Optional[str]
) -> Tuple[FrozenSet[E], bool]:
    """Split a comma-joined list; unknown entries are dropped."""
    if not value:
        return frozenset(), True

    members = set()
    ok = True
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            members.add(enum_type(part))
        except ValueError:
            ok = False
    return frozenset(members), ok


def _parse_direction(value: Optional[str]) -> Optional[SortDirection]:
    if value is None:
        return None
    try:
        return SortDirection(value.lower())
    except ValueError:
        return None


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or not _INT_PATTERN.fullmatch(value):
        return None
    return int(value)
