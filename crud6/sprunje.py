"""
Sprunje: paginated, sortable, filterable listings.

Query parameters follow the admin frontend's conventions::

    ?size=10&page=0&sorts[name]=asc&filters[name]=acme||globex&filters[search]=foo

``page`` is 0-based and ``size`` may be ``all``. Filters match with
``LIKE %value%``; ``||`` separates alternatives. The ``search`` filter
matches any searchable field (filterable fields when none is searchable).
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import debug_log, get_logger
from crud6.model import CRUD6Model

logger = get_logger(__name__)

_BRACKET_PARAM = re.compile(r"^(sorts|filters)\[([^\]]+)\]$")
SEARCH_FILTER = "search"


def sortable_fields(schema: Mapping[str, Any]) -> List[str]:
    return [name for name, field in schema["fields"].items() if field.get("sortable") is True]


def filterable_fields(schema: Mapping[str, Any]) -> List[str]:
    return [name for name, field in schema["fields"].items() if field.get("filterable") is True]


def searchable_fields(schema: Mapping[str, Any]) -> List[str]:
    return [name for name, field in schema["fields"].items() if field.get("searchable") is True]


def listable_fields(schema: Mapping[str, Any]) -> List[str]:
    """Fields shown in listings: the ``listable`` flag, else everything not readonly."""
    listable = []
    for name, field in schema["fields"].items():
        if field.get("listable", not field.get("readonly", False)):
            listable.append(name)
    return listable


class Sprunje:
    """Listing over a model's table, or over a relationship query returning its rows.

    Example:
        sprunje = Sprunje.for_schema(model, settings.default_page_size, settings.max_page_size)
        sprunje.set_options(request.query_params)
        payload = await sprunje.get_response(session)
    """

    def __init__(
        self,
        model: CRUD6Model,
        query: Optional[sa.Select] = None,
        sortable: Optional[List[str]] = None,
        filterable: Optional[List[str]] = None,
        listable: Optional[List[str]] = None,
        searchable: Optional[List[str]] = None,
        default_sort: Optional[Mapping[str, str]] = None,
        default_size: int = 25,
        max_size: int = 100,
    ) -> None:
        self.model = model
        self.query = query if query is not None else model.select()
        self.sortable = sortable or []
        self.filterable = filterable or []
        self.listable = [name for name in (listable or []) if model.has_column(name)]
        self.searchable = searchable or []
        self.default_sort = dict(default_sort or {})
        self.default_size = default_size
        self.max_size = max_size

        self.size: Optional[int] = default_size
        self.page = 0
        self.sorts: Dict[str, str] = {}
        self.filters: Dict[str, str] = {}

    @classmethod
    def for_schema(
        cls,
        model: CRUD6Model,
        default_size: int = 25,
        max_size: int = 100,
        query: Optional[sa.Select] = None,
        listable: Optional[List[str]] = None,
    ) -> "Sprunje":
        schema = model.schema
        return cls(
            model,
            query=query,
            sortable=sortable_fields(schema),
            filterable=filterable_fields(schema),
            listable=listable if listable is not None else listable_fields(schema),
            searchable=searchable_fields(schema),
            default_sort=schema.get("default_sort"),
            default_size=default_size,
            max_size=max_size,
        )

    def set_options(self, params: Mapping[str, Any]) -> "Sprunje":
        """Read size, page, sorts and filters from request query parameters.

        Raises:
            CRUD6Exception: On a malformed size/page or a sort direction other than asc/desc
        """
        for key, value in params.items():
            match = _BRACKET_PARAM.match(key)
            if match:
                target = self.sorts if match.group(1) == "sorts" else self.filters
                target[match.group(2)] = str(value)
            elif key == SEARCH_FILTER:
                self.filters[SEARCH_FILTER] = str(value)

        size = params.get("size")
        if size is not None and size != "":
            if str(size) == "all":
                self.size = None
            else:
                self.size = min(self._non_negative_int("size", size), self.max_size) or self.default_size

        page = params.get("page")
        if page is not None and page != "":
            self.page = self._non_negative_int("page", page)

        for field, direction in self.sorts.items():
            if direction.lower() not in ("asc", "desc"):
                raise CRUD6Exception(f"Invalid sort direction '{direction}' for field '{field}'.")
        return self

    @staticmethod
    def _non_negative_int(name: str, value: Any) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise CRUD6Exception(f"Query parameter '{name}' must be an integer.") from None
        if number < 0:
            raise CRUD6Exception(f"Query parameter '{name}' must not be negative.")
        return number

    def _like_any(self, columns: List[sa.Column], value: str) -> sa.ColumnElement:
        clauses = []
        for alternative in value.split("||"):
            for column in columns:
                clauses.append(sa.cast(column, sa.String).contains(alternative, autoescape=True))
        return sa.or_(*clauses)

    def apply_filters(self, query: sa.Select) -> sa.Select:
        for field, value in self.filters.items():
            if field == SEARCH_FILTER:
                query = self.apply_search(query, value)
                continue
            if field not in self.filterable or not self.model.has_column(field):
                raise CRUD6Exception(f"Bad filter: '{field}' is not a filterable field.")
            if value == "":
                continue
            query = query.where(self._like_any([self.model.column(field)], value))
        return query

    def apply_search(self, query: sa.Select, value: str) -> sa.Select:
        if value.strip() == "":
            return query
        fields = self.searchable or self.filterable
        columns = [self.model.column(name) for name in fields if name.strip() and self.model.has_column(name)]
        if not columns:
            return query
        return query.where(self._like_any(columns, value))

    def apply_sorts(self, query: sa.Select) -> sa.Select:
        sorts = self.sorts
        if not sorts:
            sorts = {field: direction for field, direction in self.default_sort.items() if self.model.has_column(field)}

        for field, direction in sorts.items():
            if field not in self.sortable and field not in self.default_sort:
                raise CRUD6Exception(f"Bad sort: '{field}' is not a sortable field.")
            if not self.model.has_column(field):
                raise CRUD6Exception(f"Bad sort: '{field}' is not a sortable field.")
            column = self.model.column(field)
            query = query.order_by(column.desc() if str(direction).lower() == "desc" else column.asc())
        return query

    @staticmethod
    async def _count(session: AsyncSession, query: sa.Select) -> int:
        subquery = query.order_by(None).subquery()
        return (await session.execute(sa.select(sa.func.count()).select_from(subquery))).scalar_one()

    async def get_response(self, session: AsyncSession) -> Dict[str, Any]:
        """Run the listing.

        Returns:
            ``{"count", "count_filtered", "rows", "listable"}``
        """
        count = await self._count(session, self.query)
        filtered = self.apply_filters(self.query)
        count_filtered = await self._count(session, filtered)

        query = self.apply_sorts(filtered)
        if self.size is not None:
            query = query.limit(self.size).offset(self.page * self.size)

        result = await session.execute(query)
        only = self.listable or None
        rows = [self.model.to_dict(row, only) for row in result.mappings().all()]

        debug_log(
            logger,
            "Sprunje response built",
            {
                "table": self.model.table_name,
                "count": count,
                "count_filtered": count_filtered,
                "page": self.page,
                "size": self.size,
            },
        )
        return {"count": count, "count_filtered": count_filtered, "rows": rows, "listable": self.listable}
