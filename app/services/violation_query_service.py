from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.engine import Engine
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import Session, col, select
from sqlmodel.sql.expression import SelectOfScalar

from app.domain.errors import NotFoundError
from app.domain.models import (
    DateRangeRead,
    FilterOptionsRead,
    MapMarkersRead,
    PaginationRead,
    SearchInfoRead,
    Violation,
    ViolationPageRead,
    ViolationRead,
    ViolationSearchPageRead,
)
from app.domain.validation import SearchQuery, SortField, SortOrder, ViolationFilters, ViolationQuery
from app.infra.db import storage_errors

RowT = TypeVar("RowT")


class FilterOp(StrEnum):
    EQ = "eq"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"
    ICONTAINS = "icontains"


@dataclass(frozen=True)
class FilterClause:
    field: str
    op: FilterOp
    value: Any


FILTERABLE_COLUMNS: dict[str, Any] = {
    "drone_id": Violation.drone_id,
    "date": Violation.date,
    "type": Violation.type,
    "location": Violation.location,
}

SORTABLE_COLUMNS: dict[SortField, Any] = {
    SortField.DATE: Violation.date,
    SortField.TIMESTAMP: Violation.timestamp,
    SortField.TYPE: Violation.type,
    SortField.DRONE_ID: Violation.drone_id,
}

SEARCHABLE_FIELDS = ("type", "location", "drone_id")


def build_filter_clauses(filters: ViolationFilters) -> list[FilterClause]:
    clauses: list[FilterClause] = []
    if filters.drone_id is not None:
        clauses.append(FilterClause("drone_id", FilterOp.EQ, filters.drone_id))
    if filters.date_from is not None:
        clauses.append(FilterClause("date", FilterOp.GTE, filters.date_from))
    if filters.date_to is not None:
        clauses.append(FilterClause("date", FilterOp.LTE, filters.date_to))
    if filters.violation_type is not None:
        clauses.append(FilterClause("type", FilterOp.EQ, filters.violation_type))
    if filters.location is not None:
        clauses.append(FilterClause("location", FilterOp.CONTAINS, filters.location))
    return clauses


def search_clauses(term: str) -> list[FilterClause]:
    return [FilterClause(field, FilterOp.ICONTAINS, term) for field in SEARCHABLE_FIELDS]


def clause_expression(clause: FilterClause) -> ColumnElement[bool]:
    column = FILTERABLE_COLUMNS.get(clause.field)
    if column is None:
        raise ValueError(f"field is not filterable: {clause.field}")
    if clause.op == FilterOp.EQ:
        return col(column) == clause.value
    if clause.op == FilterOp.GTE:
        return col(column) >= clause.value
    if clause.op == FilterOp.LTE:
        return col(column) <= clause.value
    if clause.op == FilterOp.CONTAINS:
        return col(column).contains(clause.value, autoescape=True)
    if clause.op == FilterOp.ICONTAINS:
        return func.lower(column).contains(str(clause.value).lower(), autoescape=True)
    raise ValueError(f"unsupported filter operator: {clause.op}")


def apply_filter_clauses(statement: SelectOfScalar[RowT], clauses: list[FilterClause]) -> SelectOfScalar[RowT]:
    for clause in clauses:
        statement = statement.where(clause_expression(clause))
    return statement


def build_pagination(page: int, per_page: int, total_items: int) -> PaginationRead:
    return PaginationRead(
        current_page=page,
        total_pages=math.ceil(total_items / per_page),
        total_items=total_items,
        per_page=per_page,
    )


def _directed(column: Any, order: SortOrder) -> Any:
    return col(column).asc() if order == SortOrder.ASC else col(column).desc()


def ordering_for(sort_by: SortField, sort_order: SortOrder) -> list[Any]:
    terms = [_directed(SORTABLE_COLUMNS[sort_by], sort_order)]
    if sort_by == SortField.DATE:
        terms.append(_directed(Violation.timestamp, sort_order))
    # arrival order settles remaining ties so page windows never overlap
    terms.append(col(Violation.seq).asc())
    return terms


NEWEST_FIRST = ordering_for(SortField.DATE, SortOrder.DESC)


class ViolationQueryService:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    def _page(
        self,
        session: Session,
        where: list[ColumnElement[bool]],
        order_by: list[Any],
        page: int,
        limit: int,
    ) -> tuple[list[Violation], int]:
        count_statement = select(func.count()).select_from(Violation)
        rows_statement = select(Violation)
        for expression in where:
            count_statement = count_statement.where(expression)
            rows_statement = rows_statement.where(expression)
        total = int(session.exec(count_statement).one())
        rows = session.exec(
            rows_statement.order_by(*order_by).offset((page - 1) * limit).limit(limit)
        ).all()
        return list(rows), total

    def query(self, query: ViolationQuery) -> ViolationPageRead:
        where = [clause_expression(item) for item in build_filter_clauses(query)]
        with storage_errors("violation query"), self._session() as session:
            rows, total = self._page(
                session,
                where,
                ordering_for(query.sort_by, query.sort_order),
                query.page,
                query.limit,
            )
        return ViolationPageRead(
            items=[ViolationRead.model_validate(item) for item in rows],
            pagination=build_pagination(query.page, query.limit, total),
        )

    def search(self, search: SearchQuery) -> ViolationSearchPageRead:
        where = [or_(*(clause_expression(item) for item in search_clauses(search.term)))]
        with storage_errors("violation search"), self._session() as session:
            rows, total = self._page(session, where, NEWEST_FIRST, search.page, search.limit)
        return ViolationSearchPageRead(
            items=[ViolationRead.model_validate(item) for item in rows],
            pagination=build_pagination(search.page, search.limit, total),
            search=SearchInfoRead(term=search.term, results_count=total),
        )

    def get_by_id(self, violation_id: str) -> ViolationRead:
        with storage_errors("violation lookup"), self._session() as session:
            row = session.exec(select(Violation).where(Violation.id == violation_id)).first()
        if row is None:
            logger.debug("violation {} not found", violation_id)
            raise NotFoundError(f"no violation found with id: {violation_id}")
        return ViolationRead.model_validate(row)

    def map_markers(self, filters: ViolationFilters) -> MapMarkersRead:
        statement = apply_filter_clauses(select(Violation), build_filter_clauses(filters))
        with storage_errors("map markers"), self._session() as session:
            rows = session.exec(statement.order_by(*NEWEST_FIRST)).all()
        markers = [ViolationRead.model_validate(item) for item in rows]
        return MapMarkersRead(markers=markers, count=len(markers))

    def filter_options(self) -> FilterOptionsRead:
        with storage_errors("filter options"), self._session() as session:
            drone_ids = session.exec(
                select(Violation.drone_id).distinct().order_by(col(Violation.drone_id))
            ).all()
            types = session.exec(select(Violation.type).distinct().order_by(col(Violation.type))).all()
            locations = session.exec(
                select(Violation.location).distinct().order_by(col(Violation.location))
            ).all()
            dates = session.exec(select(Violation.date).distinct().order_by(col(Violation.date))).all()
        return FilterOptionsRead(
            drone_ids=list(drone_ids),
            violation_types=list(types),
            locations=list(locations),
            dates=DateRangeRead(
                min=dates[0] if dates else None,
                max=dates[-1] if dates else None,
                all=list(dates),
            ),
        )
