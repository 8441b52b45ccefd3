"""Helpers that build parameterized SQL fragments for asyncpg.

Every fragment produced here refers to its values only through positional
``$n`` placeholders; values never appear in the fragment text. Callers join
the fragments into a full statement and pass the returned values, in order,
as the statement arguments.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from jobly.services.errors import RepositoryValidationError

COMPANY_UPDATE_COLUMNS: dict[str, str] = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}
JOB_UPDATE_COLUMNS: dict[str, str] = {}
USER_UPDATE_COLUMNS: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "isAdmin": "is_admin",
}


def column_for(field_name: str, column_map: Mapping[str, str]) -> str:
    return column_map.get(field_name, field_name)


def quote_identifier(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def sql_for_partial_update(data: Mapping[str, Any], column_map: Mapping[str, str]) -> tuple[list[str], list[Any]]:
    """Build the assignments of an UPDATE ... SET clause.

    >>> sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
    (['"first_name" = $1', '"age" = $2'], ['Aliya', 32])

    Raises RepositoryValidationError when ``data`` is empty.
    """
    if not data:
        raise RepositoryValidationError("no data")

    assignments: list[str] = []
    values: list[Any] = []
    for field_name, value in data.items():
        values.append(value)
        assignments.append(f"{quote_identifier(column_for(field_name, column_map))} = ${len(values)}")
    return assignments, values


def _is_present(value: Any) -> bool:
    return value is not None


def _is_truthy(value: Any) -> bool:
    return bool(value)


def _is_exactly_true(value: Any) -> bool:
    return value is True


def _contains_pattern(value: Any) -> str:
    return f"%{value}%"


@dataclass(frozen=True, slots=True)
class FilterCriterion:
    """One optional search field and the predicate it contributes.

    ``predicate`` is a template; ``{param}`` is replaced by the placeholder of
    the bound value. Criteria with ``binds_value=False`` emit the predicate
    verbatim and bind nothing.
    """

    name: str
    predicate: str
    applies: Callable[[Any], bool] = _is_present
    transform: Callable[[Any], Any] | None = None
    binds_value: bool = True


COMPANY_FILTERS: tuple[FilterCriterion, ...] = (
    FilterCriterion("min_employees", "num_employees >= {param}"),
    FilterCriterion("max_employees", "num_employees <= {param}"),
    FilterCriterion("name_like", "name ILIKE {param}", applies=_is_truthy, transform=_contains_pattern),
)

JOB_FILTERS: tuple[FilterCriterion, ...] = (
    FilterCriterion("min_salary", "salary >= {param}"),
    FilterCriterion("has_equity", "equity > 0", applies=_is_exactly_true, binds_value=False),
    FilterCriterion("title", "title ILIKE {param}", transform=_contains_pattern),
)


def build_filter_predicates(
    criteria: Mapping[str, Any],
    definitions: Sequence[FilterCriterion],
) -> tuple[list[str], list[Any]]:
    """Build AND-able predicates for the criteria present in ``criteria``.

    Predicates come out in ``definitions`` order whatever order ``criteria``
    was built in, so the generated statement is stable.

    >>> build_filter_predicates({"title": "Engineer", "min_salary": 50000, "has_equity": True}, JOB_FILTERS)
    (['salary >= $1', 'equity > 0', 'title ILIKE $2'], [50000, '%Engineer%'])
    """
    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    for criterion in definitions:
        value = criteria.get(criterion.name)
        if value is None or not criterion.applies(value):
            continue
        if not criterion.binds_value:
            conditions.append(criterion.predicate)
            continue
        bound = criterion.transform(value) if criterion.transform is not None else value
        conditions.append(criterion.predicate.format(param=bind(bound)))

    return conditions, params


def where_clause(conditions: Sequence[str]) -> str:
    if not conditions:
        return ""
    return "where " + " and ".join(conditions)
