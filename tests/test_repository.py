from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import pytest
from asyncpg import exceptions as pg_exc

from jobly.services.repository import (
    PostgresRepository,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

T = TypeVar("T")


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


class _Transaction:
    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, *exc: object) -> None:
        return None


class RecordingPool:
    """Stands in for an asyncpg pool/connection and records every statement."""

    def __init__(
        self,
        results: list[Any] | None = None,
        error: Exception | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.calls: list[tuple[str, str, tuple[Any, ...]]] = []
        self._results = list(results or [])
        self._error = error
        self._fail_on = fail_on

    def acquire(self) -> "RecordingPool":
        return self

    async def __aenter__(self) -> "RecordingPool":
        return self

    async def __aexit__(self, *exc: object) -> None:
        return None

    def transaction(self) -> _Transaction:
        return _Transaction()

    async def fetch(self, query: str, *args: Any) -> Any:
        return self._record("fetch", query, args, default=[])

    async def fetchrow(self, query: str, *args: Any) -> Any:
        return self._record("fetchrow", query, args, default=None)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return self._record("fetchval", query, args, default=None)

    async def execute(self, query: str, *args: Any) -> Any:
        return self._record("execute", query, args, default="INSERT 0 1")

    def _record(self, method: str, query: str, args: tuple[Any, ...], *, default: Any) -> Any:
        self.calls.append((method, " ".join(query.split()), args))
        if self._error is not None and self._fail_on in (None, method):
            raise self._error
        if self._results:
            return self._results.pop(0)
        return default


def _repository(pool: RecordingPool) -> PostgresRepository:
    repository = PostgresRepository(database_url="postgresql://jobly@localhost/jobly_test", min_pool_size=1, max_pool_size=1)
    repository._pool = pool  # type: ignore[assignment]
    return repository


COMPANY_ROW = {
    "handle": "c1",
    "name": "C1",
    "description": "Desc1",
    "num_employees": 1,
    "logo_url": "http://c1.img",
}


def test_missing_database_url_is_unavailable() -> None:
    repository = PostgresRepository(database_url=None, min_pool_size=1, max_pool_size=1)

    with pytest.raises(RepositoryUnavailableError):
        _run(repository.list_companies())


def test_list_companies_without_filters_has_no_where_clause() -> None:
    pool = RecordingPool(results=[[COMPANY_ROW]])

    rows = _run(_repository(pool).list_companies())

    method, query, args = pool.calls[0]
    assert method == "fetch"
    assert "where" not in query
    assert query.endswith("from companies order by name")
    assert args == ()
    assert rows == [COMPANY_ROW]


def test_list_companies_binds_filters_in_order() -> None:
    pool = RecordingPool()

    _run(_repository(pool).list_companies(name_like="net", min_employees=10, max_employees=300))

    _, query, args = pool.calls[0]
    assert "where num_employees >= $1 and num_employees <= $2 and name ILIKE $3" in query
    assert args == (10, 300, "%net%")


def test_list_companies_rejects_inverted_bounds_before_querying() -> None:
    pool = RecordingPool()

    with pytest.raises(RepositoryValidationError, match="cannot be greater"):
        _run(_repository(pool).list_companies(min_employees=10, max_employees=1))

    assert pool.calls == []


def test_list_jobs_skips_equity_predicate_when_false() -> None:
    pool = RecordingPool()

    _run(_repository(pool).list_jobs(min_salary=100, has_equity=False, title="dev"))

    _, query, args = pool.calls[0]
    assert "where salary >= $1 and title ILIKE $2" in query
    assert "equity > 0" not in query
    assert args == (100, "%dev%")


def test_update_company_appends_key_after_assignment_values() -> None:
    pool = RecordingPool(results=[{**COMPANY_ROW, "name": "New", "num_employees": 5}])

    row = _run(_repository(pool).update_company("c1", {"name": "New", "numEmployees": 5}))

    _, query, args = pool.calls[0]
    assert 'set "name" = $1, "num_employees" = $2 where handle = $3' in query
    assert args == ("New", 5, "c1")
    assert row["num_employees"] == 5


def test_update_company_missing_row_is_not_found() -> None:
    pool = RecordingPool(results=[None])

    with pytest.raises(RepositoryNotFoundError, match="no company: nope"):
        _run(_repository(pool).update_company("nope", {"name": "New"}))


def test_update_with_empty_data_never_touches_database() -> None:
    pool = RecordingPool()

    with pytest.raises(RepositoryValidationError, match="no data"):
        _run(_repository(pool).update_job(1, {}))

    assert pool.calls == []


def test_update_not_null_violation_is_validation_error() -> None:
    pool = RecordingPool(error=pg_exc.NotNullViolationError("null value in column \"name\""))

    with pytest.raises(RepositoryValidationError):
        _run(_repository(pool).update_company("c1", {"name": None}))


def test_update_company_to_taken_name_is_validation_error() -> None:
    pool = RecordingPool(error=pg_exc.UniqueViolationError("duplicate key value violates unique constraint"))

    with pytest.raises(RepositoryValidationError, match="already in use"):
        _run(_repository(pool).update_company("c1", {"name": "C2"}))


def test_update_user_hashes_password_and_maps_columns(monkeypatch: pytest.MonkeyPatch) -> None:
    import jobly.services.repository as repository_module

    monkeypatch.setattr(repository_module, "hash_password", lambda password: f"hashed:{password}")
    pool = RecordingPool(
        results=[
            {
                "username": "u1",
                "first_name": "New",
                "last_name": "U1L",
                "email": "user1@user.com",
                "is_admin": False,
            }
        ]
    )

    row = _run(_repository(pool).update_user("u1", {"firstName": "New", "password": "secret"}))

    _, query, args = pool.calls[0]
    assert 'set "first_name" = $1, "password" = $2 where username = $3' in query
    assert args == ("New", "hashed:secret", "u1")
    assert "password" not in row


def test_create_company_duplicate_is_validation_error() -> None:
    pool = RecordingPool(error=pg_exc.UniqueViolationError("duplicate key"))

    with pytest.raises(RepositoryValidationError, match="duplicate company: c1"):
        _run(
            _repository(pool).create_company(
                handle="c1",
                name="C1",
                description=None,
                num_employees=None,
                logo_url=None,
            )
        )


def test_create_job_requires_existing_company() -> None:
    pool = RecordingPool(results=[None])

    with pytest.raises(RepositoryNotFoundError, match="no company: nope"):
        _run(_repository(pool).create_job(title="J", salary=1, equity=None, company_handle="nope"))

    assert len(pool.calls) == 1


def test_remove_job_missing_is_not_found() -> None:
    pool = RecordingPool(results=[None])

    with pytest.raises(RepositoryNotFoundError, match="no job: 99"):
        _run(_repository(pool).remove_job(99))


def test_get_job_nests_company() -> None:
    pool = RecordingPool(
        results=[
            {"id": 1, "title": "J1", "salary": 1, "equity": None, "company_handle": "c1"},
            COMPANY_ROW,
        ]
    )

    job = _run(_repository(pool).get_job(1))

    assert "company_handle" not in job
    assert job["company"] == COMPANY_ROW
    assert pool.calls[1][2] == ("c1",)


def test_apply_to_job_checks_job_then_user() -> None:
    pool = RecordingPool(results=[1, None])

    with pytest.raises(RepositoryNotFoundError, match="no user: ghost"):
        _run(_repository(pool).apply_to_job("ghost", 1))


def test_apply_to_job_twice_is_validation_error() -> None:
    pool = RecordingPool(results=[1, 1], error=pg_exc.UniqueViolationError("duplicate key"), fail_on="execute")

    with pytest.raises(RepositoryValidationError, match="already applied to job: 1"):
        _run(_repository(pool).apply_to_job("u1", 1))

    assert [call[0] for call in pool.calls] == ["fetchval", "fetchval", "execute"]


def test_authenticate_user_rejects_unknown_user() -> None:
    pool = RecordingPool(results=[None])

    assert _run(_repository(pool).authenticate_user("ghost", "password")) is None
