from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobly.core.config import get_settings
from jobly.core.security import hash_password, verify_password
from jobly.services.errors import (
    RepositoryError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)
from jobly.services.sql import (
    COMPANY_FILTERS,
    COMPANY_UPDATE_COLUMNS,
    JOB_FILTERS,
    JOB_UPDATE_COLUMNS,
    USER_UPDATE_COLUMNS,
    build_filter_predicates,
    sql_for_partial_update,
    where_clause,
)

__all__ = [
    "PostgresRepository",
    "RepositoryError",
    "RepositoryNotFoundError",
    "RepositoryUnavailableError",
    "RepositoryValidationError",
    "get_repository",
]

COMPANY_COLUMNS_SQL = """
  handle,
  name,
  description,
  num_employees,
  logo_url
"""
JOB_COLUMNS_SQL = """
  id,
  title,
  salary,
  equity,
  company_handle
"""
USER_COLUMNS_SQL = """
  username,
  first_name,
  last_name,
  email,
  is_admin
"""


class PostgresRepository:
    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    # Companies

    async def create_company(
        self,
        *,
        handle: str,
        name: str,
        description: str | None,
        num_employees: int | None,
        logo_url: str | None,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into companies (handle, name, description, num_employees, logo_url)
                values ($1, $2, $3, $4, $5)
                returning {COMPANY_COLUMNS_SQL}
                """,
                handle,
                name,
                description,
                num_employees,
                logo_url,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryValidationError(f"duplicate company: {handle}") from exc
        return self._company_row_to_dict(row)

    async def list_companies(
        self,
        *,
        min_employees: int | None = None,
        max_employees: int | None = None,
        name_like: str | None = None,
    ) -> list[dict[str, Any]]:
        if min_employees is not None and max_employees is not None and min_employees > max_employees:
            raise RepositoryValidationError("minEmployees cannot be greater than maxEmployees")

        conditions, params = build_filter_predicates(
            {"min_employees": min_employees, "max_employees": max_employees, "name_like": name_like},
            COMPANY_FILTERS,
        )
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {COMPANY_COLUMNS_SQL}
            from companies
            {where_clause(conditions)}
            order by name
            """,
            *params,
        )
        return [self._company_row_to_dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {COMPANY_COLUMNS_SQL}
            from companies
            where handle = $1
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"no company: {handle}")

        job_rows = await pool.fetch(
            """
            select id, title, salary, equity
            from jobs
            where company_handle = $1
            order by id
            """,
            handle,
        )
        company = self._company_row_to_dict(row)
        company["jobs"] = [
            {"id": job["id"], "title": job["title"], "salary": job["salary"], "equity": job["equity"]}
            for job in job_rows
        ]
        return company

    async def update_company(self, handle: str, data: dict[str, Any]) -> dict[str, Any]:
        assignments, values = sql_for_partial_update(data, COMPANY_UPDATE_COLUMNS)
        handle_token = f"${len(values) + 1}"
        row = await self._fetch_updated_row(
            f"""
            update companies
            set {", ".join(assignments)}
            where handle = {handle_token}
            returning {COMPANY_COLUMNS_SQL}
            """,
            *values,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"no company: {handle}")
        return self._company_row_to_dict(row)

    async def remove_company(self, handle: str) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval("delete from companies where handle = $1 returning handle", handle)
        if deleted is None:
            raise RepositoryNotFoundError(f"no company: {handle}")

    # Jobs

    async def create_job(
        self,
        *,
        title: str,
        salary: int | None,
        equity: Any,
        company_handle: str,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                exists = await conn.fetchval("select 1 from companies where handle = $1", company_handle)
                if not exists:
                    raise RepositoryNotFoundError(f"no company: {company_handle}")
                row = await conn.fetchrow(
                    f"""
                    insert into jobs (title, salary, equity, company_handle)
                    values ($1, $2, $3, $4)
                    returning {JOB_COLUMNS_SQL}
                    """,
                    title,
                    salary,
                    equity,
                    company_handle,
                )
        return self._job_row_to_dict(row)

    async def list_jobs(
        self,
        *,
        min_salary: int | None = None,
        has_equity: bool | None = None,
        title: str | None = None,
    ) -> list[dict[str, Any]]:
        conditions, params = build_filter_predicates(
            {"min_salary": min_salary, "has_equity": has_equity, "title": title},
            JOB_FILTERS,
        )
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select
              j.id,
              j.title,
              j.salary,
              j.equity,
              j.company_handle,
              c.name as company_name
            from jobs j
            left join companies c on c.handle = j.company_handle
            {where_clause(conditions)}
            order by j.title, j.id
            """,
            *params,
        )
        return [
            {**self._job_row_to_dict(row), "company_name": row["company_name"]}
            for row in rows
        ]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {JOB_COLUMNS_SQL}
            from jobs
            where id = $1
            """,
            job_id,
        )
        if not row:
            raise RepositoryNotFoundError(f"no job: {job_id}")

        company_row = await pool.fetchrow(
            f"""
            select {COMPANY_COLUMNS_SQL}
            from companies
            where handle = $1
            """,
            row["company_handle"],
        )
        job = self._job_row_to_dict(row)
        job.pop("company_handle")
        job["company"] = self._company_row_to_dict(company_row) if company_row else None
        return job

    async def update_job(self, job_id: int, data: dict[str, Any]) -> dict[str, Any]:
        assignments, values = sql_for_partial_update(data, JOB_UPDATE_COLUMNS)
        id_token = f"${len(values) + 1}"
        row = await self._fetch_updated_row(
            f"""
            update jobs
            set {", ".join(assignments)}
            where id = {id_token}
            returning {JOB_COLUMNS_SQL}
            """,
            *values,
            job_id,
        )
        if not row:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        return self._job_row_to_dict(row)

    async def remove_job(self, job_id: int) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval("delete from jobs where id = $1 returning id", job_id)
        if deleted is None:
            raise RepositoryNotFoundError(f"no job: {job_id}")

    # Users

    async def authenticate_user(self, username: str, password: str) -> dict[str, Any] | None:
        """Return the user when the password matches, otherwise None."""
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {USER_COLUMNS_SQL}, password
            from users
            where username = $1
            """,
            username,
        )
        if not row:
            return None
        is_valid = await asyncio.to_thread(verify_password, password, row["password"])
        if not is_valid:
            return None
        return self._user_row_to_dict(row)

    async def register_user(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        is_admin: bool = False,
    ) -> dict[str, Any]:
        hashed_password = await asyncio.to_thread(hash_password, password)
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into users (username, password, first_name, last_name, email, is_admin)
                values ($1, $2, $3, $4, $5, $6)
                returning {USER_COLUMNS_SQL}
                """,
                username,
                hashed_password,
                first_name,
                last_name,
                email,
                is_admin,
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryValidationError(f"duplicate username: {username}") from exc
        return self._user_row_to_dict(row)

    async def list_users(self) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {USER_COLUMNS_SQL}
            from users
            order by username
            """
        )
        return [self._user_row_to_dict(row) for row in rows]

    async def get_user(self, username: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {USER_COLUMNS_SQL}
            from users
            where username = $1
            """,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"no user: {username}")

        job_rows = await pool.fetch(
            """
            select
              j.id,
              j.title,
              j.company_handle,
              c.name as company_name
            from applications a
            join jobs j on j.id = a.job_id
            left join companies c on c.handle = j.company_handle
            where a.username = $1
            order by j.id
            """,
            username,
        )
        user = self._user_row_to_dict(row)
        user["jobs"] = [
            {
                "id": job["id"],
                "title": job["title"],
                "company_handle": job["company_handle"],
                "company_name": job["company_name"],
            }
            for job in job_rows
        ]
        return user

    async def update_user(self, username: str, data: dict[str, Any]) -> dict[str, Any]:
        changes = dict(data)
        if changes.get("password") is not None:
            changes["password"] = await asyncio.to_thread(hash_password, changes["password"])

        assignments, values = sql_for_partial_update(changes, USER_UPDATE_COLUMNS)
        username_token = f"${len(values) + 1}"
        row = await self._fetch_updated_row(
            f"""
            update users
            set {", ".join(assignments)}
            where username = {username_token}
            returning {USER_COLUMNS_SQL}
            """,
            *values,
            username,
        )
        if not row:
            raise RepositoryNotFoundError(f"no user: {username}")
        return self._user_row_to_dict(row)

    async def remove_user(self, username: str) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval("delete from users where username = $1 returning username", username)
        if deleted is None:
            raise RepositoryNotFoundError(f"no user: {username}")

    async def apply_to_job(self, username: str, job_id: int) -> None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                job_exists = await conn.fetchval("select 1 from jobs where id = $1", job_id)
                if not job_exists:
                    raise RepositoryNotFoundError(f"no job: {job_id}")
                user_exists = await conn.fetchval("select 1 from users where username = $1", username)
                if not user_exists:
                    raise RepositoryNotFoundError(f"no user: {username}")
                try:
                    await conn.execute(
                        "insert into applications (username, job_id) values ($1, $2)",
                        username,
                        job_id,
                    )
                except pg_exc.UniqueViolationError as exc:
                    raise RepositoryValidationError(f"already applied to job: {job_id}") from exc

    async def _fetch_updated_row(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._get_pool()
        try:
            return await pool.fetchrow(query, *args)
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryValidationError("value already in use") from exc
        except pg_exc.NotNullViolationError as exc:
            raise RepositoryValidationError("required field cannot be null") from exc
        except pg_exc.CheckViolationError as exc:
            raise RepositoryValidationError("value out of allowed range") from exc

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise RepositoryUnavailableError("JOBLY_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RepositoryUnavailableError("database unavailable") from exc

    @staticmethod
    def _company_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "num_employees": row["num_employees"],
            "logo_url": row["logo_url"],
        }

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": row["equity"],
            "company_handle": row["company_handle"],
        }

    @staticmethod
    def _user_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "username": row["username"],
            "first_name": row["first_name"],
            "last_name": row["last_name"],
            "email": row["email"],
            "is_admin": bool(row["is_admin"]),
        }


@lru_cache
def get_repository() -> PostgresRepository:
    settings = get_settings()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
