from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest
from fastapi.testclient import TestClient

from jobly.core.auth import Identity
from jobly.core.tokens import get_token_codec
from jobly.main import app
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryValidationError,
    get_repository,
)
from jobly.services.sql import COMPANY_UPDATE_COLUMNS, JOB_UPDATE_COLUMNS, USER_UPDATE_COLUMNS, sql_for_partial_update


class FakeJoblyRepository:
    def __init__(self) -> None:
        self.companies: dict[str, dict[str, Any]] = {
            "c1": {
                "handle": "c1",
                "name": "C1",
                "description": "Desc1",
                "num_employees": 1,
                "logo_url": "http://c1.img",
            },
            "c2": {
                "handle": "c2",
                "name": "C2",
                "description": "Desc2",
                "num_employees": 2,
                "logo_url": "http://c2.img",
            },
        }
        self.jobs: dict[int, dict[str, Any]] = {
            1: {"id": 1, "title": "J1", "salary": 1, "equity": Decimal("0.1"), "company_handle": "c1"},
            2: {"id": 2, "title": "J2", "salary": 2, "equity": Decimal("0"), "company_handle": "c1"},
        }
        self.users: dict[str, dict[str, Any]] = {
            "u1": {
                "username": "u1",
                "password": "password1",
                "first_name": "U1F",
                "last_name": "U1L",
                "email": "user1@user.com",
                "is_admin": False,
            },
            "admin": {
                "username": "admin",
                "password": "password2",
                "first_name": "AdF",
                "last_name": "AdL",
                "email": "admin@user.com",
                "is_admin": True,
            },
        }
        self.applications: set[tuple[str, int]] = set()
        self.update_calls: list[tuple[list[str], list[Any]]] = []

    async def close(self) -> None:
        return None

    async def create_company(self, **company: Any) -> dict[str, Any]:
        if company["handle"] in self.companies:
            raise RepositoryValidationError(f"duplicate company: {company['handle']}")
        self.companies[company["handle"]] = dict(company)
        return dict(company)

    async def list_companies(
        self,
        *,
        min_employees: int | None = None,
        max_employees: int | None = None,
        name_like: str | None = None,
    ) -> list[dict[str, Any]]:
        if min_employees is not None and max_employees is not None and min_employees > max_employees:
            raise RepositoryValidationError("minEmployees cannot be greater than maxEmployees")
        rows = sorted(self.companies.values(), key=lambda row: row["name"])
        if min_employees is not None:
            rows = [row for row in rows if (row["num_employees"] or 0) >= min_employees]
        if max_employees is not None:
            rows = [row for row in rows if (row["num_employees"] or 0) <= max_employees]
        if name_like:
            rows = [row for row in rows if name_like.lower() in row["name"].lower()]
        return rows

    async def get_company(self, handle: str) -> dict[str, Any]:
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"no company: {handle}")
        jobs = [
            {key: job[key] for key in ("id", "title", "salary", "equity")}
            for job in self.jobs.values()
            if job["company_handle"] == handle
        ]
        return {**self.companies[handle], "jobs": jobs}

    async def update_company(self, handle: str, data: dict[str, Any]) -> dict[str, Any]:
        self.update_calls.append(sql_for_partial_update(data, COMPANY_UPDATE_COLUMNS))
        if handle not in self.companies:
            raise RepositoryNotFoundError(f"no company: {handle}")
        for key, value in data.items():
            self.companies[handle][COMPANY_UPDATE_COLUMNS.get(key, key)] = value
        return self.companies[handle]

    async def remove_company(self, handle: str) -> None:
        if self.companies.pop(handle, None) is None:
            raise RepositoryNotFoundError(f"no company: {handle}")

    async def create_job(self, **job: Any) -> dict[str, Any]:
        if job["company_handle"] not in self.companies:
            raise RepositoryNotFoundError(f"no company: {job['company_handle']}")
        job_id = max(self.jobs, default=0) + 1
        self.jobs[job_id] = {"id": job_id, **job}
        return self.jobs[job_id]

    async def list_jobs(
        self,
        *,
        min_salary: int | None = None,
        has_equity: bool | None = None,
        title: str | None = None,
    ) -> list[dict[str, Any]]:
        rows = list(self.jobs.values())
        if min_salary is not None:
            rows = [row for row in rows if (row["salary"] or 0) >= min_salary]
        if has_equity is True:
            rows = [row for row in rows if (row["equity"] or 0) > 0]
        if title is not None:
            rows = [row for row in rows if title.lower() in row["title"].lower()]
        return [{**row, "company_name": self.companies[row["company_handle"]]["name"]} for row in rows]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        job = dict(self.jobs[job_id])
        handle = job.pop("company_handle")
        return {**job, "company": self.companies.get(handle)}

    async def update_job(self, job_id: int, data: dict[str, Any]) -> dict[str, Any]:
        self.update_calls.append(sql_for_partial_update(data, JOB_UPDATE_COLUMNS))
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        self.jobs[job_id].update(data)
        return self.jobs[job_id]

    async def remove_job(self, job_id: int) -> None:
        if self.jobs.pop(job_id, None) is None:
            raise RepositoryNotFoundError(f"no job: {job_id}")

    async def authenticate_user(self, username: str, password: str) -> dict[str, Any] | None:
        user = self.users.get(username)
        if user is None or user["password"] != password:
            return None
        return self._public_user(user)

    async def register_user(self, **user: Any) -> dict[str, Any]:
        if user["username"] in self.users:
            raise RepositoryValidationError(f"duplicate username: {user['username']}")
        self.users[user["username"]] = dict(user)
        return self._public_user(user)

    async def list_users(self) -> list[dict[str, Any]]:
        return [self._public_user(user) for _, user in sorted(self.users.items())]

    async def get_user(self, username: str) -> dict[str, Any]:
        if username not in self.users:
            raise RepositoryNotFoundError(f"no user: {username}")
        jobs = [
            {
                "id": job_id,
                "title": self.jobs[job_id]["title"],
                "company_handle": self.jobs[job_id]["company_handle"],
                "company_name": self.companies[self.jobs[job_id]["company_handle"]]["name"],
            }
            for applicant, job_id in sorted(self.applications)
            if applicant == username
        ]
        return {**self._public_user(self.users[username]), "jobs": jobs}

    async def update_user(self, username: str, data: dict[str, Any]) -> dict[str, Any]:
        self.update_calls.append(sql_for_partial_update(data, USER_UPDATE_COLUMNS))
        if username not in self.users:
            raise RepositoryNotFoundError(f"no user: {username}")
        for key, value in data.items():
            self.users[username][USER_UPDATE_COLUMNS.get(key, key)] = value
        return self._public_user(self.users[username])

    async def remove_user(self, username: str) -> None:
        if self.users.pop(username, None) is None:
            raise RepositoryNotFoundError(f"no user: {username}")

    async def apply_to_job(self, username: str, job_id: int) -> None:
        if job_id not in self.jobs:
            raise RepositoryNotFoundError(f"no job: {job_id}")
        if username not in self.users:
            raise RepositoryNotFoundError(f"no user: {username}")
        if (username, job_id) in self.applications:
            raise RepositoryValidationError(f"already applied to job: {job_id}")
        self.applications.add((username, job_id))

    @staticmethod
    def _public_user(user: dict[str, Any]) -> dict[str, Any]:
        return {key: user[key] for key in ("username", "first_name", "last_name", "email", "is_admin")}


@pytest.fixture
def fake_repo() -> FakeJoblyRepository:
    return FakeJoblyRepository()


@pytest.fixture
def client(fake_repo: FakeJoblyRepository) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: fake_repo

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def bearer(username: str, *, is_admin: bool = False) -> dict[str, str]:
    token = get_token_codec().encode(Identity(username=username, is_admin=is_admin))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def u1_headers() -> dict[str, str]:
    return bearer("u1")


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer("admin", is_admin=True)
