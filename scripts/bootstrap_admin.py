#!/usr/bin/env python3
"""Emit deterministic SQL that grants or revokes admin rights for a Jobly user.

Registration never creates admins, so the first admin has to be promoted
directly in the database.
"""

from __future__ import annotations

import argparse


def _quote_sql(value: str) -> str:
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def render_sql(*, username: str, revoke: bool = False) -> str:
    is_admin = "false" if revoke else "true"
    return f"""-- Jobly admin bootstrap SQL
-- Run this in a privileged psql session against the Jobly database.

update users
set is_admin = {is_admin}
where username = {_quote_sql(username)};
"""


def main() -> None:
    parser = argparse.ArgumentParser(description="Emit SQL to promote a Jobly user to admin.")
    parser.add_argument("--username", required=True, help="Existing users.username to update")
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Revoke admin rights instead of granting them",
    )
    args = parser.parse_args()

    print(render_sql(username=args.username, revoke=args.revoke), end="")


if __name__ == "__main__":
    main()
