"""Translation of PostgREST errors into application errors."""

from typing import Any, Protocol

from postgrest.exceptions import APIError

from nutriscan.domain.errors import ConflictError

UNIQUE_VIOLATION = "23505"


class ExecutableQuery(Protocol):
    def execute(self) -> Any: ...


def execute_insert(query: ExecutableQuery, conflict_message: str) -> dict[str, Any]:
    """Execute an insert, turning unique violations into ConflictError."""
    try:
        response = query.execute()
    except APIError as exc:
        if exc.code == UNIQUE_VIOLATION:
            raise ConflictError(conflict_message) from exc
        raise
    if not response.data:
        raise RuntimeError("Supabase returned no rows for insert")
    return response.data[0]
