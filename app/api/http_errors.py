from __future__ import annotations

from collections.abc import Mapping

from fastapi import HTTPException

from app.core.errors import UserServiceError


USER_SERVICE_ERROR_STATUSES: Mapping[str, int] = {
    "user_not_found": 404,
    "invitation_code_unavailable": 503,
    "invalid_invitation_code": 404,
    "self_binding_not_allowed": 400,
    "relation_already_exists": 409,
    "friend_list_full": 409,
    "cache_lookup_failed": 503,
    "relation_lookup_failed": 503,
    "confinement_check_failed": 503,
    "relation_create_failed": 503,
}


def user_service_error(
    exc: UserServiceError,
    *,
    code_statuses: Mapping[str, int] | None = None,
    default_status: int = 400,
) -> HTTPException:
    statuses = code_statuses if code_statuses is not None else USER_SERVICE_ERROR_STATUSES
    return HTTPException(
        status_code=statuses.get(exc.kind, default_status),
        detail=exc.to_detail(),
    )
