"""Error kinds raised by the user service.

Every error carries a stable ``kind`` for callers to branch on and a
human-readable message. Collaborator failures are chained with
``raise ... from exc`` so the original cause stays on ``__cause__``.
"""
from __future__ import annotations


class UserServiceError(Exception):
    kind: str = "user_service_error"
    default_message: str = "user service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class UserNotFound(UserServiceError):
    kind = "user_not_found"
    default_message = "User not found"


class InvitationCodeUnavailable(UserServiceError):
    kind = "invitation_code_unavailable"
    default_message = "Failed to generate a unique invitation code"


class DuplicateRelationError(UserServiceError):
    """Raised by the relation store when the pair unique constraint fires."""

    kind = "duplicate_relation"
    default_message = "Relation already stored"


# ─────────────────────────────────────────────
# Invitation binding
# ─────────────────────────────────────────────


class BindInvitationError(UserServiceError):
    kind = "bind_invitation_error"


class InvalidInvitationCode(BindInvitationError):
    kind = "invalid_invitation_code"
    default_message = "Invalid invitation code"


class CacheLookupFailed(BindInvitationError):
    kind = "cache_lookup_failed"
    default_message = "Failed to resolve invitation code"


class SelfBindingNotAllowed(BindInvitationError):
    kind = "self_binding_not_allowed"
    default_message = "Cannot add yourself as friend"


class RelationLookupFailed(BindInvitationError):
    kind = "relation_lookup_failed"
    default_message = "Failed to look up relation"


class RelationAlreadyExists(BindInvitationError):
    kind = "relation_already_exists"
    default_message = "Relationship already exists"


class RelationCreateFailed(BindInvitationError):
    kind = "relation_create_failed"
    default_message = "Failed to create relation"


class _UserScopedBindError(BindInvitationError):
    def __init__(self, stu_id: str, message: str | None = None) -> None:
        self.stu_id = stu_id
        super().__init__(message or self.default_message.format(stu_id=stu_id))

    def to_detail(self) -> dict[str, str]:
        return {**super().to_detail(), "stu_id": self.stu_id}


class ConfinementCheckFailed(_UserScopedBindError):
    kind = "confinement_check_failed"
    default_message = "Failed to check friend count of {stu_id}"


class FriendListFull(_UserScopedBindError):
    kind = "friend_list_full"
    default_message = "{stu_id} friend list is full"
