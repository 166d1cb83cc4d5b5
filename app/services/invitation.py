from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime

from app.core.errors import InvitationCodeUnavailable
from app.services.cache import CodeCache, code_mapping_key

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
_CODE_ALPHABET = string.ascii_uppercase


@dataclass
class IssuedCode:
    code: str
    created_at: datetime


def _make_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


async def get_invitation_code(cache: CodeCache, stu_id: str, *, refresh: bool = False) -> IssuedCode:
    current = await cache.get_user_code(stu_id)
    # The pointer can outlive its mapping (consumed code, partial cleanup).
    if current is not None and not refresh and await cache.exists(code_mapping_key(current.value)):
        return IssuedCode(code=current.value, created_at=current.created_at)

    # Try a few times to avoid rare code collisions
    for _ in range(10):
        code = _make_code()
        if await cache.exists(code_mapping_key(code)):
            continue

        if current is not None:
            await cache.delete_mapping(code_mapping_key(current.value))
        entry = await cache.set_code_mapping(code, stu_id)
        logger.info("invitation code issued stu_id=%s refresh=%s", stu_id, refresh)
        return IssuedCode(code=code, created_at=entry.created_at)

    raise InvitationCodeUnavailable()
