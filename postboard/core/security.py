from __future__ import annotations

import logging

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from postboard.core.errors import InternalError

log = logging.getLogger(__name__)


class PasswordService:
    """argon2id hashing for passwords, refresh secrets and single-use token secrets.

    The salt is generated per call and embedded in the PHC string, so verifying
    only needs the stored digest.
    """

    def __init__(self, **params) -> None:
        self._hasher = PasswordHasher(type=Type.ID, **params)

    def hash(self, secret: str) -> str:
        try:
            return self._hasher.hash(secret)
        except Exception as exc:
            log.error("hashing failed: %s", exc)
            raise InternalError("hashing failed") from exc

    def verify(self, secret: str, digest: str) -> bool:
        try:
            return self._hasher.verify(digest, secret)
        except VerifyMismatchError:
            return False
        except InvalidHash as exc:
            # A stored digest we cannot parse is a data fault, not bad credentials.
            log.error("stored digest is malformed: %s", exc)
            raise InternalError("malformed digest") from exc
        except VerificationError:
            return False
