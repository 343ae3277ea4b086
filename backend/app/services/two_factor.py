"""
In-process store for pending two-factor logins.

A challenge is created after the password check and consumed by the first
successful verification. The map lives in this process only; lookups and
deletes never await in between, so concurrent verifies of the same challenge
cannot both succeed.
"""

import logging
import secrets
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

from app.core.config import settings
from app.core.exceptions import BadRequestError, UnauthorizedError

logger = logging.getLogger(__name__)

DEFAULT_CHALLENGE_TTL_SECONDS = 300


def generate_otp_code() -> str:
    """Random six digit code in 100000..999999."""
    return str(secrets.randbelow(900000) + 100000)


@dataclass
class TwoFactorChallenge:
    user_id: str
    email: str
    name: str
    roles: List[str] = field(default_factory=list)
    code: str = ""
    expires_at: float = 0.0


class TwoFactorChallengeStore:
    """Challenge id to pending-login map with an injectable clock."""

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_CHALLENGE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._challenges: Dict[str, TwoFactorChallenge] = {}

    def __len__(self) -> int:
        return len(self._challenges)

    def __contains__(self, challenge_id: str) -> bool:
        return challenge_id in self._challenges

    def create(self, user_id: str, email: str, name: str, roles: List[str]) -> Tuple[str, str, int]:
        """
        Start a challenge for a user who passed the password check.

        Returns:
            (challenge_id, code, expires_in_seconds)
        """
        challenge_id = str(uuid.uuid4())
        code = generate_otp_code()
        self._challenges[challenge_id] = TwoFactorChallenge(
            user_id=str(user_id),
            email=email,
            name=name,
            roles=list(roles),
            code=code,
            expires_at=self.clock() + self.ttl_seconds,
        )
        logger.debug(f"Created 2FA challenge {challenge_id} for user {user_id}")
        return challenge_id, code, self.ttl_seconds

    def verify(self, challenge_id: str, code: str) -> TwoFactorChallenge:
        """
        Consume a challenge.

        Raises:
            BadRequestError: unknown id, or the challenge has expired (it is removed)
            UnauthorizedError: wrong code; the challenge stays usable
        """
        challenge = self._challenges.get(challenge_id)
        if challenge is None:
            raise BadRequestError("Invalid or expired challenge")

        if self.clock() > challenge.expires_at:
            del self._challenges[challenge_id]
            raise BadRequestError("Challenge expired")

        if not secrets.compare_digest(challenge.code, str(code)):
            raise UnauthorizedError("Invalid verification code")

        del self._challenges[challenge_id]
        return challenge

    def clear(self) -> None:
        self._challenges.clear()


challenge_store = TwoFactorChallengeStore(ttl_seconds=settings.two_factor_ttl_seconds)
