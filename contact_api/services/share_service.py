"""
Share-code registry and the cross-account access-grant exchange.

An account gets one five-character share code, issued lazily and never
changed. Presenting someone's code records the redemption on the presenter
and grants the presenter ``view`` access on the owner, so a single call links
both sides.
"""

from __future__ import annotations

from typing import Optional, Union

import structlog

from contact_api.core.config import get_settings
from contact_api.db.models import Account
from contact_api.domain.errors import InvalidArgumentError
from contact_api.domain.share_codes import CODE_LENGTH, ShareCodeGenerator, normalize_code
from contact_api.repositories.sql_repository import ShareCodeTakenError, SQLRepository
from contact_api.services.auth_service import AccountNotFoundError

logger = structlog.get_logger(__name__)

ACCESS_LEVELS = ("view", "edit")
DEFAULT_MAX_ATTEMPTS = 100


class ShareError(Exception):
    """Base exception for the sharing workflow."""


class CodeNotFoundError(ShareError):
    """Raised when a presented code does not resolve to an active account."""


class CodeSpaceExhaustedError(ShareError):
    """Raised when no free code was found within the attempt budget."""


AccountRef = Union[Account, str]


class ShareService:
    """Issues unique share codes and records grants/redemptions."""

    def __init__(
        self,
        repository: Optional[SQLRepository] = None,
        generator: Optional[ShareCodeGenerator] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self.repository = repository or SQLRepository()
        self.generator = generator or ShareCodeGenerator()
        configured = max_attempts or get_settings().share_code_max_attempts
        self.max_attempts = configured if configured and configured > 0 else DEFAULT_MAX_ATTEMPTS

    def _resolve(self, account: AccountRef) -> Account:
        if isinstance(account, Account):
            return account
        entity = self.repository.get_account(account)
        if not entity:
            raise AccountNotFoundError(f"Account {account} not found")
        return entity

    # -------------------------------------- codes --------------------------------------
    def ensure_share_code(self, account: AccountRef) -> str:
        """Return the account's code, assigning a fresh unique one if it has none.

        Each attempt draws one candidate. The unique index on
        ``accounts.share_code`` is the serialization point: a candidate that
        loses the race surfaces as ShareCodeTakenError and is retried.
        """
        entity = self._resolve(account)
        if entity.share_code:
            return entity.share_code
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator.generate()
            if self.repository.share_code_exists(candidate):
                continue
            try:
                assigned = self.repository.assign_share_code(entity.id, candidate)
            except ShareCodeTakenError:
                logger.debug("share_code.collision", account_id=entity.id, attempt=attempt)
                continue
            if assigned:
                entity.share_code = candidate
                logger.info("share_code.assigned", account_id=entity.id, attempts=attempt)
                return candidate
            # Someone else assigned a code to this account in the meantime.
            current = self.repository.get_account(entity.id)
            if current is None:
                raise AccountNotFoundError(f"Account {entity.id} not found")
            if current.share_code:
                entity.share_code = current.share_code
                return current.share_code
        logger.warning("share_code.exhausted", account_id=entity.id, attempts=self.max_attempts)
        raise CodeSpaceExhaustedError(f"No free share code after {self.max_attempts} attempts")

    def find_by_code(self, code: str) -> Account:
        """Resolve a code to its active owner without recording anything."""
        normalized = normalize_code(code)
        if len(normalized) != CODE_LENGTH:
            raise InvalidArgumentError(f"Share codes have {CODE_LENGTH} characters")
        owner = self.repository.get_account_by_share_code(normalized)
        if not owner or not owner.is_active:
            raise CodeNotFoundError(f"Share code {normalized} not found")
        return owner

    # -------------------------------------- grants --------------------------------------
    def grant_access(self, owner: AccountRef, grantee_id: str, level: str = "view") -> str:
        """Let ``grantee_id`` see the owner's data; repeated grants are no-ops."""
        if level not in ACCESS_LEVELS:
            raise InvalidArgumentError(f"Invalid access level: {level!r}")
        entity = self._resolve(owner)
        if not grantee_id:
            raise InvalidArgumentError("Grantee is required")
        if grantee_id == entity.id:
            raise InvalidArgumentError("An account cannot share with itself")
        if self.repository.get_account(grantee_id) is None:
            raise AccountNotFoundError(f"Account {grantee_id} not found")
        code = self.ensure_share_code(entity)
        if self.repository.add_share_grant(entity.id, grantee_id, level):
            logger.info("share_grant.created", owner_id=entity.id, grantee_id=grantee_id, level=level)
        return code

    def redeem_code(self, requester: AccountRef, code: str) -> Account:
        """Record the redemption on ``requester`` and grant it view access on the owner.

        Returns a fresh copy of the owner so callers can show its profile.
        """
        entity = self._resolve(requester)
        owner = self.find_by_code(code)
        if owner.id == entity.id:
            raise InvalidArgumentError("An account cannot redeem its own share code")
        normalized = owner.share_code
        if self.repository.add_access_record(entity.id, normalized, owner.id):
            logger.info("share_code.redeemed", account_id=entity.id, owner_id=owner.id)
        self.grant_access(owner, entity.id, "view")
        return self.repository.get_account(owner.id)

    def can_access(self, viewer_id: str, owner_id: str, level: str = "view") -> bool:
        if viewer_id == owner_id:
            return True
        grant = self.repository.get_share_grant(owner_id, viewer_id)
        if grant is None:
            return False
        return level == "view" or grant.access_level == "edit"
