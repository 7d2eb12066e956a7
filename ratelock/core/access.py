"""
Access — capability-based авторизация привилегированных операций.

Явная проверка: идентичность вызывающего + требуемая capability.
Иерархии ролей нет: ADMIN не подразумевает MINT_AND_BURN.
"""

import logging
from enum import Enum
from typing import Iterable

from ratelock.core.errors import Unauthorized

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    """Capability привилегированного вызывающего."""

    MINT_AND_BURN = "MINT_AND_BURN"
    ADMIN = "ADMIN"


class AccessControl:
    """Реестр capability по идентичности вызывающего.

    Инстанс создаётся с владельцем, которому выдаётся ADMIN.
    """

    def __init__(self, owner: str):
        self._grants: dict[str, set[Capability]] = {owner: {Capability.ADMIN}}

    def has(self, identity: str, capability: Capability) -> bool:
        return capability in self._grants.get(identity, set())

    def require(self, caller: str, capability: Capability) -> None:
        """
        Проверка capability.

        Raises:
            Unauthorized: если caller не обладает capability
        """
        if not self.has(caller, capability):
            logger.info("unauthorized caller=%s capability=%s", caller, capability.value)
            raise Unauthorized(caller, capability)

    def grant(self, caller: str, grantee: str, capability: Capability) -> None:
        """Выдача capability (требует ADMIN)."""
        self.require(caller, Capability.ADMIN)
        self._grants.setdefault(grantee, set()).add(capability)
        logger.debug("granted %s to %s by %s", capability.value, grantee, caller)

    def revoke(self, caller: str, grantee: str, capability: Capability) -> None:
        """Отзыв capability (требует ADMIN)."""
        self.require(caller, Capability.ADMIN)
        self._grants.get(grantee, set()).discard(capability)
        logger.debug("revoked %s from %s by %s", capability.value, grantee, caller)

    def export(self) -> dict[str, list[str]]:
        """Сериализуемое представление для снапшота."""
        return {
            identity: sorted(c.value for c in caps)
            for identity, caps in self._grants.items()
            if caps
        }

    @classmethod
    def from_export(cls, grants: dict[str, Iterable[str]]) -> "AccessControl":
        """Восстановление реестра из снапшота (без владельца по умолчанию)."""
        acl = cls.__new__(cls)
        acl._grants = {
            identity: {Capability(c) for c in caps} for identity, caps in grants.items()
        }
        return acl
