"""
LedgerSnapshot — Модель персистентного состояния леджера

Снапшот содержит ровно persisted layout:
- global_rate (скаляр)
- accounts: account_id → (principal, locked_rate, last_update)
- allowances: owner → spender → amount
- capabilities: identity → список capability

Соответствует схеме contracts/schema/ledger_snapshot.json.
"""

from typing import Any

from pydantic import BaseModel, Field

from ratelock.core.contracts import validate_ledger_snapshot

from .account import AccountRecord


class LedgerSnapshot(BaseModel):
    """Снапшот состояния одного инстанса леджера."""

    schema_version: str = Field(default="1", pattern="^1$", description="Версия схемы")
    global_rate: int = Field(..., gt=0, description="Текущая global rate")
    precision: int = Field(..., gt=0, description="Знаменатель fixed-point")
    accounts: dict[str, AccountRecord] = Field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = Field(default_factory=dict)
    capabilities: dict[str, list[str]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    def to_document(self) -> dict[str, Any]:
        """JSON-совместимый документ (формат ledger_snapshot.json)."""
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "LedgerSnapshot":
        """
        Загрузка снапшота из JSON документа.

        Документ сначала проверяется схемой, затем моделью.

        Raises:
            jsonschema.ValidationError: документ не соответствует схеме
            pydantic.ValidationError: значения вне допустимых диапазонов
        """
        validate_ledger_snapshot(data)
        return cls.model_validate(data)
