"""Transfer state machine — состояния двух половин cross-domain перевода.

Источник:   REQUESTED → VALIDATED → BURNED → PAYLOAD_EMITTED
Назначение: RECEIVED → VALIDATED → MINTED

Половины выполняются независимо, координируются только транспортом.
Атомарность только внутри половины: BURNED без последующего MINTED
(сообщение потеряно или отклонено) является известным разрывом протокола, отката нет.
"""

from dataclasses import dataclass
from enum import Enum


class TransferState(str, Enum):
    """Состояние половины перевода."""

    # Источник
    REQUESTED = "REQUESTED"
    VALIDATED = "VALIDATED"
    BURNED = "BURNED"
    PAYLOAD_EMITTED = "PAYLOAD_EMITTED"

    # Назначение
    RECEIVED = "RECEIVED"
    MINTED = "MINTED"


# Допустимые переходы; терминальные состояния без исходящих
SOURCE_TRANSITIONS: dict[TransferState, tuple[TransferState, ...]] = {
    TransferState.REQUESTED: (TransferState.VALIDATED,),
    TransferState.VALIDATED: (TransferState.BURNED,),
    TransferState.BURNED: (TransferState.PAYLOAD_EMITTED,),
    TransferState.PAYLOAD_EMITTED: (),
}

DESTINATION_TRANSITIONS: dict[TransferState, tuple[TransferState, ...]] = {
    TransferState.RECEIVED: (TransferState.VALIDATED,),
    TransferState.VALIDATED: (TransferState.MINTED,),
    TransferState.MINTED: (),
}


class TransferTrace:
    """Накопитель пройденных состояний с проверкой переходов."""

    def __init__(self, transitions: dict[TransferState, tuple[TransferState, ...]], start: TransferState):
        self._transitions = transitions
        self._states = [start]

    @property
    def state(self) -> TransferState:
        return self._states[-1]

    def advance(self, new_state: TransferState) -> None:
        if new_state not in self._transitions[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {new_state.value}")
        self._states.append(new_state)

    def states(self) -> tuple[TransferState, ...]:
        return tuple(self._states)


@dataclass(frozen=True)
class OutboundResult:
    """Результат исходящей половины (терминал PAYLOAD_EMITTED)."""

    dest_token_address: str
    dest_pool_payload: bytes

    remote_domain_id: int
    original_sender: str
    receiver: str
    amount: int
    locked_rate: int

    # Диагностика
    state: TransferState
    trace: tuple[TransferState, ...]


@dataclass(frozen=True)
class InboundResult:
    """Результат входящей половины (терминал MINTED)."""

    source_domain_id: int
    receiver: str
    amount: int
    locked_rate: int

    # Диагностика
    state: TransferState
    trace: tuple[TransferState, ...]
