"""
Interrupt gates that suspend normal message flow.

A conversation owns one ``GateSlot``. The slot holds nothing, a
``PendingActionGate`` or a ``DataCollectionGate``; the two can never be
open together.
"""

from __future__ import annotations

import json
from typing import Any, Union

from centralia.protocol.events import ConfirmationPayload, DataRequest, PendingAction
from centralia.transport.base import OutgoingMessage
from centralia_chat.domain.errors import GateError
from centralia_chat.domain.value_objects.conversation_status import GateKind

REQUIRED_FIELD_MESSAGE = "Este campo é obrigatório"
INVALID_OPTION_MESSAGE = "Opção inválida"
DATA_SUBMISSION_PREFIX = "Dados fornecidos: "


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class PendingActionGate:
    kind = GateKind.CONFIRMATION

    def __init__(self, action: PendingAction):
        self.action = action

    def resumption(self, confirmed: bool) -> ConfirmationPayload:
        return ConfirmationPayload(confirmation_token=self.action.id, confirmed=confirmed)


class DataCollectionGate:
    kind = GateKind.DATA

    def __init__(self, request: DataRequest):
        self.request = request

    def validate(self, values: dict[str, Any]) -> dict[str, str]:
        errors: dict[str, str] = {}
        for definition in self.request.fields:
            value = values.get(definition.name)
            if _is_blank(value):
                if definition.required:
                    errors[definition.name] = REQUIRED_FIELD_MESSAGE
                continue
            if not definition.allows(value):
                errors[definition.name] = INVALID_OPTION_MESSAGE
        return errors

    @staticmethod
    def submission_message(values: dict[str, Any]) -> OutgoingMessage:
        payload = json.dumps(values, ensure_ascii=False, separators=(",", ":"), default=str)
        return OutgoingMessage(role="user", content=f"{DATA_SUBMISSION_PREFIX}{payload}")


Gate = Union[PendingActionGate, DataCollectionGate]


class GateSlot:
    def __init__(self) -> None:
        self._gate: Gate | None = None

    @property
    def kind(self) -> GateKind:
        return self._gate.kind if self._gate is not None else GateKind.NONE

    @property
    def is_open(self) -> bool:
        return self._gate is not None

    @property
    def pending_action(self) -> PendingAction | None:
        return self._gate.action if isinstance(self._gate, PendingActionGate) else None

    @property
    def data_request(self) -> DataRequest | None:
        return self._gate.request if isinstance(self._gate, DataCollectionGate) else None

    def open(self, gate: Gate) -> None:
        if self._gate is not None:
            raise GateError(f"Cannot open {gate.kind.value} gate: {self._gate.kind.value} gate is open")
        self._gate = gate

    def close(self) -> Gate | None:
        gate, self._gate = self._gate, None
        return gate

    def confirmation_gate(self) -> PendingActionGate:
        if not isinstance(self._gate, PendingActionGate):
            raise GateError("No pending action awaiting confirmation")
        return self._gate

    def data_gate(self) -> DataCollectionGate:
        if not isinstance(self._gate, DataCollectionGate):
            raise GateError("No data request awaiting input")
        return self._gate
