import pytest

from centralia.protocol.events import DataRequest, FieldDefinition, FieldType, PendingAction, SelectOption
from centralia_chat.domain.errors import GateError
from centralia_chat.domain.value_objects.conversation_status import GateKind
from centralia_chat.services.gates import (
    DataCollectionGate,
    GateSlot,
    PendingActionGate,
)


def _action() -> PendingAction:
    return PendingAction(id="tok-1", action_type="delete_transaction", action_data={"id": 7})


def _request() -> DataRequest:
    return DataRequest(
        fields=[
            FieldDefinition(name="valor", label="Valor", type=FieldType.NUMBER, required=True),
            FieldDefinition(name="descricao", label="Descrição", required=True),
            FieldDefinition(
                name="tipo",
                label="Tipo",
                type=FieldType.SELECT,
                options=[SelectOption(value="despesa", label="Despesa"), SelectOption(value="receita", label="Receita")],
            ),
        ]
    )


class TestGateSlot:
    def test_starts_empty(self):
        slot = GateSlot()
        assert slot.kind is GateKind.NONE
        assert not slot.is_open
        assert slot.pending_action is None
        assert slot.data_request is None

    def test_open_confirmation(self):
        slot = GateSlot()
        slot.open(PendingActionGate(_action()))
        assert slot.kind is GateKind.CONFIRMATION
        assert slot.pending_action.id == "tok-1"
        assert slot.data_request is None

    def test_gates_are_exclusive(self):
        slot = GateSlot()
        slot.open(PendingActionGate(_action()))
        with pytest.raises(GateError):
            slot.open(DataCollectionGate(_request()))
        with pytest.raises(GateError):
            slot.open(PendingActionGate(_action()))
        assert slot.kind is GateKind.CONFIRMATION

    def test_close_returns_gate(self):
        slot = GateSlot()
        gate = DataCollectionGate(_request())
        slot.open(gate)
        assert slot.close() is gate
        assert slot.close() is None
        assert not slot.is_open

    def test_typed_access(self):
        slot = GateSlot()
        with pytest.raises(GateError):
            slot.confirmation_gate()
        slot.open(DataCollectionGate(_request()))
        with pytest.raises(GateError):
            slot.confirmation_gate()
        assert slot.data_gate().request.fields[0].name == "valor"


class TestPendingActionGate:
    def test_resumption_payload(self):
        gate = PendingActionGate(_action())
        assert gate.resumption(True).to_wire() == {"confirmationToken": "tok-1", "confirmed": True}
        assert gate.resumption(False).to_wire() == {"confirmationToken": "tok-1", "confirmed": False}


class TestDataCollectionGate:
    def test_empty_submission_lists_required_fields(self):
        errors = DataCollectionGate(_request()).validate({})
        assert errors == {"valor": "Este campo é obrigatório", "descricao": "Este campo é obrigatório"}

    def test_whitespace_counts_as_empty(self):
        errors = DataCollectionGate(_request()).validate({"valor": 10, "descricao": "   "})
        assert errors == {"descricao": "Este campo é obrigatório"}

    def test_zero_is_a_value(self):
        assert DataCollectionGate(_request()).validate({"valor": 0, "descricao": "x"}) == {}

    def test_select_must_match_option(self):
        errors = DataCollectionGate(_request()).validate({"valor": 1, "descricao": "x", "tipo": "outro"})
        assert errors == {"tipo": "Opção inválida"}

    def test_submission_message(self):
        message = DataCollectionGate.submission_message({"valor": 12.5, "descricao": "Padaria"})
        assert message.role == "user"
        assert message.content == 'Dados fornecidos: {"valor":12.5,"descricao":"Padaria"}'
