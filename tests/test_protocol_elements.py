"""
Test interactive element parsing and rendering.
"""

import pytest
from rich.console import Console

from centralia.protocol.elements import (
    ELEMENT_TYPES,
    ButtonsElement,
    FileAnalysisElement,
    PreviewTableElement,
    dump_elements,
    parse_element,
    parse_elements,
)
from centralia.protocol.render import format_brl, render_element, render_elements


def _preview_payload() -> dict:
    return {
        "type": "preview_table",
        "items": [
            {"id": 1, "descricao": "Mercado", "valor": -120.5, "valid": True, "data": "2024-05-02"},
            {"id": 2, "descricao": "Salário", "valor": 5000, "valid": True, "tipo": "receita"},
            {"id": 3, "descricao": "???", "valor": 0, "valid": False, "errors": ["Data inválida"]},
        ],
        "summary": {"total": 3, "valid": 2, "invalid": 1, "totalValue": 4879.5},
    }


class TestParseElement:
    def test_buttons_from_wire(self):
        element = parse_element(
            {
                "type": "buttons",
                "question": "Qual conta?",
                "buttons": [{"value": "nubank", "label": "Nubank", "variant": "outline"}],
                "allowMultiple": False,
            }
        )
        assert isinstance(element, ButtonsElement)
        assert element.buttons[0].variant == "outline"
        assert not element.answered

    def test_preview_table_uses_portuguese_wire_keys(self):
        element = parse_element(_preview_payload())
        assert isinstance(element, PreviewTableElement)
        assert element.items[0].description == "Mercado"
        assert element.items[0].amount == -120.5
        assert element.items[1].kind == "receita"
        assert element.summary.total_value == 4879.5

        wire = element.to_wire()
        assert wire["items"][0]["descricao"] == "Mercado"
        assert wire["summary"]["totalValue"] == 4879.5

    def test_unknown_type_is_ignored(self):
        assert parse_element({"type": "chart", "data": []}) is None

    def test_malformed_element_is_ignored(self):
        assert parse_element({"type": "file_analysis", "fileName": "x.csv"}) is None

    def test_non_object_is_ignored(self):
        assert parse_element("buttons") is None

    def test_parse_elements_keeps_known_in_order(self):
        elements = parse_elements(
            [
                {"type": "future_widget"},
                {"type": "confirmation", "title": "Importar?", "description": "3 itens"},
                {"type": "import_result", "success": True, "imported": 2, "failed": 0, "skipped": 1, "totalValue": 10},
            ]
        )
        assert [e.type for e in elements] == ["confirmation", "import_result"]
        assert elements[0].confirm_label == "Confirmar"

    def test_parse_elements_of_non_list(self):
        assert parse_elements(None) == []

    def test_dump_round_trips_through_parse(self):
        original = parse_elements([_preview_payload()])
        assert parse_elements(dump_elements(original)) == original


class TestButtons:
    def _buttons(self) -> ButtonsElement:
        return ButtonsElement.model_validate(
            {
                "type": "buttons",
                "buttons": [
                    {"value": "sim", "label": "Sim"},
                    {"value": "nao", "label": "Não", "disabled": True},
                ],
            }
        )

    def test_answer_returns_copy(self):
        buttons = self._buttons()
        answered = buttons.answer("sim")
        assert answered.selected_value == "sim"
        assert not buttons.answered

    def test_answer_twice_fails(self):
        with pytest.raises(ValueError):
            self._buttons().answer("sim").answer("sim")

    def test_disabled_option_cannot_be_chosen(self):
        with pytest.raises(ValueError):
            self._buttons().answer("nao")

    def test_unknown_option(self):
        with pytest.raises(ValueError):
            self._buttons().answer("talvez")


class TestRender:
    def test_every_element_type_renders(self):
        payloads = [
            {"type": "buttons", "question": "Q?", "buttons": [{"value": "a", "label": "A"}]},
            {"type": "confirmation", "title": "T", "description": "D", "details": [{"label": "Valor", "value": "R$ 1"}]},
            {
                "type": "file_analysis",
                "fileName": "extrato.csv",
                "fileType": "csv",
                "rowCount": 10,
                "columns": [{"name": "Data", "type": "date", "samples": ["01/01/2024"]}],
                "observations": ["Separador ;"],
            },
            {
                "type": "column_mapping",
                "importType": "transactions",
                "mappings": [
                    {"columnName": "Valor", "columnIndex": 2, "suggestedField": "valor", "confidence": 0.9}
                ],
                "missingRequired": ["data"],
            },
            _preview_payload(),
            {
                "type": "import_result",
                "success": False,
                "imported": 1,
                "failed": 1,
                "skipped": 0,
                "totalValue": 5,
                "errors": [{"description": "Linha 2", "error": "Valor inválido"}],
            },
        ]
        elements = parse_elements(payloads)
        assert {e.type for e in elements} == ELEMENT_TYPES

        console = Console(record=True, width=120)
        console.print(render_elements(elements))
        output = console.export_text()

        assert "extrato.csv" in output
        assert "Mercado" in output
        assert "Valor inválido" in output

    def test_file_analysis_column_count(self):
        element = FileAnalysisElement(file_name="a.csv", row_count=1, columns=[])
        assert element.column_count == 0
        console = Console(record=True, width=80)
        console.print(render_element(element))
        assert "a.csv" in console.export_text()

    def test_format_brl(self):
        assert format_brl(1234.5) == "R$ 1.234,50"
        assert format_brl(-50) == "R$ -50,00"
