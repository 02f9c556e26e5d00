"""Rich renderers for interactive elements, one per variant."""

from __future__ import annotations

from typing import Any, Callable

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from centralia.protocol.elements import (
    ELEMENT_TYPES,
    ButtonsElement,
    ColumnMappingElement,
    ConfirmationElement,
    FileAnalysisElement,
    ImportResultElement,
    InteractiveElement,
    PreviewTableElement,
)

MAX_PREVIEW_ROWS = 20

_VARIANT_STYLES = {
    "primary": "bold cyan",
    "secondary": "white",
    "outline": "dim",
    "danger": "bold red",
}


def format_brl(value: float) -> str:
    formatted = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {formatted}"


def _render_buttons(element: ButtonsElement) -> RenderableType:
    lines = Text()
    if element.question:
        lines.append(f"{element.question}\n", style="bold")
    for index, button in enumerate(element.buttons, start=1):
        if element.answered:
            marker = "(x)" if button.value == element.selected_value else "( )"
            style = "green" if button.value == element.selected_value else "dim"
        else:
            marker = f"[{index}]"
            style = "dim" if button.disabled else _VARIANT_STYLES[button.variant]
        lines.append(f"{marker} {button.label}\n", style=style)
    return Panel(lines, title="Opções", border_style="cyan")


def _render_confirmation(element: ConfirmationElement) -> RenderableType:
    table = Table(show_header=False, box=None)
    table.add_column("Campo", style="cyan")
    table.add_column("Valor")
    for detail in element.details:
        table.add_row(detail.label, detail.value)
    footer = Text(f"{element.confirm_label} / {element.cancel_label}", style="dim")
    return Panel(
        Group(Text(element.description), table, footer),
        title=element.title,
        border_style="yellow",
    )


def _render_file_analysis(element: FileAnalysisElement) -> RenderableType:
    table = Table(title=f"{element.file_name} ({element.row_count} linhas, {element.column_count} colunas)")
    table.add_column("Coluna", style="cyan")
    table.add_column("Tipo", style="green")
    table.add_column("Confiança", justify="right")
    table.add_column("Exemplos", style="dim")
    for column in element.columns:
        confidence = f"{column.confidence:.0%}" if column.confidence is not None else "-"
        table.add_row(column.name, column.type, confidence, ", ".join(column.samples[:3]))
    parts: list[RenderableType] = [table]
    if element.suggested_import_type:
        parts.append(Text(f"Importação sugerida: {element.suggested_import_type}", style="bold"))
    for observation in element.observations:
        parts.append(Text(f"- {observation}", style="dim"))
    return Group(*parts)


def _render_column_mapping(element: ColumnMappingElement) -> RenderableType:
    table = Table(title=f"Mapeamento de colunas ({element.import_type})")
    table.add_column("Coluna", style="cyan")
    table.add_column("Campo sugerido", style="green")
    table.add_column("Confiança", justify="right")
    table.add_column("Exemplos", style="dim")
    for mapping in element.mappings:
        table.add_row(
            mapping.column_name,
            mapping.suggested_field,
            f"{mapping.confidence:.0%}",
            ", ".join(mapping.samples[:3]),
        )
    parts: list[RenderableType] = [table]
    if element.missing_required:
        parts.append(
            Text(f"Campos obrigatórios ausentes: {', '.join(element.missing_required)}", style="red")
        )
    return Group(*parts)


def _render_preview_table(element: PreviewTableElement) -> RenderableType:
    table = Table(title="Prévia da importação")
    table.add_column("#", justify="right")
    table.add_column("Data")
    table.add_column("Descrição")
    table.add_column("Valor", justify="right")
    table.add_column("Status")
    for item in element.items[:MAX_PREVIEW_ROWS]:
        status = Text("ok", style="green") if item.valid else Text("; ".join(item.errors) or "inválido", style="red")
        table.add_row(str(item.id), item.date or "-", item.description, format_brl(item.amount), status)
    summary = element.summary
    footer = Text(
        f"{summary.valid}/{summary.total} válidos, {summary.invalid} inválidos, "
        f"total {format_brl(summary.total_value)}",
        style="bold",
    )
    hidden = len(element.items) - MAX_PREVIEW_ROWS
    if hidden > 0:
        footer.append(f" (+{hidden} itens não exibidos)", style="dim")
    return Group(table, footer)


def _render_import_result(element: ImportResultElement) -> RenderableType:
    style = "green" if element.success else "red"
    body = Text(
        f"Importados: {element.imported}  Falhas: {element.failed}  Ignorados: {element.skipped}\n"
        f"Valor total: {format_brl(element.total_value)}"
    )
    for failure in element.errors:
        body.append(f"\n- {failure.description}: {failure.error}", style="red")
    return Panel(body, title="Resultado da importação", border_style=style)


_RENDERERS: dict[str, Callable[[Any], RenderableType]] = {
    "buttons": _render_buttons,
    "confirmation": _render_confirmation,
    "file_analysis": _render_file_analysis,
    "column_mapping": _render_column_mapping,
    "preview_table": _render_preview_table,
    "import_result": _render_import_result,
}

_missing = ELEMENT_TYPES - set(_RENDERERS)
if _missing:
    raise RuntimeError(f"No renderer registered for element type(s): {sorted(_missing)}")


def render_element(element: InteractiveElement) -> RenderableType:
    return _RENDERERS[element.type](element)


def render_elements(elements: list[InteractiveElement]) -> RenderableType:
    return Group(*(render_element(element) for element in elements))
