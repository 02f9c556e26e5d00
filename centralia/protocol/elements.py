"""
Interactive elements an assistant message may carry.

Each variant is tagged by ``type``; the union is closed and new variants are
added by tag. Field names follow Python conventions and are aliased to the
camelCase keys used on the wire.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from centralia.utils.logger import get_logger

logger = get_logger(__name__)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ButtonOption(WireModel):
    value: str
    label: str
    id: str | None = None
    icon: str | None = None
    variant: Literal["primary", "secondary", "outline", "danger"] = "primary"
    disabled: bool = False


class ButtonsElement(WireModel):
    type: Literal["buttons"] = "buttons"
    question: str | None = None
    buttons: list[ButtonOption] = Field(default_factory=list)
    allow_multiple: bool = False
    selected_value: str | None = None

    @property
    def answered(self) -> bool:
        return self.selected_value is not None

    def option(self, value: str) -> ButtonOption | None:
        for button in self.buttons:
            if button.value == value:
                return button
        return None

    def answer(self, value: str) -> ButtonsElement:
        """Return an answered copy; an answered set is display-only."""
        if self.answered:
            raise ValueError(f"Buttons already answered with {self.selected_value!r}")
        option = self.option(value)
        if option is None:
            raise ValueError(f"Unknown option value: {value!r}")
        if option.disabled:
            raise ValueError(f"Option {value!r} is disabled")
        return self.model_copy(update={"selected_value": value})


class ConfirmationDetail(WireModel):
    label: str
    value: str


class ConfirmationElement(WireModel):
    type: Literal["confirmation"] = "confirmation"
    title: str
    description: str
    details: list[ConfirmationDetail] = Field(default_factory=list)
    confirm_label: str = "Confirmar"
    cancel_label: str = "Cancelar"


class ColumnProfile(WireModel):
    name: str
    type: str
    samples: list[str] = Field(default_factory=list)
    suggested_field: str | None = None
    confidence: float | None = None


class FileAnalysisElement(WireModel):
    type: Literal["file_analysis"] = "file_analysis"
    file_name: str
    file_type: str = ""
    row_count: int
    columns: list[ColumnProfile] = Field(default_factory=list)
    suggested_import_type: str | None = None
    observations: list[str] = Field(default_factory=list)

    @property
    def column_count(self) -> int:
        return len(self.columns)


class ColumnMapping(WireModel):
    column_name: str
    column_index: int
    suggested_field: str
    confidence: float
    samples: list[str] = Field(default_factory=list)


class AvailableField(WireModel):
    field: str
    label: str
    required: bool = False


class ColumnMappingElement(WireModel):
    type: Literal["column_mapping"] = "column_mapping"
    import_type: str
    mappings: list[ColumnMapping] = Field(default_factory=list)
    missing_required: list[str] = Field(default_factory=list)
    available_fields: list[AvailableField] = Field(default_factory=list)


class PreviewItem(WireModel):
    id: int
    description: str = Field(alias="descricao")
    amount: float = Field(alias="valor")
    valid: bool
    date: str | None = Field(default=None, alias="data")
    kind: str | None = Field(default=None, alias="tipo")
    category: str | None = Field(default=None, alias="categoria")
    errors: list[str] = Field(default_factory=list)


class PreviewSummary(WireModel):
    total: int
    valid: int
    invalid: int
    total_value: float


class PreviewTableElement(WireModel):
    type: Literal["preview_table"] = "preview_table"
    items: list[PreviewItem] = Field(default_factory=list)
    summary: PreviewSummary


class ImportFailure(WireModel):
    description: str
    error: str


class ImportResultElement(WireModel):
    type: Literal["import_result"] = "import_result"
    success: bool
    imported: int
    failed: int
    skipped: int
    total_value: float
    errors: list[ImportFailure] = Field(default_factory=list)


InteractiveElement = Annotated[
    Union[
        ButtonsElement,
        ConfirmationElement,
        FileAnalysisElement,
        ColumnMappingElement,
        PreviewTableElement,
        ImportResultElement,
    ],
    Field(discriminator="type"),
]

ELEMENT_TYPES: frozenset[str] = frozenset(
    {
        "buttons",
        "confirmation",
        "file_analysis",
        "column_mapping",
        "preview_table",
        "import_result",
    }
)

_element_adapter: TypeAdapter[InteractiveElement] = TypeAdapter(InteractiveElement)
_ELEMENT_CLASSES = (
    ButtonsElement,
    ConfirmationElement,
    FileAnalysisElement,
    ColumnMappingElement,
    PreviewTableElement,
    ImportResultElement,
)


def parse_element(raw: Any) -> InteractiveElement | None:
    """Validate one element; unknown or malformed variants yield None."""
    if isinstance(raw, _ELEMENT_CLASSES):
        return raw
    if not isinstance(raw, dict):
        logger.debug(f"Ignoring non-object interactive element: {raw!r}")
        return None
    tag = raw.get("type")
    if tag not in ELEMENT_TYPES:
        logger.debug(f"Ignoring unknown interactive element type: {tag!r}")
        return None
    try:
        return _element_adapter.validate_python(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed {tag} element: {e.error_count()} error(s)")
        return None


def parse_elements(raw: Any) -> list[InteractiveElement]:
    if not isinstance(raw, list):
        return []
    elements = []
    for item in raw:
        element = parse_element(item)
        if element is not None:
            elements.append(element)
    return elements


def dump_elements(elements: list[InteractiveElement]) -> list[dict[str, Any]]:
    return [element.to_wire() for element in elements]
