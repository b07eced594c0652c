"""
Model classes for the PDFDancer async client.

Covers positions, object references, snapshots and the request payloads sent to the API.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Any, Dict, Mapping, Union


class ObjectType(Enum):
    """Object types known to the PDFDancer service."""
    IMAGE = "IMAGE"
    FORM_X_OBJECT = "FORM_X_OBJECT"
    PATH = "PATH"
    PARAGRAPH = "PARAGRAPH"
    TEXT_LINE = "TEXT_LINE"
    PAGE = "PAGE"
    FORM_FIELD = "FORM_FIELD"
    TEXT_FIELD = "TEXT_FIELD"
    CHECK_BOX = "CHECKBOX"
    RADIO_BUTTON = "RADIO_BUTTON"


FORM_FIELD_TYPES = frozenset({ObjectType.FORM_FIELD, ObjectType.TEXT_FIELD,
                              ObjectType.CHECK_BOX, ObjectType.RADIO_BUTTON})

TEXT_TYPES = frozenset({ObjectType.PARAGRAPH, ObjectType.TEXT_LINE})


class PositionMode(Enum):
    """How position matching is performed when searching for objects."""
    INTERSECT = "INTERSECT"
    CONTAINS = "CONTAINS"


class ShapeType(Enum):
    """Geometric shape used for a position specification."""
    POINT = "POINT"
    LINE = "LINE"
    CIRCLE = "CIRCLE"
    RECT = "RECT"


class Orientation(Enum):
    PORTRAIT = "PORTRAIT"
    LANDSCAPE = "LANDSCAPE"


class FontType(Enum):
    SYSTEM = "SYSTEM"
    STANDARD = "STANDARD"
    EMBEDDED = "EMBEDDED"
    UNKNOWN = "UNKNOWN"


class ReflowPreset(Enum):
    """Text reflow strategy used by template replacement."""
    BEST_EFFORT = "BEST_EFFORT"
    FIT_OR_FAIL = "FIT_OR_FAIL"
    NONE = "NONE"


@dataclass
class Point:
    x: float
    y: float


@dataclass
class BoundingRect:
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class Position:
    """
    Spatial positioning and match criteria for PDF objects.

    A position is used both to describe where an object lives and to express
    a query: page scope, geometric shape, text prefix/pattern and form field name.
    """
    page_index: Optional[int] = None
    shape: Optional[ShapeType] = None
    mode: Optional[PositionMode] = None
    bounding_rect: Optional[BoundingRect] = None
    text_starts_with: Optional[str] = None
    text_pattern: Optional[str] = None
    name: Optional[str] = None
    tolerance: Optional[float] = None

    @staticmethod
    def at_page(page_index: int) -> 'Position':
        """Position covering an entire page. Page indexes start at 0."""
        return Position(page_index=page_index, mode=PositionMode.CONTAINS)

    @staticmethod
    def at_page_coordinates(page_index: int, x: float, y: float, tolerance: float = 0.0) -> 'Position':
        """Position for a single point on a page."""
        position = Position.at_page(page_index).at_coordinates(Point(x, y))
        position.tolerance = tolerance
        return position

    @staticmethod
    def at_page_with_text(page_index: int, text: str) -> 'Position':
        return Position.at_page(page_index).with_text_starts(text)

    @staticmethod
    def by_name(name: str) -> 'Position':
        """Position matching form fields by their declared name."""
        return Position(name=name)

    def at_coordinates(self, point: Point) -> 'Position':
        self.mode = PositionMode.CONTAINS
        self.shape = ShapeType.POINT
        self.bounding_rect = BoundingRect(point.x, point.y, 0, 0)
        return self

    def with_text_starts(self, text: str) -> 'Position':
        self.text_starts_with = text
        return self

    def with_text_pattern(self, pattern: str) -> 'Position':
        self.text_pattern = pattern
        return self

    def move_x(self, x_offset: float) -> 'Position':
        if self.bounding_rect is None:
            raise ValueError("Cannot move since no initial position exists")
        return self.at_coordinates(Point(self.x() + x_offset, self.y()))

    def move_y(self, y_offset: float) -> 'Position':
        if self.bounding_rect is None:
            raise ValueError("Cannot move since no initial position exists")
        return self.at_coordinates(Point(self.x(), self.y() + y_offset))

    def x(self) -> Optional[float]:
        return self.bounding_rect.x if self.bounding_rect else None

    def y(self) -> Optional[float]:
        return self.bounding_rect.y if self.bounding_rect else None

    def copy(self) -> 'Position':
        rect = None
        if self.bounding_rect is not None:
            rect = BoundingRect(self.bounding_rect.x, self.bounding_rect.y,
                                self.bounding_rect.width, self.bounding_rect.height)
        return Position(self.page_index, self.shape, self.mode, rect, self.text_starts_with,
                        self.text_pattern, self.name, self.tolerance)

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {
            "pageIndex": self.page_index,
            "textStartsWith": self.text_starts_with,
            "textPattern": self.text_pattern,
            "name": self.name,
        }
        if self.shape is not None:
            result["shape"] = self.shape.value
        if self.mode is not None:
            result["mode"] = self.mode.value
        if self.bounding_rect is not None:
            result["boundingRect"] = self.bounding_rect.to_dict()
        return result


@dataclass
class ObjectRef:
    """
    Lightweight identity + type + position handle to a remote object.
    """
    internal_id: Optional[str]
    position: Optional[Position]
    type: ObjectType

    def get_position(self) -> Optional[Position]:
        return self.position

    def to_dict(self) -> dict:
        return {
            "internalId": self.internal_id,
            "position": self.position.to_dict() if self.position else None,
            "type": self.type.value,
        }


@dataclass
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        for component in (self.r, self.g, self.b, self.a):
            if not 0 <= component <= 255:
                raise ValueError(f"Color component must be between 0 and 255, got {component}")

    def to_dict(self) -> dict:
        return {"red": self.r, "green": self.g, "blue": self.b, "alpha": self.a}


@dataclass
class Font:
    name: str
    size: float

    def to_dict(self) -> dict:
        return {"name": self.name, "size": self.size}


@dataclass
class FontRecommendation:
    font_name: str
    font_type: FontType
    similarity_score: float


@dataclass
class TextStatus:
    modified: bool
    encodable: bool
    font_type: FontType
    font_recommendation: Optional[FontRecommendation] = None


class TextObjectRef(ObjectRef):
    """
    Reference to a text-bearing object (paragraph or text line) with its content,
    font, color, line spacings and child lines.
    """

    def __init__(self, internal_id: str, position: Position, object_type: ObjectType,
                 text: Optional[str] = None, font_name: Optional[str] = None,
                 font_size: Optional[float] = None, line_spacings: Optional[List[float]] = None,
                 color: Optional[Color] = None, status: Optional[TextStatus] = None):
        super().__init__(internal_id, position, object_type)
        self.text = text
        self.font_name = font_name
        self.font_size = font_size
        self.line_spacings = line_spacings
        self.color = color
        self.status = status
        self.children: List['TextObjectRef'] = []

    def get_text(self) -> Optional[str]:
        return self.text

    def get_font_name(self) -> Optional[str]:
        return self.font_name

    def get_font_size(self) -> Optional[float]:
        return self.font_size

    def get_color(self) -> Optional[Color]:
        return self.color


class FormFieldRef(ObjectRef):
    """Reference to an AcroForm field with its declared name and current value."""

    def __init__(self, internal_id: str, position: Position, type: ObjectType,
                 name: Optional[str] = None, value: Optional[str] = None):
        super().__init__(internal_id, position, type)
        self.name = name
        self.value = value


STANDARD_PAGE_SIZES = {
    "A4": (595.0, 842.0),
    "LETTER": (612.0, 792.0),
    "LEGAL": (612.0, 1008.0),
    "TABLOID": (792.0, 1224.0),
    "A3": (842.0, 1191.0),
    "A5": (420.0, 595.0),
}


@dataclass
class PageSize:
    name: Optional[str]
    width: float
    height: float

    @classmethod
    def from_name(cls, name: str) -> 'PageSize':
        normalized = name.strip().upper()
        if normalized not in STANDARD_PAGE_SIZES:
            raise ValueError(f"Unknown page size: {name}")
        width, height = STANDARD_PAGE_SIZES[normalized]
        return cls(normalized, width, height)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PageSize':
        width = data.get("width")
        height = data.get("height")
        name = data.get("name")
        if width is None or height is None:
            if name:
                return cls.from_name(name)
            raise ValueError("Page size requires width and height or a standard name")
        if width <= 0 or height <= 0:
            raise ValueError("Page size dimensions must be positive")
        return cls(name, float(width), float(height))

    @classmethod
    def coerce(cls, value: Union['PageSize', str, Mapping[str, Any]]) -> 'PageSize':
        if isinstance(value, PageSize):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"Cannot convert {type(value)} to PageSize")

    def to_dict(self) -> dict:
        result = {"width": self.width, "height": self.height}
        if self.name:
            result["name"] = self.name
        return result


class PageRef(ObjectRef):
    """Reference to a page, carrying its size and orientation."""

    def __init__(self, internal_id: Optional[str], position: Optional[Position], type: ObjectType,
                 page_size: Optional[PageSize] = None, orientation: Optional[Orientation] = None):
        super().__init__(internal_id, position, type)
        self.page_size = page_size
        self.orientation = orientation

    @property
    def page_index(self) -> Optional[int]:
        return self.position.page_index if self.position else None


@dataclass
class PageSnapshot:
    """A point-in-time view of one page and its elements in document order."""
    page_ref: PageRef
    elements: List[ObjectRef] = field(default_factory=list)

    @property
    def page_index(self) -> Optional[int]:
        return self.page_ref.page_index

    def get_elements_by_type(self, object_type: ObjectType) -> List[ObjectRef]:
        return [e for e in self.elements if e.type == object_type]

    def element_count(self) -> int:
        return len(self.elements)


@dataclass
class DocumentSnapshot:
    """A point-in-time view of the whole document: page count, fonts and every page."""
    page_count: int
    fonts: List[FontRecommendation]
    pages: List[PageSnapshot]

    def get_page_snapshot(self, page_index: int) -> Optional[PageSnapshot]:
        for page in self.pages:
            if page.page_index == page_index:
                return page
        if 0 <= page_index < len(self.pages) and self.pages[page_index].page_index is None:
            return self.pages[page_index]
        return None

    def all_elements(self) -> List[ObjectRef]:
        return [element for page in self.pages for element in page.elements]

    def get_elements_by_type(self, object_type: ObjectType) -> List[ObjectRef]:
        return [e for e in self.all_elements() if e.type == object_type]

    def total_element_count(self) -> int:
        return sum(page.element_count() for page in self.pages)


@dataclass
class CommandResult:
    command_name: str
    element_id: Optional[str]
    message: Optional[str]
    success: bool
    warning: Optional[str]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CommandResult':
        return cls(
            command_name=data.get("commandName", ""),
            element_id=data.get("elementId"),
            message=data.get("message"),
            success=bool(data.get("success", False)),
            warning=data.get("warning"),
        )

    @classmethod
    def empty(cls, command_name: str, element_id: Optional[str]) -> 'CommandResult':
        return cls(command_name, element_id, None, True, None)


DEFAULT_REDACTION = "[REDACTED]"


@dataclass(frozen=True)
class RedactTarget:
    """
    One object to redact. Text is replaced by `replacement`; images and paths
    become a solid placeholder.
    """
    id: str
    replacement: str = DEFAULT_REDACTION

    def to_dict(self) -> dict:
        return {"id": self.id, "replacement": self.replacement}


@dataclass
class RedactRequest:
    targets: List[RedactTarget]
    placeholder_color: Optional[Color] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"targets": [t.to_dict() for t in self.targets]}
        if self.placeholder_color is not None:
            result["placeholderColor"] = self.placeholder_color.to_dict()
        return result


@dataclass
class RedactResponse:
    count: int
    success: bool
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'RedactResponse':
        return cls(
            count=int(data.get("count") or 0),
            success=bool(data.get("success", False)),
            warnings=list(data.get("warnings") or []),
        )


# Add/modify payloads: a tagged union over PayloadKind

class PayloadKind(Enum):
    PARAGRAPH = "PARAGRAPH"
    IMAGE = "IMAGE"


@dataclass
class Paragraph:
    position: Optional[Position] = None
    text_lines: List[str] = field(default_factory=list)
    font: Optional[Font] = None
    color: Optional[Color] = None
    line_spacing: Optional[float] = None
    kind: PayloadKind = field(default=PayloadKind.PARAGRAPH, init=False)

    def get_position(self) -> Optional[Position]:
        return self.position


@dataclass
class Image:
    position: Optional[Position] = None
    format: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    data: Optional[bytes] = None
    kind: PayloadKind = field(default=PayloadKind.IMAGE, init=False)

    def get_position(self) -> Optional[Position]:
        return self.position

    def set_position(self, position: Position) -> None:
        self.position = position


Payload = Union[Paragraph, Image]


def payload_to_dict(payload: Payload) -> dict:
    """Serialize an add/modify payload by its kind tag."""
    position = payload.position.to_dict() if payload.position else None
    if payload.kind is PayloadKind.IMAGE:
        size = None
        if payload.width is not None and payload.height is not None:
            size = {"width": payload.width, "height": payload.height}
        return {
            "type": "IMAGE",
            "position": position,
            "format": payload.format,
            "size": size,
            "data": base64.b64encode(payload.data).decode("ascii") if payload.data else None,
        }
    elif payload.kind is PayloadKind.PARAGRAPH:
        color = payload.color.to_dict() if payload.color else None
        font = payload.font.to_dict() if payload.font else None
        lines = []
        for line in payload.text_lines:
            text_line: Dict[str, Any] = {
                "textElements": [{"text": line, "font": font, "color": color, "position": position}]
            }
            if color is not None:
                text_line["color"] = color
            if position is not None:
                text_line["position"] = position
            lines.append(text_line)
        return {
            "type": "PARAGRAPH",
            "position": position,
            "lines": lines,
            "lineSpacings": [payload.line_spacing] if payload.line_spacing is not None else None,
            "font": font,
        }
    raise ValueError(f"Unsupported payload kind: {payload.kind}")


# Request objects

@dataclass
class FindRequest:
    object_type: Optional[ObjectType]
    position: Optional[Position]
    hint: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "objectType": self.object_type.value if self.object_type else None,
            "position": self.position.to_dict() if self.position else None,
            "hint": self.hint,
        }


@dataclass
class DeleteRequest:
    object_ref: ObjectRef

    def to_dict(self) -> dict:
        return {"objectRef": self.object_ref.to_dict()}


@dataclass
class MoveRequest:
    object_ref: ObjectRef
    position: Position

    def to_dict(self) -> dict:
        return {"objectRef": self.object_ref.to_dict(), "newPosition": self.position.to_dict()}


@dataclass
class AddRequest:
    payload: Payload

    def to_dict(self) -> dict:
        return {"object": payload_to_dict(self.payload)}


@dataclass
class ModifyRequest:
    object_ref: ObjectRef
    new_object: Payload

    def to_dict(self) -> dict:
        return {"ref": self.object_ref.to_dict(), "newObject": payload_to_dict(self.new_object)}


@dataclass
class ModifyTextRequest:
    object_ref: ObjectRef
    new_text: str

    def to_dict(self) -> dict:
        return {"ref": self.object_ref.to_dict(), "newTextLine": self.new_text}


@dataclass
class ChangeFormFieldRequest:
    form_field_ref: ObjectRef
    new_value: str

    def to_dict(self) -> dict:
        return {"ref": self.form_field_ref.to_dict(), "value": self.new_value}


@dataclass
class AddPageRequest:
    page_index: Optional[int] = None
    page_size: Optional[PageSize] = None
    orientation: Optional[Orientation] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {}
        if self.page_index is not None:
            result["pageIndex"] = self.page_index
        if self.page_size is not None:
            result["pageSize"] = self.page_size.to_dict()
        if self.orientation is not None:
            result["orientation"] = self.orientation.value
        return result


@dataclass
class PageMoveRequest:
    from_page_index: int
    to_page_index: int

    def to_dict(self) -> dict:
        return {"fromPageIndex": self.from_page_index, "toPageIndex": self.to_page_index}


@dataclass(frozen=True)
class TemplateReplacement:
    """One placeholder and the text (optionally styled) that replaces it."""
    placeholder: str
    text: Optional[str] = None
    font: Optional[Font] = None
    color: Optional[Color] = None
    image: Optional[Image] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"placeholder": self.placeholder}
        if self.text is not None:
            result["text"] = self.text
        if self.font is not None:
            result["font"] = self.font.to_dict()
        if self.color is not None:
            result["color"] = self.color.to_dict()
        if self.image is not None:
            result["image"] = payload_to_dict(self.image)
        return result


@dataclass(frozen=True)
class TemplateReplaceRequest:
    replacements: tuple
    page_index: Optional[int] = None
    reflow_preset: Optional[ReflowPreset] = None

    def to_dict(self) -> dict:
        result: Dict[str, Any] = {"replacements": [r.to_dict() for r in self.replacements]}
        if self.page_index is not None:
            result["pageIndex"] = self.page_index
        if self.reflow_preset is not None:
            result["reflowPreset"] = self.reflow_preset.value
        return result
