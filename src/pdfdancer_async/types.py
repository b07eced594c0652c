from __future__ import annotations

from typing import Optional, TYPE_CHECKING, List

from .models import (
    ObjectType, Position, ObjectRef, BoundingRect, TextObjectRef, FormFieldRef, Color, CommandResult, Paragraph,
    DEFAULT_REDACTION
)

if TYPE_CHECKING:
    from .client import PDFDancer


class PDFObjectBase:
    """
    Handle to an object selected from a PDF page.

    Instances are created by PDFDancer selectors (e.g. `await pdf.select_paths()`)
    and delegate every mutation back to the owning client.
    """

    def __init__(self, client: 'PDFDancer', internal_id: str, object_type: ObjectType, position: Position):
        self._client = client
        self.internal_id = internal_id
        self.object_type = object_type
        self.position = position

    @property
    def page_index(self) -> Optional[int]:
        """Page index where this object resides."""
        return self.position.page_index if self.position else None

    @property
    def bounding_box(self) -> Optional[BoundingRect]:
        """Bounding rectangle, if the service reported one."""
        return self.position.bounding_rect if self.position else None

    def object_ref(self) -> ObjectRef:
        return ObjectRef(self.internal_id, self.position, self.object_type)

    async def delete(self) -> bool:
        """Delete this object from the PDF document."""
        return await self._client.delete(self.object_ref())

    async def move_to(self, x: float, y: float) -> bool:
        """Move this object to (x, y) on its current page."""
        return await self._client.move(self.object_ref(), Position.at_page_coordinates(self.page_index, x, y))

    async def redact(self, replacement: str = DEFAULT_REDACTION, placeholder_color: Optional[Color] = None) -> bool:
        """
        Redact this object. Text content is replaced by `replacement`; images
        and paths are covered by a placeholder in `placeholder_color`.
        """
        result = await self._client.redact([self], replacement, placeholder_color)
        return result.success

    def __eq__(self, other) -> bool:
        if not isinstance(other, PDFObjectBase):
            return NotImplemented
        return self.internal_id == other.internal_id and self.object_type == other.object_type

    def __hash__(self) -> int:
        return hash((self.internal_id, self.object_type))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.internal_id} page={self.page_index}>"


class PathObject(PDFObjectBase):
    """A vector path. Point lookups for paths are always answered by the server."""


class ImageObject(PDFObjectBase):
    pass


class FormObject(PDFObjectBase):
    """A form XObject (reusable content stream)."""


class _TextObject(PDFObjectBase):

    def __init__(self, client: 'PDFDancer', ref: TextObjectRef):
        super().__init__(client, ref.internal_id, ref.type, ref.position)
        self._ref = ref

    def object_ref(self) -> TextObjectRef:
        return self._ref

    @property
    def text(self) -> Optional[str]:
        return self._ref.text

    @property
    def font_name(self) -> Optional[str]:
        return self._ref.font_name

    @property
    def font_size(self) -> Optional[float]:
        return self._ref.font_size

    @property
    def color(self) -> Optional[Color]:
        return self._ref.color

    @property
    def children(self) -> List[TextObjectRef]:
        return self._ref.children


class ParagraphObject(_TextObject):

    async def edit_text(self, new_text: str) -> CommandResult:
        """Replace the paragraph's text, keeping its layout and style."""
        return await self._client.modify_paragraph(self._ref, new_text)

    async def replace(self, paragraph: Paragraph) -> CommandResult:
        """Replace the whole paragraph with a new one."""
        return await self._client.modify_paragraph(self._ref, paragraph)


class TextLineObject(_TextObject):

    async def edit_text(self, new_text: str) -> CommandResult:
        return await self._client.modify_text_line(self._ref, new_text)


class FormFieldObject(PDFObjectBase):
    """An AcroForm field (text field, checkbox, radio button)."""

    def __init__(self, client: 'PDFDancer', ref: FormFieldRef):
        super().__init__(client, ref.internal_id, ref.type, ref.position)
        self._ref = ref
        self.name = ref.name
        self.value = ref.value

    def object_ref(self) -> FormFieldRef:
        return self._ref

    async def set_value(self, value: str) -> bool:
        """Change the field's value; the local value follows once the server accepted it."""
        changed = await self._client.change_form_field(self._ref, value)
        if changed:
            self.value = value
            self._ref.value = value
        return changed

    def __repr__(self) -> str:
        return f"<FormFieldObject id={self.internal_id} name={self.name!r} value={self.value!r}>"
