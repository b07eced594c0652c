"""
Fluent builder for template replacements.

    await pdf.new_replacement() \\
        .replace("{{NAME}}", "Jane Smith").font("Helvetica", 12) \\
        .replace("{{DATE}}", "2025-01-15") \\
        .on_page(0) \\
        .best_effort() \\
        .apply()
"""

from pathlib import Path
from typing import List, Optional, Union, TYPE_CHECKING

from .exceptions import ValidationException
from .models import Color, Font, Image, ReflowPreset, TemplateReplacement, TemplateReplaceRequest

if TYPE_CHECKING:
    from .client import PDFDancer


class ReplacementBuilder:
    """
    Collects replacements until `apply()` sends them as one immutable request.

    Styling calls (`font`, `color`) apply to the most recent `replace`.
    """

    def __init__(self, client: 'PDFDancer'):
        if client is None:
            raise ValidationException("Client cannot be null")
        self._client = client
        self._replacements: List[TemplateReplacement] = []
        self._page_index: Optional[int] = None
        self._reflow_preset: Optional[ReflowPreset] = None

        self._current_placeholder: Optional[str] = None
        self._current_text: Optional[str] = None
        self._current_font: Optional[Font] = None
        self._current_color: Optional[Color] = None
        self._current_image: Optional[Image] = None

    def replace(self, placeholder: str, text: str) -> 'ReplacementBuilder':
        if not placeholder:
            raise ValidationException("Placeholder cannot be empty")
        if text is None:
            raise ValidationException("Replacement text cannot be null")
        self._flush_current()
        self._current_placeholder = placeholder
        self._current_text = text
        return self

    def replace_with_image(self, placeholder: str, image: Union[str, Path, bytes],
                           width: Optional[float] = None, height: Optional[float] = None) -> 'ReplacementBuilder':
        if not placeholder:
            raise ValidationException("Placeholder cannot be empty")
        self._flush_current()
        self._current_placeholder = placeholder

        image_format = None
        if isinstance(image, (str, Path)):
            image_path = Path(image)
            if not image_path.is_file():
                raise ValidationException(f"Image file does not exist: {image_path}")
            data = image_path.read_bytes()
            image_format = image_path.suffix.lower().lstrip('.')
            if image_format == 'jpg':
                image_format = 'jpeg'
        else:
            data = image
        if not data:
            raise ValidationException("Image data cannot be empty")

        self._current_image = Image(format=image_format, width=width, height=height, data=data)
        return self

    def font(self, font: Union[Font, str], font_size: Optional[float] = None) -> 'ReplacementBuilder':
        if isinstance(font, Font):
            self._current_font = font
        else:
            if font_size is None or font_size <= 0:
                raise ValidationException(f"Font size must be positive, got {font_size}")
            self._current_font = Font(font, font_size)
        return self

    def color(self, color: Color) -> 'ReplacementBuilder':
        self._current_color = color
        return self

    def on_page(self, page_index: int) -> 'ReplacementBuilder':
        """Limit replacements to one page (0-based, like every other page index in the client)."""
        if page_index is None or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        self._page_index = page_index
        return self

    def reflow(self, preset: ReflowPreset) -> 'ReplacementBuilder':
        self._reflow_preset = preset
        return self

    def best_effort(self) -> 'ReplacementBuilder':
        return self.reflow(ReflowPreset.BEST_EFFORT)

    def fit_or_fail(self) -> 'ReplacementBuilder':
        return self.reflow(ReflowPreset.FIT_OR_FAIL)

    def no_reflow(self) -> 'ReplacementBuilder':
        return self.reflow(ReflowPreset.NONE)

    def build(self) -> TemplateReplaceRequest:
        self._flush_current()
        return TemplateReplaceRequest(tuple(self._replacements), self._page_index, self._reflow_preset)

    async def apply(self) -> bool:
        """
        Send all collected replacements. An empty builder is a no-op returning True.

        Once the server accepted them the collected replacements are cleared, so
        the builder can be reused; page and reflow settings are kept. After a
        failure they stay in place for a retry.
        """
        request = self.build()
        if not request.replacements:
            return True
        # noinspection PyProtectedMember
        result = await self._client._apply_replacements(request)
        self._replacements.clear()
        return result

    def _flush_current(self) -> None:
        if self._current_placeholder is not None and (
                self._current_text is not None or self._current_image is not None):
            self._replacements.append(TemplateReplacement(
                placeholder=self._current_placeholder,
                text=self._current_text,
                font=self._current_font,
                color=self._current_color,
                image=self._current_image,
            ))
        self._current_placeholder = None
        self._current_text = None
        self._current_font = None
        self._current_color = None
        self._current_image = None
