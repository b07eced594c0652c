import tempfile
from pathlib import Path

from pdfdancer_async import PDFDancer, Color


class PDFAssertions(object):
    """
    Checks document state the way a fresh reader sees it: the document is
    saved and reopened in a new session before any assertion runs.
    """

    def __init__(self, pdf: PDFDancer):
        self.pdf = pdf

    # noinspection PyProtectedMember
    @classmethod
    async def of(cls, pdf_dancer: PDFDancer) -> "PDFAssertions":
        session = pdf_dancer._session
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "assertions.pdf"
            await pdf_dancer.save(path)
            reopened = await PDFDancer.open(path, token=session.token, base_url=session.base_url)
        return cls(reopened)

    async def close(self):
        await self.pdf.close()

    async def assert_textline_exists(self, text, page=0):
        lines = await self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) >= 1, f"Expected a text line starting with {text!r} on page {page}"
        return self

    async def assert_textline_does_not_exist(self, text, page=0):
        lines = await self.pdf.page(page).select_text_lines_starting_with(text)
        assert lines == [], f"Expected no text line starting with {text!r}, found {len(lines)}"
        return self

    async def assert_text_has_color(self, text, color: Color, page=0):
        lines = await self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) == 1
        reference = lines[0].object_ref()
        assert color == reference.get_color(), f"{color} != {reference.get_color()}"
        assert text in reference.get_text()
        return self

    async def assert_text_has_font(self, text, font_name, font_size, page=0):
        lines = await self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) == 1, f"Expected 1 line but got {len(lines)}"
        reference = lines[0].object_ref()
        assert font_name in reference.get_font_name(), f"Expected {reference.get_font_name()} to match {font_name}"
        assert font_size == reference.get_font_size()
        return self

    async def assert_paragraph_count(self, expected, page=0):
        paragraphs = await self.pdf.page(page).select_paragraphs()
        assert len(paragraphs) == expected, f"Expected {expected} paragraphs but got {len(paragraphs)}"
        return self
