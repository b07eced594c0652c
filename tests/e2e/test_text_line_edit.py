import pytest

from pdfdancer_async import PDFDancer
from tests.e2e import _require_env_and_fixture
from tests.e2e.pdf_assertions import PDFAssertions

SHOWCASE_LINE = "This is regular Sans text showing alignment and styles."


@pytest.mark.asyncio
async def test_text_line_edit_text_only():
    base_url, token, pdf_path = _require_env_and_fixture("Showcase.pdf")

    async with await PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        text_lines = await pdf.page(0).select_text_lines_starting_with(SHOWCASE_LINE)
        if not text_lines:
            pytest.skip("Required text line not found in test PDF")

        result = await text_lines[0].edit_text("This text has been replaced")
        assert result.success

        assertions = await PDFAssertions.of(pdf)
        try:
            await assertions.assert_textline_exists("This text has been replaced")
            await assertions.assert_textline_does_not_exist(SHOWCASE_LINE)
        finally:
            await assertions.close()


@pytest.mark.asyncio
async def test_paragraph_edit_keeps_paragraph_count():
    base_url, token, pdf_path = _require_env_and_fixture("Showcase.pdf")

    async with await PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        paragraphs = await pdf.page(0).select_paragraphs()
        if not paragraphs:
            pytest.skip("No paragraphs found in test PDF")

        result = await paragraphs[0].edit_text("Edited paragraph")
        assert result.success

        assert len(await pdf.page(0).select_paragraphs()) == len(paragraphs)
        assert len(await pdf.page(0).select_paragraphs_starting_with("Edited paragraph")) == 1
