"""
E2E tests for template replacement with line breaks (\\n).

The service may under-report the second line in the session that made the
replacement; after a save/reopen cycle both lines are selectable. The client
does not hide this with an extra round trip.
"""

import pytest

from pdfdancer_async import Color, Font, PDFDancer, Paragraph, Position
from tests.e2e import _require_env
from tests.e2e.pdf_assertions import PDFAssertions


async def _template_with_placeholder(token, base_url) -> PDFDancer:
    pdf = await PDFDancer.new(token=token, base_url=base_url)
    await pdf.add_paragraph(Paragraph(position=Position.at_page_coordinates(0, 50, 650),
                                      text_lines=["{{DESCRIPTION}} trailing text."],
                                      font=Font("Helvetica", 12), color=Color(0, 0, 0)))
    return pdf


@pytest.mark.asyncio
async def test_noreflow_both_lines_selectable_after_save_reopen():
    base_url, token = _require_env()

    async with await _template_with_placeholder(token, base_url) as pdf:
        await pdf.new_replacement() \
            .replace("{{DESCRIPTION}}", "First line\nSecond line") \
            .no_reflow() \
            .apply()

        assertions = await PDFAssertions.of(pdf)
        try:
            await assertions.assert_textline_exists("First line")
            await assertions.assert_textline_exists("Second line")
        finally:
            await assertions.close()


@pytest.mark.asyncio
async def test_noreflow_first_line_selectable_same_session():
    base_url, token = _require_env()

    async with await _template_with_placeholder(token, base_url) as pdf:
        await pdf.new_replacement().replace("{{DESCRIPTION}}", "First line\nSecond line").no_reflow().apply()

        texts = [line.text for line in await pdf.page(0).select_text_lines()]
        assert any(t and t.startswith("First line") for t in texts)
