"""E2E tests for template replacement functionality."""

import pytest

from pdfdancer_async import Font, PDFDancer, Paragraph, Position, ReflowPreset, TemplateReplacement, ValidationException
from tests.e2e import _require_env, _require_env_and_fixture
from tests.e2e.pdf_assertions import PDFAssertions


async def _add_text(pdf: PDFDancer, text: str, page_index: int, x: float, y: float):
    paragraph = Paragraph(position=Position.at_page_coordinates(page_index, x, y), text_lines=[text],
                          font=Font("Helvetica", 12))
    assert await pdf.add_paragraph(paragraph)


@pytest.mark.asyncio
async def test_replace_single_template():
    base_url, token, pdf_path = _require_env_and_fixture("Showcase.pdf")

    async with await PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        original = await pdf.page(0).select_paragraphs_starting_with("Showcase")
        assert len(original) > 0, "Expected 'Showcase' text to exist in PDF"

        result = await pdf.replace_templates([TemplateReplacement(placeholder="Showcase", text="Replaced")])

        assert result is True
        assert await pdf.page(0).select_paragraphs_starting_with("Showcase") == []


@pytest.mark.asyncio
async def test_replace_multiple_templates():
    base_url, token = _require_env()

    async with await PDFDancer.new(token=token, base_url=base_url) as pdf:
        await _add_text(pdf, "Name: {{NAME}}", 0, 100, 100)
        await _add_text(pdf, "Date: {{DATE}}", 0, 100, 200)

        result = await pdf.new_replacement() \
            .replace("{{NAME}}", "Jane Smith") \
            .replace("{{DATE}}", "2025-01-15") \
            .apply()
        assert result is True

        assertions = await PDFAssertions.of(pdf)
        try:
            await assertions.assert_textline_does_not_exist("Name: {{NAME}}")
            await assertions.assert_textline_exists("Name: Jane Smith")
            await assertions.assert_textline_exists("Date: 2025-01-15")
        finally:
            await assertions.close()


@pytest.mark.asyncio
async def test_replace_template_on_specific_page():
    base_url, token = _require_env()

    async with await PDFDancer.new(token=token, base_url=base_url, initial_page_count=2) as pdf:
        await _add_text(pdf, "Page {{NUM}}", 0, 100, 100)
        await _add_text(pdf, "Page {{NUM}}", 1, 100, 100)

        assert await pdf.page(0).replace_templates([TemplateReplacement(placeholder="{{NUM}}", text="ONE")])

        assert len(await pdf.page(0).select_paragraphs_starting_with("Page ONE")) == 1
        assert len(await pdf.page(1).select_paragraphs_starting_with("Page {{NUM}}")) == 1


@pytest.mark.asyncio
async def test_replace_template_with_reflow_none():
    base_url, token = _require_env()

    async with await PDFDancer.new(token=token, base_url=base_url) as pdf:
        await _add_text(pdf, "Value: {{VAL}}", 0, 100, 100)

        result = await pdf.replace_templates([TemplateReplacement(placeholder="{{VAL}}", text="42")],
                                             reflow_preset=ReflowPreset.NONE)
        assert result is True

        assertions = await PDFAssertions.of(pdf)
        try:
            await assertions.assert_textline_exists("Value: 42")
        finally:
            await assertions.close()


@pytest.mark.asyncio
async def test_replace_template_empty_list_raises():
    base_url, token = _require_env()

    async with await PDFDancer.new(token=token, base_url=base_url) as pdf:
        with pytest.raises(ValidationException):
            await pdf.replace_templates([])
        with pytest.raises(ValidationException):
            await pdf.page(0).replace_templates([])
