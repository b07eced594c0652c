"""
Parsing of API JSON payloads into model objects.
"""

import logging
from typing import Optional, List

from .models import (
    ObjectRef, Position, ObjectType, FormFieldRef, TextObjectRef, PageRef, BoundingRect,
    ShapeType, PositionMode, PageSize, Orientation, PageSnapshot, DocumentSnapshot,
    FontRecommendation, FontType, Color, TextStatus, FORM_FIELD_TYPES, TEXT_TYPES
)

logger = logging.getLogger(__name__)

# Older service versions spell the checkbox type with an underscore
_TYPE_ALIASES = {"CHECK_BOX": "CHECKBOX"}


def parse_object_type(value: str) -> ObjectType:
    return ObjectType(_TYPE_ALIASES.get(value, value))


def parse_position(pos_data: dict) -> Position:
    """Parse JSON position data into a Position."""
    position = Position()
    position.page_index = pos_data.get('pageIndex')
    position.text_starts_with = pos_data.get('textStartsWith')
    position.text_pattern = pos_data.get('textPattern')
    position.name = pos_data.get('name')

    if pos_data.get('shape'):
        position.shape = ShapeType(pos_data['shape'])
    if pos_data.get('mode'):
        position.mode = PositionMode(pos_data['mode'])

    rect_data = pos_data.get('boundingRect')
    if isinstance(rect_data, dict):
        position.bounding_rect = BoundingRect(
            x=rect_data['x'],
            y=rect_data['y'],
            width=rect_data.get('width') or 0.0,
            height=rect_data.get('height') or 0.0
        )

    return position


def parse_object_ref(obj_data: dict) -> ObjectRef:
    position_data = obj_data.get('position')
    return ObjectRef(
        internal_id=obj_data.get('internalId'),
        position=parse_position(position_data) if position_data else None,
        type=parse_object_type(obj_data['type'])
    )


def parse_form_field_ref(obj_data: dict) -> FormFieldRef:
    position_data = obj_data.get('position')
    return FormFieldRef(
        internal_id=obj_data.get('internalId'),
        position=parse_position(position_data) if position_data else None,
        type=parse_object_type(obj_data['type']),
        name=obj_data.get('name'),
        value=obj_data.get('value'),
    )


def parse_color(color_data) -> Optional[Color]:
    if not isinstance(color_data, dict):
        return None
    red = color_data.get('red')
    green = color_data.get('green')
    blue = color_data.get('blue')
    alpha = color_data.get('alpha', 255)
    if not all(isinstance(v, int) for v in (red, green, blue, alpha)):
        return None
    try:
        return Color(red, green, blue, alpha)
    except ValueError:
        return None


def parse_font_recommendation(data: dict) -> FontRecommendation:
    return FontRecommendation(
        font_name=data.get('fontName', ''),
        font_type=FontType(data.get('fontType', 'SYSTEM')),
        similarity_score=data.get('similarityScore', 0.0)
    )


def parse_text_status(status_data) -> Optional[TextStatus]:
    if not isinstance(status_data, dict):
        return None
    font_rec_data = status_data.get('fontRecommendation')
    return TextStatus(
        modified=status_data.get('modified', False),
        encodable=status_data.get('encodable', True),
        font_type=FontType(status_data.get('fontType', 'UNKNOWN')),
        font_recommendation=parse_font_recommendation(font_rec_data) if isinstance(font_rec_data, dict) else None
    )


def parse_text_object_ref(obj_data: dict, fallback_id: Optional[str] = None) -> TextObjectRef:
    """Parse a paragraph or text line, including its child lines."""
    position_data = obj_data.get('position')
    position = parse_position(position_data) if position_data else Position()

    internal_id = obj_data.get('internalId', fallback_id or '')
    line_spacings = obj_data.get('lineSpacings')
    text = obj_data.get('text')
    font_name = obj_data.get('fontName')
    font_size = obj_data.get('fontSize')

    text_object = TextObjectRef(
        internal_id=internal_id,
        position=position,
        object_type=parse_object_type(obj_data.get('type', 'TEXT_LINE')),
        text=text if isinstance(text, str) else None,
        font_name=font_name if isinstance(font_name, str) else None,
        font_size=font_size if isinstance(font_size, (int, float)) else None,
        line_spacings=line_spacings if isinstance(line_spacings, list) else None,
        color=parse_color(obj_data.get('color')),
        status=parse_text_status(obj_data.get('status'))
    )

    children = obj_data.get('children')
    if isinstance(children, list):
        text_object.children = [
            parse_text_object_ref(child_data, f"{internal_id or 'child'}-{index}")
            for index, child_data in enumerate(children)
        ]

    return text_object


def parse_page_ref(obj_data: dict) -> PageRef:
    position_data = obj_data.get('position')
    position = parse_position(position_data) if position_data else None

    page_size = None
    if isinstance(obj_data.get('pageSize'), dict):
        try:
            page_size = PageSize.from_dict(obj_data['pageSize'])
        except ValueError:
            page_size = None

    orientation = None
    orientation_value = obj_data.get('orientation')
    if isinstance(orientation_value, str):
        try:
            orientation = Orientation(orientation_value.strip().upper())
        except ValueError:
            orientation = None

    return PageRef(
        internal_id=obj_data.get('internalId'),
        position=position,
        type=parse_object_type(obj_data.get('type', 'PAGE')),
        page_size=page_size,
        orientation=orientation
    )


def parse_element(elem_data: dict) -> ObjectRef:
    """Parse a snapshot element with the parser matching its type tag."""
    elem_type = parse_object_type(elem_data['type'])
    if elem_type in TEXT_TYPES:
        return parse_text_object_ref(elem_data)
    if elem_type in FORM_FIELD_TYPES:
        return parse_form_field_ref(elem_data)
    return parse_object_ref(elem_data)


def parse_known_element(elem_data: dict) -> Optional[ObjectRef]:
    """Like `parse_element`, but returns None for elements of a type this client does not know."""
    if not elem_data.get('type'):
        return None
    try:
        return parse_element(elem_data)
    except (ValueError, KeyError):
        logger.debug("Skipping element with unsupported data: %s", elem_data.get('type'))
        return None


def parse_page_snapshot(data: dict, page_index: Optional[int] = None) -> PageSnapshot:
    """
    Parse a page snapshot. Elements with an unknown type are skipped.
    Every element's position is tied to the index of the page that contains it.
    """
    page_ref = parse_page_ref(data.get('pageRef') or {})
    if page_index is None:
        page_index = page_ref.page_index
    elif page_ref.page_index is None:
        if page_ref.position is None:
            page_ref.position = Position.at_page(page_index)
        else:
            page_ref.position.page_index = page_index

    elements: List[ObjectRef] = []
    for elem_data in data.get('elements', []):
        element = parse_known_element(elem_data)
        if element is None:
            continue

        if page_index is not None:
            if element.position is None:
                element.position = Position(page_index=page_index)
            elif element.position.page_index != page_index:
                if element.position.page_index is not None:
                    logger.warning("Element %s reports page %s inside page %s snapshot",
                                   element.internal_id, element.position.page_index, page_index)
                element.position.page_index = page_index
        elements.append(element)

    return PageSnapshot(page_ref=page_ref, elements=elements)


def parse_document_snapshot(data: dict) -> DocumentSnapshot:
    pages = []
    for index, page_data in enumerate(data.get('pages', [])):
        page_ref_data = page_data.get('pageRef') or {}
        explicit_index = (page_ref_data.get('position') or {}).get('pageIndex')
        pages.append(parse_page_snapshot(page_data, explicit_index if explicit_index is not None else index))

    return DocumentSnapshot(
        page_count=data.get('pageCount', len(pages)),
        fonts=[parse_font_recommendation(font_data) for font_data in data.get('fonts', [])],
        pages=pages
    )
