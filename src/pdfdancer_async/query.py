"""
Query engine: turns an (object type, position) query into object references.

Queries are answered from the snapshot cache and filtered client-side, except
path-at-point queries, which need the server's full vector geometry.
"""

import logging
import re
from typing import List, Optional, Pattern, Sequence

from .models import (
    ObjectRef, ObjectType, Position, ShapeType, PositionMode, BoundingRect,
    TextObjectRef, FormFieldRef, FindRequest, FORM_FIELD_TYPES
)
from .parsing import parse_known_element
from .session import Session
from .snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.01

_INLINE_FLAGS = re.compile(r'^\(\?([A-Za-z]+)\)')
_SUPPORTED_INLINE_FLAGS = "aiLmsux"


def compile_text_pattern(pattern: str) -> Pattern:
    """
    Compile a text pattern as leniently as possible.

    Patterns starting with an inline flag group Python does not know
    (e.g. "(?gi)") are retried with only the supported flags; anything that
    still fails to compile is matched literally.
    """
    try:
        return re.compile(pattern)
    except re.error:
        pass

    match = _INLINE_FLAGS.match(pattern)
    if match:
        kept = "".join(dict.fromkeys(f for f in match.group(1) if f in _SUPPORTED_INLINE_FLAGS))
        rest = pattern[match.end():]
        try:
            return re.compile(f"(?{kept}){rest}" if kept else rest)
        except re.error:
            pass

    logger.debug("Text pattern %r is not a valid regular expression, matching literally", pattern)
    return re.compile(re.escape(pattern))


def point_in_rect(x: float, y: float, rect: BoundingRect, tolerance: float = 0.0) -> bool:
    """Whether (x, y) lies inside rect, widened by tolerance on both axes."""
    return (rect.x - tolerance <= x <= rect.x + rect.width + tolerance and
            rect.y - tolerance <= y <= rect.y + rect.height + tolerance)


def _rects_intersect(rect1: BoundingRect, rect2: BoundingRect, tolerance: float) -> bool:
    if rect1.x + rect1.width + tolerance < rect2.x or rect2.x + rect2.width + tolerance < rect1.x:
        return False
    if rect1.y + rect1.height + tolerance < rect2.y or rect2.y + rect2.height + tolerance < rect1.y:
        return False
    return True


def _rect_contains(outer: BoundingRect, inner: BoundingRect, tolerance: float) -> bool:
    return (point_in_rect(inner.x, inner.y, outer, tolerance) and
            point_in_rect(inner.x + inner.width, inner.y + inner.height, outer, tolerance))


def _matches_type(element: ObjectRef, object_type: Optional[ObjectType]) -> bool:
    if object_type is None:
        return True
    if object_type == ObjectType.FORM_FIELD:
        return element.type in FORM_FIELD_TYPES
    return element.type == object_type


def _matches_geometry(element: ObjectRef, position: Position, tolerance: float) -> bool:
    rect = element.position.bounding_rect if element.position else None
    if rect is None:
        return False
    query = position.bounding_rect
    if position.shape == ShapeType.POINT:
        return point_in_rect(query.x, query.y, rect, tolerance)
    if position.mode == PositionMode.CONTAINS:
        return _rect_contains(query, rect, tolerance)
    return _rects_intersect(rect, query, tolerance)


def _element_text(element: ObjectRef) -> Optional[str]:
    if isinstance(element, TextObjectRef):
        return element.text
    return None


def filter_elements(elements: Sequence[ObjectRef], object_type: Optional[ObjectType] = None,
                    position: Optional[Position] = None) -> List[ObjectRef]:
    """
    Filter snapshot elements client-side.

    Filters run in a fixed order: type, page, geometry, text prefix,
    text pattern, form field name.
    """
    result = [e for e in elements if _matches_type(e, object_type)]

    if position is None:
        return result

    if position.page_index is not None:
        result = [e for e in result if e.position is not None and e.position.page_index == position.page_index]

    if position.bounding_rect is not None and position.shape in (ShapeType.POINT, ShapeType.RECT):
        tolerance = position.tolerance or 0.0
        result = [e for e in result if _matches_geometry(e, position, tolerance)]

    # case-insensitive to match the server's behavior
    if position.text_starts_with:
        prefix = position.text_starts_with.lower()
        result = [e for e in result if _element_text(e) and _element_text(e).lower().startswith(prefix)]

    if position.text_pattern:
        pattern = compile_text_pattern(position.text_pattern)
        result = [e for e in result if _element_text(e) and pattern.search(_element_text(e))]

    if position.name:
        result = [e for e in result if isinstance(e, FormFieldRef) and e.name == position.name]

    return result


class QueryEngine:
    """
    Answers `find` queries from the snapshot cache, falling back to the API
    for path-at-point lookups.
    """

    def __init__(self, session: Session, cache: SnapshotCache):
        self._session = session
        self._cache = cache

    @staticmethod
    def requires_server_geometry(object_type: Optional[ObjectType], position: Optional[Position]) -> bool:
        """
        Point-in-path containment needs full vector data that snapshots don't carry.
        """
        return (object_type == ObjectType.PATH and position is not None and
                position.shape == ShapeType.POINT and position.bounding_rect is not None)

    async def find(self, object_type: Optional[ObjectType] = None,
                   position: Optional[Position] = None) -> List[ObjectRef]:
        """
        Find objects of the given type matching the position criteria.

        Args:
            object_type: Type to match, FORM_FIELD matches every form field kind; None matches all
            position: Page scope, geometry, text and name criteria; None matches everything

        Returns:
            Matching references in document order
        """
        if self.requires_server_geometry(object_type, position):
            return await self._find_remote(object_type, position)

        if position is not None and position.page_index is not None:
            snapshot = await self._cache.get_page_snapshot(position.page_index)
            candidates = snapshot.elements
        else:
            snapshot = await self._cache.get_document_snapshot()
            candidates = snapshot.all_elements()
        return filter_elements(candidates, object_type, position)

    async def _find_remote(self, object_type: ObjectType, position: Position) -> List[ObjectRef]:
        request_data = FindRequest(object_type, position).to_dict()
        response = await self._session.request('POST', '/pdf/find', json=request_data)
        elements = (parse_known_element(obj_data) for obj_data in response.json())
        return [element for element in elements if element is not None]
