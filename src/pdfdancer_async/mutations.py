"""
Mutation dispatcher: every state-changing API call goes through here.

The snapshot cache is invalidated only after the server answered
successfully; a failed call leaves cached state untouched.
"""

import logging
from typing import Optional, Any, Mapping, Union, Sequence

import httpx

from .exceptions import ValidationException
from .models import (
    ObjectRef, Position, ObjectType, FormFieldRef, PageRef, PageSize, Orientation, CommandResult,
    DeleteRequest, MoveRequest, AddRequest, ModifyRequest, ModifyTextRequest, ChangeFormFieldRequest,
    AddPageRequest, PageMoveRequest, TemplateReplaceRequest, Paragraph, Image, Payload, Color,
    RedactTarget, RedactRequest, RedactResponse
)
from .parsing import parse_page_ref
from .session import Session
from .snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)


class MutationDispatcher:
    """
    Sends mutations through the session and invalidates the cache on success.
    """

    def __init__(self, session: Session, cache: SnapshotCache):
        self._session = session
        self._cache = cache

    async def execute(self, method: str, path: str, json: Optional[Any] = None,
                      params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        """
        Run one state-changing request.

        Any exception from the session propagates before the cache is touched.
        """
        response = await self._session.request(method, path, json=json, params=params)
        self._cache.invalidate()
        return response

    async def delete(self, object_ref: ObjectRef) -> bool:
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        response = await self.execute('DELETE', '/pdf/delete', json=DeleteRequest(object_ref).to_dict())
        return bool(response.json())

    async def move(self, object_ref: ObjectRef, position: Position) -> bool:
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if position is None:
            raise ValidationException("Position cannot be null")
        response = await self.execute('PUT', '/pdf/move', json=MoveRequest(object_ref, position).to_dict())
        return bool(response.json())

    async def add_object(self, payload: Payload) -> bool:
        if payload is None:
            raise ValidationException("Object cannot be null")
        position = payload.get_position()
        if position is None:
            raise ValidationException(f"{payload.kind.value.capitalize()} position is null")
        if position.page_index is None:
            raise ValidationException(f"{payload.kind.value.capitalize()} position page index is null")
        if position.page_index < 0:
            raise ValidationException(f"{payload.kind.value.capitalize()} position page index is less than 0")
        response = await self.execute('POST', '/pdf/add', json=AddRequest(payload).to_dict())
        return bool(response.json())

    async def modify_paragraph(self, object_ref: ObjectRef, new_paragraph: Union[Paragraph, str]) -> CommandResult:
        """
        Replace a paragraph with a new paragraph payload, or only its text when given a string.
        """
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if new_paragraph is None:
            return CommandResult.empty("ModifyParagraph", object_ref.internal_id)

        if isinstance(new_paragraph, str):
            response = await self.execute('PUT', '/pdf/text/paragraph',
                                          json=ModifyTextRequest(object_ref, new_paragraph).to_dict())
        else:
            response = await self.execute('PUT', '/pdf/modify',
                                          json=ModifyRequest(object_ref, new_paragraph).to_dict())
        return CommandResult.from_dict(response.json())

    async def modify_image(self, object_ref: ObjectRef, new_image: Image) -> CommandResult:
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if new_image is None:
            raise ValidationException("Image cannot be null")
        response = await self.execute('PUT', '/pdf/modify', json=ModifyRequest(object_ref, new_image).to_dict())
        return CommandResult.from_dict(response.json())

    async def modify_text_line(self, object_ref: ObjectRef, new_text: str) -> CommandResult:
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if new_text is None:
            raise ValidationException("New text cannot be null")
        response = await self.execute('PUT', '/pdf/text/line',
                                      json=ModifyTextRequest(object_ref, new_text).to_dict())
        return CommandResult.from_dict(response.json())

    async def change_form_field(self, form_field_ref: FormFieldRef, new_value: str) -> bool:
        if form_field_ref is None:
            raise ValidationException("Form field reference cannot be null")
        if new_value is None:
            raise ValidationException("Form field value cannot be null")
        response = await self.execute('PUT', '/pdf/modify/formField',
                                      json=ChangeFormFieldRequest(form_field_ref, new_value).to_dict())
        return bool(response.json())

    async def redact(self, targets: Sequence[RedactTarget],
                     placeholder_color: Optional[Color] = None) -> RedactResponse:
        if not targets:
            raise ValidationException("At least one redaction target is required")
        for target in targets:
            if target is None or not target.id:
                raise ValidationException("Redaction target id cannot be empty")
            if target.replacement is None:
                raise ValidationException(f"Replacement for {target.id} cannot be null")

        logger.debug("Redacting %d objects", len(targets))
        response = await self.execute('POST', '/pdf/redact',
                                      json=RedactRequest(list(targets), placeholder_color).to_dict())
        return RedactResponse.from_dict(response.json())

    async def add_page(self, page_index: Optional[int] = None,
                       page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
                       orientation: Optional[Union[Orientation, str]] = None) -> PageRef:
        if page_index is not None and page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        try:
            size = PageSize.coerce(page_size) if page_size is not None else None
            if isinstance(orientation, str):
                orientation = Orientation(orientation.strip().upper())
        except (ValueError, TypeError) as e:
            raise ValidationException(str(e)) from e

        request_data = AddPageRequest(page_index, size, orientation).to_dict()
        response = await self.execute('POST', '/pdf/page/add', json=request_data or None)
        return parse_page_ref(response.json())

    async def move_page(self, from_page_index: int, to_page_index: int) -> bool:
        for value, label in ((from_page_index, "from_page_index"), (to_page_index, "to_page_index")):
            if value is None:
                raise ValidationException(f"{label} cannot be null")
            if not isinstance(value, int):
                raise ValidationException(f"{label} must be an integer, got {type(value)}")
            if value < 0:
                raise ValidationException(f"{label} must be >= 0, got {value}")

        response = await self.execute('PUT', '/pdf/page/move',
                                      json=PageMoveRequest(from_page_index, to_page_index).to_dict())
        return bool(response.json())

    async def delete_page(self, page_ref: ObjectRef) -> bool:
        if page_ref is None:
            raise ValidationException("Page reference cannot be null")
        if page_ref.type != ObjectType.PAGE:
            raise ValidationException(f"Expected a page reference, got {page_ref.type.value}")
        response = await self.execute('DELETE', '/pdf/page/delete', json=page_ref.to_dict())
        return bool(response.json())

    async def apply_replacements(self, request: TemplateReplaceRequest) -> bool:
        if request is None or not request.replacements:
            raise ValidationException("At least one template replacement is required")
        for replacement in request.replacements:
            if not replacement.placeholder:
                raise ValidationException("Template placeholder cannot be empty")
            if replacement.text is None and replacement.image is None:
                raise ValidationException(f"Replacement for {replacement.placeholder!r} has neither text nor image")
        if request.page_index is not None and request.page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {request.page_index}")

        logger.debug("Applying %d template replacements", len(request.replacements))
        response = await self.execute('PUT', '/pdf/text/replace', json=request.to_dict())
        return bool(response.json())
