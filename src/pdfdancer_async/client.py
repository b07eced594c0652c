"""
PDFDancer async client.

Treats a remote, mutable PDF session as a locally queryable object graph.
Reads are served from a per-client snapshot cache; every successful mutation
invalidates that cache so the next read fetches fresh state.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union, BinaryIO, Mapping, Any, Sequence

import httpx
from dotenv import load_dotenv

from .exceptions import PdfDancerException, ValidationException
from .models import (
    ObjectRef, Position, ObjectType, Font, Image, Paragraph, FormFieldRef, TextObjectRef, PageRef,
    CommandResult, PageSize, Orientation, PageSnapshot, DocumentSnapshot, ReflowPreset, Color,
    RedactTarget, RedactResponse, DEFAULT_REDACTION,
    TemplateReplacement, TemplateReplaceRequest, FORM_FIELD_TYPES
)
from .mutations import MutationDispatcher
from .query import QueryEngine, DEFAULT_TOLERANCE
from .replacement_builder import ReplacementBuilder
from .retry import RetryConfig, Transport
from .session import Session, resolve_base_url, resolve_token
from .snapshot_cache import SnapshotCache
from .types import (
    PDFObjectBase, PathObject, ParagraphObject, TextLineObject, ImageObject, FormObject, FormFieldObject
)

load_dotenv()

logger = logging.getLogger(__name__)

# Set to True to skip SSL certificate verification (self-signed test servers).
# WARNING: Only use in development/testing environments
DISABLE_SSL_VERIFY = False


def _read_binary(data: Union[bytes, Path, str, BinaryIO], label: str) -> bytes:
    """
    Read bytes from raw data, a filesystem path or a file-like object, with strict validation.
    """
    if data is None:
        raise ValidationException(f"{label} cannot be null")

    try:
        if isinstance(data, (bytes, bytearray)):
            if len(data) == 0:
                raise ValidationException(f"{label} cannot be empty")
            return bytes(data)

        elif isinstance(data, (Path, str)):
            file_path = Path(data)
            if not file_path.exists():
                raise ValidationException(f"{label} file does not exist: {file_path}")
            if not file_path.is_file():
                raise ValidationException(f"Path is not a file: {file_path}")
            if not file_path.stat().st_size > 0:
                raise ValidationException(f"{label} file is empty: {file_path}")
            return file_path.read_bytes()

        elif hasattr(data, 'read'):
            content = data.read()
            if isinstance(content, str):
                content = content.encode('utf-8')
            if len(content) == 0:
                raise ValidationException(f"{label} from file-like object is empty")
            return content

        else:
            raise ValidationException(f"Unsupported {label} type: {type(data)}")

    except OSError as e:
        raise PdfDancerException(f"Failed to read {label}: {e}", cause=e)


class PageClient:
    """
    Page-scoped view of a PDFDancer document.
    """

    def __init__(self, page_index: int, root: "PDFDancer", page_size: Optional[PageSize] = None,
                 orientation: Optional[Orientation] = None):
        self.page_index = page_index
        self.root = root
        self.object_type = ObjectType.PAGE
        self.position = Position.at_page(page_index)
        # known only for clients built from a server page reference
        self.internal_id: Optional[str] = None
        self.page_size = page_size
        self.orientation = orientation

    @classmethod
    def from_ref(cls, root: 'PDFDancer', page_ref: PageRef) -> 'PageClient':
        page_client = PageClient(page_ref.page_index, root, page_ref.page_size, page_ref.orientation)
        page_client.internal_id = page_ref.internal_id
        return page_client

    def _at(self, x: float, y: float, tolerance: float) -> Position:
        return Position.at_page_coordinates(self.page_index, x, y, tolerance)

    def _scope(self) -> Position:
        return Position.at_page(self.page_index)

    # noinspection PyProtectedMember
    async def select_paragraphs(self) -> List[ParagraphObject]:
        return self.root._to_paragraph_objects(await self.root.find(ObjectType.PARAGRAPH, self._scope()))

    # noinspection PyProtectedMember
    async def select_paragraphs_starting_with(self, text: str) -> List[ParagraphObject]:
        position = self._scope().with_text_starts(text)
        return self.root._to_paragraph_objects(await self.root.find(ObjectType.PARAGRAPH, position))

    # noinspection PyProtectedMember
    async def select_paragraphs_matching(self, pattern: str) -> List[ParagraphObject]:
        position = self._scope().with_text_pattern(pattern)
        return self.root._to_paragraph_objects(await self.root.find(ObjectType.PARAGRAPH, position))

    # noinspection PyProtectedMember
    async def select_paragraphs_at(self, x: float, y: float,
                                   tolerance: float = DEFAULT_TOLERANCE) -> List[ParagraphObject]:
        return self.root._to_paragraph_objects(await self.root.find(ObjectType.PARAGRAPH, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_text_lines(self) -> List[TextLineObject]:
        return self.root._to_textline_objects(await self.root.find(ObjectType.TEXT_LINE, self._scope()))

    # noinspection PyProtectedMember
    async def select_text_lines_starting_with(self, text: str) -> List[TextLineObject]:
        position = self._scope().with_text_starts(text)
        return self.root._to_textline_objects(await self.root.find(ObjectType.TEXT_LINE, position))

    # noinspection PyProtectedMember
    async def select_text_lines_matching(self, pattern: str) -> List[TextLineObject]:
        position = self._scope().with_text_pattern(pattern)
        return self.root._to_textline_objects(await self.root.find(ObjectType.TEXT_LINE, position))

    # noinspection PyProtectedMember
    async def select_text_lines_at(self, x: float, y: float,
                                   tolerance: float = DEFAULT_TOLERANCE) -> List[TextLineObject]:
        return self.root._to_textline_objects(await self.root.find(ObjectType.TEXT_LINE, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_images(self) -> List[ImageObject]:
        return self.root._to_image_objects(await self.root.find(ObjectType.IMAGE, self._scope()))

    # noinspection PyProtectedMember
    async def select_images_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[ImageObject]:
        return self.root._to_image_objects(await self.root.find(ObjectType.IMAGE, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_paths(self) -> List[PathObject]:
        return self.root._to_path_objects(await self.root.find(ObjectType.PATH, self._scope()))

    # noinspection PyProtectedMember
    async def select_paths_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[PathObject]:
        return self.root._to_path_objects(await self.root.find(ObjectType.PATH, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_forms(self) -> List[FormObject]:
        return self.root._to_form_objects(await self.root.find(ObjectType.FORM_X_OBJECT, self._scope()))

    # noinspection PyProtectedMember
    async def select_forms_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[FormObject]:
        return self.root._to_form_objects(await self.root.find(ObjectType.FORM_X_OBJECT, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_form_fields(self) -> List[FormFieldObject]:
        return self.root._to_form_field_objects(await self.root.find(ObjectType.FORM_FIELD, self._scope()))

    # noinspection PyProtectedMember
    async def select_form_fields_by_name(self, field_name: str) -> List[FormFieldObject]:
        position = Position.by_name(field_name)
        position.page_index = self.page_index
        return self.root._to_form_field_objects(await self.root.find(ObjectType.FORM_FIELD, position))

    # noinspection PyProtectedMember
    async def select_form_fields_at(self, x: float, y: float,
                                    tolerance: float = DEFAULT_TOLERANCE) -> List[FormFieldObject]:
        return self.root._to_form_field_objects(await self.root.find(ObjectType.FORM_FIELD, self._at(x, y, tolerance)))

    # noinspection PyProtectedMember
    async def select_elements(self) -> List[PDFObjectBase]:
        """All objects on this page, in document order."""
        return self.root._to_mixed_objects(await self.root.find(None, self._scope()))

    async def delete(self) -> bool:
        """Delete this page, addressed by the server's reference for its current index."""
        return await self.root.delete_page(self.page_index)

    async def move_to(self, target_page_index: int) -> bool:
        """Move this page to a different index within the document."""
        moved = await self.root.move_page(self.page_index, target_page_index)
        if moved:
            self.page_index = target_page_index
            self.position = Position.at_page(target_page_index)
            self.internal_id = None
        return moved

    async def replace_templates(self, replacements: Sequence[TemplateReplacement],
                                reflow_preset: Optional[ReflowPreset] = None) -> bool:
        """Replace placeholders on this page only."""
        return await self.root.replace_templates(replacements, page_index=self.page_index,
                                                 reflow_preset=reflow_preset)

    @property
    def size(self) -> Optional[PageSize]:
        return self.page_size

    def __repr__(self) -> str:
        return f"<PageClient index={self.page_index} size={self.page_size}>"


class PDFDancer:
    """
    Async REST client for the PDFDancer PDF manipulation service.

    Handles authentication, session lifecycle, snapshot caching and HTTP
    communication. Use `PDFDancer.open` or `PDFDancer.new` to obtain an
    instance, preferably as an async context manager:

        async with await PDFDancer.open("document.pdf") as pdf:
            paragraphs = await pdf.page(0).select_paragraphs()
    """

    def __init__(self, session: Session, owns_http_client: bool = True):
        self._session = session
        self._owns_http_client = owns_http_client
        self._cache = SnapshotCache(session)
        self._query = QueryEngine(session, self._cache)
        self._mutations = MutationDispatcher(session, self._cache)

    # --------------------------------------------------------------
    # CLASS METHOD ENTRY POINTS
    # --------------------------------------------------------------
    @classmethod
    async def open(cls,
                   pdf_data: Union[bytes, Path, str, BinaryIO],
                   token: Optional[str] = None,
                   base_url: Optional[str] = None,
                   timeout: float = 30.0,
                   retry_config: Optional[RetryConfig] = None,
                   user_id: Optional[str] = None,
                   http_client: Optional[httpx.AsyncClient] = None) -> "PDFDancer":
        """
        Upload a PDF and open a client session on it.

        Args:
            pdf_data: PDF payload supplied directly or via filesystem handles.
            token: Override for the API token; falls back to `PDFDANCER_TOKEN`, then to an anonymous token.
            base_url: Override for the API base URL; falls back to `PDFDANCER_BASE_URL`
                or defaults to `https://api.pdfdancer.com`.
            timeout: Per-attempt HTTP timeout in seconds.
            retry_config: Retry policy for REST calls.
            user_id: Optional user id mixed into the device fingerprint.
            http_client: Externally managed httpx client; not closed by this client.

        Returns:
            A ready-to-use `PDFDancer` client instance.
        """
        pdf_bytes = _read_binary(pdf_data, "PDF data")
        instance = cls._connect(token, base_url, timeout, retry_config, user_id, http_client)
        try:
            await instance._session.create(pdf_bytes)
        except Exception:
            await instance.close()
            raise
        return instance

    @classmethod
    async def new(cls,
                  token: Optional[str] = None,
                  base_url: Optional[str] = None,
                  timeout: float = 30.0,
                  page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
                  orientation: Optional[Union[Orientation, str]] = None,
                  initial_page_count: int = 1,
                  retry_config: Optional[RetryConfig] = None,
                  user_id: Optional[str] = None,
                  http_client: Optional[httpx.AsyncClient] = None) -> "PDFDancer":
        """
        Create a new blank PDF document and open a client session on it.

        Args:
            page_size: Page size (default: A4). Accepts `PageSize`, a standard name string, or a
                mapping with `width`/`height` values.
            orientation: Page orientation (default: PORTRAIT).
            initial_page_count: Number of initial blank pages (default: 1).

        The remaining arguments behave as in `open`.
        """
        instance = cls._connect(token, base_url, timeout, retry_config, user_id, http_client)
        try:
            await instance._session.create_blank(page_size, orientation, initial_page_count)
        except Exception:
            await instance.close()
            raise
        return instance

    @classmethod
    def _connect(cls, token: Optional[str], base_url: Optional[str], timeout: float,
                 retry_config: Optional[RetryConfig], user_id: Optional[str],
                 http_client: Optional[httpx.AsyncClient]) -> "PDFDancer":
        resolved_token = resolve_token(token)
        resolved_base_url = resolve_base_url(base_url)
        owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(verify=not DISABLE_SSL_VERIFY)
        transport = Transport(http_client, retry_config)
        session = Session(transport, resolved_base_url, resolved_token, timeout=timeout, user_id=user_id)
        return cls(session, owns_http_client)

    @property
    def session_id(self) -> Optional[str]:
        return self._session.session_id

    @property
    def fingerprint(self) -> str:
        return self._session.fingerprint

    # --------------------------------------------------------------
    # Queries
    # --------------------------------------------------------------
    async def find(self, object_type: Optional[ObjectType] = None,
                   position: Optional[Position] = None) -> List[ObjectRef]:
        """
        Find object references by type and position criteria.
        Served from the snapshot cache except for path lookups at a point.
        """
        return await self._query.find(object_type, position)

    async def select_paragraphs(self) -> List[ParagraphObject]:
        return self._to_paragraph_objects(await self.find(ObjectType.PARAGRAPH))

    async def select_paragraphs_starting_with(self, text: str) -> List[ParagraphObject]:
        return self._to_paragraph_objects(
            await self.find(ObjectType.PARAGRAPH, Position(text_starts_with=text)))

    async def select_paragraphs_matching(self, pattern: str) -> List[ParagraphObject]:
        return self._to_paragraph_objects(await self.find(ObjectType.PARAGRAPH, Position(text_pattern=pattern)))

    async def select_text_lines(self) -> List[TextLineObject]:
        return self._to_textline_objects(await self.find(ObjectType.TEXT_LINE))

    async def select_text_lines_starting_with(self, text: str) -> List[TextLineObject]:
        return self._to_textline_objects(
            await self.find(ObjectType.TEXT_LINE, Position(text_starts_with=text)))

    async def select_text_lines_matching(self, pattern: str) -> List[TextLineObject]:
        return self._to_textline_objects(await self.find(ObjectType.TEXT_LINE, Position(text_pattern=pattern)))

    async def select_images(self) -> List[ImageObject]:
        return self._to_image_objects(await self.find(ObjectType.IMAGE))

    async def select_paths(self) -> List[PathObject]:
        return self._to_path_objects(await self.find(ObjectType.PATH))

    async def select_forms(self) -> List[FormObject]:
        """Form XObjects in the whole document."""
        return self._to_form_objects(await self.find(ObjectType.FORM_X_OBJECT))

    async def select_form_fields(self) -> List[FormFieldObject]:
        """AcroForm fields of every kind in the whole document."""
        return self._to_form_field_objects(await self.find(ObjectType.FORM_FIELD))

    async def select_form_fields_by_name(self, field_name: str) -> List[FormFieldObject]:
        return self._to_form_field_objects(await self.find(ObjectType.FORM_FIELD, Position.by_name(field_name)))

    async def select_elements(self) -> List[PDFObjectBase]:
        """All objects in the document, page by page in document order."""
        return self._to_mixed_objects(await self.find())

    # --------------------------------------------------------------
    # Pages
    # --------------------------------------------------------------
    def page(self, page_index: int) -> PageClient:
        """
        Page client for a 0-based page index. No request is made until a
        selector is awaited; use `pages()` for clients carrying size and orientation.
        """
        if page_index is None or not isinstance(page_index, int) or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        return PageClient(page_index, self)

    async def pages(self) -> List[PageClient]:
        return [PageClient.from_ref(self, ref) for ref in await self._cache.get_page_refs()]

    async def new_page(self, page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
                       orientation: Optional[Union[Orientation, str]] = None,
                       page_index: Optional[int] = None) -> PageClient:
        """Add a page (appended unless `page_index` is given) and return its client."""
        return PageClient.from_ref(self, await self._mutations.add_page(page_index, page_size, orientation))

    async def move_page(self, from_page_index: int, to_page_index: int) -> bool:
        """Move a page to a different index within the document."""
        return await self._mutations.move_page(from_page_index, to_page_index)

    async def delete_page(self, page_index: int) -> bool:
        """Delete the page at a 0-based index."""
        return await self._mutations.delete_page(await self._page_ref(page_index))

    async def _page_ref(self, page_index: int) -> ObjectRef:
        page_ref = (await self._cache.get_page_snapshot(page_index)).page_ref
        if page_ref.internal_id:
            return page_ref
        logger.debug("Page %d snapshot carries no page id, addressing it by index", page_index)
        return ObjectRef(f"PAGE-{page_index}", Position.at_page(page_index), ObjectType.PAGE)

    # --------------------------------------------------------------
    # Mutations
    # --------------------------------------------------------------
    async def delete(self, object_ref: ObjectRef) -> bool:
        """Delete an object from the document."""
        return await self._mutations.delete(object_ref)

    async def move(self, object_ref: ObjectRef, position: Position) -> bool:
        """Move an object to a new position."""
        return await self._mutations.move(object_ref, position)

    async def add_paragraph(self, paragraph: Paragraph) -> bool:
        return await self._mutations.add_object(paragraph)

    async def add_image(self, image: Image, position: Optional[Position] = None) -> bool:
        if image is None:
            raise ValidationException("Image cannot be null")
        if position is not None:
            image.set_position(position)
        return await self._mutations.add_object(image)

    async def modify_paragraph(self, object_ref: ObjectRef, new_paragraph: Union[Paragraph, str]) -> CommandResult:
        return await self._mutations.modify_paragraph(object_ref, new_paragraph)

    async def modify_image(self, object_ref: ObjectRef, new_image: Image) -> CommandResult:
        return await self._mutations.modify_image(object_ref, new_image)

    async def modify_text_line(self, object_ref: ObjectRef, new_text: str) -> CommandResult:
        return await self._mutations.modify_text_line(object_ref, new_text)

    async def change_form_field(self, form_field_ref: FormFieldRef, new_value: str) -> bool:
        return await self._mutations.change_form_field(form_field_ref, new_value)

    async def redact(self, objects: Sequence[Union[PDFObjectBase, ObjectRef]],
                     replacement: str = DEFAULT_REDACTION,
                     placeholder_color: Optional[Color] = None) -> RedactResponse:
        """
        Redact several objects in one request.

        Args:
            objects: Selected objects or object references to redact.
            replacement: Text written in place of redacted text content.
            placeholder_color: Fill color of the placeholder drawn over images and paths.

        Returns:
            RedactResponse with the number of redacted objects and any warnings.
        """
        if not objects:
            raise ValidationException("At least one object to redact is required")
        targets = [RedactTarget(obj.internal_id, replacement) for obj in objects]
        return await self._mutations.redact(targets, placeholder_color)

    async def replace_templates(self, replacements: Sequence[TemplateReplacement],
                                page_index: Optional[int] = None,
                                reflow_preset: Optional[ReflowPreset] = None) -> bool:
        """
        Replace placeholder text across the document, or on one page.

        Note: with some reflow presets, replacement text containing line breaks
        may only be fully reported by snapshots after the document has been
        saved and reopened. This is a service limitation; no extra round trip
        is made to hide it.
        """
        if not replacements:
            raise ValidationException("At least one template replacement is required")
        request = TemplateReplaceRequest(tuple(replacements), page_index, reflow_preset)
        return await self._apply_replacements(request)

    def new_replacement(self) -> ReplacementBuilder:
        return ReplacementBuilder(self)

    async def _apply_replacements(self, request: TemplateReplaceRequest) -> bool:
        return await self._mutations.apply_replacements(request)

    # --------------------------------------------------------------
    # Fonts
    # --------------------------------------------------------------
    async def find_fonts(self, font_name: str, font_size: int) -> List[Font]:
        """
        Find available fonts matching a name.

        Raises:
            FontNotFoundException: If the service knows no such font
        """
        if not font_name or not font_name.strip():
            raise ValidationException("Font name cannot be null or empty")
        if font_size <= 0:
            raise ValidationException(f"Font size must be positive, got {font_size}")

        response = await self._session.request('GET', '/font/find', params={'fontName': font_name.strip()})
        return [Font(name, font_size) for name in response.json()]

    async def register_font(self, ttf_file: Union[Path, str, bytes, BinaryIO]) -> str:
        """
        Register a custom TrueType font for this session.

        Returns:
            The name under which the server registered the font
        """
        font_data = _read_binary(ttf_file, "TTF file")
        if isinstance(ttf_file, (Path, str)):
            filename = Path(ttf_file).name
        else:
            filename = Path(getattr(ttf_file, 'name', None) or 'font.ttf').name

        logger.debug("POST /font/register - request size: %d bytes", len(font_data))
        response = await self._session.request('POST', '/font/register',
                                               files={'ttfFile': (filename, font_data, 'font/ttf')})
        return response.text.strip()

    # --------------------------------------------------------------
    # Snapshots
    # --------------------------------------------------------------
    async def get_document_snapshot(self, types: Optional[str] = None) -> DocumentSnapshot:
        """
        Fresh snapshot of the whole document, bypassing the cache.

        Args:
            types: Optional comma-separated object types to include (e.g. "PARAGRAPH,IMAGE")
        """
        return await self._cache.fetch_document_snapshot(types)

    async def get_page_snapshot(self, page_index: int, types: Optional[str] = None) -> PageSnapshot:
        """Fresh snapshot of one page, bypassing the cache."""
        return await self._cache.fetch_page_snapshot(page_index, types)

    async def refresh(self) -> DocumentSnapshot:
        """Force a refetch of the cached document snapshot."""
        return await self._cache.get_document_snapshot(force_refresh=True)

    # --------------------------------------------------------------
    # Document bytes
    # --------------------------------------------------------------
    async def get_bytes(self) -> bytes:
        """
        Download the current PDF with all session modifications applied.
        """
        response = await self._session.request('GET', f'/session/{self._session.session_id}/pdf')
        return response.content

    async def save(self, file_path: Union[str, Path]) -> None:
        """
        Save the current PDF to a file, creating parent directories as needed.
        """
        if not file_path:
            raise ValidationException("File path cannot be null or empty")

        pdf_data = await self.get_bytes()
        output_path = Path(file_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(pdf_data)
        except OSError as e:
            raise PdfDancerException(f"Failed to save PDF file: {e}", cause=e)

    # --------------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------------
    async def close(self) -> None:
        if self._owns_http_client:
            await self._session.transport.client.aclose()

    async def __aenter__(self) -> "PDFDancer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --------------------------------------------------------------
    # Reference wrappers
    # --------------------------------------------------------------
    def _to_path_objects(self, refs: List[ObjectRef]) -> List[PathObject]:
        return [PathObject(self, ref.internal_id, ref.type, ref.position) for ref in refs]

    def _to_paragraph_objects(self, refs: List[TextObjectRef]) -> List[ParagraphObject]:
        return [ParagraphObject(self, ref) for ref in refs]

    def _to_textline_objects(self, refs: List[TextObjectRef]) -> List[TextLineObject]:
        return [TextLineObject(self, ref) for ref in refs]

    def _to_image_objects(self, refs: List[ObjectRef]) -> List[ImageObject]:
        return [ImageObject(self, ref.internal_id, ref.type, ref.position) for ref in refs]

    def _to_form_objects(self, refs: List[ObjectRef]) -> List[FormObject]:
        return [FormObject(self, ref.internal_id, ref.type, ref.position) for ref in refs]

    def _to_form_field_objects(self, refs: List[FormFieldRef]) -> List[FormFieldObject]:
        return [FormFieldObject(self, ref) for ref in refs]

    def _to_mixed_objects(self, refs: List[ObjectRef]) -> List[PDFObjectBase]:
        """
        Wrap references of mixed types, each in its matching handle class.
        """
        result: List[PDFObjectBase] = []
        for ref in refs:
            if ref.type == ObjectType.PARAGRAPH and isinstance(ref, TextObjectRef):
                result.append(ParagraphObject(self, ref))
            elif ref.type == ObjectType.TEXT_LINE and isinstance(ref, TextObjectRef):
                result.append(TextLineObject(self, ref))
            elif ref.type in FORM_FIELD_TYPES and isinstance(ref, FormFieldRef):
                result.append(FormFieldObject(self, ref))
            elif ref.type == ObjectType.IMAGE:
                result.append(ImageObject(self, ref.internal_id, ref.type, ref.position))
            elif ref.type == ObjectType.PATH:
                result.append(PathObject(self, ref.internal_id, ref.type, ref.position))
            elif ref.type == ObjectType.FORM_X_OBJECT:
                result.append(FormObject(self, ref.internal_id, ref.type, ref.position))
        return result
