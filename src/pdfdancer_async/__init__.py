"""
PDFDancer async Python client.

An asyncio client for the PDFDancer PDF manipulation API. Remote documents are
exposed as queryable object graphs backed by a per-client snapshot cache.
"""

from .client import PDFDancer, PageClient
from .exceptions import (
    PdfDancerException, ValidationException, HttpClientException, RateLimitException,
    SessionException, FontNotFoundException, TransportException
)
from .models import (
    ObjectRef, Position, ObjectType, Font, Color, Image, BoundingRect, Paragraph, FormFieldRef,
    TextObjectRef, PageRef, PageSize, Orientation, PositionMode, ShapeType, Point, FontType,
    FontRecommendation, TextStatus, PageSnapshot, DocumentSnapshot, CommandResult, ReflowPreset,
    TemplateReplacement, TemplateReplaceRequest, RedactTarget, RedactResponse, STANDARD_PAGE_SIZES
)
from .replacement_builder import ReplacementBuilder
from .retry import RetryConfig
from .types import (
    PDFObjectBase, PathObject, ParagraphObject, TextLineObject, ImageObject, FormObject, FormFieldObject
)

__version__ = "0.1.0"
__all__ = [
    "PDFDancer",
    "PageClient",
    "ReplacementBuilder",
    "RetryConfig",
    "ObjectRef",
    "Position",
    "ObjectType",
    "Font",
    "Color",
    "Image",
    "BoundingRect",
    "Paragraph",
    "FormFieldRef",
    "TextObjectRef",
    "PageRef",
    "PageSize",
    "Orientation",
    "PositionMode",
    "ShapeType",
    "Point",
    "FontType",
    "FontRecommendation",
    "TextStatus",
    "PageSnapshot",
    "DocumentSnapshot",
    "CommandResult",
    "ReflowPreset",
    "TemplateReplacement",
    "TemplateReplaceRequest",
    "RedactTarget",
    "RedactResponse",
    "STANDARD_PAGE_SIZES",
    "PDFObjectBase",
    "PathObject",
    "ParagraphObject",
    "TextLineObject",
    "ImageObject",
    "FormObject",
    "FormFieldObject",
    "PdfDancerException",
    "ValidationException",
    "HttpClientException",
    "RateLimitException",
    "SessionException",
    "FontNotFoundException",
    "TransportException",
]
