"""Service layer for book operations.

Provides the editing session, export rendering and Markdown import
services built on the immutable domain model.
"""

from .book_service import BookService, EditResult
from .import_service import ImportService
from .render_service import ExportProfile, RenderService

__all__ = [
    "BookService",
    "EditResult",
    "ImportService",
    "ExportProfile",
    "RenderService",
]
