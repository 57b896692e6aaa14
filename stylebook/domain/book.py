"""Book and chapter aggregate.

Books are immutable values. Every operation returns a new Book so a reader
holding the old value never sees a half-applied edit.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from ..config import StyleBookConfig
from ..errors import BookError, ChapterNotFound, InvalidBook, StyleKeyInvalid
from .fragment import RichFragment, parse
from .styles import StyleRegistry
from .toggle import toggle


@dataclass(frozen=True)
class Chapter:
    """One chapter: a stable id, a title and its rich-text body."""

    id: int
    title: str
    content: RichFragment = field(default_factory=RichFragment)

    @property
    def word_count(self) -> int:
        return self.content.word_count

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "title": self.title, "content": self.content.serialize()}


def _first_chapter() -> tuple[Chapter, ...]:
    return (
        Chapter(
            id=1,
            title=StyleBookConfig.CHAPTER_TITLE_TEMPLATE.format(number=1),
            content=parse(StyleBookConfig.FIRST_CHAPTER_CONTENT),
        ),
    )


@dataclass(frozen=True)
class Book:
    """A titled, ordered, never-empty list of chapters plus its styles.

    ``next_chapter_id`` is the id high-water mark: ids handed out by
    ``add_chapter`` always increase, even after the newest chapter is deleted.
    """

    title: str = StyleBookConfig.DEFAULT_BOOK_TITLE
    chapters: tuple[Chapter, ...] = field(default_factory=_first_chapter)
    styles: StyleRegistry = field(default_factory=StyleRegistry)
    next_chapter_id: int = 0

    def __post_init__(self) -> None:
        chapters = tuple(self.chapters)
        if not chapters:
            raise InvalidBook("A book must contain at least one chapter")
        ids = [chapter.id for chapter in chapters]
        if len(set(ids)) != len(ids):
            raise InvalidBook(f"Duplicate chapter ids: {ids}")
        object.__setattr__(self, "chapters", chapters)
        object.__setattr__(
            self, "next_chapter_id", max(self.next_chapter_id, max(ids) + 1)
        )

    @property
    def chapter_ids(self) -> list[int]:
        return [chapter.id for chapter in self.chapters]

    @property
    def first_chapter_id(self) -> int:
        """The chapter to select when the active one goes away."""
        return self.chapters[0].id

    @property
    def style_keys(self) -> tuple[str, ...]:
        return self.styles.keys()

    def has_chapter(self, chapter_id: int) -> bool:
        return any(chapter.id == chapter_id for chapter in self.chapters)

    def chapter(self, chapter_id: int) -> Chapter:
        """Look up a chapter by id.

        Raises:
            ChapterNotFound: If no chapter has that id.
        """
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        raise ChapterNotFound(chapter_id)

    def retitle(self, title: str) -> "Book":
        return replace(self, title=title)

    def add_chapter(
        self, title: Optional[str] = None, content: Optional[RichFragment] = None
    ) -> tuple["Book", int]:
        """Append a chapter with the next id.

        Returns:
            The new book and the id of the appended chapter.
        """
        chapter_id = self.next_chapter_id
        if title is None:
            title = StyleBookConfig.CHAPTER_TITLE_TEMPLATE.format(
                number=len(self.chapters) + 1
            )
        if content is None:
            content = parse(StyleBookConfig.NEW_CHAPTER_CONTENT)
        chapter = Chapter(id=chapter_id, title=title, content=content)
        book = replace(
            self,
            chapters=self.chapters + (chapter,),
            next_chapter_id=chapter_id + 1,
        )
        return book, chapter_id

    def delete_chapter(self, chapter_id: int) -> "Book":
        """Remove a chapter; the only remaining chapter is never removed.

        Raises:
            ChapterNotFound: If no chapter has that id.
        """
        if len(self.chapters) == 1:
            return self
        self.chapter(chapter_id)
        chapters = tuple(c for c in self.chapters if c.id != chapter_id)
        return replace(self, chapters=chapters)

    def _replace_chapter(self, chapter_id: int, **changes) -> "Book":
        current = self.chapter(chapter_id)
        updated = replace(current, **changes)
        chapters = tuple(updated if c.id == chapter_id else c for c in self.chapters)
        return replace(self, chapters=chapters)

    def rename_chapter(self, chapter_id: int, title: str) -> "Book":
        return self._replace_chapter(chapter_id, title=title)

    def set_chapter_content(self, chapter_id: int, content: RichFragment) -> "Book":
        return self._replace_chapter(chapter_id, content=content)

    def toggle_style(
        self, chapter_id: int, start: int, length: int, style_key: str
    ) -> "Book":
        """Toggle a style over a selection of one chapter's text.

        Raises:
            StyleKeyInvalid: If the key is not in the book's style registry.
        """
        if style_key not in self.styles:
            raise StyleKeyInvalid(f"Unknown style key: {style_key!r}")
        content = toggle(self.chapter(chapter_id).content, start, length, style_key)
        return self.set_chapter_content(chapter_id, content)

    def set_style(
        self,
        key: str,
        declarations: str,
        label: Optional[str] = None,
        preview_markup: Optional[str] = None,
    ) -> "Book":
        styles = self.styles.set_style(key, declarations, label, preview_markup)
        return replace(self, styles=styles)

    def reset_style(self, key: str) -> "Book":
        return replace(self, styles=self.styles.reset_style(key))

    def to_dict(self) -> dict:
        """Convert to the JSON image used for persistence."""
        return {
            "title": self.title,
            "chapters": [chapter.to_dict() for chapter in self.chapters],
            "styles": self.styles.to_dict(),
            "nextChapterId": self.next_chapter_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Book":
        """Build a book from its JSON image.

        Chapter markup is parsed against the book's own style keys so
        author-defined styles come back as style spans.

        Raises:
            InvalidBook: If the data does not describe a valid book.
            StyleKeyInvalid: If a stored style has a malformed key.
        """
        try:
            styles = StyleRegistry.from_dict(data.get("styles"))
            keys = styles.keys()
            chapters = tuple(
                Chapter(
                    id=int(item["id"]),
                    title=item.get("title", ""),
                    content=parse(item.get("content", ""), keys),
                )
                for item in data.get("chapters", [])
            )
            kwargs = {}
            if chapters:
                kwargs["chapters"] = chapters
            return cls(
                title=data.get("title", StyleBookConfig.DEFAULT_BOOK_TITLE),
                styles=styles,
                next_chapter_id=int(data.get("nextChapterId", 0)),
                **kwargs,
            )
        except BookError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise InvalidBook(f"Malformed book data: {e!r}") from e
