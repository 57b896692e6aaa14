"""
Configuration settings for stylebook
"""

import logging
import os
from pathlib import Path


class StyleBookConfig:
    """Configuration class for book editing and export settings."""

    # Default book file, relative to the working directory
    DEFAULT_BOOK_FILE = Path("book.json")

    # New book defaults
    DEFAULT_BOOK_TITLE = "Untitled Book"
    FIRST_CHAPTER_CONTENT = "<p>Start writing your book here...</p>"
    NEW_CHAPTER_CONTENT = "<p>New chapter content...</p>"
    CHAPTER_TITLE_TEMPLATE = "Chapter {number}"

    # Export settings
    DEFAULT_EXPORT_DIR = Path(".")
    DEFAULT_LANGUAGE = "en"

    # Logging
    DEFAULT_LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(message)s"

    # Color scheme
    COLORS = {
        'header': 'bold blue',
        'chapter_title': 'bold green',
        'style_key': 'cyan',
        'overridden': 'yellow',
        'error': 'red',
        'success': 'green',
    }

    @classmethod
    def get_book_file(cls) -> Path:
        """Get the book file path, checking environment variables."""
        env_file = os.environ.get('STYLEBOOK_FILE')
        if env_file:
            return Path(env_file)
        return cls.DEFAULT_BOOK_FILE

    @classmethod
    def get_export_dir(cls) -> Path:
        """Get the directory exports are written to."""
        env_dir = os.environ.get('STYLEBOOK_EXPORT_DIR')
        if env_dir:
            return Path(env_dir)
        return cls.DEFAULT_EXPORT_DIR

    @classmethod
    def get_log_level(cls) -> int:
        """Resolve the log level name from the environment to a logging constant."""
        name = os.environ.get('STYLEBOOK_LOG_LEVEL', cls.DEFAULT_LOG_LEVEL).upper()
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
        return logging.INFO
