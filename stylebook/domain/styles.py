"""Domain models for named semantic styles.

Provides the StyleRule record, the built-in default rules and the
StyleRegistry that layers author overrides on top of them.
"""

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from ..errors import StyleKeyInvalid

STYLE_KEY_PATTERN = re.compile(r"[a-z][a-z0-9-]*")


def validate_style_key(key: str) -> str:
    """Check that a style key is usable as a CSS class name.

    Args:
        key: The candidate style key.

    Returns:
        The key, unchanged.

    Raises:
        StyleKeyInvalid: If the key does not match ``[a-z][a-z0-9-]*``.
    """
    if not isinstance(key, str) or not STYLE_KEY_PATTERN.fullmatch(key):
        raise StyleKeyInvalid(f"Invalid style key: {key!r}")
    return key


@dataclass(frozen=True)
class StyleRule:
    """A named style: CSS declarations plus a label and preview markup."""

    key: str
    label: str
    declarations: str  # one "property: value;" per line
    preview_markup: str = ""

    def __post_init__(self) -> None:
        validate_style_key(self.key)

    def to_css(self) -> str:
        """Render the rule as a CSS class block."""
        lines = [line.strip() for line in self.declarations.split("\n")]
        body = "\n  ".join(line for line in lines if line)
        return f".{self.key} {{\n  {body}\n}}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "label": self.label,
            "declarations": self.declarations,
            "previewMarkup": self.preview_markup,
        }

    @classmethod
    def from_dict(cls, key: str, data: dict) -> "StyleRule":
        """Build a rule from its JSON image.

        Also accepts the older ``{name, css, preview}`` record shape.
        """
        return cls(
            key=data.get("key", key),
            label=data.get("label", data.get("name", _label_for(key))),
            declarations=data.get("declarations", data.get("css", "")),
            preview_markup=data.get("previewMarkup", data.get("preview", "")),
        )


DEFAULT_STYLES: tuple[StyleRule, ...] = (
    StyleRule(
        key="chapter-title",
        label="Chapter Title",
        declarations="""font-size: 2.5rem;
font-weight: 700;
color: #2c3e50;
text-align: center;
margin: 2rem 0;
padding: 1rem;
border-bottom: 3px solid #3498db;
background: linear-gradient(135deg, #f8f9fa, #e9ecef);""",
        preview_markup='<h1 class="chapter-title">Chapter 1: The Beginning</h1>',
    ),
    StyleRule(
        key="section-title",
        label="Section Title",
        declarations="""font-size: 1.8rem;
font-weight: 600;
color: #34495e;
margin: 1.5rem 0 1rem 0;
padding-left: 1rem;
border-left: 4px solid #e74c3c;""",
        preview_markup='<h2 class="section-title">Section Title</h2>',
    ),
    StyleRule(
        key="paragraph",
        label="Paragraph",
        declarations="""font-size: 1rem;
line-height: 1.7;
color: #2c3e50;
margin-bottom: 1.2rem;
text-align: justify;
font-family: Georgia, serif;""",
        preview_markup=(
            '<p class="paragraph">This is a sample paragraph with some text to '
            "show how the styling looks in your book. It demonstrates the "
            "typography choices you have made.</p>"
        ),
    ),
    StyleRule(
        key="highlight-box",
        label="Highlight Box",
        declarations="""background: linear-gradient(135deg, #fff3cd, #ffeaa7);
border-left: 5px solid #f39c12;
padding: 1.5rem;
margin: 2rem 0;
border-radius: 8px;
box-shadow: 0 4px 12px rgba(0,0,0,0.1);""",
        preview_markup=(
            '<div class="highlight-box"><p>This is an important highlight '
            "that stands out from the regular text.</p></div>"
        ),
    ),
    StyleRule(
        key="code-block",
        label="Code Block",
        declarations="""background: #2c3e50;
color: #ecf0f1;
padding: 1.5rem;
border-radius: 8px;
font-family: 'Courier New', monospace;
font-size: 0.9rem;
margin: 1.5rem 0;
overflow-x: auto;
border: 1px solid #34495e;""",
        preview_markup=(
            '<pre class="code-block">function example() {\n'
            '  console.log("Hello World");\n'
            "  return true;\n}</pre>"
        ),
    ),
    StyleRule(
        key="quote",
        label="Quote Block",
        declarations="""font-style: italic;
font-size: 1.1rem;
color: #555;
border-left: 4px solid #ddd;
padding-left: 2rem;
margin: 2rem 0;
position: relative;
background: #fafafa;
padding: 1.5rem 1.5rem 1.5rem 3rem;
border-radius: 0 8px 8px 0;""",
        preview_markup=(
            '<blockquote class="quote">"The only way to do great work is to '
            'love what you do."</blockquote>'
        ),
    ),
)

DEFAULT_STYLE_KEYS: tuple[str, ...] = tuple(rule.key for rule in DEFAULT_STYLES)

_DEFAULTS_BY_KEY = {rule.key: rule for rule in DEFAULT_STYLES}


def _label_for(key: str) -> str:
    """Derive a human label from a style key ("pull-quote" -> "Pull Quote")."""
    return key.replace("-", " ").title()


@dataclass(frozen=True)
class StyleRegistry:
    """Effective style set: built-in defaults merged with author overrides.

    Only overrides are stored, behind a read-only mapping. Every mutating
    method returns a new registry, and registries hash by their overrides.
    """

    overrides: Mapping[str, StyleRule] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    def __hash__(self) -> int:
        return hash(frozenset(self.overrides.items()))

    def __contains__(self, key: object) -> bool:
        return key in self.overrides or key in _DEFAULTS_BY_KEY

    def __iter__(self) -> Iterator[StyleRule]:
        return iter(self.rules())

    def __len__(self) -> int:
        return len(self.keys())

    def keys(self) -> tuple[str, ...]:
        """Effective keys: defaults in fixed order, then override-only keys."""
        extra = tuple(key for key in self.overrides if key not in _DEFAULTS_BY_KEY)
        return DEFAULT_STYLE_KEYS + extra

    def rules(self) -> list[StyleRule]:
        """Effective rules in enumeration order."""
        return [self.get(key) for key in self.keys()]

    def get(self, key: str) -> StyleRule:
        """Look up a rule, preferring the author's override.

        Raises:
            StyleKeyInvalid: If the key is malformed.
            KeyError: If neither an override nor a default exists.
        """
        validate_style_key(key)
        if key in self.overrides:
            return self.overrides[key]
        return _DEFAULTS_BY_KEY[key]

    def default(self, key: str) -> Optional[StyleRule]:
        """Return the built-in rule for a key, if there is one."""
        return _DEFAULTS_BY_KEY.get(key)

    def is_overridden(self, key: str) -> bool:
        """Check whether the author has customized a key."""
        return key in self.overrides

    def set_style(
        self,
        key: str,
        declarations: str,
        label: Optional[str] = None,
        preview_markup: Optional[str] = None,
    ) -> "StyleRegistry":
        """Override a style's declarations (and optionally label/preview).

        Label and preview fall back to the current effective rule, or to
        values derived from the key for brand-new styles.
        """
        validate_style_key(key)
        current = self.overrides.get(key) or _DEFAULTS_BY_KEY.get(key)
        if current is None:
            current = StyleRule(
                key=key,
                label=_label_for(key),
                declarations="",
                preview_markup=f'<span class="{key}">Sample text</span>',
            )
        rule = replace(
            current,
            declarations=declarations,
            label=current.label if label is None else label,
            preview_markup=(
                current.preview_markup if preview_markup is None else preview_markup
            ),
        )
        overrides = dict(self.overrides)
        overrides[key] = rule
        return StyleRegistry(overrides)

    def reset_style(self, key: str) -> "StyleRegistry":
        """Drop the override for one key so the default re-surfaces."""
        validate_style_key(key)
        if key not in self.overrides:
            return self
        overrides = {k: rule for k, rule in self.overrides.items() if k != key}
        return StyleRegistry(overrides)

    def to_css(self) -> str:
        """Render the effective registry as a stylesheet."""
        return "\n\n".join(rule.to_css() for rule in self.rules())

    def to_dict(self) -> dict:
        """Convert the overrides to a dictionary for JSON serialization."""
        return {key: rule.to_dict() for key, rule in self.overrides.items()}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "StyleRegistry":
        """Build a registry from the JSON image of its overrides."""
        overrides = {}
        for key, value in (data or {}).items():
            rule = StyleRule.from_dict(key, value)
            overrides[rule.key] = rule
        return cls(overrides)
