"""Article and cell style data models.

Articles are the records managed by the inventory API. Each article carries
its field values, the server timestamp used for optimistic concurrency, and
per-column formatting (CellStyle) that is stored alongside the record.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

DEFAULT_COLOR = "#000000"

# Columns a user can edit, in display order
EDITABLE_FIELDS = (
    "name",
    "type",
    "stock",
    "unit",
    "price",
    "location",
    "status",
    "link",
)

# Columns that can carry formatting
STYLEABLE_COLUMNS = ("id",) + EDITABLE_FIELDS


@dataclass
class CellStyle:
    """Formatting for a single (article, column) cell.

    Attributes:
        bold: Render text bold
        italic: Render text italic
        underline: Render text underlined
        color: Text color as hex string (e.g., "#FF0000")
    """
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color: Optional[str] = DEFAULT_COLOR

    def __post_init__(self):
        if not self.color:
            self.color = DEFAULT_COLOR

    @property
    def valid_color(self) -> str:
        """Color value, falling back to black when unset."""
        if not self.color:
            return DEFAULT_COLOR
        return self.color

    def copy(self) -> "CellStyle":
        return CellStyle(
            bold=self.bold,
            italic=self.italic,
            underline=self.underline,
            color=self.color,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bold": self.bold,
            "italic": self.italic,
            "underline": self.underline,
            "color": self.valid_color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CellStyle":
        color = data.get("color")
        return cls(
            bold=bool(data.get("bold", False)),
            italic=bool(data.get("italic", False)),
            underline=bool(data.get("underline", False)),
            color=color if color else DEFAULT_COLOR,
        )


@dataclass
class Article:
    """An inventory article.

    Positive ids are assigned by the server. Negative ids are placeholders
    for articles created while offline and not yet pushed (see
    is_pending_creation).

    Attributes:
        id: Article id (positive = server-assigned, negative = pending)
        name: Article name
        type: Article category
        stock: Units in stock (non-negative)
        unit: Unit of measure (e.g., "pcs", "l")
        price: Price per unit (non-negative)
        location: Storage location
        status: Free-form status text
        link: External link
        timestamp: Server version marker (ISO 8601 string)
        styles: Mapping of column name to CellStyle

    Example:
        >>> article = Article(id=3, name="Cable", type="Electronics", unit="pcs")
        >>> article.is_valid()
        True
    """
    id: int = 0
    name: str = ""
    type: str = ""
    stock: int = 0
    unit: str = ""
    price: float = 0.0
    location: str = ""
    status: str = ""
    link: str = ""
    timestamp: str = ""
    styles: Dict[str, CellStyle] = field(default_factory=dict)

    def is_valid(self) -> bool:
        """Check that all required fields are filled in.

        Returns:
            True if name, type and unit are non-empty and stock >= 0
        """
        return (
            bool(self.name)
            and bool(self.type)
            and bool(self.unit)
            and self.stock >= 0
        )

    def copy(self) -> "Article":
        """Return a deep copy; styles are copied, never shared."""
        return Article(
            id=self.id,
            name=self.name,
            type=self.type,
            stock=self.stock,
            unit=self.unit,
            price=self.price,
            location=self.location,
            status=self.status,
            link=self.link,
            timestamp=self.timestamp,
            styles={column: style.copy() for column, style in self.styles.items()},
        )

    def styles_json(self) -> str:
        """Canonical JSON serialization of the style map.

        The server stores formatting as this string, so it is also what
        two versions of an article are compared on.
        """
        return json.dumps(
            {column: style.to_dict() for column, style in self.styles.items()},
            sort_keys=True,
            separators=(",", ":"),
        )

    def to_dict(self, include_id: bool = True) -> Dict[str, Any]:
        """Serialize to the wire format used by the API and the snapshot.

        Args:
            include_id: Set False for create requests (server assigns ids)
        """
        data: Dict[str, Any] = {}
        if include_id:
            data["id"] = self.id
        data.update({
            "name": self.name,
            "type": self.type,
            "stock": self.stock,
            "unit": self.unit,
            "price": self.price,
            "location": self.location,
            "status": self.status,
            "link": self.link,
            "timestamp": self.timestamp,
            "styles": {column: style.to_dict() for column, style in self.styles.items()},
            "stylesJson": self.styles_json(),
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        """Build an Article from its wire format.

        Unknown keys are ignored. ``styles`` wins over ``stylesJson`` when
        both are present.

        Raises:
            ValueError: If numeric fields cannot be converted
        """
        raw_styles = data.get("styles")
        if not raw_styles and data.get("stylesJson"):
            try:
                raw_styles = json.loads(data["stylesJson"])
            except (TypeError, ValueError):
                raw_styles = {}

        styles = {}
        if isinstance(raw_styles, dict):
            for column, style in raw_styles.items():
                if isinstance(style, dict):
                    styles[column] = CellStyle.from_dict(style)

        return cls(
            id=int(data.get("id") or 0),
            name=_text(data.get("name")),
            type=_text(data.get("type")),
            stock=int(data.get("stock") or 0),
            unit=_text(data.get("unit")),
            price=float(data.get("price") or 0.0),
            location=_text(data.get("location")),
            status=_text(data.get("status")),
            link=_text(data.get("link")),
            timestamp=_text(data.get("timestamp")),
            styles=styles,
        )

    def __str__(self) -> str:
        return (
            f"#{self.id}: {self.name} ({self.type}) - "
            f"stock: {self.stock} {self.unit}, price: {self.price:.2f}"
        )


def is_pending_creation(article: Article) -> bool:
    """Whether the article was created locally and never pushed.

    Offline-created articles carry a negative placeholder id until the
    server assigns a real one.
    """
    return article.id < 0


def next_placeholder_id(articles: Iterable[Article]) -> int:
    """Allocate a placeholder id for an article created offline.

    The result is negative and strictly less than every id currently in
    the collection, so several offline articles never collide.

    Example:
        >>> next_placeholder_id([Article(id=-1), Article(id=-3), Article(id=2)])
        -4
    """
    lowest = 0
    for article in articles:
        if article.id < lowest:
            lowest = article.id
    return lowest - 1


def _text(value: Any) -> str:
    return "" if value is None else str(value)
