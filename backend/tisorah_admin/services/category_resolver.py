"""Category hierarchy resolution for the product form.

Derives the selectable options at each of the three category levels
(main -> primary -> secondary) from a flat category list, and keeps the
product's category selection consistent when an ancestor changes.

Everything here is synchronous and works on already-loaded data: no I/O,
no exceptions. Rows with an unknown ``level`` or ``type`` are dropped from
every option list.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Union

import structlog

logger = structlog.get_logger(__name__)

# Values the selects send for "no selection"
NONE_SENTINELS = ("", "none")


class CategoryLevel(str, Enum):
    MAIN = "main"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    # Present in one schema variant; never offered by the resolver
    QUATERNARY = "quaternary"


class CategoryType(str, Enum):
    EDIBLE = "edible"
    NON_EDIBLE = "non_edible"


TYPE_LABELS = {
    CategoryType.EDIBLE: "Edible Gifts",
    CategoryType.NON_EDIBLE: "Non-Edible Gifts",
}


@dataclass(frozen=True)
class CategoryNode:
    """Validated, read-only view of one category row."""

    id: str
    name: str
    level: CategoryLevel
    parent_id: Optional[str] = None
    type: Optional[CategoryType] = None
    slug: Optional[str] = None


def _get(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def _as_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def to_node(row: Any) -> Optional[CategoryNode]:
    """Convert a dict or ORM row to a CategoryNode, or None if it is invalid."""
    try:
        level = CategoryLevel(_get(row, "level"))
    except ValueError:
        return None

    raw_type = _get(row, "type")
    if raw_type is None:
        cat_type = None
    else:
        try:
            cat_type = CategoryType(raw_type)
        except ValueError:
            return None

    return CategoryNode(
        id=_as_id(_get(row, "id")),
        name=_get(row, "name") or "",
        level=level,
        parent_id=_as_id(_get(row, "parent_id")),
        type=cat_type,
        slug=_get(row, "slug"),
    )


def normalize_categories(rows: Iterable[Any]) -> List[CategoryNode]:
    """Validate a raw category list, dropping rows with unknown level/type."""
    nodes = []
    dropped = 0
    for row in rows or []:
        node = to_node(row)
        if node is None or node.id is None:
            dropped += 1
            continue
        nodes.append(node)

    if dropped:
        logger.warning("invalid_categories_dropped", count=dropped)

    return nodes


CategoriesInput = Iterable[Union[CategoryNode, Any]]


def _nodes(categories: CategoriesInput) -> List[CategoryNode]:
    categories = list(categories or [])
    if all(isinstance(c, CategoryNode) for c in categories):
        return categories
    return normalize_categories(categories)


def normalize_selection(value: Any) -> Optional[str]:
    """Map the empty / "none" select values to None, ids to strings."""
    if value is None:
        return None
    value = str(value)
    if value.strip().lower() in NONE_SENTINELS:
        return None
    return value


def main_options(categories: CategoriesInput) -> List[CategoryNode]:
    """All main-level categories, edible and non-edible alike."""
    return [c for c in _nodes(categories) if c.level is CategoryLevel.MAIN]


def primary_options(categories: CategoriesInput, selected_main: Any) -> List[CategoryNode]:
    """Primary categories whose parent is the selected main category."""
    selected_main = normalize_selection(selected_main)
    if selected_main is None:
        return []
    return [
        c for c in _nodes(categories)
        if c.level is CategoryLevel.PRIMARY and c.parent_id == selected_main
    ]


def secondary_options(categories: CategoriesInput, selected_primary: Any) -> List[CategoryNode]:
    """Secondary categories whose parent is the selected primary category."""
    selected_primary = normalize_selection(selected_primary)
    if selected_primary is None:
        return []
    return [
        c for c in _nodes(categories)
        if c.level is CategoryLevel.SECONDARY and c.parent_id == selected_primary
    ]


def category_type(categories: CategoriesInput, selected_main: Any) -> Optional[CategoryType]:
    """Type of the selected main category; display annotation only."""
    selected_main = normalize_selection(selected_main)
    if selected_main is None:
        return None
    for c in main_options(categories):
        if c.id == selected_main:
            return c.type
    return None


def group_main_options(categories: CategoriesInput) -> dict:
    """Main options grouped by type label for display ("Other" for untyped)."""
    groups: dict = {}
    for c in main_options(categories):
        label = TYPE_LABELS.get(c.type, "Other")
        groups.setdefault(label, []).append(c)
    return groups


@dataclass
class CategorySelection:
    """The product form's three category fields and their cascade rules.

    Holds the category list it validates against: a value that is not among
    the current options for its level is stored as None, so an empty or
    failed category load leaves every level unselectable.
    """

    categories: List[CategoryNode] = field(default_factory=list, repr=False, compare=False)
    main_category: Optional[str] = None
    primary_category: Optional[str] = None
    secondary_category: Optional[str] = None

    def __post_init__(self):
        self.categories = _nodes(self.categories)

    def _pick(self, value: Any, options: List[CategoryNode], level: str) -> Optional[str]:
        value = normalize_selection(value)
        if value is None:
            return None
        if any(c.id == value for c in options):
            return value
        logger.info("category_selection_rejected", level=level, category_id=value)
        return None

    def on_main_change(self, new_main: Any) -> None:
        # Any primary/secondary may belong to a different main branch
        self.main_category = self._pick(new_main, main_options(self.categories), "main")
        self.primary_category = None
        self.secondary_category = None

    def on_primary_change(self, new_primary: Any) -> None:
        self.primary_category = self._pick(
            new_primary, primary_options(self.categories, self.main_category), "primary"
        )
        self.secondary_category = None

    def on_secondary_change(self, new_secondary: Any) -> None:
        self.secondary_category = self._pick(
            new_secondary, secondary_options(self.categories, self.primary_category), "secondary"
        )

    def options(self) -> dict:
        """Option lists for all three selects plus the main category's type."""
        return {
            "main": main_options(self.categories),
            "primary": primary_options(self.categories, self.main_category),
            "secondary": secondary_options(self.categories, self.primary_category),
            "category_type": category_type(self.categories, self.main_category),
        }

    def as_fields(self) -> dict:
        return {
            "main_category": self.main_category,
            "primary_category": self.primary_category,
            "secondary_category": self.secondary_category,
        }
