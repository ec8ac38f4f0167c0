"""Catalog records as served by the backend API.

The backend speaks camelCase JSON; records are converted at the boundary so
the rest of the site works with snake_case attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Literal

Status = Literal["draft", "published"]


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_CAMEL_OVERRIDES = {"date_iso": "dateISO"}


def _api_name(name: str) -> str:
    return _CAMEL_OVERRIDES.get(name, _to_camel(name))


class _ApiRecord:
    """Mixin converting dataclass records from and to backend JSON."""

    __slots__ = ()

    # field name -> record type for lists of nested records
    _nested: dict[str, type[_ApiRecord]] = {}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Any:
        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = _api_name(f.name)
            if key in data:
                value = data[key]
            elif f.name in data:
                value = data[f.name]
            else:
                continue
            if value is None:
                # Null means unset; keep the field default
                continue
            nested = cls._nested.get(f.name)
            if nested is not None:
                value = [
                    item if isinstance(item, nested) else nested.from_api(item)
                    for item in value
                ]
            kwargs[f.name] = value
        return cls(**kwargs)

    def to_api(self, *, exclude_none: bool = True) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if exclude_none and value is None:
                continue
            if isinstance(value, list) and value and isinstance(value[0], _ApiRecord):
                value = [item.to_api(exclude_none=exclude_none) for item in value]
            result[_api_name(f.name)] = value
        return result


@dataclass(slots=True)
class Article(_ApiRecord):
    """A blog article. `content` is stored HTML."""

    id: str = ""
    slug: str = ""
    title: str = ""
    description: str = ""
    content: str = ""
    date_iso: str = ""
    category: str = ""
    reading_minutes: int = 0
    status: Status = "draft"
    subtitle: str | None = None
    date_modified: str | None = None
    badges: list[str] = field(default_factory=list)
    featured_image: str | None = None
    header_image: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    og_image: str | None = None
    canonical_url: str | None = None


@dataclass(slots=True)
class ProductItem(_ApiRecord):
    """A product listed on Etsy and shown in a category."""

    id: str = ""
    title: str = ""
    slug: str = ""
    problem: str = ""
    bullets: list[str] = field(default_factory=list)
    image: str = ""
    etsy_url: str = ""
    price: str = ""
    category_id: str = ""
    status: Status = "draft"
    description: str | None = None


@dataclass(slots=True)
class ProductCategory(_ApiRecord):
    id: str = ""
    slug: str = ""
    name: str = ""
    summary: str = ""
    how_this_helps: str = ""
    hero_image: str = ""
    items: list[ProductItem] = field(default_factory=list)

    _nested = {"items": ProductItem}


__all__ = ["Article", "ProductCategory", "ProductItem", "Status"]
