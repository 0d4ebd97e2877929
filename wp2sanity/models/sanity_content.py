from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .portable_text import Block, MediaReference


def _slugify(value: str) -> str:
    text = value.strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append("-")
            prev_dash = True
    slug = "".join(out).strip("-")
    return slug[:200]


class WordPressPost(BaseModel):
    """One row of ``wp_posts`` as supplied by the source-record reader."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int = Field(0, alias="ID")
    post_title: str = ""
    post_content: str = ""
    post_excerpt: str = ""
    post_date: str = ""
    post_modified: str = ""
    post_status: str = "publish"
    post_name: str = ""
    post_type: Literal["post", "page"] = "post"
    post_parent: int = 0
    menu_order: int = 0
    guid: str = ""

    @field_validator(
        "post_title", "post_content", "post_excerpt", "post_date", "post_modified",
        "post_name", "guid", mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("id", "post_parent", "menu_order", mode="before")
    @classmethod
    def _blank_to_zero(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return 0
        return v


class Slug(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["slug"] = Field("slug", alias="_type")
    current: str
    source: str = "title"


class CoverImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = Field("image", alias="_type")
    alt: str = ""
    # Set by the uploader once the featured image is pushed.
    asset: Optional[Dict[str, Any]] = None


class SanityPostContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["post"] = Field("post", alias="_type")
    title: str
    slug: Slug
    content: Optional[List[Block]] = None
    excerpt: Optional[str] = None
    cover_image: CoverImage = Field(default_factory=CoverImage, alias="coverImage")
    date: Optional[str] = None
    media: List[MediaReference] = Field(default_factory=list)
    body: Optional[str] = None

    @field_validator("slug", mode="before")
    @classmethod
    def _ensure_slug(cls, v: Any, info):
        if isinstance(v, str):
            v = {"current": v}
        if isinstance(v, dict) and not (v.get("current") or "").strip():
            title = info.data.get("title")
            if isinstance(title, str) and title.strip():
                v = {**v, "current": _slugify(title)}
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SanityPageContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["page"] = Field("page", alias="_type")
    name: str
    slug: Slug
    heading: str = ""
    subheading: Optional[str] = None
    media: List[MediaReference] = Field(default_factory=list)

    @field_validator("slug", mode="before")
    @classmethod
    def _ensure_slug(cls, v: Any, info):
        if isinstance(v, str):
            v = {"current": v, "source": "name"}
        if isinstance(v, dict) and not (v.get("current") or "").strip():
            name = info.data.get("name")
            if isinstance(name, str) and name.strip():
                v = {**v, "current": _slugify(name)}
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


SanityContent = Union[SanityPostContent, SanityPageContent]


class MigrationRecord(BaseModel):
    original: WordPressPost
    transformed: Union[SanityPostContent, SanityPageContent] = Field(discriminator="type")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original": self.original.model_dump(by_alias=True),
            "transformed": self.transformed.to_dict(),
        }
