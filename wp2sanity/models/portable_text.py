from __future__ import annotations

import uuid
from typing import Annotated, Any, Dict, Iterable, List, Literal, NoReturn, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


MediaType = Literal["image", "audio", "video"]
TextStyle = Literal["normal", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]
ListItemType = Literal["bullet", "number"]
VideoType = Literal["youtube", "vimeo", "url"]


def new_key() -> str:
    return uuid.uuid4().hex[:12]


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class MediaReference(_Value):
    url: str
    local_path: str = Field("", alias="localPath")
    type: MediaType
    found: bool = False


class Span(_Value):
    type: Literal["span"] = Field("span", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    text: str = ""
    marks: Optional[List[str]] = None


class LinkMarkDef(_Value):
    type: Literal["link"] = Field("link", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    href: str
    open_in_new_tab: bool = Field(False, alias="openInNewTab")


class TextBlock(_Value):
    type: Literal["block"] = Field("block", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    style: TextStyle = "normal"
    list_item: Optional[ListItemType] = Field(None, alias="listItem")
    level: Optional[int] = None
    children: List[Span] = Field(default_factory=list)
    mark_defs: List[LinkMarkDef] = Field(default_factory=list, alias="markDefs")

    @field_validator("children", mode="after")
    @classmethod
    def _never_childless(cls, v: List[Span]) -> List[Span]:
        if not v:
            return [Span(text="")]
        return v

    @property
    def text(self) -> str:
        return "".join(child.text for child in self.children)


class ImageBlock(_Value):
    type: Literal["image"] = Field("image", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    alt: str = ""
    url: str
    local_path: Optional[str] = Field(None, alias="localPath")


class AudioBlock(_Value):
    type: Literal["audio"] = Field("audio", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    url: str
    local_path: Optional[str] = Field(None, alias="localPath")
    title: Optional[str] = None
    show_controls: bool = Field(False, alias="showControls")
    autoplay: bool = False
    # Filled with an asset reference by the uploader.
    audio_file: Dict[str, Any] = Field(default_factory=lambda: {"_type": "file"}, alias="audioFile")


class VideoBlock(_Value):
    type: Literal["video"] = Field("video", alias="_type")
    key: str = Field(default_factory=new_key, alias="_key")
    video_type: VideoType = Field("url", alias="videoType")
    url: str
    local_path: Optional[str] = Field(None, alias="localPath")
    title: Optional[str] = None


Block = Annotated[
    Union[TextBlock, ImageBlock, AudioBlock, VideoBlock],
    Field(discriminator="type"),
]
BlockContent = List[Block]

_BLOCKS = TypeAdapter(List[Block])


def unsupported_block(block: Any) -> NoReturn:
    """Raise for a value that is not one of the known block variants."""
    raise TypeError(f"Unsupported block type: {type(block).__name__}")


def coerce_blocks(blocks: Optional[Iterable[Any]]) -> List[Block]:
    """Return ``blocks`` as model instances.

    Raw dictionaries (for example read back from the migration artifact) are
    validated through the ``_type`` discriminator; model instances pass
    through untouched.
    """
    if not blocks:
        return []
    items = list(blocks)
    if all(isinstance(b, (TextBlock, ImageBlock, AudioBlock, VideoBlock)) for b in items):
        return items
    return _BLOCKS.validate_python(
        [b.to_dict() if isinstance(b, _Value) else b for b in items]
    )


def dump_blocks(blocks: Iterable[Block]) -> List[Dict[str, Any]]:
    return [b.to_dict() for b in blocks]
