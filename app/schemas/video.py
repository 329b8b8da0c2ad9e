from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, Field, ValidationError, field_validator

from app.api.http_utils import coerce_bool
from app.core.exceptions import ValidationException

M = TypeVar("M", bound=BaseModel)

TITLE_MAX = 255
GENRE_MAX = 100
YEAR_MIN = 1900
YEAR_MAX = 2030


def _trimmed(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _flag(value: Any) -> Any:
    if value is None:
        return value
    flag = coerce_bool(value)
    if flag is None:
        raise ValueError("The is_featured field must be true or false.")
    return flag


Trimmed = BeforeValidator(_trimmed)
Description = Annotated[Optional[str], BeforeValidator(_empty_to_none)]
Flag = BeforeValidator(_flag)


# ─────────────────────────────────────────────
# 📝 Create (multipart upload / confirm)
# ─────────────────────────────────────────────
class VideoCreate(BaseModel):
    title: Annotated[str, Trimmed, Field(min_length=1, max_length=TITLE_MAX)]
    genre: Annotated[str, Trimmed, Field(min_length=1, max_length=GENRE_MAX)]
    description: Description = None
    duration: int = Field(..., ge=0)
    year: int = Field(..., ge=YEAR_MIN, le=YEAR_MAX)
    is_featured: Annotated[Optional[bool], Flag] = False

    def to_row(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "genre": self.genre,
            "description": self.description,
            "duration": self.duration,
            "year": self.year,
            "is_featured": bool(self.is_featured),
        }


class ConfirmUploadRequest(VideoCreate):
    video_key: str = Field(..., min_length=1)
    thumb_key: str = Field(..., min_length=1)


class UploadUrlsRequest(BaseModel):
    video_filename: str = Field(..., min_length=1)
    thumb_filename: str = Field(..., min_length=1)
    content_type_video: str = Field(..., min_length=1)
    content_type_thumb: str = Field(..., min_length=1)


# ─────────────────────────────────────────────
# ✏️ Partial update
# ─────────────────────────────────────────────
class VideoPatch(BaseModel):
    """
    Typed partial update.

    A field is *present* when it appears in `model_fields_set`; absent fields
    are never touched. Present fields are validated independently and every
    failure is reported together. Only `description` may be cleared.
    """

    title: Annotated[Optional[str], Trimmed, Field(min_length=1, max_length=TITLE_MAX)] = None
    genre: Annotated[Optional[str], Trimmed, Field(min_length=1, max_length=GENRE_MAX)] = None
    description: Description = None
    duration: Optional[int] = Field(None, ge=0)
    year: Optional[int] = Field(None, ge=YEAR_MIN, le=YEAR_MAX)
    is_featured: Annotated[Optional[bool], Flag] = None

    @field_validator("title", "genre", "duration", "year", "is_featured")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("This field may not be empty.")
        return value

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# ─────────────────────────────────────────────
# 🧰 Helpers
# ─────────────────────────────────────────────
def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "request"
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.setdefault(field, []).append(msg)
    return out


def parse_model(model: Type[M], data: Mapping[str, Any]) -> M:
    """Validate ``data`` into ``model`` or raise a field-level 422."""
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise ValidationException(field_errors(exc)) from exc


__all__ = [
    "VideoCreate",
    "ConfirmUploadRequest",
    "UploadUrlsRequest",
    "VideoPatch",
    "field_errors",
    "parse_model",
]
