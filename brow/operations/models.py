"""Operation options and result types."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


DEFAULT_SCREENSHOT_QUALITY: int = 100


@dataclass
class NavigationResult:
    url: str
    title: str


@dataclass
class ScreenshotOptions:
    """Screenshot capture settings.

    ``quality`` only applies to full-page captures; below 100 the image
    is encoded as JPEG, otherwise PNG. 0 means the default.
    """
    full_page: bool = False
    quality: int = DEFAULT_SCREENSHOT_QUALITY


@dataclass
class PDFOptions:
    landscape: bool = False
    print_background: bool = True


class StorageType(Enum):
    """Web storage area."""
    LOCAL = "localStorage"
    SESSION = "sessionStorage"

    @classmethod
    def from_name(cls, name: str) -> "StorageType":
        """Accept ``local``/``session`` as well as the JS names."""
        lowered = name.lower()
        if lowered in ("session", "sessionstorage"):
            return cls.SESSION
        if lowered in ("local", "localstorage"):
            return cls.LOCAL
        raise ValueError(f"unknown storage type: {name!r} (use local or session)")


class Cookie(BaseModel):
    """A cookie as reported by Network.getCookies."""

    model_config = ConfigDict(extra="ignore")

    name: str
    value: str
    domain: str = ""
    path: str = "/"
    expires: float = -1
    size: int = 0
    httpOnly: bool = False
    secure: bool = False
    session: bool = False
    sameSite: Optional[str] = None
