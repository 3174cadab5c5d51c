"""Exception hierarchy shared across shopassist."""

from __future__ import annotations

from typing import Optional


class ShopAssistError(Exception):
    """Base class for all shopassist errors."""


class ConfigError(ShopAssistError):
    """Raised when configuration cannot be loaded or is invalid."""


class ModerationError(ShopAssistError):
    """Raised when the moderation pipeline fails before a verdict exists."""


class VerdictAlreadySetError(ModerationError):
    """Raised when a stage tries to overwrite a terminal verdict."""


class SearchError(ShopAssistError):
    """Raised by the web-search adapter when a search cannot be served."""


class FeedbackUpdateError(ShopAssistError):
    """Raised when the remote feedback record could not be updated."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
