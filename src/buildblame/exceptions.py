"""Structured exception hierarchy for buildblame.

All domain exceptions extend ``BuildBlameError`` and can be rendered as
RFC 7807 style problem details by whatever layer surfaces them.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any


class BuildBlameError(Exception):
    """Base exception for all buildblame domain errors."""

    error_type: str = "about:blank"
    title: str = "Internal Error"

    def __init__(
        self,
        detail: str = "",
        *,
        instance: str = "",
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.detail = detail or self.title
        self.instance = instance
        self.extra = extra or {}
        super().__init__(self.detail)

    def to_problem_detail(self) -> dict[str, Any]:
        """RFC 7807 Problem Details shaped dict."""
        body: dict[str, Any] = {
            "type": self.error_type,
            "title": self.title,
            "detail": self.detail,
        }
        if self.instance:
            body["instance"] = self.instance
        if self.extra:
            body.update(self.extra)
        return body


class NotFoundError(BuildBlameError):
    error_type = "urn:buildblame:error:not-found"
    title = "Not Found"


class ConflictError(BuildBlameError):
    error_type = "urn:buildblame:error:conflict"
    title = "Conflict"


class ResolutionError(BuildBlameError):
    error_type = "urn:buildblame:error:resolution"
    title = "Resolution Failed"


class AuthorResolutionError(ResolutionError):
    """The author of a change entry could not be determined."""

    error_type = "urn:buildblame:error:author-resolution"
    title = "Author Resolution Failed"


class IdentityResolutionError(ResolutionError):
    """A user id could not be mapped to an identity."""

    error_type = "urn:buildblame:error:identity-resolution"
    title = "Identity Resolution Failed"


@contextmanager
def error_context(
    error_cls: type[BuildBlameError] = BuildBlameError,
    detail: str = "",
    **kwargs: Any,
) -> Iterator[None]:
    """Context manager that wraps unexpected exceptions into structured errors.

    Usage::

        with error_context(AuthorResolutionError, detail="bad commit metadata"):
            author = lookup(entry)
    """
    try:
        yield
    except BuildBlameError:
        raise
    except Exception as exc:
        msg = detail or str(exc)
        raise error_cls(msg, **kwargs) from exc
