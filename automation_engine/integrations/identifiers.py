from __future__ import annotations

import re
from typing import Any

from .errors import InvalidPlatformName

_WHITESPACE = re.compile(r"\s+")
_VALID_NAME = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")
_HOST_UNSAFE = re.compile(r"[^a-z0-9-]")


class PlatformName(str):
    """A normalised platform identifier.

    Names are trimmed, lower-cased and have inner whitespace collapsed to
    ``_``; the result must start with a letter or digit and contain only
    ``[a-z0-9_.-]``. Because it subclasses ``str``, a ``PlatformName`` can be
    used directly as a dictionary key and compares equal to the plain string.
    """

    __slots__ = ()

    def __new__(cls, value: Any) -> "PlatformName":
        if isinstance(value, PlatformName):
            return value
        if value is None:
            raise InvalidPlatformName(value)
        normalized = _WHITESPACE.sub("_", str(value).strip().lower())
        if not _VALID_NAME.match(normalized):
            raise InvalidPlatformName(value)
        return super().__new__(cls, normalized)

    @property
    def host_label(self) -> str:
        """The name reduced to a single DNS label (``google_sheets`` -> ``googlesheets``)."""
        return _HOST_UNSAFE.sub("", self)
