"""
Guild settings record.

The usage layer never reads this record itself: a bot layer derives the prefix
of an invocation from it (see argot.usage.Call.of). Persistence and caching of
the record belong to the host application.

Defaults
- permissions: empty mapping
- deleted: False
- prefix: the CLIENT_PREFIX environment variable, or "!" when unset
- lang: "en"
- tz: "utc"
"""
import os

from .utils import *

DEFAULT_PREFIX = "!"


class Guild:
    """
    Per-guild configuration, exposed through read-only properties.
    """

    id = mirror("id")
    permissions = mirror("permissions")
    deleted = mirror("deleted")
    prefix = mirror("prefix")
    lang = mirror("lang")
    tz = mirror("tz")

    def __init__(self, id, /, permissions=Unset, deleted=False, prefix=Unset, lang="en", tz="utc"):
        if not isinstance(id, str) or not id.strip():
            raise TypeError("guild 'id' must be a non-empty string")
        if not isinstance(prefix := coalesce(prefix, os.environ.get("CLIENT_PREFIX", DEFAULT_PREFIX)), str):
            raise TypeError("guild 'prefix' must be a string")
        self._id = id.strip()
        self._permissions = dict(coalesce(permissions, {}))
        self._deleted = bool(deleted)
        self._prefix = prefix
        self._lang = lang
        self._tz = tz

    def __repr__(self):
        return f"guild(id={self._id!r}, prefix={self._prefix!r}, lang={self._lang!r}, tz={self._tz!r})"


__all__ = (
    "Guild",
    "DEFAULT_PREFIX",
)
