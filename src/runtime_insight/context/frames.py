"""Helpers shared by the context builder and the traceback parser."""

from __future__ import annotations

VENDOR_PATH_MARKERS = (
    "site-packages",
    "dist-packages",
    "/lib/python",
    "/lib64/python",
    "\\lib\\python",
    "<frozen",
    "<built-in",
    "/vendor/",
)


def is_vendor_path(path: str | None) -> bool:
    """Check whether a file belongs to the interpreter, installed packages or vendored code."""
    if not path:
        return False
    return any(marker in path for marker in VENDOR_PATH_MARKERS)


def split_qualname(qualname: str) -> tuple[str | None, str]:
    """Split ``Outer.Inner.method`` into ``("Outer.Inner", "method")``.

    Local scopes (``func.<locals>.helper``) are kept in the owner part.
    """
    if "." not in qualname:
        return None, qualname
    owner, _, function = qualname.rpartition(".")
    return owner, function
