from __future__ import annotations

from typing import Any

import orjson

__all__ = ("dumps", "dumpsb", "loads")


def dumpsb(o: Any, *, indent: bool = False) -> bytes:
    """Encode any object to a JSON byte-string.

    Dataclasses and datetimes are encoded natively by orjson.
    """
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(o, option=option)


def dumps(o: Any, *, indent: bool = False) -> str:
    """Encode any object to a JSON string."""
    return dumpsb(o, indent=indent).decode()


loads = orjson.loads
