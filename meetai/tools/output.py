from __future__ import annotations

import datetime as _dt
import string
from pathlib import Path
from typing import Optional

_BASE36_DIGITS = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_output_name(prefix: str, suffix: str, *, now: Optional[_dt.datetime] = None) -> str:
    """Return ``{date}_{prefix}_{base36 millis}{suffix}`` using the UTC date."""
    moment = now or _dt.datetime.now(tz=_dt.timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=_dt.timezone.utc)
    millis = int(moment.timestamp() * 1000)
    date = moment.astimezone(_dt.timezone.utc).date().isoformat()
    return f"{date}_{prefix}_{to_base36(millis)}{suffix}"


def save_markdown(output_dir: Path, name: str, content: str) -> Path:
    directory = Path(output_dir).expanduser().resolve()
    directory.mkdir(parents=True, exist_ok=True)
    file_name = name if name.endswith(".md") else f"{name}.md"
    path = directory / file_name
    path.write_text(content, encoding="utf-8")
    return path


def save_image(markdown_path: Path, data: bytes) -> Path:
    """Write a rendered image next to its Markdown source."""
    image_path = markdown_path.with_suffix(".png")
    image_path.write_bytes(data)
    return image_path


def looks_like_path(source: str) -> bool:
    return source.endswith(".md") or "/" in source or "\\" in source


def load_source_text(source: str) -> str:
    """
    Resolve a tool ``source`` argument.

    Values ending in ``.md`` or containing a path separator are read from disk;
    anything else is treated as inline text.
    """
    if looks_like_path(source):
        return Path(source).expanduser().read_text(encoding="utf-8")
    return source
