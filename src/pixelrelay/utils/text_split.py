"""Message packing for length-limited chat messages.

Telegram rejects messages longer than 4096 characters.  Link lists for large
folders easily exceed that, so :func:`pack_lines` groups whole items into
as few messages as possible without ever splitting an item, and
:func:`split_escaped` cuts a single oversized item as a last resort without
separating a MarkdownV2 escape backslash from the character it escapes.

Python ``str`` indexing is code-point based, so no slice ever bisects a
multi-byte character.
"""

from __future__ import annotations

from collections.abc import Iterable


def split_escaped(text: str, limit: int) -> list[str]:
    """Split *text* into chunks of at most *limit* characters.

    A chunk never ends in the middle of an escape sequence: when a cut
    would leave an odd run of trailing backslashes, the cut moves one
    character earlier.

    Raises
    ------
    ValueError
        If *limit* is less than 2.
    """
    if limit < 2:
        raise ValueError(f"limit must be >= 2, got {limit}")

    chunks: list[str] = []
    start = 0
    while start < len(text):
        end = min(start + limit, len(text))
        if end < len(text):
            run = 0
            while end - run - 1 >= start and text[end - run - 1] == "\\":
                run += 1
            if run % 2 == 1:
                end -= 1
        chunks.append(text[start:end])
        start = end
    return chunks


def pack_lines(
    lines: Iterable[str],
    limit: int,
    separator: str = "\n\n",
) -> list[str]:
    """Pack *lines* into messages of at most *limit* characters.

    Items keep their order.  Each message is ``separator.join`` of whole
    items; an item is never split across two messages unless it is longer
    than *limit* on its own, in which case it is sent alone and cut with
    :func:`split_escaped`.

    Examples
    --------
    >>> pack_lines(["aaa", "bbb", "ccc"], limit=8, separator="\\n")
    ['aaa\\nbbb', 'ccc']
    >>> pack_lines([], limit=10)
    []
    """
    if limit < 2:
        raise ValueError(f"limit must be >= 2, got {limit}")

    messages: list[str] = []
    current: list[str] = []
    current_len = 0

    for line in lines:
        if len(line) > limit:
            if current:
                messages.append(separator.join(current))
                current, current_len = [], 0
            messages.extend(split_escaped(line, limit))
            continue

        added = len(line) if not current else len(separator) + len(line)
        if current and current_len + added > limit:
            messages.append(separator.join(current))
            current, current_len = [line], len(line)
        else:
            current.append(line)
            current_len += added

    if current:
        messages.append(separator.join(current))
    return messages
