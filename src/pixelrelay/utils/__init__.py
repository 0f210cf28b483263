from .redact import redact, redact_text
from .text_split import pack_lines, split_escaped

__all__ = [
    "pack_lines",
    "redact",
    "redact_text",
    "split_escaped",
]
