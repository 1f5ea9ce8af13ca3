"""Text clean-up applied before tokenization."""
import re
from typing import Optional

NON_LETTER = re.compile(r"[^\w\s]|[\d_]")  # punctuation, digits, underscore
CTRL_CLEAN = re.compile(r"[\x00-\x1F]+")   # control chars 0–31


def preprocess(text: Optional[str]) -> str:
    """Lowercase and keep only letters and whitespace."""
    if not text:
        return ""
    return NON_LETTER.sub("", text.lower())


def clean_text(txt: str) -> str:
    """Remove control characters so JSON responses stay readable."""
    return CTRL_CLEAN.sub("", txt)
