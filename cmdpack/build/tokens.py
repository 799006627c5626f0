"""Token substitution for staged resources.

Resources copied with replace_tokens enabled have every @NAME@ placeholder
replaced by the value of NAME in the convention's replacement tokens.
Placeholders whose name is not in the token set are left as they are.

Private Helpers:
    - _token_pattern: Build the regex matching the known placeholders

Design Principles:
    - Exact text in, text out; nothing else in the file changes
    - Files are decoded as UTF-8 with surrogate escapes, so bytes that are
      not valid UTF-8 are written back unchanged
    - File mode bits are preserved on the rewritten copy

Example:
    >>> replace_tokens("listen @PORT@", {"PORT": "8080"})
    'listen 8080'
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import re
import shutil

BEGIN_TOKEN = "@"
END_TOKEN = "@"


def _token_pattern(
    tokens: Mapping[str, str], begin_token: str, end_token: str
) -> re.Pattern[str]:
    # Longest names first so @AB@ is not shadowed by @A@ alternatives
    names = sorted(tokens, key=len, reverse=True)
    alternatives = "|".join(re.escape(name) for name in names)
    return re.compile(f"{re.escape(begin_token)}({alternatives}){re.escape(end_token)}")


def replace_tokens(
    text: str,
    tokens: Mapping[str, str],
    begin_token: str = BEGIN_TOKEN,
    end_token: str = END_TOKEN,
) -> str:
    """Replace @NAME@ placeholders in text.

    Args:
        text: Input text.
        tokens: Token name to replacement value.
        begin_token: Placeholder opening delimiter.
        end_token: Placeholder closing delimiter.

    Returns:
        The substituted text. An empty token set returns text unchanged.
    """
    if not tokens:
        return text
    pattern = _token_pattern(tokens, begin_token, end_token)
    return pattern.sub(lambda match: tokens[match.group(1)], text)


def copy_with_tokens(source: Path, dest: Path, tokens: Mapping[str, str]) -> None:
    """Copy a file, substituting tokens in its content.

    Args:
        source: File to read.
        dest: File to write (overwritten if present).
        tokens: Token name to replacement value.

    Raises:
        OSError: If reading or writing fails.
    """
    text = source.read_bytes().decode("utf-8", errors="surrogateescape")
    result = replace_tokens(text, tokens)
    dest.write_bytes(result.encode("utf-8", errors="surrogateescape"))
    shutil.copymode(source, dest)
