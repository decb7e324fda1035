"""
Comment mention parsing.

WHAT: Finds user mentions in comment text.

Syntax is the editor's markup: ``@[Display Name](user_id)``. The display
name is free text (no closing bracket), the id must be a positive integer;
anything else is plain text and yields nothing.
"""

import re
from typing import Set

MENTION_PATTERN = re.compile(r"@\[([^\]]+)\]\(([^)]+)\)")


def extract_mentions(content: str) -> Set[int]:
    """
    Collect the distinct user ids mentioned in a comment.

    Args:
        content: Raw comment text

    Returns:
        Set of mentioned user ids (empty for no mentions or no content)
    """
    if not content:
        return set()

    user_ids: Set[int] = set()
    for match in MENTION_PATTERN.finditer(content):
        raw_id = match.group(2).strip()
        if raw_id.isdigit() and int(raw_id) > 0:
            user_ids.add(int(raw_id))
    return user_ids


def render_mentions(content: str) -> str:
    """Replace mention markup with ``@Display Name`` for plain-text output."""
    if not content:
        return ""
    return MENTION_PATTERN.sub(lambda match: f"@{match.group(1)}", content)
