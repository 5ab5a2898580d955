"""Hidden review-state marker stored in summary comments.

The marker records the last reviewed head commit so the next run can narrow
its scope to files changed since then.  It is an HTML comment, invisible in
rendered Markdown::

    <!-- frcreview:state {"sha":"<40 hex>","timestamp":"<ISO-8601>"} -->
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable

from pydantic import ValidationError

from frcreview.core.constants import (
    MAX_STATE_COMMENT_LENGTH,
    MAX_STATE_TIMESTAMP_LENGTH,
    STATE_MARKER,
)
from frcreview.core.logging import get_logger
from frcreview.core.models import ReviewState

logger = get_logger(__name__)

# Matches only the exact shape encode_state writes.  Character classes with
# fixed bounds keep matching linear on hostile comment bodies.
_STATE_COMMENT_RE = re.compile(
    "<!-- "
    + re.escape(STATE_MARKER)
    + r' (\{"sha":"[0-9a-f]{40}","timestamp":"[^"]{1,'
    + str(MAX_STATE_TIMESTAMP_LENGTH)
    + r'}"\}) -->'
)


def encode_state(state: ReviewState) -> str:
    """Render a ReviewState as an invisible marker for a comment body."""
    payload = json.dumps(
        {"sha": state.sha, "timestamp": state.timestamp},
        separators=(",", ":"),
    )
    return f"<!-- {STATE_MARKER} {payload} -->"


def decode_state(body: str | None) -> ReviewState | None:
    """Extract a ReviewState from a comment body, or None if absent/malformed."""
    if not body or len(body) > MAX_STATE_COMMENT_LENGTH:
        return None

    match = _STATE_COMMENT_RE.search(body)
    if not match:
        return None

    try:
        return ReviewState.model_validate(json.loads(match.group(1)))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.debug("state_marker_invalid", error=str(e))
        return None


def find_last_state(bodies: Iterable[str | None]) -> ReviewState | None:
    """Return the state from the last comment (by position) carrying a valid marker.

    Later comments override earlier ones regardless of their timestamps.
    """
    last: ReviewState | None = None
    for body in bodies:
        state = decode_state(body)
        if state is not None:
            last = state
    return last


def append_state(body: str, state: ReviewState) -> str:
    """Append the marker for ``state`` to a comment body."""
    return f"{body}\n\n{encode_state(state)}"
