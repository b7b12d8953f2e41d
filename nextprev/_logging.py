import hashlib
import json
import logging
from typing import Any

# Create the library logger
logger = logging.getLogger("nextprev")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_cursor(cursor: Any) -> str | None:
    """
    Redacts a pagination cursor for logging.
    Cursors usually embed key values, so they are hashed to allow
    correlation across log lines without revealing them.
    """
    if cursor is None:
        return None
    try:
        if isinstance(cursor, dict):
            # Sort keys so equal cursors always hash the same
            raw = json.dumps(cursor, sort_keys=True, default=str)
        else:
            raw = str(cursor)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"
