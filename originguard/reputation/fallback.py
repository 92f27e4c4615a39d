"""Bundled ruleset used until the first successful refresh."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from ..constants import DEFAULT_AGGREGATE_NAME
from .errors import FeedSchemaError
from .fetcher import parse_aggregate
from .models import MergedRuleset
from .reconciler import shape_aggregate

logger = logging.getLogger(__name__)

BUNDLED_FALLBACK_PATH = Path(__file__).resolve().parent.parent / "data" / "fallback_config.json"


def load_fallback_ruleset(
    path: Optional[Path] = None,
    name: str = DEFAULT_AGGREGATE_NAME,
) -> MergedRuleset:
    """Load an aggregate-schema document from disk as a one-source ruleset.

    Returns an empty ruleset (nothing matches) if the file is missing or invalid.
    """
    path = Path(path) if path else BUNDLED_FALLBACK_PATH
    if not path.exists():
        logger.warning("Fallback ruleset not found: %s", path)
        return MergedRuleset()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        document = parse_aggregate(name, payload)
    except (OSError, ValueError) as e:
        # FeedSchemaError and JSONDecodeError are both ValueErrors
        reason = e.message if isinstance(e, FeedSchemaError) else str(e)
        logger.error("Failed to load fallback ruleset from %s: %s", path, reason)
        return MergedRuleset()

    ruleset = MergedRuleset(sources=(shape_aggregate(name, document),))
    logger.info(
        "Loaded fallback ruleset v%s (%d blocked, %d allowed, %d fuzzy)",
        document.version,
        len(document.blacklist),
        len(document.whitelist),
        len(document.fuzzylist),
    )
    return ruleset
