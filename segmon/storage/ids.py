from __future__ import annotations

import logging
import random
import string
from typing import Callable, Iterable, Mapping

from .errors import IdAllocationError

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
SEPARATOR = "_"
MAX_ATTEMPTS = 3


def generate_token(length: int = 10) -> str:
    """Random alphanumeric token. Collision-resistant, not unpredictable."""
    return "".join(random.choices(ALPHABET, k=length))


def segment_index_from_id(doc_id) -> int | None:
    prefix, sep, _ = str(doc_id).partition(SEPARATOR)
    if not sep or not (prefix.isascii() and prefix.isdigit()):
        return None
    return int(prefix)


def group_ids_by_segment(ids: Iterable[str]) -> dict[int, list[str]]:
    grouped: dict[int, list[str]] = {}
    for doc_id in ids:
        seg = segment_index_from_id(doc_id)
        if seg is None:
            continue
        grouped.setdefault(seg, []).append(doc_id)
    return grouped


class IdAllocator:
    """
    Hands out `<segment>_<token>` ids. The prefix is what lets a point
    lookup go straight to the owning segment file.
    """

    def __init__(
        self,
        token_generator: Callable[[int], str] = generate_token,
        token_length: int = 6,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.token_generator = token_generator
        self.token_length = token_length
        self.max_attempts = max_attempts

    def allocate(self, segment_index: int, existing_records: Mapping | None = None) -> str:
        for attempt in range(1, self.max_attempts + 1):
            doc_id = f"{segment_index}{SEPARATOR}{self.token_generator(self.token_length)}"
            if not existing_records or doc_id not in existing_records:
                return doc_id
            logger.debug("id collision on %s (attempt %d/%d)", doc_id, attempt, self.max_attempts)
        raise IdAllocationError(self.max_attempts)
