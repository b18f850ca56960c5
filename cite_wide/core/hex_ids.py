"""Random hex identifiers for footnote markers."""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Optional

from cite_wide.constants import DEFAULT_HEX_LENGTH, MAX_HEX_ATTEMPTS
from cite_wide.exceptions import HexIdExhaustedError

logger = logging.getLogger(__name__)

HexIdGenerator = Callable[[int], str]


def generate_hex_id(length: int = DEFAULT_HEX_LENGTH) -> str:
    """Return a cryptographically random lowercase hex string of ``length`` characters.

    Raises:
        ValueError: If ``length`` is not a positive integer.
    """
    if not isinstance(length, int) or isinstance(length, bool) or length < 1:
        raise ValueError(f"Hex id length must be a positive integer, got {length!r}.")
    return secrets.token_hex((length + 1) // 2)[:length]


def new_hex_marker(length: int = DEFAULT_HEX_LENGTH) -> str:
    """Return a fresh footnote marker such as ``[^3fa9c1]``."""
    hex_id = generate_hex_id(length)
    while hex_id.isdigit():
        hex_id = generate_hex_id(length)
    return f"[^{hex_id}]"


class HexIdAllocator:
    """Hands out hex ids for a single conversion run.

    The same citation number (or, with URL grouping, the same URL) always gets
    the same id. Candidates made only of digits are rejected because ``[^123456]``
    would be rediscovered as a numeric footnote, as are ids already allocated in
    this run or already used as a marker in the document.
    """

    def __init__(
        self,
        text: str,
        generator: HexIdGenerator = generate_hex_id,
        length: int = DEFAULT_HEX_LENGTH,
        group_by_url: bool = False,
        existing: Optional[dict[str, str]] = None,
    ) -> None:
        self._text = text
        self._generator = generator
        self._length = length
        self._group_by_url = group_by_url
        self._by_number: dict[str, str] = {}
        self._by_url: dict[str, str] = dict(existing or {}) if group_by_url else {}
        self._taken: set[str] = set(self._by_url.values())

    def for_group(self, number: str, url: Optional[str] = None) -> str:
        if number in self._by_number:
            return self._by_number[number]
        if self._group_by_url and url and url in self._by_url:
            hex_id = self._by_url[url]
        else:
            hex_id = self._fresh()
        self._by_number[number] = hex_id
        if self._group_by_url and url:
            self._by_url.setdefault(url, hex_id)
        return hex_id

    def reserve(self, number: str, hex_id: str) -> str:
        """Pin ``number`` to a caller-supplied id."""
        self._by_number[number] = hex_id
        self._taken.add(hex_id)
        return hex_id

    def _fresh(self) -> str:
        for _ in range(MAX_HEX_ATTEMPTS):
            candidate = self._generator(self._length).lower()
            if candidate.isdigit() or candidate in self._taken:
                continue
            if f"[^{candidate}]" in self._text:
                continue
            self._taken.add(candidate)
            return candidate
        raise HexIdExhaustedError(
            f"Could not allocate a unique hex id after {MAX_HEX_ATTEMPTS} attempts."
        )
