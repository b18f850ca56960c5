"""Internal error types raised inside the citation engine.

None of these cross :meth:`CitationNormalizer.convert`; they are caught there
and turned into an unchanged result.
"""


class CitationError(Exception):
    """Base class for recoverable citation engine failures."""


class MalformedPatternError(CitationError):
    """A rewrite could not be applied safely (overlapping spans, bad URL cleanup)."""


class HexIdExhaustedError(CitationError):
    """No usable hex identifier could be generated within the retry budget."""
