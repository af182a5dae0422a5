"""Error taxonomy for citation lookups and formatting."""


class CitationError(Exception):
    """Base class for errors raised by apai."""


class SourceUnavailable(CitationError):
    """A top-level upstream call failed or returned an unusable response."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"{source} unavailable: {detail}")


class FormatError(CitationError):
    """The formatting engine rejected a bibliographic record."""


class EnrichmentFailure(CitationError):
    """A per-item bibliographic search failed. Never leaves the enrichment step."""
