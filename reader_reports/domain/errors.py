"""
Error classes for the weekly report pipeline.

Hierarchy:
    ReportError
    ├── MissingWeekMetadataError   (fatal, reaches the caller)
    ├── AIUnavailableError         (recovered with the fallback analysis)
    ├── MalformedAIResponseError   (recovered with the fallback analysis)
    ├── CatalogUnavailableError    (recovered with static tables)
    └── InvalidPriceError          (recovered as an unknown price)
"""


class ReportError(Exception):
    """Base exception for all report pipeline errors."""

    def __init__(self, message: str, code: str = "REPORT_ERROR", details: dict = None):
        self.code = code
        self.details = details or {}
        super().__init__(f"[{code}] {message}")


class MissingWeekMetadataError(ReportError):
    """The report week can neither be read from input nor computed."""

    def __init__(self, message: str = "Week metadata is missing", **details):
        super().__init__(message, code="MISSING_WEEK_METADATA", details=details)


class AIUnavailableError(ReportError):
    """The AI provider failed: network, timeout or auth."""

    def __init__(self, provider: str, cause: Exception = None):
        msg = f"AI provider '{provider}' unavailable"
        if cause:
            msg += f": {cause}"
        super().__init__(msg, code="AI_UNAVAILABLE", details={"provider": provider})


class MalformedAIResponseError(ReportError):
    """The AI response was parsed but lacks required fields."""

    def __init__(self, missing: list[str], tier: str = None):
        super().__init__(
            f"AI analysis is missing required fields: {', '.join(missing)}",
            code="AI_MALFORMED",
            details={"missing": missing, "tier": tier},
        )


class CatalogUnavailableError(ReportError):
    """A catalog, promo or template collaborator failed or returned nothing."""

    def __init__(self, source: str, cause: Exception = None):
        msg = f"Reference data source '{source}' unavailable"
        if cause:
            msg += f": {cause}"
        super().__init__(msg, code="CATALOG_UNAVAILABLE", details={"source": source})


class InvalidPriceError(ReportError):
    """A recommendation price could not be read as a non-negative number."""

    def __init__(self, value):
        super().__init__(
            f"Invalid price: {value!r}", code="INVALID_PRICE", details={"value": value}
        )
