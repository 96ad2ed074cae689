"""Custom exceptions for the pipeline analytics service."""


class PipelineAnalyticsError(Exception):
    """Base exception for pipeline analytics."""

    pass


class StoreError(PipelineAnalyticsError):
    """Raised when the deal store cannot answer a query."""

    pass
