"""
Error taxonomy for the reporting catalog.

Every error carries a short ``kind`` string so callers (and the CLI) can
report failures without matching on class names.
"""


class ReportingError(Exception):
    """Base class for all reporting catalog errors."""
    kind = 'reporting_error'


class UnknownQuery(ReportingError):
    kind = 'unknown_query'

    def __init__(self, query_id):
        self.query_id = query_id
        super().__init__(f"Unknown query: {query_id!r}")


class DuplicateQueryId(ReportingError):
    kind = 'duplicate_query_id'

    def __init__(self, query_id):
        self.query_id = query_id
        super().__init__(f"Query {query_id!r} is already registered")


class CatalogFrozen(ReportingError):
    """Raised when registering into a registry after initialization."""
    kind = 'catalog_frozen'


class InvalidParameter(ReportingError):
    """Bound parameters do not match a report's parameter schema."""
    kind = 'invalid_parameter'

    def __init__(self, names, details=None):
        self.names = sorted(names)
        self.details = dict(details or {})
        problems = ', '.join(
            f"{name} ({self.details[name]})" if name in self.details else name
            for name in self.names
        )
        super().__init__(f"Invalid parameter(s): {problems}")


class SchemaMismatch(ReportingError):
    """A query definition references a field or relationship the schema lacks."""
    kind = 'schema_mismatch'


class DataStoreError(ReportingError):
    """Wraps any failure raised by the data store while running a request."""
    kind = 'data_store_error'

    def __init__(self, message, cause=None):
        self.cause = cause
        super().__init__(message)
