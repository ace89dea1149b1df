"""Exception hierarchy for nihongodb."""


class NihongoDBError(Exception):
    """Base exception for all nihongodb errors."""


class ParameterError(NihongoDBError):
    """Malformed request parameters, detected before any store round-trip."""


class MissingParameterError(ParameterError):
    """A required parameter is absent or empty."""


class InvalidIdError(ParameterError):
    """An identifier is not a 24 character hexadecimal string."""

    def __init__(self, value):
        super().__init__(f'Invalid document ID: {value!r}')
        self.value = value


class UnknownCollectionError(ParameterError):
    """No schema is registered for the collection."""


class UnsupportedCollectionError(ParameterError):
    """The operation is not available for the collection."""


class InvalidCollectionError(ParameterError):
    """The collection is not in the write allow-list."""


class EmptyQueryError(ParameterError):
    """Search text is empty once whitespace is trimmed."""


class InvalidFilterError(ParameterError):
    """A search filter cannot be turned into a query."""


class UnknownOperationError(ParameterError):
    """A request names an operation that does not exist."""


class ValidationFailedError(ParameterError):
    """An entry broke one or more validation rules.

    Args:
        collection: The collection the entry was validated for.
        violations: Every violated rule, in the order detected.
    """

    def __init__(self, collection, violations):
        self.collection = collection
        self.violations = list(violations)
        lines = '\n- '.join(str(v) for v in self.violations)
        super().__init__(
            f'Validation failed for {collection}:\n- {lines}'
        )


class StoreError(NihongoDBError):
    """The document store failed to execute a query or command."""
