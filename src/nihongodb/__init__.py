"""Japanese reference data store: validation, queries and persistence."""

from .exceptions import (
    EmptyQueryError,
    InvalidCollectionError,
    InvalidFilterError,
    InvalidIdError,
    MissingParameterError,
    NihongoDBError,
    ParameterError,
    StoreError,
    UnknownCollectionError,
    UnknownOperationError,
    UnsupportedCollectionError,
    ValidationFailedError,
)
from .services import EntryService, ReadService, WriteService
from .validation import validate_and_prepare

__version__ = '0.1.0'
