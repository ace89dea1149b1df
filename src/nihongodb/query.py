"""Defines query expressions and builds them from search parameters.

Search filters arrive as plain mappings. Each entry becomes one clause,
chosen in this order of precedence:

1. keys starting with ``$`` are operator sub-queries (``$and``, ``$or``,
   ``$nor``), or pre-built :class:`Expression` objects;
2. list values match any of the listed values;
3. strings starting with ``regex:`` are case-insensitive pattern matches;
4. mappings of field operators (``$in``, ``$gt``, ``$regex``, ...) are
   translated operator by operator;
5. anything else is an exact match.

Stores translate the resulting expressions into their own query language
(see :mod:`nihongodb.cypher`).
"""

import re

from dataclasses import dataclass, field as dataclass_field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import registry
from .exceptions import (
    EmptyQueryError,
    InvalidFilterError,
    InvalidIdError,
    MissingParameterError,
)

REGEX_MARKER = 'regex:'

COMPARISON_OPERATORS = ('$gt', '$gte', '$lt', '$lte', '$ne')

WILDCARD = '*'

_ID_RE = re.compile(r'[0-9a-fA-F]{24}')


class Expression:
    """Base class for query expressions."""

    __slots__ = ()


@dataclass(frozen=True)
class Equals(Expression):
    """Matches documents whose `field` equals `value`.

    For array fields, any element may match.
    """
    field: str
    value: Any


@dataclass(frozen=True)
class AnyOf(Expression):
    """Matches documents whose `field` equals any of `values`."""
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Regex(Expression):
    """Matches documents whose `field` contains a match for `pattern`."""
    field: str
    pattern: str
    ignore_case: bool = True


@dataclass(frozen=True)
class Compare(Expression):
    """Matches documents whose `field` compares to `value` with `operator`.
    """
    field: str
    operator: str
    value: Any


@dataclass(frozen=True)
class And(Expression):
    """Matches documents matching every clause."""
    clauses: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Or(Expression):
    """Matches documents matching at least one clause."""
    clauses: Tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Not(Expression):
    """Matches documents not matching `clause`."""
    clause: Expression


@dataclass(frozen=True)
class Raw(Expression):
    """A store-native predicate passed through untouched.

    For the Neo4j store this is a Cypher boolean expression over the node
    ``n``, with its parameters.
    """
    predicate: str
    params: Dict[str, Any] = dataclass_field(default_factory=dict)


def validate_id(value: Any) -> str:
    """Checks that `value` is a well-formed document ID.

    Args:
        value: The candidate ID.

    Returns:
        The normalized (lower-case) ID.

    Raises:
        InvalidIdError: If `value` is not 24 hexadecimal characters.
    """

    if not isinstance(value, str) or not _ID_RE.fullmatch(value):
        raise InvalidIdError(value)
    return value.lower()


def _compile_regex(pattern: Any, ignore_case: bool) -> str:
    if not isinstance(pattern, str):
        raise InvalidFilterError(
            f'Regex pattern must be a string: {pattern!r}'
        )
    try:
        re.compile(pattern, re.IGNORECASE if ignore_case else 0)
    except re.error as exc:
        raise InvalidFilterError(
            f'Invalid regex pattern {pattern!r}: {exc}'
        ) from None
    return pattern


def _build_logical(key: str, value: Any) -> Expression:
    if not isinstance(value, (list, tuple)) or not value:
        raise InvalidFilterError(f'{key} requires a non-empty list of filters')
    clauses = tuple(build_filter(item) for item in value)
    if key == '$and':
        return And(clauses)
    if key == '$or':
        return Or(clauses)
    return Not(Or(clauses))


def _build_operators(key: str, operators: Mapping[str, Any]) -> Expression:
    """Translates a field operator mapping such as ``{'$gte': 2}``."""

    clauses: List[Expression] = []
    options = operators.get('$options', '')
    for operator, value in operators.items():
        if operator == '$options':
            continue
        if operator == '$eq':
            clauses.append(Equals(key, value))
        elif operator in ('$in', '$nin'):
            if not isinstance(value, (list, tuple)):
                raise InvalidFilterError(f'{operator} on {key} needs a list')
            clause = AnyOf(key, tuple(value))
            clauses.append(clause if operator == '$in' else Not(clause))
        elif operator == '$regex':
            ignore_case = 'i' in options
            clauses.append(Regex(
                key, _compile_regex(value, ignore_case), ignore_case,
            ))
        elif operator in COMPARISON_OPERATORS:
            clauses.append(Compare(key, operator, value))
        else:
            raise InvalidFilterError(
                f'Unsupported operator {operator} on field {key}'
            )
    if not clauses:
        raise InvalidFilterError(f'No operator given for field {key}')
    return clauses[0] if len(clauses) == 1 else And(tuple(clauses))


def build_clause(key: str, value: Any) -> Expression:
    """Builds the query clause for a single filter entry.

    Args:
        key: A field path (e.g. ``meanings.english``) or an operator.
        value: The filter value.

    Returns:
        The clause expression.

    Raises:
        InvalidFilterError: If the entry cannot be expressed.
    """

    if isinstance(value, Expression):
        return value
    if key.startswith('$'):
        if key in ('$and', '$or', '$nor'):
            return _build_logical(key, value)
        raise InvalidFilterError(f'Unsupported operator {key}')
    if isinstance(value, (list, tuple)):
        return AnyOf(key, tuple(value))
    if isinstance(value, str) and value.startswith(REGEX_MARKER):
        pattern = _compile_regex(value[len(REGEX_MARKER):], True)
        return Regex(key, pattern, True)
    if isinstance(value, Mapping):
        if value and all(str(k).startswith('$') for k in value):
            return _build_operators(key, value)
        raise InvalidFilterError(
            f'Filter on {key} must be a value, a list or an operator '
            'mapping; address nested fields with dotted paths'
        )
    return Equals(key, value)


def build_filter(filters: Any) -> Expression:
    """Builds a query expression from search `filters`.

    Args:
        filters: Mapping of field path or operator to filter value, or a
            pre-built expression.

    Returns:
        The combined expression. An empty mapping matches everything.

    Raises:
        MissingParameterError: If `filters` is not a mapping.
        InvalidFilterError: If an entry cannot be expressed.
    """

    if isinstance(filters, Expression):
        return filters
    if not isinstance(filters, Mapping):
        raise MissingParameterError('Invalid or missing filters')
    clauses = tuple(
        build_clause(str(key), value) for key, value in filters.items()
    )
    return clauses[0] if len(clauses) == 1 else And(clauses)


def build_index_query(collection: str, values: Sequence[Any]) -> Expression:
    """Builds the query for an index lookup of `values`.

    Raises:
        UnsupportedCollectionError: If `collection` has no index field.
    """

    return AnyOf(registry.get_index_field(collection), tuple(values))


def resolve_search_path(collection: str, path: Optional[str]) -> Optional[str]:
    """Resolves the text path for a fuzzy search.

    Args:
        collection: The collection to search.
        path: ``'*'`` (or ``None``) for all text fields, or a text path.

    Returns:
        ``None`` for all fields, otherwise the path.

    Raises:
        UnsupportedCollectionError: If `collection` has no text index.
        InvalidFilterError: If `path` is not one of its text paths.
    """

    fields = registry.get_search_fields(collection)
    if path is None or path == WILDCARD:
        return None
    if path not in fields:
        raise InvalidFilterError(
            f'Path {path!r} is not searchable in {collection}; '
            f"use '*' or one of: {', '.join(fields)}"
        )
    return path


def check_search_text(text: Any) -> str:
    """Returns `text` if it has content.

    Raises:
        MissingParameterError: If `text` is not a string.
        EmptyQueryError: If `text` is blank.
    """

    if not isinstance(text, str):
        raise MissingParameterError('Missing required parameter: searchText')
    if not text.strip():
        raise EmptyQueryError('Search text cannot be empty')
    return text
