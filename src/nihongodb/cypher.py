"""Translates documents and query expressions into Neo4j terms.

Each document is stored as a single node labelled after its collection
(see :func:`nihongodb.registry.node_label`) with these properties:

``id``
    The 24 character document ID.
``document``
    The full document as JSON.
``f.<path>``
    A list of every scalar found at the dotted `path`, descending into
    nested lists, for example ``f.readings.on.reading``. Filters run
    against these lists so that a clause on an array field matches when
    any element matches.
``t.<path>``
    Newline-joined text of each full-text search path of the collection.
"""

import json
import re

from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import registry
from .exceptions import InvalidFilterError
from .query import (
    And,
    AnyOf,
    Compare,
    Equals,
    Expression,
    Not,
    Or,
    Raw,
    Regex,
)

FIELD_PREFIX = 'f.'
TEXT_PREFIX = 't.'

_CYPHER_OPERATORS = {
    '$gt': '>',
    '$gte': '>=',
    '$lt': '<',
    '$lte': '<=',
}

_LUCENE_SPECIAL_RE = re.compile(r'([+\-&|!(){}\[\]^"~*?:\\/])')
_LUCENE_KEYWORDS = ('AND', 'OR', 'NOT', 'TO')


def quote_identifier(name: str) -> str:
    """Quotes `name` for use as a Cypher label or property key."""

    return '`' + name.replace('`', '``') + '`'


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def _collect_leaves(value: Any, path: str, leaves: Dict[str, List[Any]]):
    if isinstance(value, Mapping):
        for key, item in value.items():
            _collect_leaves(item, f'{path}.{key}' if path else key, leaves)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _collect_leaves(item, path, leaves)
    elif value is not None and path:
        leaves.setdefault(path, []).append(value)


def _homogenize(values: List[Any]) -> List[Any]:
    """Makes `values` storable as a Neo4j list property (one element type).
    """

    kinds = set()
    for value in values:
        if isinstance(value, bool):
            kinds.add('bool')
        elif isinstance(value, (int, float)):
            kinds.add(type(value).__name__)
        elif isinstance(value, str):
            kinds.add('str')
        else:
            kinds.add('other')
    if kinds == {'int', 'float'}:
        return [float(v) for v in values]
    if len(kinds) > 1 or 'other' in kinds:
        return [str(v) for v in values]
    return values


def flatten_document(document: Mapping[str, Any]) -> Dict[str, List[Any]]:
    """Returns the scalar leaves of `document` grouped by dotted path.

    Args:
        document: The document to flatten.

    Returns:
        Mapping of dotted path to the list of scalars found there.
    """

    leaves: Dict[str, List[Any]] = {}
    _collect_leaves(document, '', leaves)
    return {path: _homogenize(values) for path, values in leaves.items()}


def node_properties(
    collection: str,
    doc_id: str,
    document: Mapping[str, Any],
) -> Dict[str, Any]:
    """Returns the complete property map of the node storing `document`.

    Args:
        collection: The collection name.
        doc_id: The document ID.
        document: The document, without its ID.

    Returns:
        Property map suitable for ``SET n = $props``.
    """

    leaves = flatten_document(document)
    properties: Dict[str, Any] = {
        'id': doc_id,
        'document': json.dumps(document, ensure_ascii=False),
    }
    for path, values in leaves.items():
        properties[FIELD_PREFIX + path] = values
    for path in registry.FUZZY_SEARCH_FIELDS.get(collection, ()):
        texts = [v for v in leaves.get(path, []) if isinstance(v, str)]
        if texts:
            properties[TEXT_PREFIX + path] = '\n'.join(texts)
    return properties


def load_document(doc_id: str, payload: str) -> Dict[str, Any]:
    """Rebuilds a document from its node's ``id`` and ``document`` values."""

    document = json.loads(payload)
    return {'_id': doc_id, **document}


class CypherCompiler:
    """Compiles query expressions into a Cypher ``WHERE`` predicate.

    Field paths and values are always passed as parameters.

    Args:
        variable: The node variable the predicate refers to.
    """

    def __init__(self, variable: str = 'n'):
        """Constructor."""

        self.variable = variable
        self.params: Dict[str, Any] = {}

    def _param(self, value: Any) -> str:
        name = f'p{len(self.params)}'
        while name in self.params:
            name += '_'
        self.params[name] = value
        return f'${name}'

    def _property(self, field: str) -> str:
        return f'{self.variable}[{self._param(FIELD_PREFIX + field)}]'

    def _values(self, field: str) -> str:
        return f'coalesce({self._property(field)}, [])'

    def compile(self, expression: Expression) -> str:
        """Returns the Cypher predicate for `expression`.

        Raises:
            InvalidFilterError: If the expression cannot be expressed.
        """

        if isinstance(expression, Equals):
            if expression.value is None:
                return f'{self._property(expression.field)} IS NULL'
            self._check_scalar(expression.field, expression.value)
            value = self._param(expression.value)
            return f'{value} IN {self._values(expression.field)}'

        if isinstance(expression, AnyOf):
            for value in expression.values:
                self._check_scalar(expression.field, value)
            values = self._param(list(expression.values))
            return (
                f'any(x IN {self._values(expression.field)} '
                f'WHERE x IN {values})'
            )

        if isinstance(expression, Regex):
            flags = '(?su)' if not expression.ignore_case else '(?siu)'
            pattern = self._param(f'{flags}.*(?:{expression.pattern}).*')
            return (
                f'any(x IN {self._values(expression.field)} '
                f'WHERE toString(x) =~ {pattern})'
            )

        if isinstance(expression, Compare):
            self._check_scalar(expression.field, expression.value)
            if expression.operator == '$ne':
                value = self._param(expression.value)
                return (
                    f'NOT coalesce({value} IN '
                    f'{self._property(expression.field)}, false)'
                )
            try:
                operator = _CYPHER_OPERATORS[expression.operator]
            except KeyError:
                raise InvalidFilterError(
                    f'Unsupported operator {expression.operator}'
                ) from None
            value = self._param(expression.value)
            return (
                f'any(x IN {self._values(expression.field)} '
                f'WHERE x {operator} {value})'
            )

        if isinstance(expression, And):
            if not expression.clauses:
                return 'true'
            return '(' + ' AND '.join(
                self.compile(c) for c in expression.clauses
            ) + ')'

        if isinstance(expression, Or):
            if not expression.clauses:
                return 'false'
            return '(' + ' OR '.join(
                self.compile(c) for c in expression.clauses
            ) + ')'

        if isinstance(expression, Not):
            return f'NOT ({self.compile(expression.clause)})'

        if isinstance(expression, Raw):
            for name, value in expression.params.items():
                if name in self.params:
                    raise InvalidFilterError(
                        f'Raw clause parameter ${name} is already in use'
                    )
                self.params[name] = value
            return f'({expression.predicate})'

        raise InvalidFilterError(f'Unknown expression {expression!r}')

    @staticmethod
    def _check_scalar(field: str, value: Any):
        if not _is_scalar(value):
            raise InvalidFilterError(
                f'Filter values for {field} must be strings, numbers or '
                f'booleans, got {value!r}'
            )


def compile_expression(
    expression: Expression,
    variable: str = 'n',
) -> Tuple[str, Dict[str, Any]]:
    """Compiles `expression` into a Cypher predicate and its parameters."""

    compiler = CypherCompiler(variable)
    predicate = compiler.compile(expression)
    return predicate, compiler.params


def escape_lucene(text: str) -> str:
    """Escapes Lucene query syntax in `text`."""

    escaped = _LUCENE_SPECIAL_RE.sub(r'\\\1', text)
    return ' '.join(
        term.lower() if term in _LUCENE_KEYWORDS else term
        for term in escaped.split()
    )


def build_fulltext_query(text: str, path: Optional[str] = None) -> str:
    """Builds the Lucene query for a full-text search.

    Args:
        text: The search text.
        path: A text path to restrict the search to, or ``None`` for all.

    Returns:
        The Lucene query string.
    """

    terms = escape_lucene(text)
    if path is None:
        return terms
    return f'{escape_lucene(TEXT_PREFIX + path)}:({terms})'
