"""Defines an in-process document store.

:class:`MemoryDocumentStore` keeps documents in dicts and evaluates query
expressions in Python with the same array-aware semantics as the Neo4j
store. It is meant for tests and for embedding the services without a
database server.
"""

import copy
import logging
import operator
import re

from typing import Any, Dict, List, Mapping, Optional, Sequence

from . import registry
from .documents import apply_update, generate_id
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
from .store import DeleteResult, Document, DocumentStore, UpdateResult

logger = logging.getLogger('nihongodb')

_COMPARATORS = {
    '$gt': operator.gt,
    '$gte': operator.ge,
    '$lt': operator.lt,
    '$lte': operator.le,
}


def field_values(document: Mapping[str, Any], path: str) -> List[Any]:
    """Returns every value found at dotted `path` in `document`.

    Lists met along the way are descended into, and a list found at the
    end of the path contributes its elements.

    Args:
        document: The document to inspect.
        path: Dotted field path, e.g. ``readings.on.reading``.

    Returns:
        The list of values (empty if the path is absent).
    """

    values: List[Any] = [document]
    for key in path.split('.'):
        found = []
        for value in values:
            candidates = value if isinstance(value, list) else [value]
            for candidate in candidates:
                if isinstance(candidate, Mapping) and key in candidate:
                    found.append(candidate[key])
        values = found

    flattened = []
    for value in values:
        if isinstance(value, list):
            flattened.extend(value)
        else:
            flattened.append(value)
    return flattened


def _comparable(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return False
    numbers = (int, float)
    if isinstance(left, numbers) and isinstance(right, numbers):
        return True
    return isinstance(left, str) and isinstance(right, str)


def matches(expression: Expression, document: Mapping[str, Any]) -> bool:
    """Returns whether `document` matches `expression`.

    Raises:
        InvalidFilterError: For store-native :class:`Raw` clauses.
    """

    if isinstance(expression, Equals):
        values = field_values(document, expression.field)
        if expression.value is None:
            return not values or None in values
        return expression.value in values

    if isinstance(expression, AnyOf):
        values = field_values(document, expression.field)
        return any(value in expression.values for value in values)

    if isinstance(expression, Regex):
        flags = re.IGNORECASE if expression.ignore_case else 0
        pattern = re.compile(expression.pattern, flags)
        return any(
            pattern.search(value if isinstance(value, str) else str(value))
            for value in field_values(document, expression.field)
        )

    if isinstance(expression, Compare):
        values = field_values(document, expression.field)
        if expression.operator == '$ne':
            return expression.value not in values
        try:
            compare = _COMPARATORS[expression.operator]
        except KeyError:
            raise InvalidFilterError(
                f'Unsupported operator {expression.operator}'
            ) from None
        return any(
            compare(value, expression.value)
            for value in values
            if _comparable(value, expression.value)
        )

    if isinstance(expression, And):
        return all(matches(c, document) for c in expression.clauses)

    if isinstance(expression, Or):
        return any(matches(c, document) for c in expression.clauses)

    if isinstance(expression, Not):
        return not matches(expression.clause, document)

    if isinstance(expression, Raw):
        raise InvalidFilterError(
            'Raw clauses are only understood by the Neo4j store'
        )

    raise InvalidFilterError(f'Unknown expression {expression!r}')


class MemoryDocumentStore(DocumentStore):
    """Document store holding every collection in memory."""

    def __init__(self):
        """Constructor."""

        self._collections: Dict[str, Dict[str, Document]] = {}

    def _collection(self, collection: str) -> Dict[str, Document]:
        return self._collections.setdefault(collection, {})

    @staticmethod
    def _export(doc_id: str, document: Document) -> Document:
        return {'_id': doc_id, **copy.deepcopy(document)}

    def find_by_ids(
        self,
        collection: str,
        ids: Sequence[str],
    ) -> List[Document]:
        """Returns the documents whose IDs are in `ids`."""

        documents = self._collection(collection)
        wanted = set(ids)
        return [
            self._export(doc_id, document)
            for doc_id, document in documents.items()
            if doc_id in wanted
        ]

    def find(self, collection: str, query: Expression) -> List[Document]:
        """Returns the documents matching `query`, in insertion order."""

        return [
            self._export(doc_id, document)
            for doc_id, document in self._collection(collection).items()
            if matches(query, document)
        ]

    def text_search(
        self,
        collection: str,
        text: str,
        path: Optional[str] = None,
    ) -> List[Document]:
        """Returns documents containing the terms of `text`.

        Documents are scored by the number of case-insensitive term
        occurrences in the searched paths, highest first.
        """

        terms = [term.lower() for term in text.split()]
        if path is None:
            paths = registry.FUZZY_SEARCH_FIELDS.get(collection, ())
        else:
            paths = (path,)

        scored = []
        for doc_id, document in self._collection(collection).items():
            texts = [
                value.lower()
                for p in paths
                for value in field_values(document, p)
                if isinstance(value, str)
            ]
            score = sum(t.count(term) for t in texts for term in terms)
            if score:
                scored.append((score, doc_id, document))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [self._export(doc_id, doc) for _, doc_id, doc in scored]

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        """Inserts `document` and returns its newly assigned ID."""

        doc_id = generate_id()
        self._collection(collection)[doc_id] = {
            k: copy.deepcopy(v) for k, v in document.items() if k != '_id'
        }
        logger.debug('Inserted %s document %s', collection, doc_id)
        return doc_id

    def update_one(
        self,
        collection: str,
        doc_id: str,
        update: Mapping[str, Any],
    ) -> UpdateResult:
        """Sets the fields of `update` on document `doc_id`."""

        documents = self._collection(collection)
        existing = documents.get(doc_id)
        if existing is None:
            return UpdateResult(0, 0)
        updated = apply_update(
            existing, {k: v for k, v in update.items() if k != '_id'},
        )
        if updated == existing:
            return UpdateResult(1, 0)
        documents[doc_id] = updated
        return UpdateResult(1, 1)

    def delete_one(self, collection: str, doc_id: str) -> DeleteResult:
        """Deletes document `doc_id`."""

        removed = self._collection(collection).pop(doc_id, None)
        return DeleteResult(0 if removed is None else 1)
