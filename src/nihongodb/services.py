"""Defines the read and write services and request dispatch."""

import logging

from typing import Any, Dict, List, Mapping, Optional, Sequence

from . import query
from . import registry
from .documents import apply_update
from .exceptions import (
    InvalidCollectionError,
    MissingParameterError,
    UnknownOperationError,
)
from .store import DeleteResult, Document, DocumentStore, UpdateResult
from .validation import validate_and_prepare

logger = logging.getLogger('nihongodb')


def _check_collection(collection: Any) -> str:
    if not collection or not isinstance(collection, str):
        raise MissingParameterError(
            'Missing required parameter: collectionName'
        )
    registry.get_model(collection)
    return collection


def _check_values(values: Any, name: str) -> List[Any]:
    if not isinstance(values, (list, tuple)) or not values:
        raise MissingParameterError(
            f'Missing or invalid parameter: {name} must be a non-empty list'
        )
    return list(values)


def coerce_kanken_level(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """Returns a copy of `entry` whose numeric ``kanken_level`` is a float.

    Kanken grades include half grades (2.5, 1.5), so they are always stored
    as floating point numbers.
    """

    coerced = dict(entry)
    level = coerced.get('kanken_level')
    if isinstance(level, (int, float)) and not isinstance(level, bool):
        coerced['kanken_level'] = float(level)
    return coerced


class ReadService:
    """Read operations over a document store.

    Args:
        store: The document store to query.
    """

    def __init__(self, store: DocumentStore):
        """Constructor."""

        self.store = store

    def by_ids(
        self,
        collection: str,
        ids: Sequence[str],
    ) -> List[Optional[Document]]:
        """Fetches documents by ID, preserving the order of `ids`.

        Args:
            collection: The collection to read.
            ids: Non-empty list of document IDs.

        Returns:
            A list as long as `ids` holding the matching document at each
            position, or ``None`` where no document has that ID.

        Raises:
            MissingParameterError: If `ids` is empty or not a list.
            InvalidIdError: If any ID is malformed.
        """

        collection = _check_collection(collection)
        ids = [query.validate_id(i) for i in _check_values(ids, 'ids')]

        unique_ids = list(dict.fromkeys(ids))
        documents = self.store.find_by_ids(collection, unique_ids)
        by_id = {document['_id']: document for document in documents}
        logger.debug(
            'Found %s of %s %s document(s)', len(by_id), len(ids), collection,
        )
        return [by_id.get(doc_id) for doc_id in ids]

    def by_id(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetches one document by ID, or ``None`` if it does not exist."""

        return self.by_ids(collection, [doc_id])[0]

    def by_index(
        self,
        collection: str,
        index_values: Sequence[str],
    ) -> List[Document]:
        """Fetches documents whose index field is any of `index_values`.

        Results come in store order.

        Raises:
            MissingParameterError: If `index_values` is empty or not a list.
            UnsupportedCollectionError: If `collection` has no index field.
        """

        collection = _check_collection(collection)
        index_values = _check_values(index_values, 'indexValues')
        expression = query.build_index_query(collection, index_values)
        return self.store.find(collection, expression)

    def one_by_index(
        self,
        collection: str,
        index_value: str,
    ) -> Optional[Document]:
        """Fetches the first document whose index field is `index_value`."""

        if not index_value:
            raise MissingParameterError(
                'Missing required parameter: indexValue'
            )
        results = self.by_index(collection, [index_value])
        return results[0] if results else None

    def by_search(
        self,
        collection: str,
        filters: Mapping[str, Any],
    ) -> List[Document]:
        """Fetches documents matching `filters`.

        See :mod:`nihongodb.query` for how filters are interpreted.
        """

        collection = _check_collection(collection)
        expression = query.build_filter(filters)
        return self.store.find(collection, expression)

    def by_fuzzy_text(
        self,
        collection: str,
        search_text: str,
        path: str = query.WILDCARD,
    ) -> List[Document]:
        """Runs a relevance-ranked text search.

        Args:
            collection: One of the fuzzy-searchable collections.
            search_text: The text to search for.
            path: ``'*'`` for every text path, or a single text path.

        Returns:
            Matching documents, most relevant first.

        Raises:
            UnsupportedCollectionError: If `collection` is not searchable.
            EmptyQueryError: If `search_text` is blank.
        """

        registry.get_search_fields(collection)
        search_text = query.check_search_text(search_text)
        search_path = query.resolve_search_path(collection, path)
        return self.store.text_search(collection, search_text, search_path)


class WriteService:
    """Write operations over a document store.

    Entries are written as given; validate them first with
    :func:`nihongodb.validation.validate_and_prepare` (or use
    :class:`EntryService`).

    Args:
        store: The document store to modify.
    """

    def __init__(self, store: DocumentStore):
        """Constructor."""

        self.store = store

    @staticmethod
    def _check_writable(collection: Any) -> str:
        if collection not in registry.WRITABLE_COLLECTIONS:
            raise InvalidCollectionError(f'Invalid collection: {collection}')
        return collection

    def add(self, collection: str, new_entry: Mapping[str, Any]) -> str:
        """Inserts `new_entry` and returns its new ID.

        Raises:
            InvalidCollectionError: If `collection` is not writable.
            MissingParameterError: If `new_entry` is missing.
        """

        collection = self._check_writable(collection)
        if new_entry is None or not isinstance(new_entry, Mapping):
            raise MissingParameterError('Missing newEntry for add operation')
        doc_id = self.store.insert_one(collection, new_entry)
        logger.info('Added %s entry %s', collection, doc_id)
        return doc_id

    def edit(
        self,
        collection: str,
        doc_id: str,
        update_data: Mapping[str, Any],
    ) -> UpdateResult:
        """Sets the fields named in `update_data` on document `doc_id`.

        A zero ``matched_count`` means the document does not exist; this is
        not an error.

        Raises:
            MissingParameterError: If `doc_id` or `update_data` is missing.
            InvalidIdError: If `doc_id` is malformed.
        """

        collection = self._check_writable(collection)
        if not doc_id or not update_data:
            raise MissingParameterError(
                'Missing id or updateData for edit operation'
            )
        if not isinstance(update_data, Mapping):
            raise MissingParameterError('updateData must be a mapping')
        doc_id = query.validate_id(doc_id)
        result = self.store.update_one(collection, doc_id, update_data)
        logger.info(
            'Edited %s entry %s (matched %s, modified %s)',
            collection,
            doc_id,
            result.matched_count,
            result.modified_count,
        )
        return result

    def delete(self, collection: str, doc_id: str) -> DeleteResult:
        """Deletes document `doc_id`.

        Raises:
            MissingParameterError: If `doc_id` is missing.
            InvalidIdError: If `doc_id` is malformed.
        """

        collection = self._check_writable(collection)
        if not doc_id:
            raise MissingParameterError('Missing id for delete operation')
        doc_id = query.validate_id(doc_id)
        result = self.store.delete_one(collection, doc_id)
        logger.info(
            'Deleted %s entry %s (%s removed)',
            collection,
            doc_id,
            result.deleted_count,
        )
        return result


class EntryService:
    """Validating add/edit/delete workflow on top of the services.

    Args:
        store: The document store.
    """

    def __init__(self, store: DocumentStore):
        """Constructor."""

        self.reader = ReadService(store)
        self.writer = WriteService(store)

    def add_entry(self, collection: str, new_entry: Mapping[str, Any]) -> str:
        """Validates `new_entry`, fills in defaults and inserts it.

        Returns:
            The new document ID.
        """

        collection = self.writer._check_writable(collection)
        if new_entry is None or not isinstance(new_entry, Mapping):
            raise MissingParameterError('Missing newEntry for add operation')
        prepared = validate_and_prepare(
            collection, coerce_kanken_level(new_entry),
        )
        return self.writer.add(collection, prepared)

    def edit_entry(
        self,
        collection: str,
        doc_id: str,
        update_data: Mapping[str, Any],
    ) -> UpdateResult:
        """Applies `update_data` to an entry after validating the result.

        The update is merged over the stored document and the merged whole
        is validated; the update alone is never validated. An unknown
        `doc_id` matches nothing and gives zero counts.

        Raises:
            InvalidCollectionError: If `collection` is not writable.
            ValidationFailedError: If the merged document is invalid.
        """

        collection = self.writer._check_writable(collection)
        if not doc_id or not update_data:
            raise MissingParameterError(
                'Missing id or updateData for edit operation'
            )
        if not isinstance(update_data, Mapping):
            raise MissingParameterError('updateData must be a mapping')
        existing = self.reader.by_id(collection, doc_id)
        if existing is None:
            logger.info('No %s entry %s to edit', collection, doc_id)
            return UpdateResult(0, 0)

        existing.pop('_id', None)
        merged = apply_update(existing, update_data)
        prepared = validate_and_prepare(
            collection, coerce_kanken_level(merged),
        )
        return self.writer.edit(collection, doc_id, prepared)

    def delete_entry(self, collection: str, doc_id: str) -> DeleteResult:
        """Deletes an entry by ID."""

        return self.writer.delete(collection, doc_id)


READ_OPERATIONS = {
    'byIds': 'byIds',
    'getEntriesByIds': 'byIds',
    'byIndex': 'byIndex',
    'getEntriesByIndexes': 'byIndex',
    'bySearch': 'bySearch',
    'getEntriesBySearch': 'bySearch',
    'byFuzzyText': 'byFuzzyText',
    'getEntriesByFuzzySearch': 'byFuzzyText',
}

WRITE_OPERATIONS = {
    'add': 'add',
    'addEntry': 'add',
    'edit': 'edit',
    'editEntry': 'edit',
    'delete': 'delete',
    'deleteEntry': 'delete',
}


def _operation(request: Any, operations: Mapping[str, str]) -> str:
    if not isinstance(request, Mapping):
        raise MissingParameterError('Request must be a mapping')
    name = request.get('operation')
    try:
        return operations[name]
    except (KeyError, TypeError):
        raise UnknownOperationError(f'Unknown operation: {name}') from None


def read_entries(service: ReadService, request: Mapping[str, Any]) -> Any:
    """Dispatches a read request.

    Args:
        service: The read service.
        request: Mapping with ``operation``, ``collectionName`` and the
            operation's parameters (``ids``, ``indexValues``, ``filters``,
            ``searchText``, ``path``).

    Returns:
        The list of documents.

    Raises:
        UnknownOperationError: If the operation is not a read operation.
    """

    operation = _operation(request, READ_OPERATIONS)
    collection = request.get('collectionName')
    if operation == 'byIds':
        return service.by_ids(collection, request.get('ids'))
    if operation == 'byIndex':
        return service.by_index(collection, request.get('indexValues'))
    if operation == 'bySearch':
        return service.by_search(collection, request.get('filters'))
    return service.by_fuzzy_text(
        collection,
        request.get('searchText'),
        request.get('path', query.WILDCARD),
    )


def write_entries(
    service: EntryService,
    request: Mapping[str, Any],
    validate: bool = True,
) -> Dict[str, Any]:
    """Dispatches a write request.

    Args:
        service: The entry service.
        request: Mapping with ``operation``, ``collectionName`` and the
            operation's parameters (``newEntry``, ``id``, ``updateData``).
        validate: Whether entries are validated before being written.

    Returns:
        ``{'insertedId': ...}`` for adds, ``{'matchedCount': ...,
        'modifiedCount': ...}`` for edits and ``{'deletedCount': ...}`` for
        deletes.

    Raises:
        UnknownOperationError: If the operation is not a write operation.
    """

    operation = _operation(request, WRITE_OPERATIONS)
    collection = request.get('collectionName')
    if operation == 'add':
        new_entry = request.get('newEntry')
        if validate:
            inserted_id = service.add_entry(collection, new_entry)
        else:
            if isinstance(new_entry, Mapping):
                new_entry = coerce_kanken_level(new_entry)
            inserted_id = service.writer.add(collection, new_entry)
        return {'insertedId': inserted_id}

    if operation == 'edit':
        doc_id = request.get('id')
        update_data = request.get('updateData')
        if validate:
            result = service.edit_entry(collection, doc_id, update_data)
        else:
            if isinstance(update_data, Mapping):
                update_data = coerce_kanken_level(update_data)
            result = service.writer.edit(collection, doc_id, update_data)
        return {
            'matchedCount': result.matched_count,
            'modifiedCount': result.modified_count,
        }

    result = service.delete_entry(collection, request.get('id'))
    return {'deletedCount': result.deleted_count}
