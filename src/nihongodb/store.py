"""Defines the document store contract and its Neo4j implementation."""

import abc
import json
import logging

from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from . import cypher
from . import registry
from . import transactions
from .documents import apply_update, generate_id
from .exceptions import StoreError
from .query import Expression

logger = logging.getLogger('nihongodb')

Document = Dict[str, Any]


class UpdateResult(NamedTuple):
    """Outcome of an update: documents matched and actually modified."""
    matched_count: int
    modified_count: int


class DeleteResult(NamedTuple):
    """Outcome of a delete."""
    deleted_count: int


class DocumentStore(abc.ABC):
    """A document store addressed by collection name.

    Documents are returned as dicts with their ID under ``_id``.
    """

    @abc.abstractmethod
    def find_by_ids(
        self,
        collection: str,
        ids: Sequence[str],
    ) -> List[Document]:
        """Returns the documents whose IDs are in `ids`, in any order."""

    @abc.abstractmethod
    def find(self, collection: str, query: Expression) -> List[Document]:
        """Returns the documents matching `query`, in store order."""

    @abc.abstractmethod
    def text_search(
        self,
        collection: str,
        text: str,
        path: Optional[str] = None,
    ) -> List[Document]:
        """Returns documents matching `text`, most relevant first.

        Args:
            collection: The collection to search.
            text: The search text.
            path: Restricts the search to one text path; ``None`` searches
                every text path of the collection.
        """

    @abc.abstractmethod
    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        """Inserts `document` and returns its newly assigned ID."""

    @abc.abstractmethod
    def update_one(
        self,
        collection: str,
        doc_id: str,
        update: Mapping[str, Any],
    ) -> UpdateResult:
        """Sets the fields of `update` on document `doc_id`."""

    @abc.abstractmethod
    def delete_one(self, collection: str, doc_id: str) -> DeleteResult:
        """Deletes document `doc_id`."""

    def close(self):
        """Releases any resources held by the store."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def _strip_id(document: Mapping[str, Any]) -> Document:
    return {k: v for k, v in document.items() if k != '_id'}


class Neo4jDocumentStore(DocumentStore):
    """Document store backed by a Neo4j graph database.

    The driver is created on first use and owned by the store.

    Args:
        uri: The URI for the driver connection.
        user: The username for authentication.
        password: The password for authentication.
        database: The database name, or ``None`` for the server default.
    """

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: Optional[str] = None,
    ):
        """Constructor."""

        self.uri = uri
        self.user = user
        self.database = database
        self._password = password
        self._driver: Optional[Driver] = None

        self.closed = False

    @property
    def driver(self) -> Driver:
        """The Neo4j driver, created on first access."""

        if self._driver is None:
            logger.debug('Initializing driver, URI: %s', self.uri)
            self._driver = GraphDatabase.driver(
                self.uri, auth=(self.user, self._password),
            )
            self.closed = False
        return self._driver

    def close(self):
        """Closes the driver connection."""

        if self._driver is not None and not self.closed:
            logger.debug('Closing driver')
            self.closed = True
            self._driver.close()
            self._driver = None

    def __del__(self):
        """Destructor."""

        self.close()

    def _read(self, work, *args):
        try:
            with self.driver.session(database=self.database) as session:
                return session.execute_read(work, *args)
        except (Neo4jError, DriverError) as exc:
            raise StoreError(f'Neo4j read failed: {exc}') from exc

    def _write(self, work, *args):
        try:
            with self.driver.session(database=self.database) as session:
                return session.execute_write(work, *args)
        except (Neo4jError, DriverError) as exc:
            raise StoreError(f'Neo4j write failed: {exc}') from exc

    def create_constraints(self):
        """Creates a uniqueness constraint on ``id`` for every collection."""

        for collection in registry.COLLECTIONS:
            label = registry.node_label(collection)
            logger.debug('Creating id constraint for %s', label)
            self._write(transactions.create_id_constraint, label)

    def create_search_indexes(self):
        """Creates the full-text index of every fuzzy-searchable collection.
        """

        for collection, paths in registry.FUZZY_SEARCH_FIELDS.items():
            name = search_index_name(collection)
            logger.debug('Creating full-text index %s', name)
            self._write(
                transactions.create_fulltext_index,
                name,
                registry.node_label(collection),
                [cypher.TEXT_PREFIX + path for path in paths],
            )

    def find_by_ids(
        self,
        collection: str,
        ids: Sequence[str],
    ) -> List[Document]:
        """Returns the documents whose IDs are in `ids`, in any order."""

        logger.debug('Fetching %s %s document(s) by ID', len(ids), collection)
        rows = self._read(
            transactions.find_documents_by_ids,
            registry.node_label(collection),
            list(ids),
        )
        return [cypher.load_document(*row) for row in rows]

    def find(self, collection: str, query: Expression) -> List[Document]:
        """Returns the documents matching `query`."""

        predicate, params = cypher.compile_expression(query)
        logger.debug('Finding %s documents WHERE %s', collection, predicate)
        rows = self._read(
            transactions.find_matching_documents,
            registry.node_label(collection),
            predicate,
            params,
        )
        return [cypher.load_document(*row) for row in rows]

    def text_search(
        self,
        collection: str,
        text: str,
        path: Optional[str] = None,
    ) -> List[Document]:
        """Returns documents matching `text`, most relevant first."""

        query = cypher.build_fulltext_query(text, path)
        logger.debug('Full-text search of %s for %s', collection, query)
        rows = self._read(
            transactions.query_fulltext_index,
            search_index_name(collection),
            query,
        )
        return [cypher.load_document(*row) for row in rows]

    def insert_one(self, collection: str, document: Mapping[str, Any]) -> str:
        """Inserts `document` and returns its newly assigned ID."""

        doc_id = generate_id()
        properties = cypher.node_properties(
            collection, doc_id, _strip_id(document),
        )
        logger.debug('Inserting %s document %s', collection, doc_id)
        return self._write(
            transactions.create_document_node,
            registry.node_label(collection),
            properties,
        )

    def update_one(
        self,
        collection: str,
        doc_id: str,
        update: Mapping[str, Any],
    ) -> UpdateResult:
        """Sets the fields of `update` on document `doc_id`.

        The read, merge and write happen in one transaction.
        """

        label = registry.node_label(collection)

        def work(tx):
            payload = transactions.fetch_document(tx, label, doc_id)
            if payload is None:
                return UpdateResult(0, 0)
            existing = json.loads(payload)
            updated = apply_update(existing, _strip_id(update))
            if updated == existing:
                return UpdateResult(1, 0)
            transactions.replace_document_node(
                tx,
                label,
                doc_id,
                cypher.node_properties(collection, doc_id, updated),
            )
            return UpdateResult(1, 1)

        logger.debug('Updating %s document %s', collection, doc_id)
        return self._write(work)

    def delete_one(self, collection: str, doc_id: str) -> DeleteResult:
        """Deletes document `doc_id`."""

        logger.debug('Deleting %s document %s', collection, doc_id)
        deleted = self._write(
            transactions.delete_document_node,
            registry.node_label(collection),
            doc_id,
        )
        return DeleteResult(deleted)


def search_index_name(collection: str) -> str:
    """Returns the name of the full-text index for `collection`."""

    return f'{collection}_search'
