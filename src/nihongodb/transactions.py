"""Defines Cypher transaction functions for the document store."""

import textwrap

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from neo4j import ManagedTransaction

from .cypher import quote_identifier

Row = Tuple[str, str]


def create_id_constraint(tx: ManagedTransaction, label: str):
    """Creates a uniqueness constraint on ``id`` for `label` nodes.

    Args:
        tx: The Neo4j transaction object.
        label: The node label.
    """

    cypher = textwrap.dedent(f"""\
        CREATE CONSTRAINT {quote_identifier(label.lower() + '_id')}
        IF NOT EXISTS
        FOR (n:{quote_identifier(label)})
        REQUIRE n.id IS UNIQUE
    """)
    tx.run(cypher)


def create_fulltext_index(
    tx: ManagedTransaction,
    name: str,
    label: str,
    properties: Sequence[str],
    analyzer: str = 'cjk',
):
    """Creates a full-text index over `properties` of `label` nodes.

    Args:
        tx: The Neo4j transaction object.
        name: The index name.
        label: The node label.
        properties: The indexed property keys.
        analyzer: The Lucene analyzer to use.
    """

    indexed = ', '.join(f'n.{quote_identifier(p)}' for p in properties)
    cypher = textwrap.dedent(f"""\
        CREATE FULLTEXT INDEX {quote_identifier(name)} IF NOT EXISTS
        FOR (n:{quote_identifier(label)})
        ON EACH [{indexed}]
        OPTIONS {{indexConfig: {{`fulltext.analyzer`: {analyzer!r}}}}}
    """)
    tx.run(cypher)


def find_documents_by_ids(
    tx: ManagedTransaction,
    label: str,
    ids: Sequence[str],
) -> List[Row]:
    """Transaction function for :meth:`find_by_ids`."""

    cypher = textwrap.dedent(f"""\
        MATCH (n:{quote_identifier(label)})
        WHERE n.id IN $ids
        RETURN n.id AS id, n.document AS document
    """)
    result = tx.run(cypher, ids=list(ids))
    return [(record['id'], record['document']) for record in result]


def find_matching_documents(
    tx: ManagedTransaction,
    label: str,
    predicate: str,
    params: Mapping[str, Any],
) -> List[Row]:
    """Transaction function for :meth:`find`."""

    cypher = textwrap.dedent(f"""\
        MATCH (n:{quote_identifier(label)})
        WHERE {predicate}
        RETURN n.id AS id, n.document AS document
    """)
    result = tx.run(cypher, parameters=dict(params))
    return [(record['id'], record['document']) for record in result]


def query_fulltext_index(
    tx: ManagedTransaction,
    index: str,
    query: str,
) -> List[Row]:
    """Transaction function for :meth:`text_search`.

    Rows are returned in descending order of relevance score.
    """

    cypher = textwrap.dedent("""\
        CALL db.index.fulltext.queryNodes($index, $query)
        YIELD node, score
        RETURN node.id AS id, node.document AS document
        ORDER BY score DESC
    """)
    result = tx.run(cypher, index=index, query=query)
    return [(record['id'], record['document']) for record in result]


def create_document_node(
    tx: ManagedTransaction,
    label: str,
    properties: Mapping[str, Any],
) -> str:
    """Transaction function for :meth:`insert_one`."""

    cypher = textwrap.dedent(f"""\
        CREATE (n:{quote_identifier(label)})
        SET n = $props
        RETURN n.id AS id
    """)
    result = tx.run(cypher, props=dict(properties))
    return result.single()['id']


def fetch_document(
    tx: ManagedTransaction,
    label: str,
    doc_id: str,
) -> Optional[str]:
    """Returns the JSON document of node `doc_id`, or ``None``."""

    cypher = textwrap.dedent(f"""\
        MATCH (n:{quote_identifier(label)} {{id: $id}})
        RETURN n.document AS document
    """)
    record = tx.run(cypher, id=doc_id).single()
    return None if record is None else record['document']


def replace_document_node(
    tx: ManagedTransaction,
    label: str,
    doc_id: str,
    properties: Dict[str, Any],
):
    """Replaces every property of node `doc_id` with `properties`."""

    cypher = textwrap.dedent(f"""\
        MATCH (n:{quote_identifier(label)} {{id: $id}})
        SET n = $props
    """)
    tx.run(cypher, id=doc_id, props=properties).consume()


def delete_document_node(
    tx: ManagedTransaction,
    label: str,
    doc_id: str,
) -> int:
    """Transaction function for :meth:`delete_one`.

    Returns:
        The number of deleted nodes.
    """

    cypher = textwrap.dedent(f"""\
        MATCH (n:{quote_identifier(label)} {{id: $id}})
        DETACH DELETE n
    """)
    summary = tx.run(cypher, id=doc_id).consume()
    return summary.counters.nodes_deleted
