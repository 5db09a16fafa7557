"""
This module centralizes all Cypher queries used by the ingestion engine.

It contains static query strings for database management and functions that
build the batched `MERGE` statements for nodes and relations. Labels and
relationship types come from the closed `NodeKind` / `RelationshipType`
enums; database names are validated before they are interpolated.
"""

from __future__ import annotations

# --- Database Management Queries ---

CYPHER_DELETE_ALL = "MATCH (n) DETACH DELETE n;"
"""Deletes all nodes and relationships from the current database."""

CYPHER_PING = "RETURN 1 AS ok;"
"""Trivial query used to check that the current database answers."""

CYPHER_RETURN_COUNT = "RETURN count(r) AS created"
"""A query fragment to return the count of merged relationships."""


def quote_identifier(name: str) -> str:
    """Backtick-quotes a name for use as a Cypher identifier."""
    return "`" + name.replace("`", "``") + "`"


def build_create_database_query(database: str) -> str:
    """
    Builds a query that creates a database.

    Args:
        database (str): The database name, quoted as an identifier.

    Returns:
        str: The `CREATE DATABASE` query string.
    """
    return f"CREATE DATABASE {quote_identifier(database)};"


def build_use_database_query(database: str) -> str:
    return f"USE DATABASE {quote_identifier(database)};"


def wrap_with_unwind(query: str) -> str:
    """
    Wraps a given Cypher query with `UNWIND $batch AS row` for batch operations.

    Args:
        query (str): The core Cypher query to be executed for each row in the batch.

    Returns:
        str: The complete batch query string.
    """
    return f"UNWIND $batch AS row\n{query}"


def build_index_query(label: str, prop: str) -> str:
    """
    Builds a query to create an index on a node label and property.

    Args:
        label (str): The node label.
        prop (str): The property to index.

    Returns:
        str: The `CREATE INDEX` query string.
    """
    return f"CREATE INDEX ON :{label}({prop});"


def build_merge_node_query(label: str, id_key: str) -> str:
    """
    Builds a query to merge a node on its id and overwrite its properties.

    Args:
        label (str): The node label.
        id_key (str): The unique property key to merge on.

    Returns:
        str: The `MERGE` query string for the node.
    """
    return f"MERGE (n:{label} {{{id_key}: row.id}})\nSET n += row.props"


def _node_pattern(variable: str, label: str | None, key: str, value: str) -> str:
    label_part = f":{label}" if label else ""
    return f"({variable}{label_part} {{{key}: row.{value}}})"


def build_merge_relationship_query(
    from_label: str | None,
    rel_type: str,
    to_label: str | None,
    id_key: str,
) -> str:
    """
    Builds a query to merge a relationship between two nodes matched by id.

    Rows whose endpoints do not exist produce no relationship.

    Args:
        from_label (str | None): The label of the source node, None to match
            any label.
        rel_type (str): The type of the relationship.
        to_label (str | None): The label of the target node, None to match
            any label.
        id_key (str): The unique property key of both endpoints.

    Returns:
        str: The `MERGE` query string for the relationship.
    """
    return (
        f"MATCH {_node_pattern('a', from_label, id_key, 'from_val')}, "
        f"{_node_pattern('b', to_label, id_key, 'to_val')}\n"
        f"MERGE (a)-[r:{rel_type}]->(b)\n"
        f"{CYPHER_RETURN_COUNT}"
    )
