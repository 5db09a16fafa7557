"""
Deterministic node identifiers.

Every id is `{prefix}-{hash}` where the hash is the first eight hex characters
of SHA-256 over `"{file_path}:{qualified_name}"`. File ids hash the path alone
and carry the normalised file subtype between prefix and hash when one exists,
e.g. `fil-schema-1a2b3c4d`. Ids depend only on their inputs, so re-scanning an
unchanged file yields the same ids.
"""

from __future__ import annotations

import hashlib

from codebase_kg.core import constants as cs


def short_hash(value: str, length: int = cs.ID_HASH_LENGTH) -> str:
    return hashlib.sha256(value.encode(cs.ENCODING_UTF8)).hexdigest()[:length]


def normalize_subtype(subtype: str) -> str:
    return subtype.lower().replace(cs.SEPARATOR_DOT, cs.ID_SEPARATOR)


def generate_id(
    kind: cs.NodeKind,
    file_path: str,
    qualified_name: str | None = None,
    subtype: str | None = None,
) -> str:
    """
    Builds the identifier for an entity.

    Args:
        kind (cs.NodeKind): The entity kind; selects the three-letter prefix.
        file_path (str): Project-relative path of the declaring file.
        qualified_name (str | None): Name qualifying the entity within its file.
            Omitted for files, which are identified by their path.
        subtype (str | None): File subtype embedded into the id.

    Returns:
        str: The deterministic identifier.
    """
    prefix = cs.KIND_PREFIXES[kind]
    seed = (
        file_path
        if qualified_name is None
        else f"{file_path}{cs.SEPARATOR_COLON}{qualified_name}"
    )
    digest = short_hash(seed)
    if subtype:
        return cs.ID_SEPARATOR.join((prefix, normalize_subtype(subtype), digest))
    return f"{prefix}{cs.ID_SEPARATOR}{digest}"


def kind_from_id(node_id: str) -> cs.NodeKind | None:
    """Recovers the node kind from an id's prefix, if it is a generated id."""
    prefix, sep, _ = node_id.partition(cs.ID_SEPARATOR)
    if not sep:
        return None
    return cs.PREFIX_TO_KIND.get(prefix)


def file_id(file_path: str, subtype: str | None = None) -> str:
    return generate_id(cs.NodeKind.FILE, file_path, subtype=subtype)


def class_id(class_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.CLASS, file_path, class_name)


def method_id(class_name: str, method_name: str, file_path: str) -> str:
    return generate_id(
        cs.NodeKind.METHOD, file_path, f"{class_name}{cs.SEPARATOR_DOT}{method_name}"
    )


def function_id(function_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.FUNCTION, file_path, function_name)


def interface_id(interface_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.INTERFACE, file_path, interface_name)


def enum_id(enum_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.ENUM, file_path, enum_name)


def enum_member_id(enum_name: str, member_name: str, file_path: str) -> str:
    return generate_id(
        cs.NodeKind.ENUM_MEMBER,
        file_path,
        f"{enum_name}{cs.SEPARATOR_DOT}{member_name}",
    )


def type_alias_id(type_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.TYPE_ALIAS, file_path, type_name)


def property_id(class_name: str, property_name: str, file_path: str) -> str:
    return generate_id(
        cs.NodeKind.PROPERTY,
        file_path,
        f"{class_name}{cs.SEPARATOR_DOT}{property_name}",
    )


def parameter_id(owner_id: str, parameter_name: str, file_path: str) -> str:
    return generate_id(
        cs.NodeKind.PARAMETER,
        file_path,
        f"{owner_id}{cs.SEPARATOR_COLON}{parameter_name}",
    )


def variable_id(variable_name: str, file_path: str) -> str:
    return generate_id(cs.NodeKind.VARIABLE, file_path, variable_name)


def route_id(http_method: str, route_path: str, file_path: str) -> str:
    return generate_id(
        cs.NodeKind.ROUTE,
        file_path,
        f"{http_method}{cs.SEPARATOR_COLON}{route_path}",
    )


def declaration_id(kind: cs.NodeKind, name: str, file_path: str) -> str:
    """Id of a top-level declaration of the given kind."""
    return generate_id(kind, file_path, name)
