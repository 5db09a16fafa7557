from __future__ import annotations

from enum import StrEnum


class NodeKind(StrEnum):
    FILE = "File"
    CLASS = "Class"
    METHOD = "Method"
    FUNCTION = "Function"
    INTERFACE = "Interface"
    ENUM = "Enum"
    ENUM_MEMBER = "EnumMember"
    TYPE_ALIAS = "TypeAlias"
    PROPERTY = "Property"
    PARAMETER = "Parameter"
    VARIABLE = "Variable"
    ROUTE = "Route"
    MODEL = "Model"


class RelationshipType(StrEnum):
    DECLARES = "DECLARES"
    HAS_METHOD = "HAS_METHOD"
    HAS_PROPERTY = "HAS_PROPERTY"
    HAS_PARAMETER = "HAS_PARAMETER"
    HAS_MEMBER = "HAS_MEMBER"
    USES_TYPE = "USES_TYPE"
    INJECTS = "INJECTS"
    CALLS = "CALLS"
    USES = "USES"
    USES_CLASS = "USES_CLASS"
    USES_INTERFACE = "USES_INTERFACE"
    USES_ENUM = "USES_ENUM"
    USES_MODEL = "USES_MODEL"
    CREATES_INSTANCE = "CREATES_INSTANCE"
    CREATES_MODEL = "CREATES_MODEL"
    IMPORTS = "IMPORTS"
    IMPORTS_CLASS = "IMPORTS_CLASS"
    IMPORTS_INTERFACE = "IMPORTS_INTERFACE"
    IMPORTS_ENUM = "IMPORTS_ENUM"
    IMPORTS_FUNCTION = "IMPORTS_FUNCTION"
    IMPORTS_TYPE = "IMPORTS_TYPE"
    IMPORTS_VARIABLE = "IMPORTS_VARIABLE"
    IMPORTS_DEFAULT = "IMPORTS_DEFAULT"
    IMPORTS_NAMESPACE = "IMPORTS_NAMESPACE"
    DEPENDS_ON = "DEPENDS_ON"
    HAS_DEPENDENCY = "HAS_DEPENDENCY"
    EXTENDS = "EXTENDS"
    IMPLEMENTS = "IMPLEMENTS"
    DECORATED_BY = "DECORATED_BY"
    HANDLES_ROUTE = "HANDLES_ROUTE"


class ImportStyle(StrEnum):
    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"


class HttpVerb(StrEnum):
    GET = "Get"
    POST = "Post"
    PUT = "Put"
    DELETE = "Delete"
    PATCH = "Patch"


# (H) Identifier scheme
KIND_PREFIXES: dict[NodeKind, str] = {
    NodeKind.FILE: "fil",
    NodeKind.CLASS: "cls",
    NodeKind.METHOD: "met",
    NodeKind.FUNCTION: "fun",
    NodeKind.INTERFACE: "int",
    NodeKind.ENUM: "enm",
    NodeKind.ENUM_MEMBER: "emb",
    NodeKind.TYPE_ALIAS: "typ",
    NodeKind.PROPERTY: "prp",
    NodeKind.PARAMETER: "par",
    NodeKind.VARIABLE: "var",
    NodeKind.ROUTE: "rte",
    NodeKind.MODEL: "mdl",
}
PREFIX_TO_KIND: dict[str, NodeKind] = {v: k for k, v in KIND_PREFIXES.items()}
ID_HASH_LENGTH = 8
ID_SEPARATOR = "-"
DECORATOR_ID_PREFIX = "decorator:"
ANONYMOUS_CLASS_NAME = "AnonymousClass"

# (H) Separators
SEPARATOR_DOT = "."
SEPARATOR_COLON = ":"
SEPARATOR_SLASH = "/"
SEPARATOR_PIPE = "|"

# (H) Source discovery
TS_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx", ".mts", ".cts"})
TSX_EXTENSION = ".tsx"
DECLARATION_SUFFIX = ".d.ts"
SUBTYPE_EXTENSION_PATTERN = r"\.(ts|tsx|js|jsx|mts|cts|mjs|cjs)$"
SUBTYPE_DECLARATION_SUFFIX = ".d"
RESOLUTION_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".d.ts", ".mts", ".cts")
INDEX_BASENAMES: tuple[str, ...] = ("index.ts", "index.tsx", "index.d.ts")
JS_SPECIFIER_EXTENSIONS: dict[str, tuple[str, ...]] = {
    ".js": (".ts", ".tsx", ".d.ts"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}
TSCONFIG_FILENAME = "tsconfig.json"
TSCONFIG_COMPILER_OPTIONS = "compilerOptions"
TSCONFIG_BASE_URL = "baseUrl"
TSCONFIG_PATHS = "paths"
TSCONFIG_WILDCARD = "*"
ENCODING_UTF8 = "utf-8"
DEFAULT_EXCLUDE_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "dist",
        "build",
        "coverage",
        ".git",
        ".next",
        ".turbo",
        ".cache",
        "out",
    }
)

# (H) Tree-sitter node types
TS_IDENTIFIER = "identifier"
TS_TYPE_IDENTIFIER = "type_identifier"
TS_PROPERTY_IDENTIFIER = "property_identifier"
TS_SHORTHAND_PROPERTY_IDENTIFIER = "shorthand_property_identifier"
TS_NESTED_TYPE_IDENTIFIER = "nested_type_identifier"
TS_GENERIC_TYPE = "generic_type"
TS_TYPE_ARGUMENTS = "type_arguments"
TS_TYPE_ANNOTATION = "type_annotation"
TS_THIS = "this"
TS_STRING = "string"
TS_TEMPLATE_STRING = "template_string"
TS_TEMPLATE_SUBSTITUTION = "template_substitution"
TS_NUMBER = "number"
TS_TRUE = "true"
TS_FALSE = "false"
TS_UNARY_EXPRESSION = "unary_expression"
TS_OBJECT = "object"
TS_PAIR = "pair"

TS_IMPORT_STATEMENT = "import_statement"
TS_IMPORT_CLAUSE = "import_clause"
TS_NAMED_IMPORTS = "named_imports"
TS_IMPORT_SPECIFIER = "import_specifier"
TS_NAMESPACE_IMPORT = "namespace_import"
TS_EXPORT_STATEMENT = "export_statement"
TS_EXPORT_CLAUSE = "export_clause"
TS_EXPORT_SPECIFIER = "export_specifier"
TS_NAMESPACE_EXPORT = "namespace_export"
TS_AMBIENT_DECLARATION = "ambient_declaration"

TS_CLASS_DECLARATION = "class_declaration"
TS_ABSTRACT_CLASS_DECLARATION = "abstract_class_declaration"
TS_CLASS = "class"
TS_CLASS_HERITAGE = "class_heritage"
TS_EXTENDS_CLAUSE = "extends_clause"
TS_IMPLEMENTS_CLAUSE = "implements_clause"
TS_EXTENDS_TYPE_CLAUSE = "extends_type_clause"
TS_DECORATOR = "decorator"
TS_METHOD_DEFINITION = "method_definition"
TS_ABSTRACT_METHOD_SIGNATURE = "abstract_method_signature"
TS_PUBLIC_FIELD_DEFINITION = "public_field_definition"
TS_ACCESSIBILITY_MODIFIER = "accessibility_modifier"
TS_REQUIRED_PARAMETER = "required_parameter"
TS_OPTIONAL_PARAMETER = "optional_parameter"
TS_REST_PATTERN = "rest_pattern"

TS_FUNCTION_DECLARATION = "function_declaration"
TS_GENERATOR_FUNCTION_DECLARATION = "generator_function_declaration"
TS_INTERFACE_DECLARATION = "interface_declaration"
TS_PROPERTY_SIGNATURE = "property_signature"
TS_ENUM_DECLARATION = "enum_declaration"
TS_ENUM_ASSIGNMENT = "enum_assignment"
TS_TYPE_ALIAS_DECLARATION = "type_alias_declaration"
TS_LEXICAL_DECLARATION = "lexical_declaration"
TS_VARIABLE_DECLARATION = "variable_declaration"
TS_VARIABLE_DECLARATOR = "variable_declarator"
TS_CATCH_CLAUSE = "catch_clause"
TS_ARROW_FUNCTION = "arrow_function"
TS_TYPE_PARAMETER = "type_parameter"

TS_CALL_EXPRESSION = "call_expression"
TS_NEW_EXPRESSION = "new_expression"
TS_MEMBER_EXPRESSION = "member_expression"

METHOD_NODE_TYPES: frozenset[str] = frozenset(
    {TS_METHOD_DEFINITION, TS_ABSTRACT_METHOD_SIGNATURE}
)
PARAMETER_NODE_TYPES: frozenset[str] = frozenset(
    {TS_REQUIRED_PARAMETER, TS_OPTIONAL_PARAMETER}
)
VARIABLE_STATEMENT_TYPES: frozenset[str] = frozenset(
    {TS_LEXICAL_DECLARATION, TS_VARIABLE_DECLARATION}
)

# (H) Tree-sitter field names
FIELD_NAME = "name"
FIELD_BODY = "body"
FIELD_PARAMETERS = "parameters"
FIELD_PARAMETER = "parameter"
FIELD_RETURN_TYPE = "return_type"
FIELD_TYPE = "type"
FIELD_VALUE = "value"
FIELD_PATTERN = "pattern"
FIELD_FUNCTION = "function"
FIELD_ARGUMENTS = "arguments"
FIELD_OBJECT = "object"
FIELD_PROPERTY = "property"
FIELD_CONSTRUCTOR = "constructor"
FIELD_SOURCE = "source"
FIELD_DECLARATION = "declaration"
FIELD_ALIAS = "alias"
FIELD_KEY = "key"
FIELD_TYPE_ARGUMENTS = "type_arguments"

# (H) Keywords
KEYWORD_CONSTRUCTOR = "constructor"
KEYWORD_DEFAULT = "default"
KEYWORD_ASYNC = "async"
KEYWORD_STATIC = "static"
KEYWORD_READONLY = "readonly"
KEYWORD_CONST = "const"
KEYWORD_LET = "let"
KEYWORD_VAR = "var"
KEYWORD_GET = "get"
KEYWORD_SET = "set"
ACCESSOR_KEYWORDS: frozenset[str] = frozenset({KEYWORD_GET, KEYWORD_SET})
DECLARATION_KEYWORDS: frozenset[str] = frozenset(
    {KEYWORD_CONST, KEYWORD_LET, KEYWORD_VAR}
)

# (H) Metadata defaults
VISIBILITY_PUBLIC = "public"
DEFAULT_RETURN_TYPE = "void"
DEFAULT_VALUE_TYPE = "any"
LITERAL_TYPE_NUMBER = "number"
LITERAL_TYPE_STRING = "string"
LITERAL_TYPE_BOOLEAN = "boolean"

# (H) Meta keys
META_SUBTYPE = "subtype"
META_EXTENSION = "extension"
META_IS_ASYNC = "isAsync"
META_IS_STATIC = "isStatic"
META_IS_EXPORTED = "isExported"
META_IS_ABSTRACT = "isAbstract"
META_IS_READONLY = "isReadonly"
META_IS_CONST = "isConst"
META_OPTIONAL = "optional"
META_VISIBILITY = "visibility"
META_RETURN_TYPE = "returnType"
META_PARAMETERS = "parameters"
META_PROPERTIES = "properties"
META_DECORATORS = "decorators"
META_SOURCE_CODE = "sourceCode"
META_TYPE = "type"
META_VALUE = "value"
META_DEFINITION = "definition"
META_DECLARATION_TYPE = "declarationType"
META_HTTP_METHOD = "httpMethod"
META_PATH = "path"
META_CONTROLLER = "controller"
META_HANDLER = "handler"
META_NAME = "name"

# (H) Serialised graph keys
KEY_ID = "id"
KEY_KIND = "kind"
KEY_NAME = "name"
KEY_FILE_PATH = "filePath"
KEY_PARENT_ID = "parentId"
KEY_SUBTYPE = "subtype"
KEY_META = "meta"
KEY_FROM = "from"
KEY_TO = "to"
KEY_TYPE = "type"
KEY_NODES = "nodes"
KEY_RELATIONS = "relations"
KEY_COUNTS = "counts"
KEY_PROPS = "props"
KEY_FROM_VAL = "from_val"
KEY_TO_VAL = "to_val"
KEY_BATCH = "batch"

# (H) Routes
CONTROLLER_DECORATOR = "Controller"
ROUTE_PATH_KEY = "path"

# (H) Name heuristics
MODEL_NAME_PATTERN = r"(model|entity|dto|schema|document)$"
ENTITY_NAME_PATTERN = r"(entity|model)$"
REPOSITORY_NAME_PATTERN = r"(repository|repo|model|service)$"

# (H) Graph store
ERR_SUBSTR_ALREADY_EXISTS = "already exists"
MEMGRAPH_DEFAULT_DATABASE = "memgraph"
NODE_ID_PROPERTY = "id"
BATCH_LOG_PREVIEW = 10

# (H) Output
DEFAULT_OUTPUT_FILE = "kg.json"
JSON_INDENT = 2
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


class Color(StrEnum):
    GREEN = "green"
    RED = "red"
    YELLOW = "yellow"
    CYAN = "cyan"
    MAGENTA = "magenta"


class StyleModifier(StrEnum):
    NONE = ""
    BOLD = "bold"
    DIM = "dim"


# (H) CLI messages
CLI_MSG_EXTRACTING = "Extracting knowledge graph from {path}"
CLI_MSG_EXTRACTED = "Extracted {nodes} nodes and {relations} relations"
CLI_MSG_SAVED = "Knowledge graph written to {path}"
CLI_MSG_INGESTING = "Importing into database '{database}'..."
CLI_MSG_INGESTED = "Database '{database}' now holds the extracted graph"
CLI_MSG_NO_SUBTYPES = "No file subtypes found"
CLI_ERR_EXTRACTION = "Extraction failed: {error}"
CLI_ERR_GRAPH_FILE = "Could not read graph file: {error}"
CLI_ERR_INGESTION = "Ingestion failed: {error}"
TABLE_TITLE_COUNTS = "Extracted Nodes"
TABLE_TITLE_SUBTYPES = "File Subtypes"
TABLE_COL_KIND = "Kind"
TABLE_COL_SUBTYPE = "Subtype"
TABLE_COL_COUNT = "Count"
