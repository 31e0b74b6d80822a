"""Named constants shared by the compiler and the code it generates."""

from __future__ import annotations

DEFAULT_SCOPE_VAR = "scope"
DEFAULT_DATA_VAR = "data"
DEFAULT_FUNCTION_NAME = "render"
DEFAULT_SOURCE_NAME = "<template>"
DEFAULT_EXTENSIONS: tuple[str, ...] = (".hbs",)

ROOT_VAR = "root"
WITH_VAR = "with_scope"
KEY_VAR_TEMPLATE = "key{depth}"
VALUE_VAR_TEMPLATE = "val{depth}"
EXPORTS_VAR = "exports"

RUNTIME_MODULE = "tinybars.runtime"

# Runtime helper symbol -> local alias used inside generated code.
ESCAPE_HELPER = "escape"
STRINGIFY_HELPER = "to_str"
TRUTHY_HELPER = "truthy"
ENTRIES_HELPER = "entries"
LOOKUP_HELPER = "lookup"

RUNTIME_ALIASES: dict[str, str] = {
    ESCAPE_HELPER: "_escape",
    STRINGIFY_HELPER: "_str",
    TRUTHY_HELPER: "_truthy",
    ENTRIES_HELPER: "_entries",
    LOOKUP_HELPER: "_lookup",
}

# Data-sigil heads with dedicated meaning; any other @name reads the data var.
DATA_ROOT = "root"
DATA_THIS = "this"
DATA_KEY = "key"
DATA_INDEX = "index"

HELPER_IF = "if"
HELPER_UNLESS = "unless"
HELPER_EACH = "each"
HELPER_WITH = "with"

EMPTY_STRING_LITERAL = '""'

RESERVED_NAMES: frozenset[str] = frozenset(
    {ROOT_VAR, WITH_VAR, EXPORTS_VAR, *RUNTIME_ALIASES.values()}
)
RESERVED_NAME_PATTERN = r"^(?:key|val)\d+$"
