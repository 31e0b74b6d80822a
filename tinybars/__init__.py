"""tinybars — compile handlebars-style templates into Python render functions."""

from .compiler import CompileResult, compile_template  # noqa: F401
from .context import CompileOptions, OutputFormat  # noqa: F401
from .errors import CompileError, ParseError, TemplateError  # noqa: F401
from .parser import parse_template  # noqa: F401
