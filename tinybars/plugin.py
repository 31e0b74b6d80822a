"""Build-tool integration via a transform hook for template files."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import constants
from .compiler import compile_template
from .context import CompileOptions, OutputFormat

logger = logging.getLogger(__name__)


class PluginOptions(CompileOptions):
    """Compiler options plus the file extensions the plugin claims."""

    extensions: tuple[str, ...] = constants.DEFAULT_EXTENSIONS


@dataclass(frozen=True)
class TransformResult:
    code: str
    map: str


class TemplatePlugin:
    """Compiles matching files to ``module``-format Python; declines the rest."""

    name = "tinybars"

    def __init__(self, options: PluginOptions | None = None):
        self._options = options or PluginOptions()

    def handles(self, file_id: str) -> bool:
        return any(file_id.endswith(ext) for ext in self._options.extensions)

    def transform(self, code: str, file_id: str) -> TransformResult | None:
        if not self.handles(file_id):
            return None
        logger.info("Transforming %s", file_id)
        options = self._options.model_copy(
            update={"format": OutputFormat.MODULE, "src_name": file_id}
        )
        result = compile_template(code, options)
        return TransformResult(code=result.code, map=result.source_map.to_json())
