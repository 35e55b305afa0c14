"""Table-of-contents generation for XHTML documents.

Rewrites a document in one streaming pass, replacing
``<?name.livitski.tools.html.toc ...?>`` directives with a generated TOC and
anchoring the indexed elements it links to.
"""

from htmltoc.config import ToolConfig
from htmltoc.directive import (
    PI_TARGET,
    Directive,
    DirectiveResult,
    Malformed,
    NotApplicable,
    Parsed,
    parse_directive,
)
from htmltoc.errors import TocContentError, TocError, TocInternalError
from htmltoc.formatter import TocEntry, TocFormatter
from htmltoc.ids import IdAllocator
from htmltoc.indexer import StreamIndexer
from htmltoc.outline import Level, WrapperSpec, resolve_levels
from htmltoc.transform import (
    TransformResult,
    transform_file,
    transform_stream,
    transform_text,
)

__version__ = "1.0.0"

__all__ = [
    "Directive",
    "DirectiveResult",
    "IdAllocator",
    "Level",
    "Malformed",
    "NotApplicable",
    "PI_TARGET",
    "Parsed",
    "StreamIndexer",
    "TocContentError",
    "TocEntry",
    "TocError",
    "TocFormatter",
    "TocInternalError",
    "ToolConfig",
    "TransformResult",
    "WrapperSpec",
    "parse_directive",
    "resolve_levels",
    "transform_file",
    "transform_stream",
    "transform_text",
]
