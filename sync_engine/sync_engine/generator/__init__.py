"""DDL generation from schema graphs."""

from sync_engine.generator.ddl_generator import (
    DDL_MIME_TYPE,
    ENUM_SECTION_HEADER,
    FK_SECTION_HEADER,
    download_filename,
    generate,
    generate_ddl,
    generate_for_graph,
)
from sync_engine.generator.identifiers import (
    constraint_name,
    index_name,
    needs_quoting,
    quote_identifier,
    sanitize_name,
)

__all__ = [
    "DDL_MIME_TYPE",
    "ENUM_SECTION_HEADER",
    "FK_SECTION_HEADER",
    "constraint_name",
    "download_filename",
    "generate",
    "generate_ddl",
    "generate_for_graph",
    "index_name",
    "needs_quoting",
    "quote_identifier",
    "sanitize_name",
]
