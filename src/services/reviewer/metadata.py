"""Best-effort extraction of AL object metadata for the review prompt.

Reads the head revision of a changed ``.al`` file and picks out the object
header (``codeunit 50100 "Sales Helper"``), the declared namespace, the
``using`` directives and the object-level properties that precede the first
section (fields, layout, triggers, procedures, ...). Files without an object
header simply have no metadata.
"""

import re
from typing import Iterable, Optional

from src.core.logging import get_logger
from src.services.reviewer.diff_parser import FileDiff
from src.services.reviewer.schemas import ObjectMetadata
from src.services.reviewer.snippets import FileContentResolver, split_lines

logger = get_logger("reviewer.metadata")

DEFAULT_EXTENSIONS = (".al",)

OBJECT_KINDS = (
    "tableextension",
    "table",
    "pageextension",
    "page",
    "codeunit",
    "reportextension",
    "report",
    "query",
    "xmlport",
    "enumextension",
    "enum",
    "permissionsetextension",
    "permissionset",
)

_IDENTIFIER = r'"(?:[^"]|"")+"|[A-Za-z_][\w.]*'

HEADER_RE = re.compile(
    rf"^({'|'.join(OBJECT_KINDS)})\s+(\d+)\s+({_IDENTIFIER})(?:\s+extends\s+({_IDENTIFIER}))?",
    re.IGNORECASE,
)
NAMESPACE_RE = re.compile(r"^namespace\s+([^;]+?)\s*;", re.IGNORECASE)
USING_RE = re.compile(r"^using\s+([^;]+?)\s*;", re.IGNORECASE)
PROPERTY_RE = re.compile(r"^([A-Za-z][A-Za-z0-9]*)\s*=\s*(.+?)\s*;\s*(?://.*)?$")
SECTION_RE = re.compile(
    r"^(?:(?:local|internal|protected)\s+)?"
    r"(fields|keys|fieldgroups|layout|actions|views|dataset|requestpage|labels|"
    r"elements|schema|value|trigger|procedure|var|area|column|dataitem|rendering)\b",
    re.IGNORECASE,
)

RECOGNIZED_PROPERTIES = {
    name.lower(): name
    for name in (
        "Caption",
        "Description",
        "Access",
        "Subtype",
        "TableNo",
        "SourceTable",
        "SourceTableView",
        "PageType",
        "ApplicationArea",
        "UsageCategory",
        "DataClassification",
        "DataCaptionFields",
        "LookupPageId",
        "DrillDownPageId",
        "Extensible",
        "TableType",
        "SingleInstance",
        "EventSubscriberInstance",
        "Permissions",
        "InherentPermissions",
        "InherentEntitlements",
        "DefaultLayout",
        "ProcessingOnly",
        "QueryType",
        "Direction",
        "Format",
        "Assignable",
        "Editable",
        "ObsoleteState",
        "ObsoleteReason",
        "ObsoleteTag",
    )
}


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        quote = value[0]
        return value[1:-1].replace(quote * 2, quote)
    return value


def has_metadata_extension(path: str, extensions: Iterable[str]) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def scan_object_metadata(path: str, content: str) -> Optional[ObjectMetadata]:
    """Scan AL source text for an object header and its leading properties."""
    namespace: Optional[str] = None
    usings: list[str] = []
    header: Optional[re.Match] = None
    properties: dict[str, str] = {}

    for raw_line in split_lines(content):
        line = raw_line.strip()
        if not line or line.startswith("//"):
            continue

        if header is None:
            match = NAMESPACE_RE.match(line)
            if match:
                if namespace is None:
                    namespace = _unquote(match.group(1))
                continue
            match = USING_RE.match(line)
            if match:
                usings.append(_unquote(match.group(1)))
                continue
            header = HEADER_RE.match(line)
            continue

        if SECTION_RE.match(line):
            break

        match = PROPERTY_RE.match(line)
        if not match:
            continue
        key = RECOGNIZED_PROPERTIES.get(match.group(1).lower())
        if key and key not in properties:
            properties[key] = _unquote(match.group(2))

    if header is None:
        return None

    kind, object_id, name, extends = header.groups()
    return ObjectMetadata(
        path=path,
        kind=kind.lower(),
        id=int(object_id),
        name=_unquote(name),
        extends=_unquote(extends) if extends else None,
        namespace=namespace,
        usings=usings,
        properties=properties,
    )


def extract_metadata(
    file_diff: FileDiff,
    resolver: FileContentResolver,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
) -> Optional[ObjectMetadata]:
    """Extract object metadata from the head revision of a changed file.

    Returns None for deleted files, non-matching extensions, unreadable
    content and files without an object header.
    """
    if file_diff.is_deleted or not has_metadata_extension(file_diff.path, extensions):
        return None

    content = resolver(file_diff.path)
    if content is None:
        logger.debug(f"No content for {file_diff.path}, skipping metadata")
        return None

    metadata = scan_object_metadata(file_diff.path, content)
    if metadata:
        logger.debug(f"Metadata for {file_diff.path}: {metadata.kind} {metadata.id} {metadata.name}")
    return metadata
