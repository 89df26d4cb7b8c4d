"""Tests for AL object metadata extraction."""

from unittest.mock import MagicMock

from src.services.reviewer.diff_parser import FileDiff
from src.services.reviewer.metadata import extract_metadata, scan_object_metadata

CODEUNIT = """namespace Contoso.Sales;

using Microsoft.Sales.Document;
using "Microsoft.Foundation";

// codeunit 1 "Not The Header"
codeunit 50100 "Sales Helper"
{
    Access = Internal;
    Caption = 'Sales Helper';
    Access = Public;
    Unknown = 1;

    trigger OnRun()
    begin
        Subtype = Test;
    end;

    procedure Post()
    begin
    end;
}
"""

TABLE_EXTENSION = """tableextension 50101 CustomerExt extends Customer
{
    DataClassification = CustomerContent;

    fields
    {
        field(50100; "Loyalty Tier"; Code[10])
        {
            Caption = 'Loyalty Tier';
        }
    }
}
"""


def _changed(path, **flags):
    return FileDiff(path=path, from_path=path, to_path=path, **flags)


class TestScanObjectMetadata:
    """Tests for scan_object_metadata function."""

    def test_codeunit_header_and_preamble(self):
        """Read namespace, usings, header and leading properties."""
        metadata = scan_object_metadata("src/Sales.al", CODEUNIT)

        assert metadata is not None
        assert metadata.kind == "codeunit"
        assert metadata.id == 50100
        assert metadata.name == "Sales Helper"
        assert metadata.extends is None
        assert metadata.namespace == "Contoso.Sales"
        assert metadata.usings == ["Microsoft.Sales.Document", "Microsoft.Foundation"]

    def test_properties_stop_at_first_section(self):
        """Keep recognized properties before the first section, first value wins."""
        metadata = scan_object_metadata("src/Sales.al", CODEUNIT)

        assert metadata.properties == {"Access": "Internal", "Caption": "Sales Helper"}

    def test_extension_object(self):
        """Extension objects record their target."""
        metadata = scan_object_metadata("src/CustomerExt.al", TABLE_EXTENSION)

        assert metadata.kind == "tableextension"
        assert metadata.name == "CustomerExt"
        assert metadata.extends == "Customer"
        assert metadata.properties == {"DataClassification": "CustomerContent"}

    def test_no_object_header(self):
        """Files without an object header have no metadata."""
        assert scan_object_metadata("src/readme.al", "// just a note\n") is None


class TestExtractMetadata:
    """Tests for extract_metadata function."""

    def test_reads_head_content(self):
        """Resolve the file and scan it."""
        resolver = MagicMock(return_value=CODEUNIT)

        metadata = extract_metadata(_changed("src/Sales.al"), resolver)

        resolver.assert_called_once_with("src/Sales.al")
        assert metadata.path == "src/Sales.al"
        assert metadata.name == "Sales Helper"

    def test_other_extension_not_resolved(self):
        """Files outside the configured extensions are skipped."""
        resolver = MagicMock(return_value=CODEUNIT)

        assert extract_metadata(_changed("docs/readme.md"), resolver) is None
        resolver.assert_not_called()

    def test_custom_extensions(self):
        """Extensions are configurable and case-insensitive."""
        resolver = MagicMock(return_value=CODEUNIT)

        metadata = extract_metadata(_changed("src/Sales.AL.txt"), resolver, extensions=(".al.txt",))

        assert metadata is not None

    def test_deleted_file(self):
        """Deleted files have no head revision to scan."""
        resolver = MagicMock(return_value=CODEUNIT)

        assert extract_metadata(_changed("src/Sales.al", is_deleted=True), resolver) is None
        resolver.assert_not_called()

    def test_content_unavailable(self):
        """A resolver returning None yields no metadata."""
        assert extract_metadata(_changed("src/Sales.al"), lambda path: None) is None
