from mailbox_export.config import ExportOptions
from mailbox_export.exporters import MessageExporter
from mailbox_export.ledger import ExportLedger
from mailbox_export.utils import sha256_hex


def test_exports_are_recorded_with_checksums(source, export_logger, received, attachment, tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    ledger = ExportLedger(tmp_path / "db" / "ledger.db")
    source.add_message(
        "<a@example.com>",
        "Evidence",
        received,
        content=b"MIME",
        attachments=[attachment("x.bin", b"\x00\x01")],
    )

    MessageExporter(
        source,
        ExportOptions(output_dir=out, include_attachments=True),
        logger=export_logger,
        ledger=ledger,
    ).export("user@contoso.com", "<a@example.com>")

    rows = ledger.entries_for("<a@example.com>")
    assert [row["attachment_name"] for row in rows] == [None, "x.bin"]
    assert rows[0]["checksum"] == sha256_hex(b"MIME")
    assert rows[1]["size"] == 2
    assert rows[0]["owner"] == "user@contoso.com"
    assert rows[0]["message_id"] == "AAMk-0"


def test_reexport_replaces_the_row(tmp_path):
    ledger = ExportLedger(tmp_path / "ledger.db")
    for checksum in ("one", "two"):
        ledger.record(
            path=tmp_path / "f.eml",
            owner="user@contoso.com",
            internet_message_id="<a@example.com>",
            message_id="AAMk",
            checksum=checksum,
            size=1,
        )

    rows = ledger.entries_for("<a@example.com>")
    assert len(rows) == 1
    assert rows[0]["checksum"] == "two"
