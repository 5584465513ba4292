"""Shared test fixtures for the site_migrator test suite."""

import pytest
import yaml

from site_migrator.providers.memory import InMemoryDestination, InMemorySource
from site_migrator.types import ListType


@pytest.fixture()
def source():
    """Return an empty in-memory source site."""
    return InMemorySource()


@pytest.fixture()
def destination():
    """Return an empty in-memory destination site."""
    return InMemoryDestination()


@pytest.fixture()
def invoices_source(source):
    """Return a source with an Invoices generic list holding records 1-3."""
    source.add_list("Invoices", ListType.GENERIC_LIST, 100)
    source.add_record(
        "Invoices", 1, {"Title": "INV-001", "Modified": "2011-03-01", "Created": "2011-02-01"}
    )
    source.add_record(
        "Invoices",
        2,
        {"Title": "INV-002", "Modified": "2011-03-02", "Created": "2011-02-02"},
        attachments={"receipt.pdf": b"%PDF-1.4 receipt"},
    )
    source.add_record(
        "Invoices", 3, {"Title": "INV-003", "Modified": "2011-03-03", "Created": "2011-02-03"}
    )
    return source


@pytest.fixture()
def library_source(source):
    """Return a source with a Docs library: a.txt, b.txt and Sub/c.txt."""
    source.add_list("Docs", ListType.DOCUMENT_LIBRARY, 101)
    source.add_file("/Docs/a.txt", b"alpha")
    source.add_file("/Docs/b.txt", b"bravo")
    source.add_file("/Docs/Sub/c.txt", b"charlie")
    return source


@pytest.fixture()
def export_dir(tmp_path):
    """Create a minimal on-disk site export with one list and one library.

    Returns the export root so tests can add more files as needed.
    """
    root = tmp_path / "export"
    invoices = root / "lists" / "Invoices"
    (invoices / "items").mkdir(parents=True)
    (invoices / "list.yaml").write_text(
        yaml.safe_dump({"title": "Invoices", "template": 100})
    )
    for record_id in (1, 2, 3):
        (invoices / "items" / f"{record_id}.yaml").write_text(
            yaml.safe_dump({"Title": f"INV-00{record_id}", "Author": "alice"})
        )
    attachments = invoices / "attachments" / "2"
    attachments.mkdir(parents=True)
    (attachments / "receipt.pdf").write_bytes(b"%PDF-1.4 receipt")

    docs = root / "lists" / "Docs"
    docs.mkdir(parents=True)
    (docs / "list.yaml").write_text(yaml.safe_dump({"title": "Docs", "template": 101}))
    site_docs = root / "site" / "Docs"
    (site_docs / "Sub").mkdir(parents=True)
    (site_docs / "a.txt").write_bytes(b"alpha")
    (site_docs / "Sub" / "c.txt").write_bytes(b"charlie")

    return root
