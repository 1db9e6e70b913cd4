"""
Tests for the document store: typed folders, upload limits and best-effort deletes.
"""

import io
import os

import pytest

from robot_booking import documents
from robot_booking.errors import NotFound, PayloadTooLarge, ValidationFailed


@pytest.fixture
def robot(make_robot):
    return make_robot()


@pytest.mark.parametrize("doc_type,folder", [("pdf", "pdf"), ("IMAGE", "images"), ("text", "text")])
def test_upload_goes_to_type_folder(session, robot, doc_type, folder):
    doc = documents.save_upload(session, robot.id, "Guide", "How to", doc_type, "guide.bin", io.BytesIO(b"data"))

    assert doc.file_path.startswith(f"/uploads/{folder}/")
    assert doc.file_path.endswith("_guide.bin")
    assert doc.type == doc_type.lower()
    assert doc.robot_id == robot.id
    with open(documents.disk_path(doc.file_path), "rb") as f:
        assert f.read() == b"data"


def test_unknown_type_rejected(session, robot):
    with pytest.raises(ValidationFailed) as exc:
        documents.save_upload(session, robot.id, "Clip", None, "video", "clip.mp4", io.BytesIO(b"data"))
    assert exc.value.message == "Ogiltig filtyp"


def test_empty_file_rejected_and_not_recorded(session, robot):
    text_dir = os.path.join(documents.UPLOAD_ROOT, "text")
    before = set(os.listdir(text_dir)) if os.path.isdir(text_dir) else set()
    with pytest.raises(ValidationFailed) as exc:
        documents.save_upload(session, robot.id, "Empty", None, "text", "empty.txt", io.BytesIO(b""))
    assert exc.value.message == "Ingen fil har laddats upp"
    assert set(os.listdir(text_dir)) == before


def test_missing_robot(session):
    with pytest.raises(NotFound):
        documents.save_upload(session, 77, "Manual", None, "pdf", "m.pdf", io.BytesIO(b"data"))


def test_oversized_upload_rejected(session, robot, monkeypatch):
    monkeypatch.setattr(documents, "MAX_UPLOAD_BYTES", 4)
    with pytest.raises(PayloadTooLarge) as exc:
        documents.save_upload(session, robot.id, "Big", None, "pdf", "big.pdf", io.BytesIO(b"0123456789"))
    assert exc.value.status_code == 413


def test_delete_removes_file_then_record(session, robot):
    doc = documents.save_upload(session, robot.id, "Manual", None, "pdf", "m.pdf", io.BytesIO(b"data"))
    path = documents.disk_path(doc.file_path)
    doc_id = doc.id

    documents.delete_document(session, doc_id)

    assert not os.path.exists(path)
    with pytest.raises(NotFound):
        documents.get_document(session, doc_id)


def test_delete_survives_missing_file(session, robot):
    doc = documents.save_upload(session, robot.id, "Manual", None, "pdf", "m.pdf", io.BytesIO(b"data"))
    os.remove(documents.disk_path(doc.file_path))
    doc_id = doc.id

    documents.delete_document(session, doc_id)

    with pytest.raises(NotFound):
        documents.get_document(session, doc_id)
