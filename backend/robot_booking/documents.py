import logging
import os
import uuid
from typing import BinaryIO, Optional

from sqlmodel import Session

from .config import MAX_UPLOAD_BYTES, UPLOAD_ROOT
from .errors import NotFound, PayloadTooLarge, ValidationFailed
from .models import Document, DocumentType, Robot

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"
CHUNK_SIZE = 1024 * 1024

# document type -> folder under the upload root
FOLDERS = {
    DocumentType.IMAGE: "images",
    DocumentType.PDF: "pdf",
    DocumentType.TEXT: "text",
}


def folder_for(doc_type: str) -> str:
    try:
        return FOLDERS[DocumentType((doc_type or "").lower())]
    except ValueError:
        raise ValidationFailed("Ogiltig filtyp")

def disk_path(file_path: str) -> str:
    relative = file_path[len(PUBLIC_PREFIX):] if file_path.startswith(PUBLIC_PREFIX) else file_path
    return os.path.join(UPLOAD_ROOT, relative.lstrip("/"))

def _write(fileobj: BinaryIO, target: str) -> int:
    written = 0
    with open(target, "wb") as out:
        while True:
            chunk = fileobj.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > MAX_UPLOAD_BYTES:
                break
            out.write(chunk)
    if written > MAX_UPLOAD_BYTES:
        os.remove(target)
        raise PayloadTooLarge(f"Filen får vara högst {MAX_UPLOAD_BYTES // (1024 * 1024)} MB")
    if written == 0:
        os.remove(target)
        raise ValidationFailed("Ingen fil har laddats upp")
    return written


def save_upload(
    session: Session,
    robot_id: int,
    title: str,
    description: Optional[str],
    doc_type: str,
    filename: Optional[str],
    fileobj: BinaryIO,
) -> Document:
    """Write the file to disk, then record it. No row is created if the write fails."""
    if not filename:
        raise ValidationFailed("Ingen fil har laddats upp")
    folder = folder_for(doc_type)
    if not session.get(Robot, robot_id):
        raise NotFound("Robot not found")

    directory = os.path.join(UPLOAD_ROOT, folder)
    os.makedirs(directory, exist_ok=True)
    stored_name = f"{uuid.uuid4()}_{os.path.basename(filename)}"
    size = _write(fileobj, os.path.join(directory, stored_name))

    document = Document(
        title=title,
        description=description,
        file_path=f"{PUBLIC_PREFIX}/{folder}/{stored_name}",
        type=doc_type.lower(),
        robot_id=robot_id,
    )
    session.add(document)
    session.commit()
    session.refresh(document)
    logger.info("Stored document %s for robot %s (%d bytes)", document.file_path, robot_id, size)
    return document

def get_document(session: Session, document_id: int) -> Document:
    document = session.get(Document, document_id)
    if not document:
        raise NotFound("Dokumentet hittades inte")
    return document

def remove_file(file_path: str) -> None:
    # best effort: a missing or locked file must not block the record delete
    path = disk_path(file_path)
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("Could not remove %s", path, exc_info=True)

def delete_document(session: Session, document_id: int) -> None:
    document = get_document(session, document_id)
    remove_file(document.file_path)
    session.delete(document)
    session.commit()
    logger.info("Deleted document %s", document_id)
