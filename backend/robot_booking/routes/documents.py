from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlmodel import Session

from ..auth import Caller, require
from ..db import get_session
from ..schemas import DocumentOut
from .. import documents

router = APIRouter(prefix="/api/document", tags=["documents"])


@router.post("/robot/{robot_id}", response_model=DocumentOut)
def upload_document(
    robot_id: int,
    title: str = Form(...),
    type: str = Form(...),
    description: Optional[str] = Form(None),
    file: UploadFile = File(...),
    caller: Caller = Depends(require("documents:write")),
    session: Session = Depends(get_session),
):
    document = documents.save_upload(
        session, robot_id, title, description, type, file.filename, file.file
    )
    return DocumentOut.model_validate(document)


@router.get("/{document_id}", response_model=DocumentOut)
def get_document(document_id: int, caller: Caller = Depends(require("documents:read")), session: Session = Depends(get_session)):
    return DocumentOut.model_validate(documents.get_document(session, document_id))


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(document_id: int, caller: Caller = Depends(require("documents:write")), session: Session = Depends(get_session)):
    documents.delete_document(session, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
