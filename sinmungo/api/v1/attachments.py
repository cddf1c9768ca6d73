# sinmungo/api/v1/attachments.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from sinmungo.core.auth import get_current_user, get_db
from sinmungo.models.attachment import Attachment
from sinmungo.models.user import User
from sinmungo.schemas.attachment import AttachmentOut
from sinmungo.schemas.common import AttachmentFileType
from sinmungo.services import uploads
from sinmungo.services.audit import ip_from_request
from sinmungo.services.storage import LocalBlobStore, get_blob_store

router = APIRouter(tags=["attachments"])


@router.post(
    "/issues/{issue_id}/attachments",
    response_model=AttachmentOut,
    status_code=status.HTTP_201_CREATED,
)
def upload_attachment(
    issue_id: int,
    request: Request,
    file: UploadFile = File(...),
    file_type: AttachmentFileType = Form(...),
    db: Session = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store),
    current_user: User = Depends(get_current_user),
):
    """
    Upload evidence for an issue. The file waits for admin approval before other
    readers can see it.
    """
    # One byte past the limit is enough to reject it
    data = file.file.read(uploads.MAX_SIZE_BYTES + 1)
    return uploads.upload_attachment(
        db,
        store,
        actor=current_user,
        issue_id=issue_id,
        filename=file.filename or "file",
        content_type=file.content_type,
        data=data,
        file_type=file_type,
        ip=ip_from_request(request),
    )


@router.get("/attachments/mine", response_model=List[AttachmentOut])
def my_attachments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return uploads.list_my_attachments(db, actor=current_user)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    attachment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store),
    current_user: User = Depends(get_current_user),
):
    uploads.delete_attachment(
        db, store, attachment_id, actor=current_user, ip=ip_from_request(request)
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/files/{token}")
def download_file(
    token: str,
    db: Session = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store),
):
    """Serve a blob behind a signed reference. Expired or forged tokens are a 404."""
    key = store.resolve_signed_url(token)
    path = store.open(key)
    att = db.query(Attachment).filter(Attachment.storage_path == key).first()
    if att is None:
        return FileResponse(path)
    return FileResponse(path, media_type=att.content_type, filename=att.original_name)
