# sinmungo/services/uploads.py
from __future__ import annotations

import logging
import os
import re
import time
from datetime import datetime, timedelta
from typing import List, Optional, get_args

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sinmungo.core.errors import (
    NotFound,
    PermissionDenied,
    StorageError,
    UploadError,
    ValidationFailed,
)
from sinmungo.core.rbac import ensure_authenticated
from sinmungo.crud import attachment as crud_attachment
from sinmungo.models.attachment import Attachment
from sinmungo.models.user import User
from sinmungo.schemas.common import AttachmentFileType
from sinmungo.services.audit import audit_log
from sinmungo.services.issues import get_visible_issue
from sinmungo.services.storage import LocalBlobStore

log = logging.getLogger("sinmungo.uploads")

MAX_SIZE_BYTES = 10 * 1024 * 1024
ALLOWED_TYPES = frozenset({"application/pdf", "image/jpeg", "image/png", "image/webp"})
ATTACHMENT_URL_TTL_DAYS = int(os.getenv("ATTACHMENT_URL_TTL_DAYS", "365"))
FILE_TYPES = get_args(AttachmentFileType)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9가-힣._-]")


def validate_file(size: int, content_type: Optional[str]) -> None:
    """Reject oversized or unsupported files before anything is stored."""
    if size > MAX_SIZE_BYTES:
        raise UploadError("파일 크기는 10MB를 초과할 수 없습니다.")
    if (content_type or "").lower() not in ALLOWED_TYPES:
        raise UploadError("PDF, JPG, PNG, WEBP 파일만 업로드 가능합니다.")


def sanitize_file_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name or "file").lower()


def build_storage_path(issue_id: int, filename: str) -> str:
    return f"{issue_id}/{int(time.time() * 1000)}_{sanitize_file_name(filename)}"


def _url_ttl_seconds() -> int:
    return ATTACHMENT_URL_TTL_DAYS * 24 * 60 * 60


def upload_attachment(
    db: Session,
    store: LocalBlobStore,
    *,
    actor: Optional[User],
    issue_id: int,
    filename: str,
    content_type: Optional[str],
    data: bytes,
    file_type: str,
    ip: Optional[str] = None,
) -> Attachment:
    """
    Store the blob, then record it as an unapproved attachment.

    If the row cannot be written the blob is removed again, so no stored object is
    left without a record.
    """
    validate_file(len(data), content_type)
    actor = ensure_authenticated(actor)
    if file_type not in FILE_TYPES:
        raise ValidationFailed(f"알 수 없는 파일 유형입니다: {file_type}")
    # Unpublished issues only take files from their author (or an admin)
    get_visible_issue(db, issue_id, actor)

    key = build_storage_path(issue_id, filename)
    try:
        store.upload(key, data)
    except StorageError as exc:
        raise UploadError(f"파일 업로드 실패: {exc.message}")

    url, expires_at = store.create_signed_url(key, _url_ttl_seconds())

    att = Attachment(
        issue_id=issue_id,
        uploaded_by=actor.id,
        file_type=file_type,
        original_name=filename,
        storage_path=key,
        content_type=content_type.lower(),
        size_bytes=len(data),
        file_url=url,
        url_expires_at=expires_at,
        is_approved=False,
    )
    db.add(att)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("attachment row insert failed issue=%s key=%s", issue_id, key)
        store.remove([key])
        raise UploadError("파일 정보 저장 실패")
    db.refresh(att)

    log.info("attachment uploaded id=%s issue=%s bytes=%s", att.id, issue_id, att.size_bytes)
    audit_log(
        db,
        user_id=actor.id,
        action="ATTACHMENT_UPLOADED",
        entity_type="attachment",
        entity_id=att.id,
        meta={"issue_id": issue_id, "original_name": filename, "file_type": file_type},
        ip=ip,
    )
    return att


def list_my_attachments(db: Session, *, actor: Optional[User]) -> List[Attachment]:
    actor = ensure_authenticated(actor)
    return crud_attachment.list_by_uploader(db, actor.id)


def delete_attachment(
    db: Session,
    store: LocalBlobStore,
    attachment_id: int,
    *,
    actor: Optional[User],
    ip: Optional[str] = None,
) -> None:
    """Uploader-only, and only while the attachment is still unapproved."""
    actor = ensure_authenticated(actor)
    att = crud_attachment.get_attachment(db, attachment_id)
    if att is None:
        raise NotFound("파일을 찾을 수 없습니다.")
    if att.is_approved:
        raise UploadError("승인된 파일은 삭제할 수 없습니다.")
    if att.uploaded_by != actor.id:
        raise PermissionDenied("권한이 없습니다.")

    key, issue_id = att.storage_path, att.issue_id
    db.delete(att)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    store.remove([key])

    log.info("attachment deleted id=%s issue=%s by user=%s", attachment_id, issue_id, actor.id)
    audit_log(
        db,
        user_id=actor.id,
        action="ATTACHMENT_DELETED",
        entity_type="attachment",
        entity_id=attachment_id,
        meta={"issue_id": issue_id},
        ip=ip,
    )


def renew_expiring_attachment_urls(db: Session, store: LocalBlobStore, within_days: int = 30) -> int:
    """
    Re-sign attachment URLs that expire within `within_days`.
    Attachments whose blob has gone missing are skipped. Returns the number renewed.
    """
    cutoff = datetime.utcnow() + timedelta(days=within_days)
    renewed = 0
    for att in crud_attachment.list_expiring(db, cutoff):
        try:
            url, expires_at = store.create_signed_url(att.storage_path, _url_ttl_seconds())
        except NotFound:
            log.warning("attachment blob missing id=%s key=%s", att.id, att.storage_path)
            continue
        att.file_url = url
        att.url_expires_at = expires_at
        db.add(att)
        renewed += 1
    if renewed:
        db.commit()
    return renewed
