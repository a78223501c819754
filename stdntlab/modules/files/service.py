from supabase import Client
from stdntlab.config import settings
from stdntlab.modules.files.schemas import GroupFileResponse, SignedUrlResponse
from stdntlab.modules.users.service import UserService
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging
import re
import time
import uuid

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", file_name)


def build_storage_path(group_id: int, user_id: int, file_name: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{group_id}/{user_id}/{timestamp_ms}-{sanitize_file_name(file_name)}"


class FileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.bucket_name = settings.storage_bucket

    @property
    def bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload_file(
        self,
        group_id: int,
        user_id: int,
        file_name: str,
        content: bytes,
        mimetype: Optional[str] = None
    ) -> GroupFileResponse:
        """Store the object, then its files row; the object is removed again if the row insert fails"""
        if len(content) > settings.max_file_size_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds the {settings.max_file_size_bytes // (1024 * 1024)}MB limit"
            )

        mimetype = mimetype or "application/octet-stream"
        storage_path = build_storage_path(group_id, user_id, file_name)

        try:
            self.bucket.upload(
                path=storage_path,
                file=content,
                file_options={"cache-control": "3600", "content-type": mimetype, "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Failed to upload {file_name} to storage: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to upload {file_name}")

        try:
            result = self.supabase.table("files").insert({
                "user_id": user_id,
                "group_id": group_id,
                "file_id": str(uuid.uuid4()),
                "path": storage_path,
                "file_name": file_name,
                "mimetype": mimetype,
                "size": len(content),
            }).execute()
            if not result.data:
                raise ValueError("insert returned no rows")
        except Exception as e:
            logger.error(f"Failed to save file record for {storage_path}: {e}")
            try:
                self.bucket.remove([storage_path])
            except Exception as cleanup_error:
                logger.error(f"Failed to remove orphaned object {storage_path}: {cleanup_error}")
            raise HTTPException(status_code=500, detail=f"Failed to save {file_name}")

        return GroupFileResponse(**result.data[0])

    def list_files(self, group_id: int) -> List[GroupFileResponse]:
        try:
            result = self.supabase.table("files")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .execute()
            files = result.data or []
            names = UserService(self.supabase).get_names([f["user_id"] for f in files])
            return [
                GroupFileResponse(**f, uploader_name=names.get(f["user_id"], "Unknown"))
                for f in files
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_file(self, file_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("files")\
                .select("*")\
                .eq("id", file_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="File not found")
        return result.data

    def get_signed_url(self, file_id: int) -> SignedUrlResponse:
        """Temporary link for viewing the file"""
        file = self.get_file(file_id)
        expires_in = settings.signed_url_expiry_seconds
        try:
            signed = self.bucket.create_signed_url(file["path"], expires_in)
        except Exception as e:
            logger.error(f"Failed to sign URL for {file['path']}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create file link")

        url = signed.get("signedUrl") or signed.get("signedURL")
        if not url:
            raise HTTPException(status_code=500, detail="Failed to create file link")
        return SignedUrlResponse(url=url, expires_in=expires_in)

    def download_file(self, file_id: int) -> Tuple[bytes, str, str]:
        """Object bytes with the original file name and mimetype"""
        file = self.get_file(file_id)
        try:
            content = self.bucket.download(file["path"])
        except Exception as e:
            logger.error(f"Failed to download {file['path']}: {e}")
            raise HTTPException(status_code=500, detail="Failed to download file")
        return content, file["file_name"], file.get("mimetype") or "application/octet-stream"

    def delete_file(self, file_id: int) -> bool:
        """Remove the object and the row; a storage failure does not keep the row"""
        file = self.get_file(file_id)
        try:
            self.bucket.remove([file["path"]])
        except Exception as e:
            logger.error(f"Storage delete failed for {file['path']}: {e}")

        try:
            self.supabase.table("files")\
                .delete()\
                .eq("id", file_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting file record {file_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        return True
