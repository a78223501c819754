from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from fastapi.responses import Response
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.files.schemas import GroupFileResponse, SignedUrlResponse
from stdntlab.modules.files.service import FileService
from stdntlab.core.dependencies import get_current_profile, check_group_member
from supabase import Client
from typing import List, Dict
from urllib.parse import quote

router = APIRouter(prefix="/files", tags=["files"])


def get_file_service(supabase: Client = Depends(get_supabase)) -> FileService:
    return FileService(supabase)


@router.post("/group/{group_id}", response_model=GroupFileResponse, status_code=201)
async def upload_file(
    group_id: int,
    file: UploadFile = File(...),
    profile: Dict = Depends(get_current_profile),
    service: FileService = Depends(get_file_service),
    supabase: Client = Depends(get_supabase)
):
    """Upload a file to the group collection"""
    check_group_member(group_id, profile, supabase)
    if not file.filename:
        raise HTTPException(status_code=400, detail="File name is required")
    content = await file.read()
    return service.upload_file(group_id, profile["id"], file.filename, content, file.content_type)


@router.get("/group/{group_id}", response_model=List[GroupFileResponse])
async def list_files(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: FileService = Depends(get_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, profile, supabase)
    return service.list_files(group_id)


@router.get("/{file_id}/url", response_model=SignedUrlResponse)
async def get_file_url(
    file_id: int,
    profile: Dict = Depends(get_current_profile),
    service: FileService = Depends(get_file_service),
    supabase: Client = Depends(get_supabase)
):
    """Signed URL valid for one hour"""
    check_group_member(service.get_file(file_id)["group_id"], profile, supabase)
    return service.get_signed_url(file_id)


@router.get("/{file_id}/download")
async def download_file(
    file_id: int,
    profile: Dict = Depends(get_current_profile),
    service: FileService = Depends(get_file_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(service.get_file(file_id)["group_id"], profile, supabase)
    content, file_name, mimetype = service.download_file(file_id)
    return Response(
        content=content,
        media_type=mimetype,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"}
    )


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: int,
    profile: Dict = Depends(get_current_profile),
    service: FileService = Depends(get_file_service),
    supabase: Client = Depends(get_supabase)
):
    """Delete a file (uploader or group owner)"""
    file = service.get_file(file_id)
    if file["user_id"] != profile["id"]:
        membership = check_group_member(file["group_id"], profile, supabase)
        if membership.get("role") != "owner":
            raise HTTPException(status_code=403, detail="Only the uploader or the group owner can delete this file")
    service.delete_file(file_id)
    return None
