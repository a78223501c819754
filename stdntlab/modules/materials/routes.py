from fastapi import APIRouter, Depends, HTTPException
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.materials.schemas import MaterialCreate, MaterialUpdate, MaterialResponse
from stdntlab.modules.materials.service import MaterialService
from stdntlab.core.dependencies import get_current_profile, check_group_member
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/materials", tags=["materials"])


def get_material_service(supabase: Client = Depends(get_supabase)) -> MaterialService:
    return MaterialService(supabase)


def _check_author_or_owner(material: Dict, profile: Dict, supabase: Client):
    if material["user_id"] == profile["id"]:
        return
    membership = check_group_member(material["group_id"], profile, supabase)
    if membership.get("role") != "owner":
        raise HTTPException(
            status_code=403,
            detail="Only the author or the group owner can modify this material"
        )


@router.get("/group/{group_id}", response_model=List[MaterialResponse])
async def list_materials(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, profile, supabase)
    return service.list_materials(group_id)


@router.post("/group/{group_id}", response_model=MaterialResponse, status_code=201)
async def create_material(
    group_id: int,
    material_data: MaterialCreate,
    profile: Dict = Depends(get_current_profile),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Share study material with the group"""
    check_group_member(group_id, profile, supabase)
    return service.create_material(group_id, profile["id"], material_data)


@router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(
    material_id: int,
    profile: Dict = Depends(get_current_profile),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    material = service.get_material(material_id)
    check_group_member(material["group_id"], profile, supabase)
    return MaterialResponse(**material)


@router.put("/{material_id}", response_model=MaterialResponse)
async def update_material(
    material_id: int,
    material_data: MaterialUpdate,
    profile: Dict = Depends(get_current_profile),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Edit material (author or group owner)"""
    _check_author_or_owner(service.get_material(material_id), profile, supabase)
    return service.update_material(material_id, material_data)


@router.delete("/{material_id}", status_code=204)
async def delete_material(
    material_id: int,
    profile: Dict = Depends(get_current_profile),
    service: MaterialService = Depends(get_material_service),
    supabase: Client = Depends(get_supabase)
):
    """Delete material (author or group owner)"""
    _check_author_or_owner(service.get_material(material_id), profile, supabase)
    service.delete_material(material_id)
    return None
