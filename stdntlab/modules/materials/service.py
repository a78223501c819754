from supabase import Client
from stdntlab.modules.materials.schemas import MaterialCreate, MaterialUpdate, MaterialResponse
from stdntlab.modules.users.service import UserService
from typing import Any, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class MaterialService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_materials(self, group_id: int) -> List[MaterialResponse]:
        """Group materials, newest first, with author names"""
        try:
            result = self.supabase.table("material")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .execute()
            materials = result.data or []
            names = UserService(self.supabase).get_names([m["user_id"] for m in materials])
            return [
                MaterialResponse(**m, author_name=names.get(m["user_id"], "Unknown"))
                for m in materials
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_material(self, material_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("material")\
                .select("*")\
                .eq("id", material_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Material not found")
        return result.data

    def create_material(self, group_id: int, user_id: int, material_data: MaterialCreate) -> MaterialResponse:
        try:
            result = self.supabase.table("material").insert({
                "group_id": group_id,
                "user_id": user_id,
                "title": material_data.title,
                "content": material_data.content,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create material")

            return MaterialResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating material in group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_material(self, material_id: int, material_data: MaterialUpdate) -> MaterialResponse:
        try:
            result = self.supabase.table("material")\
                .update({
                    "title": material_data.title,
                    "content": material_data.content,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("id", material_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Material not found")

            return MaterialResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating material {material_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_material(self, material_id: int) -> bool:
        try:
            result = self.supabase.table("material")\
                .delete()\
                .eq("id", material_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.error(f"Error deleting material {material_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
