import hashlib
import time
import logging
from supabase import Client
from stdntlab.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TokenCache:
    """Short-lived map of bearer token -> auth user, so parallel requests share one Supabase lookup"""

    def __init__(self, ttl_seconds: float = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expiry = entry
        if time.monotonic() >= expiry:
            del self._entries[key]
            return None
        return user_data

    def put(self, token: str, user_data: Dict[str, Any]):
        if len(self._entries) < self.max_size:
            self._entries[self._key(token)] = (user_data, time.monotonic() + self.ttl_seconds)

    def drop(self, token: str):
        self._entries.pop(self._key(token), None)

    def clear(self):
        self._entries.clear()


token_cache = TokenCache()


def clear_auth_cache():
    token_cache.clear()


def display_name(email: Optional[str], metadata: Optional[Dict[str, Any]] = None, name: Optional[str] = None) -> str:
    """Explicit name, else the name stored at sign-up, else the part of the email before the @"""
    for candidate in (name, (metadata or {}).get("name")):
        if candidate and candidate.strip():
            return candidate.strip()
    return (email or "").split("@")[0]


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def ensure_profile(self, auth_user_id: str, email: str, name: str) -> Optional[int]:
        """
        Numeric Users.id for an auth account, creating the Users row when it
        is missing. Failures are logged and give None; the caller still has a
        valid auth session.
        """
        try:
            existing = self.supabase.table("Users")\
                .select("id")\
                .eq("user_id", auth_user_id)\
                .maybe_single()\
                .execute()
            if existing and existing.data:
                return existing.data["id"]

            result = self.supabase.table("Users").insert({
                "user_id": auth_user_id,
                "email": email,
                "name": name,
            }).execute()
            if result.data:
                logger.info(f"Created profile {result.data[0]['id']} for auth user {auth_user_id}")
                return result.data[0]["id"]
        except Exception as e:
            logger.error(f"Failed to ensure profile row for {auth_user_id}: {e}")
        return None

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register with Supabase Auth; the Users profile row is created right away"""
        name = display_name(register_data.email, name=register_data.name)
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": {"name": name}
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

        auth_user = auth_response.user
        email = auth_user.email or register_data.email
        return RegisterResponse(
            user_id=auth_user.id,
            profile_id=self.ensure_profile(auth_user.id, email, name),
            email=email,
            message="User registered successfully"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Password sign-in; accounts created outside this API get their profile row here"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

        auth_user = auth_response.user
        email = auth_user.email or login_data.email
        profile_id = self.ensure_profile(
            auth_user.id, email, display_name(email, getattr(auth_user, "user_metadata", None))
        )
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=auth_user.id,
            profile_id=profile_id,
            email=email
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Auth user for a bearer token (cached for a minute)"""
        cached = token_cache.get(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
        }
        token_cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        token_cache.drop(token)
        try:
            # Supabase tokens are stateless JWTs; they expire on their own
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")
            return False
