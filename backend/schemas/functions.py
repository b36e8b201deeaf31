# backend/schemas/functions.py
# Request bodies of the privileged RPC endpoints. Fields are optional so a
# missing value surfaces as the 400 validation shape instead of a 422.
from pydantic import BaseModel, Field
from typing import Optional

class VerifyAdminPasswordRequest(BaseModel):
    password: Optional[str] = None
    target_user_id: Optional[int] = Field(None, alias="targetUserId")

class PromoteToAdminRequest(BaseModel):
    password: Optional[str] = None

class HashPasswordRequest(BaseModel):
    password: Optional[str] = None

class DeleteUserRequest(BaseModel):
    user_id: Optional[int] = Field(None, alias="userId")

class OcrRequest(BaseModel):
    image_base64: Optional[str] = Field(None, alias="imageBase64")

class PromotionPasswordUpdate(BaseModel):
    password: str = Field(min_length=8)
