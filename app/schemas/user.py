from typing import Optional
from pydantic import BaseModel, field_validator


class UserCreate(BaseModel):
    email: str
    full_name: Optional[str] = None
    department: Optional[str] = None
    is_admin: bool = False

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class ProfileSchema(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    department: Optional[str] = None
    is_admin: bool = False
    is_active: bool = True

    model_config = {"from_attributes": True}
