from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from library_api.models.member import MemberType

class MemberBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    national_id: str = Field(..., pattern=r"^\d{11}$")
    phone: Optional[str] = Field(None, pattern=r"^\d{10,11}$")
    member_type: MemberType

class MemberCreate(MemberBase):
    pass

class MemberUpdate(MemberBase):
    pass

class MemberResponse(BaseModel):
    id: str
    name: str
    email: str
    nationalId: str
    phone: Optional[str] = None
    memberType: str
    active: bool
    borrowLimit: int
    loanPeriodDays: int

    class Config:
        from_attributes = True

class MemberEligibility(BaseModel):
    memberId: str
    canBorrow: bool
    activeLoans: int
    borrowLimit: int
