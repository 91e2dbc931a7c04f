from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from library_api.database import get_db
from library_api.models.member import MemberType
from library_api.services.auth import get_current_librarian, require_admin
from library_api.services.member_service import MemberService
from library_api.schemas.member import MemberCreate, MemberUpdate, MemberResponse, MemberEligibility

router = APIRouter(
    prefix="/api/members",
    tags=["Members"],
    dependencies=[Depends(get_current_librarian)]
)

@router.get("", response_model=List[MemberResponse])
async def list_members(
    search: Optional[str] = Query(None, description="Search by name or email"),
    member_type: Optional[MemberType] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    members = MemberService(db).list_members(
        search, member_type.value if member_type else None, skip, limit
    )
    return [MemberResponse(**member.to_dict()) for member in members]

@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(member_id: int, db: Session = Depends(get_db)):
    return MemberResponse(**MemberService(db).get_member(member_id).to_dict())

@router.get("/{member_id}/eligibility", response_model=MemberEligibility)
async def get_member_eligibility(member_id: int, db: Session = Depends(get_db)):
    """Whether the member may take out another loan."""
    service = MemberService(db)
    member = service.get_member(member_id)
    return MemberEligibility(
        memberId=str(member.member_id),
        canBorrow=service.can_borrow(member_id),
        activeLoans=service.active_loan_count(member_id),
        borrowLimit=member.borrow_limit
    )

@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(data: MemberCreate, db: Session = Depends(get_db)):
    """Register a member. The borrowing limit comes from the member type."""
    return MemberResponse(**MemberService(db).create_member(data).to_dict())

@router.put("/{member_id}", response_model=MemberResponse)
async def update_member(member_id: int, data: MemberUpdate, db: Session = Depends(get_db)):
    return MemberResponse(**MemberService(db).update_member(member_id, data).to_dict())

@router.delete("/{member_id}", response_model=MemberResponse, dependencies=[Depends(require_admin)])
async def deactivate_member(member_id: int, db: Session = Depends(get_db)):
    return MemberResponse(**MemberService(db).deactivate_member(member_id).to_dict())
