from pydantic import BaseModel, EmailStr, Field

class LibrarianCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: str = Field("librarian", pattern="^(librarian|admin)$")

class LibrarianLogin(BaseModel):
    email: EmailStr
    password: str

class LibrarianResponse(BaseModel):
    id: str
    name: str
    firstName: str
    lastName: str
    email: str
    role: str

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    librarian: LibrarianResponse
