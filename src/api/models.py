"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Response models never carry password hashes or one-time codes.
"""

from datetime import date

from pydantic import BaseModel, EmailStr, Field

from src.domain.models import Account, RoleRecord

_CODE_FIELD = Field(
    ...,
    min_length=4,
    max_length=10,
    pattern=r"^\d+$",
    description="Numeric one-time code from email",
)


class RegisterRequest(BaseModel):
    """Request model for self-service registration."""

    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")
    birthdate: date


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    account_no: int | None
    expires_in_seconds: int


class CodeRequest(BaseModel):
    """Email plus one-time code (email verification and reset-code check)."""

    email: EmailStr
    code: str = _CODE_FIELD


class VerifyRegisterResponse(BaseModel):
    message: str
    approval_status: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AccountProfile(BaseModel):
    """Account as exposed to clients."""

    id: int
    account_no: int | None
    name: str
    surname: str
    email: str
    birthdate: date | None
    role: str
    approval_status: str
    is_verified: bool
    expired: bool
    profile_picture: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountProfile":
        return cls(
            id=account.id,
            account_no=account.account_no,
            name=account.name,
            surname=account.surname,
            email=account.email,
            birthdate=account.birthdate,
            role=account.role.value,
            approval_status=account.approval_status.value,
            is_verified=account.is_verified,
            expired=account.expired,
            profile_picture=account.profile_picture,
        )


class LoginResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountProfile


class EmailRequest(BaseModel):
    """Request carrying only an email address."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    code: str = _CODE_FIELD
    new_password: str = Field(..., min_length=8)


class CheckUserResponse(BaseModel):
    message: str
    deleted: bool


class ApproveRequest(BaseModel):
    role: str = Field("user", description="One of: user, admin, super admin")


class AccountDecisionResponse(BaseModel):
    message: str
    user: AccountProfile


class CreateAccountRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    birthdate: date
    role: str = Field(..., description="One of: user, admin, super admin")


class UpdateAccountRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=100)
    surname: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
    birthdate: date | None = None
    role: str | None = None
    expired: bool | None = None


class AccountResponse(BaseModel):
    message: str
    user: AccountProfile


class RoleModel(BaseModel):
    id: int
    name: str
    privileges: list[str]

    @classmethod
    def from_record(cls, role: RoleRecord) -> "RoleModel":
        return cls(id=role.id, name=role.name, privileges=list(role.privileges))


class CreateRoleRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    privileges: list[str] = Field(default_factory=list)


class UpdateRoleRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    privileges: list[str] | None = None


class RoleResponse(BaseModel):
    message: str
    role: RoleModel


class ProfilePictureResponse(BaseModel):
    message: str
    profile_picture: str


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
