"""API v1 self-service routes for the signed-in account."""

from fastapi import APIRouter, Depends, File, UploadFile

from src.api.dependencies import get_account_service, get_principal
from src.api.models import AccountProfile, ErrorResponse, ProfilePictureResponse
from src.domain.accounts import AccountService
from src.domain.models import Principal

router = APIRouter(
    prefix="/user",
    tags=["user"],
    responses={401: {"model": ErrorResponse, "description": "Missing token"}},
)


@router.get("/profile", response_model=AccountProfile, summary="Get own profile")
def get_profile(
    principal: Principal = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> AccountProfile:
    return AccountProfile.from_account(service.get_account(principal.account_id))


@router.post(
    "/upload-profile-picture",
    response_model=ProfilePictureResponse,
    responses={400: {"model": ErrorResponse, "description": "No file or not an image"}},
    summary="Upload profile picture",
)
def upload_profile_picture(
    profile_picture: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
    service: AccountService = Depends(get_account_service),
) -> ProfilePictureResponse:
    data = profile_picture.file.read()
    account = service.upload_profile_picture(
        principal.account_id,
        data,
        profile_picture.filename or "upload",
        profile_picture.content_type or "application/octet-stream",
    )
    return ProfilePictureResponse(
        message="Profile picture updated", profile_picture=account.profile_picture
    )
