"""
API v1 routes - self-service onboarding and sign-in.

Defines the unauthenticated REST endpoints: registration, email
verification, sign-in, password reset and the idle-account check.
Domain errors propagate to the exception handlers in ``src.api.errors``.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import (
    get_authenticator,
    get_registration_service,
)
from src.api.models import (
    AccountProfile,
    CheckUserResponse,
    CodeRequest,
    EmailRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    VerifyRegisterResponse,
)
from src.domain.authentication import Authenticator
from src.domain.models import AccountCheck, ApprovalStatus
from src.domain.registration import RegistrationService

router = APIRouter(prefix="/auth", tags=["auth"])

_CODE_ERRORS = {400: {"model": ErrorResponse, "description": "Invalid or expired code"}}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Validation error or email taken"}},
    summary="Register a new user",
    description="Submit profile and credentials to begin registration. "
    "A numeric verification code will be sent to the provided email.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a new account and send verification code.

    - **name**, **surname**: Account holder's name
    - **email**: Valid email address to register
    - **password**: Password (minimum 8 characters)
    - **birthdate**: Date of birth (YYYY-MM-DD)

    Returns the assigned account number and code lifetime on success.
    """
    account = service.register(
        request_data.email,
        request_data.password,
        request_data.name,
        request_data.surname,
        request_data.birthdate,
    )
    return RegisterResponse(
        message="Registration request submitted successfully. "
        "Check your email for the verification code.",
        account_no=account.account_no,
        expires_in_seconds=service.otp.ttl_seconds,
    )


@router.post(
    "/verify-register",
    response_model=VerifyRegisterResponse,
    responses=_CODE_ERRORS,
    summary="Verify email with registration code",
)
def verify_register(
    request_data: CodeRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> VerifyRegisterResponse:
    new_status = service.verify_email(request_data.email, request_data.code)
    if new_status == ApprovalStatus.PENDING:
        message = "Email verified successfully. Waiting for admin approval."
    else:
        message = "Email verified successfully. Your account is now active!"
    return VerifyRegisterResponse(message=message, approval_status=new_status.value)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Not verified or not approved"},
    },
    summary="Sign in and obtain an access token",
)
def login(
    request_data: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> LoginResponse:
    """
    Exchange email and password for a bearer token.

    Send the token as ``Authorization: Bearer <token>`` on protected endpoints.
    """
    result = authenticator.sign_in(request_data.email, request_data.password)
    return LoginResponse(
        message="Sign-in successful",
        token=result.token,
        expires_in=result.expires_in,
        user=AccountProfile.from_account(result.account),
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Request a password reset code",
)
def forgot_password(
    request_data: EmailRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    service.forgot_password(request_data.email)
    return MessageResponse(message="Verification code sent to email")


@router.post(
    "/verify-code",
    response_model=MessageResponse,
    responses=_CODE_ERRORS,
    summary="Check a password reset code",
)
def verify_code(
    request_data: CodeRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    service.verify_code(request_data.email, request_data.code)
    return MessageResponse(message="Code verified successfully")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses=_CODE_ERRORS,
    summary="Set a new password with a reset code",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> MessageResponse:
    service.reset_password(request_data.email, request_data.code, request_data.new_password)
    return MessageResponse(message="Password reset successfully")


@router.post(
    "/check-user",
    response_model=CheckUserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Check approval; DELETES the account if it is not approved",
    description="Destructive: an account that is not approved (unverified, pending or "
    "rejected) is permanently deleted by this call.",
)
def check_user(
    request_data: EmailRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> CheckUserResponse:
    outcome = service.check_account(request_data.email)
    if outcome == AccountCheck.DELETED:
        return CheckUserResponse(
            message="User was not approved and has been deleted", deleted=True
        )
    return CheckUserResponse(message="User is approved", deleted=False)
