"""Authentication state and device-code models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AuthStatus(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class DeviceCode(BaseModel):
    """Response of the device-code request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    device_code: str
    user_code: str
    verification_uri: str | None = None
    interval: int = Field(default=5, ge=1)
    expires_in: int = Field(default=900, ge=1)


class AuthState(BaseModel):
    """Current authentication state.

    While authenticating, the code fields are unset until the device code
    arrives; user_code is always set before the first token poll.
    expires_at is on the controller's clock.
    """

    model_config = ConfigDict(frozen=True)

    status: AuthStatus = AuthStatus.UNAUTHENTICATED
    device_code: str | None = None
    user_code: str | None = None
    verification_uri: str | None = None
    interval: int | None = None
    expires_at: float | None = None

    @classmethod
    def unauthenticated(cls) -> "AuthState":
        return cls()

    @classmethod
    def requesting_code(cls) -> "AuthState":
        return cls(status=AuthStatus.AUTHENTICATING)

    @classmethod
    def awaiting_user(cls, code: DeviceCode, issued_at: float) -> "AuthState":
        return cls(
            status=AuthStatus.AUTHENTICATING,
            device_code=code.device_code,
            user_code=code.user_code,
            verification_uri=code.verification_uri,
            interval=code.interval,
            expires_at=issued_at + code.expires_in,
        )

    @classmethod
    def authenticated(cls) -> "AuthState":
        return cls(status=AuthStatus.AUTHENTICATED)

    @property
    def is_authenticated(self) -> bool:
        return self.status is AuthStatus.AUTHENTICATED
