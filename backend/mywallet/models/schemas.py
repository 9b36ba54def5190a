from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from mywallet.core.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_TRANSACTION_VALUE = 1e12


class TransactionKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: StrictStr = Field(min_length=1)
    email: EmailStr
    password: StrictStr = Field(min_length=1)
    confirm_password: StrictStr = Field(alias="confirmPassword")


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: StrictStr = Field(min_length=1)


class TransactionCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    description: StrictStr = Field(min_length=1)
    value: float = Field(gt=0, le=MAX_TRANSACTION_VALUE, allow_inf_nan=False)

    @field_validator("value", mode="before")
    @classmethod
    def reject_bool(cls, v):
        if isinstance(v, bool):
            raise ValueError("value must be a number")
        return v


class TokenResponse(BaseModel):
    token: str


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    created_at: datetime | None = None


class TransactionOut(BaseModel):
    description: str
    value: float
    kind: str
    date: str


class HomeResponse(BaseModel):
    name: str
    transactions: list[TransactionOut]
    balance: float


def format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request body"


def parse_payload(model: type[ModelT], data: Any) -> ModelT:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(format_errors(exc))
