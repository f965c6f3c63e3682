# web/forms.py
from typing import Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from core.errors import flatten_validation_errors

FormT = TypeVar("FormT", bound="Form")


def _valid_email(value: str) -> str:
    # "Name <addr>" is valid for pydantic but not as a plain address
    if "<" in value or ">" in value:
        raise PydanticCustomError("email", "Please enter a valid email.")
    try:
        _, email = validate_email(value)
    except PydanticCustomError:
        raise PydanticCustomError("email", "Please enter a valid email.")
    return email.lower()


class Form(BaseModel):
    @classmethod
    def check_raw(cls, data: Dict[str, str]) -> Dict[str, List[str]]:
        """Cross-field checks run on the submitted values, even when fields fail."""
        return {}


# ============================================================
# ✅ Sign in
# ============================================================
class SignInForm(Form):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < 1:
            raise PydanticCustomError("password", "Please enter a password.")
        return value


# ============================================================
# ✅ Sign up
# ============================================================
class SignUpForm(Form):
    name: str
    email: str
    password: str
    password_confirmation: str

    @field_validator("name")
    @classmethod
    def check_full_name(cls, value: str) -> str:
        if len(value.split(" ")) <= 1:
            raise PydanticCustomError("full_name", "Please enter your full name.")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _valid_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < 6:
            raise PydanticCustomError("password", "Password should be at least 6 characters.")
        return value

    @classmethod
    def check_raw(cls, data: Dict[str, str]) -> Dict[str, List[str]]:
        if data.get("password") != data.get("password_confirmation"):
            return {"password_confirmation": ["Passwords do not match."]}
        return {}


def parse_form(
    form_class: Type[FormT], data: Mapping[str, str]
) -> Tuple[Optional[FormT], Optional[Dict[str, List[str]]]]:
    """Validate form data, returning either the form or its field errors."""
    data = dict(data)
    form: Optional[FormT] = None
    errors: Dict[str, List[str]] = {}

    try:
        form = form_class.model_validate(data)
    except ValidationError as exc:
        errors = flatten_validation_errors(exc.errors())

    for field, messages in form_class.check_raw(data).items():
        errors.setdefault(field, []).extend(messages)

    if errors:
        return None, errors
    return form, None
