from __future__ import annotations

from dataclasses import dataclass, fields

from app.domain.entities.file_upload import FileUpload

REQUIRED_TEXT_FIELDS = ("full_name", "email", "address", "password", "business_name", "about")


@dataclass(frozen=True)
class BasicInfo:
    full_name: str
    email: str
    address: str
    password: str
    confirm_password: str
    business_name: str
    about: str
    contact_number: str | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_TEXT_FIELDS if not (getattr(self, name) or "").strip()]


@dataclass(frozen=True)
class ProviderDocuments:
    """The four documents a provider must upload to register."""

    bir_id_front: FileUpload | None = None
    bir_id_back: FileUpload | None = None
    business_permit: FileUpload | None = None
    image_logo: FileUpload | None = None

    def missing(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]

    def as_files(self) -> dict[str, FileUpload]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class ProviderIdentity:
    id: int
    full_name: str
    business_name: str
    email: str
    address: str | None = None
    contact_number: str | None = None
    about: str | None = None
    is_active: bool = True

