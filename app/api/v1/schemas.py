from typing import Literal

from pydantic import BaseModel, Field

from app.domain.entities.onboarding_session import OnboardingStep
from app.domain.entities.schedule import Weekday
from app.domain.entities.service_entry import SubmissionStatus


class ProviderSchema(BaseModel):
    id: int
    full_name: str
    business_name: str
    email: str
    address: str | None = None
    contact_number: str | None = None
    about: str | None = None
    is_active: bool = True


class CategorySchema(BaseModel):
    id: int
    name: str
    description: str = ""


class CategoryToggleSchema(BaseModel):
    category_id: int


class CategorySelectionSchema(BaseModel):
    category_ids: list[int] | None = None


class CategoryRegistrationSchema(BaseModel):
    provider_id: int
    confirmed_ids: list[int]
    already_registered_ids: list[int] = Field(default_factory=list)


class ScheduleEntrySchema(BaseModel):
    entry_id: str
    weekday: Weekday
    start_time: str
    end_time: str


class ScheduleEntryCreateSchema(BaseModel):
    # Omitted weekday means the first free day, Monday first.
    weekday: Weekday | None = None
    start_time: str
    end_time: str


class ScheduleEntryUpdateSchema(BaseModel):
    field: Literal["weekday", "start", "end"]
    value: str


class PhotoSchema(BaseModel):
    photo_id: str
    filename: str
    size: int


class DraftSchema(BaseModel):
    category_id: int | None = None
    title: str = ""
    description: str | None = None
    price: float | None = None
    duration_minutes: int | None = None
    is_active: bool = True
    schedules: list[ScheduleEntrySchema] = Field(default_factory=list)
    photos: list[PhotoSchema] = Field(default_factory=list)
    suggested_weekday: Weekday


class DraftUpdateSchema(BaseModel):
    category_id: int | None = None
    title: str = ""
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    duration_minutes: int | None = Field(default=None, gt=0)
    is_active: bool = True


class FailedUploadSchema(BaseModel):
    index: int
    filename: str
    error: str


class FailedScheduleSchema(BaseModel):
    entry_id: str
    weekday: Weekday
    error: str


class AmbiguitySchema(BaseModel):
    operation: str
    reason: str
    prompt: str
    corrective_steps: list[str]
    status_code: int | None = None


class ServiceEntrySchema(BaseModel):
    status: SubmissionStatus
    category_id: int
    service_id: int
    provisional: bool
    notices: list[str] = Field(default_factory=list)
    photos_stored: int = 0
    photos_failed: list[FailedUploadSchema] = Field(default_factory=list)
    schedules_created: int = 0
    schedules_failed: list[FailedScheduleSchema] = Field(default_factory=list)
    ambiguity: AmbiguitySchema | None = None


class AcknowledgeSchema(BaseModel):
    accept: bool


class SessionStateSchema(BaseModel):
    session_id: str
    step: OnboardingStep
    provider: ProviderSchema | None = None
    selected_categories: list[int] = Field(default_factory=list)
    completed_categories: list[int] = Field(default_factory=list)
    remaining_categories: list[int] = Field(default_factory=list)
    can_add_service: bool = False
    can_finish: bool = False
    draft: DraftSchema
    pending: ServiceEntrySchema | None = None


class CompletionSchema(BaseModel):
    provider: ProviderSchema
    access_token: str
    fallback_session: bool
    completed_categories: list[int]
    skipped_categories: list[int]
    services_set_up: int
    redirect_to: str
