from contextlib import contextmanager
from typing import Callable, Iterator

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile

from app.api.v1.schemas import (
    AcknowledgeSchema,
    AmbiguitySchema,
    CategoryRegistrationSchema,
    CategorySchema,
    CategorySelectionSchema,
    CategoryToggleSchema,
    CompletionSchema,
    DraftSchema,
    DraftUpdateSchema,
    FailedScheduleSchema,
    FailedUploadSchema,
    PhotoSchema,
    ProviderSchema,
    ScheduleEntryCreateSchema,
    ScheduleEntrySchema,
    ScheduleEntryUpdateSchema,
    ServiceEntrySchema,
    SessionStateSchema,
)
from app.application.exceptions import (
    InvalidStepError,
    OnboardingBusyError,
    OnboardingValidationError,
    RemoteOperationError,
)
from app.application.ports.marketplace_backend import MarketplaceBackendPort
from app.application.ports.onboarding_store import OnboardingStorePort
from app.application.use_cases.category_selection import CategorySelectionStep
from app.application.use_cases.onboarding_controller import OnboardingController
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.onboarding_session import OnboardingSession
from app.domain.entities.provider import BasicInfo, ProviderDocuments, ProviderIdentity
from app.domain.entities.schedule import ScheduleEntry
from app.domain.entities.service_draft import ServiceDraft
from app.domain.entities.service_entry import ServiceEntryResult
from app.wiring.dependencies import get_backend, get_controller_factory, get_onboarding_store

router = APIRouter()

ControllerFactory = Callable[[OnboardingSession], OnboardingController]


@contextmanager
def _http_errors() -> Iterator[None]:
    try:
        yield
    except OnboardingValidationError as e:
        raise HTTPException(status_code=400, detail={"message": str(e), "problems": e.problems})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (InvalidStepError, OnboardingBusyError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RemoteOperationError as e:
        raise HTTPException(
            status_code=502,
            detail={"operation": e.operation, "message": e.reason, "status_code": e.status_code},
        )


def _controller(session_id: str, store: OnboardingStorePort, factory: ControllerFactory) -> OnboardingController:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Onboarding session {session_id} not found")
    return factory(session)


async def _read_upload(upload: UploadFile | None) -> FileUpload | None:
    if upload is None or not upload.filename:
        return None
    return FileUpload(
        filename=upload.filename,
        content=await upload.read(),
        content_type=upload.content_type or "application/octet-stream",
    )


def _provider_view(identity: ProviderIdentity) -> ProviderSchema:
    return ProviderSchema(
        id=identity.id,
        full_name=identity.full_name,
        business_name=identity.business_name,
        email=identity.email,
        address=identity.address,
        contact_number=identity.contact_number,
        about=identity.about,
        is_active=identity.is_active,
    )


def _entry_view(entry: ScheduleEntry) -> ScheduleEntrySchema:
    return ScheduleEntrySchema(
        entry_id=entry.entry_id,
        weekday=entry.weekday,
        start_time=f"{entry.start:%H:%M}",
        end_time=f"{entry.end:%H:%M}",
    )


def _draft_view(draft: ServiceDraft) -> DraftSchema:
    return DraftSchema(
        category_id=draft.category_id,
        title=draft.title,
        description=draft.description,
        price=draft.price,
        duration_minutes=draft.duration_minutes,
        is_active=draft.is_active,
        schedules=[_entry_view(e) for e in draft.schedule.entries],
        photos=[PhotoSchema(photo_id=pid, filename=p.filename, size=p.size) for pid, p in draft.photos],
        suggested_weekday=draft.schedule.next_suggested_weekday(),
    )


def _result_view(result: ServiceEntryResult) -> ServiceEntrySchema:
    ambiguity = result.ambiguity
    return ServiceEntrySchema(
        status=result.status,
        category_id=result.category_id,
        service_id=result.service.id,
        provisional=result.provisional,
        notices=list(result.notices),
        photos_stored=len(result.photos.stored) if result.photos else 0,
        photos_failed=[
            FailedUploadSchema(index=f.index, filename=f.filename, error=f.error)
            for f in (result.photos.failed if result.photos else ())
        ],
        schedules_created=len(result.schedules.created) if result.schedules else 0,
        schedules_failed=[
            FailedScheduleSchema(entry_id=f.entry.entry_id, weekday=f.entry.weekday, error=f.error)
            for f in (result.schedules.failed if result.schedules else ())
        ],
        ambiguity=(
            AmbiguitySchema(
                operation=ambiguity.operation,
                reason=ambiguity.reason,
                prompt=ambiguity.prompt,
                corrective_steps=list(ambiguity.corrective_steps),
                status_code=ambiguity.status_code,
            )
            if ambiguity else None
        ),
    )


def _session_view(session: OnboardingSession) -> SessionStateSchema:
    return SessionStateSchema(
        session_id=session.session_id,
        step=session.step,
        provider=_provider_view(session.identity) if session.identity else None,
        selected_categories=sorted(session.selection),
        completed_categories=sorted(session.tracker.completed),
        remaining_categories=session.remaining_categories,
        can_add_service=session.can_add_service,
        can_finish=session.can_finish,
        draft=_draft_view(session.draft),
        pending=_result_view(session.pending) if session.pending else None,
    )


@router.post("/sessions", response_model=SessionStateSchema, status_code=201)
def create_session(store: OnboardingStorePort = Depends(get_onboarding_store)):
    return _session_view(store.create())


@router.get("/sessions/{session_id}", response_model=SessionStateSchema)
def get_session(session_id: str, store: OnboardingStorePort = Depends(get_onboarding_store)):
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Onboarding session {session_id} not found")
    return _session_view(session)


@router.delete("/sessions/{session_id}", status_code=204)
def discard_session(session_id: str, store: OnboardingStorePort = Depends(get_onboarding_store)):
    store.delete(session_id)
    return Response(status_code=204)


@router.get("/categories", response_model=list[CategorySchema])
async def list_categories(backend: MarketplaceBackendPort = Depends(get_backend)):
    with _http_errors():
        categories = await CategorySelectionStep(backend).available_categories()
    return [CategorySchema(id=c.id, name=c.name, description=c.description) for c in categories]


@router.post("/sessions/{session_id}/basic-info", response_model=SessionStateSchema)
async def submit_basic_info(
    session_id: str,
    full_name: str = Form(""),
    email: str = Form(""),
    address: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form(""),
    business_name: str = Form(""),
    about: str = Form(""),
    contact_number: str | None = Form(None),
    bir_id_front: UploadFile | None = File(None),
    bir_id_back: UploadFile | None = File(None),
    business_permit: UploadFile | None = File(None),
    image_logo: UploadFile | None = File(None),
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    info = BasicInfo(
        full_name=full_name,
        email=email,
        address=address,
        password=password,
        confirm_password=confirm_password,
        business_name=business_name,
        about=about,
        contact_number=contact_number or None,
    )
    documents = ProviderDocuments(
        bir_id_front=await _read_upload(bir_id_front),
        bir_id_back=await _read_upload(bir_id_back),
        business_permit=await _read_upload(business_permit),
        image_logo=await _read_upload(image_logo),
    )
    with _http_errors():
        await controller.submit_basic_info(info, documents)
    return _session_view(controller.session)


@router.post("/sessions/{session_id}/categories/toggle", response_model=SessionStateSchema)
def toggle_category(
    session_id: str,
    req: CategoryToggleSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        controller.toggle_category(req.category_id)
    return _session_view(controller.session)


@router.post("/sessions/{session_id}/categories", response_model=CategoryRegistrationSchema)
async def submit_categories(
    session_id: str,
    req: CategorySelectionSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        registration = await controller.submit_categories(req.category_ids)
    return CategoryRegistrationSchema(
        provider_id=registration.provider_id,
        confirmed_ids=sorted(registration.confirmed_ids),
        already_registered_ids=sorted(registration.already_registered_ids),
    )


@router.put("/sessions/{session_id}/draft", response_model=DraftSchema)
def update_draft(
    session_id: str,
    req: DraftUpdateSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        draft = controller.update_draft(**req.model_dump(exclude_unset=True))
    return _draft_view(draft)


@router.delete("/sessions/{session_id}/draft", response_model=DraftSchema)
def reset_draft(
    session_id: str,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        draft = controller.reset_draft()
    return _draft_view(draft)


@router.post("/sessions/{session_id}/draft/schedules", response_model=ScheduleEntrySchema, status_code=201)
def add_schedule_entry(
    session_id: str,
    req: ScheduleEntryCreateSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        entry = controller.add_schedule_entry(req.start_time, req.end_time, weekday=req.weekday)
    return _entry_view(entry)


@router.patch("/sessions/{session_id}/draft/schedules/{entry_id}", response_model=ScheduleEntrySchema)
def update_schedule_entry(
    session_id: str,
    entry_id: str,
    req: ScheduleEntryUpdateSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        entry = controller.update_schedule_entry(entry_id, req.field, req.value)
    return _entry_view(entry)


@router.delete("/sessions/{session_id}/draft/schedules/{entry_id}", response_model=DraftSchema)
def remove_schedule_entry(
    session_id: str,
    entry_id: str,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        controller.remove_schedule_entry(entry_id)
    return _draft_view(controller.draft)


@router.post("/sessions/{session_id}/draft/photos", response_model=DraftSchema)
async def attach_photos(
    session_id: str,
    photos: list[UploadFile] = File(...),
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    uploads = [u for u in [await _read_upload(p) for p in photos] if u is not None]
    with _http_errors():
        for upload in uploads:
            controller.attach_photo(upload)
    return _draft_view(controller.draft)


@router.delete("/sessions/{session_id}/draft/photos/{photo_id}", response_model=DraftSchema)
def remove_photo(
    session_id: str,
    photo_id: str,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        controller.remove_photo(photo_id)
    return _draft_view(controller.draft)


@router.post("/sessions/{session_id}/draft/submit", response_model=ServiceEntrySchema)
async def submit_draft(
    session_id: str,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        result = await controller.submit_current_draft()
    return _result_view(result)


@router.post("/sessions/{session_id}/draft/acknowledge", response_model=ServiceEntrySchema)
async def acknowledge_submission(
    session_id: str,
    req: AcknowledgeSchema,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        result = await controller.acknowledge_ambiguous(req.accept)
    return _result_view(result)


@router.post("/sessions/{session_id}/finish", response_model=CompletionSchema)
async def finish(
    session_id: str,
    store: OnboardingStorePort = Depends(get_onboarding_store),
    factory: ControllerFactory = Depends(get_controller_factory),
):
    controller = _controller(session_id, store, factory)
    with _http_errors():
        summary = await controller.finish()
    store.delete(session_id)
    return CompletionSchema(
        provider=_provider_view(summary.identity),
        access_token=summary.auth_session.access_token,
        fallback_session=summary.auth_session.fallback,
        completed_categories=sorted(summary.completed_categories),
        skipped_categories=summary.skipped_categories,
        services_set_up=summary.services_set_up,
        redirect_to=summary.home_path,
    )
