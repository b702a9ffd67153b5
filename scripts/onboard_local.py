#!/usr/bin/env python3
"""
Interactive local onboarding harness (no HTTP server, mock backend).

Usage:
  python3 scripts/onboard_local.py

What it does:
- Registers a demo provider against MockMarketplaceBackend
- Lets you pick categories, then fill and submit one service per category
- Prints notices, the acknowledgement prompt when a result is ambiguous, and the final summary
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.application.exceptions import OnboardingError, OnboardingValidationError
from app.domain.entities.file_upload import FileUpload
from app.domain.entities.onboarding_session import OnboardingSession
from app.domain.entities.provider import BasicInfo, ProviderDocuments
from app.domain.entities.service_entry import ServiceEntryResult, SubmissionStatus
from app.infrastructure.marketplace.mock_backend import MockMarketplaceBackend
from app.wiring.dependencies import build_controller


def _doc(name: str) -> FileUpload:
    return FileUpload(filename=f"{name}.png", content=b"\x89PNG demo", content_type="image/png")


def _ask(prompt: str, default: str = "") -> str:
    raw = input(f"{prompt}{f' [{default}]' if default else ''}: ").strip()
    return raw or default


def _print_result(result: ServiceEntryResult) -> None:
    print("\n--- Submission ---")
    print(f"status: {result.status.value}")
    print(f"service_id: {result.service.id}{' (provisional)' if result.provisional else ''}")
    for notice in result.notices:
        print(f"notice: {notice}")
    print("-" * 60)


async def _fill_draft(controller) -> None:
    remaining = controller.session.remaining_categories
    print(f"\nCategories without a service: {remaining}")
    category_id = int(_ask("category id", str(remaining[0])))
    controller.update_draft(
        category_id=category_id,
        title=_ask("title", "Standard service"),
        price=float(_ask("price", "500")),
        duration_minutes=int(_ask("duration minutes", "60")),
    )
    while True:
        suggested = controller.draft.schedule.next_suggested_weekday().value
        day = _ask("schedule day (blank to stop)", suggested if controller.draft.schedule.is_empty() else "")
        if not day:
            break
        try:
            controller.add_schedule_entry(_ask("start", "09:00"), _ask("end", "17:00"), weekday=day)
        except ValueError as e:
            print(f"ERROR: {e}")
    if _ask("attach a demo photo? (y/n)", "y").lower().startswith("y"):
        controller.attach_photo(_doc("photo"))


async def main() -> None:
    controller = build_controller(OnboardingSession(session_id="local"), backend=MockMarketplaceBackend())

    print("\nLocal Onboarding Harness")
    print("-" * 60)
    info = BasicInfo(
        full_name=_ask("full name", "Demo Provider"),
        email=_ask("email", "demo@example.com"),
        address=_ask("address", "1 Demo Street"),
        password="secret1",
        confirm_password="secret1",
        business_name=_ask("business name", "Demo Services"),
        about="Local demo provider",
    )
    documents = ProviderDocuments(
        bir_id_front=_doc("bir_front"),
        bir_id_back=_doc("bir_back"),
        business_permit=_doc("permit"),
        image_logo=_doc("logo"),
    )
    identity = await controller.submit_basic_info(info, documents)
    print(f"Registered provider #{identity.id}")

    for category in await controller.available_categories():
        print(f"  {category.id}: {category.name}")
    ids = [int(part) for part in _ask("category ids (comma separated)", "1,2").split(",") if part.strip()]
    await controller.submit_categories(ids)

    while controller.session.can_add_service:
        await _fill_draft(controller)
        try:
            result = await controller.submit_current_draft()
        except OnboardingValidationError as e:
            print("Please fix:")
            for problem in e.problems:
                print(f" - {problem}")
            controller.reset_draft()
            continue
        except OnboardingError as e:
            print(f"ERROR: {e}")
            controller.reset_draft()
            continue

        if result.status == SubmissionStatus.AWAITING_ACKNOWLEDGEMENT and result.ambiguity:
            print(result.ambiguity.prompt)
            accept = _ask("continue anyway? (y/n)", "y").lower().startswith("y")
            result = await controller.acknowledge_ambiguous(accept)
        _print_result(result)

        if controller.session.can_finish and not controller.session.can_add_service:
            break
        if controller.session.can_finish and _ask("finish now? (y/n)", "n").lower().startswith("y"):
            break

    summary = await controller.finish()
    print("\n--- Onboarding complete ---")
    print(f"services set up: {summary.services_set_up}")
    print(f"skipped categories: {summary.skipped_categories}")
    print(f"redirect to: {summary.home_path}")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (EOFError, KeyboardInterrupt):
        print("\nBye!")
