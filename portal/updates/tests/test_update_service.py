"""Tests for UpdateService change checks, sends and email history."""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from portal.integrations.email.exceptions import MailServerError
from portal.integrations.email.providers.mock import MockEmailProvider
from portal.projects.constants import TaskStatus
from portal.projects.markdown_parser import parse_project_markdown
from portal.projects.service import ProjectImportService, ProjectService
from portal.store.memory import InMemoryProjectStore
from portal.store.schemas import UserCreate
from portal.updates.service import (
    FIRST_UPDATE_MESSAGE,
    SnapshotConflictError,
    UpdateService,
    previous_task_statuses,
)

DOCUMENT = """# Garden Planner
> Plan your beds
## Beds
- [ ] Bed grid
- [ ] Plant picker
## Calendar
- [ ] Sowing dates
"""


class TickingClock:
    """Returns a timestamp one minute later on every call."""

    def __init__(self):
        self.now = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def store():
    return InMemoryProjectStore(clock=TickingClock())


@pytest.fixture
def mail():
    return MockEmailProvider()


@pytest.fixture
def service(store, mail):
    return UpdateService(store, mail, studio_name="AppCatalyst")


@pytest_asyncio.fixture
async def owner(store):
    return await store.create_user(
        UserCreate(email="gardener@example.com", first_name="Pat", last_name="Green")
    )


@pytest_asyncio.fixture
async def project_id(store, owner):
    result = await ProjectImportService(store).import_project(
        parse_project_markdown(DOCUMENT), owner_id=owner.id, imported_by="admin-1"
    )
    return result.project_id


async def task_by_title(store, project_id, title):
    screens = await store.list_screens(project_id)
    tasks = await store.list_tasks([s.id for s in screens])
    return next(t for t in tasks if t.title == title)


class TestCheckAndSend:
    """Test suite for check_changes and send_update."""

    @pytest.mark.asyncio
    async def test_first_update_end_to_end(self, service, store, mail, project_id, owner):
        """Test import, first-time check, then send records every task as not_started."""
        check = await service.check_changes(project_id)

        assert check.first_update is True
        assert check.has_changes is False
        assert check.message == FIRST_UPDATE_MESSAGE
        assert check.summary.is_empty()

        response = await service.send_update(
            project_id, personal_message="Kickoff done!", sent_by="admin-1"
        )

        assert response.first_update is True
        assert response.recipient == owner.email
        assert response.subject == "Project Update - Garden Planner"
        assert len(mail.sent) == 1
        assert mail.sent[0].to == [owner.email]
        assert "Kickoff done!" in mail.sent[0].html

        record = await store.get_latest_email(project_id)
        assert record.id == response.email_record_id
        assert record.user_id == owner.id
        assert record.sent_by == "admin-1"
        statuses = record.changes_snapshot["taskStatuses"]
        screens = await store.list_screens(project_id)
        tasks = await store.list_tasks([s.id for s in screens])
        assert statuses == {t.id: "not_started" for t in tasks}
        assert len(statuses) == 3

    @pytest.mark.asyncio
    async def test_no_changes_message_after_send(self, service, project_id):
        await service.send_update(project_id, personal_message="Hello", sent_by="admin")

        check = await service.check_changes(project_id)

        assert check.first_update is False
        assert check.has_changes is False
        assert check.message == "No changes since last email on 3/1/2025"
        assert check.last_sent_at is not None

    @pytest.mark.asyncio
    async def test_changes_since_last_send(self, service, store, project_id):
        """Test review, completion and new work show up in the next check."""
        await service.send_update(project_id, personal_message="Hello", sent_by="admin")
        projects = ProjectService(store)
        grid = await task_by_title(store, project_id, "Bed grid")
        picker = await task_by_title(store, project_id, "Plant picker")
        await projects.update_task(grid.id, "admin", status=TaskStatus.REVIEW)
        await projects.update_task(picker.id, "admin", status=TaskStatus.DONE)
        screen = (await store.list_screens(project_id))[0]
        await projects.update_screen(screen.id, "admin", description="Drag to resize")

        check = await service.check_changes(project_id)

        assert check.has_changes is True
        assert check.message is None
        assert [t.title for t in check.summary.review_tasks] == ["Bed grid"]
        assert [t.title for t in check.summary.completed_tasks] == ["Plant picker"]
        assert [s.description for s in check.summary.updated_screens] == ["Drag to resize"]

    @pytest.mark.asyncio
    async def test_review_outcome_after_second_send(self, service, store, project_id):
        projects = ProjectService(store)
        grid = await task_by_title(store, project_id, "Bed grid")
        await projects.update_task(grid.id, "admin", status=TaskStatus.REVIEW)
        await service.send_update(project_id, personal_message="Please review", sent_by="admin")
        await projects.update_task(grid.id, "admin", status=TaskStatus.DONE)

        check = await service.check_changes(project_id)

        assert [t.task_id for t in check.summary.review_to_done] == [grid.id]
        assert check.summary.review_to_progress == []
        assert check.summary.completed_tasks == []

    @pytest.mark.asyncio
    async def test_blank_message_rejected(self, service, mail, project_id):
        with pytest.raises(ValueError):
            await service.send_update(project_id, personal_message="   ", sent_by="admin")

        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_mail_failure_writes_nothing(self, store, project_id):
        service = UpdateService(
            store, MockEmailProvider(fail_with=MailServerError()), studio_name="AppCatalyst"
        )

        with pytest.raises(MailServerError):
            await service.send_update(project_id, personal_message="Hello", sent_by="admin")

        assert await store.get_latest_email(project_id) is None

    @pytest.mark.asyncio
    async def test_stale_token_raises_conflict(self, service, store, mail, project_id):
        """Test a send is aborted when another update went out after the check."""
        await service.send_update(project_id, personal_message="First", sent_by="admin")
        check = await service.check_changes(project_id)
        await service.send_update(project_id, personal_message="Second", sent_by="admin")

        with pytest.raises(SnapshotConflictError) as exc_info:
            await service.send_update(
                project_id,
                personal_message="Third",
                sent_by="admin",
                expected_last_sent_at=check.last_sent_at,
            )

        latest = await store.get_latest_email(project_id)
        assert exc_info.value.latest_sent_at == latest.sent_at
        assert len(mail.sent) == 2

    @pytest.mark.asyncio
    async def test_matching_token_sends(self, service, project_id):
        await service.send_update(project_id, personal_message="First", sent_by="admin")
        check = await service.check_changes(project_id)

        response = await service.send_update(
            project_id,
            personal_message="Second",
            sent_by="admin",
            expected_last_sent_at=check.last_sent_at,
        )

        assert response.first_update is False

    @pytest.mark.asyncio
    async def test_explicit_recipient(self, service, store, mail, project_id):
        other = await store.create_user(UserCreate(email="partner@example.com"))

        response = await service.send_update(
            project_id, personal_message="FYI", sent_by="admin", user_id=other.id
        )

        assert response.recipient == "partner@example.com"
        assert mail.sent[0].to == ["partner@example.com"]


class TestEmailHistory:
    """Test suite for list_email_history."""

    @pytest.mark.asyncio
    async def test_history_joins_recipient_and_project(self, service, store, project_id, owner):
        await service.send_update(project_id, personal_message="One", sent_by="admin")
        await service.send_update(project_id, personal_message="Two", sent_by="admin")
        await store.update_user(owner.id, {"last_email_status": "opened"})

        items = await service.list_email_history()

        assert [i.personal_message for i in items] == ["Two", "One"]
        assert items[0].recipient_name == "Pat Green"
        assert items[0].recipient_email == owner.email
        assert items[0].project_name == "Garden Planner"
        assert items[0].last_email_status == "opened"

    @pytest.mark.asyncio
    async def test_history_search_is_case_insensitive(self, service, store, project_id):
        await service.send_update(project_id, personal_message="One", sent_by="admin")

        assert len(await service.list_email_history(search="GARDEN")) == 1
        assert len(await service.list_email_history(search="pat green")) == 1
        assert await service.list_email_history(search="nomatch") == []

    @pytest.mark.asyncio
    async def test_history_limit(self, service, project_id):
        for message in ("a", "b", "c"):
            await service.send_update(project_id, personal_message=message, sent_by="admin")

        items = await service.list_email_history(limit=2)

        assert [i.personal_message for i in items] == ["c", "b"]


class TestPreviousTaskStatuses:
    """Test suite for reading stored snapshots."""

    def test_reads_camel_case_snapshot(self):
        statuses = previous_task_statuses({"taskStatuses": {"t1": "review"}, "summary": {}})

        assert statuses == {"t1": TaskStatus.REVIEW}

    def test_legacy_snapshot_without_statuses(self):
        assert previous_task_statuses({"reviewTasks": []}) == {}

    def test_malformed_snapshot(self):
        assert previous_task_statuses({"taskStatuses": {"t1": "archived"}}) == {}
