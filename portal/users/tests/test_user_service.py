"""Tests for UserService."""

import pytest
import pytest_asyncio

from portal.integrations.email.exceptions import MailRateLimitError
from portal.integrations.email.providers.mock import MockEmailProvider
from portal.store.base import StoreError
from portal.store.memory import InMemoryProjectStore
from portal.store.schemas import UserCreate
from portal.users.schemas import ProfileUpdate, UserCreateRequest
from portal.users.service import UserService

LOGIN_URL = "https://portal.example.com"


@pytest.fixture
def store():
    return InMemoryProjectStore()


@pytest.fixture
def mail():
    return MockEmailProvider()


def make_service(store, mail, admin_email="studio@example.com"):
    return UserService(
        store, mail, studio_name="AppCatalyst", login_url=LOGIN_URL, admin_email=admin_email
    )


@pytest_asyncio.fixture
async def pending_user(store):
    return await store.create_user(UserCreate(email="new@example.com", first_name="Riley"))


class TestApproveUser:
    @pytest.mark.asyncio
    async def test_approve_sends_email(self, store, mail, pending_user):
        user = await make_service(store, mail).approve_user(pending_user.id)

        assert user.approved is True
        (message,) = mail.sent
        assert message.to == ["new@example.com"]
        assert message.subject == "Your AppCatalyst Account Has Been Approved!"
        assert LOGIN_URL in message.html
        assert "Hi Riley," in message.html

    @pytest.mark.asyncio
    async def test_mail_failure_surfaces_but_approval_is_kept(self, store, pending_user):
        service = make_service(store, MockEmailProvider(fail_with=MailRateLimitError()))

        with pytest.raises(MailRateLimitError):
            await service.approve_user(pending_user.id)

        assert (await store.get_user(pending_user.id)).approved is True

    @pytest.mark.asyncio
    async def test_unknown_user_sends_nothing(self, store, mail):
        with pytest.raises(StoreError):
            await make_service(store, mail).approve_user("missing")

        assert mail.sent == []


class TestCompleteProfile:
    @pytest.mark.asyncio
    async def test_profile_is_stored_and_admin_notified(self, store, mail, pending_user):
        profile = ProfileUpdate(
            first_name="Riley", last_name="Stone", company="Stone & Sons", app_name="Tide"
        )

        result = await make_service(store, mail).complete_profile(pending_user.id, profile)

        assert result.admin_notified is True
        assert result.user.profile_completed is True
        assert result.user.last_name == "Stone"
        (message,) = mail.sent
        assert message.to == ["studio@example.com"]
        assert message.reply_to == "new@example.com"
        assert message.subject == "Profile Completed: Riley Stone"
        assert "Stone &amp; Sons" in message.html
        assert "Phone" not in message.html

    @pytest.mark.asyncio
    async def test_no_admin_address_skips_notification(self, store, mail, pending_user):
        service = make_service(store, mail, admin_email=None)

        result = await service.complete_profile(
            pending_user.id, ProfileUpdate(first_name="Riley", last_name="Stone")
        )

        assert result.admin_notified is False
        assert result.user.profile_completed is True
        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_notification_failure_is_swallowed(self, store, pending_user):
        service = make_service(store, MockEmailProvider(fail_with=MailRateLimitError()))

        result = await service.complete_profile(
            pending_user.id, ProfileUpdate(first_name="Riley", last_name="Stone")
        )

        assert result.admin_notified is False
        assert result.user.profile_completed is True


class TestListUsers:
    @pytest.mark.asyncio
    async def test_filters_pending_users(self, store, mail, pending_user):
        await store.create_user(UserCreate(email="old@example.com", approved=True))

        users = await make_service(store, mail).list_users(approved=False)

        assert [u.id for u in users] == [pending_user.id]


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_create_user_sends_welcome_email(self, store, mail):
        request = UserCreateRequest(
            email="  fresh@example.com ", first_name="Sam", temporary_password="Temp-123"
        )

        result = await make_service(store, mail).create_user(request)

        assert result.welcome_email_sent is True
        assert result.user.email == "fresh@example.com"
        assert result.user.approved is False
        assert result.user.last_name is None
        (message,) = mail.sent
        assert message.to == ["fresh@example.com"]
        assert message.subject == "Welcome to AppCatalyst - Your Account Details"
        assert message.text.startswith("Hi Sam,")
        assert "Temporary Password: Temp-123" in message.text
        assert f"URL: {LOGIN_URL}" in message.text
        assert "3. Invoice - Final Payment" in message.text
        assert "AppCatalyst Team" in message.html

    @pytest.mark.asyncio
    async def test_password_line_is_omitted_when_not_given(self, store, mail):
        await make_service(store, mail).create_user(UserCreateRequest(email="p@example.com"))

        (message,) = mail.sent
        assert message.text.startswith("Hello,")
        assert "Temporary Password" not in message.text
        assert "Temporary Password" not in message.html

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_conflict(self, store, mail, pending_user):
        with pytest.raises(StoreError) as exc_info:
            await make_service(store, mail).create_user(
                UserCreateRequest(email="NEW@example.com")
            )

        assert exc_info.value.error_code == "CONFLICT"
        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_welcome_failure_keeps_the_account(self, store):
        service = make_service(store, MockEmailProvider(fail_with=MailRateLimitError()))

        result = await service.create_user(UserCreateRequest(email="late@example.com"))

        assert result.welcome_email_sent is False
        assert (await store.get_user_by_email("late@example.com")).id == result.user.id


class TestApprovalAndDeletion:
    @pytest.mark.asyncio
    async def test_revoke_approval_sends_nothing(self, store, mail, pending_user):
        await store.update_user(pending_user.id, {"approved": True})

        user = await make_service(store, mail).revoke_approval(pending_user.id)

        assert user.approved is False
        assert mail.sent == []

    @pytest.mark.asyncio
    async def test_delete_user(self, store, mail, pending_user):
        await make_service(store, mail).delete_user(pending_user.id)

        assert pending_user.id not in store.users

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self, store, mail):
        with pytest.raises(StoreError) as exc_info:
            await make_service(store, mail).delete_user("missing")

        assert exc_info.value.error_code == "NOT_FOUND"
