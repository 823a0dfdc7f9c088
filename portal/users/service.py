"""
User service.

Admin management of client accounts (creation with a welcome email,
approval, deletion) and the profile completion step that notifies the
studio admin.
"""

from html import escape

from portal.integrations.email.base import EmailProvider
from portal.integrations.email.exceptions import MailError
from portal.integrations.email.schemas import OutgoingEmail
from portal.store.base import ProjectStore
from portal.store.schemas import UserCreate, UserRecord
from portal.users.schemas import (
    ProfileResult,
    ProfileUpdate,
    UserCreateRequest,
    UserCreateResult,
)
from portal.utils.logger import logger


def render_approval_email(user: UserRecord, studio_name: str, login_url: str) -> tuple[str, str]:
    greeting = f"Hi {escape(user.first_name)}," if user.first_name else "Hi,"
    html = "\n".join(
        [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8"></head><body>',
            f"<p>{greeting}</p>",
            "<p><strong>Great news!</strong> Your account has been approved.</p>",
            f"<p>You can now follow your app projects with {escape(studio_name)}.</p>",
            f'<p>Log in at <a href="{escape(login_url, quote=True)}">{escape(login_url)}</a></p>',
            "<p>If you have any questions, feel free to reply to this email.</p>",
            f"<p>Best regards,<br><strong>{escape(studio_name)} Team</strong></p>",
            "</body></html>",
        ]
    )
    return f"Your {studio_name} Account Has Been Approved!", html


_ONBOARDING_PHASES = (
    (
        "Discovery",
        "Understanding Your Vision",
        (
            "Learn your goals and objectives",
            "Research your industry and market",
            "Understand how users will interact with your app",
            "Analyze how your company and team work together",
        ),
    ),
    (
        "Proposal",
        "Planning Your Solution",
        (
            "Comprehensive project proposal will be sent to you",
            "We'll review it together and answer all your questions",
            "Finalize scope, timeline, and approach",
        ),
    ),
    (
        "Invoice",
        "Final Payment",
        (
            "Final invoice sent",
            "Project will start shortly after this based on project timeline",
        ),
    ),
)


def render_welcome_email(
    user: UserRecord, studio_name: str, login_url: str, temporary_password: str | None = None
) -> tuple[str, str, str]:
    """Subject, HTML and plain-text bodies of the new-account email."""
    greeting = f"Hi {user.first_name}," if user.first_name else "Hello,"
    login = [("URL", login_url), ("Email", user.email)]
    if temporary_password:
        login.append(("Temporary Password", temporary_password))

    text = [greeting, "", "Your account has been created!", "", "Login Details:"]
    text.extend(f"{label}: {value}" for label, value in login)
    text.extend(
        [
            "",
            "Getting Started:",
            "1. Fill out your profile with your information",
            "2. Change your password in the Account tab at the bottom",
            "",
            f"We Track {len(_ONBOARDING_PHASES)} Basic Phases:",
        ]
    )
    html = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="utf-8"></head><body>',
        f"<p>{escape(greeting)}</p>",
        "<p>Your account has been created!</p>",
        "<h3>Login Details</h3>",
        "<ul>",
        *(f"<li><strong>{label}:</strong> {escape(value)}</li>" for label, value in login),
        "</ul>",
        "<h3>Getting Started</h3>",
        "<ol><li>Fill out your profile with your information</li>",
        "<li>Change your password in the Account tab at the bottom</li></ol>",
        f"<h3>We Track {len(_ONBOARDING_PHASES)} Basic Phases</h3>",
    ]
    for number, (phase, headline, points) in enumerate(_ONBOARDING_PHASES, start=1):
        text.append(f"{number}. {phase} - {headline}")
        text.extend(f"- {point}" for point in points)
        html.append(f"<p><strong>{number}. {phase}</strong> - {headline}</p>")
        html.append("<ul>" + "".join(f"<li>{escape(p)}</li>" for p in points) + "</ul>")

    tracker = (
        "You'll have access to a full task manager where you can see your app being "
        "built in real-time. Track screens, features, and progress as they're being developed."
    )
    text.extend(
        [
            "",
            f"Task Manager: {tracker}",
            "",
            "If you have any questions, feel free to reply to this email.",
            "",
            "Best regards,",
            f"{studio_name} Team",
        ]
    )
    html.extend(
        [
            f"<h3>Task Manager</h3><p>{escape(tracker)}</p>",
            "<p>If you have any questions, feel free to reply to this email.</p>",
            f"<p>Best regards,<br><strong>{escape(studio_name)} Team</strong></p>",
            "</body></html>",
        ]
    )
    subject = f"Welcome to {studio_name} - Your Account Details"
    return subject, "\n".join(html), "\n".join(text)


def render_profile_notification(user: UserRecord) -> tuple[str, str]:
    name = " ".join(n for n in (user.first_name, user.last_name) if n) or "Unknown User"
    rows = [("Name", name), ("Email", user.email)]
    rows.extend(
        (label, value)
        for label, value in (
            ("Phone", user.phone),
            ("Company", user.company),
            ("App", user.app_name),
        )
        if value
    )
    table = "\n".join(
        f"<tr><td><strong>{label}:</strong></td><td>{escape(value)}</td></tr>"
        for label, value in rows
    )
    html = "\n".join(
        [
            "<!DOCTYPE html>",
            '<html><head><meta charset="utf-8"></head><body>',
            "<h2>Profile Completed</h2>",
            "<p>A user has completed their profile:</p>",
            f"<table>{table}</table>",
            "</body></html>",
        ]
    )
    return f"Profile Completed: {name}", html


class UserService:
    """Client account management for admins."""

    def __init__(
        self,
        store: ProjectStore,
        email_provider: EmailProvider,
        studio_name: str,
        login_url: str,
        admin_email: str | None = None,
    ):
        self.store = store
        self.email_provider = email_provider
        self.studio_name = studio_name
        self.login_url = login_url
        self.admin_email = admin_email

    async def list_users(
        self, approved: bool | None = None, is_admin: bool | None = None
    ) -> list[UserRecord]:
        return await self.store.list_users(approved=approved, is_admin=is_admin)

    async def get_user(self, user_id: str) -> UserRecord:
        return await self.store.get_user(user_id)

    async def approve_user(self, user_id: str) -> UserRecord:
        """
        Approve a client account and email them.

        The approval is kept even when the email fails.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
            MailError: If the approval email cannot be sent
        """
        user = await self.store.update_user(user_id, {"approved": True})
        logger.info("Approved user", user_id=user_id)

        subject, html = render_approval_email(user, self.studio_name, self.login_url)
        await self.email_provider.send_email(
            OutgoingEmail(to=[user.email], subject=subject, html=html)
        )
        logger.info("Sent approval email", user_id=user_id)
        return user

    async def create_user(self, request: UserCreateRequest) -> UserCreateResult:
        """
        Create a client account awaiting approval and send the welcome email.

        The account is kept when the email fails; the result reports it.

        Raises:
            StoreError: "CONFLICT" if the email is already registered
        """
        user = await self.store.create_user(
            UserCreate(
                email=request.email,
                first_name=request.first_name or None,
                last_name=request.last_name or None,
            )
        )
        logger.info("Created user", user_id=user.id)

        subject, html, text = render_welcome_email(
            user, self.studio_name, self.login_url, request.temporary_password
        )
        try:
            await self.email_provider.send_email(
                OutgoingEmail(to=[user.email], subject=subject, html=html, text=text)
            )
        except MailError as e:
            logger.error("Failed to send welcome email", user_id=user.id, error_message=e.message)
            return UserCreateResult(user=user, welcome_email_sent=False)
        return UserCreateResult(user=user, welcome_email_sent=True)

    async def delete_user(self, user_id: str) -> None:
        """
        Delete a user with their projects and email history.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """
        await self.store.delete_user(user_id)
        logger.info("Deleted user", user_id=user_id)

    async def revoke_approval(self, user_id: str) -> UserRecord:
        """
        Return an account to pending. No email is sent.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """
        user = await self.store.update_user(user_id, {"approved": False})
        logger.info("Revoked user approval", user_id=user_id)
        return user

    async def complete_profile(self, user_id: str, profile: ProfileUpdate) -> ProfileResult:
        """
        Store a client's profile and notify the studio admin.

        A failed notification is logged and reported in the result.

        Raises:
            StoreError: "NOT_FOUND" if the user does not exist
        """
        user = await self.store.update_user(
            user_id, {**profile.model_dump(), "profile_completed": True}
        )
        logger.info("Profile completed", user_id=user_id)

        if not self.admin_email:
            logger.warning("No admin notification address configured", user_id=user_id)
            return ProfileResult(user=user, admin_notified=False)

        subject, html = render_profile_notification(user)
        try:
            await self.email_provider.send_email(
                OutgoingEmail(to=[self.admin_email], subject=subject, html=html, reply_to=user.email)
            )
        except MailError as e:
            logger.error(
                "Failed to send profile notification", user_id=user_id, error_message=e.message
            )
            return ProfileResult(user=user, admin_notified=False)
        return ProfileResult(user=user, admin_notified=True)
