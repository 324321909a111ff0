from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Input, Label, Markdown

from api.errors import ApiError, ValidationFailure
from api.models import AdminProfile
from utils.forms import build_settings_update
from utils.pure import markdown_table
from views.base_screen import BaseScreen

_FIELD_INPUTS = {
    "email": "#input-email",
    "password": "#input-password",
    "confirm_password": "#input-confirm-password",
}


class SettingsScreen(BaseScreen):
    """
    Account settings for the logged-in admin. Blank password fields keep the
    current password.

    The profile is fetched on mount and on explicit refresh only, so dialogs
    closing over the screen never discard unsaved edits.
    """

    BINDINGS = [
        Binding("ctrl+r", "reload", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._profile: Optional[AdminProfile] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="div-settings"):
            with Vertical(id="div-settings-form"):
                yield Label("Account Settings", classes="section-title")
                yield Label("", id="label-settings-message")
                yield Label("Email")
                yield Input(placeholder="admin@example.com", id="input-email")
                yield Label("Full Name")
                yield Input(placeholder="John Doe", id="input-full-name")
                yield Label("WhatsApp Number")
                yield Input(placeholder="+1 (555) 000-0000", id="input-whatsapp")
                yield Label("Change Password", classes="section-title")
                yield Label("New Password (leave blank to keep current)")
                yield Input(placeholder="••••••••", password=True, id="input-password")
                yield Label("Confirm Password")
                yield Input(
                    placeholder="••••••••", password=True, id="input-confirm-password"
                )
                with Horizontal(id="div-settings-btns"):
                    yield Button("Cancel", id="btn-settings-reset")
                    yield Button("Save Changes", id="btn-settings-save", variant="primary")
            yield Label("Profile Information", classes="section-title")
            yield Markdown("", id="md-profile")

    def on_mount(self) -> None:
        self.load_profile()

    def action_reload(self) -> None:
        self._set_message("")
        self.load_profile()

    @work(exclusive=True, group="profile")
    async def load_profile(self) -> None:
        form = self.query_one("#div-settings-form")
        form.loading = True
        try:
            self._profile = await self.app.api.get_admin_profile()
        except ApiError as e:
            self._set_message("Failed to load profile. Please try again.", error=True)
            self.report_error(e, "Failed to load profile")
            return
        finally:
            form.loading = False
        self.app.state.profile = self._profile
        self._fill_form()
        await self._render_profile()

    def _fill_form(self) -> None:
        profile = self._profile
        if profile is None:
            return
        self.query_one("#input-email", Input).value = profile.email
        self.query_one("#input-full-name", Input).value = profile.full_name or ""
        self.query_one("#input-whatsapp", Input).value = profile.whatsapp_number or ""
        self.query_one("#input-password", Input).value = ""
        self.query_one("#input-confirm-password", Input).value = ""

    async def _render_profile(self) -> None:
        profile = self._profile
        if profile is None:
            return
        rows = [
            ["Admin ID", profile.id],
            ["Email", profile.email],
            ["Full Name", profile.full_name or "-"],
            ["WhatsApp", profile.whatsapp_number or "-"],
            ["Role", profile.role],
        ]
        await self.query_one("#md-profile", Markdown).update(
            markdown_table(["Field", "Value"], rows)
        )

    def _set_message(self, text: str, error: bool = False) -> None:
        label = self.query_one("#label-settings-message", Label)
        label.update(text)
        label.set_class(error, "-error")
        label.set_class(bool(text) and not error, "-success")

    @on(Input.Changed)
    def handle_input_changed(self, event: Input.Changed) -> None:
        event.input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-settings-reset")
    def handle_reset(self) -> None:
        self._set_message("")
        self._fill_form()

    @on(Button.Pressed, "#btn-settings-save")
    @work(exclusive=True, group="profile-save")
    async def handle_save(self) -> None:
        try:
            changes = build_settings_update(
                self.query_one("#input-email", Input).value,
                self.query_one("#input-full-name", Input).value,
                self.query_one("#input-whatsapp", Input).value,
                self.query_one("#input-password", Input).value,
                self.query_one("#input-confirm-password", Input).value,
            )
        except ValidationFailure as e:
            self._set_message(e.message, error=True)
            if e.field in _FIELD_INPUTS:
                field_input = self.query_one(_FIELD_INPUTS[e.field], Input)
                field_input.add_class("-invalid")
                field_input.focus()
            return

        save_btn = self.query_one("#btn-settings-save", Button)
        save_btn.loading = True
        try:
            self._profile = await self.app.api.update_admin_settings(changes)
        except ApiError as e:
            self._set_message(str(e) or "Failed to update settings", error=True)
            if e.status == 401:
                self.report_error(e, "Failed to update settings")
            return
        finally:
            save_btn.loading = False

        self.app.state.profile = self._profile
        self._fill_form()
        await self._render_profile()
        await self.handle_sidebar_refresh()
        self._set_message("Settings updated successfully!")
        self.notify("Settings updated successfully!")
