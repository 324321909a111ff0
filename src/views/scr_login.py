from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label

from api.errors import AccessDenied, ApiError
from utils import config
from utils.logger import get_logger
from utils.messages import UserLoginMessage
from views.base_screen import BaseScreen
from views.modal_dialog import ErrorDialogModal, QuitDialogModal

_logger = get_logger(__name__)


class LoginScreen(BaseScreen):
    """
    Admin sign-in. Dismisses once a token has been stored in the session.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("Admin Dashboard", id="label-login-title")
            yield Label(f"Backend: {config.API_BASE_URL}", id="label-login-backend")
            yield Label("Email")
            yield Input(placeholder="admin@example.com", id="input-login-email")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            yield Label("", id="label-login-error")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Login", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    @on(Input.Submitted, "#input-login-pwd")
    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd_input = self.query_one("#input-login-pwd", Input)
        error_label = self.query_one("#label-login-error", Label)

        if not email or not pwd_input.value:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        login_btn = self.query_one("#btn-login", Button)
        login_btn.disabled = True
        try:
            token = await self.app.api.login(email, pwd_input.value)
        except AccessDenied as e:
            _logger.info(f"non-admin login attempt for {email}")
            error_label.update(e.message)
            await self.app.push_screen_wait(
                ErrorDialogModal(e.message, detail="This account is not an administrator.")
            )
            pwd_input.value = ""
            pwd_input.focus()
            return
        except ApiError as e:
            error_label.update(e.message)
            self.notify(str(e), severity="error")
            pwd_input.value = ""
            pwd_input.add_class("-invalid")
            pwd_input.focus()
            return
        finally:
            login_btn.disabled = False

        await self.app.state.login(token)
        try:
            self.app.state.profile = await self.app.api.get_admin_profile()
        except ApiError as e:
            _logger.warning(f"profile fetch after login failed: {e}")

        error_label.update("")
        name = self.app.state.profile.full_name if self.app.state.profile else None
        self.notify(f"Welcome back{', ' + name if name else ''}!")
        self.app.post_message(UserLoginMessage())
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
