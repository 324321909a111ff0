from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from api.client import ApiClient
from api.errors import ApiError
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import SessionState
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_overview import OverviewScreen
from views.scr_products import ProductsScreen
from views.scr_settings import SettingsScreen

_logger = get_logger(__name__)


class AdminConsoleApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "overview": OverviewScreen,
        "orders": OrdersScreen,
        "products": ProductsScreen,
        "settings": SettingsScreen,
    }

    MENU = {
        "overview": "Overview",
        "orders": "Orders",
        "products": "Products",
        "settings": "Settings",
    }

    CSS_PATH = [
        "views/styles/index.tcss",
        "views/styles/login.tcss",
        "views/styles/dialogs.tcss",
        "views/styles/overview.tcss",
        "views/styles/orders.tcss",
        "views/styles/products.tcss",
        "views/styles/settings.tcss",
    ]

    state: SessionState
    api: ApiClient

    def __init__(self):
        super().__init__()
        self.state = SessionState()
        self.api = ApiClient(token_provider=lambda: self.state.token)
        self._unsubscribe = self.state.subscribe(self._on_token_changed)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        self._unsubscribe()
        await self.api.close()

    def _on_token_changed(self, token: Optional[str]) -> None:
        _logger.debug(f"auth token {'set' if token else 'cleared'}")

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work(exclusive=True, group="session")
    async def handle_user_logout(self, event: UserLogoutMessage):
        if not self.state.is_authenticated:
            # several screens can report the same expired token
            return
        await self.state.logout()
        if event.expired:
            self.notify("Session expired, please log in again.", severity="warning")
        else:
            self.notify("Logout successful.")
        self.main_flow()

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, event: ModeSwitchedMessage):
        _logger.debug(f"mode {event.old_mode} -> {event.new_mode}")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work(exclusive=True, group="main-flow")
    async def main_flow(self):
        if self.state.token is None:
            await self.state.load()

        if self.state.is_authenticated:
            try:
                self.state.profile = await self.api.get_admin_profile()
            except ApiError as e:
                if e.status == 401:
                    _logger.info("stored token rejected, asking for login")
                    await self.state.logout()
                else:
                    _logger.warning(f"profile fetch failed: {e}")

        if not self.state.is_authenticated:
            await self.push_screen_wait(LoginScreen())

        self.post_message(ModeSwitchedMessage(self.current_mode, "overview"))
        await self.switch_mode("overview")


def run() -> None:
    app = AdminConsoleApp()
    app.run()


if __name__ == "__main__":
    run()
