from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from api.errors import ApiError
from utils.messages import ModeSwitchedMessage, UserLoginMessage, UserLogoutMessage
from utils.pure import markdown_table
from views.modal_dialog import ConfirmDialogModal, ErrorDialogModal, QuitDialogModal


class Sidebar(Container):
    """Admin info, navigation menu and logout button."""

    def compose(self) -> ComposeResult:
        yield Label("Admin", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(
            *[
                ListItem(Label(title), id="list-menu-item-" + mode)
                for mode, title in self.app.MENU.items()
            ],
            id="list-menu",
        )

    async def on_mount(self):
        await self.refresh_profile()
        self.highlight_item(self.app.current_mode)

    async def refresh_profile(self) -> None:
        profile = self.app.state.profile
        if profile:
            rows = [
                ["Email", profile.email],
                ["Name", profile.full_name or "-"],
                ["Role", profile.role],
            ]
        else:
            rows = [["Status", "Signed in" if self.app.state.token else "Signed out"]]
        await self.query_one(Markdown).update(markdown_table(["", ""], rows))

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Are you sure you want to log out?")
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu", ListView).children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+x", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "FH Admin"
        self.sub_title = header_sub_title
        for mode, screen_cls in self.app.MODES.items():
            if isinstance(self, screen_cls) and mode in self.app.MENU:
                self.sub_title = self.app.MENU[mode]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(ScreenResume)
    @on(UserLoginMessage)
    async def handle_sidebar_refresh(self):
        if self._show_sidebar:
            sidebar = self.query_one(Sidebar)
            await sidebar.refresh_profile()
            sidebar.highlight_item(self.app.current_mode)

    def report_error(self, error: ApiError, caption: str) -> None:
        """
        Show a blocking error notice for a failed call.
        A 401 means the token is no longer accepted, so the session ends.
        """
        if error.status == 401:
            self.post_message(UserLogoutMessage(expired=True))
            return
        detail = error.detail or (f"HTTP {error.status}" if error.status else "No response")
        self.app.push_screen(ErrorDialogModal(caption, detail=f"{error.message}: {detail}"))

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
