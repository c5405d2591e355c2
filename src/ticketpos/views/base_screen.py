import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from ticketpos.utils.messages import (
    RegisterChangedMessage,
    UserLogoutMessage,
)
from ticketpos.utils.pure import generate_markdown_table
from ticketpos.views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    init_mode = ""

    def __init__(self) -> None:
        super().__init__()
        # mount and screen resume both rebuild the menu
        self._refresh_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        await self.refresh_contents()

    async def refresh_contents(self) -> None:
        """Re-read the logged-in user; a different user may have logged in since."""
        async with self._refresh_lock:
            self.init_mode = self.app.current_mode
            await self.render_user_info()

            state = self.app.state
            if state.user:
                modes = self.app.ADMIN_MODES if state.is_admin else self.app.SELLER_MODES
                list_menu: ListView = self.query_one("#list-menu")
                await list_menu.clear()
                await list_menu.extend(
                    [ListItem(Label(v), id="list-menu-item-" + k) for k, v in modes.items()]
                )
                self.highlight_item(self.init_mode)

    async def render_user_info(self) -> None:
        state = self.app.state
        if not state.user:
            return
        register = f"Open (#{state.cash_box.id})" if state.cash_box else "Closed"
        rows = [
            ["Name", state.user.name],
            ["User", state.user.username],
            ["Role", "Administrator" if state.is_admin else "Seller"],
            ["Register", register],
            ["Store", "Online" if state.is_online else "Offline"],
            ["Last sync", f"{state.last_sync:%Y-%m-%d %H:%M}" if state.last_sync else "never"],
        ]
        await self.query_one(Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure title, subtitle and whether the sidebar is shown
        """
        self.app.title = "Ticket POS"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.ADMIN_MODES.get(k, header_sub_title)

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(ScreenResume)
    async def refresh_sidebar(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_contents()

    @on(RegisterChangedMessage)
    async def refresh_user_info(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.render_user_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
