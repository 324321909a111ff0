from typing import Dict, Literal, Optional, Tuple

from typing_extensions import override

from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
ButtonVariant = Literal["primary", "default", "success", "warning", "error"]


class DialogModal(ModalScreen[bool]):
    """
    Blocking yes/no dialog. Dismisses with True for the primary button,
    False for the secondary one or escape.
    """

    VARIANT_MAP: Dict[Tone, Tuple[ButtonVariant, ButtonVariant]] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
        detail: Optional[str] = None,
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone
        self.detail = detail

    def compose(self) -> ComposeResult:
        primary_variant, secondary_variant = self.VARIANT_MAP[self.tone]
        with Container(id="div-dialog", classes=f"tone-{self.tone}"):
            yield Label(self.caption, id="caption")
            if self.detail:
                yield Label(self.detail, id="detail")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text, variant=secondary_variant, id="btn-secondary"
                    )
                yield Button(self.primary_text, variant=primary_variant, id="btn-primary")

    def on_mount(self):
        # destructive prompts focus the safe answer
        if self.secondary_text and self.tone in ("error", "warning"):
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-primary")


class ConfirmDialogModal(DialogModal):
    def __init__(self, caption: str, tone: Tone = "warning", detail: Optional[str] = None):
        super().__init__(caption, "Yes", "No", tone, detail)


class ErrorDialogModal(DialogModal):
    """Blocking error notice with a single dismiss button."""

    def __init__(self, caption: str, detail: Optional[str] = None):
        super().__init__(caption, "OK", tone="error", detail=detail)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)
