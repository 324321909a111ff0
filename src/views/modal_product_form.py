from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, OptionList, TextArea

from api.errors import ApiError, ValidationFailure
from api.models import Product
from utils.forms import ProductDraft, UploadFile
from utils.logger import get_logger

_logger = get_logger(__name__)


class ProductFormModal(ModalScreen[bool]):
    """
    Add or edit a product. Returns True when the backend accepted the change.

    When editing, images already on the product can be dropped individually;
    new files are picked by path and can be unstaged before saving.
    """

    def __init__(self, product: Optional[Product] = None) -> None:
        super().__init__()
        self._product = product
        self._draft = ProductDraft.from_product(product) if product else ProductDraft()

    @property
    def is_edit(self) -> bool:
        return self._draft.is_edit

    def compose(self) -> ComposeResult:
        title = f"Edit Product: {self._product.name}" if self.is_edit else "Add New Product"
        with VerticalScroll(id="div-product-form"):
            yield Label(title, id="label-form-title")
            yield Label("Product Name *")
            yield Input(self._draft.name, placeholder="e.g., Cozy Blanket", id="input-name")
            yield Label("Price *")
            yield Input(
                self._draft.price,
                placeholder="0.00",
                id="input-price",
                type="number",
                validators=[Number(minimum=0.0)],
            )
            yield Label("Category *")
            yield Input(self._draft.category, placeholder="e.g., Home", id="input-category")
            yield Label("Description")
            yield TextArea(self._draft.description, id="input-description")

            if self.is_edit:
                yield Label("Current images")
                yield OptionList(id="optlist-existing")
                yield Button("Remove selected image", id="btn-remove-existing")

            yield Label("New images")
            with Horizontal(id="div-file-pick"):
                yield Input(placeholder="/path/to/image.jpg", id="input-file-path")
                yield Button("Add file", id="btn-add-file")
            yield OptionList(id="optlist-staged")
            yield Button("Remove selected file", id="btn-remove-staged")

            yield Label("", id="label-form-error")
            with Horizontal(id="div-form-btns"):
                yield Button("Cancel", id="btn-form-cancel")
                yield Button(
                    "Save Changes" if self.is_edit else "Add Product",
                    id="btn-form-submit",
                    variant="primary",
                )

    def on_mount(self) -> None:
        self._render_images()
        self.query_one("#input-name", Input).focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def _render_images(self) -> None:
        if self.is_edit:
            existing = self.query_one("#optlist-existing", OptionList)
            existing.clear_options()
            existing.add_options(self._draft.existing_gallery or [])
            self.query_one("#btn-remove-existing", Button).disabled = not self._draft.existing_gallery

        staged = self.query_one("#optlist-staged", OptionList)
        staged.clear_options()
        staged.add_options(
            [f"{f.filename} ({len(f.content) // 1024} KB)" for f in self._draft.staged]
        )
        self.query_one("#btn-remove-staged", Button).disabled = not self._draft.staged

    def _show_error(self, message: str) -> None:
        self.query_one("#label-form-error", Label).update(message)

    @on(Input.Submitted, "#input-file-path")
    @on(Button.Pressed, "#btn-add-file")
    def handle_add_file(self) -> None:
        path_input = self.query_one("#input-file-path", Input)
        if not path_input.value.strip():
            return
        try:
            upload = UploadFile.from_path(path_input.value)
        except (ValidationFailure, OSError) as e:
            self._show_error(getattr(e, "message", None) or str(e))
            return
        self._draft.stage(upload)
        path_input.value = ""
        self._show_error("")
        self._render_images()

    @on(Button.Pressed, "#btn-remove-existing")
    def handle_remove_existing(self) -> None:
        index = self.query_one("#optlist-existing", OptionList).highlighted
        if index is None:
            self.notify("Select an image to remove.", severity="warning")
            return
        removed = self._draft.remove_existing(index)
        _logger.debug(f"dropping gallery image {removed}")
        self._render_images()

    @on(Button.Pressed, "#btn-remove-staged")
    def handle_remove_staged(self) -> None:
        index = self.query_one("#optlist-staged", OptionList).highlighted
        if index is None:
            self.notify("Select a file to remove.", severity="warning")
            return
        self._draft.remove_staged(index)
        self._render_images()

    def _sync_draft(self) -> None:
        self._draft.name = self.query_one("#input-name", Input).value
        self._draft.price = self.query_one("#input-price", Input).value
        self._draft.category = self.query_one("#input-category", Input).value
        self._draft.description = self.query_one("#input-description", TextArea).text

    def _clear_inputs(self) -> None:
        for input_id in ("#input-name", "#input-price", "#input-category"):
            self.query_one(input_id, Input).value = ""
        self.query_one("#input-description", TextArea).text = ""
        self._render_images()

    @on(Button.Pressed, "#btn-form-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        self._sync_draft()
        try:
            submission = self._draft.to_submission()
        except ValidationFailure as e:
            self._show_error(e.message)
            if e.field:
                self.query_one(f"#input-{e.field}").focus()
            return

        submit_btn = self.query_one("#btn-form-submit", Button)
        submit_btn.loading = True
        try:
            if self.is_edit:
                await self.app.api.update_product(self._product.id, submission)
            else:
                await self.app.api.create_product(submission)
        except ApiError as e:
            self._show_error(str(e))
            self.notify(e.message, severity="error")
            return
        finally:
            submit_btn.loading = False

        if self.is_edit:
            self.notify(f"Product '{submission.name}' updated successfully.")
        else:
            self.notify(f"Product '{submission.name}' added successfully.")
            self._draft.reset()
            self._clear_inputs()
        self.dismiss(True)

    @on(Button.Pressed, "#btn-form-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)
