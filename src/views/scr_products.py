from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from api.errors import ApiError
from api.models import Product
from utils.pure import format_money, markdown_table, truncate
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.modal_product_form import ProductFormModal


class ProductsScreen(BaseScreen):
    """
    Product catalog: list, add, edit, delete. The list is reloaded in full
    after every change.
    """

    BINDINGS = [
        Binding("ctrl+n", "add_product", "Add Product", show=True),
        Binding("ctrl+r", "reload", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self.selected_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-products"):
            yield DataTable(id="table-products")
            yield Label("", id="label-products-empty")
            yield MarkdownViewer(id="md-product-detail", show_table_of_contents=False)
            with Horizontal(id="hort-product-controls"):
                yield Button("Add Product", id="btn-add", variant="primary")
                yield Button("Edit", id="btn-edit")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Category", "Price", "Images")

    @on(ScreenResume)
    @on(Button.Pressed, "#btn-refresh")
    def action_reload(self) -> None:
        self._load_products()

    @work(exclusive=True, group="products")
    async def _load_products(self) -> None:
        table = self.query_one(DataTable)
        table.loading = True
        try:
            self._products = await self.app.api.get_products()
        except ApiError as e:
            self.report_error(e, "Failed to load products")
        finally:
            table.loading = False
        self._render_table()

    def _render_table(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for p in self._products:
            table.add_row(
                p.id,
                p.name,
                p.category,
                format_money(p.price),
                len(p.display_gallery),
                key=str(p.id),
            )

        empty_label = self.query_one("#label-products-empty", Label)
        if self._products:
            empty_label.add_class("hidden")
            ids = [p.id for p in self._products]
            if self.selected_id not in ids:
                self.selected_id = ids[0]
            table.move_cursor(row=ids.index(self.selected_id))
        else:
            empty_label.update("No products yet. Add one to get started!")
            empty_label.remove_class("hidden")
            self.selected_id = None
        self._render_detail()

    @on(DataTable.RowHighlighted, "#table-products")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        self.selected_id = int(event.row_key.value)
        self._render_detail()

    def _selected(self) -> Optional[Product]:
        for p in self._products:
            if p.id == self.selected_id:
                return p
        return None

    def _render_detail(self) -> None:
        product = self._selected()
        self.query_one("#btn-edit", Button).disabled = product is None
        self.query_one("#btn-delete", Button).disabled = product is None

        viewer = self.query_one("#md-product-detail", MarkdownViewer)
        if product is None:
            viewer.document.update("### Select a product to view its details.")
            return

        gallery = product.display_gallery
        images = markdown_table(
            ["#", "Image URL"],
            [[i + 1, truncate(url, 90)] for i, url in enumerate(gallery)],
            "rl",
        )
        md = (
            f"### {product.name}\n\n"
            f"**{format_money(product.price)}** · {product.category}\n\n"
            f"{product.description or '_No description._'}\n\n"
            f"#### Gallery ({len(gallery)})\n\n"
            + (images if gallery else "_No images._")
        )
        viewer.document.update(md)

    @on(Button.Pressed, "#btn-add")
    @work()
    async def action_add_product(self) -> None:
        if await self.app.push_screen_wait(ProductFormModal()):
            self._load_products()

    @on(Button.Pressed, "#btn-edit")
    @work()
    async def handle_edit(self) -> None:
        product = self._selected()
        if product is None:
            return
        if await self.app.push_screen_wait(ProductFormModal(product)):
            self._load_products()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        product = self._selected()
        if product is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                f'Are you sure you want to delete "{product.name}"?',
                tone="error",
                detail="This action cannot be undone.",
            )
        ):
            return

        try:
            await self.app.api.delete_product(product.id)
        except ApiError as e:
            self.report_error(e, "Failed to delete product")
            return
        self.notify(f"Product '{product.name}' deleted.")
        self._load_products()
