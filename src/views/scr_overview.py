from typing import Sequence

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer

from api.errors import ApiError
from api.models import Analytics, ChartPoint
from utils.pure import format_money, markdown_table, status_label
from views.base_screen import BaseScreen

_BAR_WIDTH = 30


def _bars(points: Sequence[ChartPoint], money: bool = False) -> str:
    if not points:
        return "_No data yet._\n"
    peak = max(p.value for p in points) or 1
    rows = []
    for p in points:
        bar = "█" * max(0, round(p.value / peak * _BAR_WIDTH))
        value = format_money(p.value) if money else f"{p.value:g}"
        rows.append([p.name, value, f"`{bar}`" if bar else ""])
    return markdown_table(["", "Value", ""], rows, aligns="lrl")


class OverviewScreen(BaseScreen):
    """
    Dashboard landing page: KPIs, revenue history, order status mix and the
    most recent orders.
    """

    BINDINGS = [
        Binding("ctrl+r", "reload", "Refresh", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-overview", show_table_of_contents=False)

    @on(ScreenResume)
    def action_reload(self) -> None:
        self.handle_reload()

    @work(exclusive=True, group="analytics")
    async def handle_reload(self) -> None:
        viewer = self.query_one("#md-overview", MarkdownViewer)
        viewer.loading = True
        try:
            analytics = await self.app.api.get_analytics()
        except ApiError as e:
            viewer.document.update("### Overview unavailable\n\nPress ctrl+r to retry.")
            self.report_error(e, "Failed to load analytics")
            return
        finally:
            viewer.loading = False
        viewer.document.update(self.render_markdown(analytics))

    @staticmethod
    def render_markdown(analytics: Analytics) -> str:
        arrows = {"up": "▲", "down": "▼"}
        kpis = markdown_table(
            ["Metric", "Value", "Trend"],
            [
                [k.label, k.value, f"{arrows.get(k.trend_direction, '')} {k.trend}".strip()]
                for k in analytics.kpis
            ],
            aligns="lrr",
        )
        recent = markdown_table(
            ["Order", "Customer", "Date", "Amount", "Status"],
            [
                [o.id, o.customer, o.date, o.amount, status_label(o.status)]
                for o in analytics.recent_orders
            ],
            aligns="lllrl",
        )
        return (
            "### Overview\n\n"
            + kpis
            + f"\n\nActive orders: **{analytics.total_active_orders}**\n\n"
            + "#### Revenue History\n\n"
            + _bars(analytics.revenue_history, money=True)
            + "\n\n#### Order Status Distribution\n\n"
            + _bars(analytics.order_status_distribution)
            + "\n\n#### Recent Orders\n\n"
            + (recent if analytics.recent_orders else "_No orders yet._")
            + "\n"
        )
