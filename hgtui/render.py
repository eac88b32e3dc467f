from __future__ import annotations

from datetime import datetime
from typing import Any

from rich.align import Align
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from hgtui.models import CATEGORY_COLORS, AppMode, GlobalInfo, Message, MessageLevel, Project, SearchMode
from hgtui.state import AppState, InputState, ResultSet, StatusInfo

TITLE_STYLE = "rgb(255,192,102)"
SELECTED_STYLE = "rgb(255,116,0) on cyan"
TITLE_TEXT = "HelloGitHub\nShare interesting, beginner-friendly open source projects on GitHub"
CLOSE_HINT = "Press any key to close..."

POPUP_STYLES: dict[MessageLevel, tuple[str, str]] = {
    MessageLevel.ERROR: (" ✖ Error ✖ ", "red"),
    MessageLevel.WARN: (" ⚠ Warning ", "yellow"),
    MessageLevel.TIPS: (" ✧ Tips ✧ ", "bright_black"),
}


def truncate(value: str, width: int) -> str:
    if width <= 3:
        return value[:width]
    if len(value) <= width:
        return value
    return value[: width - 3].rstrip() + "..."


def render_title() -> Text:
    return Text(TITLE_TEXT, style=TITLE_STYLE, justify="center")


INPUT_TITLES = {
    SearchMode.NORMAL: "Search",
    SearchMode.VOLUME: "Search · volume",
    SearchMode.CATEGORY: "Search · category",
}


def render_input(input_state: InputState) -> Panel:
    return Panel(
        Text(input_state.text),
        title=INPUT_TITLES[input_state.mode],
        title_align="left",
        border_style=TITLE_STYLE if input_state.active else "white",
    )


def render_results_table(results: ResultSet, terminal_width: int) -> Panel:
    table = Table(expand=True, header_style=TITLE_STYLE, show_edge=False)
    table.add_column("#", justify="right", width=4)
    table.add_column("Name", ratio=2, no_wrap=True, overflow="ellipsis")
    table.add_column("Vol", justify="right", width=5)
    table.add_column("Category", ratio=1, no_wrap=True)
    table.add_column("Description", ratio=6, no_wrap=True, overflow="ellipsis")

    description_width = max(20, terminal_width - 48)
    for idx, project in enumerate(results.projects):
        is_selected = idx == results.selected
        table.add_row(
            str(idx + 1),
            project.name,
            str(project.volume),
            project.category,
            truncate(project.description, description_width),
            style=SELECTED_STYLE if is_selected else CATEGORY_COLORS.get(project.category, "white"),
        )

    if results.is_empty():
        table.add_row("-", "Type a keyword, #<volume> or $<category> and press Enter", "", "", "")

    title_style = "yellow" if results.active else "white"
    return Panel(table, title=Text(" Results ", style=title_style), border_style=title_style)


def render_popup(message: Message) -> Panel:
    title, style = POPUP_STYLES[message.level]
    body = Text(f"\n{message.text}\n\n\n☟ {CLOSE_HINT}", style=style)
    return Panel(Align.center(body), title=title, border_style=style)


def render_detail(project: Project) -> Panel:
    counts = Table.grid(expand=True)
    counts.add_column(ratio=1)
    counts.add_column(ratio=1)
    counts.add_column(ratio=1)
    counts.add_row(
        f"🌟 Star: {project.star}",
        f"👀 Watch: {project.watch}",
        f"🌸 Fork: {project.fork}",
    )

    body = Table.grid(padding=(1, 0), expand=True)
    body.add_column()
    body.add_row(Text(f"🐝 Name: {project.name}", style="bold"))
    body.add_row(Text(f"🏁 URL: {project.url}", style="underline"))
    body.add_row(Text(f"📖 Volume {project.volume} · {project.category}"))
    body.add_row(counts)
    body.add_row(Panel(Text(project.description), title="🍗 Description", title_align="center"))
    body.add_row(Text("Enter open in browser   o/Esc back", style="bright_black"))
    return Panel(body, title="Project detail", border_style="cyan")


def render_status_line(status: StatusInfo, info: GlobalInfo, now: datetime) -> Table:
    if status.mode is SearchMode.VOLUME:
        position = f"⇦ h   Volume {status.page_no}   l ⇨"
    elif status.mode is SearchMode.CATEGORY:
        position = f"⇦ h   Page {status.page_no}   l ⇨"
    else:
        position = "Search mode"

    grid = Table.grid(expand=True)
    grid.add_column(ratio=2)
    grid.add_column(ratio=1, justify="center")
    grid.add_column(ratio=2, justify="right")
    grid.add_row(
        Text.assemble(" Press ", ("ctrl h", "green"), " for help, ", ("q", "green"), " to quit"),
        Text(position, style=TITLE_STYLE),
        Text(
            f"⏰ {now.strftime('%Y-%m-%d %H:%M:%S')} 🌟 {info.star_count} 📚 Projects {info.project_count} ",
            style="bright_yellow",
        ),
    )
    return grid


def render_body(state: AppState, terminal_width: int) -> Any:
    if state.mode is AppMode.POPUP:
        return render_popup(state.message)
    if state.mode is AppMode.DETAIL and state.detail is not None:
        return render_detail(state.detail)
    return render_results_table(state.results, terminal_width)


def build_screen(state: AppState, now: datetime, terminal_width: int) -> Layout:
    root = Layout(name="root")
    root.split_column(
        Layout(render_title(), name="title", size=2),
        Layout(render_input(state.input), name="input", size=3),
        Layout(render_body(state, terminal_width), name="body"),
        Layout(render_status_line(state.status, state.info, now), name="status", size=1),
    )
    return root
