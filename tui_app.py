from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Label

import config
from media_player import MpvPlayer
from playback_controller import (
    CancelDelete,
    ConfirmDelete,
    IdleCheck,
    ManualAdvance,
    OpenExternal,
    PlaybackController,
    PlaybackState,
    PlayerEnded,
    PlayerErrorKind,
    PlayerFailed,
    PollTick,
    RequestDelete,
)
from queue_client import QueueClient


# --- Textual TUI App ---
class KaraokeDisplayApp(App):
    CSS = """
    Screen {
        layout: vertical;
    }
    #now-playing {
        height: auto;
        padding: 1;
        border: solid green;
    }
    #fallback {
        height: auto;
        padding: 1;
        color: yellow;
        border: solid red;
        display: none;
    }
    DataTable {
        height: 1fr;
        border: solid blue;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("n", "next_song", "Next Song"),
        ("o", "open_external", "Open in Browser"),
        ("d", "delete_item", "Delete Selected"),
        ("escape", "cancel_delete", "Cancel Delete"),
    ]

    def __init__(self, controller: PlaybackController = None, **kwargs):
        super().__init__(**kwargs)
        if controller is None:
            player = MpvPlayer()
            controller = PlaybackController(
                QueueClient(config.SERVER_URL, timeout=config.REQUEST_TIMEOUT),
                player,
                idle_timeout=config.IDLE_TIMEOUT,
            )
            player.on_ended = lambda media_id: controller.post(PlayerEnded(media_id))
            player.on_error = lambda code, media_id: controller.post(PlayerFailed(code, media_id))
        self.controller = controller

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical():
            yield Label("Loading...", id="now-playing")
            yield Label("", id="fallback")
            yield DataTable(id="queue-table")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Karaoke - Now Playing"

        q_table = self.query_one("#queue-table", DataTable)
        q_table.cursor_type = "row"
        q_table.add_columns("Idx", "Title", "User", "Added At")

        self.controller.on_change = lambda _: self.call_from_thread(self.refresh_view)
        self.run_controller()
        self.controller.post(PollTick())
        self.set_interval(config.POLL_INTERVAL, lambda: self.controller.post(PollTick()))
        self.set_interval(config.IDLE_CHECK_INTERVAL, lambda: self.controller.post(IdleCheck()))

    def on_unmount(self) -> None:
        self.controller.stop()
        self.controller.player.stop()

    @work(thread=True, exclusive=True)
    def run_controller(self) -> None:
        self.controller.run()

    def refresh_view(self) -> None:
        controller = self.controller
        now_playing = self.query_one("#now-playing", Label)
        fallback = self.query_one("#fallback", Label)

        if controller.state is PlaybackState.LOADING:
            now_playing.update("Loading...")
        elif controller.current is None:
            now_playing.update("Queue is Empty\nWaiting for songs to be added...")
        else:
            songs = "song" if controller.up_next == 1 else "songs"
            now_playing.update(Text(
                f"Now Playing: {controller.current.title}\n"
                f"Requested by: {controller.current.submitter_name}    "
                f"Up next: {controller.up_next} {songs}"
            ))

        if controller.state is PlaybackState.ERROR_FALLBACK and controller.current is not None:
            if controller.error_kind is PlayerErrorKind.EMBEDDING_DISABLED:
                headline = "Video Cannot Be Embedded: the owner has disabled playback outside YouTube."
            else:
                headline = "Video Error: this video could not be loaded."
            fallback.update(f"{headline}\nPress O to open it in your browser, then N for the next song.")
            fallback.display = True
        else:
            fallback.display = False

        self._update_table(controller)

    def _update_table(self, controller: PlaybackController) -> None:
        table = self.query_one("#queue-table", DataTable)
        cursor_coord = table.cursor_coordinate
        table.clear()
        for idx, entry in enumerate(controller.queue):
            marker = " (press D again to delete)" if entry.id == controller.pending_delete_id else ""
            table.add_row(
                str(idx + 1),
                Text(entry.title + marker),
                Text(entry.submitter_name),
                entry.submitted_at,
                key=entry.id,
            )
        if cursor_coord.row < len(controller.queue):
            table.move_cursor(row=cursor_coord.row, column=cursor_coord.column)

    def action_next_song(self) -> None:
        self.controller.post(ManualAdvance())

    def action_open_external(self) -> None:
        self.controller.post(OpenExternal())

    def action_delete_item(self) -> None:
        table = self.query_one("#queue-table", DataTable)
        if table.row_count == 0:
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        entry_id = row_key.value
        if entry_id == self.controller.pending_delete_id:
            self.controller.post(ConfirmDelete(entry_id))
        else:
            self.controller.post(RequestDelete(entry_id))
            self.notify("Press D again to delete this entry, Esc to cancel.")

    def action_cancel_delete(self) -> None:
        self.controller.post(CancelDelete())
