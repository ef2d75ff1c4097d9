import logging
import subprocess
import threading
from typing import Callable, Optional

import yt_dlp

from playback_controller import EMBEDDING_DISABLED, HTML5_ERROR, INVALID_PARAMETER, NOT_FOUND

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={}"


def error_code_for(exc: Exception) -> int:
    """Map a yt-dlp extraction failure onto the player error codes the controller understands."""
    message = str(exc).lower()
    if "embed" in message:
        return EMBEDDING_DISABLED
    if "unavailable" in message or "private" in message or "removed" in message:
        return NOT_FOUND
    return INVALID_PARAMETER


class MpvPlayer:
    """Plays one video at a time in an mpv window, resolving the stream with yt-dlp.

    `on_ended(media_id)` fires when a video finishes by itself and
    `on_error(code, media_id)` when it cannot be played. Neither fires for a
    playback that was replaced or stopped.
    """

    def __init__(
        self,
        on_ended: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[int, str], None]] = None,
        mpv_args=None,
    ):
        self.on_ended = on_ended
        self.on_error = on_error
        self.mpv_args = list(mpv_args or ["--force-window=yes", "--keep-open=no", "--fullscreen"])
        self._lock = threading.Lock()
        self._generation = 0
        self._process: Optional[subprocess.Popen] = None

    def load(self, media_id: str) -> None:
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._terminate_locked()

        thread = threading.Thread(target=self._play, args=(media_id, generation), daemon=True)
        thread.start()

    def stop(self) -> None:
        logger.info("Stopping current playback")
        with self._lock:
            self._generation += 1
            self._terminate_locked()

    def is_playing(self) -> bool:
        with self._lock:
            return self._process is not None and self._process.poll() is None

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _terminate_locked(self) -> None:
        process, self._process = self._process, None
        if process is not None and process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=2)
            except subprocess.TimeoutExpired:
                process.kill()

    def _play(self, media_id: str, generation: int) -> None:
        url = WATCH_URL.format(media_id)
        try:
            logger.info(f"Getting stream URL for: {media_id}")
            with yt_dlp.YoutubeDL({"format": "best", "quiet": True, "noplaylist": True}) as ydl:
                info = ydl.extract_info(url, download=False)
                stream_url = info["url"]
        except (yt_dlp.utils.DownloadError, KeyError) as e:
            logger.error(f"Could not resolve {media_id}: {e}")
            self._report_error(generation, media_id, error_code_for(e))
            return

        cmd = ["mpv", *self.mpv_args, f"--title={info.get('title') or media_id}", stream_url]
        with self._lock:
            if generation != self._generation:
                return
            try:
                process = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
            except OSError as e:
                logger.error(f"Could not start mpv: {e}")
                process = None
            self._process = process
        if process is None:
            self._report_error(generation, media_id, HTML5_ERROR)
            return

        _, stderr = process.communicate()
        if not self._is_current(generation):
            logger.info("Playback stopped")
            return

        if process.returncode == 0:
            logger.info(f"Finished playing: {media_id}")
            with self._lock:
                self._process = None
            if self.on_ended:
                self.on_ended(media_id)
        else:
            logger.error(f"mpv exited with {process.returncode}: {stderr.decode(errors='replace').strip()}")
            with self._lock:
                self._process = None
            self._report_error(generation, media_id, HTML5_ERROR)

    def _report_error(self, generation: int, media_id: str, code: int) -> None:
        if self.on_error and self._is_current(generation):
            self.on_error(code, media_id)
