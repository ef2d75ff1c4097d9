import argparse
import logging
import threading

import config
from flask_app import run_flask
from tui_app import KaraokeDisplayApp


def main():
    parser = argparse.ArgumentParser(description="Shared karaoke queue")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--server-only", action="store_true", help="run the submission server without the display")
    mode.add_argument("--display-only", action="store_true", help="run the display against KARAOKE_SERVER_URL")
    args = parser.parse_args()

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        filename=None if args.server_only else config.LOG_FILE,  # the display owns the terminal
    )

    if args.server_only:
        run_flask()
        return

    if not args.display_only:
        flask_thread = threading.Thread(target=run_flask, daemon=True)
        flask_thread.start()

    KaraokeDisplayApp().run()


if __name__ == "__main__":
    main()
