"""Fallback songs the Auto-DJ picks from when the queue sits empty."""

import logging
from typing import List

from errors import StorageIOError

logger = logging.getLogger(__name__)

_DEFAULT_IDS = [
    "0bhsXykXxfg",  # Michael Bublé - It's Beginning to Look a Lot Like Christmas
    "yXQViqx6GMY",  # Mariah Carey - All I Want For Christmas Is You
    "1d8LHxByxRU",  # Brenda Lee - Rockin' Around The Christmas Tree
    "E8gmARGvPlI",  # Wham! - Last Christmas
    "gset79KMmt0",  # Sia - Snowman
    "Qe1Bj7qIang",  # Jingle Bell Rock
    "Dkq3LD-4pmM",  # Michael Bublé - Holly Jolly Christmas
    "AN_R4pR1hck",  # Andy Williams - It's the Most Wonderful Time of the Year
    "j9jbdgZidu8",  # The Pogues - Fairytale Of New York
    "Rnil5LyK_B0",  # Dean Martin - Let It Snow! Let It Snow! Let It Snow!
    "uSjq7x67kzM",  # Chris Rea - Driving Home For Christmas
    "IJPc7esgvsA",  # Wizzard - I Wish It Could Be Christmas Everyday
    "Q_yuO8UNGmY",  # Ed Sheeran & Elton John - Merry Christmas
    "DkXIJe8CaIc",  # The Ronettes - Sleigh Ride
    "wKhRnZZ0cJI",  # Nat King Cole - The Christmas Song
    "nlR0MkrRklg",  # Ariana Grande - Santa Tell Me
    "94Ye-3C1FC8",  # Paul McCartney - Wonderful Christmastime
    "8gWHlHWIaRQ",  # John Lennon - Happy Xmas (War Is Over)
    "hLf0-lro8X8",  # Frank Sinatra - Jingle Bells
    "N-PyWfVkjZc",  # Shakin' Stevens - Merry Christmas Everyone
    "YiadNVhaGwk",  # Chuck Berry - Run Rudolph Run
    "oIKt5p3UmXg",  # Michael Bublé - Winter Wonderland
    "IbRtGMm96F8",  # Elton John - Step Into Christmas
    "qw2TD91Nytg",  # Queen - Thank God It's Christmas
    "-wNhdjoF-6M",  # East 17 - Stay Another Day
    "PTslBTBl1X8",  # Slade - Merry Xmas Everybody
]

DEFAULT_CATALOG: List[str] = [f"https://www.youtube.com/watch?v={vid}" for vid in _DEFAULT_IDS]


def load_catalog(path: str = "") -> List[str]:
    """Return the catalog from `path` (one URL per line, '#' comments allowed).

    An empty path means the built-in catalog.
    """
    if not path:
        return list(DEFAULT_CATALOG)

    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise StorageIOError(f"Could not read catalog {path}: {e}") from e

    urls = [line.strip() for line in lines]
    urls = [url for url in urls if url and not url.startswith("#")]
    logger.info(f"Loaded {len(urls)} catalog entries from {path}")
    return urls
