from functools import lru_cache
import logging
import sys

from rich.console import Console
from rich.theme import Theme


LOG = logging.getLogger(__name__)

FLARE_THEME = Theme(
    {
        "success": "bold green",
        "failure": "bold red",
        "muted": "dim",
    }
)


@lru_cache()
def should_use_ascii() -> bool:
    """
    Check if we should avoid non-ascii symbols in the output
    """
    encoding = (getattr(sys.stdout, "encoding", "") or "").lower()

    if encoding in {"utf-8", "utf8", "cp65001", "utf-8-sig"}:
        return False

    return True


def status_symbol(ok: bool) -> str:
    if should_use_ascii():
        return "OK" if ok else "X"
    return "✔" if ok else "✘"


main_console = Console(theme=FLARE_THEME, highlight=False)
