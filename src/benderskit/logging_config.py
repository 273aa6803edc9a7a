from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", log_dir: str | Path = "Report") -> Path | None:
    """Configure root logging; at DEBUG also write the run to a file under `log_dir`.

    Returns the debug log path when one was opened.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=FORMAT)
    logging.getLogger().setLevel(lvl)
    # pyomo is chatty at DEBUG; keep it at its own default
    logging.getLogger("pyomo").setLevel(max(lvl, logging.INFO))

    if str(level).upper() != "DEBUG":
        return None
    out_dir = Path(log_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logging.getLogger(__name__).warning("Cannot create %s for debug log: %s", out_dir, exc)
        return None
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = out_dir / f"benders_debug_{ts}.txt"
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).info("Writing DEBUG log to %s", log_path)
    return log_path


__all__ = ["setup_logging", "FORMAT"]
