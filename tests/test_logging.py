import logging

from benderskit.logging_config import setup_logging


def test_info_level_opens_no_file(tmp_path):
    assert setup_logging("INFO", log_dir=tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_debug_level_writes_report(tmp_path):
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        path = setup_logging("DEBUG", log_dir=tmp_path / "Report")
        assert path is not None
        logging.getLogger("benderskit.test").debug("hello from the loop")
        for h in root.handlers:
            h.flush()
        assert path.name.startswith("benders_debug_")
        assert "hello from the loop" in path.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
                h.close()
        root.setLevel(logging.WARNING)
