from pathlib import Path

VERSION = "0.3.0"

DEFAULT_HOME = Path.home() / ".config" / "mneme"


def config_files() -> list[Path]:
    """Candidate config files, highest priority first. Resolved lazily so HOME can change."""
    home = Path.home()
    return [home / ".config" / "mneme" / "config.toml", home / ".mneme.toml"]
