import sys
from pathlib import Path
from typing import Any

from loguru import logger

_CONSOLE_FORMAT = "<level>{level:<8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"

_DEFAULT_CONSUMERS: list[dict[str, Any]] = [
    {"type": "console", "level": "WARNING"},
    {"type": "file", "path": "fiat_agent.log"},
]


def _add_console(level: str, **_: Any) -> str:
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)
    return f"console (stderr, {level})"


def _add_file(level: str, path: str = "fiat_agent.log", rotation: str = "10 MB", retention: int = 3, **_: Any) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(path, level=level, format=_FILE_FORMAT, rotation=rotation, retention=retention)
    return f"file ({path}, {level})"


_CONSUMERS = {
    "console": _add_console,
    "file": _add_file,
}


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace loguru's default sink with the configured ones. Returns a description of each."""
    logger.remove()

    descriptions: list[str] = []
    for config in consumers if consumers is not None else _DEFAULT_CONSUMERS:
        sink_type = config.get("type", "")
        add_sink = _CONSUMERS.get(sink_type)
        if add_sink is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue
        options = {k: v for k, v in config.items() if k not in ("type", "level")}
        descriptions.append(add_sink(config.get("level", level), **options))

    return descriptions
