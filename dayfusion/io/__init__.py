"""DayFusion I/O package.

JSON persistence helpers and file-backed collaborator implementations.
"""

from dayfusion.io.persistence import (
    JsonDirectoryCollector,
    JsonSummaryStore,
    load_json,
    save_json,
    to_json,
)

__all__ = [
    "save_json",
    "load_json",
    "to_json",
    "JsonDirectoryCollector",
    "JsonSummaryStore",
]
