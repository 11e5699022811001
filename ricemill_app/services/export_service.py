import csv
import io
import logging
import os
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from ricemill_app.services.columns import Column

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILENAME = "export.csv"


class ExportService:
    @staticmethod
    def to_csv(rows: Iterable[Any], columns: Sequence[Column]) -> str:
        """Serialize ``rows`` across ``columns`` as CSV text.

        The header holds the column labels. String cells are always quoted
        with embedded quotes doubled; other values use their ``str`` form and
        ``None`` becomes an empty field. Lines end with ``\\n``.
        """
        output = io.StringIO()
        header = csv.writer(output, lineterminator="\n")
        header.writerow([col.label for col in columns])

        writer = csv.writer(output, quoting=csv.QUOTE_STRINGS, lineterminator="\n")
        for row in rows:
            writer.writerow([col.value(row) for col in columns])

        text = output.getvalue()
        return text[:-1] if text.endswith("\n") else text

    @staticmethod
    def default_directory() -> Path:
        downloads = Path(os.path.expanduser("~")) / "Downloads"
        if downloads.is_dir():
            return downloads
        return Path.cwd()

    @staticmethod
    def write_csv(
        text: str,
        filename: str = DEFAULT_EXPORT_FILENAME,
        directory: Optional[str] = None,
    ) -> Path:
        target_dir = Path(directory) if directory else ExportService.default_directory()
        target_dir.mkdir(parents=True, exist_ok=True)
        name = filename or DEFAULT_EXPORT_FILENAME
        if not name.lower().endswith(".csv"):
            name += ".csv"
        full_path = target_dir / name
        with open(full_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        logger.info("Exported %s bytes of CSV to %s", len(text.encode("utf-8")), full_path)
        return full_path
