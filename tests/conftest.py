import pytest
import structlog
from openpyxl import Workbook

from tests.factories import LOG_HEADER


@pytest.fixture(autouse=True)
def reset_structlog():
    """The CLI configures structlog against the runner's stderr; undo that after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def write_trap_log(tmp_path):
    """Return a function that writes rows to an .xlsx trap log and returns its path."""

    def _write(rows: list[list], name: str = "traps.xlsx", header: bool = True):
        workbook = Workbook()
        sheet = workbook.active
        if header:
            sheet.append(LOG_HEADER)
        for row in rows:
            sheet.append(row)
        path = tmp_path / name
        workbook.save(path)
        return path

    return _write
