import logging
import textwrap

import pytest

from schemagen.definitions import Definition
from schemagen.utils.logging import logger as schemagen_logger


@pytest.fixture(autouse=True)
def configure_logging():
    """Configure logging to avoid Rich Text object issues in tests."""
    # Disable Rich handlers and use basic logging
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if "Rich" in handler.__class__.__name__:
            root.removeHandler(handler)
    logging.basicConfig(level=logging.WARNING, format="%(message)s", force=True)

    # CLI tests reconfigure the shared logger; start every test from the defaults
    schemagen_logger.structured = False
    schemagen_logger.level = logging.INFO
    schemagen_logger.logger = logging.getLogger("schemagen")
    schemagen_logger.logger.setLevel(logging.INFO)
    yield
    logging.basicConfig(level=logging.INFO, force=True)


@pytest.fixture
def write_package(tmp_path):
    """Write a directory of Python modules and return its path.

    Usage:
        root = write_package("models", {"person.py": "class Person: ..."})
    """

    def _write(name, files):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for filename, source in files.items():
            path = root / filename
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return root

    return _write


@pytest.fixture
def person_graph():
    """Person referencing Address, plus an unrelated Orphan."""
    return {
        "Person": Definition(
            type="object",
            properties={
                "name": Definition(type="string"),
                "address": Definition.reference("Address"),
            },
            required=["name"],
        ),
        "Address": Definition(
            type="object",
            properties={"street": Definition(type="string")},
            required=["street"],
        ),
        "Orphan": Definition(type="object", properties={"x": Definition(type="integer")}),
    }
