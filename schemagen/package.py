"""Locating the source files of a package."""

import importlib
import importlib.util
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Set

from schemagen.exceptions import PackageResolutionError
from schemagen.utils.logging import logger


class Package:
    """Fetches a package and lists its source files.

    A package is either a filesystem path (directory or ``.py`` file) or a
    dotted module name. Directories contribute the ``*.py`` files directly
    inside them; modules contribute their own file.
    """

    def __init__(self, name: str, search_paths: Sequence[str] = (), auto_install: bool = False):
        self.name = name
        self.search_paths = [Path(p) for p in search_paths]
        self.auto_install = auto_install

    @property
    def is_path(self) -> bool:
        return Path(self.name).exists()

    def locate(self) -> Optional[Path]:
        """Return the package directory or module file, or None if not found."""
        path = Path(self.name)
        if path.exists():
            return path.resolve()

        relative = Path(*self.name.split("."))
        for search_path in self.search_paths:
            candidate = search_path / relative
            if candidate.is_dir():
                return candidate.resolve()
            module_file = candidate.with_suffix(".py")
            if module_file.is_file():
                return module_file.resolve()

        try:
            spec = importlib.util.find_spec(self.name)
        except (ImportError, ValueError):
            spec = None
        if spec is None:
            return None
        if spec.submodule_search_locations:
            return Path(list(spec.submodule_search_locations)[0])
        if spec.origin and spec.origin.endswith(".py"):
            return Path(spec.origin)
        return None

    def is_available(self) -> bool:
        return self.locate() is not None

    def fetch(self) -> bool:
        """Make sure the package source is available locally.

        Returns:
            True if the package can be located afterwards

        Raises:
            PackageResolutionError: If an automatic install fails
        """
        if self.is_available():
            return True

        if not self.auto_install:
            logger.warning("Package not available locally", package=self.name)
            return False

        distribution = self.name.split(".")[0]
        logger.info("Installing package", package=self.name, distribution=distribution)
        try:
            subprocess.run(
                [sys.executable, "-m", "pip", "install", distribution],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise PackageResolutionError(
                self.name,
                f"pip install {distribution} failed: {(e.stderr or '').strip()}",
            ) from e

        importlib.invalidate_caches()
        return self.is_available()

    def list_files(self) -> List[Path]:
        """List the source files of the package.

        Raises:
            PackageResolutionError: If the package cannot be located
        """
        location = self.locate()
        if location is None:
            raise PackageResolutionError(
                self.name,
                "Package not found on the filesystem, the search paths or the import path",
                suggestions=[
                    "Check the package name for typos",
                    "Add its parent directory with --search-path",
                    "Enable auto_install to fetch it with pip",
                ],
            )
        if location.is_dir():
            return sorted(p for p in location.glob("*.py") if p.is_file())
        return [location]

    def module_name(self, file_path: Path) -> Optional[str]:
        """Dotted module name of a file listed by ``list_files``."""
        file_path = Path(file_path)
        location = self.locate()
        if self.is_path:
            if file_path.stem == "__init__":
                return file_path.parent.name
            return file_path.stem
        if location is not None and location.is_file():
            return self.name
        if file_path.stem == "__init__":
            return self.name
        return f"{self.name}.{file_path.stem}"

    def local_modules(self) -> Set[str]:
        """Module names sharing this package's namespace."""
        modules = set()
        for file_path in self.list_files():
            name = self.module_name(file_path)
            if name:
                modules.add(name)
        return modules
