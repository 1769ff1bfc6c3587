"""Build scripts and import-string resolution for Brut.

A page opts into post-processing with a ``buildScript`` frontmatter key naming
an identifier. Identifiers are registered ahead of the build, either in code or
from ``brut.yaml`` import strings resolved at configuration time, so a page can
only reach functions the site explicitly exposed.

Key classes:
- BuildScriptRegistry: Identifier to build-script mapping.
- CallableLoader: Resolves ``module:attr`` and ``file.py:attr`` strings.
"""

from __future__ import annotations

import importlib
import importlib.util
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any

from .protocols import BuildScript


class UnknownBuildScriptError(LookupError):
    """A page names a build script that was never registered."""


class BuildScriptRegistry(Mapping[str, BuildScript]):
    """Registry of build scripts keyed by identifier.

    This registry allows adding new scripts without modifying the renderer.
    """

    def __init__(self, scripts: Mapping[str, BuildScript] | None = None):
        self._scripts: dict[str, BuildScript] = {}
        for name, script in (scripts or {}).items():
            self.register(name, script)

    def register(self, name: str, script: BuildScript) -> None:
        """Register a build script.

        Args:
            name: Identifier pages use in their ``buildScript`` frontmatter.
            script: Callable taking (html, frontmatter, slug).

        Raises:
            TypeError: If script is not callable.
        """
        if not callable(script):
            raise TypeError(f"Build script {name!r} is not callable")
        self._scripts[name] = script

    def resolve(self, name: str) -> BuildScript:
        """Return the script registered under name.

        Raises:
            UnknownBuildScriptError: If nothing is registered under name.
        """
        try:
            return self._scripts[name]
        except KeyError:
            raise UnknownBuildScriptError(f"Unknown build script: {name!r}") from None

    def __getitem__(self, name: str) -> BuildScript:
        return self._scripts[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._scripts)

    def __len__(self) -> int:
        return len(self._scripts)


class CallableLoader:
    """Resolves import strings to callables.

    Two forms are accepted:
    - ``package.module:function`` imported from ``sys.path``.
    - ``scripts/build_index.py:function`` loaded from a file relative to the
      project root. Each file is executed once per loader.

    Attributes:
        project_root: Directory file paths are resolved against.
    """

    def __init__(self, project_root: Path):
        self.project_root = project_root
        self._modules: dict[Path, ModuleType] = {}

    def load(self, target: str) -> Callable[..., Any]:
        """Resolve an import string to a callable.

        Args:
            target: ``module:attr`` or ``path/to/file.py:attr``.

        Returns:
            The referenced callable.

        Raises:
            ValueError: If the string is malformed or the target is not callable.
            ImportError: If the module or file cannot be loaded.
            AttributeError: If the module has no such attribute.
        """
        module_ref, sep, attr = target.rpartition(":")
        if not sep or not module_ref or not attr:
            raise ValueError(
                f"Expected 'module:function' or 'file.py:function', got {target!r}"
            )
        if module_ref.endswith(".py") or "/" in module_ref:
            module = self._load_file(module_ref)
        else:
            module = importlib.import_module(module_ref)
        obj = getattr(module, attr)
        if not callable(obj):
            raise ValueError(f"{target!r} does not reference a callable")
        return obj

    def _load_file(self, ref: str) -> ModuleType:
        path = (self.project_root / ref.lstrip("/")).resolve()
        if path in self._modules:
            return self._modules[path]
        if not path.is_file():
            raise ImportError(f"No such script file: {path}")
        spec = importlib.util.spec_from_file_location(
            f"brut_script_{len(self._modules)}_{path.stem}", path
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot load script file: {path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        self._modules[path] = module
        return module
