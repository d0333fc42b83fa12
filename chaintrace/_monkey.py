import importlib
from pathlib import Path
from typing import Any
from typing import Callable
from typing import Set

from wrapt.importer import when_imported

from chaintrace.internal.logger import get_logger


log = get_logger(__name__)

# Modules which are patched on first import, keyed by integration name
_MODULES_FOR_CONTRIB = {
    "langchain": ("langchain_core",),
}

_PATCHED_MODULES = set()  # type: Set[str]


class PatchException(Exception):
    """Wraps regular `Exception` class when patching modules"""

    pass


class ModuleNotFoundException(PatchException):
    pass


def _on_import_factory(module, path_f, raise_errors=True):
    # type: (str, str, bool) -> Callable[[Any], None]
    """Factory to create an import hook for the provided module name"""

    def on_import(hook):
        try:
            imported_module = importlib.import_module(path_f % (module,))
            imported_module.patch()
        except Exception as e:
            if raise_errors:
                raise
            log.error("failed to enable chaintrace support for %s: %s", module, str(e))

    return on_import


def patch(raise_errors=True, **patch_modules):
    # type: (bool, bool) -> None
    """Patch only a set of given integrations.

    Integrations are patched as soon as the library they instrument is imported, or immediately when
    it already is.

    :param bool raise_errors: Raise error if one patch fail.
    :param dict patch_modules: Integrations to patch.

        >>> patch(langchain=True)
    """
    contribs = [c for c, enabled in patch_modules.items() if enabled]
    for contrib in contribs:
        if not (Path(__file__).parent / "contrib" / contrib / "patch.py").exists():
            if raise_errors:
                raise ModuleNotFoundException(f"{contrib} does not have automatic instrumentation")
            log.error("%s does not have automatic instrumentation", contrib)
            continue
        for module in _MODULES_FOR_CONTRIB.get(contrib, (contrib,)):
            when_imported(module)(_on_import_factory(contrib, "chaintrace.contrib.%s.patch", raise_errors=raise_errors))
        _PATCHED_MODULES.add(contrib)

    log.info(
        "Configured chaintrace instrumentation for %s integration(s). The following modules have been patched: %s",
        len(contribs),
        ",".join(contribs),
    )


def _get_patched_modules() -> Set[str]:
    """Get the list of patched modules"""
    return _PATCHED_MODULES
