import importlib

import mock
import pytest

import chaintrace
from chaintrace import _monkey
from chaintrace.contrib.langchain import get_handler
from chaintrace.contrib.langchain import unpatch


@pytest.fixture
def langchain_unpatched():
    yield
    unpatch()
    _monkey._PATCHED_MODULES.discard("langchain")


def test_patch_langchain(langchain_unpatched):
    import langchain_core  # noqa:F401

    chaintrace.patch(langchain=True)

    assert "langchain" in _monkey._get_patched_modules()
    assert get_handler() is not None


def test_patch_disabled_integration(langchain_unpatched):
    chaintrace.patch(langchain=False)

    assert "langchain" not in _monkey._get_patched_modules()
    assert get_handler() is None


def test_patch_unknown_integration():
    with pytest.raises(_monkey.ModuleNotFoundException):
        chaintrace.patch(not_an_integration=True)


def test_patch_unknown_integration_no_raise():
    with mock.patch("chaintrace._monkey.log") as log:
        chaintrace.patch(raise_errors=False, not_an_integration=True)

    assert "not_an_integration" not in _monkey._get_patched_modules()
    log.error.assert_called_once_with("%s does not have automatic instrumentation", "not_an_integration")


def test_patch_failure_no_raise(langchain_unpatched):
    import langchain_core  # noqa:F401

    patch_module = importlib.import_module("chaintrace.contrib.langchain.patch")
    with mock.patch.object(patch_module, "patch", side_effect=RuntimeError("broken")):
        with mock.patch("chaintrace._monkey.log") as log:
            chaintrace.patch(raise_errors=False, langchain=True)

    log.error.assert_called_once_with("failed to enable chaintrace support for %s: %s", "langchain", "broken")
