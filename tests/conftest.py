"""Shared test fixtures for the Hoontr test suite."""

import pytest

from shared.config import HoontrConfig
from shared.logger import HoontrLogger

from tests.pe_builder import (
    TEXT,
    SectionLayout,
    build_dll_with_exports,
    build_pe,
)


@pytest.fixture
def quiet_logger():
    """Logger with no handlers attached."""
    return HoontrLogger("test", log_level="DEBUG", console_output=False)


@pytest.fixture
def config():
    return HoontrConfig()


@pytest.fixture
def text_dll():
    """x64 DLL whose .text section holds ``AABBAABB`` at raw offset 0x10."""
    code = b"\x90" * 0x10 + b"AABBAABB" + b"\xcc" * 0x1E8
    return build_pe([
        SectionLayout(TEXT, 0x1000, len(code), code),
        SectionLayout(b".data", 0x2000, 0x100, b"\x00" * 0x100),
    ])


@pytest.fixture
def export_dll():
    """x64 DLL exporting ``Foo`` and ``bar`` in that order."""
    return build_dll_with_exports(["Foo", "bar"])


@pytest.fixture
def write_file(tmp_path):
    """Write bytes under tmp_path and return the path as a string."""
    def _write(name, data):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return str(path)
    return _write
