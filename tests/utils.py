from __future__ import annotations

import shutil

import pytest

POSIX_TOOLS = ("sh", "echo", "cat", "tr", "wc", "sleep", "pwd", "true", "yes")

requires_posix_tools = pytest.mark.skipif(
    any(shutil.which(tool) is None for tool in POSIX_TOOLS),
    reason="POSIX command-line tools not available",
)
