# Copyright 2025 Nigel Hayward-Smith
#
# Licensed under the MIT License.

import os

from ament_pep257.main import main
import pytest

PACKAGE_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.mark.linter
@pytest.mark.pep257
def test_pep257():
    paths = [os.path.join(PACKAGE_ROOT, d) for d in ("ros2tui", "launch", "test")]
    rc = main(argv=paths + ["--add-ignore", "D100,D101,D102,D103,D104,D105,D106,D107"])
    assert rc == 0, "Found code style errors / warnings"
