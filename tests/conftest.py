#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Fixtures shared by the test suite.
"""

import logging
from collections.abc import Iterator
from typing import Any

import pytest

from maxcul_tx.command import MSG_COUNTER

from .common import ITEMS_CONFIG

logging.disable(logging.WARNING)  # usu. WARNING


@pytest.fixture(autouse=True)
def reset_msg_counter() -> Iterator[None]:
    """Start each test with a known message counter."""
    MSG_COUNTER.reset()
    yield
    MSG_COUNTER.reset()


@pytest.fixture(autouse=True)
def restore_record_factory() -> Iterator[None]:
    """Undo any timesource set by a replayed packet log."""
    factory = logging.getLogRecordFactory()
    yield
    logging.setLogRecordFactory(factory)


@pytest.fixture()
def items_config() -> dict[str, dict[str, Any]]:
    return {k: dict(v) for k, v in ITEMS_CONFIG.items()}
