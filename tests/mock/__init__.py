#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - mocked devices/transports used for testing."""

from .transport import (  # noqa: F401
    MOCKED_PORT,
    MockTransport,
    mock_create_stack,
    mock_transport_factory,
)
