#!/usr/bin/env python3
"""MaxCul RF - Typing for CulProtocol & CulTransport."""

from collections.abc import Callable
from datetime import datetime as dt

LineHandlerT = Callable[[dt, str], None]
ErrorHandlerT = Callable[[Exception | None], None]
SerPortNameT = str
