#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - the test suite."""
