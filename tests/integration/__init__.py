# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Integration tests for the call graph engine.

Covers the full flow from source files through both analysis passes to
aggregated dependencies.
"""
