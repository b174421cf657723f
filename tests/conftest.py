"""
Pytest configuration and shared fixtures.
"""
import json
import logging

import pytest


@pytest.fixture
def interactions(caplog):
    """Return a callable listing the JSON Lines records logged so far."""

    caplog.set_level(logging.INFO, logger="uvicorn.error")

    def _records():
        return [
            json.loads(record.getMessage())
            for record in caplog.records
            if record.name == "uvicorn.error"
        ]

    return _records
