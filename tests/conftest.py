# tests/conftest.py
# -*- coding: utf-8 -*-
"""Shared fixtures for the Gaia test suite."""

import random

import pytest

from gaia.core.handle import generate_handle
from gaia.core.primitives import get_primitive


@pytest.fixture
def primitive():
    """The default cipher primitive (AES-256-GCM)."""
    return get_primitive()


@pytest.fixture
def seeded_rng():
    """Deterministic byte source with the same signature as get_random_bytes."""
    return random.Random(20231019).randbytes


@pytest.fixture
def handle(primitive, seeded_rng):
    return generate_handle(seeded_rng, primitive)


@pytest.fixture
def other_handle(primitive):
    # Fresh handle from the OS random source
    return generate_handle(primitive=primitive)
