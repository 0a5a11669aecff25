"""
conftest.py - Shared pytest fixtures

- ledger: empty Ledger with predictable position ids (pos-1, pos-2, …)
- market: a local OPEN market at p=0.50
- gamma_item: factory for raw Gamma API market dicts
"""

import itertools

import pytest

from pdx.engine.ledger import Ledger


@pytest.fixture
def ledger():
    counter = itertools.count(1)
    return Ledger(id_factory=lambda: f"pos-{next(counter)}")


@pytest.fixture
def market(ledger):
    return ledger.create_local_market("Will it rain in Paris tomorrow?", 0.5)


@pytest.fixture
def gamma_item():
    def make(**overrides):
        raw = {
            "id": "512",
            "question": "Will the Fed cut rates in June?",
            "description": "Resolves YES if the FOMC lowers the target range.",
            "slug": "fed-cut-june",
            "active": True,
            "closed": False,
            "outcomes": '["Yes", "No"]',
            "outcomePrices": '["0.41", "0.59"]',
        }
        raw.update(overrides)
        return raw
    return make
