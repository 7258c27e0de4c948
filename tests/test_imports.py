# test_imports.py
import importlib

import pytest


@pytest.mark.parametrize("module", [
    "ai_guidebook.storage.db",
    "ai_guidebook.storage.models",
    "ai_guidebook.storage.repository",
    "ai_guidebook.core.aggregator",
    "ai_guidebook.core.declaration",
    "ai_guidebook.core.service",
    "ai_guidebook.config.loader",
    "ai_guidebook.cli.main",
    "ai_guidebook.demo.seed_demo_data",
])
def test_module_imports(module):
    assert importlib.import_module(module) is not None
