"""Shared fixtures: a fresh FakeEngine and models loaded from it."""

import gc

import pytest

from safevosk.engine.fake import FakeEngine
from safevosk.model import Model, SpeakerModel


@pytest.fixture
def engine():
    engine = FakeEngine()
    yield engine
    gc.collect()


@pytest.fixture
def model(engine):
    return Model("model", engine=engine)


@pytest.fixture
def speaker_model(engine):
    return SpeakerModel("spk-model", engine=engine)
