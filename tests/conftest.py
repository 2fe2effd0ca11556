"""
Shared fixtures
"""
import os
import random

# Keep every test on the offline synthesis path, whatever the host environment has set
os.environ["QUIZFORGE_OFFLINE_ONLY"] = "true"

import pytest

from quizforge.config import get_settings

get_settings.cache_clear()


BIOLOGY_TEXT = """Cell Biology Basics

Mitochondria is the powerhouse of the cell. It produces energy in the form of ATP through cellular respiration.

Photosynthesis is the process by which plants convert light energy into chemical energy. Chlorophyll absorbs light in the chloroplasts of leaf cells.

The human body contains about 37 trillion cells. Cells divide because organisms need to grow and repair damaged tissue.

The process of mitosis has four stages: prophase, metaphase, anaphase and telophase. DNA carries the genetic instructions used in growth and development."""


@pytest.fixture
def biology_text():
    return BIOLOGY_TEXT


@pytest.fixture
def rng():
    return random.Random(1234)
