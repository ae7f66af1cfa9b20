import os
import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from benefit_tracker.models.benefit import BenefitDefinition
from benefit_tracker.models.transaction import StoredTransaction
from benefit_tracker.services.card_config_loader import load_card_catalog
from benefit_tracker.store import UserBenefitsStore

CONFIGS_DIR = Path(__file__).resolve().parents[1] / "benefit_tracker" / "configs" / "cards"

TODAY = date(2026, 5, 15)


def build_definition(**overrides) -> BenefitDefinition:
    values = {
        "id": "test-credit",
        "card_id": "amex-platinum",
        "name": "Test Credit",
        "credit_amount": 100,
        "reset_frequency": "annual",
        "start_date": date(2020, 1, 1),
        "end_date": date(2030, 12, 31),
    }
    values.update(overrides)
    return BenefitDefinition(**values)


def credit(on: date, amount: float, description: str = "Credit", source: str = "statement") -> StoredTransaction:
    return StoredTransaction(date=on, description=description, amount=amount, source=source)


@pytest.fixture
def make_definition():
    return build_definition


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def catalog():
    return load_card_catalog(CONFIGS_DIR)


@pytest.fixture
def store(tmp_path):
    return UserBenefitsStore(tmp_path / "user-benefits.json")
