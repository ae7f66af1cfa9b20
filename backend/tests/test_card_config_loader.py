from datetime import date

from benefit_tracker.services.card_config_loader import load_card_catalog
from conftest import CONFIGS_DIR


def test_bundled_catalog_loads(catalog):
    assert [card.id for card in catalog.cards] == ["amex-platinum", "chase-sapphire-reserve"]
    assert len(catalog.benefits_for_card("amex-platinum")) == 13
    assert len(catalog.benefits_for_card("chase-sapphire-reserve")) == 8


def test_benefits_carry_their_card_id(catalog):
    saks = catalog.get_benefit("amex-saks")

    assert saks.card_id == "amex-platinum"
    assert saks.start_date == date(2025, 1, 1)
    assert catalog.get_benefit("missing") is None
    assert catalog.get_card("missing") is None


def test_explicit_periods_are_loaded(catalog):
    stubhub = catalog.get_benefit("csr-stubhub")

    assert [period.id for period in stubhub.periods][:2] == ["csr-stubhub-2025-h2", "csr-stubhub-2026-h1"]
    assert stubhub.periods[-1].id == "csr-stubhub-2027-h2"
    assert stubhub.periods[-1].end_date == stubhub.end_date


def test_invalid_files_are_skipped(tmp_path):
    (tmp_path / "good.yaml").write_text(
        (CONFIGS_DIR / "amex-platinum.yaml").read_text(encoding="utf-8"), encoding="utf-8"
    )
    (tmp_path / "broken.yaml").write_text("id: [unclosed", encoding="utf-8")
    (tmp_path / "no-id.yaml").write_text("name: Nameless Card\n", encoding="utf-8")
    (tmp_path / "bad-cadence.yaml").write_text(
        "id: test-card\nname: Test\nbenefits:\n"
        "  - id: weird\n    name: Weird\n    credit_amount: 10\n    reset_frequency: fortnightly\n"
        "    start_date: '2026-01-01'\n    end_date: '2026-12-31'\n",
        encoding="utf-8",
    )

    catalog = load_card_catalog(tmp_path)

    assert [card.id for card in catalog.cards] == ["amex-platinum"]


def test_missing_directory_gives_empty_catalog(tmp_path):
    catalog = load_card_catalog(tmp_path / "nowhere")

    assert catalog.cards == []
    assert catalog.benefits == []
