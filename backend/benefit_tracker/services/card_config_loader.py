"""Service to load the card catalog from YAML files."""
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from benefit_tracker.models.benefit import BenefitDefinition
from benefit_tracker.models.card import CreditCard

logger = logging.getLogger(__name__)


class CardCatalog:
    """Read-only cards and benefit definitions, loaded once per process."""

    def __init__(self, cards: list[CreditCard], benefits: list[BenefitDefinition]):
        self.cards = list(cards)
        self.benefits = list(benefits)
        self._cards_by_id = {card.id: card for card in self.cards}
        self._benefits_by_id = {benefit.id: benefit for benefit in self.benefits}

    def get_card(self, card_id: str) -> CreditCard | None:
        return self._cards_by_id.get(card_id)

    def get_benefit(self, benefit_id: str) -> BenefitDefinition | None:
        return self._benefits_by_id.get(benefit_id)

    def benefits_for_card(self, card_id: str) -> list[BenefitDefinition]:
        return [benefit for benefit in self.benefits if benefit.card_id == card_id]


def load_card_catalog(configs_dir: Path) -> CardCatalog:
    """Load every ``*.yaml`` card file in ``configs_dir``.

    Files that fail to parse or validate are logged and skipped.
    """
    if not configs_dir.exists():
        logger.warning(f"Card configs directory not found: {configs_dir}")
        return CardCatalog([], [])

    cards: list[CreditCard] = []
    benefits: list[BenefitDefinition] = []

    for yaml_file in sorted(configs_dir.glob("*.yaml")):
        try:
            card, card_benefits = _load_single_config(yaml_file)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            logger.error(f"Failed to load card config from {yaml_file}: {e}")
            continue
        if card is None:
            continue
        cards.append(card)
        benefits.extend(card_benefits)

    logger.info(f"Loaded {len(cards)} card configs with {len(benefits)} benefits")
    return CardCatalog(cards, benefits)


def _load_single_config(yaml_path: Path) -> tuple[CreditCard | None, list[BenefitDefinition]]:
    """Load a single card config from YAML file."""
    with open(yaml_path, "r") as f:
        data = yaml.safe_load(f) or {}

    card_id = data.get("id")
    if not card_id:
        logger.warning(f"Card config missing id: {yaml_path}")
        return None, []

    card = CreditCard(**{key: value for key, value in data.items() if key != "benefits"})
    benefits = [
        BenefitDefinition(**{**benefit, "card_id": card_id})
        for benefit in data.get("benefits", [])
    ]
    logger.debug(f"Loaded card config {card_id} with {len(benefits)} benefits")
    return card, benefits
