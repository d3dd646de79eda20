"""
Item bank definitions loaded from YAML.

A bank file lists GPCM items with their current parameter values:

    scaling_constant: 1.7
    items:
      - name: item01
        discrimination: 1.1
        steps: [0.0, -0.8, 0.4, 1.2]
      - name: item02
        discrimination: 0.9
        steps: [0.0, -0.2, 0.6]
        score_weights: [0, 1, 3]
        fixed: true

``steps`` always includes the fixed first step. ``score_weights`` defaults to
0, 1, ..., m-1 when omitted.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from omegaconf import MISSING, OmegaConf

from gpcm_analysis.irt.config import (
    DEFAULT_LOG_DOMAIN,
    DEFAULT_SCALING_CONSTANT,
)
from gpcm_analysis.irt.gpcm.model import GPCMItemModel


@dataclass
class ItemConfig:
    """
    One GPCM item.

    Attributes:
        name: Item name.
        discrimination: Discrimination parameter (a).
        steps: All step parameters, starting with the fixed 0.
        score_weights: Score per category. Empty means 0, 1, ..., m-1.
        fixed: Hold the item fixed during estimation.
    """

    name: str = MISSING
    discrimination: float = 1.0
    steps: list[float] = MISSING
    score_weights: list[float] = field(default_factory=list)
    fixed: bool = False


@dataclass
class ItemBankConfig:
    """
    A set of GPCM items sharing one metric.

    Attributes:
        scaling_constant: Scaling constant D for every item.
        log_domain: Shift logits by their maximum before exponentiating.
        items: Item definitions.
    """

    scaling_constant: float = DEFAULT_SCALING_CONSTANT
    log_domain: bool = DEFAULT_LOG_DOMAIN
    items: list[ItemConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.scaling_constant <= 0:
            raise ValueError(
                f"scaling_constant must be > 0, got {self.scaling_constant}"
            )


def load_bank_config(yaml_path: Path) -> ItemBankConfig:
    """Load and validate an item bank from YAML.

    Args:
        yaml_path: Path to YAML bank file

    Returns:
        Validated ItemBankConfig

    Raises:
        FileNotFoundError: If yaml_path doesn't exist
    """
    if not yaml_path.exists():
        raise FileNotFoundError(f"Item bank file not found: {yaml_path}")

    schema = OmegaConf.structured(ItemBankConfig)
    user_config = OmegaConf.load(yaml_path)
    config = OmegaConf.merge(schema, user_config)

    result = OmegaConf.to_object(config)
    assert isinstance(result, ItemBankConfig)
    return result


def build_items(config: ItemBankConfig) -> list[GPCMItemModel]:
    """Create item models from a bank configuration."""
    items = []
    for item_config in config.items:
        item = GPCMItemModel(
            discrimination=item_config.discrimination,
            steps=item_config.steps,
            scaling_constant=config.scaling_constant,
            name=item_config.name,
            fixed=item_config.fixed,
            log_domain=config.log_domain,
        )
        if item_config.score_weights:
            item.score_weights = item_config.score_weights
        items.append(item)
    return items


def load_item_bank(yaml_path: Path) -> list[GPCMItemModel]:
    """Load item models from a YAML bank file."""
    return build_items(load_bank_config(yaml_path))


def select_items(
    items: Sequence[GPCMItemModel], names: Sequence[str]
) -> list[GPCMItemModel]:
    """
    Pick items by name, in the order given.

    Raises:
        KeyError: If a name is not in the bank.
    """
    by_name = {item.name: item for item in items}
    missing = [name for name in names if name not in by_name]
    if missing:
        raise KeyError(f"Items not in bank: {', '.join(missing)}")
    return [by_name[name] for name in names]
