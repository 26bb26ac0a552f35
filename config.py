"""Editor layout configuration"""

from dataclasses import dataclass, field

# Card heights indexed by (max slot count on either side - 1)
_CARD_HEIGHTS = (260.0, 300.0, 340.0, 380.0, 420.0)

# Vertical offsets of the slot rows inside a card, indexed by slot position
_ARROW_POSITIONS = (130.0, 170.0, 210.0, 250.0, 290.0)


@dataclass(frozen=True)
class EditorConfig:
    """Geometry used when placing building cards and anchoring edges"""
    card_width: float = 400.0
    card_heights: tuple[float, ...] = field(default=_CARD_HEIGHTS)
    card_vertical_gap: float = 50.0
    cards_horizontal_gap: float = 100.0
    arrow_positions: tuple[float, ...] = field(default=_ARROW_POSITIONS)

    def card_height(self, slot_count: int) -> float:
        """Height of a card showing slot_count rows on its busiest side.

        Precondition:
            slot_count is a non-negative integer

        Postcondition:
            zero or one row uses the smallest height
            counts beyond the table use the largest height

        Args:
            slot_count: max(number of inputs, number of outputs)

        Returns:
            card height
        """
        index = min(max(slot_count - 1, 0), len(self.card_heights) - 1)
        return self.card_heights[index]

    def anchor_offset(self, slot_index: int) -> float:
        """Vertical offset of a slot row, clamped to the last known row"""
        index = min(max(slot_index, 0), len(self.arrow_positions) - 1)
        return self.arrow_positions[index]


DEFAULT_CONFIG = EditorConfig()
