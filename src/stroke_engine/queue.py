"""Upcoming-gesture queue: a fixed-depth ring of expected target templates.

Slot 0 is the live target the decision gate compares against; the other
slots preview what comes next. Advancing drops the front entry, moves every
other entry one slot forward and draws a fresh random template for the tail.
The shift is a head-pointer rotation, so advance() is O(1) in the depth.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from stroke_engine.errors import NoTemplates
from stroke_engine.points import Template
from stroke_engine.templates import TemplateLibrary

logger = logging.getLogger("stroke_engine.queue")


class SlotScale(Enum):
    """Display scale tag of a slot; only the front slot is full size."""
    FULL = 1.0
    REDUCED = 0.7


@dataclass(frozen=True)
class QueueSlot:
    template: Optional[Template]
    scale: SlotScale
    serial: int = -1  # draw counter, -1 = empty slot

    @property
    def label(self) -> Optional[str]:
        return self.template.label if self.template is not None else None

    @property
    def is_empty(self) -> bool:
        return self.template is None


class GestureQueue:
    """FIFO preview of upcoming expected gestures.

    Every draw gets a serial number so an entry can be told apart from a
    later draw of the same template.
    """

    def __init__(
        self,
        library: TemplateLibrary,
        depth: int = 3,
        rng: Optional[np.random.Generator] = None,
    ):
        if depth < 1:
            raise ValueError(f"queue depth must be >= 1, got {depth}")
        self._library = library
        self._rng = rng if rng is not None else np.random.default_rng()
        self._entries: list[tuple[Optional[Template], int]] = [(None, -1)] * depth
        self._head = 0
        self._next_serial = 0

    @property
    def depth(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.depth

    def reset(self):
        """Fill every slot, front to back, with freshly drawn templates."""
        entries = [self._draw() for _ in range(self.depth)]
        self._entries = entries
        self._head = 0
        logger.debug("Queue reset: %s", [s.label for s in self.slots])

    def advance(self) -> Optional[Template]:
        """Drop the front entry, shift the rest forward, refill the tail.

        Returns:
            The discarded front template (None if the slot was empty).
        """
        new_tail = self._draw()
        discarded = self._entries[self._head][0]
        # The vacated front position becomes the tail of the ring
        self._entries[self._head] = new_tail
        self._head = (self._head + 1) % self.depth
        logger.debug(
            "Queue advanced: dropped %s, next %s",
            discarded.label if discarded is not None else None,
            self.expected_label,
        )
        return discarded

    def slot(self, index: int) -> QueueSlot:
        """Return the slot at a logical position (0 = front)."""
        if not 0 <= index < self.depth:
            raise IndexError(f"slot index {index} out of range for depth {self.depth}")
        template, serial = self._entries[(self._head + index) % self.depth]
        scale = SlotScale.FULL if index == 0 else SlotScale.REDUCED
        return QueueSlot(template=template, scale=scale, serial=serial)

    @property
    def slots(self) -> list[QueueSlot]:
        """All slots, front to back."""
        return [self.slot(i) for i in range(self.depth)]

    @property
    def expected(self) -> Optional[Template]:
        return self.slot(0).template

    @property
    def expected_label(self) -> Optional[str]:
        return self.slot(0).label

    def _draw(self) -> tuple[Template, int]:
        templates = self._library.all()
        if not templates:
            raise NoTemplates("cannot draw an upcoming gesture from an empty library")
        template = templates[int(self._rng.integers(len(templates)))]
        serial = self._next_serial
        self._next_serial += 1
        return template, serial
