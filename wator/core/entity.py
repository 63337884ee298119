"""
Entity (organism) for the Wa-Tor Simulator.

Each entity is either a prey or a predator occupying exactly one cell of
the planet. Species constants (reproduction period, starting energy) are
read from the simulation config at creation.

Prey carry no energy. Predators start with `predator.initial_energy`, gain
`predator.food_value` per meal and lose one unit per chronon; a predator
whose energy is 0 when its turn comes starves.
"""

from __future__ import annotations

from typing import Optional

from wator.core.config import SimConfig
from wator.core.position import Position


# Unique ID counter for entities
_next_entity_id: int = 0

_DEFAULT_CONFIG = SimConfig()


def _get_next_id() -> int:
    """Generate a globally unique entity ID."""
    global _next_entity_id
    eid = _next_entity_id
    _next_entity_id += 1
    return eid


def reset_entity_id_counter() -> None:
    """Reset the ID counter (useful for tests)."""
    global _next_entity_id
    _next_entity_id = 0


class Entity:
    """
    A prey or predator on the planet.

    Attributes:
        id: Unique identifier.
        is_prey: True for prey, False for predators. Fixed at creation.
        position: Current cell. Kept equal to the storage cell by the planet.
        alive: False once eaten, starved or purged by balancing.
        reproduction_countdown: Chronons left until reproduction is eligible.
            Eligible at 0 or below.
        energy: Predator energy, None for prey.
    """

    __slots__ = (
        "id", "is_prey", "position", "alive",
        "reproduction_countdown", "energy", "_reproduction_time",
    )

    def __init__(
        self,
        is_prey: bool,
        position: Position,
        config: Optional[SimConfig] = None,
    ):
        """
        Create an entity.

        Args:
            is_prey: Species flag.
            position: Initial cell.
            config: Source of species constants. None = defaults.
        """
        if config is None:
            config = _DEFAULT_CONFIG

        self.id = _get_next_id()
        self.is_prey = is_prey
        self.position = position
        self.alive = True

        if is_prey:
            self._reproduction_time = config.prey.reproduction_time
            self.energy: Optional[int] = None
        else:
            self._reproduction_time = config.predator.reproduction_time
            self.energy = config.predator.initial_energy

        self.reproduction_countdown = self._reproduction_time

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_predator(self) -> bool:
        return not self.is_prey

    @property
    def species(self) -> str:
        """'prey' or 'predator'."""
        return "prey" if self.is_prey else "predator"

    @property
    def reproduction_time(self) -> int:
        """Species reproduction period this entity resets to."""
        return self._reproduction_time

    @property
    def can_reproduce(self) -> bool:
        """True once the countdown has run out."""
        return self.reproduction_countdown <= 0

    @property
    def is_starved(self) -> bool:
        """True for a predator with no energy left. Always False for prey."""
        return self.energy is not None and self.energy <= 0

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def reset_reproduction_time(self) -> None:
        """Restart the reproduction countdown at the species period."""
        self.reproduction_countdown = self._reproduction_time

    def tick_reproduction(self) -> None:
        """Count down one chronon toward reproduction."""
        self.reproduction_countdown -= 1

    def feed(self, food_value: int) -> None:
        """Add energy from a meal. Prey never feed."""
        if self.energy is None:
            raise ValueError(f"Prey cannot feed: {self!r}")
        self.energy += food_value

    def burn_energy(self) -> None:
        """Spend one unit of energy at the end of a predator's chronon."""
        if self.energy is None:
            raise ValueError(f"Prey has no energy to burn: {self!r}")
        self.energy = max(0, self.energy - 1)

    def die(self) -> None:
        """Mark as dead. The planet cell is cleared separately."""
        self.alive = False

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Serialize to a dict (for snapshots)."""
        data = {
            "id": self.id,
            "prey": self.is_prey,
            "row": self.position.row,
            "col": self.position.col,
            "alive": self.alive,
            "reproduction_countdown": self.reproduction_countdown,
        }
        if self.energy is not None:
            data["energy"] = self.energy
        return data

    def __repr__(self) -> str:
        repr_ = (
            f"Entity(prey={self.is_prey}, coords={self.position}, "
            f"remaining_reproduction_time={self.reproduction_countdown}"
        )
        if self.energy is not None:
            repr_ += f", energy_value={self.energy}"
        return repr_ + ")"
