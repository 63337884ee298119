"""
Simulation Engine - Main chronon loop for the Wa-Tor Simulator.

Manages the core simulation step: entity enumeration, randomized order of
action, movement, reproduction, predator feeding and starvation, and the
population balancing pass that runs after every chronon.

All randomness flows through one seeded `numpy.random.Generator` owned by
the engine, so runs are reproducible from `config.world.seed`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import numpy as np

from wator.core.config import SimConfig, check_config
from wator.core.entity import Entity
from wator.core.errors import NoSpaceAvailableError
from wator.core.planet import Planet
from wator.core.position import Position
from wator.utils.spatial import (
    Direction,
    are_adjacent,
    neighbor_in_direction,
    random_direction_order,
)


# ---------------------------------------------------------------------------
# Chronon statistics - lightweight counters for one chronon
# ---------------------------------------------------------------------------

@dataclass
class ChrononStats:
    """Statistics collected during a single chronon."""
    prey_born: int = 0
    predators_born: int = 0
    prey_eaten: int = 0
    predators_starved: int = 0
    prey_balanced: int = 0
    predators_balanced: int = 0
    moves: int = 0
    blocked: int = 0
    skipped_dead: int = 0


STAT_FIELDS = (
    "prey_born", "predators_born", "prey_eaten", "predators_starved",
    "prey_balanced", "predators_balanced", "moves", "blocked", "skipped_dead",
)


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Result of a complete simulation run."""
    config: SimConfig
    seed: int
    total_chronons: int = 0
    final_prey_count: int = 0
    final_predator_count: int = 0
    stopped_early: bool = False
    spawn_failures: int = 0
    chronon_stats_history: list[ChrononStats] = field(default_factory=list)

    @property
    def final_population(self) -> int:
        return self.final_prey_count + self.final_predator_count


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Core Wa-Tor simulation engine.

    Owns the planet and the random generator. Each chronon every live
    entity acts once in shuffled order, then the balancing pass runs.

    Attributes:
        config: Simulation configuration.
        planet: The grid of entities.
        rng: Master random generator (seeded).
        chronon_stats: Statistics for the most recent chronon.
        spawn_failures: Random placements skipped for lack of space.
        chronon_history: Per-chronon stats, filled only when keep_history is set.
        on_chronon: Optional callback invoked after each chronon(chronon, engine).
    """

    def __init__(
        self,
        config: SimConfig,
        seed: Optional[int] = None,
        keep_history: bool = False,
    ):
        """
        Create a simulation engine.

        Args:
            config: Simulation configuration.
            seed: Random seed override. None = use config.world.seed.
            keep_history: Retain every chronon's ChrononStats for
                `RunResult.chronon_stats_history`. Off by default.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config

        if seed is not None:
            self.config.world.seed = seed

        check_config(self.config)

        self.planet = Planet(self.config.world.width, self.config.world.height)
        self.rng = np.random.default_rng(self.config.world.seed)

        self.current_chronon: int = 0
        self.chronon_stats = ChrononStats()
        self.spawn_failures: int = 0
        self.keep_history = keep_history
        self.chronon_history: list[ChrononStats] = []
        self._accumulated_totals: dict[str, int] = dict.fromkeys(STAT_FIELDS, 0)
        self._stop_requested = False

        # Callbacks
        self.on_chronon: Optional[Callable[[int, "SimulationEngine"], None]] = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(
        self,
        prey_count: Optional[int] = None,
        predator_count: Optional[int] = None,
    ) -> None:
        """
        Seed the planet with the initial population at random cells.

        A spawn that cannot find space is skipped and counted in
        `spawn_failures`.

        Args:
            prey_count: Override initial prey count. None = use config.
            predator_count: Override initial predator count. None = use config.
        """
        if prey_count is None:
            prey_count = self.config.prey.initial_count
        if predator_count is None:
            predator_count = self.config.predator.initial_count

        for is_prey, count in ((True, prey_count), (False, predator_count)):
            for _ in range(count):
                try:
                    self.add_entity(is_prey)
                except NoSpaceAvailableError:
                    self.spawn_failures += 1

    def add_entity(self, is_prey: bool) -> Entity:
        """
        Place a new entity of the given kind at a random empty cell.

        Draws uniformly random cells until an empty one is found, giving
        up after `population.placement_max_attempts` draws.

        Returns:
            The placed entity.

        Raises:
            NoSpaceAvailableError: If the planet is full or the retry
                budget is exhausted.
        """
        planet = self.planet
        max_attempts = self.config.population.placement_max_attempts

        if planet.is_full:
            raise NoSpaceAvailableError(0, planet.population, planet.capacity)

        for _ in range(max_attempts):
            position = Position(
                int(self.rng.integers(0, planet.height)),
                int(self.rng.integers(0, planet.width)),
            )
            if planet.is_empty(position):
                entity = Entity(is_prey, position, self.config)
                planet.place(entity, position)
                return entity

        raise NoSpaceAvailableError(max_attempts, planet.population, planet.capacity)

    def get_entities(self) -> list[Entity]:
        """Snapshot of all live entities in planet-enumeration order."""
        return self.planet.entities_snapshot()

    # ------------------------------------------------------------------
    # Movement & reproduction
    # ------------------------------------------------------------------

    def _below_capacity(self) -> bool:
        return self.planet.population < self.config.population.max_entities

    def _relocate_and_reproduce(self, entity: Entity, destination: Position) -> None:
        """
        Move an entity and leave an offspring in the vacated cell if due.
        """
        origin = self.planet.move(entity, destination)
        self.chronon_stats.moves += 1

        if entity.can_reproduce and self._below_capacity():
            self.planet.place(Entity(entity.is_prey, origin, self.config), origin)
            entity.reset_reproduction_time()
            if entity.is_prey:
                self.chronon_stats.prey_born += 1
            else:
                self.chronon_stats.predators_born += 1
        else:
            entity.tick_reproduction()

    def move_and_reproduce(self, entity: Entity, direction_orders: Sequence[Direction]) -> None:
        """
        Move to the first free neighbor in priority order, reproducing if due.

        The first direction whose target cell is in bounds and empty wins.
        If the entity moves with its countdown run out and the population
        is below `max_entities`, a new entity of the same kind is created
        in the vacated cell and the countdown resets. In every other case
        the countdown decrements by one, whether or not the entity moved.

        Args:
            entity: A live entity stored on the planet.
            direction_orders: Directions to try, in priority order.
        """
        planet = self.planet
        for direction in direction_orders:
            target = neighbor_in_direction(entity.position, direction, planet.width, planet.height)
            if target is not None and planet.is_empty(target):
                self._relocate_and_reproduce(entity, target)
                return

        self.chronon_stats.blocked += 1
        entity.tick_reproduction()

    # ------------------------------------------------------------------
    # Species behavior
    # ------------------------------------------------------------------

    def perform_prey_actions(self, entity: Entity, direction_orders: Sequence[Direction]) -> None:
        """Prey only move and reproduce."""
        self.move_and_reproduce(entity, direction_orders)

    def perform_predator_actions(
        self,
        entity: Entity,
        occupied_by_prey_coords: Optional[Position],
        direction_orders: Sequence[Direction],
    ) -> None:
        """
        Run one predator chronon.

        Order:
          1. Energy 0: starve (removed from the planet, marked dead), stop.
          2. Adjacent prey given: kill it, move into its cell, gain
             `predator.food_value`; reproduction follows the same
             vacated-cell rule as ordinary movement.
          3. Otherwise: ordinary movement/reproduction.
          4. Energy drops by one.

        Args:
            entity: A live predator stored on the planet.
            occupied_by_prey_coords: Cell of the prey to eat, or None.
            direction_orders: Directions to try when not eating.

        Raises:
            ValueError: If the target is not an adjacent live prey.
        """
        if entity.energy == 0:
            self.planet.kill(entity.position)
            self.chronon_stats.predators_starved += 1
            return

        if occupied_by_prey_coords is not None:
            prey = self.planet.entity_at(occupied_by_prey_coords)
            if prey is None or not prey.alive or not prey.is_prey:
                raise ValueError(f"No live prey at {occupied_by_prey_coords} for {entity!r}")
            if not are_adjacent(entity.position, occupied_by_prey_coords):
                raise ValueError(f"Prey at {occupied_by_prey_coords} is not adjacent to {entity!r}")

            self.planet.kill(occupied_by_prey_coords)
            self.chronon_stats.prey_eaten += 1
            self._relocate_and_reproduce(entity, occupied_by_prey_coords)
            entity.feed(self.config.predator.food_value)
        else:
            self.move_and_reproduce(entity, direction_orders)

        entity.burn_energy()

    def get_surrounding_prey(self, entity: Entity) -> list[Entity]:
        """Live prey in the N, S, W, E neighbor cells, in that order."""
        prey = []
        for position in self.planet.neighbors4(entity.position):
            neighbor = self.planet.entity_at(position)
            if neighbor is not None and neighbor.alive and neighbor.is_prey:
                prey.append(neighbor)
        return prey

    def choose_prey_target(self, entity: Entity) -> Optional[Position]:
        """
        Pick the cell of the prey a predator will eat, or None.

        `predator.target_selection` = "first" takes the first prey in
        N, S, W, E order; "random" picks one uniformly with the engine RNG.
        """
        surrounding = self.get_surrounding_prey(entity)
        if not surrounding:
            return None
        if self.config.predator.target_selection == "first" or len(surrounding) == 1:
            return surrounding[0].position
        return surrounding[int(self.rng.integers(0, len(surrounding)))].position

    # ------------------------------------------------------------------
    # Balancing
    # ------------------------------------------------------------------

    def balance_predators_and_prey(self) -> int:
        """
        Purge the dominant species when the planet nears capacity.

        Once the live population reaches the high-water mark
        (`population.high_water_pct` of `max_entities`), the first
        `delete_unbalanced_entities` members of the more numerous species
        in enumeration order are removed. Equal counts remove nothing.

        Returns:
            Number of entities removed.
        """
        planet = self.planet
        if planet.population < self.config.population.high_water_mark:
            return 0

        if planet.prey_count > planet.predator_count:
            purge_prey = True
        elif planet.predator_count > planet.prey_count:
            purge_prey = False
        else:
            return 0

        victims = [e for e in planet.entities_snapshot() if e.is_prey == purge_prey]
        victims = victims[:self.config.population.delete_unbalanced_entities]
        for entity in victims:
            planet.kill(entity.position)

        if purge_prey:
            self.chronon_stats.prey_balanced += len(victims)
        else:
            self.chronon_stats.predators_balanced += len(victims)
        return len(victims)

    # ------------------------------------------------------------------
    # Core chronon
    # ------------------------------------------------------------------

    def step(self) -> ChrononStats:
        """
        Execute one chronon.

        Processing order:
          1. Snapshot live entities and shuffle them
          2. For each entity still alive, with a fresh direction order:
             prey move/reproduce; predators starve, eat or move
          3. Balance the population
          4. Increment chronon counter
          5. Fire callback

        Returns:
            ChrononStats for this chronon.
        """
        self.chronon_stats = stats = ChrononStats()

        entities = self.get_entities()
        self.rng.shuffle(entities)

        for entity in entities:
            if not entity.alive:
                stats.skipped_dead += 1
                continue  # Eaten earlier in this chronon

            direction_orders = random_direction_order(self.rng)
            if entity.is_prey:
                self.perform_prey_actions(entity, direction_orders)
            else:
                target = self.choose_prey_target(entity)
                self.perform_predator_actions(entity, target, direction_orders)

        self.balance_predators_and_prey()

        self.current_chronon += 1
        for attr in STAT_FIELDS:
            self._accumulated_totals[attr] += getattr(stats, attr)
        if self.keep_history:
            self.chronon_history.append(stats)

        if self.on_chronon is not None:
            self.on_chronon(self.current_chronon, self)

        return stats

    # ------------------------------------------------------------------
    # Multi-chronon run
    # ------------------------------------------------------------------

    def run(self, iteration_count: Optional[int] = None) -> RunResult:
        """
        Run the simulation for a number of chronons.

        Runs exactly `iteration_count` chronons unless `request_stop()` is
        called (typically from the `on_chronon` callback).

        Args:
            iteration_count: Chronons to simulate. None = config.run.chronons.

        Returns:
            RunResult with summary statistics.
        """
        if iteration_count is None:
            iteration_count = self.config.run.chronons

        result = RunResult(
            config=self.config,
            seed=self.config.world.seed,
        )

        self._stop_requested = False
        chronons_run = 0
        while chronons_run < iteration_count and not self._stop_requested:
            self.step()
            chronons_run += 1

        result.stopped_early = chronons_run < iteration_count
        result.total_chronons = chronons_run
        result.final_prey_count = self.prey_count
        result.final_predator_count = self.predator_count
        result.spawn_failures = self.spawn_failures
        result.chronon_stats_history = list(self.chronon_history)
        return result

    def request_stop(self) -> None:
        """Ask a running `run()` to stop after the current chronon."""
        self._stop_requested = True

    # ------------------------------------------------------------------
    # Accumulated statistics helpers
    # ------------------------------------------------------------------

    def get_accumulated_stats(self) -> dict[str, int]:
        """
        Totals of all chronon stats from the current accumulation period.

        Totals are summed as chronons complete, so memory stays constant
        however long the run.

        Returns:
            Dict of stat_name -> total_value.
        """
        return dict(self._accumulated_totals)

    def reset_accumulated_stats(self) -> dict[str, int]:
        """
        Reset the accumulated totals and the retained chronon history.

        Returns:
            The totals before reset.
        """
        old = self.get_accumulated_stats()
        self._accumulated_totals = dict.fromkeys(STAT_FIELDS, 0)
        self.chronon_history = []
        return old

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def prey_count(self) -> int:
        return self.planet.prey_count

    @property
    def predator_count(self) -> int:
        return self.planet.predator_count

    @property
    def population(self) -> int:
        """Number of live entities."""
        return self.planet.population

    @property
    def is_empty(self) -> bool:
        """True if no entity is left."""
        return self.planet.population == 0

    def __repr__(self) -> str:
        return (
            f"SimulationEngine(chronon={self.current_chronon}, "
            f"prey={self.prey_count}, "
            f"predators={self.predator_count})"
        )
