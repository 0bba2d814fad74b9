"""LifecycleController - the single entry point for everything above the engine.

The controller owns one pet record per session. It performs the offline
catch-up when a session starts, runs the online loop, applies actions,
handles death, revival and new games, persists the record and publishes
events on its :class:`SignalBus`.
"""
from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass
from typing import Any

from tick_pet import needs
from tick_pet import record as record_store
from tick_pet.catastrophe import CatastropheScheduler
from tick_pet.clock import Clock
from tick_pet.commands import Clean, CommandQueue, Feed, Heal, Play, Revive, StartOver
from tick_pet.config import PetConfig
from tick_pet.engine import OnlineSimulationLoop
from tick_pet.evolution import EvolutionStager
from tick_pet.ledger import LivesLedger
from tick_pet.replay import OfflineReplayEngine, ReplayResult, catch_up_elapsed
from tick_pet.signals import (
    CatastropheStarted,
    Evolved,
    LifeRedeemed,
    NewGame,
    PetDied,
    Revived,
    SignalBus,
)
from tick_pet.sleep import SleepWindowPolicy
from tick_pet.store import KeyValueStore
from tick_pet.systems import spawn_poop
from tick_pet.types import ActiveCatastrophe, PetRecord, SleepConfig, Stage, StepContext
from tick_pet.view import PetView, build_view

logger = logging.getLogger(__name__)

NOT_DEAD = "not-dead"
NO_LIVES = "no-lives"
LEDGER_UNAVAILABLE = "ledger-unavailable"


@dataclass(frozen=True)
class ReviveResult:
    ok: bool
    reason: str | None = None


class LifecycleController:
    def __init__(
        self,
        owner: str,
        store: KeyValueStore,
        ledger: LivesLedger,
        config: PetConfig | None = None,
        clock: Clock | None = None,
        seed: int | None = None,
        bus: SignalBus | None = None,
    ) -> None:
        self._owner = owner
        self._store = store
        self._ledger = ledger
        self._config = config if config is not None else PetConfig()
        self._clock = clock if clock is not None else Clock()
        if seed is None:
            seed = int.from_bytes(os.urandom(8), "big")
        self._seed = seed
        self._rng = random.Random(seed)
        self._bus = bus if bus is not None else SignalBus()
        self._stager = EvolutionStager(self._config.evolution)
        self._commands = CommandQueue()
        self._record: PetRecord | None = None
        self._policy: SleepWindowPolicy | None = None
        self._scheduler: CatastropheScheduler | None = None
        self._loop: OnlineSimulationLoop | None = None
        self._last_persist = self._clock.monotonic_ms()

        self._bus.subscribe(LifeRedeemed, self._on_life_redeemed)
        self._commands.handle(Feed, lambda cmd: self.feed(cmd.food))
        self._commands.handle(Play, lambda cmd: self.play())
        self._commands.handle(Clean, lambda cmd: self.clean())
        self._commands.handle(Heal, lambda cmd: self.heal())
        self._commands.handle(Revive, lambda cmd: self.revive().ok)
        self._commands.handle(StartOver, lambda cmd: self.new_game())

    # --- Properties ---

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def bus(self) -> SignalBus:
        return self._bus

    @property
    def config(self) -> PetConfig:
        return self._config

    @property
    def record(self) -> PetRecord:
        if self._record is None:
            raise RuntimeError("session not started")
        return self._record

    @property
    def policy(self) -> SleepWindowPolicy:
        if self._policy is None:
            raise RuntimeError("session not started")
        return self._policy

    @property
    def scheduler(self) -> CatastropheScheduler:
        if self._scheduler is None:
            raise RuntimeError("session not started")
        return self._scheduler

    @property
    def loop(self) -> OnlineSimulationLoop:
        if self._loop is None:
            raise RuntimeError("session not started")
        return self._loop

    # --- Session ---

    def start_session(self) -> ReplayResult | None:
        """Load or hatch the pet and replay the time since it was last seen.

        Must run before the first online tick. Returns the replay result, or
        None when there was nothing to catch up.
        """
        now = self._clock.wall_ms()
        loaded = record_store.load(self._store, self._owner, now, self._stager)
        if loaded is None:
            loaded = self._hatch(now, record_store.load_sleep(self._store, self._owner))
        self._attach(loaded)
        rec = self.record

        elapsed = catch_up_elapsed(
            rec.last_seen_wall, now, rec.max_seen_wall, self._config.catch_up_cap_ms
        )
        result = None
        if elapsed > 0 and not rec.dead:
            engine = OfflineReplayEngine(self._config, self.policy.is_asleep, self._stager)
            result = engine.replay(rec, rec.last_seen_wall, elapsed, self._rng)
            self._apply_replay(result)

        self.loop.resync()
        self.persist()
        self._bus.flush()
        return result

    def end_session(self) -> None:
        """Stop the loop and flush the latest state, age included."""
        if self._loop is not None:
            self._loop.stop()
        if self._record is not None:
            self.persist()
        self._bus.flush()

    def tick(self) -> None:
        """One stat tick. External timers call this every stat interval."""
        self.loop.step_stats()

    def tick_age(self) -> None:
        self.loop.step_age()
        self._bus.flush()

    def run(self, duration_ms: float | None = None) -> None:
        """Drive both tickers in-process until stopped."""
        self.loop.run_forever(duration_ms)

    def submit(self, command: Any) -> None:
        """Queue an action; it is applied after the next stat tick."""
        if isinstance(command, Feed) and command.food not in self._config.actions.foods:
            raise ValueError(f"Unknown food {command.food!r}")
        self._commands.enqueue(command)

    def persist(self) -> None:
        rec = self.record
        now = self._clock.wall_ms()
        # last seen follows the high-water mark so a rewound clock adds no time
        rec.max_seen_wall = max(rec.max_seen_wall, now)
        rec.last_seen_wall = rec.max_seen_wall
        record_store.save(self._store, rec)
        self._last_persist = self._clock.monotonic_ms()

    def maybe_persist(self) -> bool:
        if self._clock.monotonic_ms() - self._last_persist < self._config.persist_interval_ms:
            return False
        self.persist()
        return True

    # --- Actions ---

    def feed(self, food: str = "meal") -> bool:
        rec = self.record
        effect = self._config.actions.foods.get(food)
        if effect is None:
            raise ValueError(f"Unknown food {food!r}")
        if rec.dead:
            return False
        now = self._clock.wall_ms()
        last = rec.last_feed_at.get(food)
        if last is not None and 0 <= now - last < self._config.actions.feed_cooldown_ms:
            return False
        rec.needs = needs.feed(rec.needs, effect)
        rec.last_feed_at[food] = now
        if not self.policy.is_asleep(now) and self._rng.random() < self._config.actions.feed_poop_chance:
            rec.add_poop(spawn_poop(self._config, self._rng))
        return True

    def play(self) -> bool:
        rec = self.record
        if rec.dead:
            return False
        rec.needs = needs.play(rec.needs, self._config.actions)
        return True

    def clean(self) -> bool:
        rec = self.record
        if rec.dead:
            return False
        rec.poops.clear()
        rec.needs = needs.clean(rec.needs, self._config.actions)
        return True

    def can_heal(self) -> bool:
        rec = self.record
        if rec.dead:
            return False
        since = self._clock.wall_ms() - rec.last_heal_at
        return not 0 <= since < self._config.actions.heal_cooldown_ms

    def heal(self) -> bool:
        if not self.can_heal():
            return False
        rec = self.record
        rec.sick = False
        rec.needs = needs.heal(rec.needs, self._config.actions)
        rec.last_heal_at = self._clock.wall_ms()
        return True

    def force_evolve(self) -> Stage:
        rec = self.record
        nxt = self._stager.force(rec.stage, self._rng)
        if nxt != rec.stage:
            self._on_evolve(rec, nxt)
            rec.stage = nxt
            self._bus.flush()
        return rec.stage

    # --- Sleep window ---

    def configure_sleep(self, start: str, end: str, lock: bool = True) -> None:
        self.policy.configure(start, end, lock)
        self.persist()

    def use_auto_sleep(self) -> None:
        self.policy.use_auto()
        self.persist()

    # --- Death, revival, new game ---

    def lives(self) -> int:
        try:
            return self._ledger.lives(self._owner)
        except Exception:
            logger.warning("lives ledger unavailable", exc_info=True)
            return 0

    def can_revive(self) -> bool:
        return self.record.dead and self.lives() > 0

    def redeem_life(self) -> None:
        """Announce that one life token was redeemed for this owner."""
        self._bus.publish(LifeRedeemed(owner=self._owner))
        self._bus.flush()

    def revive(self) -> ReviveResult:
        """Spend one life to bring the pet back. Progress (stage, age) is kept."""
        rec = self.record
        if not rec.dead:
            return ReviveResult(False, NOT_DEAD)
        death_key = rec.died_at if rec.died_at is not None else rec.born_at
        try:
            paid = self._ledger.spend(self._owner, death_key)
        except Exception:
            logger.warning("lives ledger unavailable", exc_info=True)
            return ReviveResult(False, LEDGER_UNAVAILABLE)
        if not paid:
            return ReviveResult(False, NO_LIVES)

        rec.dead = False
        rec.death_reason = None
        rec.died_at = None
        rec.sick = False
        rec.poops.clear()
        rec.needs = needs.revive(rec.needs, self._config.actions)
        self.scheduler.clear_active()
        self.loop.resync()
        logger.info("pet %s revived", self._owner)
        self._bus.publish(Revived(owner=self._owner))
        self.persist()
        self._bus.flush()
        return ReviveResult(True)

    def new_game(self) -> bool:
        """Start over from a fresh egg. Only allowed once the pet is dead.

        Sleep preferences survive the reset.
        """
        rec = self.record
        if not rec.dead:
            return False
        record_store.clear(self._store, self._owner)
        self._attach(self._hatch(self._clock.wall_ms(), rec.sleep))
        self._bus.publish(NewGame(owner=self._owner))
        self.persist()
        self._bus.flush()
        return True

    # --- View ---

    def view(self) -> PetView:
        now = self._clock.wall_ms()
        return build_view(
            self.record,
            asleep=self.policy.is_asleep(now),
            catastrophe=self.scheduler.active_at(now),
            can_heal=self.can_heal(),
        )

    # --- Internal ---

    def _hatch(self, now: int, sleep: SleepConfig) -> PetRecord:
        logger.info("new egg for %s", self._owner)
        return PetRecord.new(self._owner, now, sleep=sleep)

    def _attach(self, rec: PetRecord) -> None:
        self._record = rec
        self._policy = SleepWindowPolicy(rec.sleep, tz=self._config.tz)
        self._scheduler = CatastropheScheduler(
            self._config.catastrophe, rec.catastrophe_schedule, rec.catastrophe_consumed
        )
        self._scheduler.seed(rec.born_at, self._rng, self._policy.is_asleep)
        if self._loop is not None:
            self._loop.attach(rec, self._policy, self._scheduler)
            return
        self._loop = OnlineSimulationLoop(
            rec,
            self._policy,
            self._scheduler,
            self._config,
            self._clock,
            self._rng,
            stager=self._stager,
            on_death=self._on_death,
            on_evolve=self._on_evolve,
            on_catastrophe=self._on_catastrophe,
        )
        self._loop.on_tick(self._after_tick)
        self._loop.on_stop(lambda _rec: self.persist())

    def _apply_replay(self, result: ReplayResult) -> None:
        rec = self.record
        if result.stage != rec.stage:
            self._on_evolve(rec, result.stage)
        rec.stage = result.stage
        rec.needs = result.needs
        rec.sick = result.sick
        rec.age_ms += max(0.0, result.age_delta_ms)
        for trigger in result.scheduled:
            if trigger not in rec.catastrophe_schedule:
                rec.catastrophe_schedule.append(trigger)
        rec.catastrophe_schedule.sort()
        self.scheduler.mark_consumed(result.consumed)
        if result.dead and not rec.dead:
            rec.dead = True
            rec.death_reason = result.death_reason
            rec.died_at = result.died_at
            logger.info("pet %s died while away: %s", self._owner, result.death_reason)
            self._bus.publish(PetDied(reason=result.death_reason or "collapse",
                                      died_at=result.died_at or 0))

    def _after_tick(self, rec: PetRecord) -> None:
        self._commands.drain()
        self.maybe_persist()
        self._bus.flush()

    def _on_death(self, rec: PetRecord, ctx: StepContext, reason: str) -> None:
        self.scheduler.clear_active()
        self._bus.publish(PetDied(reason=reason, died_at=int(ctx.now)))
        self.persist()

    def _on_evolve(self, rec: PetRecord, stage: Stage) -> None:
        self._bus.publish(Evolved(stage=stage.key))

    def _on_catastrophe(self, rec: PetRecord, active: ActiveCatastrophe) -> None:
        self._bus.publish(CatastropheStarted(cause=active.cause, until=active.until))

    def _on_life_redeemed(self, event: LifeRedeemed) -> None:
        try:
            total = self._ledger.add(event.owner, 1)
        except Exception:
            logger.warning("could not credit life to %s", event.owner, exc_info=True)
            return
        logger.info("life credited to %s, now %d", event.owner, total)
