"""tick-pet - A persistent virtual pet simulated in real time."""
from __future__ import annotations

from tick_pet.catastrophe import CatastropheScheduler
from tick_pet.clock import Clock, ManualClock, SessionTimer, clamp_delta
from tick_pet.commands import Clean, CommandQueue, Feed, Heal, Play, Revive, StartOver
from tick_pet.config import (
    ActionEffects,
    CatastropheConfig,
    DecayRates,
    EvolutionConfig,
    Food,
    IllnessRates,
    PetConfig,
)
from tick_pet.controller import LifecycleController, ReviveResult
from tick_pet.engine import OnlineSimulationLoop
from tick_pet.evolution import EvolutionStager
from tick_pet.ledger import LivesLedger, StoreLivesLedger
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
from tick_pet.store import JsonFileStore, KeyValueStore, MemoryStore
from tick_pet.types import (
    ActiveCatastrophe,
    Needs,
    PetRecord,
    Phase,
    Poop,
    SleepConfig,
    SleepWindowLockedError,
    Stage,
    StepContext,
)
from tick_pet.view import PetView

__all__ = [
    # Engine
    "LifecycleController",
    "ReviveResult",
    "OnlineSimulationLoop",
    "OfflineReplayEngine",
    "ReplayResult",
    "catch_up_elapsed",
    "CatastropheScheduler",
    "EvolutionStager",
    "SleepWindowPolicy",
    # Time
    "Clock",
    "ManualClock",
    "SessionTimer",
    "clamp_delta",
    # Config
    "PetConfig",
    "DecayRates",
    "IllnessRates",
    "ActionEffects",
    "Food",
    "CatastropheConfig",
    "EvolutionConfig",
    # Data
    "PetRecord",
    "Needs",
    "Stage",
    "Phase",
    "Poop",
    "SleepConfig",
    "ActiveCatastrophe",
    "StepContext",
    "PetView",
    "SleepWindowLockedError",
    # Events
    "SignalBus",
    "PetDied",
    "Revived",
    "LifeRedeemed",
    "NewGame",
    "Evolved",
    "CatastropheStarted",
    # Commands
    "CommandQueue",
    "Feed",
    "Play",
    "Clean",
    "Heal",
    "Revive",
    "StartOver",
    # Collaborators
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "LivesLedger",
    "StoreLivesLedger",
]
