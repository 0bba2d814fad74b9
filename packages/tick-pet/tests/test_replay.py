"""Tests for the offline catch-up replay."""

import random
from datetime import datetime, timezone

import pytest
from tick_pet.config import CatastropheConfig, IllnessRates, PetConfig
from tick_pet.replay import OfflineReplayEngine, catch_up_elapsed
from tick_pet.sleep import SleepWindowPolicy
from tick_pet.types import Needs, PetRecord, Phase, SleepConfig

MINUTE = 60_000
HOUR = 60 * MINUTE
DAY = 24 * HOUR
NOON = int(datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc).timestamp() * 1000)


def quiet_config(**overrides):
    return PetConfig(
        illness=IllnessRates(scale=0.0),
        catastrophe=CatastropheConfig(total=0),
        tz=timezone.utc,
        **overrides,
    )


def never_asleep(ts):
    return False


def always_asleep(ts):
    return True


def make_record(start=NOON, **needs):
    rec = PetRecord.new("0xabc", start)
    if needs:
        rec.needs = Needs(**{**Needs().as_dict(), **needs})
    return rec


def apply(rec, result):
    rec.needs = result.needs
    rec.sick = result.sick
    rec.stage = result.stage
    rec.age_ms += result.age_delta_ms
    rec.catastrophe_consumed.update(result.consumed)
    if result.dead:
        rec.dead = True
        rec.death_reason = result.death_reason
        rec.died_at = result.died_at


class TestCatchUpElapsed:
    def test_plain_gap(self):
        assert catch_up_elapsed(1000, 61_000, 1000, 2 * DAY) == 60_000

    def test_backward_clock_gives_zero(self):
        assert catch_up_elapsed(10 * HOUR, 2 * HOUR, 10 * HOUR, 2 * DAY) == 0

    def test_measured_against_high_water_mark(self):
        assert catch_up_elapsed(1000, 500, 5000, 2 * DAY) == 4000

    def test_capped_at_two_days(self):
        assert catch_up_elapsed(0, 10 * DAY, 0, 2 * DAY) == 2 * DAY


class TestReplay:
    def test_unattended_pet_starves_deterministically(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        rec = make_record()
        result = engine.replay(rec, NOON, 3000 * MINUTE, random.Random(1))
        assert result.dead
        assert result.death_reason == "starvation"
        assert result.steps == 59
        assert result.died_at == NOON + 58 * MINUTE
        assert result.needs.hunger == 0.0
        assert result.age_delta_ms == 59 * MINUTE

    def test_same_inputs_same_outcome(self):
        engine = OfflineReplayEngine(PetConfig(catastrophe=CatastropheConfig(total=0)), never_asleep)
        a = engine.replay(make_record(hunger=1.0), NOON, 80 * MINUTE, random.Random(9))
        b = engine.replay(make_record(hunger=1.0), NOON, 80 * MINUTE, random.Random(9))
        assert a == b

    def test_record_is_not_mutated(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        rec = make_record()
        engine.replay(rec, NOON, 2 * HOUR, random.Random(1))
        assert not rec.dead
        assert rec.needs == Needs()
        assert rec.age_ms == 0

    def test_split_replay_matches_single_replay(self):
        config = PetConfig(catastrophe=CatastropheConfig(total=0))
        engine = OfflineReplayEngine(config, never_asleep)

        whole = make_record(hunger=1.0)
        apply(whole, engine.replay(whole, NOON, 60 * MINUTE, random.Random(5)))

        split = make_record(hunger=1.0)
        rng = random.Random(5)
        apply(split, engine.replay(split, NOON, 30 * MINUTE, rng))
        apply(split, engine.replay(split, NOON + 30 * MINUTE, 30 * MINUTE, rng))

        assert split.needs.hunger == pytest.approx(whole.needs.hunger)
        assert split.needs.health == pytest.approx(whole.needs.health)
        assert split.sick == whole.sick
        assert split.stage == whole.stage
        assert split.age_ms == whole.age_ms

    def test_sleep_pauses_decay_but_not_age(self):
        engine = OfflineReplayEngine(quiet_config(), always_asleep)
        rec = make_record()
        result = engine.replay(rec, NOON, 30 * MINUTE, random.Random(1))
        assert result.needs == Needs()
        assert result.age_delta_ms == 30 * MINUTE
        assert not result.dead

    def test_decay_stops_at_bedtime(self):
        policy = SleepWindowPolicy(SleepConfig(), tz=timezone.utc)
        engine = OfflineReplayEngine(quiet_config(), policy.is_asleep)
        nine_pm = NOON + 9 * HOUR
        rec = make_record(start=nine_pm, hunger=1.0)
        result = engine.replay(rec, nine_pm, 2 * HOUR, random.Random(1))
        assert result.steps == 120
        assert result.needs.hunger == pytest.approx(1 - 60 / 90)

    def test_hatches_during_replay(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        result = engine.replay(make_record(), NOON, 5 * MINUTE, random.Random(1))
        assert result.stage.phase is Phase.JUVENILE

    def test_trailing_partial_minute_counts_toward_age(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        result = engine.replay(make_record(), NOON, 90_000, random.Random(1))
        assert result.steps == 1
        assert result.age_delta_ms == 90_000

    def test_elapsed_is_capped(self):
        engine = OfflineReplayEngine(quiet_config(), always_asleep)
        result = engine.replay(make_record(), NOON, 5 * DAY, random.Random(1))
        assert result.steps == 2 * DAY // MINUTE
        assert result.age_delta_ms == 2 * DAY

    def test_dead_pet_is_left_alone(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        rec = make_record(hunger=0.0)
        rec.dead = True
        rec.death_reason = "starvation"
        result = engine.replay(rec, NOON, HOUR, random.Random(1))
        assert result.steps == 0
        assert result.age_delta_ms == 0
        assert result.needs == rec.needs

    def test_zero_elapsed_is_a_no_op(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        result = engine.replay(make_record(), NOON, 0, random.Random(1))
        assert result.steps == 0
        assert result.needs == Needs()


class TestReplayCatastrophes:
    def test_catastrophe_minute_kills_unattended_pet(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        trigger = NOON + 5 * MINUTE
        rec = make_record(hunger=1.0)
        rec.catastrophe_schedule = [trigger]
        result = engine.replay(rec, NOON, HOUR, random.Random(1))
        assert result.dead
        assert result.death_reason == "starvation"
        assert result.died_at == trigger
        assert result.fired == [trigger]
        assert result.consumed == [trigger]
        assert rec.catastrophe_consumed == set()

    def test_catastrophe_slept_through_is_consumed_without_effect(self):
        engine = OfflineReplayEngine(quiet_config(), always_asleep)
        trigger = NOON + 2 * MINUTE
        rec = make_record()
        rec.catastrophe_schedule = [trigger]
        result = engine.replay(rec, NOON, 10 * MINUTE, random.Random(1))
        assert not result.dead
        assert result.fired == []
        assert result.consumed == [trigger]
        assert result.needs == Needs()

    def test_consumed_catastrophe_does_not_fire_again(self):
        engine = OfflineReplayEngine(quiet_config(), never_asleep)
        trigger = NOON + 2 * MINUTE
        rec = make_record(hunger=1.0)
        rec.catastrophe_schedule = [trigger]
        rec.catastrophe_consumed = {trigger}
        result = engine.replay(rec, NOON, 10 * MINUTE, random.Random(1))
        assert not result.dead
        assert result.fired == []
        assert result.consumed == []

    def test_open_mode_schedules_new_events(self):
        config = PetConfig(
            illness=IllnessRates(scale=0.0),
            catastrophe=CatastropheConfig(total=0, mode="open", open_chance=1.0),
            tz=timezone.utc,
        )
        engine = OfflineReplayEngine(config, never_asleep)
        rec = make_record(start=NOON - 3 * DAY, hunger=1.0)
        result = engine.replay(rec, NOON, 10 * MINUTE, random.Random(1))
        assert result.scheduled == [NOON]
        assert result.dead
