"""Tests for StoreLivesLedger."""

from tick_pet.ledger import StoreLivesLedger
from tick_pet.store import MemoryStore


def test_starts_at_zero():
    assert StoreLivesLedger(MemoryStore()).lives("0xabc") == 0


def test_add_is_case_insensitive():
    ledger = StoreLivesLedger(MemoryStore())
    ledger.add("0xABC")
    ledger.add("0xabc", 2)
    assert ledger.lives("0xAbC") == 3


def test_add_never_goes_negative():
    ledger = StoreLivesLedger(MemoryStore())
    assert ledger.add("0xabc", -5) == 0


def test_spend_without_lives_fails():
    ledger = StoreLivesLedger(MemoryStore())
    assert ledger.spend("0xabc", 1000) is False


def test_spend_consumes_one_life():
    ledger = StoreLivesLedger(MemoryStore())
    ledger.add("0xabc", 2)
    assert ledger.spend("0xabc", 1000) is True
    assert ledger.lives("0xabc") == 1


def test_spend_is_idempotent_per_death():
    ledger = StoreLivesLedger(MemoryStore())
    ledger.add("0xabc", 2)
    assert ledger.spend("0xabc", 1000)
    assert ledger.spend("0xabc", 1000)
    assert ledger.lives("0xabc") == 1
    assert ledger.spend("0xabc", 2000)
    assert ledger.lives("0xabc") == 0


def test_owners_are_separate():
    ledger = StoreLivesLedger(MemoryStore())
    ledger.add("0xaaa")
    assert ledger.spend("0xbbb", 1) is False
    assert ledger.lives("0xaaa") == 1


def test_survives_a_new_ledger_on_the_same_store():
    store = MemoryStore()
    StoreLivesLedger(store).add("0xabc", 3)
    assert StoreLivesLedger(store).lives("0xabc") == 3


def test_corrupt_map_reads_as_empty():
    store = MemoryStore({"lives": "not json"})
    assert StoreLivesLedger(store).lives("0xabc") == 0
