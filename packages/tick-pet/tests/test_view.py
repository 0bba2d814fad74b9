"""Tests for view state."""

from tick_pet.types import ActiveCatastrophe, Needs, PetRecord, Phase, Stage
from tick_pet.view import build_view, display_name


def record(**kwargs):
    rec = PetRecord.new("0xabc", 0)
    for name, value in kwargs.items():
        setattr(rec, name, value)
    return rec


def test_display_names():
    assert display_name(record()) == "egg"
    assert display_name(record(stage=Stage(Phase.JUVENILE, "molandak_child"))) == "Molandak (child)"
    assert display_name(record(stage=Stage(Phase.JUVENILE, "we_child"))) == "WE (child)"
    assert display_name(record(stage=Stage(Phase.ADULT, "Chog"))) == "Chog"


def test_sad_when_unhappy():
    view = build_view(record(needs=Needs(happiness=0.2)), asleep=False, catastrophe=None, can_heal=True)
    assert view.animation == "sad"


def test_sick_beats_sad():
    rec = record(needs=Needs(happiness=0.2), sick=True)
    assert build_view(rec, asleep=False, catastrophe=None, can_heal=True).animation == "sick"


def test_catastrophe_banner():
    active = ActiveCatastrophe(trigger=0, cause="meteor dust", until=60_000)
    view = build_view(record(), asleep=False, catastrophe=active, can_heal=False)
    assert view.banners == ["meteor dust! stats draining fast"]


def test_age_in_seconds():
    view = build_view(record(age_ms=61_999.0), asleep=False, catastrophe=None, can_heal=False)
    assert view.age_s == 61


def test_death_banners():
    starved = record(dead=True, death_reason="starvation")
    view = build_view(starved, asleep=False, catastrophe=None, can_heal=False)
    assert view.banners == ["Your pet has died: starvation"]

    lost = record(dead=True, death_reason="catastrophe:meteor dust")
    view = build_view(lost, asleep=False, catastrophe=None, can_heal=False)
    assert view.banners == ["Your pet was lost to meteor dust"]
