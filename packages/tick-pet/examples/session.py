"""Run one pet session against a JSON file store.

Demonstrates:
- Offline catch-up when the session starts
- The online loop pacing stat and age ticks
- Queued actions, the life-token ledger and events

Run: python examples/session.py --owner 0xabc --seconds 10 --feed
"""

import argparse
import logging

from tick_pet import (
    CatastropheStarted,
    Evolved,
    Feed,
    JsonFileStore,
    LifecycleController,
    PetDied,
    StoreLivesLedger,
)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--owner", default="0xDEADBEEF0000000000000000000000000000FEED")
    parser.add_argument("--store", default="pet.json", help="JSON file holding the pet")
    parser.add_argument("--seconds", type=float, default=5.0, help="how long to stay online")
    parser.add_argument("--feed", action="store_true", help="feed the pet once")
    parser.add_argument("--grant-life", action="store_true", help="redeem one life token")
    parser.add_argument("--revive", action="store_true", help="spend a life if the pet is dead")
    parser.add_argument("--new-game", action="store_true", help="start over if the pet is dead")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = JsonFileStore(args.store)
    pet = LifecycleController(args.owner, store, StoreLivesLedger(store))
    pet.bus.subscribe(PetDied, lambda e: print(f"  died: {e.reason}"))
    pet.bus.subscribe(Evolved, lambda e: print(f"  evolved into {e.stage}"))
    pet.bus.subscribe(CatastropheStarted, lambda e: print(f"  {e.cause}!"))

    result = pet.start_session()
    if result is not None:
        print(f"Caught up {result.steps} minutes while you were away.")

    if args.grant_life:
        pet.redeem_life()
    if args.revive:
        print(f"Revive: {pet.revive()}")
    if args.new_game:
        print(f"New game: {pet.new_game()}")
    if args.feed:
        pet.submit(Feed())

    try:
        pet.run(duration_ms=args.seconds * 1000)
    except KeyboardInterrupt:
        pass
    finally:
        pet.end_session()

    view = pet.view()
    print(f"{view.name}: {view.animation}  age {view.age_s}s  lives {pet.lives()}")
    for name, pct in view.bars.items():
        print(f"  {name:<12} {pct:3d}%")
    for banner in view.banners:
        print(f"  [{banner}]")


if __name__ == "__main__":
    main()
