#!/usr/bin/env python3
"""Play 2048 with the webcam and print every move to the terminal.

Usage:
    python examples/demo_webcam.py [--camera 0] [--seed 42]
"""

import argparse
import sys

sys.path.insert(0, "src")
from pinch2048 import GameConfig, GameSession, MoveEvent
from pinch2048.runner import GameRunner


def main():
    parser = argparse.ArgumentParser(description="pinch2048 webcam demo")
    parser.add_argument("--camera", type=int, default=0, help="Camera index")
    parser.add_argument("--seed", type=int, default=None, help="Seed for tile spawns")
    args = parser.parse_args()

    config = GameConfig(camera_index=args.camera, seed=args.seed)
    session = GameSession.from_config(config)

    def on_move(event: MoveEvent):
        if event.result.moved:
            print(f"  {event.source.value:8s} {event.direction.value:5s} score={session.engine.score}")

    session.on_move(on_move)

    print("Pinch over the board and swipe, or use the arrow keys.")
    print("Press 'n' for a new game, 'q' to quit\n")
    GameRunner(config, session=session).run()

    snapshot = session.snapshot()
    print(f"\nFinal score {snapshot.score} after {snapshot.moves} moves (best {snapshot.best_score})")


if __name__ == "__main__":
    main()
