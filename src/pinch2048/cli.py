"""pinch2048 CLI.

Usage:
    pinch2048 play      - Play with webcam gestures and arrow keys
    pinch2048 record    - Record a hand landmark stream from the camera
    pinch2048 replay    - Drive a game headlessly from a recording
    pinch2048 best      - Show or reset the best score
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

try:
    import typer
except ImportError:
    raise ImportError("typer is required for CLI. Install with: pip install typer")

from pinch2048.config import ConfigError, GameConfig
from pinch2048.persistence import BestScoreStore

app = typer.Typer(
    name="pinch2048",
    help="2048 with pinch-and-swipe hand gestures.",
    add_completion=False,
)

# consecutive failed camera reads before `record` gives up
MAX_READ_FAILURES = 30


def _load_config(path: Optional[str]) -> GameConfig:
    if path is None:
        return GameConfig()
    try:
        return GameConfig.from_yaml(path)
    except (OSError, ConfigError) as e:
        typer.echo(f"Could not load config {path}: {e}", err=True)
        raise typer.Exit(1)


def _setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def play(
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    camera: Optional[int] = typer.Option(None, help="Camera device index"),
    no_camera: bool = typer.Option(False, "--no-camera", help="Keyboard controls only"),
    seed: Optional[int] = typer.Option(None, help="Seed for tile spawns"),
    record: Optional[str] = typer.Option(None, help="Also record the session to this file"),
    stats: bool = typer.Option(False, help="Print session metrics on exit"),
    log_level: str = typer.Option("info", help="Log level"),
):
    """Play 2048. Pinch over the board and swipe, or use the arrow keys."""
    _setup_logging(log_level)
    from pinch2048.recorder import GestureRecorder
    from pinch2048.runner import GameRunner

    cfg = _load_config(config)
    if camera is not None:
        cfg.camera_index = camera
    if seed is not None:
        cfg.seed = seed

    recorder = GestureRecorder() if record else None
    runner = GameRunner(cfg, recorder=recorder, use_camera=not no_camera)
    runner.run()

    snapshot = runner.session.snapshot()
    typer.echo(f"Score: {snapshot.score}  Best: {snapshot.best_score}  Moves: {snapshot.moves}")

    if recorder is not None:
        _save_recording(recorder, record)
    if stats:
        typer.echo(runner.session.metrics.render())


@app.command("record")
def record_cmd(
    output: str = typer.Option("recording.json", "-o", help="Output file path"),
    duration: float = typer.Option(0, help="Recording duration in seconds (0 = until Ctrl+C)"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    camera: Optional[int] = typer.Option(None, help="Camera device index"),
):
    """Record hand landmarks from the camera without playing."""
    import cv2
    from pinch2048.detector import HandDetector
    from pinch2048.recorder import GestureRecorder

    cfg = _load_config(config)
    if camera is not None:
        cfg.camera_index = camera

    cap = cv2.VideoCapture(cfg.camera_index)
    if not cap.isOpened():
        typer.echo(f"Could not open camera {cfg.camera_index}", err=True)
        raise typer.Exit(1)

    detector = HandDetector(
        cfg.model_path,
        min_detection_confidence=cfg.min_detection_confidence,
        min_tracking_confidence=cfg.min_tracking_confidence,
    )
    recorder = GestureRecorder()

    typer.echo(f"Recording from camera {cfg.camera_index}, press Ctrl+C to stop")
    recorder.start()
    start = time.monotonic()
    hands = 0
    failures = 0

    try:
        while True:
            if duration > 0 and time.monotonic() - start >= duration:
                break

            ret, frame = cap.read()
            if not ret:
                failures += 1
                if failures >= MAX_READ_FAILURES:
                    typer.echo("\nCamera stopped delivering frames", err=True)
                    break
                continue
            failures = 0

            now = time.monotonic()
            frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            observation = detector.detect(frame_rgb, int(now * 1000))
            recorder.add_frame(observation, timestamp=now)
            hands += observation.present

            if recorder.frame_count % 30 == 0:
                typer.echo(
                    f"\r   Frames: {recorder.frame_count} | Duration: {now - start:.1f}s | With hand: {hands}",
                    nl=False,
                )
    except KeyboardInterrupt:
        pass
    finally:
        recorder.stop()
        cap.release()
        detector.close()

    typer.echo(f"\nRecorded {recorder.frame_count} frames ({recorder.duration:.1f}s)")
    _save_recording(recorder, output)


def _save_recording(recorder, output: str):
    if output.endswith(".npz"):
        path = recorder.save_compact(output)
    else:
        recorder.save(output)
        path = Path(output)
    typer.echo(f"Saved recording to: {path}")


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file"),
    seed: int = typer.Option(0, help="Seed for tile spawns"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Replay a recording through a fresh game and print every move."""
    _setup_logging(log_level)
    from pinch2048.recorder import GesturePlayer
    from pinch2048.session import GameSession

    path = Path(recording)
    if not path.exists():
        typer.echo(f"Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    cfg = _load_config(config)
    cfg.seed = seed
    player = GesturePlayer.load(path)
    session = GameSession.from_config(cfg, best_store=BestScoreStore())

    def on_move(event):
        if event.result.moved:
            typer.echo(
                f"   {event.timestamp:7.3f}s {event.source.value:8s} {event.direction.value:5s}"
                f" +{event.result.score_gained}"
            )
        else:
            typer.echo(
                f"   {event.timestamp:7.3f}s {event.source.value:8s} {event.direction.value:5s}"
                f" rejected ({event.result.rejected_reason})"
            )

    session.on_move(on_move)
    session.new_game()
    typer.echo(f"Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")
    snapshot = session.replay(player.play())

    typer.echo("")
    for row in snapshot.grid:
        typer.echo("   " + " ".join(f"{v:5d}" if v else "    ." for v in row))
    typer.echo(f"\nScore: {snapshot.score}  Moves: {snapshot.moves}  Game over: {snapshot.game_over}")


@app.command()
def best(
    reset: bool = typer.Option(False, "--reset", help="Reset the best score to 0"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
):
    """Show (or reset) the stored best score."""
    cfg = _load_config(config)
    store = BestScoreStore(cfg.best_score_path)
    if reset:
        store.reset()
        typer.echo("Best score reset.")
        return
    typer.echo(f"Best score: {store.load()}")


def main():
    app()


if __name__ == "__main__":
    main()
