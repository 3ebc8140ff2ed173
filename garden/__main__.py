"""Entry point: ``python -m garden``.

Supports two modes:
  - ``python -m garden``          → Launch the FastAPI server
  - ``python -m garden cli``      → Headless session on a virtual clock
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Magical Garden lifecycle engine")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--time-scale", type=float, default=1.0, help="Seconds per growth time unit")
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Grow and bloom every plant on a virtual clock")
    cli.add_argument("--seed", type=int, default=42)
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from garden.api.app import create_app
    from garden.config import GardenConfig

    config = GardenConfig(
        seed=args.seed,
        seconds_per_unit=args.time_scale,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from garden.api.garden_manager import GardenManager
    from garden.config import GardenConfig
    from garden.core.enums import EntityState
    from garden.engine.event_queue import SelectionRequested, TapDetected
    from garden.engine.timer_scheduler import ManualTimerScheduler
    from garden.utils.logging import setup_logging

    config = GardenConfig(seed=args.seed, log_level=args.log_level)
    setup_logging(config.log_level)

    scheduler = ManualTimerScheduler()
    manager = GardenManager(config, scheduler_factory=lambda: scheduler)
    controller = manager.controller

    # Tapping before expiry is ignored.
    for eid in controller.entity_ids:
        manager.submit(SelectionRequested(eid))
        pos = manager.renderer.position_for(eid)
        result = manager.submit(TapDetected(pos))
        logger.info("Early tap on %s: %s", eid, result.outcome.name)

    fired = scheduler.advance(config.max_growth_units)
    manager.pump()
    logger.info("Advanced %.0f units; %d timer(s) fired", scheduler.now, fired)

    for eid in controller.entity_ids:
        pos = manager.renderer.position_for(eid)
        result = manager.submit(TapDetected(pos))
        logger.info("Tap on %s at %s: %s", eid, pos, result.outcome.name)

    snap = manager.get_snapshot()
    for entity in snap.entities.values():
        logger.info(
            "%-8s %-8s grew %.1f units, showing %s",
            entity.id, entity.state.name, entity.growth_duration, entity.current_asset,
        )
    bloomed = sum(1 for e in snap.entities.values() if e.state == EntityState.BLOOMED)
    logger.info("Done. %d/%d plants bloomed.", bloomed, len(snap.entities))
    manager.stop()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None:
        args = parser.parse_args(["serve"])

    if args.command == "serve":
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
