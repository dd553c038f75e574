from __future__ import annotations

from pathlib import Path
import argparse
import logging

from rebinder.config import RebinderConfig, load_config
from rebinder.session import ControlsSession


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Control rebinding grid with conflict resolution")
    parser.add_argument(
        "--config",
        default="rebinder.json",
        help="Path to config JSON (default: rebinder.json in current directory)",
    )
    parser.add_argument(
        "--log",
        default="rebinder.log",
        help="Path to app log file (default: rebinder.log in current directory)",
    )
    parser.add_argument(
        "--ui",
        default="auto",
        choices=["auto", "qt", "tk"],
        help="UI backend: auto (prefer Qt), qt, or tk",
    )
    parser.add_argument(
        "--player",
        type=int,
        default=1,
        help="Player whose controls are shown first (1-based, default: 1)",
    )
    return parser.parse_args()


def setup_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.handlers.clear()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)


def main() -> None:
    args = parse_args()
    setup_logging(Path(args.log))
    log = logging.getLogger("rebinder")
    log.info("app_start config=%s log=%s ui=%s player=%s", args.config, args.log, args.ui, args.player)
    config_path = Path(args.config)
    config = load_config(config_path, log)
    session = ControlsSession.from_config(config)
    app = _build_ui_app(args.ui, session, config, config_path, player=args.player - 1)
    app.run()


def _build_ui_app(ui_mode: str, session: ControlsSession, config: RebinderConfig, config_path: Path, player: int = 0):
    log = logging.getLogger("rebinder")
    if ui_mode in {"auto", "qt"}:
        try:
            from rebinder.ui_qt import ControlsQtApp

            return ControlsQtApp(session, config, config_path, player=player)
        except Exception as exc:
            if ui_mode == "qt":
                raise
            log.warning("qt_ui_unavailable fallback=tk error=%s", exc)
    from rebinder.ui import ControlsApp

    return ControlsApp(session, config, config_path, player=player)


if __name__ == "__main__":
    main()
