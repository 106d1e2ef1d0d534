"""Headless command-line front end for the playback core."""

from __future__ import annotations

import argparse
import signal
import sys
import webbrowser
from typing import List, Optional

from PyQt6.QtCore import QCoreApplication, QTimer

from .config import AppConfig, load_config
from .controller import PlaybackController
from .errors import YtLiveError
from .extractor import StreamExtractor, SubprocessRunner
from .installer import ToolInstaller
from .logging_config import setup_logging
from .preferences import UrlPreference
from .resolver import ExecutableResolver
from .state import PlaybackState, PlaybackStatus, format_time
from .validator import extract_video_id, is_valid_youtube_url, watch_url

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

SIGNAL_POLL_MS = 200


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ytlive", description="Listen to YouTube videos and live streams")
    commands = parser.add_subparsers(dest="command", required=True)

    play = commands.add_parser("play", help="Play the audio of a YouTube URL until interrupted.")
    play.add_argument("url", nargs="?", help="YouTube URL (defaults to the last URL played).")
    play.add_argument("--muted", action="store_true", help="Start with audio muted.")
    play.add_argument("--no-save", action="store_true", help="Do not remember the URL for next time.")

    resolve = commands.add_parser("resolve", help="Print the direct audio stream URL.")
    resolve.add_argument("url", help="YouTube URL.")

    commands.add_parser("locate", help="Show which yt-dlp executable would be used.")
    commands.add_parser("install", help="Download yt-dlp into the application directory.")

    open_cmd = commands.add_parser("open", help="Open the video page in a web browser.")
    open_cmd.add_argument("url", nargs="?", help="YouTube URL (defaults to the last URL played).")
    return parser.parse_args(argv)


def _print_progress(text: str) -> None:
    print(f"  {text}")


def _build_installer(config: AppConfig) -> ToolInstaller:
    return ToolInstaller(config, ExecutableResolver(config))


def _pick_url(explicit: Optional[str], preference: UrlPreference, config: AppConfig) -> str:
    return (explicit or preference.get() or config.source_url or "").strip()


def run_play(args: argparse.Namespace, config: AppConfig) -> int:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    preference = UrlPreference()
    url = _pick_url(args.url, preference, config)
    if not url:
        print("No URL given and none remembered. Usage: ytlive play <url>")
        return EXIT_ERROR
    if args.url and not args.no_save and is_valid_youtube_url(url):
        preference.set(url)

    controller = PlaybackController(
        _build_installer(config),
        StreamExtractor(SubprocessRunner(timeout=config.extract_timeout)),
    )
    outcome = {"code": EXIT_SUCCESS, "second": -1}

    def on_state(state: PlaybackState) -> None:
        print(f"[{state.describe()}]")
        if state.status is PlaybackStatus.ERROR:
            outcome["code"] = EXIT_ERROR
            app.quit()

    def on_elapsed(seconds: float) -> None:
        whole = int(seconds)
        if whole != outcome["second"]:
            outcome["second"] = whole
            print(f"\r{format_time(seconds)}", end="", flush=True)

    def on_interrupt(*_args) -> None:
        print()
        outcome["code"] = EXIT_INTERRUPTED
        controller.stop()
        app.quit()

    controller.stateChanged.connect(on_state)
    controller.elapsedChanged.connect(on_elapsed)
    controller.installProgress.connect(_print_progress)
    controller.installFailed.connect(lambda message: print(f"yt-dlp installation failed: {message}"))
    if args.muted:
        controller.mute()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    # lets the interpreter run the SIGINT handler while Qt owns the loop
    poll = QTimer()
    poll.timeout.connect(lambda: None)
    poll.start(SIGNAL_POLL_MS)
    QTimer.singleShot(0, lambda: controller.play(url))
    try:
        app.exec()
    finally:
        poll.stop()
        controller.shutdown()
        signal.signal(signal.SIGINT, previous_handler)
    return outcome["code"]


def run_resolve(args: argparse.Namespace, config: AppConfig) -> int:
    if not is_valid_youtube_url(args.url):
        print(f"Not a YouTube URL: {args.url}")
        return EXIT_ERROR
    location = _build_installer(config).ensure_installed(_print_progress)
    extractor = StreamExtractor(SubprocessRunner(timeout=config.extract_timeout))
    print(extractor.extract_stream_url(args.url, location.path))
    return EXIT_SUCCESS


def run_locate(args: argparse.Namespace, config: AppConfig) -> int:
    location = ExecutableResolver(config).locate()
    if location is None:
        print(f"{config.tool_name} not found. Run `ytlive install` to download it.")
        return EXIT_ERROR
    if location.candidate != location.path:
        print(f"{location.path} (via {location.candidate})")
    else:
        print(location.path)
    return EXIT_SUCCESS


def run_install(args: argparse.Namespace, config: AppConfig) -> int:
    result = _build_installer(config).install(_print_progress)
    if not result.success:
        print(f"Installation failed ({result.reason}): {result.message}")
        return EXIT_ERROR
    print(f"Installed {config.tool_name} at {result.path}")
    return EXIT_SUCCESS


def run_open(args: argparse.Namespace, config: AppConfig) -> int:
    url = _pick_url(args.url, UrlPreference(), config)
    video_id = extract_video_id(url)
    if video_id is None:
        print(f"Not a YouTube URL: {url or '(none)'}")
        return EXIT_ERROR
    webbrowser.open(watch_url(video_id))
    return EXIT_SUCCESS


COMMANDS = {
    "play": run_play,
    "resolve": run_resolve,
    "locate": run_locate,
    "install": run_install,
    "open": run_open,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = load_config()
    setup_logging(config)
    return COMMANDS[args.command](args, config)


def cli_main() -> None:
    try:
        code = main()
    except YtLiveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.hint:
            print(f"Hint: {exc.hint}", file=sys.stderr)
        code = EXIT_ERROR
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    sys.exit(code)


__all__ = ["main", "cli_main", "parse_args"]
