from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from asset_runner.config import YamlConfigLoader
from asset_runner.config.models import AppConfig, ConfigLoadRequest
from asset_runner.logging import init_logging
from asset_runner.pipeline import BuildFailedError, BuildSession, TaskOrchestrator, resolve_assets

logger = logging.getLogger(__name__)

EXIT_BUILD_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="asset-runner", description="Incremental asset build runner")
    parser.add_argument(
        "--config",
        default="asset-runner.yaml",
        help="Path to the YAML config (default: asset-runner.yaml)",
    )
    parser.add_argument(
        "--dotenv",
        default=".env",
        help="Optional .env file loaded before environment overrides (default: .env)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    subparsers.add_parser("build", help="Clean output directories and build every asset class once")

    watch_parser = subparsers.add_parser("watch", help="Build once, then rebuild on file changes")
    watch_parser.add_argument(
        "--run-seconds",
        type=float,
        default=None,
        help="Watch for N seconds then exit (useful for smoke testing).",
    )

    subparsers.add_parser("clear-cache", help="Delete the build cache of every asset class")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(yaml_path=args.config, dotenv_path=args.dotenv)
    return await loader.load(request)


async def _build(config: AppConfig) -> None:
    session = await BuildSession.open(config)
    await TaskOrchestrator(session=session).run_build()


async def _watch(config: AppConfig, *, run_seconds: float | None) -> None:
    from asset_runner.watch.observer import WatchSession

    session = await BuildSession.open(config)
    await TaskOrchestrator(session=session).run_build()

    watcher = WatchSession(session=session)
    await watcher.start()
    try:
        if run_seconds is not None:
            await asyncio.sleep(run_seconds)
        else:
            await watcher.wait()
    finally:
        await watcher.stop()


async def _clear_cache(config: AppConfig) -> None:
    session = await BuildSession.open(config)
    await session.clear_caches()


async def _main_async(args: argparse.Namespace) -> int:
    try:
        config = await _load_config(args)
        init_logging(config.logging)
        # Resolve transforms up front so a bad import path fails before any file is touched.
        resolve_assets(config)
    except Exception:
        logging.basicConfig(level=logging.INFO)
        logger.exception("Failed to load configuration. path=%s", args.config)
        return EXIT_CONFIG_ERROR

    if args.command == "build":
        logger.info("Starting build.")
        try:
            await _build(config)
        except BuildFailedError as e:
            logger.error("%s", e)
            return EXIT_BUILD_FAILED
        except Exception:
            logger.exception("Build aborted.")
            return EXIT_BUILD_FAILED
    elif args.command == "watch":
        logger.info("Starting watch mode.")
        try:
            await _watch(config, run_seconds=args.run_seconds)
        except BuildFailedError as e:
            logger.error("%s", e)
            return EXIT_BUILD_FAILED
        except Exception:
            logger.exception("Watch mode aborted.")
            return EXIT_BUILD_FAILED
    elif args.command == "clear-cache":
        await _clear_cache(config)
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    try:
        exit_code = asyncio.run(_main_async(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
