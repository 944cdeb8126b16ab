"""
Command line entry point for the marketplace bidder.
"""
import argparse
import asyncio
import os
import signal
from dataclasses import replace

from .cancel import CancelToken
from .config import BidderConfig
from .core import run_bidder
from .models import Credentials
from .utils import init_logger, now_iso


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Marketplace order watcher that places bids on new orders as they appear")
    ap.add_argument("--username", type=str, default=os.getenv("BIDDER_USERNAME", ""), help="Marketplace login (email)")
    ap.add_argument("--password", type=str, default=os.getenv("BIDDER_PASSWORD", ""), help="Marketplace password")
    ap.add_argument("--base-url", type=str, default=None, help="Marketplace base address")
    ap.add_argument("--headless", action="store_true", help="Run without UI")
    ap.add_argument("--poll-interval", type=float, default=None, help="Seconds between cycles (0 = as fast as possible)")
    ap.add_argument("--poll-jitter", type=float, default=None, help="Random extra seconds added to each idle")
    ap.add_argument("--op-timeout-ms", type=int, default=None, help="Timeout for a single click/fill/wait")
    ap.add_argument("--detection-only", action="store_true", help="Report new orders without bidding")
    ap.add_argument("--message-mode", choices=["baseline", "enriched"], default=None, help="Bid message style")
    ap.add_argument("--bid-amount", type=str, default=None, help="Value for the bid amount field, when the form has one")
    ap.add_argument("--storage-state", type=str, default=None, help="Path to session storage state JSON")
    ap.add_argument("--export-attempts", type=str, default=None, help="CSV/XLSX file receiving the bid attempts on exit")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "bidder.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or bidder.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def build_config(args) -> BidderConfig:
    """Environment first, then explicit command line flags."""
    cfg = BidderConfig.from_env()
    overrides = {
        "base_url": args.base_url,
        "poll_interval_s": args.poll_interval,
        "poll_jitter_s": args.poll_jitter,
        "op_timeout_ms": args.op_timeout_ms,
        "message_mode": args.message_mode,
        "bid_amount": args.bid_amount,
        "storage_state_path": args.storage_state,
        "export_attempts_path": args.export_attempts,
    }
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    if args.headless:
        cfg.headless = True
    if args.detection_only:
        cfg.bid_placement_enabled = False
    cfg.validate()
    return cfg


async def _run(cfg: BidderConfig, credentials: Credentials) -> None:
    cancel = CancelToken()
    cancel.bind()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.cancel)
        except (NotImplementedError, RuntimeError):
            # not available on Windows event loops
            pass
    await run_bidder(cfg, credentials, cancel=cancel)


def main(argv=None):
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    logger = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )
    cfg = build_config(args)
    logger.info(f">>> Run started at {now_iso()}")
    try:
        asyncio.run(_run(cfg, Credentials(args.username, args.password)))
    except KeyboardInterrupt:
        logger.info(">>> Interrupted")


if __name__ == "__main__":
    main()
