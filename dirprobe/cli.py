"""
dirprobe command line.

Usage:
    dirprobe -u <url> -w <wordlist> [-t 10] [-x php,html] [--timeout 10]
             [-o results.txt] [--verbose]
"""
import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from colorama import Fore, Style, init
from pydantic import ValidationError

from .aggregator import write_report
from .classifier import LEGACY_STATUS_CODES
from .console import ConsoleSink
from .models import ProbeOutcome, RunResult, ScanConfig
from .scanner import DirEnumerator
from .wordlists import WordlistError, build_candidates

VERSION = "1.5"

log = logging.getLogger("dirprobe.cli")


def _csv(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _codes(value: str) -> List[int]:
    try:
        return [int(v) for v in _csv(value)]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid status code list: {value}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dirprobe", description="Discover HTTP resources from a wordlist")
    p.add_argument("-u", "--url", help="Target base URL (include http/https)")
    p.add_argument("-w", "--wordlist", help="Path to the wordlist")
    p.add_argument("-t", "--threads", type=int, default=10, help="Concurrent requests (default 10)")
    p.add_argument("-x", "--extensions", type=_csv, help="Comma separated extensions, e.g. php,html")
    p.add_argument("--timeout", type=float, default=10, help="Per-request timeout in seconds (default 10)")
    p.add_argument("-o", "--output", help="Write matches to this file when the run ends")
    p.add_argument("--verbose", action="store_true", help="Show request errors")
    p.add_argument("--user-agent", default="Mozilla/5.0", help="User-Agent header")
    p.add_argument("--no-redirects", action="store_true", help="Do not follow redirects")
    codes = p.add_mutually_exclusive_group()
    codes.add_argument("-s", "--status-codes", type=_codes, help="Only report these codes (default: any but 404)")
    codes.add_argument("--legacy-codes", action="store_true",
                       help="Only report " + ",".join(str(c) for c in sorted(LEGACY_STATUS_CODES)))
    p.add_argument("--no-color", action="store_true", help="Disable coloured output")
    return p


def config_from_args(args: argparse.Namespace) -> ScanConfig:
    status_codes = args.status_codes
    if args.legacy_codes:
        status_codes = sorted(LEGACY_STATUS_CODES)
    return ScanConfig(
        url=args.url or "",
        wordlist=args.wordlist or "",
        threads=args.threads,
        extensions=args.extensions,
        timeout=args.timeout,
        verbose=args.verbose,
        output=args.output,
        user_agent=args.user_agent,
        follow_redirects=not args.no_redirects,
        status_codes=status_codes,
    )


def show_banner(config: ScanConfig, color: bool = True, out=None):
    out = out or sys.stdout
    title = f"dirprobe v{VERSION}"
    if color:
        title = Fore.CYAN + title + Style.RESET_ALL
    lines = [
        "=" * 39,
        title,
        "=" * 39,
        f"[+] URL:       {config.url}",
        f"[+] Wordlist:  {config.wordlist}",
        f"[+] Threads:   {config.threads}",
    ]
    if config.extensions:
        lines.append(f"[+] Exts:      {','.join(config.extensions)}")
    lines.append(f"[+] Timeout:   {config.timeout:g}s")
    if config.verbose:
        lines.append("[+] Verbose:   ON")
    out.write("\n".join(lines) + "\n\n")


def _fail(parser: argparse.ArgumentParser, message: str) -> int:
    print(message, file=sys.stderr)
    parser.print_help(sys.stderr)
    return 2


def _install_interrupt(loop: asyncio.AbstractEventLoop, cancel: asyncio.Event):
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
        return lambda: loop.remove_signal_handler(signal.SIGINT)
    except NotImplementedError:
        # Windows event loops
        previous = signal.signal(signal.SIGINT, lambda *_: loop.call_soon_threadsafe(cancel.set))
        return lambda: signal.signal(signal.SIGINT, previous)
    except (RuntimeError, ValueError):
        log.debug("Not in the main thread, Ctrl+C will not cancel the run")
        return lambda: None


async def run_scan(config: ScanConfig, candidates: List[str], sink: ConsoleSink,
                   cancel: Optional[asyncio.Event] = None) -> RunResult:
    if cancel is None:
        cancel = asyncio.Event()

    async def on_event(ev):
        kind = ev.get("type")
        if kind == "found":
            sink.result(ProbeOutcome.model_validate(ev["item"]))
        elif kind == "error" and config.verbose:
            sink.message(f"Error {ev.get('candidate')}: {ev.get('message')}")
        elif kind == "progress":
            sink.progress(ev["processed"], ev["total"])

    enumerator = DirEnumerator(config)
    restore = _install_interrupt(asyncio.get_running_loop(), cancel)
    try:
        return await enumerator.run(candidates, on_event, cancel)
    finally:
        restore()
        sink.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.url or not args.wordlist:
        return _fail(parser, "Missing required arguments: -u/--url and -w/--wordlist")
    try:
        config = config_from_args(args)
    except ValidationError as e:
        return _fail(parser, f"Invalid configuration:\n{e}")

    color = not args.no_color
    if color:
        init()
    show_banner(config, color=color)

    try:
        candidates = build_candidates(config.wordlist, config.extensions)
    except WordlistError as e:
        return _fail(parser, str(e))
    print(f"[+] Candidates: {len(candidates)}\n")

    sink = ConsoleSink(color=color)
    result = asyncio.run(run_scan(config, candidates, sink))

    print()
    if result.cancelled:
        print("Interrupted, stopped early.")
    print(f"Finished in {result.elapsed:.2f}s")
    print(f"Processed {result.processed}/{result.total} candidates, {len(result.outcomes)} found")

    if config.output:
        try:
            path = write_report(config.output, result)
        except OSError as e:
            log.error("Could not write %s: %s", config.output, e)
            return 1
        print(f"Results saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
