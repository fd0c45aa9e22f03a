from __future__ import annotations

import argparse
import io
import logging
import os
import sys
from typing import Optional, Sequence

from .flat_prof import accumulate, flat_frame, format_flat, plot_flat, select_rows, write_csv
from .options import ConfigError, Options, default_nthreads
from .perf import PerfFolder

logger = logging.getLogger(__name__)

PERF_EPILOG = """\
perf script must emit both PID and TIDs for --pid/--tid to work; eg, Linux < 4.1:
    perf script -f comm,pid,tid,cpu,time,event,ip,sym,dso,trace
for Linux >= 4.1:
    perf script -F comm,pid,tid,cpu,time,event,ip,sym,dso,trace
If you save this output add --header on Linux >= 3.14 to include perf info.

Examples:
  perf script | %(prog)s > out.folded
  %(prog)s --all -n 4 perf.script -o out.folded
  %(prog)s --skip-after handle_signal perf.script
"""


def setup_logging(quiet: bool, verbose: int) -> None:
    root = logging.getLogger()
    if quiet:
        root.setLevel(logging.CRITICAL + 1)
        return
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    root.setLevel(level)


def _positive_int(s: str) -> int:
    try:
        v = int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {s!r}")
    if v < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {v}")
    return v


def build_perf_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stackfold-perf",
        description="Collapse perf script output into folded stacks for flame graphs.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=PERF_EPILOG,
    )
    p.add_argument("infile", nargs="?", default=None, metavar="PATH",
                   help="perf script output file, or STDIN if not specified")
    p.add_argument("-o", "--output", default=None,
                   help="Folded output path (default: stdout)")
    p.add_argument("--addrs", action="store_true",
                   help="Include raw addresses where symbols can't be found")
    p.add_argument("--all", action="store_true", help="All annotations (--kernel --jit)")
    p.add_argument("--jit", action="store_true", help="Annotate jit functions with a `_[j]`")
    p.add_argument("--kernel", action="store_true", help="Annotate kernel functions with a `_[k]`")
    p.add_argument("--pid", action="store_true", help="Include PID with process names")
    p.add_argument("--tid", action="store_true", help="Include TID and PID with process names")
    p.add_argument("--no-tidy", action="store_true",
                   help="Keep symbol offsets and argument lists as perf printed them")
    p.add_argument("--module-fallback", action="store_true",
                   help="Label unresolved frames with their module name when known")
    p.add_argument("--event-filter", default=None, metavar="STRING",
                   help="Event filter [default: first encountered event]")
    p.add_argument("-n", "--nthreads", type=_positive_int, default=default_nthreads(),
                   metavar="UINT", help="Number of threads to use (default: %(default)s)")
    p.add_argument("--skip-after", default=None, metavar="STRING",
                   help="Omit all the parent stack frames of the frame with this function name; "
                        "no effect if no frame matches")
    p.add_argument("-q", "--quiet", action="store_true", help="Silence all log output")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="Verbose logging mode (-v, -vv)")
    return p


def options_from_args(args: argparse.Namespace) -> Options:
    return Options(
        include_addrs=args.addrs,
        include_pid=args.pid or args.tid,
        include_tid=args.tid,
        annotate_kernel=args.kernel or args.all,
        annotate_jit=args.jit or args.all,
        event_filter=args.event_filter,
        nthreads=args.nthreads,
        skip_after=args.skip_after,
        tidy_symbols=not args.no_tidy,
        tidy_java=not args.no_tidy,
        module_fallback=args.module_fallback,
    )


def perf_main(argv: Optional[Sequence[str]] = None) -> int:
    p = build_perf_parser()
    args = p.parse_args(argv)
    setup_logging(args.quiet, args.verbose)

    options = options_from_args(args)
    try:
        options.validate()
    except ConfigError as e:
        p.error(str(e))

    folder = PerfFolder(options)
    try:
        if args.output:
            # the output file is only created once folding succeeded
            buf = io.StringIO()
            folder.collapse_file(args.infile, buf)
            os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
            with open(args.output, "w", encoding="utf-8") as out:
                out.write(buf.getvalue())
        else:
            folder.collapse_file(args.infile)
    except OSError as e:
        print(f"stackfold-perf: {e}", file=sys.stderr)
        return 1
    return 0


def flat_main(argv: Optional[Sequence[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="stackfold-flat",
        description="Summarize folded stacks into a flat profile.",
    )
    p.add_argument("-t", "--trace", required=True, help="Folded stacks path")
    p.add_argument("-p", "--top", type=int, default=None, help="Keep only top N by self")
    p.add_argument(
        "--thr",
        type=float,
        default=None,
        help="Keep only rows with self%% >= thr (in percent, e.g. 1.0)",
    )
    p.add_argument("--skip-process", action="store_true",
                   help="Ignore the process label (first frame of every stack)")
    p.add_argument("--csv", default=None, help="Write flat summary as CSV to this path")
    p.add_argument("--plot", action="store_true", help="Save a bar chart PNG (requires matplotlib)")
    p.add_argument(
        "--png",
        default=None,
        help="PNG output path (used only when --plot is set). Default: alongside trace",
    )
    p.add_argument("-q", "--quiet", action="store_true", help="Silence all log output")
    p.add_argument("-v", "--verbose", action="count", default=0)
    args = p.parse_args(argv)
    setup_logging(args.quiet, args.verbose)

    if not os.path.isfile(args.trace):
        print(f"trace not found: {args.trace}", file=sys.stderr)
        return 2

    try:
        with open(args.trace, encoding="utf-8", errors="replace") as f:
            self_c, total_c, n = accumulate(f, skip_process=args.skip_process)
        table = flat_frame(self_c, total_c, n)
    except ValueError as e:
        print(f"stackfold-flat: {e}", file=sys.stderr)
        return 1
    table = select_rows(table, top=args.top, thr_percent=args.thr)

    title = f"Flat profile - {os.path.basename(args.trace)}"
    print(title)
    print("\n".join(format_flat(table, n)))

    if args.csv:
        write_csv(table, args.csv)
        logger.info("csv saved: %s", args.csv)

    if args.plot:
        png = args.png
        if not png:
            base, _ = os.path.splitext(args.trace)
            png = base + "_flat.png"
        try:
            plot_flat(table, png, title=title)
        except RuntimeError as e:
            print(f"stackfold-flat: {e}", file=sys.stderr)
            return 1
        print(f"plot saved: {png}")

    return 0
