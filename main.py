#!/usr/bin/env python3
"""
╔══════════════════════════════════════════════════════════════════╗
║          Algorithm Step Visualizer  -  Command-line Player       ║
║                                                                  ║
║  Run     : algoviz <family> [options]                            ║
║                                                                  ║
║  Families:                                                       ║
║      sort    bubble | insertion | selection | quick | merge      ║
║      search  linear | binary                                     ║
║      tree    inorder | preorder | postorder | bfs | dfs          ║
║      graph   bfs | dfs | dijkstra                                ║
║      stack   push X | pop | peek | empty ...                     ║
║      queue   enqueue X | dequeue | peek | empty ...              ║
║                                                                  ║
║  Architecture:                                                   ║
║    main.py ──► AlgorithmSession ──► tracers (step list)          ║
║                     │                                            ║
║                     └──► PlaybackController ──► print_step()     ║
║                              (ThreadingScheduler ticks)          ║
║                                                                  ║
║  --instant prints the whole trace at once; --json / --pdf        ║
║  export it.                                                      ║
╚══════════════════════════════════════════════════════════════════╝
"""

import argparse
import logging
import random
import sys
import threading

from export import PDFExporter, export_json
from playback import PlaybackState, ThreadingScheduler
from session import AlgorithmSession
from settings import Settings
from structures import AlgoVizError, Queue, Stack
from trace_model import format_snapshot
from tracers import TRACERS, count_comparisons, count_swaps

logger = logging.getLogger("algoviz")

FAMILIES = {
    "sort":   "sorting",
    "search": "searching",
    "tree":   "trees",
    "graph":  "graphs",
}


# ══════════════════════════════════════════════════════════
#  OUTPUT
# ══════════════════════════════════════════════════════════
def print_step(index, total, step, out=None):
    """Print one step: counter, description, snapshot, side channel."""
    print(f"[{index:>3}/{total}] {step.description}", file=out)
    if step.snapshot:
        print(f"          {format_snapshot(step)}", file=out)
    if step.aux is not None:
        if step.aux.kind == "distances":
            body = ", ".join(f"{k}={'∞' if v == float('inf') else v}"
                             for k, v in step.aux.items)
        else:
            body = ", ".join(str(v) for v in step.aux.items)
        print(f"          {step.aux.kind}: [{body}]", file=out)


def print_summary(steps, out=None):
    print(f"\n{len(steps)} steps, {count_comparisons(steps)} comparisons, "
          f"{count_swaps(steps)} swaps", file=out)


# ══════════════════════════════════════════════════════════
#  ARGUMENTS
# ══════════════════════════════════════════════════════════
def build_parser():
    parser = argparse.ArgumentParser(
        prog="algoviz",
        description="Step through classic algorithms one recorded state at a time.")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def playback_options(p):
        p.add_argument("--delay", type=int, help="milliseconds per step (100-1000)")
        p.add_argument("--instant", action="store_true",
                       help="print the whole trace without waiting")
        p.add_argument("--json", metavar="FILE", help="export the trace as JSON")
        p.add_argument("--pdf", metavar="FILE", help="export a PDF walkthrough")
        p.add_argument("--seed", type=int, help="seed for --random")

    p = sub.add_parser("sort", help="sorting algorithms")
    p.add_argument("-a", "--algorithm", choices=list(TRACERS["sorting"]), default="bubble")
    p.add_argument("--values", help='e.g. "5,3,8,1"')
    p.add_argument("--random", type=int, metavar="N", help="N random values")
    playback_options(p)

    p = sub.add_parser("search", help="searching algorithms")
    p.add_argument("-a", "--algorithm", choices=list(TRACERS["searching"]), default="linear")
    p.add_argument("--values", help='e.g. "4 8 15 16 23 42"')
    p.add_argument("--random", type=int, metavar="N", help="N random values")
    p.add_argument("-t", "--target", type=int)
    playback_options(p)

    p = sub.add_parser("tree", help="binary search tree traversals")
    p.add_argument("-a", "--algorithm", choices=list(TRACERS["trees"]), default="inorder")
    p.add_argument("--values", help="values inserted in order")
    p.add_argument("--sample", action="store_true")
    p.add_argument("--random", action="store_true")
    playback_options(p)

    p = sub.add_parser("graph", help="graph traversals and shortest paths")
    p.add_argument("-a", "--algorithm", choices=list(TRACERS["graphs"]), default="bfs")
    p.add_argument("--edges", help='e.g. "A-B:1, B-C:1, A-C:5"')
    p.add_argument("--random", action="store_true")
    p.add_argument("--start")
    p.add_argument("--end")
    playback_options(p)

    for name, ops in (("stack", "push X, pop, peek, empty"),
                      ("queue", "enqueue X, dequeue, peek, empty")):
        p = sub.add_parser(name, help=f"{name} operations ({ops})")
        p.add_argument("ops", nargs="+", help=ops)

    return parser


# ══════════════════════════════════════════════════════════
#  COMMANDS
# ══════════════════════════════════════════════════════════
def load_session(args, session):
    """Build the session's structure from the parsed arguments."""
    rng = random.Random(args.seed) if args.seed is not None else None
    family = session.family

    if family == "sorting":
        if args.values:
            session.load_text(args.values)
        else:
            session.load_random(rng, size=args.random or 20)
    elif family == "searching":
        if args.values:
            params = {"target": args.target} if args.target is not None else {}
            session.load_text(args.values, **params)
        else:
            session.load_random(rng, size=args.random or 20)
            if args.target is not None:
                session.set_params(target=args.target)
    elif family == "trees":
        if args.values:
            session.load_text(args.values)
        elif args.random:
            session.load_random(rng)
        else:
            session.load_sample()
    else:
        params = {k: v for k, v in (("start", args.start), ("end", args.end)) if v}
        if args.edges:
            session.load_text(args.edges, **params)
            return
        if args.random:
            session.load_random(rng)
        else:
            session.load_sample()
        if params:
            session.set_params(**params)


def play(session, instant=False, out=None):
    """
    Play the session's trace to the end.

    Returns:
        list[TraceStep]: the trace that was played.
    """
    controller = session.controller
    done = threading.Event()

    def on_change(cursor, step):
        if step is not None:
            print_step(cursor, controller.step_count, step, out)
        if controller.state is PlaybackState.FINISHED:
            done.set()

    controller.subscribe(on_change)
    try:
        if instant:
            while controller.step():
                pass
        else:
            controller.play()
            while not done.wait(0.1):
                pass
    except KeyboardInterrupt:
        controller.pause()
        print("\nPaused.", file=out)
    finally:
        controller.unsubscribe(on_change)
    return list(controller.steps or [])


def run_algorithm(args, settings, out=None):
    family  = FAMILIES[args.command]
    session = AlgorithmSession(family, args.algorithm, ThreadingScheduler(), settings)
    if args.delay is not None:
        session.controller.delay_ms = args.delay
    load_session(args, session)
    logger.debug("Session ready: %s %s %s", family, args.algorithm, session.params)

    print(f"{session.info['name']}", file=out)
    steps = play(session, instant=args.instant, out=out)
    print_summary(steps, out)

    if args.json:
        export_json(steps, args.json, title=session.info["name"])
        print(f"Trace written to {args.json}", file=out)
    if args.pdf:
        PDFExporter(session.info["name"], session.info.get("code")).export(steps, args.pdf)
        print(f"Walkthrough written to {args.pdf}", file=out)


def run_container(args, out=None):
    """Apply stack/queue operations in order, printing each result."""
    box = Stack() if args.command == "stack" else Queue()
    add = box.push if isinstance(box, Stack) else box.enqueue
    take = box.pop if isinstance(box, Stack) else box.dequeue

    ops = list(args.ops)
    while ops:
        op = ops.pop(0).lower()
        try:
            if op in ("push", "enqueue"):
                if not ops:
                    raise AlgoVizError(f"{op} needs a value")
                print(f"{op} {add(ops.pop(0))}", file=out)
            elif op in ("pop", "dequeue"):
                print(f"{op} -> {take()}", file=out)
            elif op == "peek":
                print(f"peek -> {box.peek()}", file=out)
            elif op in ("empty", "isempty"):
                print(f"isEmpty -> {str(box.is_empty()).lower()}", file=out)
            else:
                raise AlgoVizError(f"Unknown {args.command} operation {op!r}")
        except AlgoVizError as e:
            print(f"{op}: {e}", file=out)
    print(f"{args.command}: {box.items}", file=out)


def main(argv=None):
    """
    Command-line entry point.

    Returns:
        int: process exit status (0 ok, 1 input error, 130 interrupted).
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    try:
        if args.command in ("stack", "queue"):
            run_container(args)
        else:
            run_algorithm(args, Settings())
    except AlgoVizError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
