import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from sketch_solver import (
    SerializationError,
    Solver2DOptions,
    SolverOptions,
    load_sketch,
    load_sketch_2d,
    options_from_dict,
    to_dict,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _load_payload(path: str) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fin:
            payload = json.load(fin)
    except OSError as exc:
        logger.error("Cannot read %s: %s", path, exc)
        raise SystemExit(2)
    except json.JSONDecodeError as exc:
        logger.error("%s is not valid JSON: %s", path, exc)
        raise SystemExit(2)
    if not isinstance(payload, dict):
        logger.error("%s must contain a JSON object", path)
        raise SystemExit(2)
    return payload


def _pick_engine(requested: Optional[str], payload: Dict[str, Any]) -> str:
    if requested:
        return requested
    return "2d" if "points" in payload or "variables" in payload else "gradient"


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    values = {
        "max_iterations": args.max_iterations,
        "tolerance": args.tolerance,
        "damping": args.damping,
    }
    return {key: value for key, value in values.items() if value is not None}


def _print_summary(summary: Dict[str, Any]) -> None:
    print("Success:", summary["success"])
    print("Iterations:", summary["iterations"])
    residual = summary["residual"]
    print("Residual:", "inf" if residual is None else f"{residual:.3e}")
    if summary.get("conflicts"):
        print("Conflicts:")
        for cid in summary["conflicts"]:
            print(f"  - {cid}")
    diagnostics = summary["diagnostics"]
    for key in ("skipped", "unsupported"):
        if diagnostics[key]:
            print(f"{key.capitalize()}: {', '.join(diagnostics[key])}")
    if "variables" in summary:
        print("Variables:")
        for name, value in summary["variables"].items():
            print(f"  {name}: {value:.6f}")
    else:
        print("Entities:")
        for entity in summary["entities"]:
            position = entity.get("position")
            if position is None:
                print(f"  {entity['id']} ({entity['kind']})")
                continue
            x, y, z = position
            print(f"  {entity['id']} ({entity['kind']}): ({x:.6f}, {y:.6f}, {z:.6f})")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Solve a constraint sketch stored as JSON")
    parser.add_argument("path", help="Path to the sketch JSON file")
    parser.add_argument(
        "--engine",
        choices=["gradient", "2d"],
        help="Solving engine (default: 2d when the sketch has points/variables, gradient otherwise)",
    )
    parser.add_argument("--max-iterations", type=int, help="Iteration cap")
    parser.add_argument("--tolerance", type=float, help="Convergence tolerance")
    parser.add_argument("--damping", type=float, help="Damping factor applied to every update")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log the residual of every gradient-descent iteration at INFO (gradient engine only)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--output", help="Write the solution as JSON to the given path")
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    payload = _load_payload(args.path)
    engine = _pick_engine(args.engine, payload)
    logger.info("Loaded sketch from %s (engine: %s)", args.path, engine)

    try:
        if engine == "2d":
            if args.verbose:
                logger.warning("--verbose only applies to the gradient engine; ignored for 2d sketches")
            opts_2d = options_from_dict(payload.get("options"), Solver2DOptions)
            solver_2d = load_sketch_2d(payload, replace(opts_2d, **_overrides(args)))
            result = solver_2d.solve()
        else:
            opts = options_from_dict(payload.get("options"), SolverOptions)
            opts = replace(opts, **_overrides(args))
            if args.verbose:
                opts = replace(opts, verbose=True)
            result = load_sketch(payload, opts).solve()
    except SerializationError as exc:
        logger.error("Invalid sketch %s: %s", args.path, exc)
        raise SystemExit(2)

    summary = to_dict(result)
    _print_summary(summary)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Writing solution to %s", output_path)
        output_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"Solution written to {output_path}")

    if not summary["success"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
