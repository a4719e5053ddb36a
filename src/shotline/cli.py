"""Command line interface for pricing player shot lines."""

from __future__ import annotations

import argparse
import dataclasses
import json
from pathlib import Path
from typing import Callable, Sequence, TypeVar

import polars as pl

from .calibration import (
    CALIBRATION_PROFILES,
    CalibrationConfig,
    load_calibration,
    profile_defaults,
    validate_calibration,
)
from .config import get_settings
from .evaluation import EvaluationResult, MatchContext, RawInputs, ShotPropEvaluator
from .exceptions import ConfigurationError, InputValidationError
from .logging import configure_logging
from .odds import format_odd, to_american, to_fractional
from .selectors import MatchSelectors, PlayStyle, Position, Venue


HandlerT = TypeVar("HandlerT", bound=Callable[..., None])


@dataclasses.dataclass(slots=True)
class Subcommand:
    """Container describing a CLI sub-command."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: Callable[..., None]
    needs_calibration: bool

    def add_to_parser(
        self,
        subparsers,
        parent: argparse.ArgumentParser,
    ) -> argparse.ArgumentParser:
        """Create the parser for this subcommand."""

        parser = subparsers.add_parser(self.name, parents=[parent], help=self.help)
        self.configure(parser)
        parser.set_defaults(
            handler=self.handler,
            command=self.name,
            needs_calibration=self.needs_calibration,
        )
        return parser


class SubcommandApp:
    """Registry that wires handlers into an :class:`argparse` parser."""

    def __init__(self, description: str | None = None) -> None:
        self._commands: list[Subcommand] = []
        self._description = description

    def command(
        self,
        name: str,
        *,
        help: str,
        configure: Callable[[argparse.ArgumentParser], None],
        needs_calibration: bool = True,
    ) -> Callable[[HandlerT], HandlerT]:
        """Register ``handler`` as a sub-command with configuration callback."""

        def _decorator(handler: HandlerT) -> HandlerT:
            self._commands.append(
                Subcommand(
                    name=name,
                    help=help,
                    configure=configure,
                    handler=handler,
                    needs_calibration=needs_calibration,
                )
            )
            return handler

        return _decorator

    @property
    def commands(self) -> Sequence[Subcommand]:
        return tuple(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parent = argparse.ArgumentParser(add_help=False)
        parent.add_argument("--calibration", dest="calibration_file")
        parent.add_argument("--profile")
        parent.add_argument("--log-level")

        parser = argparse.ArgumentParser(prog="shotline", description=self._description)
        subparsers = parser.add_subparsers(dest="command", required=True)
        for command in self._commands:
            command.add_to_parser(subparsers, parent)
        return parser


APP = SubcommandApp(description=__doc__)


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _configure_player_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--baseline", type=float, required=True, help="Shots per match, season")
    parser.add_argument("--form", type=float, required=True, help="Shots per match, recent window")
    parser.add_argument(
        "--opponent-conceded",
        type=float,
        required=True,
        help="Shots per match conceded by the opponent",
    )
    parser.add_argument("--team-output", type=float, help="Shots per match produced by the team")
    parser.add_argument(
        "--position",
        required=True,
        choices=[member.value for member in Position],
    )
    parser.add_argument(
        "--style",
        default=PlayStyle.BALANCED.value,
        choices=[member.value for member in PlayStyle],
    )
    parser.add_argument("--venue", choices=[member.value for member in Venue])
    parser.add_argument("--minutes", type=float, required=True, help="Average minutes per match")
    parser.add_argument("--matches", type=float, required=True, help="Matches played")


def _configure_evaluate_parser(parser: argparse.ArgumentParser) -> None:
    _configure_player_arguments(parser)
    parser.add_argument("--line", type=float, required=True, help="Betting line, e.g. 2.5")
    parser.add_argument(
        "--odds-format",
        choices=["decimal", "american", "fractional"],
        default="decimal",
    )
    parser.add_argument("--json", action="store_true", help="Emit a JSON document")
    parser.add_argument("--explain", action="store_true", help="Show every model stage")


def _configure_ladder_parser(parser: argparse.ArgumentParser) -> None:
    _configure_player_arguments(parser)
    parser.add_argument(
        "--lines",
        type=float,
        nargs="+",
        default=[0.5, 1.5, 2.5, 3.5, 4.5],
    )


def _configure_batch_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", help="CSV file with one player per row")
    parser.add_argument("--output", help="Write results to this CSV instead of stdout")


def _configure_profiles_parser(parser: argparse.ArgumentParser) -> None:
    del parser


def _configure_validate_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--warnings-as-errors",
        action="store_true",
        help="Fail validation when calibration warnings are encountered.",
    )


def _player_request(args: argparse.Namespace, line: float) -> tuple[RawInputs, MatchSelectors, MatchContext]:
    inputs = RawInputs(
        baseline_rate=args.baseline,
        recent_form_rate=args.form,
        opponent_conceded_rate=args.opponent_conceded,
        team_output_rate=args.team_output,
    )
    selectors = MatchSelectors.from_tokens(args.position, args.style, args.venue)
    context = MatchContext(
        average_minutes=args.minutes,
        matches_played=args.matches,
        betting_line=line,
    )
    return inputs, selectors, context


def _print_violations(exc: InputValidationError) -> None:
    print("Input errors:")
    for message in exc.violations:
        print(f"- {message}")


def _render_odd(odd: float, odds_format: str) -> str:
    if odds_format == "american":
        american = to_american(odd)
        if american is None:
            return format_odd(odd)
        return f"{american:+d}"
    if odds_format == "fractional":
        fraction = to_fractional(odd)
        if fraction is None:
            return format_odd(odd)
        return f"{fraction[0]}/{fraction[1]}"
    return format_odd(odd)


def _render_result(result: EvaluationResult, line: float, args: argparse.Namespace) -> None:
    print(f"Probability of {result.threshold}+ shots (line {line:g}): {result.probability * 100:.2f}%")
    print(f"Fair odd: {_render_odd(result.fair_odd, args.odds_format)}")
    print(f"Expected shots (λ): {result.expected_shots:.2f}")
    print(f"95% interval: {result.interval.low:.2f} - {result.interval.high:.2f} shots")
    print(f"Sample quality [{result.quality.level.value}]: {result.quality.message}")
    if args.explain:
        print("Model stages:")
        for name, value in result.breakdown.as_dict().items():
            print(f"  {name:<22} {value:.4f}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@APP.command(
    "evaluate",
    help="Price a single shots line",
    configure=_configure_evaluate_parser,
)
def _cmd_evaluate(calibration: CalibrationConfig, args: argparse.Namespace) -> None:
    inputs, selectors, context = _player_request(args, args.line)
    try:
        result = ShotPropEvaluator(calibration).evaluate(inputs, selectors, context)
    except InputValidationError as exc:
        _print_violations(exc)
        raise SystemExit(1) from exc
    if args.json:
        payload = result.to_dict()
        payload["profile"] = calibration.profile
        payload["line"] = args.line
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return
    _render_result(result, args.line, args)


@APP.command(
    "ladder",
    help="Price several lines for one player",
    configure=_configure_ladder_parser,
)
def _cmd_ladder(calibration: CalibrationConfig, args: argparse.Namespace) -> None:
    inputs, selectors, context = _player_request(args, min(args.lines))
    try:
        rungs = ShotPropEvaluator(calibration).ladder(inputs, selectors, context, args.lines)
    except InputValidationError as exc:
        _print_violations(exc)
        raise SystemExit(1) from exc
    print(f"{'Line':>6} {'Shots':>6} {'Probability':>12} {'Fair odd':>9}")
    for rung in rungs:
        print(
            f"{rung.line:>6g} {str(rung.threshold) + '+':>6} "
            f"{rung.probability * 100:>11.2f}% {format_odd(rung.fair_odd):>9}"
        )


@APP.command(
    "batch",
    help="Price every row of a CSV file",
    configure=_configure_batch_parser,
)
def _cmd_batch(calibration: CalibrationConfig, args: argparse.Namespace) -> None:
    try:
        frame = pl.read_csv(args.input)
    except (OSError, pl.exceptions.PolarsError) as exc:
        raise SystemExit(f"Could not read {args.input}: {exc}") from exc
    try:
        results = ShotPropEvaluator(calibration).evaluate_frame(frame)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    rejected = results.filter(pl.col("errors").is_not_null()).height
    if args.output:
        destination = Path(args.output)
        destination.parent.mkdir(parents=True, exist_ok=True)
        results.write_csv(destination)
        print(f"Wrote {results.height} rows to {destination} ({rejected} rejected)")
    else:
        with pl.Config(tbl_rows=-1, tbl_cols=-1):
            print(results)


@APP.command(
    "profiles",
    help="List built-in calibration profiles",
    configure=_configure_profiles_parser,
    needs_calibration=False,
)
def _cmd_profiles(args: argparse.Namespace) -> None:
    default = args.profile or get_settings().profile
    for name in sorted(CALIBRATION_PROFILES):
        config = CalibrationConfig.model_validate(profile_defaults(name))
        marker = "*" if name == default else " "
        curve = config.confidence
        print(
            f"{marker} {name:<11} baseline={config.baseline_mode:<8} "
            f"opponent={config.opponent.strategy:<15} "
            f"venue={'on' if config.venue.enabled else 'off':<3} "
            f"confidence={curve.shape}[{curve.minimum:.2f}, {curve.maximum:.2f}]"
        )


@APP.command(
    "validate-config",
    help="Validate a calibration file",
    configure=_configure_validate_parser,
    needs_calibration=False,
)
def _cmd_validate_config(args: argparse.Namespace) -> None:
    try:
        calibration = load_calibration(
            base_path=args.calibration_file,
            profile=args.profile,
        )
        warnings = validate_calibration(calibration)
    except ConfigurationError as exc:
        print("Calibration invalid:")
        for line in str(exc).splitlines():
            text = line if line.startswith("-") else f"- {line}"
            print(text)
        raise SystemExit(1) from exc

    print(f"Calibration '{calibration.profile}' is valid.")
    if warnings:
        print("Warnings:")
        for message in warnings:
            print(f"- {message}")
        if getattr(args, "warnings_as_errors", False):
            raise SystemExit(2)


def _build_parser() -> argparse.ArgumentParser:
    return APP.build_parser()


def _dispatch(args: argparse.Namespace) -> None:
    configure_logging(args.log_level or get_settings().log_level)
    handler = args.handler
    if not args.needs_calibration:
        handler(args)
        return
    try:
        calibration = load_calibration(
            base_path=args.calibration_file,
            profile=args.profile,
        )
        handler(calibration, args)
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _dispatch(args)


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
