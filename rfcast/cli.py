#!/usr/bin/env python3
"""
CLI entry point for the rfcast coverage & forecasting engine.

Defines the following commands:
  rfcast heatmap SURVEY [--resolution R] [--method nearest|idw|bilinear]
  rfcast coverage SURVEY [--resolution R] [--method ...]
  rfcast deadzones SURVEY [--resolution R] [--threshold DBM]
  rfcast forecast HISTORY --horizon-min M [--now MS]
  rfcast issues HISTORY --horizon-min M [--now MS]
  rfcast timing HISTORY [--hours H] [--now MS]
  rfcast health NETWORK --horizon-min M [--now MS]
  rfcast coverage-forecast NETWORK --horizon-min M [--now MS]
  rfcast version

Every command reads one JSON document and prints a JSON result on stdout.
"""

import json
import logging
import sys
from argparse import ArgumentParser, Namespace
from dataclasses import asdict
from enum import Enum
from importlib.metadata import PackageNotFoundError, version as _get_version
from pathlib import Path
from typing import Any, Optional, Sequence

from rfcast.analysis.config import MapperConfig
from rfcast.analysis.mapper import CoverageMapper
from rfcast.analysis.predictor import TrendPredictor
from rfcast.analysis.tiers import InterpolationMethod
from rfcast.utils.log import configure_file_logging, get_logger, set_level
from rfcast.utils.validate import ApHistoryDocument, NetworkDocument, SurveyDocument

logger = get_logger("rfcast.cli")

MINUTE_MS = 60_000


def _jsonable(record: Any, **extra: Any) -> dict:
    """
    Flatten a result dataclass into JSON-ready values, enums by display value.
    """
    data = asdict(
        record,
        dict_factory=lambda items: {k: v.value if isinstance(v, Enum) else v for k, v in items},
    )
    data.update({k: v.value if isinstance(v, Enum) else v for k, v in extra.items()})
    return data


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _load_survey(path: str) -> SurveyDocument:
    return SurveyDocument.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _load_history(path: str) -> ApHistoryDocument:
    return ApHistoryDocument.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _load_network(path: str) -> NetworkDocument:
    return NetworkDocument.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _mapper(resolution: float, method: str) -> CoverageMapper:
    cfg = MapperConfig(
        grid_resolution=resolution,
        interpolation_method=InterpolationMethod.parse(method),
    )
    return CoverageMapper(cfg)


def heatmap(survey: str, resolution: float, method: str) -> None:
    """
    Interpolate a survey into an RSSI grid.
    """
    doc = _load_survey(survey)
    logger.info("Heatmap: survey=%s, samples=%d", survey, len(doc.samples))
    mapper = _mapper(resolution, method)
    result = mapper.generate_heatmap(doc.to_samples(), doc.bounds.to_bounds())
    _emit(_jsonable(
        result,
        average_signal=result.average_signal,
        min_signal=result.min_signal,
        max_signal=result.max_signal,
    ))


def coverage(survey: str, resolution: float, method: str) -> None:
    """
    Classify survey coverage per quality tier.
    """
    doc = _load_survey(survey)
    logger.info("Coverage: survey=%s, samples=%d", survey, len(doc.samples))
    mapper = _mapper(resolution, method)
    result = mapper.generate_coverage_map(doc.to_samples(), doc.bounds.to_bounds())
    data = _jsonable(
        result,
        excellent_percentage=result.excellent_percentage,
        good_or_better_percentage=result.good_or_better_percentage,
        overall_quality=result.overall_quality,
    )
    # the grid itself is what `heatmap` is for
    data.pop("heatmap")
    _emit(data)


def deadzones(survey: str, resolution: float, method: str, threshold: int) -> None:
    """
    List dead zones, largest first.
    """
    doc = _load_survey(survey)
    logger.info("Dead zones: survey=%s, threshold=%d", survey, threshold)
    regions = _mapper(resolution, method).identify_dead_zones(
        doc.to_samples(), doc.bounds.to_bounds(), threshold=threshold
    )
    _emit([
        _jsonable(r, cell_count=r.cell_count, severity=r.severity)
        for r in regions
    ])


def forecast(history_path: str, horizon_min: int, now_ms: Optional[int]) -> None:
    """
    Forecast one AP's signal.
    """
    history = _load_history(history_path).to_history()
    logger.info("Forecast: bssid=%s, horizon=%d min", history.bssid, horizon_min)
    result = TrendPredictor().predict_ap_signal_strength(
        history, horizon_min * MINUTE_MS, now_ms
    )
    _emit(_jsonable(result, expected_change=result.expected_change, summary=result.summary))


def issues(history_path: str, horizon_min: int, now_ms: Optional[int]) -> None:
    """
    Estimate the risk of connection issues with one AP.
    """
    history = _load_history(history_path).to_history()
    logger.info("Issues: bssid=%s, horizon=%d min", history.bssid, horizon_min)
    result = TrendPredictor().predict_connection_issues(
        history, horizon_min * MINUTE_MS, now_ms
    )
    _emit(_jsonable(result, summary=result.summary))


def timing(history_path: str, hours: int, now_ms: Optional[int]) -> None:
    """
    Recommend when to connect to one AP.
    """
    history = _load_history(history_path).to_history()
    logger.info("Timing: bssid=%s, look-ahead=%d h", history.bssid, hours)
    result = TrendPredictor().recommend_optimal_connection_time(history, hours, now_ms)
    _emit(_jsonable(result))


def health(network: str, horizon_min: int, now_ms: Optional[int]) -> None:
    """
    Forecast a network's health score.
    """
    trend = _load_network(network).to_trend()
    logger.info("Health: ssid=%s, aps=%d", trend.ssid, trend.ap_count)
    result = TrendPredictor().predict_network_health(trend, horizon_min * MINUTE_MS, now_ms)
    _emit(_jsonable(result, expected_change=result.expected_change, summary=result.summary))


def coverage_forecast(network: str, horizon_min: int, now_ms: Optional[int]) -> None:
    """
    Forecast a network's visible-AP count and average signal.
    """
    trend = _load_network(network).to_trend()
    logger.info("Coverage forecast: ssid=%s, aps=%d", trend.ssid, trend.ap_count)
    result = TrendPredictor().predict_coverage_quality(
        trend, horizon_min * MINUTE_MS, now_ms
    )
    _emit(_jsonable(result))


def version() -> None:
    """
    Print the installed rfcast package version.
    """
    try:
        ver = _get_version("rfcast")
    except PackageNotFoundError:
        ver = "unknown"
    print(f"rfcast {ver}")


def parse_args(argv: Optional[Sequence[str]] = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="rfcast")
    parser.add_argument("--log-file", type=str, help="Also write JSON logs to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def survey_command(name: str, help: str) -> ArgumentParser:
        p = subparsers.add_parser(name, help=help)
        p.add_argument("survey", type=str, help="Survey JSON document.")
        p.add_argument(
            "--resolution", type=float, default=1.0, help="Grid cell size (bounds units)."
        )
        p.add_argument(
            "--method", type=str, default="idw",
            choices=[m.value for m in InterpolationMethod], help="Interpolation method.",
        )
        return p

    def forecast_command(name: str, help: str, source: str) -> ArgumentParser:
        p = subparsers.add_parser(name, help=help)
        p.add_argument(source, type=str, help=f"{source.capitalize()} JSON document.")
        p.add_argument("--now", type=int, help="Reference time, epoch millis (default: now).")
        return p

    survey_command("heatmap", "Interpolate an RSSI heatmap.")
    survey_command("coverage", "Summarize coverage quality.")
    p = survey_command("deadzones", "Find dead zones.")
    p.add_argument("--threshold", type=int, default=-85, help="Dead-zone threshold (dBm).")

    for name, help, source in (
        ("forecast", "Forecast an AP's signal.", "history"),
        ("issues", "Estimate connection-issue risk.", "history"),
        ("health", "Forecast network health.", "network"),
        ("coverage-forecast", "Forecast network coverage.", "network"),
    ):
        p = forecast_command(name, help, source)
        p.add_argument("--horizon-min", type=int, required=True, help="Horizon in minutes.")

    p = forecast_command("timing", "Recommend a connection time.", "history")
    p.add_argument("--hours", type=int, default=4, help="Hours to look ahead.")

    subparsers.add_parser("version", help="Show rfcast version and exit.")

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)
    if args.log_file:
        path = configure_file_logging(args.log_file)
        logger.info("Logging to %s", path)

    try:
        match args.command:
            case "heatmap":
                heatmap(args.survey, args.resolution, args.method)
            case "coverage":
                coverage(args.survey, args.resolution, args.method)
            case "deadzones":
                deadzones(args.survey, args.resolution, args.method, args.threshold)
            case "forecast":
                forecast(args.history, args.horizon_min, args.now)
            case "issues":
                issues(args.history, args.horizon_min, args.now)
            case "timing":
                timing(args.history, args.hours, args.now)
            case "health":
                health(args.network, args.horizon_min, args.now)
            case "coverage-forecast":
                coverage_forecast(args.network, args.horizon_min, args.now)
            case "version":
                version()
            case _:
                sys.exit(1)
    except (OSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        sys.exit(2)


if __name__ == "__main__":
    main()
