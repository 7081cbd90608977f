import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .cleanup import cleanup_stale_jobs
from .compatibility import CompatibilityEngine, score_description
from .cache import CompatibilityCache
from .config import Settings, get_settings
from .database import get_session, init_database
from .env import load_env
from .geo import calculate_distance, validate_coordinates
from .geocode import geocode_address, reverse_geocode
from .logger import get_logger
from .matching import calculate_match_score
from .models import Job, MatchPreferences, Specialist
from .schema import validate_job, validate_job_strict, validate_specialist
from .storage import fetch_job_matches, search_specialists_near, upsert_job, upsert_specialist
from .weights import adjust_weight, normalize_weights


def _load_json(path_str: Optional[str]) -> Any:
    if path_str is None:
        return None
    path = Path(path_str)
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise SystemExit(f"Invalid JSON in {path}: {e}")


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_assignments(pairs: List[str]) -> Dict[str, float]:
    weights: Dict[str, float] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Expected factor=value, got {pair!r}")
        try:
            weights[name.strip()] = float(value)
        except ValueError:
            raise SystemExit(f"Weight for {name.strip()!r} must be a number, got {value!r}")
    return weights


def _preferences(args: argparse.Namespace) -> MatchPreferences:
    return MatchPreferences(
        prioritize_location=args.prioritize_location,
        prioritize_rate=args.prioritize_rate,
        prioritize_urgent=args.prioritize_urgent,
        max_distance_km=args.max_distance,
    )


def _db_path(args: argparse.Namespace, settings: Settings) -> Path:
    return Path(args.db) if args.db else settings.db_path


def cmd_validate(args: argparse.Namespace, settings: Settings) -> None:
    data = _load_json(args.input)
    if args.kind == "specialist":
        errors = validate_specialist(data)
    elif args.strict:
        _, errors = validate_job_strict(data)
    else:
        errors = validate_job(data)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_score(args: argparse.Namespace, settings: Settings) -> None:
    job = Job.from_dict(_load_json(args.job))
    specialist = Specialist.from_dict(_load_json(args.specialist))
    weights = _load_json(args.weights)
    result = calculate_match_score(
        job, specialist, _preferences(args), weights, max_distance_km=settings.max_distance_km
    )
    _print_json(result.to_dict())


def cmd_compat(args: argparse.Namespace, settings: Settings) -> None:
    listing = _load_json(args.listing)
    preferences = _load_json(args.preferences)
    engine = CompatibilityEngine(CompatibilityCache(ttl_seconds=settings.cache_ttl_seconds))
    listing_id = str(args.listing_id or listing.get("id", ""))
    if args.detailed:
        result = engine.calculate_detailed_compatibility(
            listing_id, args.category, listing, preferences
        )
    else:
        result = engine.calculate_compatibility(listing_id, args.category, listing, preferences)
    print(f"{result.overall_score}% - {score_description(result.overall_score)}")
    for dim in result.dimensions:
        print(f"  {dim.name}: {dim.score}% (weight {dim.weight:g}) {dim.description}")
    print(f"Reason: {result.primary_match_reason}")
    for s in result.improvement_suggestions:
        print(f" - {s}")


def cmd_distance(args: argparse.Namespace, settings: Settings) -> None:
    validate_coordinates(args.lat1, args.lng1)
    validate_coordinates(args.lat2, args.lng2)
    km = calculate_distance(args.lat1, args.lng1, args.lat2, args.lng2)
    print(f"{km:.2f} km")


def cmd_weights(args: argparse.Namespace, settings: Settings) -> None:
    weights = normalize_weights(_parse_assignments(args.set or []))
    for pair in args.adjust or []:
        for factor, value in _parse_assignments([pair]).items():
            weights = adjust_weight(weights, factor, value)
    for factor, value in weights.items():
        print(f"{factor}: {value:.4f}")


def _import(args: argparse.Namespace, settings: Settings, upsert) -> None:
    records = _load_json(args.input)
    if isinstance(records, dict):
        records = [records]
    if not isinstance(records, list):
        raise SystemExit("Input must be a JSON object or a list of objects")

    db_path = _db_path(args, settings)
    init_database(db_path)
    session = get_session(db_path)
    counts = {"new": 0, "updated": 0, "no-change": 0, "validation_error": 0}
    try:
        for data in records:
            if not isinstance(data, dict):
                counts["validation_error"] += 1
                print(f"[validation_error] {data!r} - not an object")
                continue
            outcome = upsert(session, data)
            counts[outcome["status"]] += 1
            if outcome["status"] == "validation_error":
                print(f"[validation_error] {data.get('id')} - {outcome['errors']}")
            else:
                print(f"[{outcome['status']}] {outcome['id']}")
    finally:
        session.close()
    print(
        f"Done. new={counts['new']} updated={counts['updated']} "
        f"no-change={counts['no-change']} skipped={counts['validation_error']}"
    )


def cmd_import_jobs(args: argparse.Namespace, settings: Settings) -> None:
    _import(args, settings, upsert_job)


def cmd_import_specialists(args: argparse.Namespace, settings: Settings) -> None:
    _import(args, settings, upsert_specialist)


def cmd_matches(args: argparse.Namespace, settings: Settings) -> None:
    db_path = _db_path(args, settings)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}")
    weights = _load_json(args.weights)
    min_score = args.min_score if args.min_score is not None else settings.min_match_score

    preferences = _preferences(args)
    if preferences.max_distance_km is None and args.radius is None:
        preferences.max_distance_km = settings.max_distance_km

    session = get_session(db_path)
    try:
        matches = fetch_job_matches(
            session,
            args.specialist_id,
            radius_km=args.radius,
            limit=args.limit,
            min_score=min_score,
            weights=weights,
            preferences=preferences,
            persist=not args.no_persist,
        )
    finally:
        session.close()

    if args.json:
        _print_json([m.to_dict() for m in matches])
        return
    if not matches:
        print("No matching jobs found.")
        return
    for m in matches:
        distance = m.match_result.distance_km
        where = f"{distance:.1f} km" if distance is not None else "distance unknown"
        print(f"{m.match_result.score:3d}%  {m.job.id}  {m.job.title}  ({where})")
        for line in m.match_result.explanations:
            print(f"       - {line}")


def cmd_nearby(args: argparse.Namespace, settings: Settings) -> None:
    db_path = _db_path(args, settings)
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}")
    session = get_session(db_path)
    try:
        hits = search_specialists_near(
            session, args.lat, args.lng, args.radius or settings.max_distance_km, limit=args.limit
        )
    finally:
        session.close()
    if not hits:
        print("No specialists found nearby.")
        return
    for specialist, km in hits:
        print(f"{km:7.2f} km  {specialist.id}  {specialist.name or ''}".rstrip())


def cmd_geocode(args: argparse.Namespace, settings: Settings) -> None:
    api_key = args.api_key or settings.google_maps_api_key
    if args.address:
        loc = geocode_address(args.address, api_key=api_key)
        print(f"{loc.lat:.6f}, {loc.lng:.6f}")
        place = ", ".join(p for p in (loc.city, loc.state, loc.zip_code) if p)
        if place:
            print(place)
        return
    if args.lat is None or args.lng is None:
        raise SystemExit("Provide --address, or both --lat and --lng")
    print(reverse_geocode(args.lat, args.lng, api_key=api_key))


def cmd_cleanup(args: argparse.Namespace, settings: Settings) -> None:
    before, after = cleanup_stale_jobs(_db_path(args, settings), days=args.days)
    print(f"Removed {before - after} stale jobs ({after} remaining).")


def _add_preference_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--prioritize-location", action="store_true", help="Weight proximity higher")
    p.add_argument("--prioritize-rate", action="store_true", help="Weight price match higher")
    p.add_argument("--prioritize-urgent", action="store_true", help="Weight urgent jobs higher")
    p.add_argument("--max-distance", type=float, help="Distance (km) at which proximity scores 0")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobmate", description="JobMate matching engine CLI")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    val = subparsers.add_parser("validate", help="Validate a job or specialist JSON file")
    val.add_argument("--input", required=True, help="Path to JSON input")
    val.add_argument("--kind", choices=["job", "specialist"], default="job", help="Record type (default: job)")
    val.add_argument("--strict", action="store_true", help="Also require a known urgency level and status (jobs)")
    val.set_defaults(func=cmd_validate)

    sc = subparsers.add_parser("score", help="Score one job against one specialist")
    sc.add_argument("--job", required=True, help="Path to job JSON")
    sc.add_argument("--specialist", required=True, help="Path to specialist JSON")
    sc.add_argument("--weights", help="Path to weight preferences JSON")
    _add_preference_flags(sc)
    sc.set_defaults(func=cmd_score)

    cp = subparsers.add_parser("compat", help="Score a listing against category preferences")
    cp.add_argument("--listing", required=True, help="Path to listing JSON")
    cp.add_argument("--preferences", required=True, help="Path to user preferences JSON")
    cp.add_argument("--category", required=True, help="Listing category: jobs, services, marketplace, ...")
    cp.add_argument("--listing-id", help="Listing id (default: the listing's 'id')")
    cp.add_argument("--detailed", action="store_true", help="Category-specific improvement suggestions")
    cp.set_defaults(func=cmd_compat)

    dist = subparsers.add_parser("distance", help="Great-circle distance between two points")
    dist.add_argument("lat1", type=float)
    dist.add_argument("lng1", type=float)
    dist.add_argument("lat2", type=float)
    dist.add_argument("lng2", type=float)
    dist.set_defaults(func=cmd_distance)

    wt = subparsers.add_parser("weights", help="Normalize weight preferences")
    wt.add_argument("--set", nargs="*", help="factor=value pairs, any scale (e.g. skills=8 location=2)")
    wt.add_argument("--adjust", nargs="*", help="Pin factor=value in [0, 1] and rebalance the rest")
    wt.set_defaults(func=cmd_weights)

    for name, func, noun in (
        ("import-jobs", cmd_import_jobs, "jobs"),
        ("import-specialists", cmd_import_specialists, "specialists"),
    ):
        imp = subparsers.add_parser(name, help=f"Import {noun} from a JSON file into the database")
        imp.add_argument("--input", required=True, help="JSON object or list of objects")
        imp.add_argument("--db", help="SQLite database path (default: JOBMATE_DB_PATH)")
        imp.set_defaults(func=func)

    mt = subparsers.add_parser("matches", help="Best open jobs for a stored specialist")
    mt.add_argument("--specialist-id", required=True, help="Specialist id")
    mt.add_argument("--radius", type=float, help="Search radius in km (default: JOBMATE_MAX_DISTANCE_KM)")
    mt.add_argument("--limit", type=int, default=20, help="Maximum results (default: 20)")
    mt.add_argument("--min-score", type=int, help="Drop matches below this score (0-100)")
    mt.add_argument("--weights", help="Path to weight preferences JSON")
    mt.add_argument("--no-persist", action="store_true", help="Do not store the results")
    mt.add_argument("--json", action="store_true", help="Print results as JSON")
    mt.add_argument("--db", help="SQLite database path (default: JOBMATE_DB_PATH)")
    _add_preference_flags(mt)
    mt.set_defaults(func=cmd_matches)

    nb = subparsers.add_parser("nearby", help="Stored specialists near a point")
    nb.add_argument("--lat", type=float, required=True)
    nb.add_argument("--lng", type=float, required=True)
    nb.add_argument("--radius", type=float, help="Search radius in km (default: JOBMATE_MAX_DISTANCE_KM)")
    nb.add_argument("--limit", type=int, help="Maximum results")
    nb.add_argument("--db", help="SQLite database path (default: JOBMATE_DB_PATH)")
    nb.set_defaults(func=cmd_nearby)

    gc = subparsers.add_parser("geocode", help="Address to coordinates, or coordinates to address")
    gc.add_argument("--address", help="Free-form address")
    gc.add_argument("--lat", type=float, help="Latitude for reverse lookup")
    gc.add_argument("--lng", type=float, help="Longitude for reverse lookup")
    gc.add_argument("--api-key", help="Google Maps API key (or set GOOGLE_MAPS_API_KEY)")
    gc.set_defaults(func=cmd_geocode)

    cl = subparsers.add_parser("cleanup", help="Delete stale jobs and their matches")
    cl.add_argument("--days", type=int, default=30, help="Keep jobs newer than this many days (default: 30)")
    cl.add_argument("--db", help="SQLite database path (default: JOBMATE_DB_PATH)")
    cl.set_defaults(func=cmd_cleanup)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    # Load .env if present (GOOGLE_MAPS_API_KEY, JOBMATE_DB_PATH, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    try:
        settings = get_settings()
    except ValueError as e:
        raise SystemExit(f"Configuration error: {e}")
    get_logger(level=settings.log_level, log_dir=settings.log_dir)

    if hasattr(args, "func"):
        try:
            args.func(args, settings)
        except ValueError as e:
            raise SystemExit(str(e))
        return

    parser.print_help()


if __name__ == "__main__":
    main()
