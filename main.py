"""
Federation Results 커맨드라인

Supabase 또는 JSON 스냅샷 파일 기준 리더보드 조회, CSV 내보내기, 스테이지 점수 계산
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from app.config import scoring_config, server_config
from data_pipeline.normalizer import decode_shot_record, shots_from_record
from data_pipeline.schemas import UnsupportedRecordVersion
from data_pipeline.snapshot import CompetitionSnapshot, load_snapshot_file
from leaderboard.aggregator import LeaderboardAggregator
from leaderboard.export import individual_csv, team_csv
from leaderboard.models import IndividualResult, TeamResult, age_classification_label
from scoring.calculator import build_stage_score
from scoring.exceptions import InvalidStageDefinition
from scoring.models import SighterMode, StageDefinition


def setup_logging(level: str = "INFO"):
    """로깅 설정"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level
    )
    logger.add(
        "logs/results_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        level="DEBUG"
    )


# =====================================================
# 입력
# =====================================================

def load_snapshot(args) -> CompetitionSnapshot:
    """Snapshot from --snapshot file or from Supabase by --competition"""
    if args.snapshot:
        return load_snapshot_file(args.snapshot)

    from database.supabase_client import ResultsRepository

    repository = ResultsRepository()
    return asyncio.run(repository.fetch_competition_snapshot(args.competition))


def read_shots_file(path: str):
    """Shot record from a JSON file: a list of shots or {"rounds": [...]}"""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, list):
        data = {"rounds": data}
    return decode_shot_record(json.dumps(data))


# =====================================================
# 출력
# =====================================================

def print_individual_summary(results: List[IndividualResult], title: str = "", top_n: int = 20):
    """Individual leaderboard table"""
    print(f"\n{'='*72}")
    print(f" {title}")
    print(f"{'='*72}")
    print(f"{'Pos':>4} {'Name':<24} {'Club':<16} {'Total':>10} {'X':>4} {'V':>4}")
    print(f"{'-'*72}")

    for r in results[:top_n]:
        club = r.club or "-"
        if len(club) > 14:
            club = club[:14] + ".."
        total = r.status_label or f"{r.total_score:.3f}"
        print(f"{r.position:>4} {r.shooter_name[:24]:<24} {club:<16} {total:>10} {r.total_x:>4} {r.total_v:>4}")


def print_team_summary(results: List[TeamResult], title: str = "", top_n: int = 20):
    """Team leaderboard table"""
    print(f"\n{'='*72}")
    print(f" {title}")
    print(f"{'='*72}")
    print(f"{'Pos':>4} {'Team':<24} {'Discipline':<16} {'Total':>10} {'X':>4} {'V':>4} {'Cnt':>5}")
    print(f"{'-'*72}")

    for r in results[:top_n]:
        counted = f"{r.scores_counted}/{r.member_count}"
        print(
            f"{r.position:>4} {r.team_name[:24]:<24} {r.discipline_name[:16]:<16} "
            f"{r.total_score:>10.3f} {r.total_x:>4} {r.total_v:>4} {counted:>5}"
        )


# =====================================================
# 명령
# =====================================================

def cmd_results(args) -> int:
    snapshot = load_snapshot(args)
    aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)

    if args.view == "discipline":
        for key, rows in aggregator.by_discipline().items():
            name = rows[0].discipline_name if rows else key
            print_individual_summary(rows, title=name, top_n=args.top)
        return 0

    if args.view == "age":
        for key, rows in aggregator.by_age_classification().items():
            print_individual_summary(rows, title=age_classification_label(key), top_n=args.top)
        return 0

    results = aggregator.individual(args.discipline, args.age, args.search)
    print_individual_summary(results, title=f"Competition {snapshot.competition_id}", top_n=args.top)
    return 0


def cmd_teams(args) -> int:
    snapshot = load_snapshot(args)
    aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)
    results = aggregator.team(args.discipline)
    print_team_summary(results, title=f"Competition {snapshot.competition_id} teams", top_n=args.top)
    return 0


def cmd_export(args) -> int:
    snapshot = load_snapshot(args)
    aggregator = LeaderboardAggregator(snapshot.verified_scores, snapshot.registrations, snapshot.teams)

    if args.teams:
        content = team_csv(aggregator.team(args.discipline))
    else:
        results = aggregator.individual(args.discipline, args.age, args.search)
        content = individual_csv(results, snapshot.stage_numbers)

    if args.output:
        Path(args.output).write_text(content, encoding="utf-8")
        logger.info(f"내보내기 완료: {args.output}")
    else:
        sys.stdout.write(content)
    return 0


def cmd_score(args) -> int:
    try:
        record = read_shots_file(args.shots)
    except UnsupportedRecordVersion as e:
        logger.error(str(e))
        return 1

    if record is None:
        logger.error(f"사격 기록 없음: {args.shots}")
        return 1

    sighter_mode = SighterMode.from_value(args.mode) if args.mode else record.sighter_mode
    stage = StageDefinition(
        scoring_rounds=args.rounds,
        sighter_count=args.sighters,
        max_score_per_shot=args.max_score,
    )

    try:
        stage_score = build_stage_score(
            shots_from_record(record),
            stage,
            sighter_mode,
            is_dnf=args.dnf,
            is_dq=args.dq,
            v_bonus=scoring_config.v_bonus,
        )
    except InvalidStageDefinition as e:
        logger.error(str(e))
        return 1

    print(json.dumps({
        "total_score": stage_score.total_score,
        "computed_score": stage_score.computed_score,
        "x_count": stage_score.x_count,
        "v_count": stage_score.v_count,
        "is_dnf": stage_score.is_dnf,
        "is_dq": stage_score.is_dq,
        "window": list(stage_score.window.as_tuple()),
        "sighter_mode": stage_score.sighter_mode.value,
    }, indent=2))
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )
    return 0


# =====================================================
# CLI
# =====================================================

def _add_source(parser: argparse.ArgumentParser):
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--competition", type=str, help="Competition id (Supabase)")
    source.add_argument("--snapshot", type=str, help="JSON snapshot file")
    parser.add_argument("--discipline", type=str, help="Discipline id filter")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Federation competition results")
    sub = parser.add_subparsers(dest="command", required=True)

    results = sub.add_parser("results", help="Individual leaderboard")
    _add_source(results)
    results.add_argument("--view", choices=["individual", "discipline", "age"], default="individual")
    results.add_argument("--age", type=str, help="Age classification filter")
    results.add_argument("--search", type=str, help="Name, SABU number or club")
    results.add_argument("--top", type=int, default=20, help="Rows to print")
    results.set_defaults(func=cmd_results)

    teams = sub.add_parser("teams", help="Team leaderboard")
    _add_source(teams)
    teams.add_argument("--top", type=int, default=20, help="Rows to print")
    teams.set_defaults(func=cmd_teams)

    export = sub.add_parser("export", help="CSV export")
    _add_source(export)
    export.add_argument("--teams", action="store_true", help="Export the team leaderboard")
    export.add_argument("--age", type=str, help="Age classification filter")
    export.add_argument("--search", type=str, help="Name, SABU number or club")
    export.add_argument("--output", type=str, help="Output file (default: stdout)")
    export.set_defaults(func=cmd_export)

    score = sub.add_parser("score", help="Stage score from a shots file")
    score.add_argument("shots", type=str, help="JSON shots file")
    score.add_argument("--mode", choices=[m.value for m in SighterMode], help="Sighter mode")
    score.add_argument("--rounds", type=int, default=scoring_config.default_rounds)
    score.add_argument("--sighters", type=int, default=scoring_config.default_sighters)
    score.add_argument("--max-score", type=int, default=scoring_config.max_score_per_shot)
    score.add_argument("--dnf", action="store_true")
    score.add_argument("--dq", action="store_true")
    score.set_defaults(func=cmd_score)

    serve = sub.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", type=str, default=server_config.host)
    serve.add_argument("--port", type=int, default=server_config.port)
    serve.add_argument("--reload", action="store_true", default=server_config.reload)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
