from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from dotenv import load_dotenv
from rich import print
from rich.table import Table

from .errors import EngagementError
from .feature_engineering import ProfileDirectory, community_diversity
from .forecasting import location_stats, predict_event_participation, predict_location_demand
from .ingest import load_events, load_participation, load_requests, load_users
from .ledger import PointsLedger
from .levels import level_info, points_to_next_level
from .matcher import PAIRING_STRATEGIES, event_participants, pair_all_events, smart_pairings
from .points_config import default_points_file, load_points_config
from .recommender import RecommendationConfig, event_recommendations, find_matches, user_recommendations
from .store import JsonPointsStore


app = typer.Typer(help="8vents engagement engine CLI")


@app.callback()
def _setup() -> None:
	load_dotenv()


@contextmanager
def _reported_errors() -> Iterator[None]:
	try:
		yield
	except (EngagementError, FileNotFoundError, KeyError, ValueError) as e:
		print(f"[red]Error:[/red] {e}")
		raise typer.Exit(code=1)


def _ledger(points_file: Optional[Path]) -> PointsLedger:
	path = points_file or Path(default_points_file())
	return PointsLedger(JsonPointsStore(path), load_points_config())


def _directory(users_csv: Path, participation_csv: Optional[Path]) -> ProfileDirectory:
	users = load_users(users_csv)
	participation = load_participation(participation_csv) if participation_csv else None
	return ProfileDirectory.from_frames(users, participation)


POINTS_FILE = typer.Option(None, "--points-file", help="Points JSON file (default: $EIGHTVENTS_POINTS_FILE or data/userPoints.json)")
USERS_CSV = typer.Option(..., "--users", help="Users CSV (id, name, languages, user_type)")
PARTICIPATION_CSV = typer.Option(None, "--participation", help="Participation CSV (user, event, date, location)")


@app.command()
def record(
	user_id: str = typer.Argument(..., help="User id"),
	activity_type: str = typer.Argument(..., help="event | donation | community_request"),
	points: Optional[int] = typer.Option(None, help="Points to award (required unless derived)"),
	event_id: Optional[str] = typer.Option(None, help="Event id; awards the standard event points"),
	request_id: Optional[str] = typer.Option(None, help="Community request id"),
	amount: Optional[float] = typer.Option(None, help="Donation amount; points follow the donation rate"),
	description: str = typer.Option("", help="Free-text description"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Award points for an activity and advance the user's streak."""
	ledger = _ledger(points_file)
	with _reported_errors():
		if activity_type == "event" and event_id and points is None:
			rec = ledger.add_event_points(user_id, event_id)
		elif activity_type == "community_request" and request_id:
			rec = ledger.add_community_request_points(user_id, request_id, points)
		elif activity_type == "donation" and amount is not None:
			rec = ledger.add_donation_points(user_id, amount)
		else:
			metadata = {key: value for key, value in (("event_id", event_id), ("request_id", request_id)) if value}
			rec = ledger.record_activity(user_id, activity_type, points, description=description, metadata=metadata)
	info = level_info(rec.level)
	print(
		f"[green]Recorded[/green] {activity_type} for {rec.user_id}: "
		f"total={rec.total_points} level={rec.level} {info.badge} {info.title} streak={rec.current_streak}"
	)


@app.command()
def interest(
	user_id: str = typer.Argument(..., help="User id"),
	request_id: str = typer.Argument(..., help="Community request id"),
	points: int = typer.Option(50, help="Points awarded for the first interest"),
	title: str = typer.Option("", help="Request title"),
	category: Optional[str] = typer.Option(None, help="help | food | items | skills | other"),
	urgency: Optional[str] = typer.Option(None, help="high | medium | low"),
	location: Optional[str] = typer.Option(None, help="Request location"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Record interest in a community request (once per user and request)."""
	ledger = _ledger(points_file)
	with _reported_errors():
		result = ledger.record_interest(user_id, request_id, points, title, category, urgency, location)
	if result.already_interested:
		print(f"[yellow]{result.message}[/yellow] (total={result.total_points})")
	else:
		print(
			f"[green]{result.message}[/green] +{result.points_earned} "
			f"(total={result.total_points} level={result.level} streak={result.current_streak})"
		)


@app.command()
def show(
	user_id: str = typer.Argument(..., help="User id"),
	limit: int = typer.Option(10, help="Recent activities to list"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Show a user's points, level, streak and recent activity."""
	ledger = _ledger(points_file)
	with _reported_errors():
		rec = ledger.get_record(user_id)
		recent = ledger.recent_activities(user_id, limit)
		breakdown = ledger.points_breakdown(user_id)
		weekly = ledger.weekly_points(user_id)
	info = level_info(rec.level)
	print(f"[bold]{rec.name or rec.user_id}[/bold] {info.badge} {info.title} (level {rec.level})")
	print(
		f"Total: {rec.total_points}  Next level in: {points_to_next_level(rec.total_points)}  "
		f"This week: {weekly}  Streak: {rec.current_streak} (best {rec.best_streak})"
	)
	print("Breakdown: " + ", ".join(f"{k}={v}" for k, v in breakdown.items()))
	table = Table("when", "type", "points", "description")
	for a in recent:
		table.add_row(a.timestamp.strftime("%Y-%m-%d %H:%M"), a.type, str(a.points), a.description)
	print(table)


@app.command()
def leaderboard(
	limit: int = typer.Option(10, help="Number of users to show"),
	points_file: Optional[Path] = POINTS_FILE,
):
	ledger = _ledger(points_file)
	with _reported_errors():
		top = ledger.leaderboard(limit)
	table = Table("#", "user", "points", "level", "streak")
	for i, rec in enumerate(top, start=1):
		info = level_info(rec.level)
		table.add_row(str(i), rec.name or rec.user_id, str(rec.total_points), f"{info.badge} {info.title}", str(rec.current_streak))
	print(table)


@app.command()
def insights(
	user_id: str = typer.Argument(..., help="User id"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Interest-board preferences for a user."""
	ledger = _ledger(points_file)
	with _reported_errors():
		data = ledger.interest_insights(user_id)
	for key, value in data.items():
		if isinstance(value, list):
			value = ", ".join(value) or "-"
		elif isinstance(value, float):
			value = f"{value:.1f}"
		print(f"[bold]{key}[/bold]: {value}")


@app.command()
def analytics(points_file: Optional[Path] = POINTS_FILE):
	"""Platform-wide community request interest analytics."""
	ledger = _ledger(points_file)
	with _reported_errors():
		summary = ledger.analytics_summary()
	print(
		f"Interests: {summary['total_interests']}  Points awarded: {summary['total_points_awarded']}  "
		f"Avg/interest: {summary['average_points_per_interest']:.1f}  "
		f"Most popular: {summary['most_popular_category']}"
	)
	table = Table("category", "interests")
	for category, count in summary["category_distribution"].items():
		table.add_row(category, str(count))
	print(table)
	table = Table("urgency", "interests")
	for urgency, count in summary["urgency_distribution"].items():
		table.add_row(urgency, str(count))
	print(table)


@app.command()
def reset(
	user_id: str = typer.Argument(..., help="User id"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Delete a user's points record."""
	ledger = _ledger(points_file)
	with _reported_errors():
		removed = ledger.reset_user(user_id)
	if removed:
		print(f"[green]Reset[/green] {user_id}")
	else:
		print(f"[yellow]No points record for[/yellow] {user_id}")


@app.command()
def match(
	user_id: str = typer.Argument(..., help="User id"),
	users_csv: Path = USERS_CSV,
	participation_csv: Optional[Path] = PARTICIPATION_CSV,
	top_k: int = typer.Option(10, help="Number of matches to show"),
	cross_cultural: bool = typer.Option(True, "--cross-cultural/--no-cross-cultural", help="Boost cross-cultural bridge potential"),
):
	"""Cultural matches for a user."""
	with _reported_errors():
		directory = _directory(users_csv, participation_csv)
		matches = find_matches(user_id, directory, k=top_k, prioritize_cross_cultural=cross_cultural)
	table = Table("user", "score", "bridge", "languages", "interests", "reason")
	for m in matches:
		table.add_row(
			directory.get(m.user_id_2).name or m.user_id_2,
			f"{m.similarity_score:.3f}",
			f"{m.cultural_bridge_potential:.2f}",
			", ".join(m.shared_languages),
			", ".join(m.shared_interests),
			m.recommendation_reason,
		)
	print(table)


@app.command()
def recommend(
	user_id: str = typer.Argument(..., help="User id"),
	users_csv: Path = USERS_CSV,
	participation_csv: Optional[Path] = PARTICIPATION_CSV,
	min_score: int = typer.Option(40, help="Minimum match score (0-100)"),
	limit: int = typer.Option(10, help="Maximum recommendations"),
):
	"""People worth connecting with, with reasons and suggested activities."""
	config = RecommendationConfig(minimum_match_score=min_score, max_recommendations=limit)
	with _reported_errors():
		recs = user_recommendations(user_id, _directory(users_csv, participation_csv), config)
	if not recs:
		print(f"[yellow]No recommendations at or above {min_score}[/yellow]")
		return
	table = Table("user", "score", "reasons", "try together")
	for r in recs:
		table.add_row(
			r.recommended_user_name,
			str(r.match_score),
			"; ".join(reason.description for reason in r.match_reasons),
			"; ".join(r.suggested_activities),
		)
	print(table)


@app.command()
def events(
	user_id: str = typer.Argument(..., help="User id"),
	events_csv: Path = typer.Option(..., "--events", help="Events CSV (id, name, date, location)"),
	users_csv: Path = USERS_CSV,
	participation_csv: Optional[Path] = PARTICIPATION_CSV,
	min_score: int = typer.Option(40, help="Minimum relevance score"),
):
	"""Upcoming events ranked for a user."""
	config = RecommendationConfig(minimum_match_score=min_score)
	with _reported_errors():
		directory = _directory(users_csv, participation_csv)
		recs = event_recommendations(user_id, directory, load_events(events_csv), config)
	table = Table("event", "score", "satisfaction", "why", "also going")
	for r in recs:
		table.add_row(
			r.event_name,
			str(r.match_score),
			f"{r.predicted_satisfaction:.1f}",
			"; ".join(r.relevance_reasons),
			", ".join(r.compatible_users),
		)
	print(table)


@app.command()
def pair(
	event_id: Optional[str] = typer.Argument(None, help="Event id; omit to pair every event in the participation CSV"),
	users_csv: Path = USERS_CSV,
	participation_csv: Path = typer.Option(..., "--participation", help="Participation CSV"),
	strategy: str = typer.Option("all", help=f"Pairing strategy: {' or '.join(PAIRING_STRATEGIES)}"),
	limit: int = typer.Option(20, help="Maximum pairs per event"),
	out_path: Optional[Path] = typer.Option(None, help="Write pairs to this CSV"),
):
	"""Volunteer/attendee smart pairings for an event."""
	with _reported_errors():
		directory = _directory(users_csv, participation_csv)
		if event_id is None:
			event_ids: List[str] = sorted({h.event_id for p in directory for h in p.participation_history if h.event_id})
		else:
			event_ids = [event_id]
		if out_path is None and event_id is not None:
			volunteers, attendees = event_participants(directory, event_id)
			pairs = smart_pairings(volunteers, attendees, limit=limit, strategy=strategy, event_id=event_id)
			print(f"[bold]Generated {len(pairs)} pairs[/bold] for event {event_id}")
			for i, p in enumerate(pairs, start=1):
				print(f"{i:02d}. {p.user1.name} ↔ {p.user2.name}  (score={p.match_score})")
			return
		pairs_df = pair_all_events(directory, event_ids, limit=limit, strategy=strategy)
	print(f"[bold]Generated {len(pairs_df)} pairs[/bold] across {len(event_ids)} events")
	if out_path:
		out_path.parent.mkdir(parents=True, exist_ok=True)
		pairs_df.to_csv(out_path, index=False)
		print(f"[green]Saved pairs to[/green] {out_path}")


@app.command()
def diversity(users_csv: Path = USERS_CSV):
	"""Language and cultural-group mix across users."""
	with _reported_errors():
		directory = ProfileDirectory.from_frames(load_users(users_csv))
	report = community_diversity(p.languages for p in directory)
	print(f"Users: {report['total_users']}  Diversity score: {report['diversity_score']}/100")
	table = Table("language", "users")
	for entry in report["languages_represented"]:
		table.add_row(entry["language"], str(entry["count"]))
	print(table)
	table = Table("cultural group", "users")
	for entry in report["cultural_groups"]:
		table.add_row(entry["group"], str(entry["count"]))
	print(table)
	for tip in report["bridging_opportunities"]:
		print(f"- {tip}")


@app.command()
def dashboard(
	user_id: str = typer.Argument(..., help="User id"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Rank tier, growth opportunities and engagement metrics for a user."""
	ledger = _ledger(points_file)
	with _reported_errors():
		report = ledger.user_analytics(user_id)
	info = level_info(report.level)
	print(f"[bold]{user_id}[/bold] {info.badge} {info.title}  {report.total_points} pts  {report.total_activities} activities")
	print(
		f"Tier: {report.ranking.tier} (percentile {report.ranking.percentile}, "
		f"next tier in {report.ranking.points_until_next_tier})"
	)
	print(
		f"Streak: {report.current_streak} (best {report.best_streak})  "
		f"Consistency: {report.engagement.consistency_score}  Diversity: {report.engagement.diversity_score}  "
		f"Activities/day: {report.engagement.activities_per_day:.2f}"
	)
	if report.top_categories:
		print("Top categories: " + ", ".join(f"{c.category} ({c.count})" for c in report.top_categories))
	for tip in report.growth_opportunities:
		print(f"- {tip}")


@app.command("suggest-requests")
def suggest_requests(
	user_id: str = typer.Argument(..., help="User id"),
	requests_csv: Path = typer.Option(..., "--requests", help="Open requests CSV (id, title, category, urgency, location, points)"),
	limit: int = typer.Option(10, help="Maximum requests to show"),
	points_file: Optional[Path] = POINTS_FILE,
):
	"""Open community requests ranked by the user's interest-board history."""
	ledger = _ledger(points_file)
	with _reported_errors():
		recs = ledger.request_recommendations(user_id, load_requests(requests_csv), limit)
	table = Table("request", "score", "category", "urgency", "reward", "why")
	for r in recs:
		table.add_row(
			r.title or r.request_id,
			str(r.recommendation_score),
			r.category or "-",
			r.urgency or "-",
			str(r.points_reward),
			"; ".join(r.match_reasons),
		)
	print(table)


@app.command()
def forecast(
	events_csv: Path = typer.Option(..., "--events", help="Events CSV (id, name, date, location, volunteers needed)"),
	users_csv: Path = USERS_CSV,
	participation_csv: Optional[Path] = PARTICIPATION_CSV,
	location: Optional[str] = typer.Option(None, help="Also estimate turnout for a new event here"),
):
	"""Per-location demand forecast from past events and turnout."""
	with _reported_errors():
		directory = _directory(users_csv, participation_csv)
		stats = location_stats(load_events(events_csv), directory)
	predictions = {p.location: p for p in predict_location_demand(stats)}
	table = Table("location", "events", "avg turnout", "success %", "demand", "events/month", "reasoning")
	for s in stats:
		p = predictions[s.location]
		table.add_row(
			s.location,
			str(s.total_events),
			str(s.average_participants_per_event),
			str(s.success_rate),
			str(p.predicted_event_demand),
			str(p.recommended_events_per_month),
			p.reasoning,
		)
	print(table)
	if location:
		estimate = predict_event_participation(location, stats)
		print(
			f"[bold]{location}[/bold]: ~{estimate.expected_volunteers} volunteers, "
			f"~{estimate.expected_attendees} attendees ({', '.join(estimate.factors)})"
		)


if __name__ == "__main__":
	app()
