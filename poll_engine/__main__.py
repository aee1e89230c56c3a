"""
CLI entry point for the poll engine.

Subcommands:
- simulate: create a pairwise poll and drive it with simulated annotators
- results: print the results of a stored poll
- reprocess: replay a pairwise poll's vote log and store fresh statistics
"""

import argparse
import sys
from argparse import Namespace
from pathlib import Path

import numpy as np
from prettytable import PrettyTable

from .exceptions import PollEngineError
from .logging_config import get_logger, setup_logging
from .models import RatingSystem, VotingFormat
from .service import EngineConfig, PollResults, PollService
from .simulation import SimulatedAnnotator, simulate_session
from .storage import JSONLPollStore


def parse_args(argv: list[str] | None = None) -> Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Poll Engine - voting and adaptive pairwise ranking")
    _ = parser.add_argument("--store-dir", default="polls", help="Directory holding stored polls (default: polls)")
    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    _ = parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser("simulate", help="Run a simulated pairwise poll")
    _ = simulate.add_argument("--options", type=int, default=8, help="Number of options (default: 8)")
    _ = simulate.add_argument("--annotators", type=int, default=3, help="Number of annotators (default: 3)")
    _ = simulate.add_argument("--budget", type=int, default=60, help="Votes to cast (default: 60)")
    _ = simulate.add_argument("--noise", type=float, default=0.5, help="Annotator noise std dev (default: 0.5)")
    _ = simulate.add_argument("--seed", type=int, default=None, help="Random seed")
    _ = simulate.add_argument(
        "--rating-system",
        choices=[system.value for system in RatingSystem],
        default=RatingSystem.BRADLEY_TERRY.value,
        help="Rating system (default: bradley-terry)",
    )
    _ = simulate.add_argument("--reprocess-every", type=int, default=10, help="Full replay interval (default: 10)")
    _ = simulate.add_argument("--top-k", type=int, default=10, help="Candidate pairs sampled from (default: 10)")
    _ = simulate.add_argument("--gamma", type=float, default=0.5, help="Reliability bias weight (default: 0.5)")

    results = subparsers.add_parser("results", help="Print a stored poll's results")
    _ = results.add_argument("poll_id", help="Poll id")
    _ = results.add_argument("--winners", type=int, default=1, help="Winners to extract from ranked polls")

    reprocess = subparsers.add_parser("reprocess", help="Recompute a pairwise poll's statistics")
    _ = reprocess.add_argument("poll_id", help="Poll id")

    return parser.parse_args(argv)


def print_results(results: PollResults, option_texts: list[str]) -> None:
    """Print poll results as a table."""
    table = PrettyTable()

    if results.voting_format is VotingFormat.PAIRWISE:
        table.field_names = ["Rank", "Option", "Rating", "Uncertainty", "Comparisons", "Win%"]
        for column in ("Rank", "Rating", "Uncertainty", "Comparisons", "Win%"):
            table.align[column] = "r"
        for rank, entry in enumerate(results.rankings, 1):
            table.add_row([
                rank,
                option_texts[entry.option_index],
                f"{entry.value:.3f}",
                f"{entry.uncertainty:.3f}",
                entry.comparisons,
                f"{entry.win_percentage:.1f}%",
            ])
    elif results.voting_format is VotingFormat.RANKED:
        table.field_names = ["Place", "Option", "Round", "Votes", "Share"]
        for column in ("Place", "Round", "Votes", "Share"):
            table.align[column] = "r"
        for place, winner in enumerate(results.winners, 1):
            table.add_row([
                place,
                option_texts[winner.option_index],
                winner.round,
                winner.vote_count,
                f"{results.share(winner):.1f}%",
            ])
    else:
        table.field_names = ["Option", "Votes", "Percentage"]
        table.align["Votes"] = "r"
        table.align["Percentage"] = "r"
        for tally in results.tallies:
            table.add_row([option_texts[tally.option_index], tally.votes, f"{tally.percentage:.1f}%"])

    print(f"{results.voting_format.value} poll {results.poll_id}: {results.total_votes} votes")
    print(table)


def run_simulation(args: Namespace, store: JSONLPollStore) -> None:
    config = EngineConfig(
        reprocess_every=args.reprocess_every,
        top_k=args.top_k,
        exploration_gamma=args.gamma,
        rating_system=RatingSystem(args.rating_system),
        seed=args.seed,
    )
    service = PollService(store, config)
    option_texts = [f"Option {position}" for position in range(args.options)]
    poll = service.create_poll("Simulated poll", option_texts, VotingFormat.PAIRWISE, created_by="simulator")

    rng = np.random.default_rng(args.seed)
    # Option i has latent score i, so the best option is the last one
    ground_truth = {position: float(position) for position in range(args.options)}
    annotators = [
        SimulatedAnnotator(f"annotator-{n}", ground_truth, noise=args.noise, rng=rng) for n in range(args.annotators)
    ]
    cast = simulate_session(service, poll.id, annotators, args.budget)
    print(f"Cast {cast} votes on poll {poll.id}")
    print_results(service.results(poll.id), option_texts)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(level=args.log_level, debug=args.debug)
    logger = get_logger("main")

    try:
        store = JSONLPollStore(Path(args.store_dir))
        if args.command == "simulate":
            run_simulation(args, store)
        elif args.command == "results":
            service = PollService(store)
            poll = store.load_poll(args.poll_id)
            print_results(service.results(args.poll_id, args.winners), [option.text for option in poll.options])
        elif args.command == "reprocess":
            stats = PollService(store).reprocess_poll(args.poll_id)
            print(f"Reprocessed poll {args.poll_id}: {len(stats.participants)} options, {len(stats.annotators)} annotators")
    except PollEngineError as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\nInterrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
