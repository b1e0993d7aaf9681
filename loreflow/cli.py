#!/usr/bin/env python3
"""
Command line interface for LoreFlow.
"""

import argparse
import logging
import sys

from loreflow import LoreFlowManager, LoreFlowConfig
from loreflow.exceptions import LoreFlowError
from loreflow.manager import configure_logging
from loreflow.models import QueryContext
from loreflow.version import __version__

logger = logging.getLogger('loreflow')


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="LoreFlow CLI - Per-agent belief modelling over a shared fact graph"
    )
    parser.add_argument(
        "--version", action="version", version=f"LoreFlow {__version__}"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Seed an agent and list its beliefs")
    seed_parser.add_argument("--world", required=True, help="World JSON file")
    seed_parser.add_argument("--seeds", required=True, help="Seed configuration JSON file")
    seed_parser.add_argument("--agent", required=True, help="Agent id to seed")

    # Query command
    query_parser = subparsers.add_parser("query", help="Ask an agent about a subject")
    query_parser.add_argument("--world", required=True, help="World JSON file")
    query_parser.add_argument("--seeds", required=True, help="Seed configuration JSON file")
    query_parser.add_argument("--agent", required=True, help="Agent id to ask")
    query_parser.add_argument("--location", default=None, help="Entity id of the agent's location")
    query_parser.add_argument("subject", help="Subject to ask about")

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command == "seed":
        return run_seed(args)
    elif args.command == "query":
        return run_query(args)

    parser.print_help()
    return 1


def _build_manager(args) -> LoreFlowManager:
    config = LoreFlowConfig(verbose_logging=args.verbose)
    return LoreFlowManager.from_files(args.world, args.seeds, config)


def run_seed(args):
    """Seed one agent and print what it believes."""
    try:
        manager = _build_manager(args)
        agent = manager.create_agent(args.agent)
    except LoreFlowError as e:
        logger.error(f"Seeding failed: {e}")
        return 1

    beliefs = agent.beliefs
    print(f"LoreFlow beliefs for '{agent.agent_id}' ({len(beliefs)} facts)")
    for fact_id in beliefs.fact_ids():
        content, confidence = beliefs.recall(fact_id, manager.graph_store)
        marker = " *" if beliefs.misinformation(fact_id) is not None else ""
        print(f"  [{fact_id}] {confidence:.3f}  {content}{marker}")
    return 0


def run_query(args):
    """Ask one agent about a subject and print the answer."""
    try:
        manager = _build_manager(args)
        agent = manager.create_agent(args.agent)
    except LoreFlowError as e:
        logger.error(f"Seeding failed: {e}")
        return 1

    context = QueryContext(current_location=args.location)
    result = manager.query(agent, args.subject, context)

    if result.requires_disambiguation:
        print(f"'{args.subject}' is ambiguous. Did you mean:")
        for option in result.options:
            print(f"  - {option.display} ({option.entity_id}, score {option.confidence})")
    elif result.found:
        print(f"{result.content} (confidence {result.confidence:.3f})")
    else:
        print(f"{agent.agent_id} knows nothing about '{args.subject}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
