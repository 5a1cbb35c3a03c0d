#!/usr/bin/env python3
"""
Pedestrian Flow Cellular Automaton

Predicts where foot traffic concentrates on a venue map using a floor field
crowd model.

Usage:
    python -m pedestrian_flow_ca --config configs/venue.yaml [options]

Examples:
    python -m pedestrian_flow_ca --config configs/venue.yaml
    python -m pedestrian_flow_ca --config configs/venue.yaml --gif --out-dir results/
    python -m pedestrian_flow_ca --config configs/venue.yaml --no-csv --no-snapshot --quiet
    python -m pedestrian_flow_ca --config configs/venue.yaml --seed 42
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .config import load_config
from .model.engine import SimulationEngine
from .export.csv_writer import CSVWriter
from .export.visualizer import Visualizer
from .export.reporter import Reporter

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Pedestrian Flow Cellular Automaton',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m pedestrian_flow_ca --config configs/venue.yaml
    python -m pedestrian_flow_ca --config configs/venue.yaml --gif --out-dir results/
    python -m pedestrian_flow_ca --config configs/venue.yaml --no-csv --no-snapshot --quiet
    python -m pedestrian_flow_ca --config configs/venue.yaml --seed 42
        """
    )

    # Required arguments
    parser.add_argument('--config', type=Path, required=True,
                        help='Path to YAML configuration file')

    # Optional overrides
    parser.add_argument('--steps', type=int, default=None,
                        help='Override max simulation steps')
    parser.add_argument('--out-dir', type=Path, default=Path('./output'),
                        help='Output directory for exports (default: ./output)')

    # Export toggles
    parser.add_argument('--csv', dest='csv', action='store_true', default=None,
                        help='Enable CSV export (default)')
    parser.add_argument('--no-csv', dest='csv', action='store_false',
                        help='Disable CSV export')

    parser.add_argument('--snapshot', dest='snapshot', action='store_true', default=None,
                        help='Enable final snapshot (default)')
    parser.add_argument('--no-snapshot', dest='snapshot', action='store_false',
                        help='Disable final snapshot')

    parser.add_argument('--heatmap', dest='heatmap', action='store_true', default=None,
                        help='Enable congestion heatmap (default)')
    parser.add_argument('--no-heatmap', dest='heatmap', action='store_false',
                        help='Disable congestion heatmap')

    parser.add_argument('--gif', action='store_true', default=False,
                        help='Enable GIF animation export')

    parser.add_argument('--quiet', action='store_true', default=False,
                        help='Suppress stdout output')
    parser.add_argument('--verbose', action='store_true', default=False,
                        help='Enable debug logging')

    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load configuration
    try:
        config = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        return 1
    except (KeyError, TypeError, ValueError, yaml.YAMLError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.steps is not None:
        config.max_steps = args.steps
    if args.csv is not None:
        config.csv_enabled = args.csv
    if args.snapshot is not None:
        config.snapshot_enabled = args.snapshot
    if args.heatmap is not None:
        config.heatmap_enabled = args.heatmap
    if args.gif:
        config.gif_enabled = True
    config.quiet = args.quiet
    if args.seed is not None:
        config.seed = args.seed
    config.out_dir = args.out_dir

    # Initialize engine
    try:
        params = config.to_parameters()
        engine = SimulationEngine(params, config.build_nodes(),
                                  obstacles=config.build_obstacles(),
                                  seed=config.seed)
    except ValueError as e:
        print(f"Error: invalid simulation setup: {e}", file=sys.stderr)
        return 1

    if not config.quiet:
        print("Initializing simulation...")
        print(f"  Map: {params.map_width}x{params.map_height} "
              f"(cell size {params.cell_size})")
        print(f"  Grid: {engine.geometry.rows} rows x {engine.geometry.cols} cols")
        print(f"  Nodes: {len(engine.nodes())}")
        print(f"  Max steps: {config.max_steps}")
        print(f"  Spawned: {engine.statistics().total_agents} agents")

    # Initialize exporters
    csv_writers = []
    if config.csv_enabled:
        csv_writers = [
            CSVWriter(config.out_dir / 'agent_log.csv', kind='agents'),
            CSVWriter(config.out_dir / 'statistics_log.csv', kind='statistics'),
        ]
        for writer in csv_writers:
            writer.open()

    visualizer = Visualizer(engine.geometry, engine.obstacle_map(), engine.nodes())
    reporter = Reporter(str(args.config), config.seed)

    # Main simulation loop
    if not config.quiet:
        print("\nRunning simulation...")

    state = engine.snapshot()
    try:
        while engine.current_step < config.max_steps:
            engine.advance()
            state = engine.snapshot()

            for writer in csv_writers:
                writer.append(state)

            # Buffer GIF frame (every N steps to reduce memory)
            if config.gif_enabled:
                if state.step % 5 == 0 or state.step == config.max_steps:
                    visualizer.buffer_frame(state)

            reporter.update(state)

            # Progress indicator
            if not config.quiet and state.step % 100 == 0:
                stats = state.statistics
                print(f"  Step {state.step}: avg distance {stats.avg_distance_traveled:.1f}, "
                      f"max congestion {stats.max_congestion}")

    except KeyboardInterrupt:
        if not config.quiet:
            print("\nSimulation interrupted by user.")
    finally:
        for writer in csv_writers:
            writer.close()

    if csv_writers and not config.quiet:
        print(f"\nCSV saved: {config.out_dir / 'agent_log.csv'}")

    if config.snapshot_enabled:
        snapshot_path = config.out_dir / 'final_state.png'
        visualizer.save_snapshot(state, snapshot_path)
        if not config.quiet:
            print(f"Snapshot saved: {snapshot_path}")

    if config.heatmap_enabled:
        heatmap_path = config.out_dir / 'congestion.png'
        visualizer.save_congestion_heatmap(state, heatmap_path)
        if not config.quiet:
            print(f"Heatmap saved: {heatmap_path}")

    if config.gif_enabled:
        gif_path = config.out_dir / 'simulation.gif'
        if not config.quiet:
            print(f"Generating GIF ({len(visualizer.frames)} frames)...")
        visualizer.generate_gif(gif_path, fps=10)
        if not config.quiet:
            print(f"Animation saved: {gif_path}")

    # Print summary report
    if not config.quiet:
        report = reporter.generate_summary(
            state,
            engine.hotspots(),
            config.out_dir,
            bool(csv_writers),
            config.snapshot_enabled,
            config.heatmap_enabled,
            config.gif_enabled
        )
        print(report)

    return 0


if __name__ == '__main__':
    sys.exit(main())
