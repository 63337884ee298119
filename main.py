"""
Wa-Tor Simulator - CLI Entry Point

Usage:
    python main.py --chronons 1000
    python main.py --config config.json --seed 7 --output runs
    python main.py --ui
"""

import argparse
import os
import sys
import time
from pathlib import Path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Wa-Tor - predator/prey cellular automaton",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --chronons 1000                    Run 1000 chronons with defaults
  python main.py --config my.json --seed 7          Run with a JSON config and seed
  python main.py --chronons 200 --show-grid         Print the final grid
  python main.py --ui                               Launch Streamlit UI
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to JSON config file (default: built-in defaults)",
    )
    parser.add_argument(
        "--chronons",
        type=int,
        default=None,
        help="Number of chronons to simulate (overrides config run.chronons)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override random seed (overrides config value)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Override output directory",
    )
    parser.add_argument(
        "--no-output",
        action="store_true",
        help="Do not write metrics, snapshots or summary files",
    )
    parser.add_argument(
        "--progress-every",
        type=int,
        default=100,
        help="Print a progress line every N chronons (0 = never)",
    )
    parser.add_argument(
        "--show-grid",
        action="store_true",
        help="Print the final grid as text",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch Streamlit web UI (ignores other options)",
    )

    return parser.parse_args(argv)


def launch_ui() -> None:
    """Launch the Streamlit web UI."""
    import subprocess
    root = Path(__file__).parent
    ui_path = root / "wator" / "ui" / "app.py"
    if not ui_path.exists():
        print(f"Error: UI app not found at {ui_path}")
        sys.exit(1)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(ui_path),
            "--server.port=8501",
            "--server.headless=true",
            "--browser.gatherUsageStats=false",
        ],
        check=True,
        env=env,
    )


def run_single(
    config_path: str | None = None,
    chronons: int | None = None,
    seed_override: int | None = None,
    output_dir: str | None = None,
    write_output: bool = True,
    progress_every: int = 100,
    show_grid: bool = False,
) -> None:
    """Run a single simulation."""
    from wator.core.config import get_default_config, load_config
    from wator.simulation.engine import SimulationEngine
    from wator.simulation.metrics import MetricsCollector
    from wator.logging.run_manager import RunManager

    config = load_config(config_path) if config_path else get_default_config()

    if seed_override is not None:
        config.world.seed = seed_override
    if chronons is not None:
        config.run.chronons = chronons
    if output_dir is not None:
        config.output.output_dir = output_dir

    print(f"[Wa-Tor] Single run")
    print(f"  Config: {config_path or '(defaults)'}")
    print(f"  Grid: {config.world.width}x{config.world.height}")
    print(f"  Prey: {config.prey.initial_count}  Predators: {config.predator.initial_count}")
    print(f"  Max entities: {config.population.max_entities}")
    print(f"  Seed: {config.world.seed}")
    print(f"  Chronons: {config.run.chronons}")
    if write_output:
        print(f"  Output: {config.output.output_dir}")
    print()

    engine = SimulationEngine(config)
    engine.initialize()
    if engine.spawn_failures:
        print(f"  Warning: {engine.spawn_failures} initial spawns skipped (no space)")

    metrics = MetricsCollector(config, keep_history=False)
    run_manager = RunManager(config) if write_output else None
    if run_manager is not None:
        run_manager.log_chronon(metrics.collect(engine.planet, 0))
        if run_manager.should_snapshot(0):
            run_manager.save_snapshot(engine.planet, 0)

    start_time = time.time()

    def on_chronon(chronon: int, eng: SimulationEngine) -> None:
        if run_manager is not None:
            if run_manager.should_log(chronon):
                run_manager.log_chronon(metrics.collect(eng.planet, chronon, eng.chronon_stats))
            if run_manager.should_snapshot(chronon):
                run_manager.save_snapshot(eng.planet, chronon)

        if progress_every and chronon % progress_every == 0:
            print(
                f"  Chronon {chronon:7d} | Prey: {eng.prey_count:5d} "
                f"| Predators: {eng.predator_count:5d}"
            )

    engine.on_chronon = on_chronon

    try:
        result = engine.run(config.run.chronons)
    except KeyboardInterrupt:
        print("\n  Interrupted.")
        result = None
    elapsed = time.time() - start_time

    chronons_done = result.total_chronons if result is not None else engine.current_chronon

    print()
    print(f"[Result]")
    print(f"  Chronons: {chronons_done}")
    print(f"  Final prey: {engine.prey_count}")
    print(f"  Final predators: {engine.predator_count}")
    print(f"  Elapsed: {elapsed:.1f}s")

    if show_grid:
        print()
        print(engine.planet.render_text())

    if run_manager is not None:
        totals = engine.get_accumulated_stats()
        summary = {
            "total_chronons": chronons_done,
            "final_prey": engine.prey_count,
            "final_predators": engine.predator_count,
            "spawn_failures": engine.spawn_failures,
            "elapsed_seconds": round(elapsed, 2),
            "seed": config.world.seed,
            **{f"total_{k}": v for k, v in totals.items()},
        }
        run_manager.finalize(summary)
        print(f"  Output saved to: {run_manager.run_dir}")


def main(argv=None) -> None:
    args = parse_args(argv)

    if args.ui:
        launch_ui()
        return

    try:
        run_single(
            config_path=args.config,
            chronons=args.chronons,
            seed_override=args.seed,
            output_dir=args.output,
            write_output=not args.no_output,
            progress_every=args.progress_every,
            show_grid=args.show_grid,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
