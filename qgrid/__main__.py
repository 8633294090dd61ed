"""Headless command-line runner for the grid-world Q-learning simulator."""

import sys
import argparse
import logging
import signal

from PySide6.QtCore import QCoreApplication, QTimer

from .app.controller import EpisodeController
from .domain.types import QLearningConfig, Episode, ACTION_ARROWS
from .utils.grid_factory import create_world, generate_world
from .utils.rng import set_global_seed


def format_policy(controller: EpisodeController) -> str:
    """Render the greedy policy as text, one character per cell."""
    world = controller.world
    lines = []
    for row in range(world.size):
        chars = []
        for col in range(world.size):
            if world.is_goal(row, col):
                chars.append("G")
            elif world.is_obstacle(row, col):
                chars.append("#")
            else:
                action = controller.agent.greedy_action((row, col))
                chars.append(ACTION_ARROWS[action] if action is not None else "·")
        lines.append(" ".join(chars))
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    defaults = QLearningConfig()
    parser = argparse.ArgumentParser(prog="qgrid", description="Grid-world Q-learning simulation")
    parser.add_argument("--episodes", type=int, default=50, help="Number of episodes to run")
    parser.add_argument("--size", type=int, default=defaults.grid_size, help="Grid size (cells per side)")
    parser.add_argument("--alpha", type=float, default=defaults.learning_rate, help="Learning rate")
    parser.add_argument("--gamma", type=float, default=defaults.discount_factor, help="Discount factor")
    parser.add_argument("--epsilon", type=float, default=defaults.epsilon, help="Exploration rate")
    parser.add_argument("--max-steps", type=int, default=defaults.max_steps, help="Step budget per episode")
    parser.add_argument("--speed", type=int, default=10, help="Animation speed, 1 (slow) to 10 (fast)")
    parser.add_argument("--instant", action="store_true", help="Skip the per-step delay")
    parser.add_argument("--obstacle-density", type=float, help="Place random obstacles instead of the preset layout")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def make_config(args: argparse.Namespace) -> QLearningConfig:
    config = QLearningConfig(
        grid_size=args.size,
        goal=(args.size - 1, args.size - 1),
        learning_rate=args.alpha,
        discount_factor=args.gamma,
        epsilon=args.epsilon,
        max_steps=args.max_steps,
        animation_speed=args.speed,
    )
    if args.size != QLearningConfig.grid_size:
        # The preset layout belongs to the default grid
        config.obstacles = ()
    return config


def run(args: argparse.Namespace) -> int:
    if args.episodes <= 0:
        raise ValueError(f"Episode count must be positive, got {args.episodes}")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    config = make_config(args)
    rng = set_global_seed(args.seed)
    if args.obstacle_density is not None:
        world = generate_world(config, args.obstacle_density, seed=args.seed)
    else:
        world = create_world(config)

    controller = EpisodeController(config, world=world, rng=rng)

    print("Grid-world Q-learning")
    print("=" * 40)
    print(f"   Grid: {world.size}x{world.size}, goal {tuple(world.goal)}")
    print(f"   Obstacles: {sorted(tuple(c) for c in world.obstacles)}")
    print(f"   alpha={config.learning_rate} gamma={config.discount_factor} epsilon={config.epsilon}")

    def on_episode(episode: Episode):
        outcome = "goal" if episode.reached_goal else ("trapped" if episode.trapped else "budget")
        print(f"Episode {episode.number:4d}: {episode.steps:3d} steps, "
              f"reward {episode.total_reward:7.1f} ({outcome})")
        if episode.number >= args.episodes:
            controller.stop()
            app.quit()

    controller.episode_completed.connect(on_episode)
    controller.convergence_changed.connect(lambda status: print(f"   Status: {status}"))

    controller.start()
    if args.instant:
        while controller.episode_index < args.episodes:
            controller.tick()
    else:
        # Let Ctrl+C reach Python while the event loop is running
        previous_handler = signal.getsignal(signal.SIGINT)
        signal.signal(signal.SIGINT, lambda *_: (controller.stop(), app.quit()))
        heartbeat = QTimer()
        heartbeat.timeout.connect(lambda: None)
        heartbeat.start(200)
        try:
            app.exec()
        finally:
            heartbeat.stop()
            signal.signal(signal.SIGINT, previous_handler)

    controller.cleanup()

    print(f"\nFinished {controller.episode_index} episodes")
    print(f"   Convergence: {controller.convergence_status}")
    print("\nGreedy policy:")
    print(format_policy(controller))
    return 0


def main(argv=None) -> int:
    """Main entry point for the headless simulation."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        return run(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
