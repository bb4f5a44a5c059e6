from ring_traffic.io.console import run_interactive
from ring_traffic.io.logging_utils import setup_logging, logger
from ring_traffic.model.rules import JamAvoidanceRule
from ring_traffic.model.simulation import Simulation


def main():
    setup_logging()

    print("=== Ring Lane Traffic Simulation ===")

    sim = Simulation(global_rule=JamAvoidanceRule())
    rounds = run_interactive(sim)

    logger.info(f"Finished after {rounds} round(s)")


if __name__ == "__main__":
    main()
