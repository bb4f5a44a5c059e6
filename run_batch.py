from ring_traffic.config import SimulationConfig, DEFAULT_ITERATIONS
from ring_traffic.experiments.runner import run_single
from ring_traffic.io.logging_utils import setup_logging, logger
from ring_traffic.io.results_writer import save_result_as_json
from ring_traffic.backends import BACKENDS
from ring_traffic.model.rules import RULES


def choose_backend() -> str:
    print("=== Choose backend ===")
    for i, name in enumerate(BACKENDS.keys(), start=1):
        print(f"{i}. {name}")
    choice = input("Enter number: ").strip()

    try:
        idx = int(choice) - 1
        name = list(BACKENDS.keys())[idx]
    except (ValueError, IndexError):
        print("Invalid choice, falling back to 'sequential'")
        name = "sequential"
    return name


def choose_rule() -> str | None:
    print("=== Choose global rule ===")
    print("0. none (advance by speed cap)")
    for i, name in enumerate(RULES.keys(), start=1):
        print(f"{i}. {name}")
    choice = input("Enter number: ").strip()

    try:
        idx = int(choice) - 1
        if idx < 0:
            return None
        return list(RULES.keys())[idx]
    except (ValueError, IndexError):
        print("Invalid choice, using no rule")
        return None


def main():
    setup_logging()

    print("=== Ring Lane Traffic Simulation (batch) ===")

    backend_name = choose_backend()
    rule_name = choose_rule()

    lanes = []
    while True:
        descriptor = input(f"Lane {len(lanes) + 1} (e.g. ■□□■■□□□, empty to finish): ").strip()
        if not descriptor:
            break
        lanes.append(descriptor)

    try:
        steps = int(input(f"Steps (default {DEFAULT_ITERATIONS}): ") or str(DEFAULT_ITERATIONS))
        speed_cap = int(input("Speed cap [cells/step] (default 1): ") or "1")
    except ValueError:
        print("Invalid input, using defaults.")
        steps, speed_cap = DEFAULT_ITERATIONS, 1

    cfg = SimulationConfig(
        backend=backend_name,
        rule=rule_name,
        steps=steps,
        speed_cap=speed_cap,
        record_history=True,
    )
    if lanes:
        cfg.lanes = lanes

    logger.info(f"Running simulation with backend='{backend_name}'")
    result = run_single(cfg)

    for row in result.history:
        print(" | ".join(row))

    logger.info("Simulation finished.")
    logger.info(f"Wall time: {result.wall_time_seconds:.4f} s")
    logger.info(f"Avg density: {result.avg_density:.3f} veh/cell")
    logger.info(f"Avg flow: {result.avg_flow:.3f} cells/cell/step")
    logger.info(f"Avg speed: {result.avg_speed:.3f} cells/step")
    logger.info(f"Avg jams per lane: {result.avg_jam_count:.2f}")

    path = save_result_as_json(result, cfg.output_dir)
    logger.info(f"Results saved to {path}")


if __name__ == "__main__":
    main()
