"""
Simulated dashboard session: accrue, claim, re-onboard and project salary.
"""

from __future__ import annotations

from pathlib import Path

from paystream import PayStreamEngine, load_config, salary_projection

CONFIG = Path(__file__).with_name("engine.yaml")


def main() -> None:
    config = load_config(CONFIG)
    with PayStreamEngine(config=config) as engine:
        snap = engine.get_snapshot()
        print(f"Claimable after one day: {snap.display()['claimable']} {engine.currency}")

        partial = engine.request_claim("100")
        print(f"Claimed {partial.amount}, net {partial.net_amount}")

        engine.request_claim("all")
        print(f"Left to claim: {engine.current_claimable()}")

        engine.onboard(65000)
        print(f"Raised to 65000/year, claimed so far {engine.get_snapshot().cumulative_claimed}")

        for record in engine.get_feed():
            print(f"  {record.kind.value:<9} {engine.currency.display(record.amount):>12}")

    print(salary_projection(config.simulation.principal_per_year, months=6))


if __name__ == "__main__":
    main()
