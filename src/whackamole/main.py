#!/usr/bin/env python3
"""
Whack-a-mole learning controller - Main Entry Point

Usage:
    whackamole                       # Run controller on the default serial port
    whackamole --web                 # Also serve the operator web interface
    whackamole --no-serial --web     # Bench mode: inject events from the web UI
"""

import argparse
import asyncio
import logging


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Whack-a-mole learning controller")
    parser.add_argument(
        "--web",
        action="store_true",
        help="Enable operator web interface",
    )
    parser.add_argument(
        "--serial",
        metavar="PORT",
        help="Apparatus serial port (overrides params)",
    )
    parser.add_argument(
        "--no-serial",
        action="store_true",
        help="Run without the apparatus; commands are only logged",
    )
    parser.add_argument(
        "--states",
        help="Policy training features CSV (overrides params)",
    )
    parser.add_argument(
        "--actions",
        help="Policy training labels CSV (overrides params)",
    )
    parser.add_argument(
        "--ack-timeout",
        type=float,
        help="Seconds to wait for an acknowledgment before reopening the gate (0 = forever)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Whack-a-mole controller starting...")

    from whackamole.comm import DryRunLink
    from whackamole.control import Controller
    from whackamole.params import Parameters
    from whackamole.policy import log_policy

    params = Parameters.load()
    overrides = {
        "serial_port": args.serial,
        "states_csv": args.states,
        "actions_csv": args.actions,
        "ack_timeout_s": args.ack_timeout,
    }
    params.update(**{k: v for k, v in overrides.items() if v is not None})

    link = DryRunLink() if args.no_serial else None
    controller = Controller(params=params, link=link)

    if args.web:
        from whackamole.web import run_server

        async def run_web():
            runner = await run_server(controller=controller)
            logger.info("Press Ctrl+C to stop")
            try:
                await controller.run(on_policy_built=log_policy)
            finally:
                await runner.cleanup()

        asyncio.run(run_web())
    else:
        asyncio.run(controller.run(on_policy_built=log_policy))


if __name__ == "__main__":
    main()
