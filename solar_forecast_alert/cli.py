# solar_forecast_alert/cli.py
import argparse

def build_parser():
    parser = argparse.ArgumentParser(
        prog="solar-forecast-alert",
        description="Solar production forecast alerting"
    )

    parser.add_argument(
        "--config",
        default="solar_forecast_alert.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress stdout output (cron-friendly)"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # One evaluation cycle
    cmd_check = sub.add_parser("check", help="Fetch the forecast, evaluate and notify")
    cmd_check.add_argument(
        "--force",
        action="store_true",
        help="Run even outside daylight hours",
    )

    # Dry run
    sub.add_parser(
        "analyze",
        help="Fetch and analyze the forecast without notifying or touching state",
    )

    # Notification test helper
    cmd_notify = sub.add_parser(
        "notify-test",
        help="Send test alert/recovery notifications",
    )
    cmd_notify.add_argument(
        "--mode",
        choices=("alert", "recovery", "both"),
        default="both",
        help="Which notification(s) to send",
    )

    # State inspection
    cmd_state = sub.add_parser("state", help="Show the persisted alert state")
    cmd_state.add_argument(
        "--reset",
        action="store_true",
        help="Clear the persisted alert state",
    )

    return parser
