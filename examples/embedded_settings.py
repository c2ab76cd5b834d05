"""Example of embedding tubelink in a GUI or TUI front end.

This file demonstrates how a front end:
- Supplies its own UiHost to receive recreate and notify signals
- Loads the instance list in the background without blocking
- Reacts to endpoint changes

Usage:
    python examples/embedded_settings.py [settings.yaml]
"""

import sys
import threading

from tubelink import InstanceChoice, InstanceSettings


class PrintingHost:
    """Stands in for a settings screen."""

    def recreate(self) -> None:
        print("[screen] rebuilding from fresh settings")

    def notify(self, message: str) -> None:
        print(f"[toast] {message}")


def main() -> None:
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    loaded = threading.Event()

    def show_choices(choices: list[InstanceChoice]) -> None:
        for choice in choices:
            print(f"  {choice.display_name:<30} {choice.api_url}")
        loaded.set()

    with InstanceSettings(config_path, host=PrintingHost()) as settings:
        print(f"Current instance: {settings.session.state.default_url}")
        print("Instances:")
        settings.load_instance_choices(show_choices)
        loaded.wait(timeout=15)

        # Switching instance ends the session and asks the screen to rebuild
        settings.resolver.default_endpoint_changed(settings.session.state.default_url)


if __name__ == "__main__":
    main()
