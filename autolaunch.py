#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = ["nerd-tab-icons"]
# ///
"""
Nerd Tab Icons - iTerm2 AutoLaunch entry point

Prefixes session titles with a Nerd Font icon resolved from
~/.config/nerd-icons/config.yml and colors tabs per host/app.

Symlink this file into:
    ~/Library/Application Support/iTerm2/Scripts/AutoLaunch/
"""

import subprocess
import sys


def show_import_error_dialog(package: str, error_msg: str) -> None:
    """
    Show visible osascript dialog when imports fail.

    Works without any external dependencies since it uses osascript
    directly.

    Args:
        package: Name of the missing package
        error_msg: The actual error message
    """
    message = (
        f"Missing Python package: {package}\\n\\n"
        f"Run this command to install:\\n"
        f"uv pip install {package}\\n\\n"
        f"Error: {error_msg}"
    )
    title = "Nerd Tab Icons - Import Error"

    applescript = f'''
    display dialog "{message}" with title "{title}" buttons {{"OK"}} default button "OK" with icon stop
    '''

    try:
        subprocess.run(
            ["osascript", "-e", applescript],
            capture_output=True,
            timeout=30,
            check=False
        )
    except (OSError, subprocess.TimeoutExpired, subprocess.SubprocessError) as e:
        sys.stderr.write(f"ERROR: {message.replace(chr(92) + 'n', chr(10))}\n")
        sys.stderr.write(f"(osascript also failed: {e})\n")


try:
    from tab_icons.main import run
except ImportError as e:
    show_import_error_dialog("nerd-tab-icons", str(e))
    sys.exit(1)


if __name__ == "__main__":
    run()
