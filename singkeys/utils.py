"""One-off system setup helpers."""

from __future__ import annotations

import getpass
import logging
import os
import subprocess
import tempfile

logger = logging.getLogger(__name__)

UDEV_RULE_PATH = "/etc/udev/rules.d/99-uinput.rules"
UDEV_RULE = 'KERNEL=="uinput", MODE="0660", GROUP="input"'


def uinput_setup_script(user: str) -> str:
    """Return the shell script that grants ``user`` access to /dev/uinput."""
    return f"""#!/bin/bash
set -e
# Load the uinput module so /dev/uinput exists
if ! lsmod | grep -q '^uinput'; then
    modprobe uinput || true
fi
echo '{UDEV_RULE}' > {UDEV_RULE_PATH}
udevadm control --reload-rules
udevadm trigger

getent group input >/dev/null || groupadd input
usermod -aG input {user}

# Group membership only applies to new logins; open the node for this session
chmod 666 /dev/uinput 2>/dev/null || true
"""


def elevate_and_setup_uinput() -> None:
    """Run :func:`uinput_setup_script` as root through ``pkexec``.

    Raises:
        subprocess.CalledProcessError: If ``pkexec`` or the script fails.
    """
    script = uinput_setup_script(getpass.getuser())
    with tempfile.NamedTemporaryFile("w", suffix=".sh", delete=False) as f:
        f.write(script)
        tmpfile = f.name
    os.chmod(tmpfile, 0o755)

    try:
        subprocess.check_call(["pkexec", tmpfile])
    finally:
        os.unlink(tmpfile)

    logger.info(
        "uinput setup complete. After a reboot you may need to run this "
        "setup again unless the udev rule and group membership are effective."
    )


__all__ = ["elevate_and_setup_uinput", "uinput_setup_script"]
