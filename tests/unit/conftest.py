"""Shared fixtures: stand-in driver binaries."""

import os
import socket
import sys
import zipfile
from pathlib import Path

import pytest

from wiredriver.driver.ports import LOOPBACK, get_free_port

FAKE_CHROMEDRIVER = """#!{python}
import signal
import socket
import sys
import time

stopping = False


def on_interrupt(signum, frame):
    global stopping
    stopping = True


signal.signal(signal.SIGINT, on_interrupt)
args = dict(a.lstrip("-").split("=", 1) for a in sys.argv[1:] if "=" in a)
port = int(args["port"])
print("Starting ChromeDriver on port %d" % port, flush=True)
print("args " + " ".join(sys.argv[1:]), file=sys.stderr, flush=True)
server = None
if not {no_listen!r}:
    server = socket.create_server(("127.0.0.1", port))
while not stopping:
    time.sleep(0.02)
print("shutting down", flush=True)
"""

FAKE_FIREFOX = """#!{python}
import os
import re
import signal
import socket
import sys
import time

stopping = False


def on_interrupt(signum, frame):
    global stopping
    stopping = True


signal.signal(signal.SIGINT, on_interrupt)
profile = sys.argv[sys.argv.index("-profile") + 1]
with open(os.path.join(profile, "user.js")) as f:
    prefs = f.read()
port = int(re.search(r'user_pref\\("webdriver_firefox_port", (\\d+)\\);', prefs).group(1))
server = socket.create_server(("127.0.0.1", port))
print("firefox listening on %d" % port, flush=True)
while not stopping:
    time.sleep(0.02)
"""

INSTALL_RDF = """<?xml version="1.0"?>
<RDF xmlns="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
     xmlns:em="http://www.mozilla.org/2004/em-rdf#">
  <Description about="urn:mozilla:install-manifest">
    <em:id>fxdriver@googlecode.com</em:id>
  </Description>
</RDF>
"""


def write_script(path: Path, source: str) -> str:
    path.write_text(source)
    os.chmod(path, 0o755)
    return str(path)


@pytest.fixture
def fake_chromedriver(tmp_path: Path) -> str:
    """A chromedriver stand-in that listens on -port and exits on SIGINT."""
    return write_script(
        tmp_path / "chromedriver",
        FAKE_CHROMEDRIVER.format(python=sys.executable, no_listen=False),
    )


@pytest.fixture
def silent_chromedriver(tmp_path: Path) -> str:
    """A chromedriver stand-in that never opens its port."""
    return write_script(
        tmp_path / "chromedriver-silent",
        FAKE_CHROMEDRIVER.format(python=sys.executable, no_listen=True),
    )


@pytest.fixture
def fake_firefox(tmp_path: Path) -> str:
    """A firefox stand-in that listens on the port found in the profile's user.js."""
    return write_script(tmp_path / "firefox", FAKE_FIREFOX.format(python=sys.executable))


@pytest.fixture
def xpi_path(tmp_path: Path) -> str:
    path = tmp_path / "webdriver.xpi"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("install.rdf", INSTALL_RDF)
        archive.writestr("components/driver.js", "// driver\n")
    return str(path)


@pytest.fixture
def port_base() -> int:
    """A port whose predecessor (the lock port) is also free."""
    for _ in range(50):
        port = get_free_port()
        if port <= 1024:
            continue
        try:
            socket.create_server((LOOPBACK, port - 1)).close()
        except OSError:
            continue
        return port
    pytest.skip("no free port pair available")
