"""Disposable Firefox profile construction."""

import json
import os
import re
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import Any
from xml.etree import ElementTree

import structlog

from wiredriver.protocol.errors import ConfigError, PreferenceTypeError
from wiredriver.utils.logging import get_logger

PROFILE_ERROR = "create profile failed: "
EXTENSION_ERROR = "write extension failed: "

USER_PREFS_FILE = "user.js"
EXTENSIONS_DIR = "extensions"

_USER_PREF_RE = re.compile(r'^user_pref\(("(?:[^"\\]|\\.)*"),\s*(.+)\);\s*$')


def default_prefs() -> dict[str, Any]:
    """Populate a map with default Firefox preferences for automation."""
    return {
        # Disable cache
        "browser.cache.disk.enable": False,
        "browser.cache.disk.capacity": 0,
        "browser.cache.memory.enable": True,
        # Allow extensions to be installed into the profile and still work
        "extensions.autoDisableScopes": 10,
        # Disable "do you want to remember this password?"
        "signon.rememberSignons": False,
        # Disable re-asking for license agreement
        "browser.EULA.3.accepted": True,
        "browser.EULA.override": True,
        # Blank homepage, no welcome page
        "browser.startup.homepage": "about:blank",
        "browser.startup.page": 0,
        "browser.startup.homepage_override.mstone": "ignore",
        "browser.offline": False,
        "browser.shell.checkDefaultBrowser": False,
        # Enable pop-ups
        "dom.disable_open_during_load": False,
        # No dialog for long username/password in url
        "network.http.phishy-userpass-length": 255,
        # Security warnings
        "security.warn_entering_secure": False,
        "security.warn_entering_secure.show_once": False,
        "security.warn_entering_weak": False,
        "security.warn_entering_weak.show_once": False,
        "security.warn_leaving_secure": False,
        "security.warn_leaving_secure.show_once": False,
        "security.warn_submit_insecure": False,
        "security.warn_submit_insecure.show_once": False,
        "security.warn_viewing_mixed": False,
        "security.warn_viewing_mixed.show_once": False,
        # Do not use NetworkManager to detect offline/online status
        "toolkit.networkmanager.disable": True,
        # Updates, telemetry and other background activity
        "app.update.auto": False,
        "app.update.enabled": False,
        "extensions.update.enabled": False,
        "browser.search.update": False,
        "extensions.blocklist.enabled": False,
        "browser.safebrowsing.enabled": False,
        "browser.safebrowsing.malware.enabled": False,
        "browser.download.manager.showWhenStarting": False,
        "browser.sessionstore.resume_from_crash": False,
        "browser.tabs.warnOnClose": False,
        "browser.tabs.warnOnOpen": False,
        "devtools.errorconsole.enabled": True,
        "extensions.logging.enabled": True,
        "extensions.update.notifyUser": False,
        "network.manage-offline-status": False,
        "offline-apps.allow_by_default": True,
        "prompts.tab_modal.enabled": False,
        "security.fileuri.origin_policy": 3,
        "security.fileuri.strict_origin_policy": False,
        "toolkit.telemetry.prompted": 2,
        "toolkit.telemetry.enabled": False,
        "toolkit.telemetry.rejected": True,
        "browser.dom.window.dump.enabled": True,
        "dom.report_all_js_exceptions": True,
        "javascript.options.showInConsole": True,
        "network.http.max-connections-per-server": 10,
        # WebDriver extension settings
        "webdriver_accept_untrusted_certs": True,
        "webdriver_assume_untrusted_issuer": True,
        "webdriver_enable_native_events": False,
        "webdriver_unexpected_alert_behaviour": "dismiss",
    }


def log_dir_prefs(path: str) -> dict[str, str]:
    """Preferences sending the extension's logs to files under path."""
    return {
        "webdriver.log.file": os.path.join(path, "jsconsole.log"),
        "webdriver.log.driver.file": os.path.join(path, "driver.log"),
        "webdriver.log.profiler.file": os.path.join(path, "profiler.log"),
        "webdriver.log.browser.file": os.path.join(path, "browser.log"),
    }


def format_pref(key: str, value: Any) -> str:
    """
    Render one user.js statement.

    Raises:
        PreferenceTypeError: If value is not a bool, int or str
    """
    # bool first, it is a subclass of int
    if isinstance(value, bool):
        rendered = "true" if value else "false"
    elif isinstance(value, int):
        rendered = str(value)
    elif isinstance(value, str):
        rendered = json.dumps(value)
    else:
        raise PreferenceTypeError(f"unexpected preference type: {key}")
    return f"user_pref({json.dumps(key)}, {rendered});"


def parse_user_prefs(text: str) -> dict[str, Any]:
    """Read user_pref statements back into a dict, ignoring other lines."""
    prefs: dict[str, Any] = {}
    for line in text.splitlines():
        match = _USER_PREF_RE.match(line.strip())
        if match is None:
            continue
        prefs[json.loads(match.group(1))] = json.loads(match.group(2))
    return prefs


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].split(":")[-1]


def _rdf_extension_id(data: bytes) -> str | None:
    root = ElementTree.fromstring(data)
    for description in root:
        if _local_name(description.tag) != "Description":
            continue
        for key, value in description.attrib.items():
            if _local_name(key) == "id" and value.strip():
                return value.strip()
        for child in description:
            if _local_name(child.tag) == "id" and child.text and child.text.strip():
                return child.text.strip()
    return None


def _manifest_extension_id(data: bytes) -> str | None:
    manifest = json.loads(data)
    if not isinstance(manifest, dict):
        return None
    for section in ("browser_specific_settings", "applications"):
        block = manifest.get(section)
        if not isinstance(block, dict):
            continue
        gecko = block.get("gecko")
        if not isinstance(gecko, dict):
            continue
        ext_id = gecko.get("id")
        if isinstance(ext_id, str) and ext_id.strip():
            return ext_id.strip()
    return None


def read_extension_id(archive: zipfile.ZipFile) -> str:
    """
    Find the extension id in install.rdf (or manifest.json) of an archive.

    Raises:
        ConfigError: If no manifest carries an id
    """
    names = set(archive.namelist())
    try:
        if "install.rdf" in names:
            ext_id = _rdf_extension_id(archive.read("install.rdf"))
            if ext_id:
                return ext_id
            raise ConfigError("unable to find extension Id from install.rdf")
        if "manifest.json" in names:
            ext_id = _manifest_extension_id(archive.read("manifest.json"))
            if ext_id:
                return ext_id
            raise ConfigError("unable to find extension Id from manifest.json")
    except ElementTree.ParseError as e:
        raise ConfigError(f"invalid install.rdf: {e}") from e
    except ValueError as e:
        raise ConfigError(f"invalid manifest.json: {e}") from e
    raise ConfigError("unable to find extension Id: archive has no install.rdf")


class ProfileBuilder:
    """Builds a temporary Firefox profile with the WebDriver extension installed."""

    def __init__(
        self,
        base_dir: str | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.base_dir = base_dir
        self._logger = logger or get_logger(__name__)

    def build(self, xpi_path: str, prefs: dict[str, Any]) -> str:
        """
        Create the profile directory.

        Args:
            xpi_path: Path of the extension archive
            prefs: Preferences written to user.js

        Returns:
            Path of the new profile directory

        Raises:
            ConfigError: If the archive or a preference is invalid
        """
        try:
            profile_path = tempfile.mkdtemp(prefix="webdriver", dir=self.base_dir)
        except OSError as e:
            raise ConfigError(PROFILE_ERROR + str(e)) from e

        try:
            self._install_extension(xpi_path, Path(profile_path))
            self._write_prefs(Path(profile_path) / USER_PREFS_FILE, prefs)
        except PreferenceTypeError as e:
            shutil.rmtree(profile_path, ignore_errors=True)
            raise PreferenceTypeError(PROFILE_ERROR + str(e)) from e
        except ConfigError as e:
            shutil.rmtree(profile_path, ignore_errors=True)
            raise ConfigError(PROFILE_ERROR + str(e)) from e
        except (OSError, zipfile.BadZipFile) as e:
            shutil.rmtree(profile_path, ignore_errors=True)
            raise ConfigError(PROFILE_ERROR + str(e)) from e

        self._logger.info(
            "Created temporary profile",
            profile_path=profile_path,
            prefs=len(prefs),
        )
        return profile_path

    def _install_extension(self, xpi_path: str, profile_path: Path) -> None:
        with zipfile.ZipFile(xpi_path) as archive:
            ext_id = read_extension_id(archive)
            ext_path = profile_path / EXTENSIONS_DIR / ext_id
            ext_path.mkdir(parents=True, mode=0o770)

            root = ext_path.resolve()
            for info in archive.infolist():
                self._write_member(archive, info, root)

        self._logger.debug("Installed extension", extension_id=ext_id, path=str(ext_path))

    def _write_member(
        self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, root: Path
    ) -> None:
        target = (root / info.filename).resolve()
        if target != root and root not in target.parents:
            raise ConfigError(f"{EXTENSION_ERROR}{info.filename} escapes the extension directory")

        try:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True, mode=0o770)
                return
            target.parent.mkdir(parents=True, exist_ok=True, mode=0o770)
            with archive.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
            os.chmod(target, 0o600)
        except OSError as e:
            raise ConfigError(EXTENSION_ERROR + str(e)) from e

    def _write_prefs(self, path: Path, prefs: dict[str, Any]) -> None:
        # Render everything first so a bad value leaves no partial file
        lines = [format_pref(key, value) for key, value in prefs.items()]
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
