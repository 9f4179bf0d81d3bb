"""OS-specific services: Steam install discovery and process output decoding."""

import locale
import logging
import re
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

RIMWORLD_DIR = Path("steamapps") / "common" / "RimWorld"
MODS_DIR_NAME = "Mods"
FLATPAK_STEAM_SUFFIX = Path(".local") / "share" / "Steam"

# "path"		"D:\\SteamLibrary" entries in steamapps/libraryfolders.vdf
_LIBRARY_PATH_RE = re.compile(r'^\s*"path"\s+"(?P<path>(?:[^"\\]|\\.)*)"', re.MULTILINE)


class PlatformServices:
    """Default services for platforms without Steam discovery.

    Subclasses override ``steam_install_path`` and, where the game keeps
    its Mods folder somewhere unusual, ``game_mods_dir``.
    """

    name = "generic"

    def steam_install_path(self) -> Optional[Path]:
        """Return the Steam installation root, or None if unknown."""
        return None

    def output_encoding(self) -> str:
        """Encoding used to decode output of external processes."""
        return "utf-8"

    def decode_output(self, data: Optional[bytes]) -> str:
        """Decode captured process output without ever raising.

        Args:
            data: Raw bytes captured from a subprocess

        Returns:
            Decoded text, with undecodable bytes replaced
        """
        if not data:
            return ""
        return data.decode(self.output_encoding(), errors="replace")

    def game_mods_dir(self, game_root: Path) -> Path:
        """Return the Mods directory of a RimWorld installation."""
        return game_root / MODS_DIR_NAME

    def steam_library_paths(self) -> list[Path]:
        """List Steam library roots, starting with the install root.

        Additional libraries are read from ``libraryfolders.vdf``.
        """
        steam_root = self.steam_install_path()
        if steam_root is None:
            return []

        libraries = [steam_root]
        vdf_path = steam_root / "steamapps" / "libraryfolders.vdf"
        try:
            content = vdf_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.debug(f"No library folders file at {vdf_path}")
            return libraries

        for match in _LIBRARY_PATH_RE.finditer(content):
            library = Path(match.group("path").replace("\\\\", "\\"))
            if library not in libraries:
                libraries.append(library)
        return libraries

    def find_rimworld_mods_path(self) -> Optional[Path]:
        """Best-effort discovery of the RimWorld Mods directory.

        Returns:
            Resolved path of the first existing Mods directory, or None
        """
        for library in self.steam_library_paths():
            mods_dir = self.game_mods_dir(library / RIMWORLD_DIR)
            if mods_dir.is_dir():
                logger.debug(f"Found RimWorld mods directory: {mods_dir}")
                return mods_dir.resolve()
        return None


class WindowsPlatformServices(PlatformServices):
    """Windows: Steam location from the registry, ANSI code page output."""

    name = "windows"

    _REGISTRY_KEYS = (
        ("HKEY_CURRENT_USER", r"Software\Valve\Steam", "SteamPath"),
        ("HKEY_LOCAL_MACHINE", r"SOFTWARE\WOW6432Node\Valve\Steam", "InstallPath"),
        ("HKEY_LOCAL_MACHINE", r"SOFTWARE\Valve\Steam", "InstallPath"),
    )

    def steam_install_path(self) -> Optional[Path]:
        try:
            import winreg
        except ImportError:
            return None

        for hive_name, key_path, value_name in self._REGISTRY_KEYS:
            hive = getattr(winreg, hive_name)
            try:
                with winreg.OpenKey(hive, key_path) as key:
                    value, _ = winreg.QueryValueEx(key, value_name)
            except OSError:
                continue
            if value:
                return Path(value)
        logger.debug("Steam install path not found in registry")
        return None

    def output_encoding(self) -> str:
        # dotnet writes console output in the active ANSI code page
        return locale.getpreferredencoding(False) or "mbcs"


class LinuxPlatformServices(PlatformServices):
    """Linux: native, symlinked and Flatpak Steam locations."""

    name = "linux"

    def _candidates(self) -> list[Path]:
        home = Path.home()
        return [
            home / ".steam" / "steam",
            home / ".local" / "share" / "Steam",
            home / ".var" / "app" / "com.valvesoftware.Steam" / FLATPAK_STEAM_SUFFIX,
        ]

    def steam_install_path(self) -> Optional[Path]:
        for candidate in self._candidates():
            if (candidate / "steamapps").is_dir():
                return candidate.resolve()
        return None


class MacPlatformServices(LinuxPlatformServices):
    """macOS: Steam under Application Support, Mods inside the app bundle."""

    name = "macos"

    def _candidates(self) -> list[Path]:
        return [Path.home() / "Library" / "Application Support" / "Steam"]

    def game_mods_dir(self, game_root: Path) -> Path:
        return game_root / "RimWorldMac.app" / MODS_DIR_NAME


def get_platform_services(platform: Optional[str] = None) -> PlatformServices:
    """Select the platform services for the running OS.

    Args:
        platform: Platform identifier in ``sys.platform`` form
            (defaults to the current platform)

    Returns:
        PlatformServices implementation for that platform
    """
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsPlatformServices()
    if platform == "darwin":
        return MacPlatformServices()
    if platform.startswith("linux"):
        return LinuxPlatformServices()
    return PlatformServices()
