"""Persistent per-user search path storage."""

from __future__ import annotations

import logging
from abc import ABC
from abc import abstractmethod

logger = logging.getLogger(__name__)

HWND_BROADCAST = 0xFFFF
WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002


class EnvironmentStore(ABC):
    """Read and write the user's persistent search path value."""

    @abstractmethod
    def read(self) -> str:
        """
        Read the persistent search path.

        Returns
        -------
        str
            Current value, empty when unset
        """

    @abstractmethod
    def write(self, value: str) -> None:
        """
        Replace the persistent search path.

        Parameters
        ----------
        value : str
            New search path value
        """


class InMemoryEnvironmentStore(EnvironmentStore):
    """Store backed by a plain attribute, for tests and dry runs."""

    def __init__(self, value: str = "") -> None:
        self.value = value
        self.writes: list[str] = []

    def read(self) -> str:
        return self.value

    def write(self, value: str) -> None:
        self.writes.append(value)
        self.value = value


class WindowsUserEnvironmentStore(EnvironmentStore):
    """``Path`` under ``HKEY_CURRENT_USER\\Environment``.

    Writes keep the value's registry type (``REG_EXPAND_SZ`` stays expandable)
    and broadcast ``WM_SETTINGCHANGE`` so new shells pick up the change.
    """

    key_path = "Environment"
    value_name = "Path"

    def __init__(self) -> None:
        import winreg

        self._winreg = winreg
        self._value_type = winreg.REG_EXPAND_SZ

    def read(self) -> str:
        winreg = self._winreg
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, self.key_path) as key:
            try:
                value, value_type = winreg.QueryValueEx(key, self.value_name)
            except FileNotFoundError:
                return ""
        self._value_type = value_type
        return value or ""

    def write(self, value: str) -> None:
        winreg = self._winreg
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER, self.key_path, 0, winreg.KEY_SET_VALUE
        ) as key:
            winreg.SetValueEx(key, self.value_name, 0, self._value_type, value)
        self._broadcast_change()

    def _broadcast_change(self) -> None:
        import ctypes

        result = ctypes.c_long()
        sent = ctypes.windll.user32.SendMessageTimeoutW(
            HWND_BROADCAST,
            WM_SETTINGCHANGE,
            0,
            "Environment",
            SMTO_ABORTIFHUNG,
            5000,
            ctypes.byref(result),
        )
        if not sent:
            logger.debug("WM_SETTINGCHANGE broadcast did not complete")


def default_environment_store(is_windows: bool) -> EnvironmentStore | None:
    """Return the persistent store for the host, ``None`` where there is none."""
    if is_windows:
        return WindowsUserEnvironmentStore()
    return None
