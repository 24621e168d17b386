"""Abstract base adapter for reading competition data and print settings."""

from abc import ABC, abstractmethod


class BaseAdapter(ABC):
    """Read access to the competition dataset plus print-config persistence.

    All list_* methods return decoded model objects (see records.py), so
    JSON-in-a-field values are parsed once here and never downstream.
    """

    @abstractmethod
    def list_activities(self) -> list:
        pass

    @abstractmethod
    def list_teams(self) -> list:
        pass

    @abstractmethod
    def list_schools(self) -> list:
        pass

    @abstractmethod
    def list_clusters(self) -> list:
        pass

    @abstractmethod
    def list_judges(self) -> list:
        pass

    @abstractmethod
    def list_venues(self) -> list:
        pass

    @abstractmethod
    def get_print_config(self) -> dict:
        """Return {scope_id: stored record dict} for every saved scope."""
        pass

    @abstractmethod
    def save_print_config(self, scope_id: str, record: dict) -> bool:
        """Replace the stored record for one scope. Returns success."""
        pass
